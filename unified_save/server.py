"""
Unified Save Slot Server

FastAPI application exposing a slot backend over HTTP, for remote
("cloud") save storage. HTTPSlotBackend is the matching client.
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, HTTPException, Request, Response
from fastapi.middleware.cors import CORSMiddleware

from . import __version__
from .backends import SlotBackend, create_backend
from .config import UnifiedSaveConfig, load_config
from .errors import SnapshotFormatError
from .snapshot.models import read_metadata
from .telemetry import configure_telemetry

logger = logging.getLogger("unified_save.server")


# =============================================================================
# Application Factory
# =============================================================================

def create_app(
    config: Optional[UnifiedSaveConfig] = None,
    backend: Optional[SlotBackend] = None,
) -> FastAPI:
    """Create FastAPI application serving one slot backend."""
    config = config or UnifiedSaveConfig()

    if backend is None:
        if config.backend.kind == "http":
            raise ValueError("Slot server cannot serve an http backend")
        backend = create_backend(config.backend, config.settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Startup and shutdown events."""
        logger.info(f"Slot server starting with backend {backend.describe()}")
        yield
        logger.info("Slot server shutting down...")
        await backend.aclose()

    app = FastAPI(
        title="Unified Save",
        description="Remote slot storage for unified snapshots",
        version=__version__,
        lifespan=lifespan,
    )

    app.state.backend = backend
    app.state.config = config

    # CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # =========================================================================
    # Routes
    # =========================================================================

    @app.get("/")
    async def root():
        """Service info."""
        return {
            "service": "Unified Save",
            "version": __version__,
            "status": "running",
            "backend": backend.describe(),
        }

    @app.get("/health")
    async def health():
        """Health check."""
        return {"status": "healthy"}

    # -------------------------------------------------------------------------
    # Slots
    # -------------------------------------------------------------------------

    @app.get("/v1/slots")
    async def list_slots(prefix: Optional[str] = None):
        """List stored slot keys."""
        keys = await backend.list_keys(prefix)
        return {"keys": keys, "count": len(keys)}

    @app.get("/v1/slots/{key:path}")
    async def get_slot(key: str):
        """Raw snapshot document."""
        data = await backend.load(key)
        if data is None:
            raise HTTPException(status_code=404, detail=f"Slot not found: {key}")
        return Response(content=data, media_type="application/json")

    @app.head("/v1/slots/{key:path}")
    async def head_slot(key: str):
        if not await backend.exists(key):
            return Response(status_code=404)
        return Response(status_code=200)

    @app.put("/v1/slots/{key:path}")
    async def put_slot(key: str, request: Request):
        """Store a snapshot document, overwriting any existing one."""
        body = await request.body()
        try:
            data = body.decode("utf-8")
        except UnicodeDecodeError:
            raise HTTPException(status_code=400, detail="Body must be UTF-8 text")

        if not await backend.save(key, data):
            raise HTTPException(status_code=500, detail=f"Failed to save slot: {key}")
        return {"status": "saved", "key": key}

    @app.delete("/v1/slots/{key:path}")
    async def delete_slot(key: str):
        """Delete a slot (idempotent)."""
        if not await backend.delete(key):
            raise HTTPException(status_code=500, detail=f"Failed to delete slot: {key}")
        return {"status": "deleted", "key": key}

    @app.get("/v1/metadata/{key:path}")
    async def get_metadata(key: str):
        """Metadata block of a stored snapshot."""
        data = await backend.load(key)
        if data is None:
            raise HTTPException(status_code=404, detail=f"Slot not found: {key}")
        try:
            metadata = read_metadata(data)
        except SnapshotFormatError as e:
            raise HTTPException(status_code=422, detail=str(e))
        return metadata.model_dump(by_alias=True)

    return app


# =============================================================================
# Main
# =============================================================================

def main(config_path: str = None):
    """Run the slot server."""
    import uvicorn

    logging.basicConfig(level=logging.INFO)

    config = load_config(config_path) if config_path else UnifiedSaveConfig()
    configure_telemetry(config.telemetry)
    app = create_app(config)

    uvicorn.run(
        app,
        host=config.server.host,
        port=config.server.port,
        log_level="info",
    )


if __name__ == "__main__":
    main()
