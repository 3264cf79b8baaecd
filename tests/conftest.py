"""Shared fixtures for unified save tests."""

import copy

import pytest

from unified_save import SubsystemAdapter, SaveCoordinator, MemoryBackend, SaveSettings


class RecordingAdapter(SubsystemAdapter):
    """Adapter over a plain dict that records every call it receives."""

    def __init__(
        self,
        system_id,
        priority=0,
        state=None,
        capture_error=None,
        restore_result=True,
        journal=None,
    ):
        self.system_id = system_id
        self.priority = priority
        self.state = state
        self.capture_error = capture_error
        self.restore_result = restore_result
        self.journal = journal if journal is not None else []
        self.calls = []

    def _record(self, event, *args):
        self.calls.append((event, *args))
        self.journal.append((self.system_id, event, *args))

    def capture_snapshot(self):
        self._record("capture")
        if self.capture_error is not None:
            raise self.capture_error
        return copy.deepcopy(self.state)

    def restore_snapshot(self, payload):
        self._record("restore")
        self.state = payload
        return self.restore_result

    def on_before_save(self):
        self._record("before_save")

    def on_after_save(self, success):
        self._record("after_save", success)

    def on_before_load(self):
        self._record("before_load")

    def on_after_load(self, success):
        self._record("after_load", success)

    def events(self, name):
        return [c for c in self.calls if c[0] == name]


@pytest.fixture
def make_adapter():
    """Factory for RecordingAdapter instances."""
    return RecordingAdapter


@pytest.fixture
def journal():
    """Shared call log across adapters."""
    return []


@pytest.fixture
def memory_backend():
    return MemoryBackend()


@pytest.fixture
def coordinator(memory_backend):
    """An initialized coordinator over an in-memory backend."""
    coord = SaveCoordinator(settings=SaveSettings(pretty_print=False), backend=memory_backend)
    assert coord.initialize()
    return coord
