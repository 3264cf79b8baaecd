"""Tests for the command-line interface."""

import asyncio

import pytest
from click.testing import CliRunner

from unified_save import FileSlotBackend, SaveCoordinator
from unified_save.cli import cli


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def config_file(tmp_path):
    """Config pointing the file backend at a temp directory."""
    path = tmp_path / "unified-save.yaml"
    path.write_text(
        "settings:\n"
        f"  save_directory: {tmp_path / 'Saves'}\n"
        "  max_slots: 2\n"
    )
    return path


@pytest.fixture
def saved_slot(tmp_path, make_adapter):
    coord = SaveCoordinator(backend=FileSlotBackend(directory=tmp_path / "Saves"))
    coord.initialize()
    coord.register_system(make_adapter("quests", state=["q1"]))
    asyncio.run(coord.save("save-0"))
    return "save-0"


def test_init(runner):
    with runner.isolated_filesystem():
        result = runner.invoke(cli, ["init"], obj={})
        assert result.exit_code == 0
        assert "Created" in result.output

        with open("unified-save.yaml") as f:
            assert "autosave:" in f.read()


def test_slots_keys(runner, config_file):
    result = runner.invoke(cli, ["-c", str(config_file), "slots", "keys"], obj={})

    assert result.exit_code == 0
    assert "save-1" in result.output
    assert "autosave-1" in result.output
    assert "save-2" not in result.output


def test_slots_list(runner, config_file, saved_slot):
    result = runner.invoke(cli, ["-c", str(config_file), "slots", "list"], obj={})

    assert result.exit_code == 0
    assert saved_slot in result.output


def test_slots_list_empty(runner, config_file):
    result = runner.invoke(cli, ["-c", str(config_file), "slots", "list"], obj={})

    assert result.exit_code == 0
    assert "No slots stored" in result.output


def test_slots_show(runner, config_file, saved_slot):
    result = runner.invoke(cli, ["-c", str(config_file), "slots", "show", saved_slot], obj={})

    assert result.exit_code == 0
    assert "quests" in result.output


def test_slots_show_missing(runner, config_file):
    result = runner.invoke(cli, ["-c", str(config_file), "slots", "show", "save-1"], obj={})

    assert result.exit_code == 1
    assert "Slot not found" in result.output


def test_slots_delete(runner, config_file, saved_slot, tmp_path):
    result = runner.invoke(cli, ["-c", str(config_file), "slots", "delete", saved_slot, "-y"], obj={})

    assert result.exit_code == 0
    assert not (tmp_path / "Saves" / "save-0.save").exists()
