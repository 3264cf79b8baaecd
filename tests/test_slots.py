"""Tests for the slot key policy."""

import pytest

from unified_save import SaveSettings, SlotIndexError, SlotPolicy, NO_ACTIVE_SLOT


@pytest.fixture
def policy():
    return SlotPolicy(SaveSettings(max_slots=3))


def test_keys(policy):
    assert policy.manual_key(0) == "save-0"
    assert policy.autosave_key(2) == "autosave-2"


@pytest.mark.parametrize("index", [-1, 3, 99])
def test_out_of_range_rejected(policy, index):
    """Test that indices are never clamped or wrapped."""
    with pytest.raises(SlotIndexError):
        policy.manual_key(index)
    with pytest.raises(ValueError):
        policy.autosave_key(index)


def test_custom_prefixes():
    policy = SlotPolicy(SaveSettings(manual_prefix="slot", autosave_prefix="auto", max_slots=1))
    assert policy.list_slot_keys() == ["slot-0", "auto-0"]


def test_list_slot_keys(policy):
    assert policy.list_slot_keys() == [
        "save-0", "save-1", "save-2",
        "autosave-0", "autosave-1", "autosave-2",
    ]


def test_disabled_slots_use_bare_prefix():
    """Test the single implicit slot when indexing is off."""
    policy = SlotPolicy(SaveSettings(use_save_slots=False))

    assert policy.manual_key(7) == "save"
    assert policy.autosave_key(0) == "autosave"
    assert policy.list_slot_keys() == ["save", "autosave"]
    with pytest.raises(SlotIndexError):
        policy.set_active_slot(0)


def test_active_slot(policy):
    """Test selecting and clearing the active slot."""
    assert policy.active_slot == NO_ACTIVE_SLOT
    assert policy.current_manual_key is None

    policy.set_active_slot(1)
    assert policy.has_active_slot
    assert policy.current_manual_key == "save-1"
    assert policy.current_autosave_key == "autosave-1"

    policy.clear_active_slot()
    assert not policy.has_active_slot
    assert policy.current_autosave_key is None


def test_active_slot_bounds(policy):
    policy.set_active_slot(NO_ACTIVE_SLOT)
    with pytest.raises(SlotIndexError) as exc:
        policy.set_active_slot(3)
    assert "-1 to 2" in str(exc.value)
    with pytest.raises(SlotIndexError):
        policy.set_active_slot(-2)


def test_slot_listeners(policy):
    changes = []
    policy.on_slot_changed(lambda prev, cur: changes.append((prev, cur)))

    policy.set_active_slot(0)
    policy.set_active_slot(0)
    policy.set_active_slot(2)
    policy.clear_active_slot()

    assert changes == [(-1, 0), (0, 2), (2, -1)]


def test_is_valid_slot_index(policy):
    assert policy.is_valid_slot_index(0)
    assert policy.is_valid_slot_index(2)
    assert not policy.is_valid_slot_index(3)
    assert not policy.is_valid_slot_index(-1)
