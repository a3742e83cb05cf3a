"""
Tests for the bounded undo/redo history.
"""

import pytest

from spritesheet_editor.history import HistoryManager


def test_depth_is_bounded():
    """40 mutating actions leave exactly 32 undo entries, oldest dropped."""
    history = HistoryManager()
    live = 0
    for _ in range(40):
        history.record(live)
        live += 1

    assert history.undo_depth == 32
    states = []
    while history.can_undo:
        live = history.undo(live)
        states.append(live)
    assert states == list(range(39, 7, -1)), "the 8 oldest states should be gone"


def test_undo_redo_round_trip():
    history = HistoryManager()
    history.record("a")
    history.record("b")
    live = "c"

    live = history.undo(live)
    assert live == "b"
    live = history.undo(live)
    assert live == "a"
    assert history.undo(live) is None, "nothing left to undo"
    assert history.redo_depth == 2

    live = history.redo(live)
    assert live == "b"
    live = history.redo(live)
    assert live == "c"
    assert history.redo(live) is None


def test_new_action_clears_redo():
    """One undo followed by one new mutation empties the redo stack."""
    history = HistoryManager()
    history.record(1)
    history.record(2)
    history.undo(3)
    assert history.can_redo

    history.record(2)
    assert not history.can_redo
    assert history.undo_depth == 2


def test_empty_undo_is_noop():
    history = HistoryManager()
    assert history.undo("live") is None
    assert history.redo_depth == 0, "a failed undo must not push onto redo"


def test_reset_clears_both_stacks():
    history = HistoryManager(depth=4)
    history.record(1)
    history.record(2)
    history.undo(3)
    history.reset()
    assert not history.can_undo and not history.can_redo


def test_invalid_depth():
    with pytest.raises(ValueError):
        HistoryManager(depth=0)
