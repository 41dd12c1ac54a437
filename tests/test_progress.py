"""Tests for warzone.core.progress – level advancement."""

from __future__ import annotations

from pathlib import Path

import pytest

from warzone.core.accounts import AccountStore, Player
from warzone.core.errors import OutOfRangeError, PersistenceError
from warzone.core.progress import ProgressTracker


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture()
def store(tmp_path: Path) -> AccountStore:
    return AccountStore(file_path=tmp_path / "accounts.json")


@pytest.fixture()
def tracker(store: AccountStore) -> ProgressTracker:
    return ProgressTracker(store)


def _sign_in(store: AccountStore, level: int = 1) -> Player:
    player = Player(nickname="ghost", password="pw", level=level)
    store.write_player(player)
    return player


class _FailingStore(AccountStore):
    def write_player(self, player: Player) -> None:
        raise PersistenceError("disk full")


class _RecordingLock:
    def __init__(self) -> None:
        self.entered = 0
        self.held = False

    def __enter__(self):
        self.entered += 1
        self.held = True
        return self

    def __exit__(self, *exc):
        self.held = False
        return False


# ---------------------------------------------------------------------------
# advance
# ---------------------------------------------------------------------------

class TestAdvance:
    @pytest.mark.parametrize("level", list(range(1, 10)))
    def test_next_level(self, store: AccountStore, tracker: ProgressTracker, level: int):
        _sign_in(store, level)
        assert tracker.advance(level) == level + 1
        assert store.read_current_player().level == level + 1

    def test_ceiling(self, store: AccountStore, tracker: ProgressTracker):
        _sign_in(store, 10)
        assert tracker.advance(10) == 10
        assert store.read_current_player().level == 10

    def test_persisted(self, store: AccountStore, tracker: ProgressTracker):
        _sign_in(store, 1)
        tracker.advance(1)
        reloaded = AccountStore(file_path=store.file_path)
        assert reloaded.read_current_player().level == 2

    def test_repeat_call_does_not_double_advance(self, store: AccountStore, tracker: ProgressTracker):
        _sign_in(store, 1)
        assert tracker.advance(1) == 2
        assert tracker.advance(1) == 2
        assert store.read_current_player().level == 2

    def test_replaying_lower_mission_never_regresses(self, store: AccountStore, tracker: ProgressTracker):
        _sign_in(store, 6)
        assert tracker.advance(2) == 6

    @pytest.mark.parametrize("level", [0, 11, -5])
    def test_out_of_range(self, store: AccountStore, tracker: ProgressTracker, level: int):
        _sign_in(store, 3)
        with pytest.raises(OutOfRangeError):
            tracker.advance(level)
        assert store.read_current_player().level == 3

    def test_no_player(self, tracker: ProgressTracker):
        with pytest.raises(PersistenceError):
            tracker.advance(1)

    def test_write_failure_keeps_in_memory_level(self, tmp_path: Path):
        store = _FailingStore(file_path=tmp_path / "accounts.json")
        player = Player(nickname="ghost", password="pw", level=4)
        store._users[player.nickname] = player
        store._current = player.nickname
        tracker = ProgressTracker(store)
        with pytest.raises(PersistenceError):
            tracker.advance(4)
        assert player.level == 5
        assert tracker.unlocked_level() == 5

    def test_runs_under_lock(self, store: AccountStore):
        lock = _RecordingLock()
        _sign_in(store, 1)
        tracker = ProgressTracker(store, lock=lock)
        tracker.advance(1)
        assert lock.entered == 1
        assert lock.held is False


# ---------------------------------------------------------------------------
# Unlock queries
# ---------------------------------------------------------------------------

class TestUnlocks:
    def test_signed_out_defaults_to_first(self, tracker: ProgressTracker):
        assert tracker.unlocked_level() == 1
        assert tracker.is_unlocked(1)
        assert not tracker.is_unlocked(2)

    def test_unlocked_up_to_player_level(self, store: AccountStore, tracker: ProgressTracker):
        _sign_in(store, 4)
        assert tracker.unlocked_level() == 4
        assert tracker.is_unlocked(4)
        assert tracker.is_unlocked(1)
        assert not tracker.is_unlocked(5)
        assert not tracker.is_unlocked(0)

    @pytest.mark.parametrize("level,percent", [(1, 10), (5, 50), (10, 100)])
    def test_completion_percent(self, store: AccountStore, tracker: ProgressTracker, level: int, percent: int):
        _sign_in(store, level)
        assert tracker.completion_percent() == percent
