from __future__ import annotations

import logging
import threading
from typing import Optional

from warzone.core.accounts import AccountStore
from warzone.core.errors import OutOfRangeError, PersistenceError
from warzone.core.missions import FIRST_LEVEL, MAX_LEVEL

logger = logging.getLogger(__name__)


class ProgressTracker:
    """Owns the read-modify-write of the signed-in player's level.

    Level 10 is a ceiling. Advancing never lowers the stored level, so a
    stale or repeated call cannot skip or undo progress.
    """

    def __init__(self, store: AccountStore, lock: Optional[threading.Lock] = None) -> None:
        self._store = store
        self._lock = lock if lock is not None else threading.Lock()

    def unlocked_level(self) -> int:
        """Highest mission the signed-in player may start (1 when signed out)."""
        player = self._store.read_current_player()
        if player is None:
            return FIRST_LEVEL
        return max(FIRST_LEVEL, min(MAX_LEVEL, player.level))

    def is_unlocked(self, level: int) -> bool:
        return FIRST_LEVEL <= level <= self.unlocked_level()

    def completion_percent(self) -> int:
        return self.unlocked_level() * 100 // MAX_LEVEL

    def advance(self, current_level: int) -> int:
        """Record a clear of *current_level* and return the player's new level.

        The new level is kept on the in-memory player even when writing it
        back fails; the ``PersistenceError`` is still raised.
        """
        if isinstance(current_level, bool) or not isinstance(current_level, int):
            raise OutOfRangeError(current_level, FIRST_LEVEL, MAX_LEVEL)
        if not FIRST_LEVEL <= current_level <= MAX_LEVEL:
            raise OutOfRangeError(current_level, FIRST_LEVEL, MAX_LEVEL)

        with self._lock:
            player = self._store.read_current_player()
            if player is None:
                raise PersistenceError("No signed-in player to record progress for")

            new_level = max(min(current_level + 1, MAX_LEVEL), player.level)
            previous = player.level
            player.level = new_level
            try:
                self._store.write_player(player)
            except PersistenceError:
                logger.error(
                    "Level %d for %s is not saved; continuing with it for this run",
                    new_level,
                    player.nickname,
                )
                raise

        if new_level != previous:
            logger.info("%s advanced from level %d to %d", player.nickname, previous, new_level)
        return new_level
