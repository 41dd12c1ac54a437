"""Driver-facing entry point: start missions, shoot, advance, return to menu."""

from __future__ import annotations

import logging
import random
from typing import Callable, Optional

from warzone.core.accounts import AccountStore
from warzone.core.errors import MissionLockedError, SessionClosedError
from warzone.core.missions import MissionCatalog
from warzone.core.progress import ProgressTracker
from warzone.core.scheduler import ScheduledTask, Scheduler
from warzone.core.session import CombatSession, Explosion, MissionResult, ShotOutcome, start_mission

logger = logging.getLogger(__name__)

RETURN_TO_MENU_DELAY_MS = 500


class Campaign:
    """Runs one session at a time for the signed-in player."""

    def __init__(
        self,
        catalog: MissionCatalog,
        store: AccountStore,
        scheduler: Scheduler,
        tracker: Optional[ProgressTracker] = None,
        on_return_to_menu: Optional[Callable[[Optional[MissionResult]], None]] = None,
        on_effect: Optional[Callable[[Explosion], None]] = None,
        rng: Optional[random.Random] = None,
        unlock_all: bool = False,
    ) -> None:
        self._catalog = catalog
        self._store = store
        self._scheduler = scheduler
        self._tracker = tracker if tracker is not None else ProgressTracker(store)
        self._on_return_to_menu = on_return_to_menu
        self._on_effect = on_effect
        self._rng = rng
        self._unlock_all = unlock_all
        self._session: Optional[CombatSession] = None
        self._return_task: Optional[ScheduledTask] = None
        self._last_result: Optional[MissionResult] = None

    @property
    def catalog(self) -> MissionCatalog:
        return self._catalog

    @property
    def tracker(self) -> ProgressTracker:
        return self._tracker

    @property
    def session(self) -> Optional[CombatSession]:
        return self._session

    @property
    def last_result(self) -> Optional[MissionResult]:
        return self._last_result

    def start_mission(self, level: Optional[int] = None) -> CombatSession:
        """Start *level*, or the player's unlocked mission when omitted."""
        if level is None:
            level = self._tracker.unlocked_level()
        mission = self._catalog.mission_for(level)
        if not self._unlock_all and not self._tracker.is_unlocked(mission.level):
            raise MissionLockedError(f"Mission {mission.level} is locked")

        self.return_to_menu(notify=False)
        self._session = start_mission(
            self._catalog,
            mission.level,
            scheduler=self._scheduler,
            rng=self._rng,
            on_effect=self._on_effect,
        )
        return self._session

    def fire_at(self, target_id: Optional[int]) -> ShotOutcome:
        if self._session is None:
            raise SessionClosedError("No mission in progress")
        outcome = self._session.fire_at(target_id)
        if outcome.cleared:
            self._complete(self._session)
        return outcome

    def return_to_menu(self, notify: bool = True) -> None:
        """Discard the current session, cancelling anything it still had queued."""
        if self._return_task is not None:
            self._return_task.cancel()
            self._return_task = None
        session = self._session
        self._session = None
        if session is not None:
            session.exit()
        if notify and self._on_return_to_menu is not None:
            self._on_return_to_menu(session.result if session is not None else None)

    def _complete(self, session: CombatSession) -> None:
        self._last_result = session.result
        self._return_task = self._scheduler.call_later(RETURN_TO_MENU_DELAY_MS, self._auto_return)
        self._tracker.advance(session.level)

    def _auto_return(self) -> None:
        self._return_task = None
        self.return_to_menu()
