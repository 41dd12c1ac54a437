from __future__ import annotations

import itertools
import logging
import random
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, List, Optional

from warzone.core.errors import OutOfAmmoError, SessionClosedError
from warzone.core.missions import Mission, MissionCatalog
from warzone.core.scheduler import ManualScheduler, ScheduledTask, Scheduler

logger = logging.getLogger(__name__)

STARTING_HEALTH = 100
STARTING_AMMO = 30
EFFECT_DURATION_MS = 500

# Spawn area in percent of the battlefield.
SPAWN_X = (10.0, 90.0)
SPAWN_Y = (20.0, 80.0)

# Half-size of a target's hit box, in percent.
HIT_RADIUS = 4.0


class SessionState(Enum):
    INITIALIZING = "initializing"
    ACTIVE = "active"
    CLEARED = "cleared"
    EXITED = "exited"


@dataclass
class Target:
    """An enemy on the battlefield. Dead targets stay in the list."""

    id: int
    x: float
    y: float
    alive: bool = True


@dataclass(frozen=True)
class Explosion:
    """Short-lived kill marker; purely cosmetic."""

    id: int
    x: float
    y: float
    expires_at_ms: int


@dataclass(frozen=True)
class ShotOutcome:
    """What a single trigger pull did."""

    target_id: Optional[int]
    ammo_remaining: int
    killed: bool
    cleared: bool
    remaining: int


@dataclass(frozen=True)
class MissionResult:
    mission_level: int
    kill_count: int


class CombatSession:
    """Live state of one playthrough of a mission.

    The session starts in ``INITIALIZING``, spawns the mission's targets and
    is ``ACTIVE`` by the time the constructor returns. Shots are applied
    synchronously; only cosmetic effects are deferred to the scheduler, and
    those are cancelled when the session is exited.
    """

    def __init__(
        self,
        mission: Mission,
        scheduler: Optional[Scheduler] = None,
        rng: Optional[random.Random] = None,
        on_effect: Optional[Callable[[Explosion], None]] = None,
    ) -> None:
        self._mission = mission
        self._scheduler = scheduler if scheduler is not None else ManualScheduler()
        self._rng = rng if rng is not None else random.Random()
        self._on_effect = on_effect
        self._state = SessionState.INITIALIZING
        self._health = STARTING_HEALTH
        self._ammo = STARTING_AMMO
        self._kills = 0
        self._targets: List[Target] = []
        self._effects: Dict[int, Explosion] = {}
        self._tasks: List[ScheduledTask] = []
        self._effect_ids = itertools.count(1)
        self._result: Optional[MissionResult] = None
        self._initialize()

    @property
    def mission(self) -> Mission:
        return self._mission

    @property
    def level(self) -> int:
        return self._mission.level

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def is_active(self) -> bool:
        return self._state is SessionState.ACTIVE

    @property
    def health(self) -> int:
        """Player health in 0..100. Nothing in the game deals damage yet."""
        return max(0, min(STARTING_HEALTH, self._health))

    @property
    def ammo(self) -> int:
        return self._ammo

    @property
    def kills(self) -> int:
        return self._kills

    @property
    def targets(self) -> List[Target]:
        return list(self._targets)

    @property
    def remaining(self) -> int:
        """Number of targets still alive."""
        return sum(1 for t in self._targets if t.alive)

    @property
    def effects(self) -> List[Explosion]:
        return list(self._effects.values())

    @property
    def result(self) -> Optional[MissionResult]:
        """Set once the mission is cleared."""
        return self._result

    def alive_targets(self) -> List[Target]:
        return [t for t in self._targets if t.alive]

    def target(self, target_id: Optional[int]) -> Optional[Target]:
        if target_id is None:
            return None
        for t in self._targets:
            if t.id == target_id:
                return t
        return None

    def target_at(
        self,
        x: float,
        y: float,
        half_width: float = HIT_RADIUS,
        half_height: float = HIT_RADIUS,
    ) -> Optional[int]:
        """Return the id of the alive target whose hit box contains (x, y).

        Overlapping targets resolve to the one spawned last, which is the one
        drawn on top.
        """
        for t in reversed(self._targets):
            if t.alive and abs(t.x - x) <= half_width and abs(t.y - y) <= half_height:
                return t.id
        return None

    def fire_at(self, target_id: Optional[int]) -> ShotOutcome:
        """Spend one round on *target_id*.

        Missing, dead or unknown targets still cost a round. Raises
        ``OutOfAmmoError`` with an empty magazine (state unchanged) and
        ``SessionClosedError`` once the session is cleared or exited.
        """
        if self._state is not SessionState.ACTIVE:
            raise SessionClosedError(f"Session for mission {self.level} is {self._state.value}")
        if self._ammo <= 0:
            raise OutOfAmmoError("Out of ammo")

        self._ammo -= 1
        target = self.target(target_id)
        killed = False
        if target is not None and target.alive:
            target.alive = False
            self._kills += 1
            killed = True

        remaining = self.remaining
        if remaining == 0:
            self._state = SessionState.CLEARED
            self._result = MissionResult(mission_level=self.level, kill_count=self._kills)
            logger.info("Mission %d cleared with %d kills", self.level, self._kills)

        logger.debug(
            "Shot at %s: killed=%s ammo=%d remaining=%d", target_id, killed, self._ammo, remaining
        )
        outcome = ShotOutcome(
            target_id=target_id,
            ammo_remaining=self._ammo,
            killed=killed,
            cleared=self._state is SessionState.CLEARED,
            remaining=remaining,
        )
        if killed:
            self._add_explosion(target)
        return outcome

    def exit(self) -> None:
        """Abandon the session and drop all of its pending deferred work.

        An active session moves to ``EXITED``; a cleared one keeps its result.
        """
        for task in self._tasks:
            task.cancel()
        self._tasks.clear()
        self._effects.clear()
        if self._state is SessionState.ACTIVE:
            self._state = SessionState.EXITED
            logger.info("Mission %d abandoned with %d/%d kills", self.level, self._kills, len(self._targets))

    def _initialize(self) -> None:
        self._health = STARTING_HEALTH
        self._ammo = STARTING_AMMO
        self._kills = 0
        self._targets = [
            Target(
                id=i,
                x=self._rng.uniform(*SPAWN_X),
                y=self._rng.uniform(*SPAWN_Y),
            )
            for i in range(self._mission.enemy_count)
        ]
        self._state = SessionState.ACTIVE
        logger.info("Mission %d (%s) started with %d enemies", self.level, self._mission.name, len(self._targets))

    def _add_explosion(self, target: Target) -> None:
        effect = Explosion(
            id=next(self._effect_ids),
            x=target.x,
            y=target.y,
            expires_at_ms=self._scheduler.now_ms() + EFFECT_DURATION_MS,
        )
        self._effects[effect.id] = effect
        self._tasks = [t for t in self._tasks if t.pending]
        self._tasks.append(
            self._scheduler.call_later(EFFECT_DURATION_MS, lambda: self._effects.pop(effect.id, None))
        )
        if self._on_effect is not None:
            try:
                self._on_effect(effect)
            except Exception as e:
                logger.warning("Effect listener failed: %s", e)


def start_mission(
    catalog: MissionCatalog,
    level: int,
    scheduler: Optional[Scheduler] = None,
    rng: Optional[random.Random] = None,
    on_effect: Optional[Callable[[Explosion], None]] = None,
) -> CombatSession:
    """Create an active session for the catalog's mission at *level*."""
    mission = catalog.mission_for(level)
    return CombatSession(mission, scheduler=scheduler, rng=rng, on_effect=on_effect)


def fire_at(session: CombatSession, target_id: Optional[int]) -> ShotOutcome:
    return session.fire_at(target_id)
