"""Data models used by the UI."""

from __future__ import annotations

from dataclasses import dataclass
from typing import List

from warzone.core.missions import Mission, MissionCatalog


@dataclass
class MissionCardState:
    """UI state for a single mission card: unlock status and selection."""

    mission: Mission
    unlocked: bool
    cleared: bool
    is_current: bool = False


def build_mission_states(
    catalog: MissionCatalog,
    unlocked_level: int,
    unlock_all: bool = False,
) -> List[MissionCardState]:
    """Compute unlock/cleared state for every mission and mark the current one.

    A mission is cleared when the player has moved past it. Level 10 is never
    shown as cleared because the stored level cannot go beyond it.
    """
    states: List[MissionCardState] = []
    for mission in catalog.all():
        states.append(
            MissionCardState(
                mission=mission,
                unlocked=unlock_all or mission.level <= unlocked_level,
                cleared=mission.level < unlocked_level,
                is_current=mission.level == unlocked_level,
            )
        )
    return states
