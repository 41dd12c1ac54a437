from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterator, List, Optional

import yaml

from warzone.core.errors import OutOfRangeError

logger = logging.getLogger(__name__)

FIRST_LEVEL = 1
MAX_LEVEL = 10


@dataclass(frozen=True)
class Mission:
    level: int
    name: str
    enemy_count: int
    description: str = ""

    @property
    def key(self) -> str:
        return f"mission{self.level}"

    @property
    def is_final(self) -> bool:
        return self.level == MAX_LEVEL


def default_missions_dir() -> Path:
    return Path(__file__).resolve().parent.parent / "data" / "missions"


class MissionCatalog:
    """Ordered, read-only table of missions keyed by level.

    Missions are loaded once from ``mission<N>.yaml`` files. The catalog must
    cover every level from 1 to 10 with enemy counts that never decrease.
    """

    def __init__(self, base_dir: Optional[Path] = None) -> None:
        self._base_dir = base_dir if base_dir is not None else default_missions_dir()
        self._missions = self._load_missions()

    def __len__(self) -> int:
        return len(self._missions)

    def __iter__(self) -> Iterator[Mission]:
        return iter(self.all())

    def all(self) -> List[Mission]:
        return [self._missions[level] for level in sorted(self._missions)]

    def first(self) -> Mission:
        return self._missions[FIRST_LEVEL]

    def last(self) -> Mission:
        return self._missions[MAX_LEVEL]

    def mission_for(self, level: int) -> Mission:
        if isinstance(level, bool) or not isinstance(level, int):
            raise OutOfRangeError(level, FIRST_LEVEL, MAX_LEVEL)
        if not FIRST_LEVEL <= level <= MAX_LEVEL:
            raise OutOfRangeError(level, FIRST_LEVEL, MAX_LEVEL)
        return self._missions[level]

    def _load_missions(self) -> Dict[int, Mission]:
        base_dir = self._base_dir
        if not base_dir.exists():
            raise FileNotFoundError(f"Missions directory not found: {base_dir}")

        missions: Dict[int, Mission] = {}

        def _level_of(p: Path) -> Optional[int]:
            m = re.match(r"^mission(\d+)$", p.stem)
            return int(m.group(1)) if m else None

        paths = [p for p in base_dir.glob("mission*.yaml") if _level_of(p) is not None]
        for mission_path in sorted(paths, key=_level_of):
            level = _level_of(mission_path)
            raw = yaml.safe_load(mission_path.read_text(encoding="utf-8"))
            if not raw or not isinstance(raw, dict):
                raise ValueError(f"{mission_path.name}: expected YAML with 'title' and 'enemies'")
            title = raw.get("title")
            enemies = raw.get("enemies")
            if not title or not isinstance(title, str):
                raise ValueError(f"{mission_path.name}: missing or invalid 'title'")
            if isinstance(enemies, bool) or not isinstance(enemies, int) or enemies <= 0:
                raise ValueError(f"{mission_path.name}: 'enemies' must be a positive integer")
            description = str(raw.get("description") or "").strip()
            missions[level] = Mission(
                level=level,
                name=title.strip(),
                enemy_count=enemies,
                description=description,
            )

        if not missions:
            raise ValueError(f"No mission files (mission*.yaml) found in {base_dir}")

        expected = list(range(FIRST_LEVEL, MAX_LEVEL + 1))
        if sorted(missions) != expected:
            raise ValueError(
                f"Missions must cover levels {FIRST_LEVEL}..{MAX_LEVEL} exactly, got {sorted(missions)}"
            )

        previous = 0
        for level in expected:
            count = missions[level].enemy_count
            if count < previous:
                raise ValueError(f"mission{level}.yaml: enemy count {count} is lower than level {level - 1}")
            previous = count

        logger.debug("Loaded %d missions from %s", len(missions), base_dir)
        return missions
