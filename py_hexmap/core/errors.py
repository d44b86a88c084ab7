"""
Error types and the generation report.

Fatal problems (bad parameters, broken rulesets) are raised as exceptions.
Recoverable problems (a wonder that found no site, a river that ran into a
dead end) are recorded on the :class:`GenerationReport` and generation
continues.
"""

from dataclasses import dataclass, field
from typing import List, Optional


class MapGenerationError(Exception):
    """Base class for errors raised by the generator."""


class ConfigurationError(MapGenerationError, ValueError):
    """Map parameters are invalid; raised before any generation work."""


class RulesetInconsistency(MapGenerationError, LookupError):
    """The ruleset references a missing entry or declares an impossible range."""


@dataclass
class PlacementShortfall:
    """A placement request that could not be fully satisfied."""

    kind: str  # "natural_wonder", "resource", "start_position", "city_state"
    name: str
    requested: int
    placed: int
    detail: str = ""


@dataclass
class RiverDeadEnd:
    """A river source that was abandoned without marking any edge."""

    source: int
    steps: int
    reason: str


@dataclass
class GenerationReport:
    """Non-fatal outcomes collected while generating a map."""

    shortfalls: List[PlacementShortfall] = field(default_factory=list)
    river_dead_ends: List[RiverDeadEnd] = field(default_factory=list)
    requested_min_start_distance: Optional[int] = None
    achieved_min_start_distance: Optional[int] = None
    start_distance_relaxed: bool = False
    target_land_fraction: Optional[float] = None
    achieved_land_fraction: Optional[float] = None

    def shortfalls_of(self, kind: str) -> List[PlacementShortfall]:
        return [s for s in self.shortfalls if s.kind == kind]
