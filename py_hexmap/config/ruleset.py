"""
Ruleset view.

Read-only tables describing which terrains, features, resources and natural
wonders exist and where they may be placed. Yields are carried through
untouched. Lookups raise `RulesetInconsistency` as soon as a stage asks for
an entry that is missing or declares an impossible range.
"""

from typing import Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field

from ..core.errors import RulesetInconsistency
from ..core.tile_map import (
    ELEVATION_NAMES,
    RAINFALL_BAND_NAMES,
    REGION_TYPE_NAMES,
    TEMPERATURE_BAND_NAMES,
)
from .ruleset_tables import DEFAULT_RULESET

# Adjacency filters understood besides elevation, terrain and feature names
GENERIC_FILTERS = ("Land", "Water", "Elevated")

RESOURCE_TYPES = ("bonus", "strategic", "luxury")


class TerrainInfo(BaseModel):
    """A base terrain and the elevation classes it may sit on."""

    model_config = ConfigDict(frozen=True)

    name: str
    valid_elevations: List[str] = Field(default_factory=list)
    yields: Dict[str, float] = Field(default_factory=dict)


class FeatureInfo(BaseModel):
    """A terrain feature and the conditions under which it appears."""

    model_config = ConfigDict(frozen=True)

    name: str
    occurs_on_base: List[str] = Field(default_factory=list)
    occurs_on_elevation: List[str] = Field(default_factory=list)
    temperature_bands: List[str] = Field(
        default_factory=list, description="Allowed temperature bands; empty means any"
    )
    rainfall_bands: List[str] = Field(
        default_factory=list, description="Allowed rainfall bands; empty means any"
    )
    probability: float = Field(default=0.0, description="Chance on an eligible tile")
    wet_bonus: float = Field(
        default=0.0, description="Added chance per rainfall band above the driest allowed"
    )
    requires_water_neighbor: bool = False
    turns_base_into: Optional[str] = None
    yields: Dict[str, float] = Field(default_factory=dict)


class AdjacencyRule(BaseModel):
    """Between `min_count` and `max_count` surrounding tiles must match `filter`."""

    model_config = ConfigDict(frozen=True)

    filter: str
    min_count: int = 0
    max_count: int = 6


class NeighborConversion(BaseModel):
    """How the tiles around a placed wonder are rewritten."""

    model_config = ConfigDict(frozen=True)

    land_elevation: Optional[str] = None
    land_base: Optional[str] = None
    water_base: Optional[str] = None
    land_to_water: bool = False


class NaturalWonderInfo(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    occurs_on_elevation: List[str] = Field(default_factory=list)
    occurs_on_base: List[str] = Field(default_factory=list)
    adjacency: List[AdjacencyRule] = Field(default_factory=list)
    latitude_range: Tuple[float, float] = (0.0, 1.0)
    group_size: Tuple[int, int] = (1, 1)
    weight: float = 1.0
    is_fresh_water: Optional[bool] = None
    on_largest_landmasses: int = Field(
        default=0, description="Must be on one of the N largest landmasses (0 = any)"
    )
    not_on_largest_landmasses: int = Field(
        default=0, description="Must not be on any of the N largest landmasses"
    )
    turns_into_elevation: Optional[str] = None
    turns_into_base: Optional[str] = None
    neighbors_turn_into: Optional[NeighborConversion] = None
    yields: Dict[str, float] = Field(default_factory=dict)


class ResourceInfo(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    resource_type: str = "bonus"
    occurs_on_elevation: List[str] = Field(default_factory=list)
    occurs_on_base: List[str] = Field(default_factory=list)
    occurs_on_feature: List[str] = Field(default_factory=list)
    requires_feature: bool = False
    latitude_range: Tuple[float, float] = (0.0, 1.0)
    weight: float = 1.0
    quantity: Tuple[int, int] = (1, 1)
    region_weights: Dict[str, float] = Field(
        default_factory=dict, description="Luxury weight per region type name"
    )
    start_bonus_for: List[str] = Field(
        default_factory=list, description="Region types that get this bonus near the start"
    )
    yields: Dict[str, float] = Field(default_factory=dict)


class Ruleset(BaseModel):
    """All definitions a map is generated against."""

    model_config = ConfigDict(frozen=True)

    terrains: Dict[str, TerrainInfo] = Field(default_factory=dict)
    features: Dict[str, FeatureInfo] = Field(default_factory=dict)
    natural_wonders: Dict[str, NaturalWonderInfo] = Field(default_factory=dict)
    resources: Dict[str, ResourceInfo] = Field(default_factory=dict)

    def terrain(self, name: str) -> TerrainInfo:
        try:
            return self.terrains[name]
        except KeyError:
            raise RulesetInconsistency(f"Terrain '{name}' is not defined") from None

    def feature(self, name: str) -> FeatureInfo:
        try:
            info = self.features[name]
        except KeyError:
            raise RulesetInconsistency(f"Feature '{name}' is not defined") from None
        self._check_elevations(name, info.occurs_on_elevation)
        self._check_terrains(name, info.occurs_on_base)
        self._check_bands(name, info.temperature_bands, TEMPERATURE_BAND_NAMES.values())
        self._check_bands(name, info.rainfall_bands, RAINFALL_BAND_NAMES.values())
        if not 0 <= info.probability <= 1 or info.wet_bonus < 0:
            raise RulesetInconsistency(f"Feature '{name}' has an invalid probability")
        if info.turns_base_into is not None:
            self.terrain(info.turns_base_into)
        return info

    def natural_wonder(self, name: str) -> NaturalWonderInfo:
        try:
            info = self.natural_wonders[name]
        except KeyError:
            raise RulesetInconsistency(f"Natural wonder '{name}' is not defined") from None

        self._check_elevations(name, info.occurs_on_elevation)
        self._check_terrains(name, info.occurs_on_base)
        self._check_range(name, "latitude range", info.latitude_range, upper=1.0)
        self._check_range(name, "group size", info.group_size)
        if info.group_size[0] < 1:
            raise RulesetInconsistency(f"Natural wonder '{name}' has an empty group")
        if info.weight < 0:
            raise RulesetInconsistency(f"Natural wonder '{name}' has a negative weight")
        for rule in info.adjacency:
            self._check_range(name, f"'{rule.filter}' adjacency", (rule.min_count, rule.max_count))
            self._check_filter(name, rule.filter)

        if info.turns_into_elevation is not None:
            self._check_elevations(name, [info.turns_into_elevation])
        if info.turns_into_base is not None:
            self.terrain(info.turns_into_base)
        conversion = info.neighbors_turn_into
        if conversion is not None:
            if conversion.land_elevation is not None:
                self._check_elevations(name, [conversion.land_elevation])
            for base in (conversion.land_base, conversion.water_base):
                if base is not None:
                    self.terrain(base)
        return info

    def resource(self, name: str) -> ResourceInfo:
        try:
            info = self.resources[name]
        except KeyError:
            raise RulesetInconsistency(f"Resource '{name}' is not defined") from None

        if info.resource_type not in RESOURCE_TYPES:
            raise RulesetInconsistency(
                f"Resource '{name}' has unknown type '{info.resource_type}'"
            )
        self._check_elevations(name, info.occurs_on_elevation)
        self._check_terrains(name, info.occurs_on_base)
        for feature in info.occurs_on_feature:
            if feature not in self.features:
                raise RulesetInconsistency(
                    f"Resource '{name}' references unknown feature '{feature}'"
                )
        self._check_range(name, "latitude range", info.latitude_range, upper=1.0)
        self._check_range(name, "quantity", info.quantity)
        if info.weight < 0:
            raise RulesetInconsistency(f"Resource '{name}' has a negative weight")
        for region_type in [*info.region_weights, *info.start_bonus_for]:
            if region_type not in REGION_TYPE_NAMES.values():
                raise RulesetInconsistency(
                    f"Resource '{name}' references unknown region type '{region_type}'"
                )
        if any(weight < 0 for weight in info.region_weights.values()):
            raise RulesetInconsistency(f"Resource '{name}' has a negative region weight")
        return info

    def is_valid_combination(self, elevation: str, base: str) -> bool:
        terrain = self.terrains.get(base)
        return terrain is not None and elevation in terrain.valid_elevations

    def _check_elevations(self, owner: str, names: List[str]) -> None:
        known = ELEVATION_NAMES.values()
        for name in names:
            if name not in known:
                raise RulesetInconsistency(f"'{owner}' references unknown elevation '{name}'")

    def _check_terrains(self, owner: str, names: List[str]) -> None:
        for name in names:
            if name not in self.terrains:
                raise RulesetInconsistency(f"'{owner}' references unknown terrain '{name}'")

    @staticmethod
    def _check_bands(owner: str, names: List[str], known) -> None:
        known = set(known)
        for name in names:
            if name not in known:
                raise RulesetInconsistency(f"'{owner}' references unknown band '{name}'")

    @staticmethod
    def _check_range(owner: str, label: str, bounds, upper: Optional[float] = None) -> None:
        low, high = bounds
        if low < 0 or low > high or (upper is not None and high > upper):
            raise RulesetInconsistency(f"'{owner}' has an impossible {label}: {bounds}")

    def _check_filter(self, owner: str, name: str) -> None:
        if (
            name in GENERIC_FILTERS
            or name in ELEVATION_NAMES.values()
            or name in self.terrains
            or name in self.features
        ):
            return
        raise RulesetInconsistency(f"'{owner}' uses unknown adjacency filter '{name}'")


def default_ruleset() -> Ruleset:
    """The built-in ruleset shipped for tests and demos."""
    return Ruleset.model_validate(DEFAULT_RULESET)
