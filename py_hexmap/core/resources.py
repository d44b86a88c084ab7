"""
Resource placement.

Resources are placed per start region. Every region gets a quota of
round(land tiles x resource density), filled in typed passes:

1. Luxury: the region's own luxury, plus luxuries left to chance
2. Strategic
3. Bonus, up to the rest of the quota

Before placement each region is given a luxury of its own (luxury roles).
A few luxuries are kept back for city states, some are left off the map and
the rest may turn up anywhere. Land no region reaches is pooled per
landmass. Coastal water belongs to the pool of the land it touches, so sea
resources count toward that pool.
"""

import math
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple

import numpy as np
import structlog
from pydantic import BaseModel, Field

from ..config.ruleset import ResourceInfo, Ruleset
from .errors import PlacementShortfall
from .random_stream import RandomStream
from .tile_map import (
    ELEVATION_NAMES,
    FEATURE_NAMES,
    NO_FEATURE,
    REGION_TYPE_NAMES,
    TERRAIN_NAMES,
    BaseTerrain,
    Elevation,
    RegionType,
    TileMap,
)

logger = structlog.get_logger()

BONUS = "bonus"
STRATEGIC = "strategic"
LUXURY = "luxury"

PoolKey = Tuple[str, int]


class ResourceOptions(BaseModel):
    """Resource placement options."""

    luxury_share: float = Field(default=0.2, description="Share of a quota drawn from luxuries")
    strategic_share: float = Field(
        default=0.3, description="Share of a quota drawn from strategic resources"
    )
    region_luxury_bias: float = Field(
        default=3.0, description="Weight factor for a region's own luxury"
    )
    max_regions_per_luxury: int = Field(
        default=3, description="Upper bound on regions sharing one luxury"
    )
    max_region_luxuries: int = Field(
        default=8, description="Distinct luxuries handed out to regions"
    )
    city_state_luxuries: int = Field(
        default=3, description="Luxuries reserved for city states"
    )
    disabled_luxury_share: float = Field(
        default=0.0, description="Share of the unassigned luxuries left off the map"
    )


@dataclass
class LuxuryRoles:
    """Who each luxury resource belongs to."""

    regions: Dict[int, str] = field(default_factory=dict)
    city_states: List[str] = field(default_factory=list)
    random: List[str] = field(default_factory=list)
    disabled: List[str] = field(default_factory=list)

    def region_count(self, name: str) -> int:
        return sum(1 for luxury in self.regions.values() if luxury == name)


@dataclass
class ResourcePool:
    """Land and candidate tiles that share one quota."""

    key: PoolKey
    land: int = 0
    candidates: Dict[str, List[int]] = field(default_factory=lambda: defaultdict(list))

    @property
    def name(self) -> str:
        return f"{self.key[0]} {self.key[1]}"


def resource_fits(tile_map: TileMap, resource: ResourceInfo, index: int) -> bool:
    """Static terrain match; occupancy is checked separately."""
    elevation = ELEVATION_NAMES[Elevation(int(tile_map.elevation[index]))]
    if elevation not in resource.occurs_on_elevation:
        return False
    base = TERRAIN_NAMES[BaseTerrain(int(tile_map.base_terrain[index]))]
    if base not in resource.occurs_on_base:
        return False

    feature = int(tile_map.feature[index])
    if feature == NO_FEATURE:
        if resource.requires_feature:
            return False
    elif FEATURE_NAMES[feature] not in resource.occurs_on_feature:
        return False

    low, high = resource.latitude_range
    return low <= tile_map.grid.latitude(index) <= high


def resource_potential(tile_map: TileMap, ruleset: Ruleset) -> np.ndarray:
    """Tiles where at least one ruleset resource could be placed."""
    resources = [ruleset.resource(name) for name in ruleset.resources]
    potential = np.zeros(tile_map.size, dtype=bool)
    for index in range(tile_map.size):
        potential[index] = any(resource_fits(tile_map, r, index) for r in resources)
    return potential


class ResourcePlacer:
    """Distributes ruleset resources over the regions of a map."""

    def __init__(
        self,
        tile_map: TileMap,
        ruleset: Ruleset,
        random: RandomStream,
        options: Optional[ResourceOptions] = None,
    ):
        self.tile_map = tile_map
        self.grid = tile_map.grid
        self.random = random
        self.options = options or ResourceOptions()
        self.resources: List[ResourceInfo] = [
            ruleset.resource(name) for name in ruleset.resources
        ]

    def of_type(self, resource_type: str) -> List[ResourceInfo]:
        return [r for r in self.resources if r.resource_type == resource_type]

    def owner_landmass(self, index: int) -> Optional[int]:
        """Landmass a tile counts toward: its own, or the first one it touches."""
        tile_map = self.tile_map
        if tile_map.is_land(index):
            return int(tile_map.area_id[index])
        for neighbor in self.grid.neighbors(index):
            if tile_map.is_land(neighbor):
                return int(tile_map.area_id[neighbor])
        return None

    def owner(self, index: int) -> Optional[PoolKey]:
        """
        Pool a tile counts toward.

        Land inside a region belongs to it. Land outside every region (a
        mountain, say) joins a neighboring region, else its landmass pool.
        Water follows the first land tile it touches.
        """
        tile_map = self.tile_map
        if tile_map.is_land(index):
            return self._land_owner(index)
        for neighbor in self.grid.neighbors(index):
            if tile_map.is_land(neighbor):
                return self._land_owner(neighbor)
        return None

    def _land_owner(self, index: int) -> PoolKey:
        region_id = self.tile_map.region_id
        if region_id[index] >= 0:
            return ("region", int(region_id[index]))
        for neighbor in self.grid.neighbors(index):
            if region_id[neighbor] >= 0:
                return ("region", int(region_id[neighbor]))
        return ("landmass", int(self.tile_map.area_id[index]))

    def matches(self, resource: ResourceInfo, index: int) -> bool:
        return resource_fits(self.tile_map, resource, index)

    def is_free(self, resource: ResourceInfo, index: int) -> bool:
        tile_map = self.tile_map
        if tile_map.resource[index] is not None or tile_map.natural_wonder[index] is not None:
            return False
        return all(
            tile_map.resource[n] != resource.name for n in self.grid.neighbors(index)
        )

    def pools(self) -> Dict[PoolKey, ResourcePool]:
        pools: Dict[PoolKey, ResourcePool] = {}
        for index in range(self.grid.size):
            key = self.owner(index)
            if key is None:
                continue
            pool = pools.get(key)
            if pool is None:
                pool = pools[key] = ResourcePool(key)
            if self.tile_map.is_land(index):
                pool.land += 1
            for resource in self.resources:
                if self.matches(resource, index):
                    pool.candidates[resource.name].append(index)
        return pools

    def assign_luxury_roles(
        self, pools: Dict[PoolKey, ResourcePool], city_states: int = 0
    ) -> LuxuryRoles:
        """
        Give every region a luxury, reserve some for city states and split
        the rest between random placement and not placed at all.

        A region only takes a luxury it has a tile for. Weights come from the
        luxury's table for the region type and shrink with each region that
        already holds it. When no luxury is eligible under the sharing caps
        the caps are dropped. A region with no fitting luxury gets none.
        """
        options = self.options
        luxuries = self.of_type(LUXURY)
        roles = LuxuryRoles()
        regions = sorted(
            self.tile_map.regions,
            key=lambda r: (r.region_type == RegionType.UNDEFINED, r.region_type, r.id),
        )

        if luxuries and regions:
            per_luxury = math.ceil(
                len(regions) / min(options.max_region_luxuries, len(luxuries))
            )
            per_luxury = max(1, min(options.max_regions_per_luxury, per_luxury))

            for region in regions:
                pool = pools.get(("region", region.id))
                fitting = [
                    r for r in luxuries if pool is not None and pool.candidates.get(r.name)
                ]
                pick = self._pick_region_luxury(region.region_type, fitting, roles, per_luxury)
                if pick is None:
                    logger.debug("No luxury fits region", region=region.id)
                    continue
                roles.regions[region.id] = pick.name
                region.luxury = pick.name

        assigned = set(roles.regions.values())
        remaining = [r for r in luxuries if r.name not in assigned]
        if city_states > 0 and remaining:
            reserved = self.random.weighted_sample(
                remaining, [r.weight for r in remaining], options.city_state_luxuries
            )
            roles.city_states = [r.name for r in reserved]

        remaining = [r.name for r in remaining if r.name not in roles.city_states]
        disabled = int(len(remaining) * options.disabled_luxury_share)
        if disabled:
            self.random.shuffle(remaining)
        roles.disabled = remaining[:disabled]
        roles.random = remaining[disabled:]

        self.tile_map.luxury_roles = roles
        logger.info(
            "Luxury roles assigned",
            regions=roles.regions,
            city_states=roles.city_states,
            random=roles.random,
            disabled=roles.disabled,
        )
        return roles

    def _pick_region_luxury(
        self,
        region_type: RegionType,
        fitting: Sequence[ResourceInfo],
        roles: LuxuryRoles,
        per_luxury: int,
    ) -> Optional[ResourceInfo]:
        type_name = REGION_TYPE_NAMES[region_type]
        assigned = set(roles.regions.values())

        def eligible(resource):
            if roles.region_count(resource.name) >= per_luxury:
                return False
            return (
                len(assigned) < self.options.max_region_luxuries
                or resource.name in assigned
            )

        capped = [r for r in fitting if eligible(r)]
        for candidates, weight_of in (
            (capped, lambda r: r.region_weights.get(type_name, 0.0)),
            (capped, lambda r: r.weight),
            (fitting, lambda r: r.weight),
        ):
            weights = [weight_of(r) / (1 + roles.region_count(r.name)) for r in candidates]
            if sum(weights) > 0:
                return candidates[self.random.weighted_index(weights)]
        return None

    def place(self, density: float, city_states: int = 0) -> int:
        """Fill every pool quota as far as candidates allow."""
        logger.info("Placing resources", density=density)
        options = self.options
        pools = self.pools()
        roles = self.assign_luxury_roles(pools, city_states)

        strategic = [r.name for r in self.of_type(STRATEGIC)]
        bonus = [r.name for r in self.of_type(BONUS)]

        total = 0
        for key in sorted(pools):
            pool = pools[key]
            own = roles.regions.get(key[1]) if key[0] == "region" else None
            luxuries = ([own] if own else []) + roles.random
            allowed = luxuries + strategic + bonus

            quota = int(round(pool.land * density))
            placed = self._fill(pool, luxuries, int(round(quota * options.luxury_share)), own)
            placed += self._fill(
                pool, strategic, min(int(round(quota * options.strategic_share)), quota - placed)
            )
            placed += self._fill(pool, bonus, quota - placed)
            if placed < quota:
                placed += self._fill(pool, allowed, quota - placed, own)
            total += placed

            if placed < quota:
                logger.debug("Resource quota not met", pool=pool.name, quota=quota, placed=placed)
                self.tile_map.report.shortfalls.append(
                    PlacementShortfall(
                        kind="resource",
                        name=pool.name,
                        requested=quota,
                        placed=placed,
                        detail="candidates exhausted",
                    )
                )

        logger.info("Resources placed", resources=total)
        return total

    def _fill(
        self,
        pool: ResourcePool,
        names: Sequence[str],
        quota: int,
        favored: Optional[str] = None,
    ) -> int:
        placed = 0
        while placed < quota:
            available = []
            weights = []
            for resource in self.resources:
                if resource.name not in names or resource.weight <= 0:
                    continue
                tiles = [
                    i for i in pool.candidates.get(resource.name, ()) if self.is_free(resource, i)
                ]
                pool.candidates[resource.name] = tiles
                if tiles:
                    available.append(resource)
                    bias = self.options.region_luxury_bias if resource.name == favored else 1.0
                    weights.append(resource.weight * bias)
            if not available:
                break

            resource = available[self.random.weighted_index(weights)]
            self._put(resource, self.random.choice(pool.candidates[resource.name]))
            placed += 1

        return placed

    def _put(self, resource: ResourceInfo, index: int) -> None:
        low, high = resource.quantity
        self.tile_map.resource[index] = resource.name
        self.tile_map.resource_quantity[index] = self.random.randint(low, high)

    def place_near(self, resource: ResourceInfo, center: int, radius: int) -> Optional[int]:
        """Put `resource` on a random fitting free tile within `radius` of `center`."""
        tiles = [
            i
            for i in self.grid.tiles_within(center, radius)
            if i != center and self.matches(resource, i) and self.is_free(resource, i)
        ]
        if not tiles:
            return None
        index = self.random.choice(tiles)
        self._put(resource, index)
        return index


def place_resources(
    tile_map: TileMap,
    ruleset: Ruleset,
    random: RandomStream,
    density: float,
    city_states: int = 0,
    options: Optional[ResourceOptions] = None,
) -> int:
    return ResourcePlacer(tile_map, ruleset, random, options).place(density, city_states)
