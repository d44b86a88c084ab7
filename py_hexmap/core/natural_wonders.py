"""
Natural wonder placement.

Process:
1. Pick wonder types by weight, without replacement, up to the target count
2. Find every site meeting a wonder's terrain, latitude, fresh water,
   landmass rank and adjacency rules (group wonders check a whole cluster)
3. Score sites by spread from earlier wonders plus jitter; take the best
4. Apply the wonder's tile and neighbor conversions, then fix shores and
   recompute areas
"""

from typing import Dict, List, Optional, Sequence, Set

import structlog
from pydantic import BaseModel, ConfigDict, Field

from ..config.ruleset import NaturalWonderInfo, Ruleset
from .errors import PlacementShortfall
from .features import AreaMarkup
from .random_stream import RandomStream
from .tile_map import (
    ELEVATION_BY_NAME,
    ELEVATION_NAMES,
    FEATURE_NAMES,
    NO_FEATURE,
    TERRAIN_BY_NAME,
    TERRAIN_NAMES,
    BaseTerrain,
    Elevation,
    TileMap,
)

logger = structlog.get_logger()

SITE_JITTER = 2.0


class NaturalWonderSite(BaseModel):
    """A placed natural wonder."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(description="Wonder name from the ruleset")
    tiles: List[int] = Field(description="Tiles the wonder occupies, anchor first")
    adjacency_counts: Dict[str, int] = Field(
        default_factory=dict,
        description="Surrounding tiles matching each adjacency filter at placement time",
    )

    @property
    def anchor(self) -> int:
        return self.tiles[0]


def matches_filter(tile_map: TileMap, index: int, name: str) -> bool:
    """True if the tile matches an adjacency filter name."""
    elevation = Elevation(int(tile_map.elevation[index]))
    if name == "Land":
        return elevation != Elevation.WATER
    if name == "Water":
        return elevation == Elevation.WATER
    if name == "Elevated":
        return elevation in (Elevation.HILL, Elevation.MOUNTAIN)
    if name == ELEVATION_NAMES[elevation]:
        return True
    if name == TERRAIN_NAMES[BaseTerrain(int(tile_map.base_terrain[index]))]:
        return True
    feature = int(tile_map.feature[index])
    return feature != NO_FEATURE and name == FEATURE_NAMES[feature]


class NaturalWonderPlacer:
    """Places natural wonders on a classified map."""

    def __init__(self, tile_map: TileMap, ruleset: Ruleset, random: RandomStream):
        self.tile_map = tile_map
        self.grid = tile_map.grid
        self.ruleset = ruleset
        self.random = random
        self.sites: List[NaturalWonderSite] = []

    def place(self, target: int) -> List[NaturalWonderSite]:
        """Place up to `target` wonders; wonders without a site are reported."""
        logger.info("Placing natural wonders", target=target)

        names = list(self.ruleset.natural_wonders)
        wonders = [self.ruleset.natural_wonder(name) for name in names]
        picked = self.random.weighted_sample(
            wonders, [wonder.weight for wonder in wonders], target
        )

        for wonder in picked:
            low, high = wonder.group_size
            size = self.random.randint(low, high)
            candidates = self.find_candidates(wonder, size)
            if not candidates:
                logger.warning("No site for natural wonder", wonder=wonder.name)
                self.tile_map.report.shortfalls.append(
                    PlacementShortfall(
                        kind="natural_wonder",
                        name=wonder.name,
                        requested=1,
                        placed=0,
                        detail="no candidate site",
                    )
                )
                continue

            cluster = self._best_site(candidates)
            self._apply(wonder, cluster)

        if self.sites:
            # Conversions can join or split land and water bodies
            AreaMarkup(self.tile_map).markup()

        self.tile_map.natural_wonder_sites = self.sites
        logger.info("Natural wonders placed", placed=[site.name for site in self.sites])
        return self.sites

    def cluster_at(self, anchor: int, size: int) -> Optional[List[int]]:
        """Anchor plus neighbors on consecutive edges, so the cluster is contiguous."""
        cluster = [anchor]
        for edge in range(size - 1):
            neighbor = self.grid.neighbor(anchor, edge)
            if neighbor is None or neighbor in cluster:
                return None
            cluster.append(neighbor)
        return cluster

    def surrounding(self, cluster: Sequence[int]) -> List[int]:
        """Tiles touching the cluster, excluding the cluster itself."""
        members = set(cluster)
        ring: List[int] = []
        seen: Set[int] = set()
        for index in cluster:
            for neighbor in self.grid.neighbors(index):
                if neighbor not in members and neighbor not in seen:
                    seen.add(neighbor)
                    ring.append(neighbor)
        return ring

    def adjacency_counts(self, wonder: NaturalWonderInfo, ring: Sequence[int]) -> Dict[str, int]:
        return {
            rule.filter: sum(1 for n in ring if matches_filter(self.tile_map, n, rule.filter))
            for rule in wonder.adjacency
        }

    def find_candidates(self, wonder: NaturalWonderInfo, size: int) -> List[List[int]]:
        """Every cluster of `size` tiles where the wonder may be placed."""
        ranked = [area.id for area in AreaMarkup(self.tile_map).landmasses_by_size()]
        candidates = []
        for anchor in range(self.grid.size):
            cluster = self.cluster_at(anchor, size)
            if cluster is None:
                continue
            if not all(self._tile_allowed(wonder, index, ranked) for index in cluster):
                continue

            ring = self.surrounding(cluster)
            if any(self.tile_map.natural_wonder[n] is not None for n in ring):
                continue

            counts = self.adjacency_counts(wonder, ring)
            if not all(
                rule.min_count <= counts[rule.filter] <= rule.max_count
                for rule in wonder.adjacency
            ):
                continue
            if self._moves_river(wonder, cluster, ring):
                continue
            candidates.append(cluster)
        return candidates

    def _tile_allowed(self, wonder: NaturalWonderInfo, index: int, ranked: List[int]) -> bool:
        tile_map = self.tile_map
        if tile_map.natural_wonder[index] is not None:
            return False
        if ELEVATION_NAMES[Elevation(int(tile_map.elevation[index]))] not in wonder.occurs_on_elevation:
            return False
        if TERRAIN_NAMES[BaseTerrain(int(tile_map.base_terrain[index]))] not in wonder.occurs_on_base:
            return False

        low, high = wonder.latitude_range
        if not low <= self.grid.latitude(index) <= high:
            return False
        if wonder.is_fresh_water is not None:
            if tile_map.is_fresh_water(index) != wonder.is_fresh_water:
                return False

        area = int(tile_map.area_id[index])
        if wonder.on_largest_landmasses and area not in ranked[: wonder.on_largest_landmasses]:
            return False
        if wonder.not_on_largest_landmasses and area in ranked[: wonder.not_on_largest_landmasses]:
            return False
        return True

    def _moves_river(self, wonder: NaturalWonderInfo, cluster: List[int], ring: List[int]) -> bool:
        """True if the conversion would change the elevation of a river tile."""
        tile_map = self.tile_map
        if wonder.turns_into_elevation is not None:
            target = ELEVATION_BY_NAME[wonder.turns_into_elevation]
            for index in cluster:
                if tile_map.has_river(index) and tile_map.elevation[index] != target:
                    return True

        conversion = wonder.neighbors_turn_into
        if conversion is None:
            return False
        for index in ring:
            if not tile_map.has_river(index) or not tile_map.is_land(index):
                continue
            if conversion.land_to_water:
                return True
            if (
                conversion.land_elevation is not None
                and tile_map.elevation[index] != ELEVATION_BY_NAME[conversion.land_elevation]
            ):
                return True
        return False

    def _best_site(self, candidates: List[List[int]]) -> List[int]:
        """Candidate furthest from earlier wonders, with random jitter."""
        placed = [site.anchor for site in self.sites]
        spread_cap = max(self.grid.height // 2, 1)

        best, best_score = candidates[0], float("-inf")
        for cluster in candidates:
            if placed:
                spread = min(
                    min(self.grid.distance(cluster[0], other) for other in placed),
                    spread_cap,
                )
            else:
                spread = 0
            score = spread + self.random.uniform(0.0, SITE_JITTER)
            if score > best_score:
                best, best_score = cluster, score
        return best

    def _apply(self, wonder: NaturalWonderInfo, cluster: List[int]) -> None:
        tile_map = self.tile_map
        ring = self.surrounding(cluster)
        counts = self.adjacency_counts(wonder, ring)

        for index in cluster:
            elevation = Elevation(int(tile_map.elevation[index]))
            base = BaseTerrain(int(tile_map.base_terrain[index]))
            if wonder.turns_into_elevation is not None:
                elevation = ELEVATION_BY_NAME[wonder.turns_into_elevation]
            if wonder.turns_into_base is not None:
                base = TERRAIN_BY_NAME[wonder.turns_into_base]
            tile_map.set_terrain(index, elevation, base)
            tile_map.feature[index] = NO_FEATURE
            tile_map.natural_wonder[index] = wonder.name

        conversion = wonder.neighbors_turn_into
        if conversion is not None:
            for index in ring:
                if tile_map.is_water(index):
                    if conversion.water_base is not None and not tile_map.is_lake(index):
                        tile_map.base_terrain[index] = TERRAIN_BY_NAME[conversion.water_base]
                    continue
                if conversion.land_to_water:
                    tile_map.set_terrain(
                        index,
                        Elevation.WATER,
                        TERRAIN_BY_NAME[conversion.water_base or "Coast"],
                    )
                    tile_map.feature[index] = NO_FEATURE
                    continue
                if conversion.land_elevation is not None:
                    tile_map.elevation[index] = ELEVATION_BY_NAME[conversion.land_elevation]
                    tile_map.feature[index] = NO_FEATURE
                if conversion.land_base is not None:
                    tile_map.base_terrain[index] = TERRAIN_BY_NAME[conversion.land_base]

        # Open water next to a land wonder is shallow
        for index in cluster:
            if tile_map.is_water(index):
                continue
            for neighbor in self.grid.neighbors(index):
                if tile_map.is_water(neighbor) and not tile_map.is_lake(neighbor):
                    tile_map.base_terrain[neighbor] = BaseTerrain.COAST

        self.sites.append(
            NaturalWonderSite(name=wonder.name, tiles=list(cluster), adjacency_counts=counts)
        )
        logger.debug("Natural wonder placed", wonder=wonder.name, tiles=cluster)


def place_natural_wonders(
    tile_map: TileMap, ruleset: Ruleset, random: RandomStream, target: int
) -> List[NaturalWonderSite]:
    return NaturalWonderPlacer(tile_map, ruleset, random).place(target)
