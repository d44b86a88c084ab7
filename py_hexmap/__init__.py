"""
py-hexmap: procedural hex-grid world generation.

The public entry point is :func:`generate_map`, which turns a
:class:`MapParameters` instance and an optional :class:`Ruleset` into a
finished :class:`TileMap`.
"""

from .config.map_parameters import MapParameters
from .config.ruleset import Ruleset, default_ruleset
from .core.errors import (
    ConfigurationError,
    MapGenerationError,
    RulesetInconsistency,
)
from .core.generator import GENERATORS, MapGenerator, generate_map
from .core.tile_map import TileMap

__all__ = [
    "GENERATORS",
    "ConfigurationError",
    "MapGenerationError",
    "MapGenerator",
    "MapParameters",
    "Ruleset",
    "RulesetInconsistency",
    "TileMap",
    "default_ruleset",
    "generate_map",
]
