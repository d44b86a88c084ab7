"""
Configuration for map generation: parameters, ruleset tables and settings.
"""

from .map_parameters import (
    MapParameters,
    Rainfall,
    RegionDivideMethod,
    ResourceSetting,
    SeaLevel,
    Temperature,
    WorldAge,
    WorldSize,
)
from .ruleset import Ruleset, default_ruleset
from .settings import Settings, configure_logging, settings

__all__ = [
    "MapParameters",
    "Rainfall",
    "RegionDivideMethod",
    "ResourceSetting",
    "Ruleset",
    "SeaLevel",
    "Settings",
    "Temperature",
    "WorldAge",
    "WorldSize",
    "configure_logging",
    "default_ruleset",
    "settings",
]
