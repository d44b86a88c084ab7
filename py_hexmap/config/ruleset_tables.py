"""
Built-in ruleset table.

Plain data in the shape `Ruleset.model_validate` expects. Loading rulesets
from files is left to callers; this table keeps the generator usable out of
the box and gives the tests a known ruleset.
"""

LAND = ["Flatland", "Hill", "Mountain"]

TERRAINS = {
    "Ocean": {"valid_elevations": ["Water"], "yields": {"food": 1}},
    "Coast": {"valid_elevations": ["Water"], "yields": {"food": 1, "gold": 1}},
    "Lake": {"valid_elevations": ["Water"], "yields": {"food": 2, "gold": 1}},
    "Grassland": {"valid_elevations": LAND, "yields": {"food": 2}},
    "Plain": {"valid_elevations": LAND, "yields": {"food": 1, "production": 1}},
    "Desert": {"valid_elevations": LAND, "yields": {}},
    "Tundra": {"valid_elevations": LAND, "yields": {"food": 1}},
    "Snow": {"valid_elevations": LAND, "yields": {}},
}

FEATURES = {
    "Forest": {
        "occurs_on_base": ["Grassland", "Plain", "Tundra"],
        "occurs_on_elevation": ["Flatland", "Hill"],
        "temperature_bands": ["Cold", "Temperate"],
        "rainfall_bands": ["Moderate", "Wet"],
        "probability": 0.35,
        "wet_bonus": 0.1,
        "yields": {"food": 1, "production": 1},
    },
    "Jungle": {
        "occurs_on_base": ["Grassland", "Plain"],
        "occurs_on_elevation": ["Flatland", "Hill"],
        "temperature_bands": ["Tropical"],
        "rainfall_bands": ["Moderate", "Wet"],
        "probability": 0.4,
        "wet_bonus": 0.15,
        "turns_base_into": "Plain",
        "yields": {"food": 1},
    },
    "Marsh": {
        "occurs_on_base": ["Grassland"],
        "occurs_on_elevation": ["Flatland"],
        "temperature_bands": ["Temperate", "Tropical"],
        "rainfall_bands": ["Wet"],
        "probability": 0.25,
        "requires_water_neighbor": True,
        "yields": {"food": -1},
    },
    "Ice": {
        "occurs_on_base": ["Ocean", "Coast"],
        "occurs_on_elevation": ["Water"],
        "temperature_bands": ["Frozen"],
        "probability": 0.6,
        "yields": {},
    },
    "Oasis": {
        "occurs_on_base": ["Desert"],
        "occurs_on_elevation": ["Flatland"],
        "probability": 0.04,
        "yields": {"food": 3, "gold": 1},
    },
    "Floodplain": {
        "occurs_on_base": ["Desert"],
        "occurs_on_elevation": ["Flatland"],
        "probability": 1.0,
        "yields": {"food": 2},
    },
}

NATURAL_WONDERS = {
    "Mount Fuji": {
        "occurs_on_elevation": ["Flatland"],
        "occurs_on_base": ["Grassland", "Plain"],
        "adjacency": [
            {"filter": "Land", "min_count": 4, "max_count": 6},
            {"filter": "Mountain", "min_count": 0, "max_count": 0},
        ],
        "weight": 10,
        "turns_into_elevation": "Mountain",
        "yields": {"culture": 3, "faith": 2},
    },
    "Krakatoa": {
        "occurs_on_elevation": ["Water"],
        "occurs_on_base": ["Coast"],
        "adjacency": [
            {"filter": "Land", "min_count": 0, "max_count": 0},
            {"filter": "Ice", "min_count": 0, "max_count": 0},
        ],
        "latitude_range": [0.0, 0.5],
        "weight": 5,
        "turns_into_elevation": "Mountain",
        "turns_into_base": "Grassland",
        "neighbors_turn_into": {"water_base": "Coast"},
        "yields": {"science": 5},
    },
    "Great Barrier Reef": {
        "occurs_on_elevation": ["Water"],
        "occurs_on_base": ["Coast", "Ocean"],
        "group_size": [2, 2],
        "adjacency": [
            {"filter": "Water", "min_count": 8, "max_count": 8},
            {"filter": "Coast", "min_count": 4, "max_count": 8},
            {"filter": "Lake", "min_count": 0, "max_count": 0},
            {"filter": "Ice", "min_count": 0, "max_count": 0},
        ],
        "latitude_range": [0.0, 0.6],
        "weight": 5,
        "turns_into_base": "Coast",
        "neighbors_turn_into": {"water_base": "Coast"},
        "yields": {"food": 2, "production": 1, "science": 2},
    },
    "Rock of Gibraltar": {
        "occurs_on_elevation": ["Water"],
        "occurs_on_base": ["Coast"],
        "adjacency": [
            {"filter": "Land", "min_count": 1, "max_count": 1},
            {"filter": "Water", "min_count": 5, "max_count": 5},
        ],
        "weight": 5,
        "turns_into_elevation": "Flatland",
        "turns_into_base": "Grassland",
        "neighbors_turn_into": {"land_elevation": "Mountain", "water_base": "Coast"},
        "yields": {"culture": 5},
    },
    "Uluru": {
        "occurs_on_elevation": ["Flatland"],
        "occurs_on_base": ["Plain", "Desert"],
        "adjacency": [{"filter": "Water", "min_count": 0, "max_count": 0}],
        "latitude_range": [0.0, 0.6],
        "weight": 8,
        "turns_into_elevation": "Mountain",
        "yields": {"culture": 2, "faith": 6},
    },
    "Old Faithful": {
        "occurs_on_elevation": ["Flatland", "Hill"],
        "occurs_on_base": ["Plain", "Grassland", "Tundra"],
        "adjacency": [
            {"filter": "Land", "min_count": 6, "max_count": 6},
            {"filter": "Mountain", "min_count": 0, "max_count": 3},
        ],
        "weight": 8,
        "turns_into_elevation": "Mountain",
        "yields": {"science": 4},
    },
    "Cerro de Potosi": {
        "occurs_on_elevation": ["Flatland", "Hill"],
        "occurs_on_base": ["Plain", "Desert"],
        "adjacency": [{"filter": "Elevated", "min_count": 1, "max_count": 6}],
        "weight": 8,
        "turns_into_elevation": "Mountain",
        "yields": {"gold": 10},
    },
    "Mount Kailash": {
        "occurs_on_elevation": ["Flatland", "Hill"],
        "occurs_on_base": ["Plain", "Grassland"],
        "adjacency": [{"filter": "Mountain", "min_count": 1, "max_count": 3}],
        "latitude_range": [0.15, 0.7],
        "weight": 6,
        "turns_into_elevation": "Mountain",
        "yields": {"faith": 6, "happiness": 2},
    },
    "Fountain of Youth": {
        "occurs_on_elevation": ["Flatland"],
        "occurs_on_base": ["Plain", "Grassland"],
        "adjacency": [{"filter": "Land", "min_count": 6, "max_count": 6}],
        "is_fresh_water": True,
        "weight": 4,
        "yields": {"science": 2, "happiness": 10},
    },
    "Grand Mesa": {
        "occurs_on_elevation": ["Flatland", "Hill"],
        "occurs_on_base": ["Plain", "Desert"],
        "group_size": [2, 3],
        "adjacency": [{"filter": "Water", "min_count": 0, "max_count": 0}],
        "weight": 6,
        "turns_into_elevation": "Mountain",
        "yields": {"production": 2, "gold": 3},
    },
    "El Dorado": {
        "occurs_on_elevation": ["Flatland"],
        "occurs_on_base": ["Plain", "Grassland"],
        "adjacency": [{"filter": "Jungle", "min_count": 1, "max_count": 6}],
        "not_on_largest_landmasses": 1,
        "weight": 4,
        "yields": {"culture": 5},
    },
    "Lake Victoria": {
        "occurs_on_elevation": ["Flatland"],
        "occurs_on_base": ["Grassland", "Plain"],
        "adjacency": [{"filter": "Land", "min_count": 6, "max_count": 6}],
        "on_largest_landmasses": 2,
        "weight": 4,
        "turns_into_elevation": "Water",
        "turns_into_base": "Lake",
        "yields": {"food": 6},
    },
}

FLAT_OR_HILL = ["Flatland", "Hill"]

RESOURCES = {
    # Bonus
    "Wheat": {
        "resource_type": "bonus",
        "start_bonus_for": ["Desert", "Plain"],
        "occurs_on_elevation": ["Flatland"],
        "occurs_on_base": ["Plain", "Desert"],
        "occurs_on_feature": ["Floodplain"],
        "weight": 10,
        "yields": {"food": 1},
    },
    "Cattle": {
        "resource_type": "bonus",
        "start_bonus_for": ["Grassland", "Hybrid", "Undefined"],
        "occurs_on_elevation": ["Flatland"],
        "occurs_on_base": ["Grassland"],
        "weight": 10,
        "yields": {"food": 1},
    },
    "Sheep": {
        "resource_type": "bonus",
        "start_bonus_for": ["Hill"],
        "occurs_on_elevation": ["Hill"],
        "occurs_on_base": ["Grassland", "Plain", "Desert", "Tundra"],
        "weight": 10,
        "yields": {"food": 1},
    },
    "Deer": {
        "resource_type": "bonus",
        "start_bonus_for": ["Tundra", "Forest"],
        "occurs_on_elevation": FLAT_OR_HILL,
        "occurs_on_base": ["Tundra", "Grassland", "Plain"],
        "occurs_on_feature": ["Forest"],
        "latitude_range": [0.3, 1.0],
        "weight": 8,
        "yields": {"food": 1},
    },
    "Bananas": {
        "resource_type": "bonus",
        "start_bonus_for": ["Jungle"],
        "occurs_on_elevation": ["Flatland"],
        "occurs_on_base": ["Plain", "Grassland"],
        "occurs_on_feature": ["Jungle"],
        "requires_feature": True,
        "weight": 8,
        "yields": {"food": 1},
    },
    "Fish": {
        "resource_type": "bonus",
        "occurs_on_elevation": ["Water"],
        "occurs_on_base": ["Coast", "Lake"],
        "weight": 12,
        "yields": {"food": 2},
    },
    "Stone": {
        "resource_type": "bonus",
        "occurs_on_elevation": ["Flatland"],
        "occurs_on_base": ["Grassland", "Plain", "Desert", "Tundra"],
        "weight": 6,
        "yields": {"production": 1},
    },
    # Strategic
    "Horses": {
        "resource_type": "strategic",
        "occurs_on_elevation": ["Flatland"],
        "occurs_on_base": ["Grassland", "Plain", "Tundra"],
        "quantity": [2, 4],
        "weight": 8,
        "yields": {"production": 1},
    },
    "Iron": {
        "resource_type": "strategic",
        "occurs_on_elevation": FLAT_OR_HILL,
        "occurs_on_base": ["Grassland", "Plain", "Desert", "Tundra", "Snow"],
        "occurs_on_feature": ["Forest", "Jungle", "Marsh"],
        "quantity": [2, 6],
        "weight": 8,
        "yields": {"production": 1},
    },
    "Coal": {
        "resource_type": "strategic",
        "occurs_on_elevation": ["Hill"],
        "occurs_on_base": ["Grassland", "Plain"],
        "occurs_on_feature": ["Forest", "Jungle"],
        "quantity": [2, 6],
        "weight": 6,
        "yields": {"production": 1},
    },
    "Oil": {
        "resource_type": "strategic",
        "occurs_on_elevation": ["Flatland"],
        "occurs_on_base": ["Desert", "Tundra", "Snow", "Grassland"],
        "occurs_on_feature": ["Marsh", "Jungle"],
        "quantity": [2, 6],
        "weight": 5,
        "yields": {"production": 1},
    },
    "Aluminum": {
        "resource_type": "strategic",
        "occurs_on_elevation": FLAT_OR_HILL,
        "occurs_on_base": ["Plain", "Desert", "Tundra"],
        "quantity": [2, 6],
        "weight": 5,
        "yields": {"science": 1},
    },
    "Uranium": {
        "resource_type": "strategic",
        "occurs_on_elevation": FLAT_OR_HILL,
        "occurs_on_base": ["Tundra", "Desert", "Snow", "Plain"],
        "occurs_on_feature": ["Forest", "Marsh", "Jungle"],
        "quantity": [2, 4],
        "weight": 3,
        "yields": {"energy": 1},
    },
    # Luxury
    "Gold": {
        "resource_type": "luxury",
        "region_weights": {"Desert": 25, "Hill": 30, "Plain": 5, "Hybrid": 5},
        "occurs_on_elevation": FLAT_OR_HILL,
        "occurs_on_base": ["Desert", "Plain", "Grassland"],
        "weight": 4,
        "yields": {"gold": 2},
    },
    "Silver": {
        "resource_type": "luxury",
        "region_weights": {"Tundra": 25, "Hill": 30, "Grassland": 20, "Hybrid": 10},
        "occurs_on_elevation": FLAT_OR_HILL,
        "occurs_on_base": ["Tundra", "Desert"],
        "occurs_on_feature": ["Forest"],
        "weight": 4,
        "yields": {"gold": 2},
    },
    "Gems": {
        "resource_type": "luxury",
        "region_weights": {"Tundra": 5, "Jungle": 20, "Hill": 15, "Grassland": 5, "Hybrid": 5},
        "occurs_on_elevation": FLAT_OR_HILL,
        "occurs_on_base": ["Grassland", "Plain", "Desert", "Tundra"],
        "occurs_on_feature": ["Jungle"],
        "weight": 4,
        "yields": {"gold": 3},
    },
    "Spices": {
        "resource_type": "luxury",
        "region_weights": {"Jungle": 30, "Forest": 10, "Plain": 5, "Grassland": 5, "Hybrid": 5},
        "occurs_on_elevation": ["Flatland"],
        "occurs_on_base": ["Plain", "Grassland"],
        "occurs_on_feature": ["Jungle", "Forest"],
        "requires_feature": True,
        "latitude_range": [0.0, 0.5],
        "weight": 4,
        "yields": {"gold": 2},
    },
    "Furs": {
        "resource_type": "luxury",
        "region_weights": {"Tundra": 40, "Forest": 10},
        "occurs_on_elevation": FLAT_OR_HILL,
        "occurs_on_base": ["Tundra"],
        "occurs_on_feature": ["Forest"],
        "latitude_range": [0.5, 1.0],
        "weight": 4,
        "yields": {"gold": 2},
    },
    "Whales": {
        "resource_type": "luxury",
        "region_weights": {
            "Tundra": 35, "Forest": 10, "Hill": 10,
            "Plain": 5, "Grassland": 10, "Hybrid": 20,
        },
        "occurs_on_elevation": ["Water"],
        "occurs_on_base": ["Coast"],
        "weight": 4,
        "yields": {"food": 1, "gold": 1},
    },
    "Pearls": {
        "resource_type": "luxury",
        "region_weights": {
            "Jungle": 20, "Forest": 10, "Desert": 5, "Hill": 15,
            "Plain": 5, "Grassland": 10, "Hybrid": 20,
        },
        "occurs_on_elevation": ["Water"],
        "occurs_on_base": ["Coast"],
        "latitude_range": [0.0, 0.4],
        "weight": 3,
        "yields": {"gold": 2},
    },
}


def _named(table):
    return {name: dict(entry, name=name) for name, entry in table.items()}


DEFAULT_RULESET = {
    "terrains": _named(TERRAINS),
    "features": _named(FEATURES),
    "natural_wonders": _named(NATURAL_WONDERS),
    "resources": _named(RESOURCES),
}
