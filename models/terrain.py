"""Terrain tiles and map generation settings for Grid War Server."""

from enum import Enum

from pydantic import BaseModel

import config


class TerrainType(str, Enum):
    """Terrain identities a map can contain."""
    PLAINS = "plains"
    STREET = "street"
    FOREST = "forest"
    WALL = "wall"
    WATER = "water"
    MOUNTAIN = "mountain"           # Elevated and impassable


class TerrainTile(BaseModel):
    """Static properties of one terrain type."""
    type: TerrainType
    movement_cost: float            # Cost to enter; above IMPASSABLE_THRESHOLD blocks
    height: int = 0                 # Water negative, walls/mountains elevated
    defense_bonus: int = 0          # % added to the occupant's defence
    cover: int = 0                  # % ranged mitigation (informational)
    blocks_line_of_sight: bool = False
    high_ground: bool = False       # Attack bonus, extra range for ranged units
    symbol: str = ""
    color: str = "#7cb342"


# A map is indexed terrain_map[y][x]
TerrainMap = list[list[TerrainTile]]


class StreetConfig(BaseModel):
    base_min: int = config.STREETS_BASE_MIN
    base_var: int = config.STREETS_BASE_VAR
    scale: float = config.STREETS_SCALE
    length_factor: float = config.STREETS_LENGTH_FACTOR
    turn_bias: float = config.STREETS_TURN_BIAS
    continue_bias: float = config.STREETS_CONTINUE_BIAS


class WallConfig(BaseModel):
    base_min: int = config.WALLS_BASE_MIN
    base_var: int = config.WALLS_BASE_VAR
    density: float = config.WALLS_DENSITY
    length_min: int = config.WALLS_LENGTH_MIN
    length_var: int = config.WALLS_LENGTH_VAR


class ForestConfig(BaseModel):
    base_min: int = config.FORESTS_BASE_MIN
    base_var: int = config.FORESTS_BASE_VAR
    density: float = config.FORESTS_DENSITY
    blob_size_min: int = config.FORESTS_BLOB_SIZE_MIN
    blob_size_var: int = config.FORESTS_BLOB_SIZE_VAR


class RiverConfig(BaseModel):
    density: float = config.RIVERS_DENSITY
    length_factor: float = config.RIVERS_LENGTH_FACTOR


class MountainConfig(BaseModel):
    base_min: int = config.MOUNTAINS_BASE_MIN
    base_var: int = config.MOUNTAINS_BASE_VAR
    density: float = config.MOUNTAINS_DENSITY
    group_size_small: int = config.MOUNTAINS_GROUP_SIZE_SMALL
    max_attempts_scale: int = config.MOUNTAINS_MAX_ATTEMPTS_SCALE


class MapGenConfig(BaseModel):
    """Tunable settings for the procedural map generator."""
    base_area: int = config.MAP_BASE_AREA
    spawn_zone_height: int = config.MAP_SPAWN_ZONE_HEIGHT
    max_start_attempts: int = config.MAP_MAX_START_ATTEMPTS
    streets: StreetConfig = StreetConfig()
    walls: WallConfig = WallConfig()
    forests: ForestConfig = ForestConfig()
    rivers: RiverConfig = RiverConfig()
    mountains: MountainConfig = MountainConfig()
