"""Server-wide configuration constants for Grid War Server."""

import os

GRID_SIZE = int(os.environ.get("GRID_SIZE", "20"))   # Cells per side
MAX_GRID_SIZE = 40              # Largest map a client may request
MAX_PLAYERS_PER_GAME = 4        # One per base area
STARTING_GOLD = int(os.environ.get("STARTING_GOLD", "2000"))
PLAYER_COLORS = ["#3498db", "#e74c3c", "#2ecc71", "#f1c40f", "#9b59b6"]
LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")

# Combat
BONUS_HIGH_GROUND_ATTACK = 10
BONUS_FLANK = 15
BONUS_REAR = 30
BONUS_ANTI_CAVALRY = 25
MIN_HEALTH_FACTOR = 0.5         # Damage multiplier of an attacker at 0 HP
MAX_DEFENSE_REDUCTION = 0.2     # Floor for the defence factor
DAMAGE_RANDOM_BASE = 0.8        # Random factor spans 0.8 .. 1.2
DAMAGE_RANDOM_VARIANCE = 0.4
HIGH_GROUND_RANGE_BONUS = 1     # Ranged units only

# Morale
MAX_MORALE = 100
MORALE_THRESHOLD = 30
COMMANDER_INFLUENCE_RANGE = 4
MORALE_ALLY_BONUS = 10
MORALE_SWARM_PENALTY = 10
MORALE_FLANK_PENALTY = 10
MORALE_REAR_PENALTY = 20
MORALE_COMMANDER_BONUS = 20
MORALE_AURA_BONUS = 10
MORALE_DEATH_WITNESS = 10

# Terrain
IMPASSABLE_THRESHOLD = 10       # Costs above this block movement
IMPASSABLE_COST = 99
MAX_ELEVATION = 5

# Map generation
MAP_BASE_AREA = 400             # Reference area (20x20) for feature density
MAP_SPAWN_ZONE_HEIGHT = 1       # Rows kept free at the top and bottom
MAP_MAX_START_ATTEMPTS = 50

STREETS_BASE_MIN = 2
STREETS_BASE_VAR = 3
STREETS_SCALE = 0.6
STREETS_LENGTH_FACTOR = 0.8
STREETS_TURN_BIAS = 0.2
STREETS_CONTINUE_BIAS = 0.4

WALLS_BASE_MIN = 2
WALLS_BASE_VAR = 3
WALLS_DENSITY = 1.0
WALLS_LENGTH_MIN = 2
WALLS_LENGTH_VAR = 3

FORESTS_BASE_MIN = 2
FORESTS_BASE_VAR = 3
FORESTS_DENSITY = 1.0
FORESTS_BLOB_SIZE_MIN = 3
FORESTS_BLOB_SIZE_VAR = 6

RIVERS_DENSITY = 0.5
RIVERS_LENGTH_FACTOR = 0.8

MOUNTAINS_BASE_MIN = 1
MOUNTAINS_BASE_VAR = 2
MOUNTAINS_DENSITY = 0.5
MOUNTAINS_GROUP_SIZE_SMALL = 2
MOUNTAINS_MAX_ATTEMPTS_SCALE = 20
