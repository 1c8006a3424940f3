"""Default unit and terrain stat tables.

These are static configuration: a game receives them at creation and never
mutates them. Alternate rulesets can be injected by passing different tables
to ``create_game`` or ``generate_map``.
"""

from config import IMPASSABLE_COST, MAX_ELEVATION
from models.terrain import TerrainTile, TerrainType
from models.units import Ability, UnitTemplate, UnitType

DEFAULT_TERRAIN: dict[TerrainType, TerrainTile] = {
    TerrainType.PLAINS: TerrainTile(
        type=TerrainType.PLAINS,
        movement_cost=1,
        color="#7cb342",
    ),
    TerrainType.STREET: TerrainTile(
        type=TerrainType.STREET,
        movement_cost=0.5,
        color="#9e9e9e",
    ),
    TerrainType.FOREST: TerrainTile(
        type=TerrainType.FOREST,
        movement_cost=2,
        height=1,
        defense_bonus=20,
        cover=30,
        blocks_line_of_sight=True,
        symbol="♣",
        color="#2e7d32",
    ),
    TerrainType.WATER: TerrainTile(
        type=TerrainType.WATER,
        movement_cost=3,
        height=-1,
        defense_bonus=-10,
        color="#4fc3f7",
    ),
    TerrainType.WALL: TerrainTile(
        type=TerrainType.WALL,
        movement_cost=IMPASSABLE_COST,
        height=3,
        blocks_line_of_sight=True,
        symbol="#",
        color="#5d4037",
    ),
    TerrainType.MOUNTAIN: TerrainTile(
        type=TerrainType.MOUNTAIN,
        movement_cost=IMPASSABLE_COST,
        height=MAX_ELEVATION,
        blocks_line_of_sight=True,
        high_ground=True,
        symbol="▲",
        color="#ffffff",
    ),
}

DEFAULT_UNIT_STATS: dict[UnitType, UnitTemplate] = {
    UnitType.LIGHT_INFANTRY: UnitTemplate(
        name="Light Infantry",
        attack=40,
        defence=20,
        max_health=80,
        speed=3,
        initial_morale=60,
        cost=100,
    ),
    UnitType.HEAVY_INFANTRY: UnitTemplate(
        name="Heavy Infantry",
        attack=50,
        defence=35,
        max_health=100,
        speed=2,
        has_shield=True,
        shield_bonus=20,
        initial_morale=70,
        cost=200,
    ),
    UnitType.ARCHER: UnitTemplate(
        name="Archer",
        attack=45,
        defence=10,
        max_health=60,
        speed=3,
        range=4,
        is_ranged=True,
        accuracy=80,
        is_melee_capable=False,
        initial_morale=50,
        cost=150,
    ),
    UnitType.LIGHT_CAVALRY: UnitTemplate(
        name="Light Cavalry",
        attack=45,
        defence=15,
        max_health=80,
        speed=6,
        charge_bonus=15,
        initial_morale=60,
        cost=250,
    ),
    UnitType.HEAVY_CAVALRY: UnitTemplate(
        name="Heavy Cavalry",
        attack=60,
        defence=30,
        max_health=120,
        speed=4,
        charge_bonus=30,
        initial_morale=75,
        cost=400,
    ),
    UnitType.LANCER: UnitTemplate(
        name="Lancer",
        attack=45,
        defence=20,
        max_health=90,
        speed=3,
        special_abilities={Ability.ANTI_CAVALRY},
        initial_morale=65,
        cost=200,
    ),
    UnitType.COMMANDER: UnitTemplate(
        name="Commander",
        attack=50,
        defence=30,
        max_health=120,
        speed=4,
        has_shield=True,
        shield_bonus=10,
        initial_morale=90,
        is_commander=True,
        cost=500,
    ),
}
