"""Unit templates and spawned entity models for Grid War Server."""

from enum import Enum

from pydantic import BaseModel


class UnitType(str, Enum):
    """Unit types a player can spawn."""
    LIGHT_INFANTRY = "light_infantry"
    HEAVY_INFANTRY = "heavy_infantry"
    ARCHER = "archer"
    LIGHT_CAVALRY = "light_cavalry"
    HEAVY_CAVALRY = "heavy_cavalry"
    LANCER = "lancer"
    COMMANDER = "commander"

    @property
    def is_cavalry(self) -> bool:
        return self in (UnitType.LIGHT_CAVALRY, UnitType.HEAVY_CAVALRY)


class Ability(str, Enum):
    """Special abilities a unit template can carry."""
    ANTI_CAVALRY = "anti_cavalry"


class Direction(str, Enum):
    """Cardinal facing. Rows grow southward, so north is (0, -1)."""
    NORTH = "north"
    EAST = "east"
    SOUTH = "south"
    WEST = "west"

    @property
    def delta(self) -> tuple[int, int]:
        return _DIRECTION_DELTAS[self]

    @classmethod
    def from_delta(cls, dx: int, dy: int) -> "Direction":
        for direction, delta in _DIRECTION_DELTAS.items():
            if delta == (dx, dy):
                return direction
        raise ValueError(f"({dx}, {dy}) is not a cardinal step")


_DIRECTION_DELTAS = {
    Direction.NORTH: (0, -1),
    Direction.EAST: (1, 0),
    Direction.SOUTH: (0, 1),
    Direction.WEST: (-1, 0),
}


class RelativePosition(str, Enum):
    """Where an attacker stands relative to a defender's facing."""
    FRONT = "front"
    FLANK = "flank"
    REAR = "rear"


class UnitTemplate(BaseModel):
    """Static stats for a unit type, copied onto each spawned entity."""
    name: str                       # e.g., "Heavy Infantry"
    attack: int
    defence: int                    # % damage reduction before clamping
    max_health: int
    speed: float                    # Movement budget per turn
    range: int = 1                  # Manhattan distance
    is_ranged: bool = False
    accuracy: int = 0               # % for ranged units
    has_shield: bool = False
    shield_bonus: int = 0
    charge_bonus: int = 0
    special_abilities: set[Ability] = set()
    is_melee_capable: bool = True
    initial_morale: int
    is_commander: bool = False
    cost: int


class MoraleContribution(BaseModel):
    """One line of a morale breakdown."""
    label: str
    value: int


class Entity(UnitTemplate):
    """A unit on the battlefield. Its position is the grid cell holding it."""
    id: str
    unit_type: UnitType
    owner: str                      # Player id
    current_health: int
    raw_morale: int                 # Accumulates battle events
    current_morale: int             # Derived on every morale pass
    morale_breakdown: list[MoraleContribution] = []
    remaining_movement: float = 0
    has_attacked: bool = True
    facing: Direction = Direction.NORTH
    is_fleeing: bool = False

    @property
    def is_alive(self) -> bool:
        return self.current_health > 0

    def describe(self, pos: tuple[int, int]) -> str:
        """Short label for log lines, e.g. "p1's Archer at (3, 4)"."""
        return f"{self.owner}'s {self.name} at ({pos[0]}, {pos[1]})"
