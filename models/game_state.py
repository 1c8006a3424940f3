"""Game state, player, and event models for Grid War Server."""

import random
from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from models.terrain import TerrainMap
from models.units import Entity, UnitTemplate, UnitType

Position = tuple[int, int]          # (x, y)
Grid = list[list[Entity | None]]    # grid[y][x]


class Player(BaseModel):
    """A participant in the game."""
    id: str
    name: str
    color: str
    gold: int                       # Spent on spawns, never restored


class EventType(str, Enum):
    """Kinds of board events emitted by combat and morale."""
    DAMAGE = "damage"
    SPLASH = "splash"
    DEATH = "death"
    FLED = "fled"                   # Left the battlefield
    TRAPPED = "trapped"


class CombatEvent(BaseModel):
    """Something that happened on a cell, for clients to animate."""
    x: int
    y: int
    type: EventType
    value: int | None = None        # Damage dealt, where applicable


class CombatResult(BaseModel):
    """Everything one attack (and its retaliation) produced."""
    events: list[CombatEvent] = []
    logs: list[str] = []
    exchanges: int = 0              # Resolutions in the chain, at most 2


class MoraleReport(BaseModel):
    """Events and notices from one morale phase."""
    events: list[CombatEvent] = []
    logs: list[str] = []


class GameEvent(BaseModel):
    """A logged action from the game."""
    round: int
    player_id: str
    action_type: str
    description: str
    details: dict = {}              # Events, costs, etc.
    timestamp: datetime


class GameState(BaseModel):
    """The full state of one game instance."""
    model_config = ConfigDict(arbitrary_types_allowed=True)

    game_id: str
    size: int
    seed: int | None = None
    grid: Grid
    terrain_map: TerrainMap
    unit_stats: dict[UnitType, UnitTemplate]
    players: dict[str, Player] = {}     # player_id -> Player
    turn_order: list[str] = []          # Player ids in join order
    current_turn_index: int = 0
    round_number: int = 1
    event_log: list[GameEvent] = []
    rng: random.Random = Field(default_factory=random.Random, exclude=True)

    @property
    def current_player_id(self) -> str | None:
        if not self.turn_order:
            return None
        return self.turn_order[self.current_turn_index]
