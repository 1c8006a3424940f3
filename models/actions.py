"""Action request and response models for Grid War Server."""

from enum import Enum

from pydantic import BaseModel

from models.game_state import CombatEvent
from models.units import Direction, UnitType


class ActionType(str, Enum):
    """Available action types a player can take."""
    SPAWN = "spawn"
    MOVE = "move"
    ROTATE = "rotate"
    ATTACK = "attack"
    END_TURN = "end_turn"


class ActionRequest(BaseModel):
    """A player's requested action."""
    player_id: str = ""
    action_type: ActionType
    position: tuple[int, int] | None = None         # Spawn, rotate, or move/attack origin
    target_position: tuple[int, int] | None = None  # Move destination or attack target
    unit_type: UnitType | None = None               # For spawns
    direction: Direction | None = None              # For rotations


class ActionResult(BaseModel):
    """The engine's response after processing an action."""
    success: bool
    action_type: ActionType
    description: str                    # Human-readable narrative
    events: list[CombatEvent] = []
    logs: list[str] = []
    movement_cost: float | None = None
    error: str | None = None            # If action was invalid
