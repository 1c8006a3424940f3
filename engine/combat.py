"""Game orchestration: creation, players, unit actions, and turn flow."""

from __future__ import annotations

import logging
import random
from datetime import datetime, timezone
from uuid import uuid4

from config import GRID_SIZE, MAX_PLAYERS_PER_GAME, PLAYER_COLORS, STARTING_GOLD
from engine.grid import (
    create_grid,
    direction_between,
    iter_entities,
    place_entity,
    reach_cost,
    relocate_entity,
)
from engine.mapgen import generate_map
from engine.morale import run_morale_phase, update_all_morale
from engine.rules import resolve_attack, validate_action
from engine.tables import DEFAULT_TERRAIN, DEFAULT_UNIT_STATS
from models.actions import ActionRequest, ActionResult, ActionType
from models.game_state import GameEvent, GameState, Player, Position
from models.terrain import MapGenConfig, TerrainTile, TerrainType
from models.units import Direction, Entity, UnitTemplate, UnitType

logger = logging.getLogger(__name__)


def create_game(
    game_id: str,
    size: int = GRID_SIZE,
    seed: int | None = None,
    config: MapGenConfig | None = None,
    unit_stats: dict[UnitType, UnitTemplate] | None = None,
    terrain: dict[TerrainType, TerrainTile] | None = None,
) -> GameState:
    """Initialize a new game with generated terrain and an empty grid.

    Args:
        game_id: Unique identifier for the game.
        size: Cells per side.
        seed: Seeds both the map generator and the game's combat rolls.
        config: Map generator settings.
        unit_stats: Unit table; defaults to DEFAULT_UNIT_STATS.
        terrain: Terrain table; defaults to DEFAULT_TERRAIN.

    Returns:
        A fresh GameState ready for players to join.
    """
    terrain_map = generate_map(size, seed=seed, config=config, terrain=terrain or DEFAULT_TERRAIN)
    game_state = GameState(
        game_id=game_id,
        size=size,
        seed=seed,
        grid=create_grid(size),
        terrain_map=terrain_map,
        unit_stats=unit_stats or DEFAULT_UNIT_STATS,
        rng=random.Random(seed),
    )
    logger.info("Created game %s (%dx%d, seed=%s)", game_id, size, size, seed)
    return game_state


def add_player(game_state: GameState, player_id: str, name: str) -> Player:
    """Register a player and append them to the turn order.

    The first player to join holds the opening turn.

    Raises:
        ValueError: If the game is full or the id is taken.
    """
    if player_id in game_state.players:
        raise ValueError(f"Player '{player_id}' has already joined")
    if len(game_state.players) >= MAX_PLAYERS_PER_GAME:
        raise ValueError("Game is full")

    color = PLAYER_COLORS[len(game_state.players) % len(PLAYER_COLORS)]
    player = Player(id=player_id, name=name, color=color, gold=STARTING_GOLD)
    game_state.players[player_id] = player
    game_state.turn_order.append(player_id)
    logger.info("Player %s joined game %s", player_id, game_state.game_id)
    return player


def create_entity(template: UnitTemplate, unit_type: UnitType, owner: str) -> Entity:
    """Instantiate a template as a fresh unit.

    New units cannot move or attack until their owner's next turn starts.
    """
    return Entity(
        **template.model_dump(),
        id=str(uuid4()),
        unit_type=unit_type,
        owner=owner,
        current_health=template.max_health,
        raw_morale=template.initial_morale,
        current_morale=template.initial_morale,
        remaining_movement=0,
        has_attacked=True,
    )


def is_players_turn(game_state: GameState, player_id: str) -> bool:
    return game_state.current_player_id == player_id


def _reject(action_type: ActionType, error: str) -> ActionResult:
    logger.debug("Rejected %s: %s", action_type.value, error)
    return ActionResult(
        success=False,
        action_type=action_type,
        description=error,
        error=error,
    )


def _check(action_type: ActionType, game_state: GameState, player_id: str, **kwargs) -> ActionResult | None:
    """Return a rejection if the action may not happen, else None."""
    if player_id not in game_state.players:
        return _reject(action_type, f"Player '{player_id}' not found")
    if not is_players_turn(game_state, player_id):
        return _reject(action_type, "It's not your turn")
    valid, error = validate_action(action_type, game_state, player_id, **kwargs)
    if not valid:
        return _reject(action_type, error)
    return None


def _log_event(game_state: GameState, player_id: str, result: ActionResult, details: dict | None = None) -> None:
    game_state.event_log.append(GameEvent(
        round=game_state.round_number,
        player_id=player_id,
        action_type=result.action_type.value,
        description=result.description,
        details=details or {},
        timestamp=datetime.now(timezone.utc),
    ))


# ---------------------------------------------------------------------------
# Unit actions
# ---------------------------------------------------------------------------


def spawn(game_state: GameState, player_id: str, position: Position, unit_type: UnitType) -> ActionResult:
    """Buy a unit and place it on an empty, passable cell.

    The unit faces the centre of the board and sits out the rest of the turn.
    """
    rejected = _check(ActionType.SPAWN, game_state, player_id, position=position, unit_type=unit_type)
    if rejected:
        return rejected

    template = game_state.unit_stats[unit_type]
    entity = create_entity(template, unit_type, player_id)
    centre = (game_state.size // 2, game_state.size // 2)
    entity.facing = direction_between(position, centre) or Direction.NORTH

    place_entity(game_state.grid, entity, position)
    game_state.players[player_id].gold -= template.cost
    update_all_morale(game_state.grid)

    result = ActionResult(
        success=True,
        action_type=ActionType.SPAWN,
        description=f"{entity.describe(position)} was deployed.",
    )
    _log_event(game_state, player_id, result, {"unit_type": unit_type.value, "cost": template.cost})
    return result


def move(game_state: GameState, player_id: str, start: Position, end: Position) -> ActionResult:
    """Move a unit along its cheapest path, paying the terrain cost."""
    rejected = _check(ActionType.MOVE, game_state, player_id, position=start, target_position=end)
    if rejected:
        return rejected

    entity = game_state.grid[start[1]][start[0]]
    cost = reach_cost(start, end, game_state.grid, game_state.terrain_map, entity.remaining_movement)
    relocate_entity(game_state.grid, start, end)
    entity.facing = direction_between(start, end)
    entity.remaining_movement -= cost
    update_all_morale(game_state.grid)

    result = ActionResult(
        success=True,
        action_type=ActionType.MOVE,
        description=f"{entity.describe(end)} moved from ({start[0]}, {start[1]}).",
        movement_cost=cost,
    )
    _log_event(game_state, player_id, result, {"from": start, "to": end, "cost": cost})
    return result


def rotate(game_state: GameState, player_id: str, position: Position, direction: Direction) -> ActionResult:
    """Turn a unit to face a direction for one movement point."""
    rejected = _check(ActionType.ROTATE, game_state, player_id, position=position, direction=direction)
    if rejected:
        return rejected

    entity = game_state.grid[position[1]][position[0]]
    entity.facing = direction
    entity.remaining_movement -= 1
    update_all_morale(game_state.grid)

    result = ActionResult(
        success=True,
        action_type=ActionType.ROTATE,
        description=f"{entity.describe(position)} turned {direction.value}.",
        movement_cost=1,
    )
    _log_event(game_state, player_id, result, {"direction": direction.value})
    return result


def attack(game_state: GameState, player_id: str, attacker_pos: Position, target_pos: Position) -> ActionResult:
    """Attack a hostile unit. Attacking ends the unit's turn."""
    rejected = _check(
        ActionType.ATTACK, game_state, player_id,
        position=attacker_pos, target_position=target_pos,
    )
    if rejected:
        return rejected

    attacker = game_state.grid[attacker_pos[1]][attacker_pos[0]]
    defender = game_state.grid[target_pos[1]][target_pos[0]]
    description = f"{attacker.describe(attacker_pos)} attacks {defender.describe(target_pos)}."

    combat = resolve_attack(attacker, attacker_pos, defender, target_pos, game_state)
    attacker.has_attacked = True
    attacker.remaining_movement = 0
    update_all_morale(game_state.grid)

    result = ActionResult(
        success=True,
        action_type=ActionType.ATTACK,
        description=description,
        events=combat.events,
        logs=combat.logs,
    )
    _log_event(game_state, player_id, result, {
        "events": [event.model_dump(mode="json") for event in combat.events],
        "exchanges": combat.exchanges,
    })
    return result


# ---------------------------------------------------------------------------
# Turn flow
# ---------------------------------------------------------------------------


def start_turn(game_state: GameState, player_id: str) -> None:
    """Refresh movement and attacks for every unit the player owns."""
    for _, entity in iter_entities(game_state.grid):
        if entity.owner == player_id:
            entity.remaining_movement = entity.speed
            entity.has_attacked = False


def end_turn(game_state: GameState, player_id: str) -> ActionResult:
    """Close the player's turn and hand it to the next player.

    The outgoing player's units are locked, their morale is resolved (units
    may flee), then the turn advances and the next player's units refresh.
    """
    rejected = _check(ActionType.END_TURN, game_state, player_id)
    if rejected:
        return rejected

    for _, entity in iter_entities(game_state.grid):
        if entity.owner == player_id:
            entity.remaining_movement = 0
            entity.has_attacked = True

    report = run_morale_phase(game_state, player_id)

    game_state.current_turn_index = (game_state.current_turn_index + 1) % len(game_state.turn_order)
    if game_state.current_turn_index == 0:
        game_state.round_number += 1
    next_player = game_state.current_player_id
    start_turn(game_state, next_player)
    update_all_morale(game_state.grid)
    logger.info(
        "Game %s: turn passes from %s to %s (round %d)",
        game_state.game_id, player_id, next_player, game_state.round_number,
    )

    result = ActionResult(
        success=True,
        action_type=ActionType.END_TURN,
        description=f"{player_id} ended their turn. It is now {next_player}'s turn.",
        events=report.events,
        logs=report.logs,
    )
    _log_event(game_state, player_id, result, {"next_player": next_player})
    return result


def process_action(game_state: GameState, request: ActionRequest) -> ActionResult:
    """Dispatch an ActionRequest to the matching operation.

    Missing parameters are reported as a failed result, never raised.
    """
    player_id = request.player_id
    action_type = request.action_type

    if action_type == ActionType.SPAWN:
        if request.position is None or request.unit_type is None:
            return _reject(action_type, "Spawn action requires a position and unit_type")
        return spawn(game_state, player_id, request.position, request.unit_type)

    if action_type == ActionType.MOVE:
        if request.position is None or request.target_position is None:
            return _reject(action_type, "Move action requires a position and target_position")
        return move(game_state, player_id, request.position, request.target_position)

    if action_type == ActionType.ROTATE:
        if request.position is None or request.direction is None:
            return _reject(action_type, "Rotate action requires a position and direction")
        return rotate(game_state, player_id, request.position, request.direction)

    if action_type == ActionType.ATTACK:
        if request.position is None or request.target_position is None:
            return _reject(action_type, "Attack action requires a position and target_position")
        return attack(game_state, player_id, request.position, request.target_position)

    if action_type == ActionType.END_TURN:
        return end_turn(game_state, player_id)

    return _reject(action_type, "Unknown action type")
