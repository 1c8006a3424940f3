"""Combat rules: action validation, damage formula, attack resolution."""

from __future__ import annotations

import logging
import math
import random
from typing import TYPE_CHECKING

from config import (
    BONUS_ANTI_CAVALRY,
    BONUS_FLANK,
    BONUS_HIGH_GROUND_ATTACK,
    BONUS_REAR,
    HIGH_GROUND_RANGE_BONUS,
    MAX_DEFENSE_REDUCTION,
    MIN_HEALTH_FACTOR,
)
from engine.dice import damage_factor
from engine.grid import (
    get_entity,
    in_bounds,
    is_impassable,
    line_of_sight,
    manhattan,
    orthogonal_neighbors,
    reach_cost,
    relative_position,
    remove_entity,
)
from engine.morale import apply_death_morale_effects
from models.actions import ActionType
from models.game_state import CombatEvent, CombatResult, EventType
from models.units import Ability, RelativePosition

if TYPE_CHECKING:
    from models.game_state import GameState, Grid, Position
    from models.terrain import TerrainMap
    from models.units import Direction, Entity, UnitType

logger = logging.getLogger(__name__)


def attack_range(entity: Entity, pos: Position, terrain_map: TerrainMap) -> int:
    """Manhattan reach of an entity's attack from pos.

    Ranged units standing on high ground reach one cell further.
    """
    x, y = pos
    if entity.is_ranged and terrain_map[y][x].high_ground:
        return entity.range + HIGH_GROUND_RANGE_BONUS
    return entity.range


def validate_action(
    action_type: ActionType,
    game_state: GameState,
    player_id: str,
    position: Position | None = None,
    target_position: Position | None = None,
    unit_type: UnitType | None = None,
    direction: Direction | None = None,
) -> tuple[bool, str]:
    """Check if an action is legal for the given player.

    Turn ownership is checked by the caller.

    Args:
        action_type: The type of action being attempted.
        game_state: Current game state.
        player_id: The acting player.
        position: Spawn cell, rotating unit, or move/attack origin.
        target_position: Move destination or attack target.
        unit_type: Unit to spawn.
        direction: New facing for rotations.

    Returns:
        (valid, error_message) tuple.
    """
    player = game_state.players.get(player_id)
    if player is None:
        return False, f"Player '{player_id}' not found"

    if action_type == ActionType.END_TURN:
        return True, ""

    if position is None:
        return False, f"{action_type.value} action requires a position"
    x, y = position
    if not in_bounds(x, y, game_state.size):
        return False, f"Position ({x}, {y}) is out of bounds"

    if action_type == ActionType.SPAWN:
        if unit_type is None:
            return False, "Spawn action requires a unit_type"
        template = game_state.unit_stats.get(unit_type)
        if template is None:
            return False, f"Unknown unit type '{unit_type.value}'"
        if game_state.grid[y][x] is not None:
            return False, f"Position ({x}, {y}) is already occupied"
        if is_impassable(game_state.terrain_map[y][x]):
            return False, f"Position ({x}, {y}) is impassable"
        if player.gold < template.cost:
            return False, f"Not enough gold: need {template.cost}, have {player.gold}"
        return True, ""

    entity = game_state.grid[y][x]
    if entity is None:
        return False, f"No unit at ({x}, {y})"
    if entity.owner != player_id:
        return False, "That unit belongs to another player"
    if entity.is_fleeing:
        return False, "Fleeing units cannot act"

    if action_type == ActionType.ROTATE:
        if direction is None:
            return False, "Rotate action requires a direction"
        if entity.remaining_movement < 1:
            return False, "Not enough movement to rotate"
        return True, ""

    if target_position is None:
        return False, f"{action_type.value} action requires a target_position"
    tx, ty = target_position
    if not in_bounds(tx, ty, game_state.size):
        return False, f"Target position ({tx}, {ty}) is out of bounds"

    if action_type == ActionType.MOVE:
        if game_state.grid[ty][tx] is not None:
            return False, "Target square is occupied"
        cost = reach_cost(
            position, target_position, game_state.grid, game_state.terrain_map,
            entity.remaining_movement,
        )
        if cost is None or cost > entity.remaining_movement:
            return False, (
                f"Not enough movement: ({tx}, {ty}) is unreachable with "
                f"{entity.remaining_movement} remaining"
            )
        return True, ""

    if action_type == ActionType.ATTACK:
        if entity.has_attacked:
            return False, "Unit has already attacked this turn"
        target = game_state.grid[ty][tx]
        if target is None:
            return False, f"No target at ({tx}, {ty})"
        if target.owner == player_id:
            return False, "Cannot attack your own unit"
        dist = manhattan(position, target_position)
        max_range = attack_range(entity, position, game_state.terrain_map)
        if dist < 1 or dist > max_range:
            return False, f"Target is out of range ({dist}, max {max_range})"
        if entity.is_ranged and not line_of_sight(position, target_position, game_state.terrain_map):
            return False, "No line of sight to target"
        return True, ""

    return False, f"Unknown action type: {action_type}"


# ---------------------------------------------------------------------------
# Damage
# ---------------------------------------------------------------------------


def base_damage(
    attacker: Entity,
    attacker_pos: Position,
    defender: Entity,
    defender_pos: Position,
    terrain_map: TerrainMap,
    is_splash: bool = False,
) -> float:
    """Damage of one hit before the random factor and flooring.

    Positional, charge and ability bonuses apply only to direct melee hits.
    Shields only count against attacks from the defender's front.
    """
    dx = attacker_pos[0] - defender_pos[0]
    dy = attacker_pos[1] - defender_pos[1]
    relation = relative_position(defender.facing, dx, dy)

    shield_bonus = defender.shield_bonus if defender.has_shield and relation == RelativePosition.FRONT else 0
    terrain_defense = terrain_map[defender_pos[1]][defender_pos[0]].defense_bonus
    high_ground = BONUS_HIGH_GROUND_ATTACK if terrain_map[attacker_pos[1]][attacker_pos[0]].high_ground else 0

    positional = 0
    charge = 0
    ability = 0
    if not attacker.is_ranged and not is_splash:
        if relation == RelativePosition.FLANK:
            positional = BONUS_FLANK
        elif relation == RelativePosition.REAR:
            positional = BONUS_REAR
        # Any spent movement counts as a charge. Off-turn units have no movement
        # left, so retaliation always carries the charge bonus.
        if attacker.remaining_movement < attacker.speed:
            charge = attacker.charge_bonus
        if Ability.ANTI_CAVALRY in attacker.special_abilities and defender.unit_type.is_cavalry:
            ability = BONUS_ANTI_CAVALRY

    health_factor = MIN_HEALTH_FACTOR + (attacker.current_health / attacker.max_health) * (1 - MIN_HEALTH_FACTOR)
    defense_factor = max(
        MAX_DEFENSE_REDUCTION,
        1 - (defender.defence + shield_bonus + terrain_defense) / 100,
    )

    damage = (attacker.attack + high_ground + positional + charge + ability) * health_factor * defense_factor
    if attacker.is_ranged:
        accuracy = (100 - attacker.accuracy) if is_splash else attacker.accuracy
        damage *= accuracy / 100
    return damage


def calculate_damage(
    attacker: Entity,
    attacker_pos: Position,
    defender: Entity,
    defender_pos: Position,
    terrain_map: TerrainMap,
    is_splash: bool = False,
    rng: random.Random | None = None,
) -> int:
    """Roll the damage of one hit.

    Returns:
        floor(base_damage * random factor).

    Raises:
        RuntimeError: If the stats produce negative damage.
    """
    damage = math.floor(
        base_damage(attacker, attacker_pos, defender, defender_pos, terrain_map, is_splash)
        * damage_factor(rng)
    )
    if damage < 0:
        raise RuntimeError(f"Negative damage {damage} from {attacker.name} to {defender.name}")
    return damage


def apply_damage(entity: Entity, pos: Position, amount: int, grid: Grid) -> bool:
    """Apply damage to an entity, removing it from the grid at 0 HP.

    Args:
        entity: The entity taking damage.
        pos: Its cell.
        amount: Damage to deal.
        grid: The occupancy grid (mutated on death).

    Returns:
        True if the entity died.
    """
    entity.current_health -= amount
    if entity.current_health > entity.max_health:
        raise RuntimeError(f"{entity.name} health {entity.current_health} exceeds maximum")
    if entity.current_health <= 0:
        entity.current_health = 0
        remove_entity(grid, pos)
        return True
    return False


def _record_death(entity: Entity, pos: Position, grid: Grid, result: CombatResult) -> None:
    result.events.append(CombatEvent(x=pos[0], y=pos[1], type=EventType.DEATH))
    result.logs.append(f"-- {entity.describe(pos)} was destroyed!")
    logger.info("%s was destroyed", entity.describe(pos))
    apply_death_morale_effects(pos, entity.owner, grid)


def _resolve_splash(
    attacker: Entity,
    attacker_pos: Position,
    defender_pos: Position,
    game_state: GameState,
    result: CombatResult,
) -> None:
    """Hit every unit orthogonally adjacent to the primary target."""
    grid = game_state.grid
    for pos in orthogonal_neighbors(defender_pos, len(grid)):
        victim = get_entity(grid, pos)
        if victim is None:
            continue
        damage = calculate_damage(
            attacker, attacker_pos, victim, pos, game_state.terrain_map,
            is_splash=True, rng=game_state.rng,
        )
        victim.raw_morale -= damage
        result.events.append(CombatEvent(x=pos[0], y=pos[1], type=EventType.SPLASH, value=damage))
        result.logs.append(f" -> Splash hit {victim.describe(pos)} for {damage} damage.")
        if apply_damage(victim, pos, damage, grid):
            _record_death(victim, pos, grid, result)


def resolve_attack(
    attacker: Entity,
    attacker_pos: Position,
    defender: Entity,
    defender_pos: Position,
    game_state: GameState,
    *,
    _is_retaliation: bool = False,
    _result: CombatResult | None = None,
) -> CombatResult:
    """Resolve an attack: primary hit, splash, and at most one retaliation.

    Attacker bookkeeping (has_attacked, remaining_movement) is left to the
    caller.

    Args:
        attacker: The attacking entity.
        attacker_pos: Its cell.
        defender: The target entity.
        defender_pos: Its cell.
        game_state: Current game state (mutated in place).
        _is_retaliation: Internal flag for the counter-attack call.
        _result: Internal accumulator shared with the counter-attack call.

    Returns:
        CombatResult with events, log lines, and the number of exchanges.
    """
    result = _result if _result is not None else CombatResult()
    result.exchanges += 1
    grid = game_state.grid

    damage = calculate_damage(
        attacker, attacker_pos, defender, defender_pos, game_state.terrain_map,
        rng=game_state.rng,
    )
    defender.raw_morale -= damage
    # A counter-attack against a unit that cannot fight back earns no morale
    if not _is_retaliation or defender.is_melee_capable:
        attacker.raw_morale += damage // 2

    result.events.append(CombatEvent(x=defender_pos[0], y=defender_pos[1], type=EventType.DAMAGE, value=damage))
    result.logs.append(f" -> {attacker.describe(attacker_pos)} dealt {damage} damage to {defender.describe(defender_pos)}.")

    if apply_damage(defender, defender_pos, damage, grid):
        _record_death(defender, defender_pos, grid, result)

    if attacker.is_ranged and not _is_retaliation:
        _resolve_splash(attacker, attacker_pos, defender_pos, game_state, result)

    if (
        not _is_retaliation
        and defender.is_alive
        and defender.is_melee_capable
        and attacker.is_alive
        and manhattan(attacker_pos, defender_pos) == 1
    ):
        result.logs.append(f"-- {defender.describe(defender_pos)} retaliates!")
        resolve_attack(
            defender, defender_pos, attacker, attacker_pos, game_state,
            _is_retaliation=True, _result=result,
        )

    return result
