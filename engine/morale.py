"""Morale calculation, death-witness effects, and autonomous fleeing."""

from __future__ import annotations

import logging
from collections import deque
from typing import TYPE_CHECKING

from config import (
    COMMANDER_INFLUENCE_RANGE,
    MAX_MORALE,
    MORALE_ALLY_BONUS,
    MORALE_AURA_BONUS,
    MORALE_COMMANDER_BONUS,
    MORALE_DEATH_WITNESS,
    MORALE_FLANK_PENALTY,
    MORALE_REAR_PENALTY,
    MORALE_SWARM_PENALTY,
    MORALE_THRESHOLD,
)
from engine.dice import chance
from engine.grid import (
    is_edge,
    is_impassable,
    iter_entities,
    manhattan,
    orthogonal_neighbors,
    place_entity,
    relative_position,
    remove_entity,
)
from models.game_state import CombatEvent, EventType, MoraleReport
from models.units import Direction, MoraleContribution, RelativePosition

if TYPE_CHECKING:
    from models.game_state import GameState, Grid, Position
    from models.terrain import TerrainMap
    from models.units import Entity

logger = logging.getLogger(__name__)


def apply_death_morale_effects(pos: Position, owner: str, grid: Grid) -> None:
    """Shift the raw morale of units that watched a death at pos.

    Non-fleeing orthogonal neighbours lose morale if they shared the dead
    unit's owner and gain it otherwise.
    """
    for nx, ny in orthogonal_neighbors(pos, len(grid)):
        witness = grid[ny][nx]
        if witness is None or witness.is_fleeing:
            continue
        if witness.owner == owner:
            witness.raw_morale -= MORALE_DEATH_WITNESS
        else:
            witness.raw_morale += MORALE_DEATH_WITNESS


def _commander_nearby(entity: Entity, pos: Position, grid: Grid) -> bool:
    for other_pos, other in iter_entities(grid):
        if (
            other.owner == entity.owner
            and other.is_commander
            and not other.is_fleeing
            and manhattan(pos, other_pos) <= COMMANDER_INFLUENCE_RANGE
        ):
            return True
    return False


def recompute_morale(entity: Entity, x: int, y: int, grid: Grid) -> int:
    """Derive an entity's current morale and its breakdown from the board.

    Clamps raw_morale to MAX_MORALE first. The result is stored on the
    entity (current_morale, morale_breakdown) and returned.
    """
    if entity.raw_morale > MAX_MORALE:
        entity.raw_morale = MAX_MORALE

    breakdown = [MoraleContribution(label="Base", value=entity.initial_morale)]
    event_diff = entity.raw_morale - entity.initial_morale
    if event_diff != 0:
        breakdown.append(MoraleContribution(label="Battle Events", value=event_diff))

    allies = 0
    enemies = 0
    flanking = 0
    rear = 0
    for nx, ny in orthogonal_neighbors((x, y), len(grid)):
        other = grid[ny][nx]
        if other is None or other.is_fleeing:
            continue
        if other.owner == entity.owner:
            allies += 1
            continue
        enemies += 1
        relation = relative_position(entity.facing, nx - x, ny - y)
        if relation == RelativePosition.FLANK:
            flanking += 1
        elif relation == RelativePosition.REAR:
            rear += 1

    modifiers = []
    if allies > 0:
        modifiers.append(("Adjacent Allies", allies * MORALE_ALLY_BONUS))
    if enemies > 1:
        modifiers.append(("Swarmed", -(enemies - 1) * MORALE_SWARM_PENALTY))
    if flanking > 0:
        modifiers.append(("Flanked", -flanking * MORALE_FLANK_PENALTY))
    if rear > 0:
        modifiers.append(("Rear Attacked", -rear * MORALE_REAR_PENALTY))
    if entity.is_commander:
        modifiers.append(("Commander", MORALE_COMMANDER_BONUS))
    elif _commander_nearby(entity, (x, y), grid):
        modifiers.append(("Commander Aura", MORALE_AURA_BONUS))

    morale = entity.raw_morale
    for label, value in modifiers:
        morale += value
        breakdown.append(MoraleContribution(label=label, value=value))

    entity.current_morale = min(morale, MAX_MORALE)
    entity.morale_breakdown = breakdown
    return entity.current_morale


def update_all_morale(grid: Grid) -> None:
    """Recompute morale for every entity on the grid."""
    for (x, y), entity in iter_entities(grid):
        recompute_morale(entity, x, y, grid)


# ---------------------------------------------------------------------------
# Fleeing
# ---------------------------------------------------------------------------


def find_escape_path(
    start: Position,
    grid: Grid,
    terrain_map: TerrainMap,
) -> list[Position] | None:
    """Shortest step path from start to any edge cell.

    Breadth-first, so the first edge cell dequeued is the nearest. Occupied
    and impassable cells block; terrain cost is otherwise ignored.

    Returns:
        The cells to step through (start excluded, empty if start is already
        on the edge), or None if the unit is enclosed.
    """
    size = len(grid)
    parents: dict[Position, Position | None] = {start: None}
    queue = deque([start])

    while queue:
        pos = queue.popleft()
        if is_edge(pos, size):
            path = []
            while pos != start:
                path.append(pos)
                pos = parents[pos]
            path.reverse()
            return path
        for nx, ny in orthogonal_neighbors(pos, size):
            if (nx, ny) in parents:
                continue
            if is_impassable(terrain_map[ny][nx]) or grid[ny][nx] is not None:
                continue
            parents[(nx, ny)] = pos
            queue.append((nx, ny))

    return None


def flee(entity: Entity, pos: Position, game_state: GameState, report: MoraleReport) -> None:
    """Run a panicking unit toward the nearest edge.

    The unit loses its action for the turn, advances up to its speed along
    the escape path, and leaves the battlefield if it ends on an edge cell.
    """
    entity.has_attacked = True
    entity.remaining_movement = 0
    grid = game_state.grid
    x, y = pos

    path = find_escape_path(pos, grid, game_state.terrain_map)
    if path is None:
        report.events.append(CombatEvent(x=x, y=y, type=EventType.TRAPPED))
        report.logs.append(f"! {entity.describe(pos)} is trapped and panicking!")
        return

    current = pos
    for step in path[: int(entity.speed)]:
        entity.facing = Direction.from_delta(step[0] - current[0], step[1] - current[1])
        current = step

    remove_entity(grid, pos)
    if is_edge(current, len(grid)):
        report.events.append(CombatEvent(x=current[0], y=current[1], type=EventType.FLED))
        report.logs.append(f"-- {entity.describe(pos)} fled the battlefield!")
        logger.info("%s fled the battlefield", entity.describe(pos))
    else:
        place_entity(grid, entity, current)


def run_morale_phase(game_state: GameState, player_id: str) -> MoraleReport:
    """Resolve morale for one player's units at a turn boundary.

    Recomputes morale everywhere, then rolls each of the player's units
    against the flee threshold, then recomputes again so removals are
    reflected before play continues.

    Args:
        game_state: Current game state (mutated in place).
        player_id: The player whose units roll for morale.

    Returns:
        MoraleReport with board events and log lines.
    """
    report = MoraleReport()
    grid = game_state.grid
    update_all_morale(grid)

    snapshot = [(pos, entity) for pos, entity in iter_entities(grid) if entity.owner == player_id]
    for (x, y), entity in snapshot:
        if grid[y][x] is not entity:
            continue  # removed or moved earlier in this phase

        label = entity.describe((x, y))
        if entity.current_morale < MORALE_THRESHOLD:
            flee_probability = 1 - entity.current_morale / MORALE_THRESHOLD
            if chance(flee_probability, game_state.rng):
                if entity.is_fleeing:
                    report.logs.append(f"! {label} is still in panic and flees!")
                else:
                    report.logs.append(f"! {label} morale breaks! It starts fleeing!")
                entity.is_fleeing = True
                flee(entity, (x, y), game_state, report)
            elif entity.is_fleeing:
                entity.is_fleeing = False
                report.logs.append(f"* {label} has regained control.")
        elif entity.is_fleeing:
            entity.is_fleeing = False
            report.logs.append(f"* {label} has stopped fleeing.")

    update_all_morale(grid)
    return report
