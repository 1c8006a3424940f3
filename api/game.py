"""Action submission, board state, and game log endpoints."""

from fastapi import APIRouter, HTTPException, Query, Request

from api.lobby import get_game_or_404
from engine.combat import is_players_turn, process_action
from engine.grid import in_bounds, iter_entities, reachable_cells
from models.actions import ActionRequest, ActionResult

router = APIRouter()


@router.get("/{game_id}/state")
def get_game_state(game_id: str, request: Request) -> dict:
    """Get every unit on the board with its position."""
    with request.app.state.lock:
        game_state = get_game_or_404(request, game_id)
        units = []
        for (x, y), entity in iter_entities(game_state.grid):
            units.append({"x": x, "y": y, **entity.model_dump(mode="json")})

        return {
            "game_id": game_state.game_id,
            "round_number": game_state.round_number,
            "current_player_id": game_state.current_player_id,
            "players": [p.model_dump() for p in game_state.players.values()],
            "units": units,
        }


@router.get("/{game_id}/map")
def get_map(game_id: str, request: Request) -> dict:
    """Get the terrain map, indexed as tiles[y][x]."""
    with request.app.state.lock:
        game_state = get_game_or_404(request, game_id)
        return {
            "size": game_state.size,
            "tiles": [[tile.type.value for tile in row] for row in game_state.terrain_map],
        }


@router.get("/{game_id}/reachable")
def get_reachable(
    game_id: str,
    request: Request,
    x: int = Query(...),
    y: int = Query(...),
) -> list[dict]:
    """Get the cells the unit at (x, y) can move to this turn, with costs."""
    with request.app.state.lock:
        game_state = get_game_or_404(request, game_id)
        if not in_bounds(x, y, game_state.size):
            raise HTTPException(status_code=400, detail=f"Position ({x}, {y}) is out of bounds")
        entity = game_state.grid[y][x]
        if entity is None:
            raise HTTPException(status_code=404, detail=f"No unit at ({x}, {y})")

        cells = reachable_cells((x, y), entity.remaining_movement, game_state.grid, game_state.terrain_map)
    return [{"x": cx, "y": cy, "cost": cost} for (cx, cy), cost in sorted(cells.items())]


@router.post("/{game_id}/action", response_model=ActionResult)
def submit_action(game_id: str, action: ActionRequest, request: Request) -> ActionResult:
    """Submit an action for the acting player."""
    with request.app.state.lock:
        game_state = get_game_or_404(request, game_id)

        if action.player_id not in game_state.players:
            raise HTTPException(status_code=404, detail=f"Player '{action.player_id}' is not in this game")
        if not is_players_turn(game_state, action.player_id):
            raise HTTPException(status_code=409, detail="It's not your turn")

        result = process_action(game_state, action)

    if not result.success:
        raise HTTPException(status_code=400, detail=result.error)
    return result


@router.get("/{game_id}/log")
def get_game_log(game_id: str, request: Request) -> list[dict]:
    """Get the event log for a game."""
    with request.app.state.lock:
        game_state = get_game_or_404(request, game_id)
        return [event.model_dump(mode="json") for event in game_state.event_log]
