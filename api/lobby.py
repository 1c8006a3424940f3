"""Game creation, player registration, and unit catalogue endpoints."""

from uuid import uuid4

from fastapi import APIRouter, HTTPException, Request
from pydantic import BaseModel, Field

from config import GRID_SIZE, MAX_GRID_SIZE
from engine.combat import add_player, create_game
from models.game_state import GameState
from models.terrain import MapGenConfig

router = APIRouter()


class CreateGameRequest(BaseModel):
    """Request body for creating a game."""
    size: int = Field(default=GRID_SIZE, ge=1, le=MAX_GRID_SIZE)
    seed: int | None = None
    map_config: MapGenConfig | None = None


class CreateGameResponse(BaseModel):
    """Response after creating a game."""
    game_id: str
    size: int
    seed: int | None


class JoinGameRequest(BaseModel):
    """Request body for joining a game."""
    player_id: str
    name: str


class JoinGameResponse(BaseModel):
    """Response after joining a game."""
    player_id: str
    color: str
    gold: int
    message: str


def get_game_or_404(request: Request, game_id: str) -> GameState:
    """Look up a game in the registry. Callers hold the registry lock."""
    game_state = request.app.state.games.get(game_id)
    if game_state is None:
        raise HTTPException(status_code=404, detail=f"Game '{game_id}' not found")
    return game_state


@router.post("", response_model=CreateGameResponse)
def new_game(body: CreateGameRequest, request: Request) -> CreateGameResponse:
    """Create a game with freshly generated terrain."""
    game_id = str(uuid4())
    game_state = create_game(game_id, size=body.size, seed=body.seed, config=body.map_config)
    with request.app.state.lock:
        request.app.state.games[game_id] = game_state
    return CreateGameResponse(game_id=game_id, size=game_state.size, seed=game_state.seed)


@router.post("/{game_id}/join", response_model=JoinGameResponse)
def join_game(game_id: str, body: JoinGameRequest, request: Request) -> JoinGameResponse:
    """Join a game. The first player to join takes the first turn."""
    with request.app.state.lock:
        game_state = get_game_or_404(request, game_id)
        try:
            player = add_player(game_state, body.player_id, body.name)
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))

    return JoinGameResponse(
        player_id=player.id,
        color=player.color,
        gold=player.gold,
        message=f"{player.name} has entered the battle.",
    )


@router.get("/{game_id}")
def get_game(game_id: str, request: Request) -> dict:
    """Get game metadata and players."""
    with request.app.state.lock:
        game_state = get_game_or_404(request, game_id)
        return {
            "game_id": game_state.game_id,
            "size": game_state.size,
            "seed": game_state.seed,
            "round_number": game_state.round_number,
            "current_player_id": game_state.current_player_id,
            "turn_order": list(game_state.turn_order),
            "players": [p.model_dump() for p in game_state.players.values()],
        }


@router.get("/{game_id}/units")
def get_unit_table(game_id: str, request: Request) -> dict:
    """Get the unit stats and costs available in a game."""
    with request.app.state.lock:
        game_state = get_game_or_404(request, game_id)
        return {
            unit_type.value: template.model_dump(mode="json")
            for unit_type, template in game_state.unit_stats.items()
        }
