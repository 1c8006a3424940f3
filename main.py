"""FastAPI app entry point for Grid War Server."""

import logging
import threading

from fastapi import FastAPI

from api.game import router as game_router
from api.lobby import router as lobby_router
from config import LOG_LEVEL

logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

app = FastAPI(
    title="Grid War Server",
    description="A turn-based tactical battle simulation on a procedural grid",
    version="0.1.0",
)

# In-memory registry of running games
app.state.games = {}
app.state.lock = threading.Lock()

app.include_router(lobby_router, prefix="/games", tags=["Lobby"])
app.include_router(game_router, prefix="/games", tags=["Game"])


@app.get("/")
def root() -> dict:
    """Root endpoint returning server info."""
    return {"name": "Grid War Server", "version": "0.1.0", "status": "running"}


@app.get("/health")
def health() -> dict:
    """Health check endpoint."""
    return {"healthy": True}
