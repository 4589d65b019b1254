from fastapi import APIRouter, HTTPException
from loguru import logger

from streamline.core.dependencies.database import Games
from streamline.core.images import MEDIUM, normalize_image_url
from streamline.core.schemas.games import Game, GameCreate

router = APIRouter(prefix="/api/games", tags=["Games"])


@router.post("", response_model=Game)
async def create_game(data: GameCreate, games: Games) -> Game:
    """Register a catalog or custom game. The cover url is normalized once, here."""
    if data.image:
        data.image = normalize_image_url(data.image, size=MEDIUM)
    game = await games.create(data)
    logger.info(f"Game {game.title!r} registered with id {game.id}")
    return game


@router.get("", response_model=Game)
async def get_game(games: Games, gameId: str | None = None) -> Game:
    if not gameId:
        raise HTTPException(status_code=400, detail="gameId is required")

    game = await games.get(gameId)
    if game is None:
        raise HTTPException(status_code=404, detail="Game not found")
    return game
