from typing import Annotated

from fastapi import APIRouter, HTTPException, Path
from httpx import HTTPError
from loguru import logger

from streamline.core.dependencies.twitch import IGDB
from streamline.core.igdb import GameDetails, clamp_limit

router = APIRouter(prefix="/api/igdb", tags=["IGDB"])


@router.get("/search", summary="Search the game catalog.")
async def search_games(igdb: IGDB, q: str | None = None, limit: str | None = None) -> dict:
    """
    Proxy to the IGDB search. `limit` is clamped to [1, 50] and defaults to 10,
    a value that is not a number also falls back to 10.
    Upstream failures give an empty result list.
    """
    query = (q or "").strip()
    if not query:
        raise HTTPException(status_code=400, detail="Parâmetro 'q' é obrigatório")

    try:
        parsed_limit = int(limit) if limit else None
    except ValueError:
        parsed_limit = None

    results = await igdb.search_games(query, clamp_limit(parsed_limit))
    return {"results": results}


@router.get("/games/{igdb_id}", summary="Details of one catalog entry, store links included.")
async def get_game(igdb: IGDB, igdb_id: Annotated[int, Path(ge=1, le=2147483647)]) -> dict:
    try:
        game: GameDetails | None = await igdb.get_game_details(igdb_id)
    except HTTPError:
        logger.exception(f"IGDB game details error for {igdb_id}")
        raise HTTPException(status_code=500, detail="Falha ao buscar jogo na IGDB")

    if game is None:
        raise HTTPException(status_code=404, detail="Jogo não encontrado")
    return {"game": game.model_dump(by_alias=True)}
