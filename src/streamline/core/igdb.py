from datetime import datetime, timezone
from urllib.parse import urljoin

import httpx
from loguru import logger

from streamline.core.constants import (
    IGDB_DETAIL_FIELDS,
    IGDB_SEARCH_DEFAULT_LIMIT,
    IGDB_SEARCH_FIELDS,
    IGDB_SEARCH_MAX_LIMIT,
    PLACEHOLDER_IMAGE_URL,
)
from streamline.core.images import cover_url
from streamline.core.redis import Redis
from streamline.core.schemas.base import CamelModel
from streamline.core.schemas.games import StoreLink
from streamline.core.settings import settings
from streamline.core.store_links import extract_store_links
from streamline.core.twitch import TwitchAPI

CACHE_GAME_TTL = 60 * 60  # 1 hour


class GameDetails(CamelModel):
    """Catalog entry as served by `/api/igdb/games/{id}`"""

    id: int
    title: str
    image: str
    synopsis: str = ""
    genre: list[str] = []
    platform: str = ""
    release_date: str = ""
    website: str = ""
    store_links: list[StoreLink] = []
    websites: list[str] = []


def clamp_limit(limit: int | None) -> int:
    if not limit:
        return IGDB_SEARCH_DEFAULT_LIMIT
    return min(max(limit, 1), IGDB_SEARCH_MAX_LIMIT)


def _escape(query: str) -> str:
    return query.replace("\\", "\\\\").replace('"', '\\"')


def build_game_details(game: dict) -> GameDetails:
    """Normalize a raw IGDB game into `GameDetails`."""
    websites = [w["url"] for w in game.get("websites") or [] if isinstance(w, dict) and isinstance(w.get("url"), str)]
    release_dates = game.get("release_dates") or []
    release_date = ""
    if release_dates and release_dates[0].get("date"):
        release_date = datetime.fromtimestamp(release_dates[0]["date"], tz=timezone.utc).strftime("%d/%m/%Y")

    return GameDetails(
        id=game["id"],
        title=game.get("name", ""),
        image=cover_url((game.get("cover") or {}).get("url")) or PLACEHOLDER_IMAGE_URL,
        synopsis=game.get("summary") or "",
        genre=[g["name"] for g in game.get("genres") or []],
        platform=", ".join(p["name"] for p in game.get("platforms") or []),
        release_date=release_date,
        website=websites[0] if websites else "",
        store_links=extract_store_links(websites, game.get("name")),
        websites=websites,
    )


class IGDBClient:
    """Client for the IGDB v4 API. IGDB authenticates with the Twitch app access token."""

    def __init__(self, twitch_api: TwitchAPI, redis: Redis, base_url: str = settings.igdb_api_base_url) -> None:
        self._twitch_api = twitch_api
        self._redis = redis
        self._base_url = base_url
        self._httpx_client = httpx.AsyncClient()

    async def shutdown(self):
        logger.info("Shutting down HTTPX IGDB client")
        await self._httpx_client.aclose()

    async def query(self, endpoint: str, body: str) -> list[dict]:
        """Runs an apicalypse query against `endpoint`."""
        url = urljoin(self._base_url, endpoint)
        headers = await self._twitch_api.app_headers()
        headers["Content-Type"] = "text/plain"

        try:
            logger.debug(f"Making IGDB query to {url}: {body}")
            response = await self._httpx_client.post(url, content=body, headers=headers)
        except httpx.RequestError as e:
            logger.exception(f"IGDB request to {url} failed")
            raise e

        response.raise_for_status()
        return response.json()

    async def search_games(self, query: str, limit: int = IGDB_SEARCH_DEFAULT_LIMIT) -> list[dict]:
        """Searches the catalog. Upstream failures are logged and give an empty list."""
        logger.info(f"Searching IGDB for {query!r} (limit {limit})")
        body = f'search "{_escape(query)}"; fields {IGDB_SEARCH_FIELDS}; limit {clamp_limit(limit)};'
        try:
            return await self.query("games", body)
        except httpx.HTTPError:
            logger.exception(f"Error searching games for {query!r}")
            return []

    async def get_game(self, igdb_id: int) -> dict | None:
        body = f"fields {IGDB_DETAIL_FIELDS}; where id = {int(igdb_id)};"
        games = await self.query("games", body)
        return games[0] if games else None

    async def get_game_details(self, igdb_id: int) -> GameDetails | None:
        """Full details of one catalog entry with derived store links, cached for an hour."""
        key = self._redis.key("igdb", "game", igdb_id)
        if cached := await self._redis.get_json(key):
            return GameDetails(**cached)  # type: ignore

        logger.debug(f"IGDB game {igdb_id} not found in cache. Fetching from API")
        game = await self.get_game(igdb_id)
        if game is None:
            logger.info(f"IGDB game {igdb_id} not found")
            return None

        details = build_game_details(game)
        await self._redis.set_json(key, details.model_dump(), ttl=CACHE_GAME_TTL)
        return details
