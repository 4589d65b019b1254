import sys
import time

import humanize
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from loguru import logger
from starlette.exceptions import HTTPException as StarletteHTTPException

from streamline.core.database import Database
from streamline.core.igdb import IGDBClient
from streamline.core.redis import Redis
from streamline.core.settings import settings
from streamline.core.twitch import TwitchAPI
from streamline.routes import auth, games, igdb, scheduled_streams, streamer_games, streamers

humanize.i18n.activate(settings.locale)  # type: ignore   relative day labels in pt_BR

logger.remove()  # All default handlers are removed
logger.add(sys.stderr, diagnose=False, level=settings.log_level)

app = FastAPI(
    title="Streamline API",
    description="Stream schedules and game lists for Twitch streamers.",
    version="0.1.0",
)


@app.middleware("http")
async def add_process_time_header(request: Request, call_next):
    """Used to add a header to the response to show how long the request took."""
    start_time = time.time()
    response = await call_next(request)
    response.headers["X-Process-Time"] = f"{(time.time() - start_time) * 1000:.2f} ms"
    return response


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse({"error": exc.detail}, status_code=exc.status_code, headers=exc.headers)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    first = errors[0] if errors else {}
    location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    message = f"{location}: {first.get('msg')}" if location else str(first.get("msg", "Invalid request"))
    logger.debug(f"Invalid request to {request.url.path}: {errors}")
    return JSONResponse({"error": message}, status_code=400)


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception(f"Unhandled error on {request.method} {request.url.path}: {exc}")
    return JSONResponse({"error": "Internal server error"}, status_code=500)


@app.on_event("startup")
async def startup():
    app.state.database = Database(
        str(settings.postgres_url),
        min_size=settings.postgres_pool_min_size,
        max_size=settings.postgres_pool_max_size,
    )
    app.state.redis = Redis(str(settings.redis_url))
    app.state.twitch_api = TwitchAPI(settings.twitch_client_id, settings.twitch_client_secret, app.state.redis)
    app.state.igdb = IGDBClient(app.state.twitch_api, app.state.redis)

    await app.state.redis.connect()
    await app.state.database.connect()
    await app.state.twitch_api.authorize()


@app.on_event("shutdown")
async def shutdown():
    await app.state.igdb.shutdown()
    await app.state.twitch_api.shutdown()
    await app.state.database.disconnect()
    await app.state.redis.disconnect()


app.include_router(auth.router)
app.include_router(games.router)
app.include_router(igdb.router)
app.include_router(scheduled_streams.router)
app.include_router(streamer_games.router)
app.include_router(streamers.router)
