from typing import Annotated

import orjson
from fastapi import Depends, HTTPException, Request
from loguru import logger
from pydantic import ValidationError
from starlette.status import HTTP_401_UNAUTHORIZED, HTTP_403_FORBIDDEN

from streamline.core.schemas.streamers import Session
from streamline.core.settings import settings


def parse_session_cookie(raw: str | None) -> Session | None:
    """Decode the session cookie. Missing or malformed cookies count as no session."""
    if not raw:
        return None
    try:
        return Session.model_validate(orjson.loads(raw))
    except (orjson.JSONDecodeError, ValidationError):
        logger.info("Ignoring malformed session cookie")
        return None


async def get_session(request: Request) -> Session | None:
    """Dependency to get the session of the caller, if any."""
    return parse_session_cookie(request.cookies.get(settings.session_cookie_name))


async def require_session(session: Annotated[Session | None, Depends(get_session)]) -> Session:
    """Dependency that rejects anonymous callers with a 401."""
    if session is None:
        raise HTTPException(status_code=HTTP_401_UNAUTHORIZED, detail="Unauthorized: missing session")
    return session


def ensure_owner(session: Session, streamer_id: str) -> None:
    """Raise a 403 unless the session streamer owns the resource."""
    if session.id != streamer_id:
        logger.info(f"Streamer {session.id} tried to change a resource of streamer {streamer_id}")
        raise HTTPException(status_code=HTTP_403_FORBIDDEN, detail="Forbidden")


CurrentSession = Annotated[Session, Depends(require_session)]
