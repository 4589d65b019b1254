import secrets
from typing import Annotated
from urllib.parse import urljoin

import orjson
from fastapi import APIRouter, Cookie
from fastapi.responses import JSONResponse, RedirectResponse
from loguru import logger

from streamline.core.dependencies.auth import CurrentSession
from streamline.core.dependencies.database import Streamers
from streamline.core.dependencies.twitch import Twitch
from streamline.core.schemas.streamers import PublicSession, Session
from streamline.core.schemas.twitch import User
from streamline.core.settings import settings

router = APIRouter(tags=["Auth"])


def frontend_redirect(path: str) -> RedirectResponse:
    return RedirectResponse(urljoin(settings.frontend_base_url, path), status_code=307)


def auth_error(code: str) -> RedirectResponse:
    return frontend_redirect(f"/auth?error={code}")


def session_from_user(user: User, access_token: str) -> Session:
    return Session(
        id=user.id,
        name=user.name,
        twitch_username=user.login,
        avatar=user.profile_image_url,
        bio=user.description,
        twitch_url=user.channel_url,
        followers=str(user.view_count),
        access_token=access_token,
        broadcaster_type=user.broadcaster_type,
        created_at=user.created_at.isoformat() if user.created_at else None,
    )


@router.get("/api/auth/twitch/login", summary="Redirect to the Twitch authorization page.")
async def twitch_login(twitch: Twitch) -> RedirectResponse:
    state = secrets.token_urlsafe(16)
    response = RedirectResponse(twitch.authorize_url(settings.twitch_redirect_uri, state), status_code=307)
    response.set_cookie(
        settings.oauth_state_cookie_name,
        state,
        max_age=settings.oauth_state_max_age,
        httponly=True,
        samesite="lax",
    )
    return response


@router.get("/api/auth/twitch/callback", summary="Twitch OAuth callback.")
async def twitch_callback(
    twitch: Twitch,
    streamers: Streamers,
    code: str | None = None,
    error: str | None = None,
    state: str | None = None,
    expected_state: Annotated[str | None, Cookie(alias=settings.oauth_state_cookie_name)] = None,
) -> RedirectResponse:
    """
    Exchanges the authorization code, creates or refreshes the streamer and stores
    the session cookie. The `state` query parameter must match the cookie set by the
    login redirect. Every failure redirects to `/auth?error=<code>` with one of
    `access_denied`, `invalid_state`, `no_code`, `no_user` or `callback_error`.
    """
    if error:
        logger.info(f"Twitch authorization denied: {error}")
        return auth_error("access_denied")

    if not state or not expected_state or not secrets.compare_digest(state, expected_state):
        logger.warning("Twitch callback with a missing or mismatched state")
        return auth_error("invalid_state")

    if not code:
        return auth_error("no_code")

    try:
        token = await twitch.exchange_code(code, settings.twitch_redirect_uri)
        user = await twitch.get_user(user_token=token.access_token)
        if user is None:
            logger.info("Twitch returned no user for the exchanged token")
            return auth_error("no_user")

        await streamers.upsert_from_twitch(user)
    except Exception as e:
        logger.exception(f"Auth callback error: {e}")
        return auth_error("callback_error")

    logger.info(f"Streamer {user.login} logged in")
    response = frontend_redirect("/admin")
    response.delete_cookie(settings.oauth_state_cookie_name)
    session = session_from_user(user, token.access_token)
    response.set_cookie(
        settings.session_cookie_name,
        orjson.dumps(session.model_dump(by_alias=True)).decode("utf-8"),
        max_age=settings.session_max_age,
        httponly=False,
        samesite="lax",
    )
    return response


@router.post("/api/auth/logout")
async def logout() -> JSONResponse:
    response = JSONResponse({"ok": True})
    response.delete_cookie(settings.session_cookie_name)
    return response


@router.get("/api/me", response_model=PublicSession)
async def get_me(session: CurrentSession) -> PublicSession:
    return PublicSession.model_validate(session.model_dump())
