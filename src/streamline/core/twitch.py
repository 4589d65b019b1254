from datetime import datetime, timedelta
from urllib.parse import urlencode, urljoin

import httpx
from loguru import logger

from streamline.core.redis import Redis
from streamline.core.schemas.twitch import TokenResponse, User
from streamline.core.settings import settings


class TwitchAuthError(Exception):
    pass


class TwitchAPI:
    """A class for handling Twitch API requests.

    Holds the app access token (client credentials) shared by the Helix and IGDB
    calls, and performs the authorization code flow used to log streamers in.
    """

    def __init__(
        self,
        client_id: str,
        client_secret: str,
        redis: Redis,
        api_base_url: str = settings.twitch_api_base_url,
        oauth_url: str = settings.twitch_oauth_url,
    ) -> None:
        self._client_id = client_id
        self._client_secret = client_secret
        self._redis: Redis = redis
        self._api_base_url = api_base_url
        self._oauth_url = oauth_url
        self._httpx_client = httpx.AsyncClient()
        self._access_token: str | None = None
        self._access_token_expires: datetime | None = None

    @property
    def client_id(self) -> str:
        return self._client_id

    async def shutdown(self):
        logger.info("Shutting down HTTPX Twitch client")
        await self._httpx_client.aclose()

    async def authorize(self):
        logger.info("Authorizing Twitch API")

        self._access_token = await self._redis.get(self._redis.key("twitch", "access_token"))
        if self._access_token is None:
            logger.info("No cached access token found, generating new one")
            await self.generate_token()
            logger.info("Twitch API authorized")
            return

        ttl = await self._redis.get_ttl(self._redis.key("twitch", "access_token"))
        if ttl:
            # -5 seconds just to be safe
            self._access_token_expires = datetime.utcnow() + timedelta(seconds=ttl - 5)

        logger.info("Twitch API authorized")

    async def generate_token(self):
        logger.info("Generating new Twitch access token")
        params = {
            "client_id": self._client_id,
            "client_secret": self._client_secret,
            "grant_type": "client_credentials",
        }
        try:
            r = await self._httpx_client.post(self._oauth_url, params=params)
            response: dict = r.json()
        except httpx.RequestError as e:
            logger.exception("Twitch access token request failed")
            raise e

        if "access_token" not in response:
            logger.error(f"Twitch access token request failed. {response}")
            logger.debug(f"Access token request to {self._oauth_url} failed. Status code: {r.status_code}")
            raise TwitchAuthError("Could not generate a Twitch app access token")

        self._access_token = str(response["access_token"])
        self._access_token_expires = datetime.utcnow() + timedelta(seconds=response["expires_in"])
        await self._redis.set(self._redis.key("twitch", "access_token"), self._access_token, ttl=response["expires_in"])
        logger.info("New Twitch access token generated")

    async def invalidate_token(self):
        """Forget the app access token, in memory and in the cache."""
        logger.info("Dropping the cached Twitch access token")
        self._access_token = None
        self._access_token_expires = None
        await self._redis.delete(self._redis.key("twitch", "access_token"))

    async def _ensure_token(self):
        if (not self._access_token) or (self._access_token_expires is None):
            logger.debug("Twitch access token is not set")
            return await self.generate_token()

        if datetime.utcnow() > self._access_token_expires:
            logger.debug("Twitch access token expired")
            return await self.generate_token()

    async def app_headers(self) -> dict[str, str]:
        """Headers for requests authenticated with the app access token."""
        await self._ensure_token()
        return {
            "Client-ID": self._client_id,
            "Authorization": f"Bearer {self._access_token}",
        }

    async def get(self, path: str, params: dict | None = None, user_token: str | None = None) -> httpx.Response:
        """Makes a GET request to the Helix API with the app token, or with `user_token` if given"""
        url = urljoin(self._api_base_url, path)
        if user_token:
            headers = {"Client-ID": self._client_id, "Authorization": f"Bearer {user_token}"}
        else:
            headers = await self.app_headers()

        response = await self._send_get(url, params, headers)
        if response.status_code == httpx.codes.UNAUTHORIZED and not user_token:
            # the app token was revoked before its expiration
            await self.invalidate_token()
            response = await self._send_get(url, params, await self.app_headers())

        response.raise_for_status()
        return response

    async def _send_get(self, url: str, params: dict | None, headers: dict[str, str]) -> httpx.Response:
        try:
            logger.debug(f"Making GET request to {url} with params {params}")
            response = await self._httpx_client.get(url, params=params, headers=headers)
            logger.debug(f"Get request to {url} with params {params} returned {response.status_code}")
        except httpx.RequestError as e:
            logger.exception(f"Request to {url} with params {params} failed")
            raise e
        return response

    def authorize_url(self, redirect_uri: str, state: str, scope: str = settings.twitch_scopes) -> str:
        """URL that starts the authorization code flow, `state` is echoed back to the callback."""
        params = {
            "client_id": self._client_id,
            "redirect_uri": redirect_uri,
            "response_type": "code",
            "scope": scope,
            "state": state,
        }
        return f"{settings.twitch_authorize_url}?{urlencode(params)}"

    async def exchange_code(self, code: str, redirect_uri: str) -> TokenResponse:
        """Trade an authorization code for a user access token."""
        logger.info("Exchanging Twitch authorization code")
        data = {
            "client_id": self._client_id,
            "client_secret": self._client_secret,
            "code": code,
            "grant_type": "authorization_code",
            "redirect_uri": redirect_uri,
        }
        try:
            r = await self._httpx_client.post(self._oauth_url, data=data)
        except httpx.RequestError as e:
            logger.exception("Twitch code exchange request failed")
            raise e

        if r.status_code != httpx.codes.OK:
            logger.error(f"Twitch code exchange failed with status {r.status_code}")
            raise TwitchAuthError("Failed to exchange code")
        return TokenResponse(**r.json())

    async def get_user(self, user_token: str | None = None, login: str | None = None) -> User | None:
        """Fetches the user owning `user_token`, or the user with the given `login`."""
        if user_token is None and login is None:
            raise ValueError("user_token or login is required")

        logger.debug(f"Fetching Twitch user {login or '(token owner)'}")
        params = {"login": login} if login else None
        response = await self.get("users", params=params, user_token=user_token)
        if users := [User(**x) for x in response.json()["data"]]:
            return users[0]
        return None
