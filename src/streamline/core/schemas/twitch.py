from datetime import datetime

from pydantic import BaseModel


class TokenResponse(BaseModel):
    """Model for a Twitch OAuth token response"""

    access_token: str
    expires_in: int
    token_type: str = "bearer"
    refresh_token: str | None = None
    scope: list[str] = []


class User(BaseModel):
    """Model for a Twitch user returned by `helix/users`"""

    id: str
    login: str
    display_name: str = ""
    type: str = ""
    broadcaster_type: str = ""
    description: str = ""
    profile_image_url: str = ""
    offline_image_url: str = ""
    view_count: int = 0
    email: str | None = None
    created_at: datetime | None = None

    @property
    def name(self) -> str:
        return self.display_name or self.login

    @property
    def channel_url(self) -> str:
        return f"https://twitch.tv/{self.login}"
