from datetime import datetime
from typing import Annotated
from zoneinfo import ZoneInfo

from fastapi import Depends

from streamline.core.settings import settings


def get_timezone() -> ZoneInfo:
    """Timezone used to split the schedule into days."""
    return ZoneInfo(settings.timezone)


def get_now(tz: Annotated[ZoneInfo, Depends(get_timezone)]) -> datetime:
    return datetime.now(tz)


Timezone = Annotated[ZoneInfo, Depends(get_timezone)]
Now = Annotated[datetime, Depends(get_now)]
