from streamline.core.constants import PLACEHOLDER_IMAGE_URL

THUMBNAIL_SEGMENT = "/t_thumb/"

LARGE = "t_1080p"
MEDIUM = "t_720p"
COVER = "t_cover_big"


def normalize_image_url(raw: str | None, size: str = LARGE, png: bool = True) -> str:
    """Turn a raw IGDB image url into a displayable one.

    Protocol-relative urls get `https:`, the thumbnail segment is swapped for `size`
    and, when `png` is set, a trailing `.jpg` becomes `.png`. Empty input gives the
    placeholder image. Applying it to an already normalized url returns it unchanged.
    """
    if not raw:
        return PLACEHOLDER_IMAGE_URL

    url = f"https:{raw}" if raw.startswith("//") else raw
    url = url.replace(THUMBNAIL_SEGMENT, f"/{size}/")
    if png and url.endswith(".jpg"):
        url = url[: -len(".jpg")] + ".png"
    return url or PLACEHOLDER_IMAGE_URL


def cover_url(raw: str | None) -> str | None:
    """Large cover art for catalog details, None when the game has no cover."""
    if not raw:
        return None
    return normalize_image_url(raw, size=COVER, png=False)
