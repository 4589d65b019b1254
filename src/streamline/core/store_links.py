import re
from urllib.parse import urlparse

from streamline.core.schemas.games import StoreLink

OFFICIAL_SITE = "Site Oficial"

STORE_MATCHERS: list[tuple[str, re.Pattern]] = [
    ("Steam", re.compile(r"store\.steampowered\.com", re.I)),
    ("Epic Games", re.compile(r"(^|\.)epicgames\.com", re.I)),
    ("GOG", re.compile(r"(^|\.)gog\.com", re.I)),
    ("PlayStation", re.compile(r"store\.playstation\.com", re.I)),
    ("Xbox", re.compile(r"(^|\.)xbox\.com|(^|\.)microsoft\.com", re.I)),
    ("Nintendo", re.compile(r"(^|\.)nintendo\.com|(^|\.)nintendo\.co\.", re.I)),
    ("Battle.net", re.compile(r"(^|\.)battle\.net", re.I)),
    ("EA", re.compile(r"(^|\.)ea\.com|(^|\.)origin\.com", re.I)),
    ("Ubisoft", re.compile(r"(^|\.)ubisoft\.com|(^|\.)ubi\.com", re.I)),
    ("Riot Games", re.compile(r"(^|\.)riotgames\.com|(^|\.)leagueoflegends\.com", re.I)),
]

BLACKLISTED_HOSTS = [
    re.compile(p, re.I)
    for p in (
        r"wikipedia\.org",
        r"fandom\.com",
        r"(^|\.)twitter\.com|(^|\.)x\.com",
        r"youtube\.com|youtu\.be",
        r"discord\.gg|discord\.com",
        r"reddit\.com",
        r"facebook\.com",
        r"instagram\.com",
        r"twitch\.tv",
    )
]

BLACKLISTED_URLS = [re.compile(r"\bwiki\b", re.I)]


def _alnum(value: str) -> str:
    return re.sub(r"[^a-z0-9]+", "", value.lower())


def extract_store_links(urls: list[str], game_name: str | None = None) -> list[StoreLink]:
    """Pick storefront and official-site links out of a catalog website list.

    Official sites (host containing the game name) come first, then stores, each
    deduplicated by url. Social networks, wikis and video sites are dropped.
    """
    normalized_name = _alnum(game_name or "")
    official: list[StoreLink] = []
    stores: list[StoreLink] = []

    for raw in urls:
        if not raw:
            continue
        url = raw if raw.startswith("http") else "https://" + raw.lstrip("/")
        host = (urlparse(url).hostname or "").lower()
        if not host:
            continue

        if any(rx.search(host) for rx in BLACKLISTED_HOSTS):
            continue
        if any(rx.search(url) for rx in BLACKLISTED_URLS):
            continue

        store = next((name for name, rx in STORE_MATCHERS if rx.search(host)), None)
        if store:
            if all(s.url != url for s in stores):
                stores.append(StoreLink(name=store, url=url))
            continue

        if normalized_name and normalized_name in _alnum(host):
            if all(o.url != url for o in official):
                official.append(StoreLink(name=OFFICIAL_SITE, url=url))

    return official + stores
