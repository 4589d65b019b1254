from streamline.core.store_links import OFFICIAL_SITE, extract_store_links


def as_pairs(links):
    return [(link.name, link.url) for link in links]


def test_official_site_comes_before_stores():
    urls = [
        "https://store.steampowered.com/app/1145360",
        "https://www.supergiantgames.com/games/hades",
        "https://hadesgame.com",
        "https://store.epicgames.com/p/hades",
    ]
    assert as_pairs(extract_store_links(urls, "Hades")) == [
        (OFFICIAL_SITE, "https://hadesgame.com"),
        ("Steam", "https://store.steampowered.com/app/1145360"),
        ("Epic Games", "https://store.epicgames.com/p/hades"),
    ]


def test_blacklisted_hosts_are_dropped():
    urls = [
        "https://en.wikipedia.org/wiki/Hades_(video_game)",
        "https://hades.fandom.com/wiki/Hades",
        "https://twitter.com/supergiantgames",
        "https://x.com/supergiantgames",
        "https://www.youtube.com/watch?v=abc",
        "https://discord.gg/hades",
        "https://www.twitch.tv/directory/game/Hades",
    ]
    assert extract_store_links(urls, "Hades") == []


def test_xbox_is_not_mistaken_for_x():
    links = extract_store_links(["https://www.xbox.com/games/store/hades/9p8dl6w0jbb8"], "Hades")
    assert as_pairs(links) == [("Xbox", "https://www.xbox.com/games/store/hades/9p8dl6w0jbb8")]


def test_bare_urls_get_https_and_duplicates_are_removed():
    urls = ["www.gog.com/game/hades", "https://www.gog.com/game/hades", ""]
    assert as_pairs(extract_store_links(urls, "Hades")) == [("GOG", "https://www.gog.com/game/hades")]


def test_without_game_name_only_stores_are_kept():
    urls = ["https://hadesgame.com", "https://store.playstation.com/concept/10001736"]
    assert as_pairs(extract_store_links(urls)) == [("PlayStation", "https://store.playstation.com/concept/10001736")]
