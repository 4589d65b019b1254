STATUSES = ("to_play", "playing", "finished", "dropped")

# Used by the table view when sorting by status
STATUS_PRIORITY = {"playing": 3, "to_play": 2, "finished": 1, "dropped": 0}

# Notes are only displayed for games that left the backlog
STATUSES_WITH_NOTES = ("finished", "dropped")

PLACEHOLDER_IMAGE_URL = "https://images.unsplash.com/photo-1552820728-8b83bb6b773f?w=800&q=80"

DEFAULT_GAME_TITLE = "Jogo"

WEEKDAYS = (
    "Segunda-feira",
    "Terça-feira",
    "Quarta-feira",
    "Quinta-feira",
    "Sexta-feira",
    "Sábado",
    "Domingo",
)

IGDB_SEARCH_DEFAULT_LIMIT = 10
IGDB_SEARCH_MAX_LIMIT = 50
IGDB_SEARCH_FIELDS = "id,name,cover.url,screenshots.url,summary,genres.name,platforms.name,websites.url"
IGDB_DETAIL_FIELDS = (
    "id,name,cover.url,screenshots.url,summary,genres.name,platforms.name,"
    "release_dates.date,websites.url,videos.video_id"
)

TABLE_PAGE_SIZE = 12
