import httpx
import pytest

from streamline.core.igdb import GameDetails

pytestmark = pytest.mark.asyncio


async def test_search_requires_query(test_client, igdb_client):
    response = await test_client.get("/api/igdb/search", params={"q": "  "})

    assert response.status_code == 400
    assert response.json() == {"error": "Parâmetro 'q' é obrigatório"}
    igdb_client.search_games.assert_not_called()


@pytest.mark.parametrize("limit, expected", [(None, 10), ("abc", 10), ("5", 5), ("500", 50), ("0", 10)])
async def test_search_limit(test_client, igdb_client, limit, expected):
    igdb_client.search_games.return_value = [{"id": 1, "name": "Hades"}]
    params = {"q": "hades"} if limit is None else {"q": "hades", "limit": limit}

    response = await test_client.get("/api/igdb/search", params=params)

    assert response.status_code == 200
    assert response.json() == {"results": [{"id": 1, "name": "Hades"}]}
    igdb_client.search_games.assert_awaited_once_with("hades", expected)


async def test_game_details(test_client, igdb_client):
    igdb_client.get_game_details.return_value = GameDetails(
        id=113112, title="Hades", image="https://images.igdb.com/x.jpg", release_date="17/09/2020"
    )

    response = await test_client.get("/api/igdb/games/113112")

    assert response.status_code == 200
    game = response.json()["game"]
    assert game["title"] == "Hades"
    assert game["releaseDate"] == "17/09/2020"
    assert game["storeLinks"] == []


async def test_game_details_not_found(test_client, igdb_client):
    igdb_client.get_game_details.return_value = None

    response = await test_client.get("/api/igdb/games/42")

    assert response.status_code == 404
    assert response.json() == {"error": "Jogo não encontrado"}


async def test_game_details_upstream_error(test_client, igdb_client):
    igdb_client.get_game_details.side_effect = httpx.ConnectError("boom")

    response = await test_client.get("/api/igdb/games/42")
    assert response.status_code == 500
    assert "error" in response.json()


async def test_game_details_invalid_id(test_client):
    response = await test_client.get("/api/igdb/games/0")
    assert response.status_code == 400
