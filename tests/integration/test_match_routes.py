"""HTTP tests for the league, season and match routes."""

import pytest
from httpx import AsyncClient


async def _setup(app_client: AsyncClient, score_type: str = "elo", players: int = 4):
    league = (await app_client.post("/api/leagues", json={"name": "Office League"})).json()
    season = (
        await app_client.post(
            f"/api/leagues/{league['id']}/seasons",
            json={"name": "Spring", "score_type": score_type},
        )
    ).json()
    season_player_ids = []
    for index in range(players):
        player = (
            await app_client.post(
                f"/api/leagues/{league['id']}/players",
                json={"user_id": f"user-{index}", "name": f"Player {index}"},
            )
        ).json()
        joined = await app_client.put(f"/api/seasons/{season['id']}/players/{player['id']}")
        assert joined.status_code == 200
        season_player_ids.append(joined.json()["id"])
    return league, season, season_player_ids


@pytest.mark.asyncio
async def test_create_and_remove_match(app_client: AsyncClient):
    _, season, sp = await _setup(app_client)

    response = await app_client.post(
        f"/api/seasons/{season['id']}/matches",
        json={
            "home_season_player_ids": [sp[0]],
            "away_season_player_ids": [sp[1]],
            "home_score": 10,
            "away_score": 2,
        },
    )
    assert response.status_code == 201
    match = response.json()

    latest = await app_client.get(f"/api/seasons/{season['id']}/matches/latest")
    assert latest.json()["id"] == match["id"]

    standings = (await app_client.get(f"/api/seasons/{season['id']}/standings")).json()
    assert standings[0]["season_player_id"] == sp[0]
    assert standings[0]["score"] == 1216

    removed = await app_client.delete(f"/api/seasons/{season['id']}/matches/{match['id']}")
    assert removed.status_code == 200
    assert sorted(removed.json()["season_player_ids"]) == sorted(sp[:2])

    missing = await app_client.get(f"/api/seasons/{season['id']}/matches/{match['id']}")
    assert missing.status_code == 404


@pytest.mark.asyncio
async def test_uneven_rosters_return_validation_error(app_client: AsyncClient):
    _, season, sp = await _setup(app_client)

    response = await app_client.post(
        f"/api/seasons/{season['id']}/matches",
        json={
            "home_season_player_ids": [sp[0], sp[1]],
            "away_season_player_ids": [sp[2]],
            "home_score": 1,
            "away_score": 0,
        },
    )

    assert response.status_code == 422
    assert response.json()["detail"]["code"] == "VALIDATION_ERROR"


@pytest.mark.asyncio
async def test_removing_older_match_is_forbidden(app_client: AsyncClient):
    _, season, sp = await _setup(app_client)
    ids = []
    for home, away in ((sp[0], sp[1]), (sp[2], sp[3])):
        response = await app_client.post(
            f"/api/seasons/{season['id']}/matches",
            json={
                "home_season_player_ids": [home],
                "away_season_player_ids": [away],
                "home_score": 1,
                "away_score": 0,
            },
        )
        ids.append(response.json()["id"])

    response = await app_client.delete(f"/api/seasons/{season['id']}/matches/{ids[0]}")

    assert response.status_code == 403
    assert response.json()["detail"]["code"] == "FORBIDDEN"


@pytest.mark.asyncio
async def test_closed_season_is_forbidden(app_client: AsyncClient):
    _, season, sp = await _setup(app_client)
    closed = await app_client.post(f"/api/seasons/{season['id']}/close")
    assert closed.json()["closed"] is True

    response = await app_client.post(
        f"/api/seasons/{season['id']}/matches",
        json={
            "home_season_player_ids": [sp[0]],
            "away_season_player_ids": [sp[1]],
            "home_score": 1,
            "away_score": 0,
        },
    )

    assert response.status_code == 403


@pytest.mark.asyncio
async def test_missing_acting_user_is_unauthorized(app_client: AsyncClient):
    _, season, sp = await _setup(app_client)

    response = await app_client.post(
        f"/api/seasons/{season['id']}/matches",
        json={
            "home_season_player_ids": [sp[0]],
            "away_season_player_ids": [sp[1]],
            "home_score": 1,
            "away_score": 0,
        },
        headers={"X-User-Id": ""},
    )

    assert response.status_code == 401


@pytest.mark.asyncio
async def test_negative_score_is_rejected(app_client: AsyncClient):
    _, season, sp = await _setup(app_client)

    response = await app_client.post(
        f"/api/seasons/{season['id']}/matches",
        json={
            "home_season_player_ids": [sp[0]],
            "away_season_player_ids": [sp[1]],
            "home_score": -1,
            "away_score": 0,
        },
    )

    assert response.status_code == 422


@pytest.mark.asyncio
async def test_fixture_flow(app_client: AsyncClient):
    _, season, sp = await _setup(app_client, score_type="3-1-0", players=3)
    assert season["k_factor"] == -1
    assert season["initial_score"] == 0

    generated = await app_client.post(f"/api/seasons/{season['id']}/fixtures")
    assert generated.status_code == 201
    fixtures = generated.json()
    assert len(fixtures) == 3

    response = await app_client.post(
        f"/api/seasons/{season['id']}/matches/fixture",
        json={"fixture_id": fixtures[0]["id"], "home_score": 2, "away_score": 1},
    )
    assert response.status_code == 201

    again = await app_client.post(f"/api/seasons/{season['id']}/fixtures")
    assert again.status_code == 409

    listed = (await app_client.get(f"/api/seasons/{season['id']}/fixtures")).json()
    assert listed[0]["match_id"] == response.json()["id"]


@pytest.mark.asyncio
async def test_duplicate_league_player_conflicts(app_client: AsyncClient):
    league = (await app_client.post("/api/leagues", json={"name": "Office League"})).json()
    payload = {"user_id": "user-1", "name": "Ada Lovelace"}

    first = await app_client.post(f"/api/leagues/{league['id']}/players", json=payload)
    second = await app_client.post(f"/api/leagues/{league['id']}/players", json=payload)

    assert first.status_code == 201
    assert second.status_code == 409


@pytest.mark.asyncio
async def test_health(app_client: AsyncClient):
    response = await app_client.get("/health")
    assert response.json() == {"status": "ok"}
