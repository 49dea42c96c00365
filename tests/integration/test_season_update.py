"""Integration tests for editing a season."""

from datetime import timedelta

import pytest
from httpx import AsyncClient

from scorekeeper.errors import ValidationError
from scorekeeper.models.fields import ScoreType
from scorekeeper.models.seasons import SeasonCreate, SeasonUpdate
from scorekeeper.schemas.base import utcnow
from scorekeeper.services import league_service, season_service

ADMIN = "user-admin"


async def _future_season(db_session, **fields):
    league = await league_service.create_league(db_session, name="Office League", acting_user_id=ADMIN)
    return await season_service.create_season(
        db_session,
        league_id=league.id,
        payload=SeasonCreate(name="Autumn", start_date=utcnow() + timedelta(days=7), **fields),
        acting_user_id=ADMIN,
    )


@pytest.mark.asyncio
async def test_started_season_can_be_renamed(db_session, seed_season):
    seeded = await seed_season()

    updated = await season_service.update_season(
        db_session,
        season_id=seeded.season_id,
        payload=SeasonUpdate(name="Spring Cup"),
        acting_user_id=ADMIN,
    )

    assert updated.name == "Spring Cup"
    assert updated.slug == "spring"


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "changes",
    [
        {"k_factor": 16},
        {"initial_score": 1000},
        {"score_type": ScoreType.three_one_zero},
        {"name": "Renamed", "end_date": utcnow() + timedelta(days=30)},
    ],
)
async def test_started_season_rejects_other_changes(db_session, seed_season, changes):
    seeded = await seed_season()

    with pytest.raises(ValidationError, match="has started"):
        await season_service.update_season(
            db_session,
            season_id=seeded.season_id,
            payload=SeasonUpdate(**changes),
            acting_user_id=ADMIN,
        )

    season = await season_service.get_season_read(db_session, seeded.season_id)
    assert (season.name, season.k_factor, season.initial_score) == ("Spring", 32, 1200)


@pytest.mark.asyncio
async def test_unstarted_season_switches_score_type(db_session):
    season = await _future_season(db_session)

    updated = await season_service.update_season(
        db_session,
        season_id=season.id,
        payload=SeasonUpdate(score_type=ScoreType.three_one_zero, rounds=2),
        acting_user_id=ADMIN,
    )

    assert updated.score_type == ScoreType.three_one_zero
    assert (updated.initial_score, updated.k_factor, updated.rounds) == (0, -1, 2)

    back = await season_service.update_season(
        db_session,
        season_id=season.id,
        payload=SeasonUpdate(score_type=ScoreType.elo, k_factor=24),
        acting_user_id=ADMIN,
    )
    assert (back.initial_score, back.k_factor, back.rounds) == (1200, 24, None)


@pytest.mark.asyncio
async def test_unstarted_season_validates_scoring(db_session):
    season = await _future_season(db_session)

    with pytest.raises(ValidationError):
        await season_service.update_season(
            db_session,
            season_id=season.id,
            payload=SeasonUpdate(k_factor=0),
            acting_user_id=ADMIN,
        )
    with pytest.raises(ValidationError):
        await season_service.update_season(
            db_session,
            season_id=season.id,
            payload=SeasonUpdate(rounds=2),
            acting_user_id=ADMIN,
        )


@pytest.mark.asyncio
async def test_scoring_is_fixed_once_players_join(db_session, seed_season):
    seeded = await seed_season(start_date=utcnow() + timedelta(days=7))

    with pytest.raises(ValidationError, match="joined"):
        await season_service.update_season(
            db_session,
            season_id=seeded.season_id,
            payload=SeasonUpdate(initial_score=1000),
            acting_user_id=ADMIN,
        )

    new_start = utcnow() + timedelta(days=14)
    updated = await season_service.update_season(
        db_session,
        season_id=seeded.season_id,
        payload=SeasonUpdate(start_date=new_start, end_date=new_start + timedelta(days=60)),
        acting_user_id=ADMIN,
    )
    assert updated.start_date == new_start
    assert updated.initial_score == 1200


@pytest.mark.asyncio
async def test_end_date_cannot_move_before_start(db_session):
    season = await _future_season(db_session)

    with pytest.raises(ValidationError, match="end_date"):
        await season_service.update_season(
            db_session,
            season_id=season.id,
            payload=SeasonUpdate(end_date=utcnow()),
            acting_user_id=ADMIN,
        )


@pytest.mark.asyncio
async def test_patch_season_route(app_client: AsyncClient):
    league = (await app_client.post("/api/leagues", json={"name": "Office League"})).json()
    season = (
        await app_client.post(f"/api/leagues/{league['id']}/seasons", json={"name": "Spring"})
    ).json()

    renamed = await app_client.patch(f"/api/seasons/{season['id']}", json={"name": "Spring Cup"})
    assert renamed.status_code == 200
    assert renamed.json()["name"] == "Spring Cup"

    rejected = await app_client.patch(f"/api/seasons/{season['id']}", json={"k_factor": 10})
    assert rejected.status_code == 422
    assert rejected.json()["detail"]["code"] == "VALIDATION_ERROR"

    missing = await app_client.patch("/api/seasons/999999", json={"name": "Nope"})
    assert missing.status_code == 404
