"""Integration tests for reverting the latest match of a season."""

import pytest
from sqlalchemy import select

from scorekeeper.errors import ForbiddenError, NotFoundError
from scorekeeper.models.fields import ScoreType
from scorekeeper.schemas.fixtures import Fixture
from scorekeeper.services import fixture_service, match_service

ADMIN = "user-admin"


async def _play(db_session, season_id, home, away, home_score=3, away_score=1):
    return await match_service.create_match(
        db_session,
        season_id=season_id,
        home_season_player_ids=home,
        away_season_player_ids=away,
        home_score=home_score,
        away_score=away_score,
        acting_user_id=ADMIN,
    )


@pytest.mark.asyncio
async def test_remove_latest_match_restores_scores(
    db_session, seed_season, read_scores, count_rows
):
    seeded = await seed_season()
    ada, grace = seeded.season_player_ids[:2]
    match = await _play(db_session, seeded.season_id, [ada], [grace])

    removal = await match_service.remove_match(
        db_session, season_id=seeded.season_id, match_id=match.id, acting_user_id=ADMIN
    )

    assert removal.match_id == match.id
    assert sorted(removal.season_player_ids) == sorted([ada, grace])
    assert removal.season_team_ids == []
    assert set((await read_scores(seeded.season_id)).values()) == {1200}
    assert await count_rows() == (0, 0, 0)
    assert await match_service.find_latest(db_session, seeded.season_id) is None


@pytest.mark.asyncio
async def test_remove_reverts_team_scores(
    db_session, seed_season, read_scores, read_team_scores, count_rows
):
    seeded = await seed_season()
    ada, grace, alan, edsger = seeded.season_player_ids
    match = await _play(db_session, seeded.season_id, [ada, grace], [alan, edsger])

    removal = await match_service.remove_match(
        db_session, season_id=seeded.season_id, match_id=match.id, acting_user_id=ADMIN
    )

    assert len(removal.season_team_ids) == 2
    assert set((await read_scores(seeded.season_id)).values()) == {1200}
    # Teams stay registered with their restored score
    assert set((await read_team_scores(seeded.season_id)).values()) == {1200}
    assert await count_rows() == (0, 0, 0)


@pytest.mark.asyncio
async def test_only_latest_match_can_be_removed(db_session, seed_season, read_scores):
    seeded = await seed_season()
    ada, grace, alan, edsger = seeded.season_player_ids
    first = await _play(db_session, seeded.season_id, [ada], [grace])
    second = await _play(db_session, seeded.season_id, [alan], [edsger])
    before = await read_scores(seeded.season_id)

    with pytest.raises(ForbiddenError, match="last match"):
        await match_service.remove_match(
            db_session, season_id=seeded.season_id, match_id=first.id, acting_user_id=ADMIN
        )

    assert await read_scores(seeded.season_id) == before
    latest = await match_service.find_latest(db_session, seeded.season_id)
    assert latest is not None
    assert latest.id == second.id


@pytest.mark.asyncio
async def test_removals_walk_back_the_chain(db_session, seed_season, read_scores):
    seeded = await seed_season()
    ada, grace = seeded.season_player_ids[:2]
    first = await _play(db_session, seeded.season_id, [ada], [grace])
    after_first = await read_scores(seeded.season_id)
    second = await _play(db_session, seeded.season_id, [grace], [ada], 5, 0)

    await match_service.remove_match(
        db_session, season_id=seeded.season_id, match_id=second.id, acting_user_id=ADMIN
    )
    assert await read_scores(seeded.season_id) == after_first

    await match_service.remove_match(
        db_session, season_id=seeded.season_id, match_id=first.id, acting_user_id=ADMIN
    )
    assert set((await read_scores(seeded.season_id)).values()) == {1200}


@pytest.mark.asyncio
async def test_remove_unknown_match_is_not_found(db_session, seed_season):
    seeded = await seed_season()

    with pytest.raises(NotFoundError):
        await match_service.remove_match(
            db_session, season_id=seeded.season_id, match_id=12345, acting_user_id=ADMIN
        )


@pytest.mark.asyncio
async def test_remove_match_from_other_season_is_not_found(db_session, seed_season):
    first = await seed_season()
    second = await seed_season(league_id=first.league_id)
    match = await _play(
        db_session, first.season_id, first.season_player_ids[:1], first.season_player_ids[1:2]
    )

    with pytest.raises(NotFoundError):
        await match_service.remove_match(
            db_session, season_id=second.season_id, match_id=match.id, acting_user_id=ADMIN
        )


@pytest.mark.asyncio
async def test_remove_fixture_match_reopens_the_fixture(db_session, seed_season, read_scores):
    seeded = await seed_season(score_type=ScoreType.three_one_zero)
    fixtures = await fixture_service.generate_fixtures(db_session, season_id=seeded.season_id)
    match = await match_service.create_fixture_match(
        db_session,
        season_id=seeded.season_id,
        fixture_id=fixtures[0].id,
        home_score=2,
        away_score=2,
        acting_user_id=ADMIN,
    )

    await match_service.remove_match(
        db_session, season_id=seeded.season_id, match_id=match.id, acting_user_id=ADMIN
    )

    async with db_session.begin():
        result = await db_session.execute(
            select(Fixture.match_id).where(Fixture.id == fixtures[0].id)
        )
        assert result.scalar_one() is None
    assert set((await read_scores(seeded.season_id)).values()) == {0}
