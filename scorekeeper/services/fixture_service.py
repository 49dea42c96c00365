"""Round-robin fixture generation for 3-1-0 seasons."""

from __future__ import annotations

import logging
from typing import Optional, Sequence

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from scorekeeper.errors import ConflictError, ForbiddenError, ValidationError
from scorekeeper.models.fields import ScoreType
from scorekeeper.models.seasons import FixtureRead
from scorekeeper.schemas.fixtures import Fixture
from scorekeeper.schemas.seasons import SeasonPlayer
from scorekeeper.services.match_service import get_season

logger = logging.getLogger(__name__)


def round_robin_pairings(
    participant_ids: Sequence[int], rounds: int = 1
) -> list[tuple[int, int, int]]:
    """Return (round, home_id, away_id) so every pair meets once per round.

    Circle method; an odd field gets a bye slot which is skipped. Home and
    away are swapped on even rounds.
    """
    ids: list[Optional[int]] = list(participant_ids)
    if len(ids) < 2:
        return []
    if len(ids) % 2:
        ids.append(None)

    half = len(ids) // 2
    pairings: list[tuple[int, int, int]] = []
    for round_number in range(1, rounds + 1):
        rotation = list(ids)
        for _ in range(len(ids) - 1):
            for i in range(half):
                home, away = rotation[i], rotation[-1 - i]
                if home is None or away is None:
                    continue
                if round_number % 2 == 0:
                    home, away = away, home
                pairings.append((round_number, home, away))
            rotation = [rotation[0], rotation[-1], *rotation[1:-1]]
    return pairings


def _fixture_read(fixture: Fixture) -> FixtureRead:
    return FixtureRead(
        id=fixture.id,  # type: ignore[arg-type]
        round=fixture.round,
        home_season_player_id=fixture.home_player_id,
        away_season_player_id=fixture.away_player_id,
        match_id=fixture.match_id,
    )


async def generate_fixtures(db: AsyncSession, *, season_id: int) -> list[FixtureRead]:
    """Create the season's full fixture list from its current season players."""
    async with db.begin():
        season = await get_season(db, season_id)
        if season.score_type != ScoreType.three_one_zero:
            raise ForbiddenError("This season does not support fixtures")

        count_result = await db.execute(
            select(func.count())
            .select_from(Fixture)
            .where(Fixture.season_id == season_id)  # type: ignore[arg-type]
        )
        if count_result.scalar():
            raise ConflictError("Fixtures already generated for this season")

        players_result = await db.execute(
            select(SeasonPlayer.id)
            .where(
                SeasonPlayer.season_id == season_id,  # type: ignore[arg-type]
                SeasonPlayer.disabled.is_(False),  # type: ignore[attr-defined]
            )
            .order_by(SeasonPlayer.id)  # type: ignore[arg-type]
        )
        participant_ids = list(players_result.scalars().all())
        if len(participant_ids) < 2:
            raise ValidationError("At least two players are needed to generate fixtures")

        fixtures = [
            Fixture(
                season_id=season_id,
                round=round_number,
                home_player_id=home_id,
                away_player_id=away_id,
            )
            for round_number, home_id, away_id in round_robin_pairings(
                participant_ids, season.rounds or 1
            )
        ]
        db.add_all(fixtures)
        await db.flush()

    logger.info("Generated %d fixtures for season %s", len(fixtures), season_id)
    return [_fixture_read(fixture) for fixture in fixtures]


async def list_fixtures(db: AsyncSession, season_id: int) -> list[FixtureRead]:
    async with db.begin():
        result = await db.execute(
            select(Fixture)
            .where(Fixture.season_id == season_id)  # type: ignore[arg-type]
            .order_by(Fixture.round, Fixture.id)  # type: ignore[arg-type]
        )
        fixtures = list(result.scalars().all())
    return [_fixture_read(fixture) for fixture in fixtures]
