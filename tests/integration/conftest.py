"""Seeding helpers for integration tests."""

from dataclasses import dataclass
from typing import Sequence

import pytest
import pytest_asyncio
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from scorekeeper.models.fields import ScoreType
from scorekeeper.models.seasons import SeasonCreate
from scorekeeper.schemas.matches import Match, MatchPlayer, MatchTeam
from scorekeeper.schemas.seasons import SeasonPlayer
from scorekeeper.schemas.teams import SeasonTeam
from scorekeeper.services import league_service, season_service

ADMIN = "user-admin"
DEFAULT_NAMES = ("Ada Lovelace", "Grace Hopper", "Alan Turing", "Edsger Dijkstra")


@dataclass
class SeededSeason:
    league_id: int
    season_id: int
    player_ids: list[int]
    season_player_ids: list[int]


@pytest_asyncio.fixture()
async def seed_season(db_session: AsyncSession):
    """Factory creating a league, its players and a season they have all joined."""

    async def _seed(
        score_type: ScoreType = ScoreType.elo,
        names: Sequence[str] = DEFAULT_NAMES,
        league_id: int | None = None,
        **season_fields,
    ) -> SeededSeason:
        if league_id is None:
            league = await league_service.create_league(
                db_session, name="Office League", acting_user_id=ADMIN
            )
            league_id = league.id
            players = [
                await league_service.add_player(
                    db_session,
                    league_id=league_id,
                    user_id=f"user-{index}",
                    name=name,
                )
                for index, name in enumerate(names)
            ]
        else:
            players = await league_service.list_players(db_session, league_id)

        season = await season_service.create_season(
            db_session,
            league_id=league_id,
            payload=SeasonCreate(name="Spring", score_type=score_type, **season_fields),
            acting_user_id=ADMIN,
        )
        season_players = [
            await season_service.join_season(
                db_session, season_id=season.id, player_id=player.id
            )
            for player in players
        ]
        return SeededSeason(
            league_id=league_id,
            season_id=season.id,
            player_ids=[player.id for player in players],
            season_player_ids=[sp.id for sp in season_players],
        )

    return _seed


@pytest.fixture()
def read_scores(db_session: AsyncSession):
    """Return {season_player_id: score} for a season."""

    async def _read(season_id: int) -> dict[int, int]:
        async with db_session.begin():
            result = await db_session.execute(
                select(SeasonPlayer.id, SeasonPlayer.score).where(
                    SeasonPlayer.season_id == season_id
                )
            )
            return {row.id: row.score for row in result.all()}

    return _read


@pytest.fixture()
def read_team_scores(db_session: AsyncSession):
    """Return {season_team_id: score} for a season."""

    async def _read(season_id: int) -> dict[int, int]:
        async with db_session.begin():
            result = await db_session.execute(
                select(SeasonTeam.id, SeasonTeam.score).where(
                    SeasonTeam.season_id == season_id
                )
            )
            return {row.id: row.score for row in result.all()}

    return _read


@pytest.fixture()
def count_rows(db_session: AsyncSession):
    """Return (matches, match_players, match_teams) row counts."""

    async def _count() -> tuple[int, int, int]:
        async with db_session.begin():
            counts = []
            for model in (Match, MatchPlayer, MatchTeam):
                result = await db_session.execute(select(func.count()).select_from(model))
                counts.append(result.scalar_one())
        return tuple(counts)  # type: ignore[return-value]

    return _count
