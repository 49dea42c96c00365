"""Team aggregate resolution for multi-player rosters.

A team is identified by the exact set of league players who played together.
The set is canonicalised into ``LeagueTeam.roster_key`` so lookup is a single
indexed equality match; a roster that only partially overlaps an existing
team resolves to a different team.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Sequence

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from scorekeeper.models.seasons import TeamRead
from scorekeeper.schemas.leagues import Player
from scorekeeper.schemas.seasons import Season
from scorekeeper.schemas.teams import LeagueTeam, LeagueTeamPlayer, SeasonTeam, roster_key

logger = logging.getLogger(__name__)


def build_team_name(players: Sequence[Player]) -> str:
    """Name a new team from its members' first names, e.g. 'Ada & Grace'."""
    return " & ".join(player.first_name for player in players)


async def _get_or_create_league_team(
    db: AsyncSession,
    *,
    league_id: int,
    players: Sequence[Player],
    now: datetime,
) -> LeagueTeam:
    key = roster_key(player.id for player in players)  # type: ignore[misc]
    result = await db.execute(
        select(LeagueTeam).where(
            LeagueTeam.league_id == league_id,  # type: ignore[arg-type]
            LeagueTeam.roster_key == key,  # type: ignore[arg-type]
        )
    )
    team = result.scalar_one_or_none()
    if team is not None:
        return team

    team = LeagueTeam(
        league_id=league_id,
        name=build_team_name(players),
        roster_key=key,
        created_at=now,
        updated_at=now,
    )
    db.add(team)
    await db.flush()
    assert team.id is not None
    db.add_all(
        [
            LeagueTeamPlayer(team_id=team.id, player_id=player.id, created_at=now)  # type: ignore[arg-type]
            for player in players
        ]
    )
    await db.flush()
    logger.info("Created team %s (%r) for roster %s", team.id, team.name, key)
    return team


async def get_or_create_season_team(
    db: AsyncSession,
    *,
    season: Season,
    players: Sequence[Player],
    now: datetime,
) -> SeasonTeam:
    """Resolve the season team for exactly ``players``, creating rows as needed.

    Must run inside the caller's transaction. The returned row is locked for
    update where the backend supports it.
    """
    team = await _get_or_create_league_team(
        db, league_id=season.league_id, players=players, now=now
    )
    result = await db.execute(
        select(SeasonTeam)
        .where(
            SeasonTeam.season_id == season.id,  # type: ignore[arg-type]
            SeasonTeam.team_id == team.id,  # type: ignore[arg-type]
        )
        .with_for_update()
        .execution_options(populate_existing=True)
    )
    season_team = result.scalar_one_or_none()
    if season_team is not None:
        return season_team

    season_team = SeasonTeam(
        season_id=season.id,  # type: ignore[arg-type]
        team_id=team.id,  # type: ignore[arg-type]
        score=season.initial_score,
        created_at=now,
        updated_at=now,
    )
    db.add(season_team)
    await db.flush()
    return season_team


async def list_league_teams(db: AsyncSession, league_id: int) -> list[TeamRead]:
    """Return the league's teams with their member player ids, ordered by name."""
    async with db.begin():
        teams_result = await db.execute(
            select(LeagueTeam)
            .where(LeagueTeam.league_id == league_id)  # type: ignore[arg-type]
            .order_by(LeagueTeam.name)  # type: ignore[arg-type]
        )
        teams = list(teams_result.scalars().all())
        members_result = await db.execute(
            select(LeagueTeamPlayer.team_id, LeagueTeamPlayer.player_id).where(
                LeagueTeamPlayer.team_id.in_([team.id for team in teams])  # type: ignore[attr-defined]
            )
        )
        members: dict[int, list[int]] = {}
        for row in members_result.all():
            members.setdefault(row.team_id, []).append(row.player_id)

    return [
        TeamRead(
            id=team.id,  # type: ignore[arg-type]
            name=team.name,
            player_ids=sorted(members.get(team.id, [])),  # type: ignore[arg-type]
        )
        for team in teams
    ]
