"""Match settlement and reversal.

Every public function here is one unit of work: it opens its own
transaction (``_write_transaction`` for writes, ``db.begin()`` for reads), so
a failure anywhere leaves no partial writes. Private helpers (``_*``) run
inside the caller's transaction.
"""

from __future__ import annotations

import logging
import math
from contextlib import asynccontextmanager
from dataclasses import dataclass
from datetime import datetime
from typing import AsyncIterator, Optional, Sequence

from sqlalchemy import delete, func, select, update
from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.ext.asyncio import AsyncSession

from scorekeeper.errors import (
    ConflictError,
    ForbiddenError,
    NotFoundError,
    ValidationError,
)
from scorekeeper.models.fields import ScoreType
from scorekeeper.models.matches import MatchPage, MatchRead, RemovalResult
from scorekeeper.schemas.base import utcnow
from scorekeeper.schemas.fixtures import Fixture
from scorekeeper.schemas.leagues import Player
from scorekeeper.schemas.matches import Match, MatchPlayer, MatchTeam
from scorekeeper.schemas.seasons import Season, SeasonPlayer
from scorekeeper.schemas.teams import SeasonTeam
from scorekeeper.services.rating_service import (
    EntityScore,
    RatedEntity,
    determine_result,
    settle,
)
from scorekeeper.services.team_service import get_or_create_season_team

logger = logging.getLogger(__name__)

# Driver messages for writers that lost a lock race
_LOCK_MESSAGES = ("database is locked", "deadlock detected", "could not serialize access")


@dataclass(frozen=True)
class _RosterEntry:
    season_player: SeasonPlayer
    player: Player


async def get_season(db: AsyncSession, season_id: int) -> Season:
    """Load a season inside the caller's transaction or raise NotFoundError."""
    result = await db.execute(
        select(Season).where(Season.id == season_id)  # type: ignore[arg-type]
    )
    season = result.scalar_one_or_none()
    if season is None:
        raise NotFoundError("Season not found")
    return season


def is_lock_error(exc: OperationalError) -> bool:
    message = str(exc.orig).lower()
    return any(text in message for text in _LOCK_MESSAGES)


@asynccontextmanager
async def _write_transaction(db: AsyncSession) -> AsyncIterator[None]:
    """``db.begin()`` that reports lost write races as ConflictError.

    A duplicate team insert from a concurrent settlement, or a writer that
    timed out on a locked database, leaves nothing behind and can be retried.
    """
    try:
        async with db.begin():
            yield
    except IntegrityError as exc:
        logger.warning("Write rejected by a uniqueness constraint: %s", exc.orig)
        raise ConflictError("Another match was registered at the same time, please retry") from exc
    except OperationalError as exc:
        if not is_lock_error(exc):
            raise
        logger.warning("Write lost a lock race: %s", exc.orig)
        raise ConflictError("The season is busy, please retry") from exc


def _ensure_open(season: Season) -> None:
    if season.closed:
        raise ForbiddenError("This season is closed")


def validate_rosters(
    home_ids: Sequence[int],
    away_ids: Sequence[int],
    home_score: int,
    away_score: int,
) -> None:
    """Reject malformed settlement input before anything is read or written."""
    if not home_ids or not away_ids:
        raise ValidationError("Both teams must have at least one player")
    if len(home_ids) != len(away_ids):
        raise ValidationError("Teams must have equal number of players")
    if len(set(home_ids)) != len(home_ids) or len(set(away_ids)) != len(away_ids):
        raise ValidationError("A player can only appear once per team")
    if set(home_ids) & set(away_ids):
        raise ValidationError("A player cannot be on both teams")
    if home_score < 0 or away_score < 0:
        raise ValidationError("Scores must not be negative")


async def _resolve_roster(
    db: AsyncSession, season_id: int, season_player_ids: Sequence[int]
) -> list[_RosterEntry]:
    """Load and lock the season players for a roster, preserving roster order."""
    result = await db.execute(
        select(SeasonPlayer, Player)
        .join(Player, Player.id == SeasonPlayer.player_id)  # type: ignore[arg-type]
        .where(
            SeasonPlayer.season_id == season_id,  # type: ignore[arg-type]
            SeasonPlayer.id.in_(season_player_ids),  # type: ignore[union-attr]
            SeasonPlayer.disabled.is_(False),  # type: ignore[attr-defined]
            Player.disabled.is_(False),  # type: ignore[attr-defined]
        )
        .with_for_update(of=SeasonPlayer)
        .execution_options(populate_existing=True)
    )
    by_id = {
        season_player.id: _RosterEntry(season_player=season_player, player=player)
        for season_player, player in result.all()
    }
    missing = [sp_id for sp_id in season_player_ids if sp_id not in by_id]
    if missing:
        raise ValidationError(
            f"Some players are not part of this season: {', '.join(map(str, missing))}"
        )
    return [by_id[sp_id] for sp_id in season_player_ids]


async def _apply_season_player_score(
    db: AsyncSession, entity: EntityScore, now: datetime
) -> None:
    """Write a new live score, conditioned on the value read in this transaction."""
    result = await db.execute(
        update(SeasonPlayer)
        .where(
            SeasonPlayer.id == entity.id,  # type: ignore[arg-type]
            SeasonPlayer.score == entity.score_before,  # type: ignore[arg-type]
        )
        .values(score=entity.score_after, updated_at=now)
    )
    if result.rowcount != 1:
        raise ConflictError(
            f"Season player {entity.id} was updated concurrently, please retry"
        )


async def _apply_season_team_score(
    db: AsyncSession, entity: EntityScore, now: datetime
) -> None:
    result = await db.execute(
        update(SeasonTeam)
        .where(
            SeasonTeam.id == entity.id,  # type: ignore[arg-type]
            SeasonTeam.score == entity.score_before,  # type: ignore[arg-type]
        )
        .values(score=entity.score_after, updated_at=now)
    )
    if result.rowcount != 1:
        raise ConflictError(
            f"Season team {entity.id} was updated concurrently, please retry"
        )


async def _settle_teams(
    db: AsyncSession,
    *,
    season: Season,
    match: Match,
    home_roster: Sequence[_RosterEntry],
    away_roster: Sequence[_RosterEntry],
    now: datetime,
) -> None:
    """Second strategy pass treating each roster's team as a one-member side."""
    home_team = await get_or_create_season_team(
        db, season=season, players=[entry.player for entry in home_roster], now=now
    )
    away_team = await get_or_create_season_team(
        db, season=season, players=[entry.player for entry in away_roster], now=now
    )
    outcome = settle(
        season.score_type,
        season.k_factor,
        [RatedEntity(id=home_team.id, score=home_team.score)],  # type: ignore[arg-type]
        match.home_score,
        [RatedEntity(id=away_team.id, score=away_team.score)],  # type: ignore[arg-type]
        match.away_score,
    )
    home_result, away_result = determine_result(match.home_score, match.away_score)

    db.add_all(
        [
            MatchTeam(
                match_id=match.id,  # type: ignore[arg-type]
                season_team_id=entity.id,
                home_team=is_home,
                result=result,
                score_before=entity.score_before,
                score_after=entity.score_after,
                created_at=now,
            )
            for side, is_home, result in (
                (outcome.home, True, home_result),
                (outcome.away, False, away_result),
            )
            for entity in side.entities
        ]
    )
    for entity in outcome.entities:
        await _apply_season_team_score(db, entity, now)


async def _settle_match(
    db: AsyncSession,
    *,
    season: Season,
    home_ids: Sequence[int],
    away_ids: Sequence[int],
    home_score: int,
    away_score: int,
    acting_user_id: str,
) -> MatchRead:
    """Compute and stage the full write-set for one match."""
    validate_rosters(home_ids, away_ids, home_score, away_score)
    assert season.id is not None

    # Read every participant before any write is staged
    home_roster = await _resolve_roster(db, season.id, home_ids)
    away_roster = await _resolve_roster(db, season.id, away_ids)

    outcome = settle(
        season.score_type,
        season.k_factor,
        [RatedEntity(id=e.season_player.id, score=e.season_player.score) for e in home_roster],  # type: ignore[arg-type]
        home_score,
        [RatedEntity(id=e.season_player.id, score=e.season_player.score) for e in away_roster],  # type: ignore[arg-type]
        away_score,
    )
    home_result, away_result = determine_result(home_score, away_score)

    now = utcnow()
    match = Match(
        season_id=season.id,
        home_score=home_score,
        away_score=away_score,
        home_expected_elo=outcome.home.winning_odds,
        away_expected_elo=outcome.away.winning_odds,
        created_by=acting_user_id,
        updated_by=acting_user_id,
        created_at=now,
        updated_at=now,
    )
    db.add(match)
    await db.flush()

    db.add_all(
        [
            MatchPlayer(
                match_id=match.id,  # type: ignore[arg-type]
                season_player_id=entity.id,
                home_team=is_home,
                result=result,
                score_before=entity.score_before,
                score_after=entity.score_after,
                created_at=now,
            )
            for side, is_home, result in (
                (outcome.home, True, home_result),
                (outcome.away, False, away_result),
            )
            for entity in side.entities
        ]
    )
    for entity in outcome.entities:
        await _apply_season_player_score(db, entity, now)

    if len(home_roster) > 1 and len(away_roster) > 1:
        await _settle_teams(
            db,
            season=season,
            match=match,
            home_roster=home_roster,
            away_roster=away_roster,
            now=now,
        )

    await db.flush()
    return MatchRead(
        id=match.id,  # type: ignore[arg-type]
        season_id=season.id,
        home_score=home_score,
        away_score=away_score,
        home_expected_elo=match.home_expected_elo,
        away_expected_elo=match.away_expected_elo,
        created_at=now,
        home_season_player_ids=list(home_ids),
        away_season_player_ids=list(away_ids),
    )


async def create_match(
    db: AsyncSession,
    *,
    season_id: int,
    home_season_player_ids: Sequence[int],
    away_season_player_ids: Sequence[int],
    home_score: int,
    away_score: int,
    acting_user_id: str,
) -> MatchRead:
    """Settle a reported match and persist its effects atomically.

    Raises:
        NotFoundError: the season does not exist.
        ForbiddenError: the season is closed.
        ValidationError: roster sizes differ, ids repeat or overlap, ids are
            not active players of this season, or a score is negative.
        ConflictError: a participant's score changed between read and write.
        InternalError: the season has an unsupported score type.
    """
    async with _write_transaction(db):
        season = await get_season(db, season_id)
        _ensure_open(season)
        result = await _settle_match(
            db,
            season=season,
            home_ids=home_season_player_ids,
            away_ids=away_season_player_ids,
            home_score=home_score,
            away_score=away_score,
            acting_user_id=acting_user_id,
        )

    logger.info(
        "Settled match %s in season %s (%s-%s) home=%s away=%s by %s",
        result.id,
        season_id,
        home_score,
        away_score,
        result.home_season_player_ids,
        result.away_season_player_ids,
        acting_user_id,
    )
    return result


async def create_fixture_match(
    db: AsyncSession,
    *,
    season_id: int,
    fixture_id: int,
    home_score: int,
    away_score: int,
    acting_user_id: str,
) -> MatchRead:
    """Settle the match for a scheduled fixture of a 3-1-0 season."""
    async with _write_transaction(db):
        season = await get_season(db, season_id)
        if season.score_type != ScoreType.three_one_zero:
            raise ForbiddenError("This season does not support fixture matches")
        _ensure_open(season)

        fixture_result = await db.execute(
            select(Fixture)
            .where(
                Fixture.id == fixture_id,  # type: ignore[arg-type]
                Fixture.season_id == season_id,  # type: ignore[arg-type]
            )
            .with_for_update()
        )
        fixture = fixture_result.scalar_one_or_none()
        if fixture is None:
            raise NotFoundError("Fixture not found")
        if fixture.match_id is not None:
            raise ConflictError("Match already registered")

        result = await _settle_match(
            db,
            season=season,
            home_ids=[fixture.home_player_id],
            away_ids=[fixture.away_player_id],
            home_score=home_score,
            away_score=away_score,
            acting_user_id=acting_user_id,
        )
        fixture.match_id = result.id
        db.add(fixture)

    logger.info(
        "Settled fixture %s as match %s in season %s (%s-%s) by %s",
        fixture_id,
        result.id,
        season_id,
        home_score,
        away_score,
        acting_user_id,
    )
    return result


def _latest_match_query(season_id: int):
    return (
        select(Match)
        .where(Match.season_id == season_id)  # type: ignore[arg-type]
        .order_by(Match.created_at.desc(), Match.id.desc())  # type: ignore[attr-defined,union-attr]
        .limit(1)
    )


async def remove_match(
    db: AsyncSession,
    *,
    season_id: int,
    match_id: int,
    acting_user_id: str,
) -> RemovalResult:
    """Revert and delete the most recent match of a season.

    Only the tail of the season's match chain can be reverted: every later
    match's ``score_before`` assumes the earlier ones happened.

    Raises:
        NotFoundError: no such match in this season.
        ForbiddenError: the match is not the season's latest.
        ConflictError: a participant's score moved on concurrently.
    """
    async with _write_transaction(db):
        match_result = await db.execute(
            select(Match).where(
                Match.id == match_id,  # type: ignore[arg-type]
                Match.season_id == season_id,  # type: ignore[arg-type]
            )
        )
        match = match_result.scalar_one_or_none()
        if match is None:
            raise NotFoundError("Match not found")

        latest_result = await db.execute(_latest_match_query(season_id))
        latest = latest_result.scalar_one()
        if latest.id != match.id:
            raise ForbiddenError("Only the last match can be deleted")

        player_rows = (
            await db.execute(
                select(MatchPlayer).where(MatchPlayer.match_id == match_id)  # type: ignore[arg-type]
            )
        ).scalars().all()
        team_rows = (
            await db.execute(
                select(MatchTeam).where(MatchTeam.match_id == match_id)  # type: ignore[arg-type]
            )
        ).scalars().all()
        reverted_player_ids = [row.season_player_id for row in player_rows]
        reverted_team_ids = [row.season_team_id for row in team_rows]

        now = utcnow()
        for row in player_rows:
            await _apply_season_player_score(
                db,
                EntityScore(
                    id=row.season_player_id,
                    score_before=row.score_after,
                    score_after=row.score_before,
                ),
                now,
            )
        for row in team_rows:
            await _apply_season_team_score(
                db,
                EntityScore(
                    id=row.season_team_id,
                    score_before=row.score_after,
                    score_after=row.score_before,
                ),
                now,
            )

        await db.execute(
            update(Fixture)
            .where(Fixture.match_id == match_id)  # type: ignore[arg-type]
            .values(match_id=None)
        )
        await db.execute(delete(MatchPlayer).where(MatchPlayer.match_id == match_id))  # type: ignore[arg-type]
        await db.execute(delete(MatchTeam).where(MatchTeam.match_id == match_id))  # type: ignore[arg-type]
        await db.execute(delete(Match).where(Match.id == match_id))  # type: ignore[arg-type]

    removal = RemovalResult(
        match_id=match_id,
        season_player_ids=reverted_player_ids,
        season_team_ids=reverted_team_ids,
    )
    logger.info(
        "Removed match %s from season %s by %s; reverted players=%s teams=%s",
        match_id,
        season_id,
        acting_user_id,
        removal.season_player_ids,
        removal.season_team_ids,
    )
    return removal


async def _to_match_reads(db: AsyncSession, matches: Sequence[Match]) -> list[MatchRead]:
    """Attach home/away roster ids to match rows."""
    if not matches:
        return []
    rows = await db.execute(
        select(
            MatchPlayer.match_id,
            MatchPlayer.season_player_id,
            MatchPlayer.home_team,
        )
        .where(MatchPlayer.match_id.in_([m.id for m in matches]))  # type: ignore[attr-defined]
        .order_by(MatchPlayer.id)  # type: ignore[arg-type]
    )
    home: dict[int, list[int]] = {}
    away: dict[int, list[int]] = {}
    for row in rows.all():
        target = home if row.home_team else away
        target.setdefault(row.match_id, []).append(row.season_player_id)

    return [
        MatchRead(
            id=m.id,  # type: ignore[arg-type]
            season_id=m.season_id,
            home_score=m.home_score,
            away_score=m.away_score,
            home_expected_elo=m.home_expected_elo,
            away_expected_elo=m.away_expected_elo,
            created_at=m.created_at,
            home_season_player_ids=home.get(m.id, []),  # type: ignore[arg-type]
            away_season_player_ids=away.get(m.id, []),  # type: ignore[arg-type]
        )
        for m in matches
    ]


async def find_latest(db: AsyncSession, season_id: int) -> Optional[MatchRead]:
    async with db.begin():
        result = await db.execute(_latest_match_query(season_id))
        match = result.scalar_one_or_none()
        if match is None:
            return None
        reads = await _to_match_reads(db, [match])
    return reads[0]


async def find_by_id(db: AsyncSession, season_id: int, match_id: int) -> Optional[MatchRead]:
    async with db.begin():
        result = await db.execute(
            select(Match).where(
                Match.id == match_id,  # type: ignore[arg-type]
                Match.season_id == season_id,  # type: ignore[arg-type]
            )
        )
        match = result.scalar_one_or_none()
        if match is None:
            return None
        reads = await _to_match_reads(db, [match])
    return reads[0]


async def get_by_season(
    db: AsyncSession,
    season_id: int,
    *,
    page: int = 1,
    limit: int = 30,
) -> MatchPage:
    """Newest-first page of a season's matches."""
    async with db.begin():
        count_result = await db.execute(
            select(func.count())
            .select_from(Match)
            .where(Match.season_id == season_id)  # type: ignore[arg-type]
        )
        total = count_result.scalar() or 0

        result = await db.execute(
            select(Match)
            .where(Match.season_id == season_id)  # type: ignore[arg-type]
            .order_by(Match.created_at.desc(), Match.id.desc())  # type: ignore[attr-defined,union-attr]
            .offset((page - 1) * limit)
            .limit(limit)
        )
        matches = await _to_match_reads(db, list(result.scalars().all()))

    return MatchPage(
        matches=matches,
        total_count=total,
        page=page,
        limit=limit,
        total_pages=math.ceil(total / limit) if limit else 0,
    )
