"""Season lifecycle: create, edit, close, join.

None of these ever writes ``SeasonPlayer.score`` or ``SeasonTeam.score``
after creation; live scores belong to match settlement and reversal.
"""

from __future__ import annotations

import logging
from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from scorekeeper.config import settings
from scorekeeper.errors import NotFoundError, ValidationError
from scorekeeper.models.fields import ScoreType
from scorekeeper.models.seasons import (
    SeasonCreate,
    SeasonPlayerRead,
    SeasonRead,
    SeasonUpdate,
)
from scorekeeper.schemas.base import utcnow
from scorekeeper.schemas.leagues import Player
from scorekeeper.schemas.seasons import Season, SeasonPlayer
from scorekeeper.services.league_service import get_league
from scorekeeper.services.match_service import get_season
from scorekeeper.utils.slug import generate_unique_slug

logger = logging.getLogger(__name__)

# 3-1-0 seasons start everyone at zero points and ignore the K-factor
POINTS_INITIAL_SCORE = 0
POINTS_K_FACTOR = -1

# Fields that decide how matches are scored
SCORING_FIELDS = frozenset({"score_type", "initial_score", "k_factor", "rounds"})


def season_read(season: Season) -> SeasonRead:
    return SeasonRead(
        id=season.id,  # type: ignore[arg-type]
        league_id=season.league_id,
        name=season.name,
        slug=season.slug,
        score_type=season.score_type,
        initial_score=season.initial_score,
        k_factor=season.k_factor,
        start_date=season.start_date,
        end_date=season.end_date,
        rounds=season.rounds,
        closed=season.closed,
    )


def resolve_scoring(payload: SeasonCreate) -> tuple[int, int]:
    """Return (initial_score, k_factor) for a new season, applying defaults."""
    if payload.score_type == ScoreType.three_one_zero:
        initial = payload.initial_score if payload.initial_score is not None else POINTS_INITIAL_SCORE
        return initial, POINTS_K_FACTOR

    initial = (
        payload.initial_score
        if payload.initial_score is not None
        else settings.default_initial_score
    )
    k_factor = payload.k_factor if payload.k_factor is not None else settings.default_k_factor
    if k_factor <= 0:
        raise ValidationError("K-factor must be positive for ELO seasons")
    return initial, k_factor


async def create_season(
    db: AsyncSession,
    *,
    league_id: int,
    payload: SeasonCreate,
    acting_user_id: str,
) -> SeasonRead:
    if payload.rounds is not None and payload.score_type != ScoreType.three_one_zero:
        raise ValidationError("Rounds only apply to 3-1-0 seasons")
    initial_score, k_factor = resolve_scoring(payload)

    async with db.begin():
        await get_league(db, league_id)
        slug = await generate_unique_slug(
            payload.name,
            db,
            model=Season,
            scope={"league_id": league_id},
            fallback="season",
        )
        season = Season(
            league_id=league_id,
            name=payload.name,
            slug=slug,
            score_type=payload.score_type,
            initial_score=initial_score,
            k_factor=k_factor,
            start_date=payload.start_date or utcnow(),
            end_date=payload.end_date,
            rounds=payload.rounds,
            created_by=acting_user_id,
        )
        db.add(season)
        await db.flush()

    logger.info(
        "Created %s season %s (%s) in league %s",
        season.score_type.value,
        season.id,
        season.slug,
        league_id,
    )
    return season_read(season)


def _scoring_payload(season: Season, changes: dict) -> SeasonCreate:
    """Merge scoring changes over the season's current values.

    Switching score type drops the old type's defaults so the new one's apply.
    """
    score_type = changes.get("score_type", season.score_type)
    keep_current = score_type == season.score_type
    return SeasonCreate(
        name=season.name,
        score_type=score_type,
        initial_score=changes.get("initial_score", season.initial_score if keep_current else None),
        k_factor=changes.get("k_factor", season.k_factor if keep_current else None),
        rounds=changes.get("rounds", season.rounds if keep_current else None),
    )


async def update_season(
    db: AsyncSession,
    *,
    season_id: int,
    payload: SeasonUpdate,
    acting_user_id: str,
) -> SeasonRead:
    """Edit a season's settings.

    Once the season has started only its name can change. Scoring settings
    also stay fixed as soon as any player has joined, since joined players
    already hold the initial score. The slug is kept so links stay valid.

    Raises:
        NotFoundError: the season does not exist.
        ValidationError: a locked field was given, or the result is invalid.
    """
    changes = payload.model_dump(exclude_unset=True, exclude_none=True)
    async with db.begin():
        season = await get_season(db, season_id)
        now = utcnow()
        if changes.keys() - {"name"} and season.start_date <= now:
            raise ValidationError("Can only update name of a season that has started")

        start_date = changes.get("start_date", season.start_date)
        end_date = changes.get("end_date", season.end_date)
        if end_date is not None and end_date < start_date:
            raise ValidationError("end_date must not be before start_date")

        if changes.keys() & SCORING_FIELDS:
            joined = await db.execute(
                select(func.count())
                .select_from(SeasonPlayer)
                .where(SeasonPlayer.season_id == season_id)  # type: ignore[arg-type]
            )
            if joined.scalar_one():
                raise ValidationError("Scoring can only change before any player has joined")
            scoring = _scoring_payload(season, changes)
            if scoring.rounds is not None and scoring.score_type != ScoreType.three_one_zero:
                raise ValidationError("Rounds only apply to 3-1-0 seasons")
            season.initial_score, season.k_factor = resolve_scoring(scoring)
            season.score_type = scoring.score_type
            season.rounds = scoring.rounds

        season.name = changes.get("name", season.name)
        season.start_date = start_date
        season.end_date = end_date
        season.updated_at = now
        db.add(season)

    logger.info("Updated season %s (%s) by %s", season_id, sorted(changes), acting_user_id)
    return season_read(season)


async def get_season_read(db: AsyncSession, season_id: int) -> SeasonRead:
    async with db.begin():
        season = await get_season(db, season_id)
    return season_read(season)


async def close_season(db: AsyncSession, *, season_id: int, acting_user_id: str) -> SeasonRead:
    """Close a season; no further matches can be settled in it. Idempotent."""
    async with db.begin():
        season = await get_season(db, season_id)
        if not season.closed:
            now = utcnow()
            season.closed = True
            season.end_date = season.end_date or now
            season.updated_at = now
            db.add(season)
            logger.info("Closed season %s by %s", season_id, acting_user_id)
    return season_read(season)


async def join_season(db: AsyncSession, *, season_id: int, player_id: int) -> SeasonPlayerRead:
    """Return the player's season participation, creating it with the initial score."""
    async with db.begin():
        season = await get_season(db, season_id)
        player_result = await db.execute(
            select(Player).where(
                Player.id == player_id,  # type: ignore[arg-type]
                Player.league_id == season.league_id,  # type: ignore[arg-type]
            )
        )
        if player_result.scalar_one_or_none() is None:
            raise NotFoundError("Player not found in this league")

        existing = await db.execute(
            select(SeasonPlayer).where(
                SeasonPlayer.season_id == season_id,  # type: ignore[arg-type]
                SeasonPlayer.player_id == player_id,  # type: ignore[arg-type]
            )
        )
        season_player: Optional[SeasonPlayer] = existing.scalar_one_or_none()
        if season_player is None:
            season_player = SeasonPlayer(
                season_id=season_id,
                player_id=player_id,
                score=season.initial_score,
            )
            db.add(season_player)
            await db.flush()

    return SeasonPlayerRead(
        id=season_player.id,  # type: ignore[arg-type]
        season_id=season_player.season_id,
        player_id=season_player.player_id,
        score=season_player.score,
    )
