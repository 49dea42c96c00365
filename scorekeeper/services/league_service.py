"""League and league player administration."""

from __future__ import annotations

import logging
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from scorekeeper.errors import ConflictError, NotFoundError
from scorekeeper.models.seasons import LeagueRead, PlayerRead
from scorekeeper.schemas.base import utcnow
from scorekeeper.schemas.leagues import League, Player
from scorekeeper.utils.slug import generate_unique_slug

logger = logging.getLogger(__name__)


def _player_read(player: Player) -> PlayerRead:
    return PlayerRead(
        id=player.id,  # type: ignore[arg-type]
        league_id=player.league_id,
        user_id=player.user_id,
        name=player.name,
        disabled=player.disabled,
    )


async def get_league(db: AsyncSession, league_id: int) -> League:
    """Load a league inside the caller's transaction or raise NotFoundError."""
    result = await db.execute(
        select(League).where(League.id == league_id)  # type: ignore[arg-type]
    )
    league = result.scalar_one_or_none()
    if league is None:
        raise NotFoundError("League not found")
    return league


async def create_league(db: AsyncSession, *, name: str, acting_user_id: str) -> LeagueRead:
    async with db.begin():
        slug = await generate_unique_slug(name, db, model=League, fallback="league")
        league = League(name=name, slug=slug, created_by=acting_user_id)
        db.add(league)
        await db.flush()

    logger.info("Created league %s (%s) by %s", league.id, league.slug, acting_user_id)
    return LeagueRead(id=league.id, name=league.name, slug=league.slug)  # type: ignore[arg-type]


async def add_player(
    db: AsyncSession, *, league_id: int, user_id: str, name: str
) -> PlayerRead:
    """Register a person as a league player (one membership per user and league)."""
    async with db.begin():
        await get_league(db, league_id)
        existing = await db.execute(
            select(Player).where(
                Player.league_id == league_id,  # type: ignore[arg-type]
                Player.user_id == user_id,  # type: ignore[arg-type]
            )
        )
        if existing.scalar_one_or_none() is not None:
            raise ConflictError("User is already a player in this league")

        player = Player(league_id=league_id, user_id=user_id, name=name)
        db.add(player)
        await db.flush()

    return _player_read(player)


async def set_player_disabled(
    db: AsyncSession, *, league_id: int, player_id: int, disabled: bool
) -> PlayerRead:
    """Toggle a player's active flag; disabled players cannot be put on a roster."""
    async with db.begin():
        result = await db.execute(
            select(Player).where(
                Player.id == player_id,  # type: ignore[arg-type]
                Player.league_id == league_id,  # type: ignore[arg-type]
            )
        )
        player = result.scalar_one_or_none()
        if player is None:
            raise NotFoundError("Player not found")
        player.disabled = disabled
        player.updated_at = utcnow()
        db.add(player)

    return _player_read(player)


async def list_players(db: AsyncSession, league_id: int) -> list[PlayerRead]:
    async with db.begin():
        result = await db.execute(
            select(Player)
            .where(Player.league_id == league_id)  # type: ignore[arg-type]
            .order_by(Player.name)  # type: ignore[arg-type]
        )
        players = list(result.scalars().all())
    return [_player_read(player) for player in players]
