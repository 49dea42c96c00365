from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from scorekeeper.errors import ScorekeeperError
from scorekeeper.models.seasons import (
    LeagueCreate,
    LeagueRead,
    PlayerCreate,
    PlayerRead,
    PlayerUpdate,
    TeamRead,
)
from scorekeeper.routes.helpers import get_acting_user_id, to_http_exception
from scorekeeper.services import league_service, team_service
from scorekeeper.utils.db_async import get_session

router = APIRouter(prefix="/api/leagues", tags=["leagues"])


@router.post("", response_model=LeagueRead, status_code=201)
async def create_league(
    payload: LeagueCreate,
    acting_user_id: str = Depends(get_acting_user_id),
    db: AsyncSession = Depends(get_session),
) -> LeagueRead:
    return await league_service.create_league(
        db, name=payload.name, acting_user_id=acting_user_id
    )


@router.post("/{league_id}/players", response_model=PlayerRead, status_code=201)
async def add_player(
    league_id: int,
    payload: PlayerCreate,
    acting_user_id: str = Depends(get_acting_user_id),  # noqa: ARG001
    db: AsyncSession = Depends(get_session),
) -> PlayerRead:
    try:
        return await league_service.add_player(
            db, league_id=league_id, user_id=payload.user_id, name=payload.name
        )
    except ScorekeeperError as exc:
        raise to_http_exception(exc) from exc


@router.get("/{league_id}/players", response_model=List[PlayerRead])
async def list_players(
    league_id: int,
    db: AsyncSession = Depends(get_session),
) -> List[PlayerRead]:
    """List league players ordered by name."""
    return await league_service.list_players(db, league_id)


@router.get("/{league_id}/teams", response_model=List[TeamRead])
async def list_teams(
    league_id: int,
    db: AsyncSession = Depends(get_session),
) -> List[TeamRead]:
    """List teams formed from rosters that have played together."""
    return await team_service.list_league_teams(db, league_id)


@router.patch("/{league_id}/players/{player_id}", response_model=PlayerRead)
async def update_player(
    league_id: int,
    player_id: int,
    payload: PlayerUpdate,
    acting_user_id: str = Depends(get_acting_user_id),  # noqa: ARG001
    db: AsyncSession = Depends(get_session),
) -> PlayerRead:
    """Enable or disable a league player."""
    try:
        return await league_service.set_player_disabled(
            db, league_id=league_id, player_id=player_id, disabled=payload.disabled
        )
    except ScorekeeperError as exc:
        raise to_http_exception(exc) from exc
