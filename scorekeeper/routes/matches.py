from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from scorekeeper.config import settings
from scorekeeper.errors import ScorekeeperError
from scorekeeper.models.matches import (
    FixtureMatchCreate,
    MatchCreate,
    MatchPage,
    MatchRead,
    RemovalResult,
)
from scorekeeper.routes.helpers import get_acting_user_id, to_http_exception
from scorekeeper.services import match_service
from scorekeeper.utils.db_async import get_session

router = APIRouter(prefix="/api/seasons/{season_id}/matches", tags=["matches"])


@router.post("", response_model=MatchRead, status_code=201)
async def create_match(
    season_id: int,
    payload: MatchCreate,
    acting_user_id: str = Depends(get_acting_user_id),
    db: AsyncSession = Depends(get_session),
) -> MatchRead:
    """Settle a reported match and update every participant's score."""
    try:
        return await match_service.create_match(
            db,
            season_id=season_id,
            home_season_player_ids=payload.home_season_player_ids,
            away_season_player_ids=payload.away_season_player_ids,
            home_score=payload.home_score,
            away_score=payload.away_score,
            acting_user_id=acting_user_id,
        )
    except ScorekeeperError as exc:
        raise to_http_exception(exc) from exc


@router.post("/fixture", response_model=MatchRead, status_code=201)
async def create_fixture_match(
    season_id: int,
    payload: FixtureMatchCreate,
    acting_user_id: str = Depends(get_acting_user_id),
    db: AsyncSession = Depends(get_session),
) -> MatchRead:
    """Settle the match for a scheduled fixture (3-1-0 seasons)."""
    try:
        return await match_service.create_fixture_match(
            db,
            season_id=season_id,
            fixture_id=payload.fixture_id,
            home_score=payload.home_score,
            away_score=payload.away_score,
            acting_user_id=acting_user_id,
        )
    except ScorekeeperError as exc:
        raise to_http_exception(exc) from exc


@router.delete("/{match_id}", response_model=RemovalResult)
async def remove_match(
    season_id: int,
    match_id: int,
    acting_user_id: str = Depends(get_acting_user_id),
    db: AsyncSession = Depends(get_session),
) -> RemovalResult:
    """Revert the season's latest match."""
    try:
        return await match_service.remove_match(
            db,
            season_id=season_id,
            match_id=match_id,
            acting_user_id=acting_user_id,
        )
    except ScorekeeperError as exc:
        raise to_http_exception(exc) from exc


@router.get("", response_model=MatchPage)
async def list_matches(
    season_id: int,
    page: int = Query(default=1, ge=1),
    limit: Optional[int] = Query(default=None, ge=1, le=100),
    db: AsyncSession = Depends(get_session),
) -> MatchPage:
    return await match_service.get_by_season(
        db, season_id, page=page, limit=limit or settings.latest_matches_limit
    )


@router.get("/latest", response_model=Optional[MatchRead])
async def latest_match(
    season_id: int,
    db: AsyncSession = Depends(get_session),
) -> Optional[MatchRead]:
    return await match_service.find_latest(db, season_id)


@router.get("/{match_id}", response_model=MatchRead)
async def get_match(
    season_id: int,
    match_id: int,
    db: AsyncSession = Depends(get_session),
) -> MatchRead:
    match = await match_service.find_by_id(db, season_id, match_id)
    if match is None:
        raise HTTPException(status_code=404, detail="Match not found")
    return match
