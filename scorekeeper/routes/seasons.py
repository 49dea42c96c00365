from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from scorekeeper.errors import ScorekeeperError
from scorekeeper.models.seasons import (
    FixtureRead,
    SeasonCreate,
    SeasonPlayerRead,
    SeasonRead,
    SeasonUpdate,
)
from scorekeeper.models.standings import (
    PlayerStanding,
    PointDiffProgression,
    PointProgression,
    RecentForm,
    TeammateStatistics,
    TeamStanding,
)
from scorekeeper.routes.helpers import get_acting_user_id, to_http_exception
from scorekeeper.services import fixture_service, season_service, standings_service
from scorekeeper.utils.db_async import get_session

router = APIRouter(tags=["seasons"])


@router.post("/api/leagues/{league_id}/seasons", response_model=SeasonRead, status_code=201)
async def create_season(
    league_id: int,
    payload: SeasonCreate,
    acting_user_id: str = Depends(get_acting_user_id),
    db: AsyncSession = Depends(get_session),
) -> SeasonRead:
    try:
        return await season_service.create_season(
            db, league_id=league_id, payload=payload, acting_user_id=acting_user_id
        )
    except ScorekeeperError as exc:
        raise to_http_exception(exc) from exc


@router.get("/api/seasons/{season_id}", response_model=SeasonRead)
async def get_season(
    season_id: int,
    db: AsyncSession = Depends(get_session),
) -> SeasonRead:
    try:
        return await season_service.get_season_read(db, season_id)
    except ScorekeeperError as exc:
        raise to_http_exception(exc) from exc


@router.patch("/api/seasons/{season_id}", response_model=SeasonRead)
async def update_season(
    season_id: int,
    payload: SeasonUpdate,
    acting_user_id: str = Depends(get_acting_user_id),
    db: AsyncSession = Depends(get_session),
) -> SeasonRead:
    """Rename a season, or change any setting before it has started."""
    try:
        return await season_service.update_season(
            db, season_id=season_id, payload=payload, acting_user_id=acting_user_id
        )
    except ScorekeeperError as exc:
        raise to_http_exception(exc) from exc


@router.post("/api/seasons/{season_id}/close", response_model=SeasonRead)
async def close_season(
    season_id: int,
    acting_user_id: str = Depends(get_acting_user_id),
    db: AsyncSession = Depends(get_session),
) -> SeasonRead:
    """Close the season so no further matches can be registered."""
    try:
        return await season_service.close_season(
            db, season_id=season_id, acting_user_id=acting_user_id
        )
    except ScorekeeperError as exc:
        raise to_http_exception(exc) from exc


@router.put("/api/seasons/{season_id}/players/{player_id}", response_model=SeasonPlayerRead)
async def join_season(
    season_id: int,
    player_id: int,
    acting_user_id: str = Depends(get_acting_user_id),  # noqa: ARG001
    db: AsyncSession = Depends(get_session),
) -> SeasonPlayerRead:
    """Add a league player to the season (no-op when already joined)."""
    try:
        return await season_service.join_season(db, season_id=season_id, player_id=player_id)
    except ScorekeeperError as exc:
        raise to_http_exception(exc) from exc


@router.post(
    "/api/seasons/{season_id}/fixtures",
    response_model=list[FixtureRead],
    status_code=201,
)
async def generate_fixtures(
    season_id: int,
    acting_user_id: str = Depends(get_acting_user_id),  # noqa: ARG001
    db: AsyncSession = Depends(get_session),
) -> list[FixtureRead]:
    try:
        return await fixture_service.generate_fixtures(db, season_id=season_id)
    except ScorekeeperError as exc:
        raise to_http_exception(exc) from exc


@router.get("/api/seasons/{season_id}/fixtures", response_model=list[FixtureRead])
async def list_fixtures(
    season_id: int,
    db: AsyncSession = Depends(get_session),
) -> list[FixtureRead]:
    return await fixture_service.list_fixtures(db, season_id)


@router.get("/api/seasons/{season_id}/standings", response_model=list[PlayerStanding])
async def player_standings(
    season_id: int,
    db: AsyncSession = Depends(get_session),
) -> list[PlayerStanding]:
    try:
        return await standings_service.get_player_standings(db, season_id)
    except ScorekeeperError as exc:
        raise to_http_exception(exc) from exc


@router.get("/api/seasons/{season_id}/standings/teams", response_model=list[TeamStanding])
async def team_standings(
    season_id: int,
    db: AsyncSession = Depends(get_session),
) -> list[TeamStanding]:
    try:
        return await standings_service.get_team_standings(db, season_id)
    except ScorekeeperError as exc:
        raise to_http_exception(exc) from exc


@router.get("/api/seasons/{season_id}/standings/top", response_model=Optional[PlayerStanding])
async def top_player(
    season_id: int,
    db: AsyncSession = Depends(get_session),
) -> Optional[PlayerStanding]:
    try:
        return await standings_service.get_top_player(db, season_id)
    except ScorekeeperError as exc:
        raise to_http_exception(exc) from exc


@router.get("/api/seasons/{season_id}/standings/on-fire", response_model=Optional[RecentForm])
async def on_fire(
    season_id: int,
    db: AsyncSession = Depends(get_session),
) -> Optional[RecentForm]:
    try:
        return await standings_service.get_on_fire(db, season_id)
    except ScorekeeperError as exc:
        raise to_http_exception(exc) from exc


@router.get("/api/seasons/{season_id}/standings/struggling", response_model=Optional[RecentForm])
async def struggling(
    season_id: int,
    db: AsyncSession = Depends(get_session),
) -> Optional[RecentForm]:
    try:
        return await standings_service.get_struggling(db, season_id)
    except ScorekeeperError as exc:
        raise to_http_exception(exc) from exc


@router.get("/api/seasons/{season_id}/progression/points", response_model=list[PointProgression])
async def point_progression(
    season_id: int,
    db: AsyncSession = Depends(get_session),
) -> list[PointProgression]:
    try:
        return await standings_service.get_point_progression(db, season_id)
    except ScorekeeperError as exc:
        raise to_http_exception(exc) from exc


@router.get(
    "/api/seasons/{season_id}/progression/point-diff",
    response_model=list[PointDiffProgression],
)
async def point_diff_progression(
    season_id: int,
    db: AsyncSession = Depends(get_session),
) -> list[PointDiffProgression]:
    try:
        return await standings_service.get_point_diff_progression(db, season_id)
    except ScorekeeperError as exc:
        raise to_http_exception(exc) from exc


@router.get(
    "/api/seasons/{season_id}/season-players/{season_player_id}/teammates",
    response_model=list[TeammateStatistics],
)
async def teammate_statistics(
    season_id: int,
    season_player_id: int,
    db: AsyncSession = Depends(get_session),
) -> list[TeammateStatistics]:
    """Per-teammate record for a season player, most shared matches first."""
    try:
        return await standings_service.get_teammate_statistics(db, season_id, season_player_id)
    except ScorekeeperError as exc:
        raise to_http_exception(exc) from exc
