"""Pydantic models for match settlement requests and responses."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from scorekeeper.models.fields import MATCH_SCORE, ROSTER


class MatchCreate(BaseModel):
    home_season_player_ids: ROSTER
    away_season_player_ids: ROSTER
    home_score: MATCH_SCORE
    away_score: MATCH_SCORE


class FixtureMatchCreate(BaseModel):
    fixture_id: int
    home_score: MATCH_SCORE
    away_score: MATCH_SCORE


class MatchRead(BaseModel):
    id: int
    season_id: int
    home_score: int
    away_score: int
    home_expected_elo: Optional[float] = Field(default=None)
    away_expected_elo: Optional[float] = Field(default=None)
    created_at: datetime
    home_season_player_ids: list[int] = Field(default_factory=list)
    away_season_player_ids: list[int] = Field(default_factory=list)


class MatchPage(BaseModel):
    matches: list[MatchRead] = Field(default_factory=list)
    total_count: int
    page: int
    limit: int
    total_pages: int


class RemovalResult(BaseModel):
    """Participants whose scores were reverted, for downstream cache invalidation."""

    match_id: int
    season_player_ids: list[int] = Field(default_factory=list)
    season_team_ids: list[int] = Field(default_factory=list)
