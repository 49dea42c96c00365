"""Pydantic models for season and league administration."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, model_validator

from scorekeeper.models.fields import UTC_DATETIME, ScoreType


class LeagueCreate(BaseModel):
    name: str = Field(..., min_length=1)


class LeagueRead(BaseModel):
    id: int
    name: str
    slug: str


class PlayerCreate(BaseModel):
    user_id: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)


class PlayerUpdate(BaseModel):
    disabled: bool


class PlayerRead(BaseModel):
    id: int
    league_id: int
    user_id: str
    name: str
    disabled: bool = False


class TeamRead(BaseModel):
    id: int
    name: str
    player_ids: list[int] = Field(default_factory=list)


class SeasonCreate(BaseModel):
    name: str = Field(..., min_length=1)
    score_type: ScoreType = ScoreType.elo
    initial_score: Optional[int] = None
    k_factor: Optional[int] = None
    start_date: Optional[UTC_DATETIME] = None
    end_date: Optional[UTC_DATETIME] = None
    rounds: Optional[int] = Field(default=None, ge=1)

    @model_validator(mode="after")
    def end_after_start(self) -> "SeasonCreate":
        if self.start_date and self.end_date and self.end_date < self.start_date:
            raise ValueError("end_date must not be before start_date")
        return self


class SeasonUpdate(BaseModel):
    """Partial season edit; only ``name`` may change once the season has started."""

    name: Optional[str] = Field(default=None, min_length=1)
    score_type: Optional[ScoreType] = None
    initial_score: Optional[int] = None
    k_factor: Optional[int] = None
    start_date: Optional[UTC_DATETIME] = None
    end_date: Optional[UTC_DATETIME] = None
    rounds: Optional[int] = Field(default=None, ge=1)

    @model_validator(mode="after")
    def end_after_start(self) -> "SeasonUpdate":
        if self.start_date and self.end_date and self.end_date < self.start_date:
            raise ValueError("end_date must not be before start_date")
        return self


class SeasonRead(BaseModel):
    id: int
    league_id: int
    name: str
    slug: str
    score_type: ScoreType
    initial_score: int
    k_factor: int
    start_date: datetime
    end_date: Optional[UTC_DATETIME] = None
    rounds: Optional[int] = None
    closed: bool


class SeasonPlayerRead(BaseModel):
    id: int
    season_id: int
    player_id: int
    score: int


class FixtureRead(BaseModel):
    id: int
    round: int
    home_season_player_id: int
    away_season_player_id: int
    match_id: Optional[int] = None
