"""Pydantic models for season standings and player statistics."""

from datetime import date

from pydantic import BaseModel, Field

from scorekeeper.models.fields import MatchResultSymbol


class PlayerStanding(BaseModel):
    season_player_id: int
    player_id: int
    name: str
    score: int
    match_count: int = 0
    win_count: int = 0
    draw_count: int = 0
    loss_count: int = 0
    form: list[MatchResultSymbol] = Field(default_factory=list)
    point_diff: int = Field(default=0, description="Net score change from today's matches")


class TeamStanding(BaseModel):
    season_team_id: int
    team_id: int
    name: str
    score: int
    match_count: int = 0
    win_count: int = 0
    draw_count: int = 0
    loss_count: int = 0
    form: list[MatchResultSymbol] = Field(default_factory=list)
    point_diff: int = 0


class RecentForm(BaseModel):
    """A player's record over their last few matches only."""

    season_player_id: int
    player_id: int
    name: str
    score: int
    match_count: int
    win_count: int
    draw_count: int
    loss_count: int
    form: list[MatchResultSymbol] = Field(default_factory=list, description="Newest first")


class PointProgression(BaseModel):
    season_player_id: int
    day: date
    score: int = Field(description="Score after the player's last match that day")


class PointDiffProgression(BaseModel):
    season_player_id: int
    day: date
    point_diff: int


class TeammateStatistics(BaseModel):
    teammate_season_player_id: int
    player_id: int
    name: str
    match_count: int
    win_count: int
    draw_count: int
    loss_count: int
    score_change: int = Field(description="The player's own net score change in these matches")
