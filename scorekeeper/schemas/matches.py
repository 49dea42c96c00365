"""Match rows and their per-participant effect rows."""

from datetime import datetime
from typing import Optional

from sqlalchemy import Column, Index
from sqlalchemy import Enum as SAEnum
from sqlmodel import Field, SQLModel

from scorekeeper.models.fields import MatchResultSymbol
from scorekeeper.schemas.base import UTCDateTime, utcnow

# Shared by both effect tables so Postgres sees a single enum type
MATCH_RESULT_ENUM = SAEnum(MatchResultSymbol, name="match_result_enum")


class Match(SQLModel, table=True):  # type: ignore[call-arg]
    __tablename__ = "matches"
    __table_args__ = (
        Index("ix_matches_season_created", "season_id", "created_at"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    season_id: int = Field(foreign_key="seasons.id")
    home_score: int
    away_score: int
    # Winning odds for each side at settlement time
    home_expected_elo: Optional[float] = Field(default=None)
    away_expected_elo: Optional[float] = Field(default=None)
    created_by: str
    updated_by: str
    created_at: datetime = Field(default_factory=utcnow, sa_type=UTCDateTime)
    updated_at: datetime = Field(default_factory=utcnow, sa_type=UTCDateTime)


class MatchPlayer(SQLModel, table=True):  # type: ignore[call-arg]
    """Before/after snapshot for one season player in one match."""

    __tablename__ = "match_players"
    __table_args__ = (
        Index("ix_match_players_season_player_created", "season_player_id", "created_at"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    match_id: int = Field(foreign_key="matches.id", index=True)
    season_player_id: int = Field(foreign_key="season_players.id")
    home_team: bool
    result: MatchResultSymbol = Field(
        sa_column=Column(
            MATCH_RESULT_ENUM,
            nullable=False,
        )
    )
    score_before: int
    score_after: int
    created_at: datetime = Field(default_factory=utcnow, sa_type=UTCDateTime)


class MatchTeam(SQLModel, table=True):  # type: ignore[call-arg]
    """Before/after snapshot for one season team in one match."""

    __tablename__ = "match_teams"

    id: Optional[int] = Field(default=None, primary_key=True)
    match_id: int = Field(foreign_key="matches.id", index=True)
    season_team_id: int = Field(foreign_key="season_teams.id", index=True)
    home_team: bool
    result: MatchResultSymbol = Field(
        sa_column=Column(
            MATCH_RESULT_ENUM,
            nullable=False,
        )
    )
    score_before: int
    score_after: int
    created_at: datetime = Field(default_factory=utcnow, sa_type=UTCDateTime)
