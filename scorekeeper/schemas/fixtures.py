"""Scheduled pairings for 3-1-0 seasons."""

from datetime import datetime
from typing import Optional

from sqlmodel import Field, SQLModel

from scorekeeper.schemas.base import UTCDateTime, utcnow


class Fixture(SQLModel, table=True):  # type: ignore[call-arg]
    __tablename__ = "fixtures"

    id: Optional[int] = Field(default=None, primary_key=True)
    season_id: int = Field(foreign_key="seasons.id", index=True)
    round: int
    home_player_id: int = Field(foreign_key="season_players.id")
    away_player_id: int = Field(foreign_key="season_players.id")
    # Set once the fixture has been played
    match_id: Optional[int] = Field(default=None, foreign_key="matches.id", index=True)
    created_at: datetime = Field(default_factory=utcnow, sa_type=UTCDateTime)
