from datetime import datetime
from typing import Optional

from sqlalchemy import Column, UniqueConstraint
from sqlalchemy import Enum as SAEnum
from sqlmodel import Field, SQLModel

from scorekeeper.models.fields import ScoreType
from scorekeeper.schemas.base import UTCDateTime, utcnow


class Season(SQLModel, table=True):  # type: ignore[call-arg]
    __tablename__ = "seasons"
    __table_args__ = (
        UniqueConstraint("league_id", "slug", name="uq_seasons_league_slug"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    league_id: int = Field(foreign_key="leagues.id", index=True)
    name: str
    slug: str = Field(index=True)
    score_type: ScoreType = Field(
        sa_column=Column(
            SAEnum(
                ScoreType,
                name="score_type_enum",
                values_callable=lambda enum: [member.value for member in enum],
            ),
            nullable=False,
        )
    )
    initial_score: int
    # Ignored for 3-1-0 seasons
    k_factor: int
    start_date: datetime = Field(default_factory=utcnow, sa_type=UTCDateTime)
    end_date: Optional[datetime] = Field(default=None, sa_type=UTCDateTime)
    rounds: Optional[int] = Field(default=None, description="Fixture rounds (3-1-0 only)")
    closed: bool = Field(default=False, index=True)
    created_by: str
    created_at: datetime = Field(default_factory=utcnow, sa_type=UTCDateTime)
    updated_at: datetime = Field(default_factory=utcnow, sa_type=UTCDateTime)


class SeasonPlayer(SQLModel, table=True):  # type: ignore[call-arg]
    """A league player's participation in one season.

    ``score`` is a cache of the latest ``MatchPlayer.score_after`` for this
    participant (or the season's ``initial_score``). Only match settlement and
    reversal write it.
    """

    __tablename__ = "season_players"
    __table_args__ = (
        UniqueConstraint("season_id", "player_id", name="uq_season_players_season_player"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    season_id: int = Field(foreign_key="seasons.id", index=True)
    player_id: int = Field(foreign_key="players.id", index=True)
    score: int
    disabled: bool = Field(default=False)
    created_at: datetime = Field(default_factory=utcnow, sa_type=UTCDateTime)
    updated_at: datetime = Field(default_factory=utcnow, sa_type=UTCDateTime)
