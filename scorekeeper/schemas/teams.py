"""Team aggregates derived from the exact set of players who played together."""

from datetime import datetime
from typing import Iterable, Optional

from sqlalchemy import UniqueConstraint
from sqlmodel import Field, SQLModel

from scorekeeper.schemas.base import UTCDateTime, utcnow


def roster_key(player_ids: Iterable[int]) -> str:
    """Canonical, order-independent signature for a set of player ids."""
    return ",".join(str(player_id) for player_id in sorted(set(player_ids)))


class LeagueTeam(SQLModel, table=True):  # type: ignore[call-arg]
    __tablename__ = "league_teams"
    __table_args__ = (
        UniqueConstraint("league_id", "roster_key", name="uq_league_teams_roster"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    league_id: int = Field(foreign_key="leagues.id", index=True)
    name: str
    roster_key: str = Field(description="Sorted, comma-joined player ids")
    created_at: datetime = Field(default_factory=utcnow, sa_type=UTCDateTime)
    updated_at: datetime = Field(default_factory=utcnow, sa_type=UTCDateTime)


class LeagueTeamPlayer(SQLModel, table=True):  # type: ignore[call-arg]
    __tablename__ = "league_team_players"

    team_id: int = Field(foreign_key="league_teams.id", primary_key=True)
    player_id: int = Field(foreign_key="players.id", primary_key=True, index=True)
    created_at: datetime = Field(default_factory=utcnow, sa_type=UTCDateTime)


class SeasonTeam(SQLModel, table=True):  # type: ignore[call-arg]
    """A team's participation in one season; ``score`` follows the same rules as SeasonPlayer."""

    __tablename__ = "season_teams"
    __table_args__ = (
        UniqueConstraint("season_id", "team_id", name="uq_season_teams_season_team"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    season_id: int = Field(foreign_key="seasons.id", index=True)
    team_id: int = Field(foreign_key="league_teams.id", index=True)
    score: int
    created_at: datetime = Field(default_factory=utcnow, sa_type=UTCDateTime)
    updated_at: datetime = Field(default_factory=utcnow, sa_type=UTCDateTime)
