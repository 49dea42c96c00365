"""League and league membership tables."""

from datetime import datetime
from typing import Optional

from sqlalchemy import UniqueConstraint
from sqlmodel import Field, SQLModel

from scorekeeper.schemas.base import UTCDateTime, utcnow


class League(SQLModel, table=True):  # type: ignore[call-arg]
    __tablename__ = "leagues"

    id: Optional[int] = Field(default=None, primary_key=True)
    name: str
    slug: str = Field(unique=True, index=True)
    created_by: str
    created_at: datetime = Field(default_factory=utcnow, sa_type=UTCDateTime)
    updated_at: datetime = Field(default_factory=utcnow, sa_type=UTCDateTime)


class Player(SQLModel, table=True):  # type: ignore[call-arg]
    """A person's membership in a league.

    The person itself lives in the external auth system and is referenced by
    ``user_id``; ``name`` is a display copy used for team naming.
    """

    __tablename__ = "players"
    __table_args__ = (
        UniqueConstraint("league_id", "user_id", name="uq_players_league_user"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    league_id: int = Field(foreign_key="leagues.id", index=True)
    user_id: str = Field(index=True)
    name: str
    disabled: bool = Field(default=False)
    created_at: datetime = Field(default_factory=utcnow, sa_type=UTCDateTime)
    updated_at: datetime = Field(default_factory=utcnow, sa_type=UTCDateTime)

    @property
    def first_name(self) -> str:
        parts = self.name.split()
        return parts[0] if parts else self.name
