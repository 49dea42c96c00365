"""Initial schema for leagues, seasons, matches and fixtures.

Revision ID: 20261019_000001
Revises:
Create Date: 2026-10-19 00:00:01
"""

from alembic import op  # type: ignore[attr-defined]
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

revision = "20261019_000001"
down_revision = None
branch_labels = None
depends_on = None

SCORE_TYPES = ("elo", "elo-individual-vs-team", "3-1-0")
MATCH_RESULTS = ("W", "D", "L")


def _enum(name: str, values: tuple[str, ...]) -> sa.Enum:
    if op.get_bind().dialect.name == "postgresql":
        return postgresql.ENUM(*values, name=name, create_type=False)
    return sa.Enum(*values, name=name)


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    ]


def upgrade() -> None:
    bind = op.get_bind()
    if bind.dialect.name == "postgresql":
        postgresql.ENUM(*SCORE_TYPES, name="score_type_enum").create(bind, checkfirst=True)
        postgresql.ENUM(*MATCH_RESULTS, name="match_result_enum").create(bind, checkfirst=True)
    score_type_enum = _enum("score_type_enum", SCORE_TYPES)
    match_result_enum = _enum("match_result_enum", MATCH_RESULTS)

    op.create_table(
        "leagues",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("slug", sa.String(), nullable=False),
        sa.Column("created_by", sa.String(), nullable=False),
        *_timestamps(),
    )
    op.create_index("ix_leagues_slug", "leagues", ["slug"], unique=True)

    op.create_table(
        "players",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column("league_id", sa.Integer(), sa.ForeignKey("leagues.id"), nullable=False),
        sa.Column("user_id", sa.String(), nullable=False),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("disabled", sa.Boolean(), nullable=False, server_default=sa.false()),
        *_timestamps(),
        sa.UniqueConstraint("league_id", "user_id", name="uq_players_league_user"),
    )
    op.create_index("ix_players_league_id", "players", ["league_id"])
    op.create_index("ix_players_user_id", "players", ["user_id"])

    op.create_table(
        "seasons",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column("league_id", sa.Integer(), sa.ForeignKey("leagues.id"), nullable=False),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("slug", sa.String(), nullable=False),
        sa.Column("score_type", score_type_enum, nullable=False),
        sa.Column("initial_score", sa.Integer(), nullable=False),
        sa.Column("k_factor", sa.Integer(), nullable=False),
        sa.Column("start_date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("end_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("rounds", sa.Integer(), nullable=True),
        sa.Column("closed", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("created_by", sa.String(), nullable=False),
        *_timestamps(),
        sa.UniqueConstraint("league_id", "slug", name="uq_seasons_league_slug"),
    )
    op.create_index("ix_seasons_league_id", "seasons", ["league_id"])
    op.create_index("ix_seasons_slug", "seasons", ["slug"])
    op.create_index("ix_seasons_closed", "seasons", ["closed"])

    op.create_table(
        "season_players",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column("season_id", sa.Integer(), sa.ForeignKey("seasons.id"), nullable=False),
        sa.Column("player_id", sa.Integer(), sa.ForeignKey("players.id"), nullable=False),
        sa.Column("score", sa.Integer(), nullable=False),
        sa.Column("disabled", sa.Boolean(), nullable=False, server_default=sa.false()),
        *_timestamps(),
        sa.UniqueConstraint("season_id", "player_id", name="uq_season_players_season_player"),
    )
    op.create_index("ix_season_players_season_id", "season_players", ["season_id"])
    op.create_index("ix_season_players_player_id", "season_players", ["player_id"])

    op.create_table(
        "league_teams",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column("league_id", sa.Integer(), sa.ForeignKey("leagues.id"), nullable=False),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("roster_key", sa.String(), nullable=False),
        *_timestamps(),
        sa.UniqueConstraint("league_id", "roster_key", name="uq_league_teams_roster"),
    )
    op.create_index("ix_league_teams_league_id", "league_teams", ["league_id"])

    op.create_table(
        "league_team_players",
        sa.Column("team_id", sa.Integer(), sa.ForeignKey("league_teams.id"), primary_key=True),
        sa.Column("player_id", sa.Integer(), sa.ForeignKey("players.id"), primary_key=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_league_team_players_player_id", "league_team_players", ["player_id"])

    op.create_table(
        "season_teams",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column("season_id", sa.Integer(), sa.ForeignKey("seasons.id"), nullable=False),
        sa.Column("team_id", sa.Integer(), sa.ForeignKey("league_teams.id"), nullable=False),
        sa.Column("score", sa.Integer(), nullable=False),
        *_timestamps(),
        sa.UniqueConstraint("season_id", "team_id", name="uq_season_teams_season_team"),
    )
    op.create_index("ix_season_teams_season_id", "season_teams", ["season_id"])
    op.create_index("ix_season_teams_team_id", "season_teams", ["team_id"])

    op.create_table(
        "matches",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column("season_id", sa.Integer(), sa.ForeignKey("seasons.id"), nullable=False),
        sa.Column("home_score", sa.Integer(), nullable=False),
        sa.Column("away_score", sa.Integer(), nullable=False),
        sa.Column("home_expected_elo", sa.Float(), nullable=True),
        sa.Column("away_expected_elo", sa.Float(), nullable=True),
        sa.Column("created_by", sa.String(), nullable=False),
        sa.Column("updated_by", sa.String(), nullable=False),
        *_timestamps(),
    )
    op.create_index("ix_matches_season_created", "matches", ["season_id", "created_at"])

    op.create_table(
        "match_players",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column("match_id", sa.Integer(), sa.ForeignKey("matches.id"), nullable=False),
        sa.Column(
            "season_player_id",
            sa.Integer(),
            sa.ForeignKey("season_players.id"),
            nullable=False,
        ),
        sa.Column("home_team", sa.Boolean(), nullable=False),
        sa.Column("result", match_result_enum, nullable=False),
        sa.Column("score_before", sa.Integer(), nullable=False),
        sa.Column("score_after", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_match_players_match_id", "match_players", ["match_id"])
    op.create_index(
        "ix_match_players_season_player_created",
        "match_players",
        ["season_player_id", "created_at"],
    )

    op.create_table(
        "match_teams",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column("match_id", sa.Integer(), sa.ForeignKey("matches.id"), nullable=False),
        sa.Column(
            "season_team_id",
            sa.Integer(),
            sa.ForeignKey("season_teams.id"),
            nullable=False,
        ),
        sa.Column("home_team", sa.Boolean(), nullable=False),
        sa.Column("result", match_result_enum, nullable=False),
        sa.Column("score_before", sa.Integer(), nullable=False),
        sa.Column("score_after", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_match_teams_match_id", "match_teams", ["match_id"])
    op.create_index("ix_match_teams_season_team_id", "match_teams", ["season_team_id"])

    op.create_table(
        "fixtures",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column("season_id", sa.Integer(), sa.ForeignKey("seasons.id"), nullable=False),
        sa.Column("round", sa.Integer(), nullable=False),
        sa.Column(
            "home_player_id",
            sa.Integer(),
            sa.ForeignKey("season_players.id"),
            nullable=False,
        ),
        sa.Column(
            "away_player_id",
            sa.Integer(),
            sa.ForeignKey("season_players.id"),
            nullable=False,
        ),
        sa.Column("match_id", sa.Integer(), sa.ForeignKey("matches.id"), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_fixtures_season_id", "fixtures", ["season_id"])
    op.create_index("ix_fixtures_match_id", "fixtures", ["match_id"])


def downgrade() -> None:
    for table in (
        "fixtures",
        "match_teams",
        "match_players",
        "matches",
        "season_teams",
        "league_team_players",
        "league_teams",
        "season_players",
        "seasons",
        "players",
        "leagues",
    ):
        op.drop_table(table)

    bind = op.get_bind()
    if bind.dialect.name == "postgresql":
        postgresql.ENUM(name="match_result_enum").drop(bind, checkfirst=True)
        postgresql.ENUM(name="score_type_enum").drop(bind, checkfirst=True)
