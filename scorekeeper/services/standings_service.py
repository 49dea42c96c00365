"""Season standings and player statistics read models.

Everything here is derived from live scores plus the effect rows; nothing
writes to the database. Calendar days are UTC days.
"""

from __future__ import annotations

from collections import Counter, defaultdict
from dataclasses import dataclass
from datetime import date, datetime, time, timezone
from typing import Iterable, Optional

from sqlalchemy import and_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import aliased

from scorekeeper.errors import NotFoundError
from scorekeeper.models.fields import MatchResultSymbol
from scorekeeper.models.standings import (
    PlayerStanding,
    PointDiffProgression,
    PointProgression,
    RecentForm,
    TeammateStatistics,
    TeamStanding,
)
from scorekeeper.schemas.leagues import Player
from scorekeeper.schemas.matches import Match, MatchPlayer, MatchTeam
from scorekeeper.schemas.seasons import SeasonPlayer
from scorekeeper.schemas.teams import LeagueTeam, SeasonTeam
from scorekeeper.services.match_service import get_season

FORM_LENGTH = 5


@dataclass(frozen=True)
class EffectRow:
    participant_id: int
    result: MatchResultSymbol
    score_before: int
    score_after: int
    created_at: datetime


@dataclass(frozen=True)
class DailyScore:
    """First ``score_before`` and last ``score_after`` of one participant's day."""

    participant_id: int
    day: date
    opening_score: int
    closing_score: int


@dataclass(frozen=True)
class TeammateRow:
    teammate_id: int
    player_id: int
    name: str
    result: MatchResultSymbol
    score_before: int
    score_after: int


def calculate_point_diffs(rows: Iterable[EffectRow]) -> dict[int, int]:
    """Sum ``score_after - score_before`` per participant."""
    diffs: dict[int, int] = defaultdict(int)
    for row in rows:
        diffs[row.participant_id] += row.score_after - row.score_before
    return dict(diffs)


def group_results_by_participant(
    rows: Iterable[EffectRow], limit: int = FORM_LENGTH
) -> dict[int, list[MatchResultSymbol]]:
    """Most recent results first, at most ``limit`` per participant."""
    ordered = sorted(rows, key=lambda row: row.created_at, reverse=True)
    form: dict[int, list[MatchResultSymbol]] = defaultdict(list)
    for row in ordered:
        if len(form[row.participant_id]) < limit:
            form[row.participant_id].append(row.result)
    return dict(form)


def pick_recent_form_leader(
    forms: dict[int, list[MatchResultSymbol]], *, on_fire: bool
) -> Optional[int]:
    """Participant with the best (``on_fire``) or worst recent record.

    On fire ranks by wins, then draws, then losses; struggling ranks by
    losses, then draws, then wins. Ties go to the lowest id.
    """
    candidates = sorted(pid for pid, form in forms.items() if form)
    if not candidates:
        return None

    def rank(pid: int) -> tuple[int, int, int]:
        counts = Counter(forms[pid])
        wins = counts[MatchResultSymbol.W]
        draws = counts[MatchResultSymbol.D]
        losses = counts[MatchResultSymbol.L]
        return (wins, draws, losses) if on_fire else (losses, draws, wins)

    return max(candidates, key=rank)


def daily_scores(rows: Iterable[EffectRow]) -> list[DailyScore]:
    """Collapse effect rows into one entry per participant and UTC day."""
    days: dict[tuple[int, date], list[int]] = {}
    for row in sorted(rows, key=lambda row: row.created_at):
        key = (row.participant_id, row.created_at.astimezone(timezone.utc).date())
        if key in days:
            days[key][1] = row.score_after
        else:
            days[key] = [row.score_before, row.score_after]
    return [
        DailyScore(participant_id=pid, day=day, opening_score=opening, closing_score=closing)
        for (pid, day), (opening, closing) in sorted(days.items())
    ]


def summarise_teammates(rows: Iterable[TeammateRow]) -> list[TeammateStatistics]:
    """Aggregate per teammate; most shared matches first."""
    by_teammate: dict[int, list[TeammateRow]] = defaultdict(list)
    for row in rows:
        by_teammate[row.teammate_id].append(row)

    stats = []
    for teammate_id, shared in by_teammate.items():
        counts = Counter(row.result for row in shared)
        stats.append(
            TeammateStatistics(
                teammate_season_player_id=teammate_id,
                player_id=shared[0].player_id,
                name=shared[0].name,
                match_count=len(shared),
                win_count=counts[MatchResultSymbol.W],
                draw_count=counts[MatchResultSymbol.D],
                loss_count=counts[MatchResultSymbol.L],
                score_change=sum(row.score_after - row.score_before for row in shared),
            )
        )
    return sorted(stats, key=lambda s: (-s.match_count, -s.score_change, s.name))


def _start_of_day(now: Optional[datetime] = None) -> datetime:
    now = (now or datetime.now(timezone.utc)).astimezone(timezone.utc)
    return datetime.combine(now.date(), time.min, tzinfo=timezone.utc)


async def _season_player_rows(db: AsyncSession, season_id: int):
    result = await db.execute(
        select(SeasonPlayer.id, SeasonPlayer.player_id, SeasonPlayer.score, Player.name)
        .join(Player, Player.id == SeasonPlayer.player_id)  # type: ignore[arg-type]
        .where(
            SeasonPlayer.season_id == season_id,  # type: ignore[arg-type]
            SeasonPlayer.disabled.is_(False),  # type: ignore[attr-defined]
        )
    )
    return result.all()


async def _player_effect_rows(db: AsyncSession, season_id: int) -> list[EffectRow]:
    result = await db.execute(
        select(
            MatchPlayer.season_player_id,
            MatchPlayer.result,
            MatchPlayer.score_before,
            MatchPlayer.score_after,
            MatchPlayer.created_at,
        )
        .join(Match, Match.id == MatchPlayer.match_id)  # type: ignore[arg-type]
        .where(Match.season_id == season_id)  # type: ignore[arg-type]
        .order_by(MatchPlayer.created_at.desc(), MatchPlayer.id.desc())  # type: ignore[attr-defined,union-attr]
    )
    return [EffectRow(*row) for row in result.all()]


async def _team_effect_rows(db: AsyncSession, season_id: int) -> list[EffectRow]:
    result = await db.execute(
        select(
            MatchTeam.season_team_id,
            MatchTeam.result,
            MatchTeam.score_before,
            MatchTeam.score_after,
            MatchTeam.created_at,
        )
        .join(Match, Match.id == MatchTeam.match_id)  # type: ignore[arg-type]
        .where(Match.season_id == season_id)  # type: ignore[arg-type]
        .order_by(MatchTeam.created_at.desc(), MatchTeam.id.desc())  # type: ignore[attr-defined,union-attr]
    )
    return [EffectRow(*row) for row in result.all()]


def _summarise(rows: list[EffectRow], now: Optional[datetime] = None):
    counts: dict[int, Counter] = defaultdict(Counter)
    for row in rows:
        counts[row.participant_id][row.result] += 1
    today = _start_of_day(now)
    point_diffs = calculate_point_diffs(row for row in rows if row.created_at >= today)
    form = group_results_by_participant(rows)
    return counts, point_diffs, form


async def get_player_standings(
    db: AsyncSession, season_id: int, *, now: Optional[datetime] = None
) -> list[PlayerStanding]:
    """Season players ordered by score (highest first), then by name."""
    async with db.begin():
        await get_season(db, season_id)
        players = await _season_player_rows(db, season_id)
        rows = await _player_effect_rows(db, season_id)

    counts, point_diffs, form = _summarise(rows, now)
    standings = [
        PlayerStanding(
            season_player_id=p.id,
            player_id=p.player_id,
            name=p.name,
            score=p.score,
            match_count=sum(counts[p.id].values()),
            win_count=counts[p.id][MatchResultSymbol.W],
            draw_count=counts[p.id][MatchResultSymbol.D],
            loss_count=counts[p.id][MatchResultSymbol.L],
            form=form.get(p.id, []),
            point_diff=point_diffs.get(p.id, 0),
        )
        for p in players
    ]
    return sorted(standings, key=lambda s: (-s.score, s.name))


async def get_team_standings(
    db: AsyncSession, season_id: int, *, now: Optional[datetime] = None
) -> list[TeamStanding]:
    async with db.begin():
        await get_season(db, season_id)
        teams_result = await db.execute(
            select(SeasonTeam.id, SeasonTeam.team_id, SeasonTeam.score, LeagueTeam.name)
            .join(LeagueTeam, LeagueTeam.id == SeasonTeam.team_id)  # type: ignore[arg-type]
            .where(SeasonTeam.season_id == season_id)  # type: ignore[arg-type]
        )
        teams = teams_result.all()
        rows = await _team_effect_rows(db, season_id)

    counts, point_diffs, form = _summarise(rows, now)
    standings = [
        TeamStanding(
            season_team_id=t.id,
            team_id=t.team_id,
            name=t.name,
            score=t.score,
            match_count=sum(counts[t.id].values()),
            win_count=counts[t.id][MatchResultSymbol.W],
            draw_count=counts[t.id][MatchResultSymbol.D],
            loss_count=counts[t.id][MatchResultSymbol.L],
            form=form.get(t.id, []),
            point_diff=point_diffs.get(t.id, 0),
        )
        for t in teams
    ]
    return sorted(standings, key=lambda s: (-s.score, s.name))


async def get_top_player(
    db: AsyncSession, season_id: int, *, now: Optional[datetime] = None
) -> Optional[PlayerStanding]:
    """Highest-scoring active season player, or None for an empty season."""
    standings = await get_player_standings(db, season_id, now=now)
    return standings[0] if standings else None


async def _recent_form_leader(
    db: AsyncSession, season_id: int, *, on_fire: bool
) -> Optional[RecentForm]:
    async with db.begin():
        await get_season(db, season_id)
        players = {p.id: p for p in await _season_player_rows(db, season_id)}
        rows = await _player_effect_rows(db, season_id)

    forms = {
        pid: form
        for pid, form in group_results_by_participant(rows).items()
        if pid in players
    }
    leader = pick_recent_form_leader(forms, on_fire=on_fire)
    if leader is None:
        return None

    player = players[leader]
    counts = Counter(forms[leader])
    return RecentForm(
        season_player_id=player.id,
        player_id=player.player_id,
        name=player.name,
        score=player.score,
        match_count=len(forms[leader]),
        win_count=counts[MatchResultSymbol.W],
        draw_count=counts[MatchResultSymbol.D],
        loss_count=counts[MatchResultSymbol.L],
        form=forms[leader],
    )


async def get_on_fire(db: AsyncSession, season_id: int) -> Optional[RecentForm]:
    """The player with the strongest record over their last five matches."""
    return await _recent_form_leader(db, season_id, on_fire=True)


async def get_struggling(db: AsyncSession, season_id: int) -> Optional[RecentForm]:
    """The player with the weakest record over their last five matches."""
    return await _recent_form_leader(db, season_id, on_fire=False)


async def get_point_progression(db: AsyncSession, season_id: int) -> list[PointProgression]:
    """Closing score per player and day, ordered by player then day."""
    async with db.begin():
        await get_season(db, season_id)
        rows = await _player_effect_rows(db, season_id)
    return [
        PointProgression(season_player_id=d.participant_id, day=d.day, score=d.closing_score)
        for d in daily_scores(rows)
    ]


async def get_point_diff_progression(
    db: AsyncSession, season_id: int
) -> list[PointDiffProgression]:
    """Net score change per player and day, ordered by player then day."""
    async with db.begin():
        await get_season(db, season_id)
        rows = await _player_effect_rows(db, season_id)
    return [
        PointDiffProgression(
            season_player_id=d.participant_id,
            day=d.day,
            point_diff=d.closing_score - d.opening_score,
        )
        for d in daily_scores(rows)
    ]


async def get_teammate_statistics(
    db: AsyncSession, season_id: int, season_player_id: int
) -> list[TeammateStatistics]:
    """How a season player fares alongside each teammate they have played with."""
    teammate = aliased(MatchPlayer)
    async with db.begin():
        found = await db.execute(
            select(SeasonPlayer.id).where(
                SeasonPlayer.id == season_player_id,  # type: ignore[arg-type]
                SeasonPlayer.season_id == season_id,  # type: ignore[arg-type]
            )
        )
        if found.scalar_one_or_none() is None:
            raise NotFoundError("Season player not found")

        result = await db.execute(
            select(
                teammate.season_player_id.label("teammate_id"),
                SeasonPlayer.player_id,
                Player.name,
                MatchPlayer.result,
                MatchPlayer.score_before,
                MatchPlayer.score_after,
            )
            .select_from(MatchPlayer)
            .join(
                teammate,
                and_(
                    teammate.match_id == MatchPlayer.match_id,
                    teammate.home_team == MatchPlayer.home_team,
                    teammate.season_player_id != MatchPlayer.season_player_id,
                ),
            )
            .join(SeasonPlayer, SeasonPlayer.id == teammate.season_player_id)  # type: ignore[arg-type]
            .join(Player, Player.id == SeasonPlayer.player_id)  # type: ignore[arg-type]
            .where(MatchPlayer.season_player_id == season_player_id)  # type: ignore[arg-type]
        )
        rows = [TeammateRow(*row) for row in result.all()]

    return summarise_teammates(rows)
