"""Replay a season's matches and reconcile cached scores.

Usage:
    python -m scorekeeper.cli.recalculate_scores --season-id 12
    python -m scorekeeper.cli.recalculate_scores --season-id 12 --execute
"""

from __future__ import annotations

import argparse
import asyncio
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from scorekeeper.config import settings
from scorekeeper.logging_config import setup_logging
from scorekeeper.models.fields import ScoreType
from scorekeeper.schemas.base import utcnow
from scorekeeper.schemas.matches import Match, MatchPlayer, MatchTeam
from scorekeeper.schemas.seasons import SeasonPlayer
from scorekeeper.schemas.teams import SeasonTeam
from scorekeeper.services.match_service import get_season
from scorekeeper.services.rating_service import EntityScore, RatedEntity, settle
from scorekeeper.utils.db_async import SessionLocal, load_schema_modules


@dataclass(frozen=True)
class ReplayMatch:
    match_id: int
    home_score: int
    away_score: int
    home_ids: Tuple[int, ...]
    away_ids: Tuple[int, ...]


@dataclass
class ReplayResult:
    # (match_id, participant_id) -> derived before/after
    effects: Dict[Tuple[int, int], EntityScore] = field(default_factory=dict)
    final_scores: Dict[int, int] = field(default_factory=dict)


def replay_matches(
    score_type: ScoreType,
    k_factor: int,
    initial_score: int,
    matches: Sequence[ReplayMatch],
) -> ReplayResult:
    """Fold matches (oldest first) through the rating strategy from ``initial_score``."""
    scores: Dict[int, int] = defaultdict(lambda: initial_score)
    replay = ReplayResult()
    for match in matches:
        if not match.home_ids or not match.away_ids:
            continue
        outcome = settle(
            score_type,
            k_factor,
            [RatedEntity(id=pid, score=scores[pid]) for pid in match.home_ids],
            match.home_score,
            [RatedEntity(id=pid, score=scores[pid]) for pid in match.away_ids],
            match.away_score,
        )
        for entity in outcome.entities:
            replay.effects[(match.match_id, entity.id)] = entity
            scores[entity.id] = entity.score_after
    replay.final_scores = dict(scores)
    return replay


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description=(
            "Replay every match of a season from the initial score and report\n"
            "season players and teams whose cached score has drifted."
        )
    )
    parser.add_argument("--season-id", type=int, required=True, help="Season to audit.")
    parser.add_argument(
        "--execute",
        action="store_true",
        help="Rewrite effect rows and cached scores (omit to run in dry-run mode).",
    )
    return parser.parse_args(argv)


def _participant_attr(effect_model) -> str:
    return "season_player_id" if effect_model is MatchPlayer else "season_team_id"


async def _load_replay(
    db: AsyncSession, season_id: int, effect_model
) -> Tuple[List[ReplayMatch], List]:
    result = await db.execute(
        select(Match, effect_model)
        .join(effect_model, effect_model.match_id == Match.id)
        .where(Match.season_id == season_id)  # type: ignore[arg-type]
        .order_by(Match.created_at, Match.id, effect_model.id)  # type: ignore[arg-type]
    )
    rows = result.all()

    ordered: Dict[int, Match] = {}
    home: Dict[int, List[int]] = defaultdict(list)
    away: Dict[int, List[int]] = defaultdict(list)
    effects = []
    for match, effect in rows:
        ordered.setdefault(match.id, match)
        participant_id = getattr(effect, _participant_attr(effect_model))
        (home if effect.home_team else away)[match.id].append(participant_id)
        effects.append(effect)

    matches = [
        ReplayMatch(
            match_id=match_id,
            home_score=match.home_score,
            away_score=match.away_score,
            home_ids=tuple(home[match_id]),
            away_ids=tuple(away[match_id]),
        )
        for match_id, match in ordered.items()
    ]
    return matches, effects


async def _reconcile(
    db: AsyncSession,
    *,
    label: str,
    season_id: int,
    score_type: ScoreType,
    k_factor: int,
    initial_score: int,
    effect_model,
    live_model,
    execute: bool,
) -> int:
    """Return the number of drifted cached scores for one participant kind."""
    matches, effects = await _load_replay(db, season_id, effect_model)
    replay = replay_matches(score_type, k_factor, initial_score, matches)
    participant_attr = _participant_attr(effect_model)

    effect_drift = 0
    for effect in effects:
        derived = replay.effects.get((effect.match_id, getattr(effect, participant_attr)))
        if derived is None:
            continue
        if (effect.score_before, effect.score_after) != (derived.score_before, derived.score_after):
            effect_drift += 1
            if execute:
                effect.score_before = derived.score_before
                effect.score_after = derived.score_after
                db.add(effect)

    live_result = await db.execute(
        select(live_model.id, live_model.score).where(live_model.season_id == season_id)
    )
    score_drift = 0
    now = utcnow()
    for participant_id, cached in live_result.all():
        derived_score = replay.final_scores.get(participant_id, initial_score)
        if cached == derived_score:
            continue
        score_drift += 1
        print(f"[{label}] {participant_id}: cached={cached} derived={derived_score}")
        if execute:
            await db.execute(
                update(live_model)
                .where(live_model.id == participant_id)
                .values(score=derived_score, updated_at=now)
            )

    print(
        f"[{label}] matches={len(matches)} drifted_scores={score_drift} "
        f"drifted_effect_rows={effect_drift}"
    )
    return score_drift


async def run_recalculate(argv: Optional[Sequence[str]] = None) -> int:
    args = parse_args(argv)
    setup_logging(level=settings.log_level, access_log=False)
    load_schema_modules()

    async with SessionLocal() as db:
        async with db.begin():
            season = await get_season(db, args.season_id)
            common = dict(
                season_id=args.season_id,
                score_type=season.score_type,
                k_factor=season.k_factor,
                initial_score=season.initial_score,
                execute=args.execute,
            )
            drift = await _reconcile(
                db, label="player", effect_model=MatchPlayer, live_model=SeasonPlayer, **common
            )
            drift += await _reconcile(
                db, label="team", effect_model=MatchTeam, live_model=SeasonTeam, **common
            )

    mode = "rewritten" if args.execute else "dry-run"
    print(f"Season {args.season_id}: {drift} drifted score(s) ({mode})")
    return drift


def main(argv: Optional[Sequence[str]] = None) -> None:
    asyncio.run(run_recalculate(argv))


if __name__ == "__main__":
    main()
