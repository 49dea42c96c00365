"""Rating strategies for match settlement.

Pure functions over (current score, outcome); no database access. The
season's ``ScoreType`` selects one of two strategies:

* ELO family (``elo`` and ``elo-individual-vs-team``)
* fixed points (``3-1-0``)
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Mapping, Sequence

from scorekeeper.errors import InternalError
from scorekeeper.models.fields import MatchResultSymbol, ScoreType

FIXED_POINTS_ODDS = 0.5
WIN_POINTS = 3
DRAW_POINTS = 1
LOSS_POINTS = 0


@dataclass(frozen=True)
class RatedEntity:
    """A player or team with its score as of the settlement read."""

    id: int
    score: int


@dataclass(frozen=True)
class EntityScore:
    id: int
    score_before: int
    score_after: int

    @property
    def delta(self) -> int:
        return self.score_after - self.score_before


@dataclass(frozen=True)
class SideOutcome:
    winning_odds: float
    entities: tuple[EntityScore, ...]

    def score_after(self, entity_id: int) -> int:
        for entity in self.entities:
            if entity.id == entity_id:
                return entity.score_after
        raise KeyError(entity_id)


@dataclass(frozen=True)
class SettlementOutcome:
    home: SideOutcome
    away: SideOutcome

    @property
    def entities(self) -> tuple[EntityScore, ...]:
        return self.home.entities + self.away.entities


def determine_result(
    home_score: int, away_score: int
) -> tuple[MatchResultSymbol, MatchResultSymbol]:
    """Return (home_result, away_result) from the final scores."""
    if home_score > away_score:
        return MatchResultSymbol.W, MatchResultSymbol.L
    if home_score < away_score:
        return MatchResultSymbol.L, MatchResultSymbol.W
    return MatchResultSymbol.D, MatchResultSymbol.D


def actual_score(result: MatchResultSymbol) -> float:
    return {
        MatchResultSymbol.W: 1.0,
        MatchResultSymbol.D: 0.5,
        MatchResultSymbol.L: 0.0,
    }[result]


def expected_score(rating: float, opponent_rating: float) -> float:
    """Logistic ELO expectation of ``rating`` against ``opponent_rating``."""
    return 1.0 / (1.0 + math.pow(10.0, (opponent_rating - rating) / 400.0))


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def _mean(side: Sequence[RatedEntity]) -> float:
    return sum(entity.score for entity in side) / len(side)


class EloStrategy:
    """ELO rating change applied independently to every member of a side.

    With ``individual_vs_team`` each member's expectation is computed from
    their own score against the opposing side's mean; otherwise every member
    shares the side-vs-side expectation. Winning odds reported for the side are
    always side mean against side mean.
    """

    def __init__(self, *, individual_vs_team: bool = False) -> None:
        self.individual_vs_team = individual_vs_team

    def _side(
        self,
        k_factor: int,
        side: Sequence[RatedEntity],
        opponent: Sequence[RatedEntity],
        result: MatchResultSymbol,
    ) -> SideOutcome:
        side_rating = _mean(side)
        opponent_rating = _mean(opponent)
        odds = expected_score(side_rating, opponent_rating)
        actual = actual_score(result)

        entities = []
        for entity in side:
            if self.individual_vs_team:
                expected = expected_score(entity.score, opponent_rating)
            else:
                expected = odds
            new_score = round_half_up(entity.score + k_factor * (actual - expected))
            entities.append(
                EntityScore(id=entity.id, score_before=entity.score, score_after=new_score)
            )
        return SideOutcome(winning_odds=odds, entities=tuple(entities))

    def settle(
        self,
        k_factor: int,
        home: Sequence[RatedEntity],
        home_score: int,
        away: Sequence[RatedEntity],
        away_score: int,
    ) -> SettlementOutcome:
        home_result, away_result = determine_result(home_score, away_score)
        return SettlementOutcome(
            home=self._side(k_factor, home, away, home_result),
            away=self._side(k_factor, away, home, away_result),
        )


class FixedPointsStrategy:
    """3 points for a win, 1 for a draw, 0 for a loss. K-factor is ignored."""

    @staticmethod
    def _points(result: MatchResultSymbol) -> int:
        return {
            MatchResultSymbol.W: WIN_POINTS,
            MatchResultSymbol.D: DRAW_POINTS,
            MatchResultSymbol.L: LOSS_POINTS,
        }[result]

    def _side(self, side: Sequence[RatedEntity], result: MatchResultSymbol) -> SideOutcome:
        points = self._points(result)
        return SideOutcome(
            winning_odds=FIXED_POINTS_ODDS,
            entities=tuple(
                EntityScore(
                    id=entity.id,
                    score_before=entity.score,
                    score_after=entity.score + points,
                )
                for entity in side
            ),
        )

    def settle(
        self,
        k_factor: int,  # noqa: ARG002
        home: Sequence[RatedEntity],
        home_score: int,
        away: Sequence[RatedEntity],
        away_score: int,
    ) -> SettlementOutcome:
        home_result, away_result = determine_result(home_score, away_score)
        return SettlementOutcome(
            home=self._side(home, home_result),
            away=self._side(away, away_result),
        )


STRATEGIES: Mapping[ScoreType, EloStrategy | FixedPointsStrategy] = {
    ScoreType.elo: EloStrategy(),
    ScoreType.elo_individual_vs_team: EloStrategy(individual_vs_team=True),
    ScoreType.three_one_zero: FixedPointsStrategy(),
}


def get_strategy(score_type: ScoreType | str) -> EloStrategy | FixedPointsStrategy:
    try:
        return STRATEGIES[ScoreType(score_type)]
    except (KeyError, ValueError) as exc:
        raise InternalError(f"Unsupported score type: {score_type!r}") from exc


def settle(
    score_type: ScoreType | str,
    k_factor: int,
    home: Sequence[RatedEntity],
    home_score: int,
    away: Sequence[RatedEntity],
    away_score: int,
) -> SettlementOutcome:
    """Compute every entity's new score for one side-vs-side comparison.

    Callers validate the input first: both sides non-empty, known score type.
    """
    strategy = get_strategy(score_type)
    return strategy.settle(k_factor, home, home_score, away, away_score)
