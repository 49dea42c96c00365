"""
Contains PyDantic fields to be used in various models.
"""
from datetime import datetime
from enum import Enum
from typing import Annotated
from pydantic import AfterValidator, Field as PydField

from scorekeeper.schemas.base import as_utc


class ScoreType(str, Enum):
    elo = "elo"
    elo_individual_vs_team = "elo-individual-vs-team"
    three_one_zero = "3-1-0"

    @property
    def label(self) -> str:
        return {
            "elo": "ELO",
            "elo-individual-vs-team": "ELO (individual vs team)",
            "3-1-0": "3-1-0 points",
        }[self.value]

    @property
    def uses_k_factor(self) -> bool:
        return self is not ScoreType.three_one_zero


class MatchResultSymbol(str, Enum):
    W = "W"
    D = "D"
    L = "L"


MATCH_SCORE = Annotated[int, PydField(..., ge=0)]
ROSTER = Annotated[list[int], PydField(..., min_length=1)]
# Naive input is read as UTC
UTC_DATETIME = Annotated[datetime, AfterValidator(as_utc)]
