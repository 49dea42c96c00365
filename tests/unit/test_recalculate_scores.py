"""Unit tests for the score replay used by the recalculation command."""

from scorekeeper.cli.recalculate_scores import ReplayMatch, parse_args, replay_matches
from scorekeeper.models.fields import ScoreType


def test_replay_chains_scores_from_initial_score() -> None:
    matches = [
        ReplayMatch(match_id=1, home_score=3, away_score=0, home_ids=(1,), away_ids=(2,)),
        ReplayMatch(match_id=2, home_score=0, away_score=1, home_ids=(1,), away_ids=(3,)),
    ]

    replay = replay_matches(ScoreType.elo, 32, 1200, matches)

    assert replay.effects[(1, 1)].score_after == 1216
    assert replay.effects[(2, 1)].score_before == 1216
    assert replay.final_scores[2] == 1184
    assert replay.final_scores[1] == replay.effects[(2, 1)].score_after


def test_replay_points_season() -> None:
    matches = [
        ReplayMatch(match_id=1, home_score=1, away_score=1, home_ids=(1,), away_ids=(2,)),
        ReplayMatch(match_id=2, home_score=2, away_score=0, home_ids=(2,), away_ids=(1,)),
    ]

    replay = replay_matches(ScoreType.three_one_zero, -1, 0, matches)

    assert replay.final_scores == {1: 1, 2: 4}


def test_parse_args_defaults_to_dry_run() -> None:
    args = parse_args(["--season-id", "7"])

    assert args.season_id == 7
    assert args.execute is False
