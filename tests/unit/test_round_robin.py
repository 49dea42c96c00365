"""Unit tests for round-robin fixture pairing."""

from itertools import combinations

from scorekeeper.services.fixture_service import round_robin_pairings


def test_even_field_meets_everyone_once() -> None:
    pairings = round_robin_pairings([1, 2, 3, 4])

    assert len(pairings) == 6
    met = {frozenset((home, away)) for _, home, away in pairings}
    assert met == {frozenset(pair) for pair in combinations([1, 2, 3, 4], 2)}


def test_odd_field_skips_the_bye() -> None:
    pairings = round_robin_pairings([10, 20, 30])

    assert len(pairings) == 3
    assert all(home != away for _, home, away in pairings)


def test_second_round_swaps_home_and_away() -> None:
    pairings = round_robin_pairings([1, 2, 3, 4], rounds=2)

    first = [(home, away) for round_number, home, away in pairings if round_number == 1]
    second = [(home, away) for round_number, home, away in pairings if round_number == 2]
    assert second == [(away, home) for home, away in first]


def test_too_few_players_yield_nothing() -> None:
    assert round_robin_pairings([1]) == []
    assert round_robin_pairings([]) == []
