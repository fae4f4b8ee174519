"""Unit tests for bracket positional math."""

import pytest

from tourney.draw import (
    AWAY,
    HOME,
    get_feeder_positions,
    get_next_position,
    get_next_side,
    matches_in_round,
    next_pow2,
    round_name,
    standard_bracket_order,
    total_rounds,
    validate_round_positions,
)


@pytest.mark.parametrize(
    "n, expected",
    [(1, 1), (2, 2), (3, 4), (5, 8), (8, 8), (9, 16), (33, 64)],
)
def test_next_pow2(n, expected):
    assert next_pow2(n) == expected


def test_total_rounds_and_matches_in_round():
    assert total_rounds(2) == 1
    assert total_rounds(8) == 3
    assert total_rounds(64) == 6
    assert [matches_in_round(16, r) for r in range(1, 5)] == [8, 4, 2, 1]


def test_next_position_and_side():
    assert [get_next_position(p) for p in range(6)] == [0, 0, 1, 1, 2, 2]
    assert get_next_side(0) == HOME
    assert get_next_side(1) == AWAY
    assert get_next_side(6) == HOME


def test_feeders_invert_next_position():
    for position in range(8):
        home, away = get_feeder_positions(position)
        assert get_next_position(home) == position
        assert get_next_position(away) == position
        assert get_next_side(home) == HOME
        assert get_next_side(away) == AWAY


class TestStandardBracketOrder:
    """Tests for the standard seed order."""

    def test_eight_slots(self):
        assert standard_bracket_order(8) == [1, 8, 4, 5, 2, 7, 3, 6]

    def test_sixteen_slots_pairs_sum_to_size_plus_one(self):
        order = standard_bracket_order(16)
        assert sorted(order) == list(range(1, 17))
        pairs = [order[i:i + 2] for i in range(0, 16, 2)]
        assert all(a + b == 17 for a, b in pairs)

    def test_top_two_seeds_in_opposite_halves(self):
        for size in (4, 8, 16, 32):
            order = standard_bracket_order(size)
            half = size // 2
            assert order.index(1) < half
            assert order.index(2) >= half

    def test_small_sizes(self):
        assert standard_bracket_order(1) == [1]
        assert standard_bracket_order(2) == [1, 2]
        assert standard_bracket_order(4) == [1, 4, 2, 3]


def test_round_names():
    assert round_name(5, 5) == "Final"
    assert round_name(4, 5) == "Semifinal"
    assert round_name(3, 5) == "Quarterfinal"
    assert round_name(2, 5) == "Round of 16"
    assert round_name(1, 5) == "Round of 32"


class TestValidateRoundPositions:
    """Tests for round position validation."""

    def test_complete_round_is_valid(self):
        assert validate_round_positions(1, [0, 1, 2, 3], 8) == []

    def test_missing_and_duplicate_positions(self):
        warnings = validate_round_positions(1, [0, 0, 2], 8)
        assert any("duplicate" in w for w in warnings)
        assert any("missing positions [1, 3]" in w for w in warnings)

    def test_out_of_range_position(self):
        warnings = validate_round_positions(3, [0, 1], 8)
        assert any("out of range" in w for w in warnings)

    def test_round_beyond_bracket(self):
        warnings = validate_round_positions(4, [0], 8)
        assert warnings == ["Round 4: not part of a 8-slot bracket"]
