"""
Bracket positional math.

Positions are 0-indexed within each round and rounds are 1-indexed. A
single-elimination bracket progresses as:

    Round r, position p  →  Round r+1, position p // 2

So positions 0 and 1 in round 1 feed into position 0 in round 2 (0 as the
home side, 1 as the away side), positions 2 and 3 feed into position 1, etc.

These functions are used by:
- EntrySeeder (bracket size and standard seed order)
- BracketBuilder (round and match counts)
- MatchProgressionEngine (propagation target and reset cascade)
"""


HOME = "home"
AWAY = "away"


def next_pow2(n: int) -> int:
    """
    Smallest power of two that is >= n.

    Examples:
        >>> next_pow2(5)
        8
        >>> next_pow2(8)
        8
        >>> next_pow2(1)
        1
    """
    if n <= 1:
        return 1
    return 1 << (n - 1).bit_length()


def total_rounds(bracket_size: int) -> int:
    """
    Number of elimination rounds for a power-of-two bracket size.

    Examples:
        >>> total_rounds(8)
        3
        >>> total_rounds(2)
        1
    """
    return max(bracket_size, 1).bit_length() - 1


def matches_in_round(bracket_size: int, round_no: int) -> int:
    """
    Number of matches in a round.

    Examples:
        >>> matches_in_round(8, 1)
        4
        >>> matches_in_round(8, 3)
        1
    """
    return bracket_size >> round_no


def get_next_position(position: int) -> int:
    """
    Compute the position in the next round fed by this position.

    Examples:
        >>> get_next_position(0)
        0
        >>> get_next_position(1)
        0
        >>> get_next_position(5)
        2
    """
    return position // 2


def get_next_side(position: int) -> str:
    """Even positions feed the home side of the next match, odd the away side."""
    return HOME if position % 2 == 0 else AWAY


def get_feeder_positions(position: int) -> tuple[int, int]:
    """
    Get the two previous-round positions that feed this position.

    Returns:
        Tuple of (home_feeder, away_feeder)

    Examples:
        >>> get_feeder_positions(0)
        (0, 1)
        >>> get_feeder_positions(2)
        (4, 5)
    """
    return (2 * position, 2 * position + 1)


def standard_bracket_order(bracket_size: int) -> list[int]:
    """
    Generate the standard seed order for a bracket's first-round slots.

    Consecutive pairs are first-round matches. Each seed is paired with its
    complement (size + 1 - seed) and the halves are arranged so that, if
    the higher seed always wins, seeds 1 and 2 only meet in the final.

    For 8 slots: [1, 8, 4, 5, 2, 7, 3, 6] → 1v8, 4v5, 2v7, 3v6

    Examples:
        >>> standard_bracket_order(4)
        [1, 4, 2, 3]
    """
    if bracket_size <= 1:
        return [1]
    if bracket_size == 2:
        return [1, 2]

    upper = standard_bracket_order(bracket_size // 2)
    order = []
    for seed in upper:
        order.extend([seed, bracket_size + 1 - seed])
    return order


def round_name(round_no: int, rounds: int) -> str:
    """
    Human-readable name for a round.

    Examples:
        >>> round_name(3, 3)
        'Final'
        >>> round_name(1, 3)
        'Quarterfinal'
        >>> round_name(1, 5)
        'Round of 32'
    """
    remaining = rounds - round_no
    if remaining == 0:
        return "Final"
    if remaining == 1:
        return "Semifinal"
    if remaining == 2:
        return "Quarterfinal"
    return f"Round of {2 ** (remaining + 1)}"


def validate_round_positions(
    round_no: int,
    positions: list[int],
    bracket_size: int,
) -> list[str]:
    """
    Validate that the positions found for a round are consistent.

    Checks:
    - Positions are within the expected range
    - No duplicate positions
    - No missing positions

    Returns:
        List of warning messages (empty if all valid)
    """
    warnings = []
    expected = matches_in_round(bracket_size, round_no)
    if expected < 1:
        warnings.append(f"Round {round_no}: not part of a {bracket_size}-slot bracket")
        return warnings

    if len(positions) != len(set(positions)):
        warnings.append(f"Round {round_no}: duplicate positions found")

    for pos in positions:
        if pos < 0 or pos >= expected:
            warnings.append(
                f"Round {round_no}: position {pos} out of range (0-{expected - 1})"
            )

    missing = set(range(expected)) - set(positions)
    if missing:
        warnings.append(f"Round {round_no}: missing positions {sorted(missing)}")

    return warnings
