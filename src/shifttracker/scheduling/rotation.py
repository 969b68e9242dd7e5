"""Rotation pattern evaluation and team offset calculation.

A rotation pattern is a cycle of shift codes repeated indefinitely from a
reference date. Each team (or position) follows the same cycle shifted by an
offset so that, on any date, the teams sit at different phases of the cycle
and the plant stays covered.
"""

import logging
from datetime import date
from typing import Optional, Sequence

from shifttracker.domain.errors import InvalidArgument
from shifttracker.domain.models import (
    PATTERN_CODES,
    PatternLike,
    RotationPattern,
    ShiftType,
    date_range,
    parse_pattern_string,
)

logger = logging.getLogger(__name__)


def cycle_index(adjusted: int, cycle_length: int) -> int:
    """Map any day number onto a position in a cycle.

    Python's % already returns a non-negative result for a positive
    divisor; the second modulo keeps the formula correct independent of
    that and documents the wraparound for dates before the reference.

    Raises:
        InvalidArgument: If cycle_length is not positive.
    """
    if cycle_length <= 0:
        raise InvalidArgument(f"cycle length must be positive, got {cycle_length}")
    return ((adjusted % cycle_length) + cycle_length) % cycle_length


def _sequence_of(pattern: PatternLike) -> list[str]:
    if isinstance(pattern, RotationPattern):
        return pattern.sequence
    if isinstance(pattern, str):
        return parse_pattern_string(pattern)
    return list(pattern)


def code_to_shift(code: str, pattern_id: Optional[str] = None) -> ShiftType:
    """Convert a pattern code to a shift type.

    Unknown codes are a data-quality problem in an externally edited
    pattern, not a logic fault: they are logged and treated as Off.
    """
    shift_type = PATTERN_CODES.get(code.strip().upper())
    if shift_type is None:
        logger.warning(
            "Unrecognized shift code %r in pattern %s, treating as Off",
            code,
            pattern_id or "<inline>",
        )
        return ShiftType.OFF
    return shift_type


def shift_for_date(
    on_date: date,
    reference_start_date: date,
    pattern: PatternLike,
    offset_days: int = 0,
) -> ShiftType:
    """Get the shift a pattern prescribes on a date.

    Args:
        on_date: Date to evaluate.
        reference_start_date: Date on which an offset of 0 sits at cycle day 0.
        pattern: A RotationPattern, a comma-separated pattern string or a
            list of codes. The cycle length is the length of the sequence.
        offset_days: Days added before indexing into the cycle.

    Returns:
        DAY, NIGHT or OFF.

    Raises:
        InvalidArgument: If the pattern has no codes.

    Example:
        >>> shift_for_date(date(2024, 1, 8), date(2024, 1, 1), "D,D,D,D,O,O,O,N")
        <ShiftType.NIGHT: 'Night'>
    """
    sequence = _sequence_of(pattern)
    days_since_reference = (on_date - reference_start_date).days
    adjusted = days_since_reference + offset_days
    index = cycle_index(adjusted, len(sequence))

    pattern_id = pattern.id if isinstance(pattern, RotationPattern) else None
    return code_to_shift(sequence[index], pattern_id)


def pattern_window(
    pattern: PatternLike,
    reference_start_date: date,
    start: date,
    days: int,
    offset_days: int = 0,
) -> list[tuple[date, ShiftType]]:
    """Evaluate a pattern over consecutive dates.

    Returns:
        List of (date, shift_type) pairs, one per day.
    """
    if days < 0:
        raise InvalidArgument(f"days must not be negative, got {days}")
    return [
        (d, shift_for_date(d, reference_start_date, pattern, offset_days))
        for d in date_range(start, days)
    ]


def offset_for_entity(entity_index: int, total_entities: int, cycle_length: int) -> int:
    """Days to offset one of `total_entities` teams so they spread over a cycle.

    Example:
        >>> [offset_for_entity(i, 5, 28) for i in range(5)]
        [0, 5, 11, 16, 22]

    Raises:
        InvalidArgument: If total_entities is not positive.
    """
    if total_entities <= 0:
        raise InvalidArgument(
            f"total entities must be positive, got {total_entities}"
        )
    return (entity_index * cycle_length) // total_entities


def team_offsets(team_ids: Sequence[str], cycle_length: int) -> dict[str, int]:
    """Spread an ordered list of teams evenly across one cycle."""
    total = len(team_ids)
    return {
        team_id: offset_for_entity(index, total, cycle_length)
        for index, team_id in enumerate(team_ids)
    }


def coverage_by_date(
    pattern: PatternLike,
    reference_start_date: date,
    offsets: dict[str, int],
    start: date,
    days: int,
) -> dict[date, dict[ShiftType, list[str]]]:
    """Which entities are on each shift type for each date.

    Args:
        pattern: Pattern every entity follows.
        reference_start_date: Shared reference date.
        offsets: Mapping of entity id to offset days.
        start: First date.
        days: Number of dates.

    Returns:
        Dict mapping date to a dict of shift type -> entity ids on it.
    """
    result: dict[date, dict[ShiftType, list[str]]] = {}
    for d in date_range(start, days):
        by_shift: dict[ShiftType, list[str]] = {
            ShiftType.DAY: [],
            ShiftType.NIGHT: [],
            ShiftType.OFF: [],
        }
        for entity_id, offset in offsets.items():
            shift = shift_for_date(d, reference_start_date, pattern, offset)
            by_shift[shift].append(entity_id)
        result[d] = by_shift
    return result


def coverage_gaps(
    coverage: dict[date, dict[ShiftType, list[str]]],
) -> list[tuple[date, ShiftType]]:
    """Dates on which nobody covers the Day or the Night shift."""
    gaps = []
    for d in sorted(coverage):
        for shift in (ShiftType.DAY, ShiftType.NIGHT):
            if not coverage[d].get(shift):
                gaps.append((d, shift))
    return gaps
