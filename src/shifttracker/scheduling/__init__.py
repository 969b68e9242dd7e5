"""Rotation engine: pattern evaluation, generation, overrides and swaps."""

from shifttracker.scheduling.generator import ScheduleGenerator
from shifttracker.scheduling.overrides import resolve_working_assignment, whos_working
from shifttracker.scheduling.rotation import (
    coverage_by_date,
    coverage_gaps,
    cycle_index,
    offset_for_entity,
    pattern_window,
    shift_for_date,
    team_offsets,
)
from shifttracker.scheduling.swaps import SwapWorkflow, find_entry, given_away_slots

__all__ = [
    # Pattern evaluation
    "cycle_index",
    "pattern_window",
    "shift_for_date",
    # Offsets and coverage
    "coverage_by_date",
    "coverage_gaps",
    "offset_for_entity",
    "team_offsets",
    # Generation
    "ScheduleGenerator",
    # Overrides
    "resolve_working_assignment",
    "whos_working",
    # Swaps
    "SwapWorkflow",
    "find_entry",
    "given_away_slots",
]
