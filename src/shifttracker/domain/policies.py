"""Policy definitions for roster rules.

This module contains configurable policies that define business rules for
shift clock times and straights weeks. Policies are kept separate from the
rotation engine to allow independent testing and easy modification.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import date, time
from typing import Optional

from shifttracker.domain.models import ShiftType


class ShiftTimePolicy(ABC):
    """Abstract base class for shift clock-time policies."""

    @abstractmethod
    def get_times(self, shift_type: ShiftType) -> tuple[Optional[time], Optional[time]]:
        """Get the (start, end) clock times for a shift type.

        Args:
            shift_type: The shift type to look up.

        Returns:
            Tuple of (start_time, end_time); both None for a day off.
        """
        pass

    @abstractmethod
    def get_location(self, shift_type: ShiftType) -> str:
        """Get the default work location for a shift type."""
        pass


class StraightsPolicy(ABC):
    """Abstract base class for straights week rules."""

    @abstractmethod
    def is_valid_start(self, start_date: date) -> bool:
        """Check if a straights assignment may start on this date."""
        pass

    @abstractmethod
    def is_valid_end(self, start_date: date, end_date: date) -> bool:
        """Check if a straights assignment may end on this date."""
        pass


@dataclass
class DefaultShiftTimePolicy(ShiftTimePolicy):
    """Default twelve-hour shift times.

    - Day: 06:00 - 18:00
    - Night: 18:00 - 06:00 (ends the next morning)
    - Straights: 07:00 - 15:00
    - Off: no times
    """

    day_start: time = time(6, 0)
    day_end: time = time(18, 0)
    night_start: time = time(18, 0)
    night_end: time = time(6, 0)
    straights_start: time = time(7, 0)
    straights_end: time = time(15, 0)
    default_location: str = "Main Plant"

    def get_times(self, shift_type: ShiftType) -> tuple[Optional[time], Optional[time]]:
        if shift_type is ShiftType.DAY:
            return (self.day_start, self.day_end)
        elif shift_type is ShiftType.NIGHT:
            return (self.night_start, self.night_end)
        elif shift_type is ShiftType.STRAIGHTS:
            return (self.straights_start, self.straights_end)
        else:
            return (None, None)

    def get_location(self, shift_type: ShiftType) -> str:
        return self.default_location


@dataclass
class DefaultStraightsPolicy(StraightsPolicy):
    """Default straights policy: Monday through Friday of a single week."""

    start_weekday: int = 0  # Monday
    end_weekday: int = 4  # Friday

    def is_valid_start(self, start_date: date) -> bool:
        return start_date.weekday() == self.start_weekday

    def is_valid_end(self, start_date: date, end_date: date) -> bool:
        if end_date < start_date:
            return False
        if end_date.weekday() != self.end_weekday:
            return False
        # Same week: the end is reached without passing another start day
        return (end_date - start_date).days < 7


def format_clock(value: Optional[time]) -> str:
    """Format a clock time as HH:MM, empty for None."""
    if value is None:
        return ""
    return value.strftime("%H:%M")


def parse_clock(text: str) -> Optional[time]:
    """Parse HH:MM or the legacy HHMM form; empty means None."""
    text = (text or "").strip()
    if not text:
        return None
    if ":" in text:
        hours, mins = text.split(":", 1)
    elif len(text) == 4 and text.isdigit():
        hours, mins = text[:2], text[2:]
    else:
        raise ValueError(f"Unrecognized clock time: {text!r}")
    return time(hour=int(hours), minute=int(mins))
