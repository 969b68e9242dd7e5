"""Domain models and business rules for the roster."""

from shifttracker.domain.errors import (
    InvalidArgument,
    InvalidStateTransition,
    NotFoundError,
    TrackerError,
    ValidationFailed,
)
from shifttracker.domain.models import (
    PATTERN_CODES,
    AssignmentSource,
    EffectiveAssignment,
    GenerationResult,
    PatternAssignment,
    Person,
    PersonStatus,
    Position,
    RotationPattern,
    ScheduleEntry,
    ShiftSwap,
    ShiftType,
    StraightsAssignment,
    SwapStatus,
    Team,
)
from shifttracker.domain.policies import (
    DefaultShiftTimePolicy,
    DefaultStraightsPolicy,
    ShiftTimePolicy,
    StraightsPolicy,
)

__all__ = [
    # Models
    "AssignmentSource",
    "EffectiveAssignment",
    "GenerationResult",
    "PATTERN_CODES",
    "PatternAssignment",
    "Person",
    "PersonStatus",
    "Position",
    "RotationPattern",
    "ScheduleEntry",
    "ShiftSwap",
    "ShiftType",
    "StraightsAssignment",
    "SwapStatus",
    "Team",
    # Errors
    "InvalidArgument",
    "InvalidStateTransition",
    "NotFoundError",
    "TrackerError",
    "ValidationFailed",
    # Policies
    "DefaultShiftTimePolicy",
    "DefaultStraightsPolicy",
    "ShiftTimePolicy",
    "StraightsPolicy",
]
