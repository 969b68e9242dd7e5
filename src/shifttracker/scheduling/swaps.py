"""Shift swap approval workflow.

States: Pending -> Approved -> Completed, or Pending -> Rejected.
Completed and Rejected are terminal. Completing a swap rewrites two
schedule rows, which the caller must apply together.
"""

import logging
import uuid
from dataclasses import replace
from datetime import date
from typing import Iterable, Optional

from shifttracker.domain.errors import InvalidStateTransition, NotFoundError
from shifttracker.domain.models import ScheduleEntry, ShiftSwap, SwapStatus
from shifttracker.validation.validator import RosterValidator

logger = logging.getLogger(__name__)

# Allowed transitions: target -> states it may be reached from
TRANSITIONS: dict[SwapStatus, set[SwapStatus]] = {
    SwapStatus.APPROVED: {SwapStatus.PENDING},
    SwapStatus.REJECTED: {SwapStatus.PENDING},
    SwapStatus.COMPLETED: {SwapStatus.APPROVED},
}


def new_swap_id() -> str:
    return f"SW-{uuid.uuid4().hex[:10]}"


def find_entry(
    entries: Iterable[ScheduleEntry],
    person_id: str,
    on_date: date,
) -> Optional[ScheduleEntry]:
    """Get the row a person works on a date, preferring override rows."""
    found = None
    for entry in entries:
        if entry.person_id != person_id or entry.date != on_date:
            continue
        if entry.is_override:
            return entry
        if found is None:
            found = entry
    return found


def given_away_slots(swaps: Iterable[ShiftSwap]) -> set[tuple[str, date]]:
    """(person_id, date) slots that completed swaps handed to someone else."""
    slots = set()
    for swap in swaps:
        if swap.status is SwapStatus.COMPLETED:
            slots.add((swap.requestor_id, swap.original_date))
            slots.add((swap.requestee_id, swap.swap_date))
    return slots


class SwapWorkflow:
    """Drives shift swaps through their approval states.

    Every method returns new objects and leaves its inputs untouched.

    Example:
        >>> workflow = SwapWorkflow()
        >>> swap = workflow.request_swap("P001", "P002", date(2024, 2, 1), date(2024, 2, 5))
        >>> swap = workflow.approve(swap, approved_by="Admin", on_date=date(2024, 1, 20))
        >>> swap, first, second = workflow.complete(swap, schedule)
    """

    def __init__(self, validator: Optional[RosterValidator] = None):
        self.validator = validator or RosterValidator()

    def _transition(self, swap: ShiftSwap, target: SwapStatus) -> ShiftSwap:
        if swap.status not in TRANSITIONS[target]:
            raise InvalidStateTransition(swap.id, swap.status.value, target.value)
        logger.info("Swap %s: %s -> %s", swap.id, swap.status.value, target.value)
        return replace(swap, status=target)

    def request_swap(
        self,
        requestor_id: str,
        requestee_id: str,
        original_date: date,
        swap_date: date,
        notes: str = "",
        swap_id: Optional[str] = None,
        known_person_ids: Optional[set[str]] = None,
    ) -> ShiftSwap:
        """Create a pending swap request.

        Raises:
            ValidationFailed: If requestor and requestee are the same
                person, or either is unknown.
        """
        swap = ShiftSwap(
            id=swap_id or new_swap_id(),
            requestor_id=requestor_id,
            requestee_id=requestee_id,
            original_date=original_date,
            swap_date=swap_date,
            status=SwapStatus.PENDING,
            notes=notes,
        )
        self.validator.validate_swap_request(swap, known_person_ids).raise_for_errors()
        return swap

    def approve(self, swap: ShiftSwap, approved_by: str, on_date: date) -> ShiftSwap:
        """Approve a pending swap."""
        approved = self._transition(swap, SwapStatus.APPROVED)
        return replace(approved, approved_by=approved_by, approved_date=on_date)

    def reject(self, swap: ShiftSwap) -> ShiftSwap:
        """Reject a pending swap."""
        return self._transition(swap, SwapStatus.REJECTED)

    def complete(
        self,
        swap: ShiftSwap,
        entries: Iterable[ScheduleEntry],
        names: Optional[dict[str, str]] = None,
    ) -> tuple[ShiftSwap, ScheduleEntry, ScheduleEntry]:
        """Complete an approved swap.

        The requestor's row on original_date is handed to the requestee and
        the requestee's row on swap_date to the requestor. Both returned
        rows are flagged as overrides.

        Args:
            swap: An approved swap.
            entries: Current schedule snapshot.
            names: Optional person id -> display name, for row notes.

        Returns:
            Tuple of (completed swap, requestor's row, requestee's row).

        Raises:
            InvalidStateTransition: If the swap is not approved.
            NotFoundError: If either schedule row is missing.
        """
        if swap.status not in TRANSITIONS[SwapStatus.COMPLETED]:
            raise InvalidStateTransition(
                swap.id, swap.status.value, SwapStatus.COMPLETED.value
            )

        entries = list(entries)
        requestor_row = find_entry(entries, swap.requestor_id, swap.original_date)
        if requestor_row is None:
            raise NotFoundError(
                "schedule entry", (swap.requestor_id, swap.original_date.isoformat())
            )
        requestee_row = find_entry(entries, swap.requestee_id, swap.swap_date)
        if requestee_row is None:
            raise NotFoundError(
                "schedule entry", (swap.requestee_id, swap.swap_date.isoformat())
            )

        names = names or {}
        requestor_name = names.get(swap.requestor_id, swap.requestor_id)
        requestee_name = names.get(swap.requestee_id, swap.requestee_id)

        first = replace(
            requestor_row,
            person_id=swap.requestee_id,
            is_override=True,
            notes=f"Swapped from {requestor_name}",
        )
        second = replace(
            requestee_row,
            person_id=swap.requestor_id,
            is_override=True,
            notes=f"Swapped from {requestee_name}",
        )
        completed = self._transition(swap, SwapStatus.COMPLETED)
        return completed, first, second
