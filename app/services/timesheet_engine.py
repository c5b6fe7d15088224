"""
Timer lifecycle for timesheet entries.

An entry is Running while end_time is NULL and Completed once stopped.
Stopping sets end_time and duration_seconds together, exactly once.
Descriptive fields (name, category, ticket, line items) may only be edited
on Completed entries. Delete works in either state and reports its outcome
instead of raising.

Every function takes an optional db session. If db is provided, the function
flushes but does NOT commit/close; the caller owns the transaction.
"""
import logging
import math
from dataclasses import dataclass, fields
from typing import Any, Dict, Optional, Union

from sqlalchemy.orm import Session

from app.core.clock import Clock, system_clock, to_naive_utc
from app.database import session_scope
from app.models.timesheet_entry import Category, TimesheetEntry
from app.services.errors import (
    EntryNotFoundError,
    InvalidEntryStateError,
    TimesheetValidationError,
)

logger = logging.getLogger(__name__)


class _Unset:
    def __repr__(self) -> str:
        return "UNSET"

    def __bool__(self) -> bool:
        return False


UNSET: Any = _Unset()


@dataclass(frozen=True)
class EntryChanges:
    """Partial update. A field left as UNSET is not touched; None is a real value."""

    name: Union[str, _Unset] = UNSET
    category: Union[Category, str, _Unset] = UNSET
    ticket_activity_number: Union[Optional[str], _Unset] = UNSET
    number_of_line_items: Union[int, _Unset] = UNSET

    def present(self) -> Dict[str, Any]:
        return {
            f.name: getattr(self, f.name)
            for f in fields(self)
            if getattr(self, f.name) is not UNSET
        }


@dataclass(frozen=True)
class DeleteOutcome:
    success: bool
    message: str


def _validate_name(name: Any) -> str:
    if not isinstance(name, str) or not name.strip():
        raise TimesheetValidationError("Entry name must be a non-empty string")
    return name


def _validate_category(category: Any) -> Category:
    try:
        return Category(category)
    except ValueError as exc:
        allowed = ", ".join(c.value for c in Category)
        raise TimesheetValidationError(
            f"Unknown category {category!r}; expected one of: {allowed}"
        ) from exc


def _validate_ticket(ticket_activity_number: Any) -> Optional[str]:
    if ticket_activity_number is not None and not isinstance(ticket_activity_number, str):
        raise TimesheetValidationError("Ticket/activity number must be a string or null")
    return ticket_activity_number


def _validate_line_items(number_of_line_items: Any) -> int:
    if isinstance(number_of_line_items, bool) or not isinstance(number_of_line_items, int):
        raise TimesheetValidationError("Number of line items must be an integer")
    if number_of_line_items < 0:
        raise TimesheetValidationError("Number of line items must not be negative")
    return number_of_line_items


_VALIDATORS = {
    "name": _validate_name,
    "category": _validate_category,
    "ticket_activity_number": _validate_ticket,
    "number_of_line_items": _validate_line_items,
}


def _elapsed_seconds(start_time, end_time) -> int:
    elapsed = math.floor((end_time - start_time).total_seconds())
    if elapsed < 0:
        logger.warning(
            "Clock moved backwards while timer was running; clamping duration",
            extra={"start_time": start_time, "end_time": end_time},
        )
        return 0
    return elapsed


def start_timer(
    name: str,
    category: Category,
    ticket_activity_number: Optional[str] = None,
    number_of_line_items: int = 0,
    *,
    clock: Clock = system_clock,
    db: Optional[Session] = None,
) -> TimesheetEntry:
    """
    Create a Running entry stamped with the current time.

    Does not check for other Running entries; see get_active_timer for how
    several concurrent timers are resolved.
    """
    name = _validate_name(name)
    category = _validate_category(category)
    ticket_activity_number = _validate_ticket(ticket_activity_number)
    number_of_line_items = _validate_line_items(number_of_line_items)

    now = to_naive_utc(clock())

    with session_scope(db) as session:
        entry = TimesheetEntry(
            name=name,
            start_time=now,
            end_time=None,
            category=category,
            ticket_activity_number=ticket_activity_number,
            number_of_line_items=number_of_line_items,
            duration_seconds=None,
            created_at=now,
        )
        session.add(entry)
        session.flush()
        session.refresh(entry)

        logger.info(
            "Timer started",
            extra={"entry_id": entry.id, "category": category.value},
        )
        return entry


def stop_timer(
    entry_id: int,
    *,
    clock: Clock = system_clock,
    db: Optional[Session] = None,
) -> TimesheetEntry:
    with session_scope(db) as session:
        entry = (
            session.query(TimesheetEntry)
            .filter(
                TimesheetEntry.id == entry_id,
                TimesheetEntry.end_time.is_(None),
            )
            .with_for_update()
            .first()
        )
        if entry is None:
            logger.warning("Stop refused: no running timer", extra={"entry_id": entry_id})
            raise EntryNotFoundError(
                f"No running timer found with id {entry_id}", entry_id=entry_id
            )

        now = to_naive_utc(clock())
        entry.end_time = now
        entry.duration_seconds = _elapsed_seconds(entry.start_time, now)

        session.flush()
        session.refresh(entry)

        logger.info(
            "Timer stopped",
            extra={"entry_id": entry.id, "duration_seconds": entry.duration_seconds},
        )
        return entry


def update_entry(
    entry_id: int,
    changes: EntryChanges,
    *,
    db: Optional[Session] = None,
) -> TimesheetEntry:
    try:
        values = {
            field_name: _VALIDATORS[field_name](value)
            for field_name, value in changes.present().items()
        }
    except TimesheetValidationError as exc:
        raise TimesheetValidationError(
            f"Invalid update for timesheet entry {entry_id}: {exc}", entry_id=entry_id
        ) from exc

    with session_scope(db) as session:
        entry = (
            session.query(TimesheetEntry)
            .filter(TimesheetEntry.id == entry_id)
            .with_for_update()
            .first()
        )
        if entry is None:
            logger.warning("Update refused: entry not found", extra={"entry_id": entry_id})
            raise EntryNotFoundError(
                f"Timesheet entry with id {entry_id} not found", entry_id=entry_id
            )

        if entry.is_running:
            logger.warning("Update refused: timer still running", extra={"entry_id": entry_id})
            raise InvalidEntryStateError(
                f"Cannot update timesheet entry {entry_id} while it is currently running. "
                "Stop the timer first.",
                entry_id=entry_id,
            )

        for field_name, value in values.items():
            setattr(entry, field_name, value)

        session.flush()
        session.refresh(entry)

        logger.info(
            "Timesheet entry updated",
            extra={"entry_id": entry.id, "fields": sorted(values)},
        )
        return entry


def delete_entry(entry_id: int, *, db: Optional[Session] = None) -> DeleteOutcome:
    with session_scope(db) as session:
        deleted = (
            session.query(TimesheetEntry)
            .filter(TimesheetEntry.id == entry_id)
            .delete(synchronize_session=False)
        )
        session.flush()

    if not deleted:
        logger.info("Delete skipped: entry not found", extra={"entry_id": entry_id})
        return DeleteOutcome(
            success=False,
            message=f"Timesheet entry with ID {entry_id} not found.",
        )

    logger.info("Timesheet entry deleted", extra={"entry_id": entry_id})
    return DeleteOutcome(
        success=True,
        message=f"Timesheet entry with ID {entry_id} has been deleted successfully.",
    )


def get_active_timer(*, db: Optional[Session] = None) -> Optional[TimesheetEntry]:
    """Newest Running entry by creation order, or None."""
    with session_scope(db) as session:
        return (
            session.query(TimesheetEntry)
            .filter(TimesheetEntry.end_time.is_(None))
            .order_by(TimesheetEntry.created_at.desc(), TimesheetEntry.id.desc())
            .first()
        )
