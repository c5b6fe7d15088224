from typing import List, Optional

from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from app.database import session_scope
from app.models.timesheet_entry import Category, TimesheetEntry
from app.services.errors import TimesheetValidationError

# Creation order; id breaks ties between rows stamped in the same instant.
OLDEST_FIRST = (TimesheetEntry.created_at.asc(), TimesheetEntry.id.asc())
NEWEST_FIRST = (TimesheetEntry.created_at.desc(), TimesheetEntry.id.desc())


def _escape_like(term: str) -> str:
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def list_entries(*, db: Optional[Session] = None) -> List[TimesheetEntry]:
    """All entries, newest first."""
    with session_scope(db) as session:
        return session.query(TimesheetEntry).order_by(*NEWEST_FIRST).all()


def search_entries(
    search_term: Optional[str] = None,
    category: Optional[Category] = None,
    *,
    db: Optional[Session] = None,
) -> List[TimesheetEntry]:
    """
    Filter entries, oldest first.

    search_term is a case-insensitive substring match on name OR
    ticket_activity_number; category is an exact match. Both filters AND
    together when given. An empty search_term is ignored.
    """
    if category is not None:
        try:
            category = Category(category)
        except ValueError as exc:
            raise TimesheetValidationError(f"Unknown category {category!r}") from exc

    with session_scope(db) as session:
        q = session.query(TimesheetEntry)

        if search_term:
            pattern = f"%{_escape_like(search_term.lower())}%"
            q = q.filter(
                or_(
                    func.lower(TimesheetEntry.name).like(pattern, escape="\\"),
                    func.lower(TimesheetEntry.ticket_activity_number).like(pattern, escape="\\"),
                )
            )
        if category is not None:
            q = q.filter(TimesheetEntry.category == category)

        return q.order_by(*OLDEST_FIRST).all()
