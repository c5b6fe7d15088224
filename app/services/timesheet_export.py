import csv
import io
import os
from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, List, Optional

from sqlalchemy.orm import Session

from app.core.clock import Clock, isoformat_utc, system_clock, to_naive_utc
from app.database import session_scope
from app.models.timesheet_entry import TimesheetEntry
from app.services.timesheet_query import OLDEST_FIRST

CSV_HEADERS = [
    "ID",
    "Name",
    "Start Time",
    "End Time",
    "Category",
    "Ticket/Activity Number",
    "Number of Line Items",
    "Duration",
]

NO_DURATION = "N/A"


@dataclass(frozen=True)
class ExportDocument:
    csv_content: str
    filename: str


def _filename_prefix() -> str:
    return os.getenv("TIMESHEET_EXPORT_PREFIX", "timesheet_export_")


def format_duration(seconds: Optional[int]) -> str:
    if seconds is None:
        return NO_DURATION
    hours, remainder = divmod(int(seconds), 3600)
    minutes, secs = divmod(remainder, 60)
    return f"{hours:02d}:{minutes:02d}:{secs:02d}"


def format_timestamp(value: Optional[datetime]) -> str:
    if value is None:
        return ""
    return isoformat_utc(value)


def _row(entry: TimesheetEntry) -> List[str]:
    return [
        str(entry.id),
        entry.name,
        format_timestamp(entry.start_time),
        format_timestamp(entry.end_time),
        entry.category.value,
        entry.ticket_activity_number or "",
        str(entry.number_of_line_items),
        format_duration(entry.duration_seconds),
    ]


def _csv_line(values: List[str]) -> str:
    # "\r\n" as terminator makes the writer quote fields holding either CR or LF
    buffer = io.StringIO()
    csv.writer(buffer, lineterminator="\r\n", quoting=csv.QUOTE_MINIMAL).writerow(values)
    return buffer.getvalue()[:-2]


def render_csv(entries: Iterable[TimesheetEntry]) -> str:
    """
    Header line plus one line per entry, joined by "\\n" with no trailing newline.
    Fields holding a comma, quote, CR or LF are quoted with inner quotes doubled.
    """
    lines = [_csv_line(CSV_HEADERS)]
    lines.extend(_csv_line(_row(entry)) for entry in entries)
    return "\n".join(lines)


def export_filename(*, clock: Clock = system_clock) -> str:
    today = to_naive_utc(clock()).date()
    return f"{_filename_prefix()}{today.isoformat()}.csv"


def export_timesheet_data(
    *,
    clock: Clock = system_clock,
    db: Optional[Session] = None,
) -> ExportDocument:
    with session_scope(db) as session:
        entries = session.query(TimesheetEntry).order_by(*OLDEST_FIRST).all()
        csv_content = render_csv(entries)

    return ExportDocument(csv_content=csv_content, filename=export_filename(clock=clock))
