from enum import Enum

from sqlalchemy import Column, DateTime, Integer, String, Text
from sqlalchemy import Enum as SAEnum

from app.database import Base


class Category(str, Enum):
    TICKET = "Ticket"
    KOORDINASI = "Koordinasi & kegiatan pendukung lainnya"
    MEETING = "Meeting"
    ADHOC_PROJECT = "Adhoc/project"
    DEVELOPMENT_TESTING = "Development & Testing"
    OTHER = "Other"


class TimesheetEntry(Base):
    __tablename__ = "timesheet_entries"

    id = Column(Integer, primary_key=True, autoincrement=True, index=True)

    name = Column(Text, nullable=False)

    start_time = Column(DateTime, nullable=False)
    end_time = Column(DateTime, nullable=True)

    category = Column(
        SAEnum(
            Category,
            name="category",
            values_callable=lambda enum_cls: [member.value for member in enum_cls],
        ),
        nullable=False,
        index=True,
    )
    ticket_activity_number = Column(String, nullable=True)
    number_of_line_items = Column(Integer, nullable=False, default=0)

    duration_seconds = Column(Integer, nullable=True)

    created_at = Column(DateTime, nullable=False, index=True)

    @property
    def is_running(self) -> bool:
        return self.end_time is None
