from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_serializer

from app.core.clock import isoformat_utc
from app.models.timesheet_entry import Category


class StartTimerRequest(BaseModel):
    name: str
    category: Category
    ticket_activity_number: Optional[str] = None
    number_of_line_items: int = Field(default=0, ge=0)


class UpdateTimesheetEntryRequest(BaseModel):
    """
    Only fields present in the request body are applied.
    Sending "ticket_activity_number": null clears it; omitting it leaves it alone.
    """

    name: Optional[str] = None
    category: Optional[Category] = None
    ticket_activity_number: Optional[str] = None
    number_of_line_items: Optional[int] = Field(default=None, ge=0)


class TimesheetEntryResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    start_time: datetime
    end_time: Optional[datetime]
    category: Category
    ticket_activity_number: Optional[str]
    number_of_line_items: int
    duration_seconds: Optional[int]
    created_at: datetime

    # stored naive UTC; render like the CSV export
    @field_serializer("start_time", "end_time", "created_at")
    def serialize_utc(self, value: Optional[datetime]) -> Optional[str]:
        if value is None:
            return None
        return isoformat_utc(value)


class DeleteTimesheetEntryResponse(BaseModel):
    success: bool
    message: str


class ExportTimesheetDataResponse(BaseModel):
    csv_content: str
    filename: str
