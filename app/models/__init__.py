from app.models.timesheet_entry import Category, TimesheetEntry

__all__ = [
    "Category",
    "TimesheetEntry",
]
