from typing import Optional


class TimesheetError(ValueError):
    """Base class for refusals raised by the timesheet services."""

    def __init__(self, message: str, *, entry_id: Optional[int] = None):
        super().__init__(message)
        self.entry_id = entry_id


class TimesheetValidationError(TimesheetError):
    pass


class EntryNotFoundError(TimesheetError):
    pass


class InvalidEntryStateError(TimesheetError):
    pass
