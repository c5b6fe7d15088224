from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Response
from sqlalchemy.orm import Session

from app.core.clock import Clock, get_clock
from app.database import get_db
from app.models.timesheet_entry import Category
from app.schemas.timesheet_entry import (
    DeleteTimesheetEntryResponse,
    ExportTimesheetDataResponse,
    StartTimerRequest,
    TimesheetEntryResponse,
    UpdateTimesheetEntryRequest,
)
from app.services import timesheet_engine, timesheet_export, timesheet_query
from app.services.errors import (
    EntryNotFoundError,
    InvalidEntryStateError,
    TimesheetError,
    TimesheetValidationError,
)

router = APIRouter(
    prefix="/timesheet_entries",
    tags=["Timesheet Entries"],
)


def _http_error(exc: TimesheetError) -> HTTPException:
    if isinstance(exc, EntryNotFoundError):
        return HTTPException(status_code=404, detail=str(exc))
    if isinstance(exc, InvalidEntryStateError):
        return HTTPException(status_code=409, detail=str(exc))
    if isinstance(exc, TimesheetValidationError):
        return HTTPException(status_code=422, detail=str(exc))
    return HTTPException(status_code=400, detail=str(exc))


@router.get("", response_model=List[TimesheetEntryResponse])
def list_timesheet_entries(db: Session = Depends(get_db)):
    return timesheet_query.list_entries(db=db)


@router.get("/search", response_model=List[TimesheetEntryResponse])
def search_timesheet_entries(
    search_term: Optional[str] = None,
    category: Optional[Category] = None,
    db: Session = Depends(get_db),
):
    return timesheet_query.search_entries(search_term=search_term, category=category, db=db)


@router.get("/active", response_model=Optional[TimesheetEntryResponse])
def get_active_timer(db: Session = Depends(get_db)):
    return timesheet_engine.get_active_timer(db=db)


@router.get("/export", response_model=ExportTimesheetDataResponse)
def export_timesheet_data(
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    document = timesheet_export.export_timesheet_data(clock=clock, db=db)
    return ExportTimesheetDataResponse(
        csv_content=document.csv_content,
        filename=document.filename,
    )


@router.get("/export.csv")
def download_timesheet_csv(
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    document = timesheet_export.export_timesheet_data(clock=clock, db=db)
    return Response(
        content=document.csv_content,
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="{document.filename}"'},
    )


@router.post("/start", response_model=TimesheetEntryResponse)
def start_timer_endpoint(
    payload: StartTimerRequest,
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    try:
        entry = timesheet_engine.start_timer(
            name=payload.name,
            category=payload.category,
            ticket_activity_number=payload.ticket_activity_number,
            number_of_line_items=payload.number_of_line_items,
            clock=clock,
            db=db,
        )
        db.commit()
        return entry
    except TimesheetError as exc:
        db.rollback()
        raise _http_error(exc) from exc
    except Exception:
        db.rollback()
        raise


@router.post("/{entry_id}/stop", response_model=TimesheetEntryResponse)
def stop_timer_endpoint(
    entry_id: int,
    db: Session = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    try:
        entry = timesheet_engine.stop_timer(entry_id, clock=clock, db=db)
        db.commit()
        return entry
    except TimesheetError as exc:
        db.rollback()
        raise _http_error(exc) from exc
    except Exception:
        db.rollback()
        raise


@router.patch("/{entry_id}", response_model=TimesheetEntryResponse)
def update_timesheet_entry(
    entry_id: int,
    payload: UpdateTimesheetEntryRequest,
    db: Session = Depends(get_db),
):
    changes = timesheet_engine.EntryChanges(**payload.model_dump(exclude_unset=True))
    try:
        entry = timesheet_engine.update_entry(entry_id, changes, db=db)
        db.commit()
        return entry
    except TimesheetError as exc:
        db.rollback()
        raise _http_error(exc) from exc
    except Exception:
        db.rollback()
        raise


@router.delete("/{entry_id}", response_model=DeleteTimesheetEntryResponse)
def delete_timesheet_entry(entry_id: int, db: Session = Depends(get_db)):
    try:
        outcome = timesheet_engine.delete_entry(entry_id, db=db)
        db.commit()
    except Exception:
        db.rollback()
        raise
    return DeleteTimesheetEntryResponse(success=outcome.success, message=outcome.message)
