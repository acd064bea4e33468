import logging
from datetime import date, timedelta
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from steps_tracker.config import settings
from steps_tracker.database import get_db
from steps_tracker.models.daily_steps import DailySteps
from steps_tracker.schemas.daily_steps import (
    DailyStepsCreate,
    DailyStepsResponse,
    DailyStepsUpdate,
    StepsByDateQuery,
    StepsSummaryResponse,
    SummaryQuery,
    UserStepsQuery,
    parse_step_date,
)
from steps_tracker.services.steps_service import (
    StepsRecordNotFound,
    create_or_update_steps,
    delete_steps,
    get_steps_by_date,
    list_user_steps,
    summarize_steps,
    update_steps_count,
    utc_today,
)
from steps_tracker.utils.response import create_response, handle_exception

router = APIRouter(prefix="/steps", tags=["Steps"])
logger = logging.getLogger(__name__)


def _record_payload(record: DailySteps | None) -> dict | None:
    if record is None:
        return None
    return DailyStepsResponse.model_validate(record).model_dump()


def _optional_date(value: str | None) -> date | None:
    return parse_step_date(value) if value else None


@router.post("")
def record_steps(body: DailyStepsCreate, db: Session = Depends(get_db)):
    try:
        record = create_or_update_steps(db, body.user_id, parse_step_date(body.date), body.steps)
        created = record.created_at == record.updated_at
        return create_response(
            message="Steps recorded successfully" if created else "Steps updated successfully",
            data=_record_payload(record),
            status_code=status.HTTP_201_CREATED if created else status.HTTP_200_OK,
        )
    except Exception as exc:
        return handle_exception(exc)


@router.get("")
def get_user_steps(
    query: Annotated[UserStepsQuery, Query()],
    db: Session = Depends(get_db),
):
    try:
        records = list_user_steps(
            db,
            query.user_id,
            start_date=_optional_date(query.start_date),
            end_date=_optional_date(query.end_date),
        )
        return create_response(
            message="Steps fetched successfully",
            data={
                "count": len(records),
                "entries": [_record_payload(record) for record in records],
            },
        )
    except Exception as exc:
        return handle_exception(exc)


@router.get("/by-date")
def get_steps_for_date(
    query: Annotated[StepsByDateQuery, Query()],
    db: Session = Depends(get_db),
):
    try:
        record = get_steps_by_date(db, query.user_id, parse_step_date(query.date))
        return create_response(
            message="Steps fetched successfully" if record else "No steps recorded for this date",
            data=_record_payload(record),
        )
    except Exception as exc:
        return handle_exception(exc)


@router.get("/summary")
def get_steps_summary(
    query: Annotated[SummaryQuery, Query()],
    db: Session = Depends(get_db),
):
    try:
        today = utc_today()
        start_date = today - timedelta(days=settings.SUMMARY_WINDOW_DAYS)
        records = list_user_steps(db, query.user_id, start_date=start_date, end_date=today)
        summary = summarize_steps(records, today, settings.DAILY_STEP_GOAL)
        return create_response(
            message="Steps summary fetched successfully",
            data={
                "range": {"start": start_date.isoformat(), "end": today.isoformat()},
                **StepsSummaryResponse(**summary).model_dump(),
            },
        )
    except Exception as exc:
        return handle_exception(exc)


@router.patch("/{record_id}")
def update_steps(record_id: int, body: DailyStepsUpdate, db: Session = Depends(get_db)):
    try:
        record = update_steps_count(db, record_id, body.steps)
        return create_response(
            message="Steps updated successfully",
            data=_record_payload(record),
        )
    except StepsRecordNotFound as exc:
        logger.info("Steps update rejected: %s", exc)
        return handle_exception(HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)))
    except Exception as exc:
        return handle_exception(exc)


@router.delete("/{record_id}")
def remove_steps(record_id: int, db: Session = Depends(get_db)):
    try:
        deleted = delete_steps(db, record_id)
        return create_response(
            message="Steps record deleted" if deleted else "No steps record with that id",
            data={"id": record_id, "deleted": deleted},
        )
    except Exception as exc:
        return handle_exception(exc)
