import logging
import math
from datetime import date, datetime, timedelta
from typing import Iterable, Optional

from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from steps_tracker.models.daily_steps import DailySteps

logger = logging.getLogger(__name__)

UPSERT_DIALECTS = {
    "sqlite": sqlite.insert,
    "postgresql": postgresql.insert,
}

MILESTONES = (
    (7000, "Great Job!"),
    (5000, "Keep Going!"),
)


class StepsRecordNotFound(LookupError):
    def __init__(self, record_id: int):
        self.record_id = record_id
        super().__init__(f"Daily steps record with id {record_id} not found")


def _utcnow() -> datetime:
    return datetime.utcnow()


def utc_today() -> date:
    """Calendar day on the same UTC clock that stamps the records."""
    return _utcnow().date()


def create_or_update_steps(db: Session, user_id: str, step_date: date, steps: int) -> DailySteps:
    """Record ``steps`` for ``user_id`` on ``step_date``.

    A single ``INSERT ... ON CONFLICT DO UPDATE`` keyed on the
    ``(user_id, date)`` unique constraint, so a repeat call overwrites the
    count in place and keeps the original id and ``created_at``. A freshly
    inserted row has ``created_at == updated_at``.
    """
    now = _utcnow()
    insert = UPSERT_DIALECTS.get(db.get_bind().dialect.name)
    if insert is None:
        return _check_then_upsert(db, user_id, step_date, steps, now)

    stmt = insert(DailySteps).values(
        user_id=user_id,
        date=step_date,
        steps=steps,
        created_at=now,
        updated_at=now,
    )
    stmt = stmt.on_conflict_do_update(
        index_elements=["user_id", "date"],
        set_={"steps": stmt.excluded.steps, "updated_at": stmt.excluded.updated_at},
    ).returning(DailySteps)
    record = db.scalars(stmt, execution_options={"populate_existing": True}).one()
    db.commit()
    db.refresh(record)
    logger.info(
        "Recorded %s steps for user %s on %s (id=%s)",
        record.steps,
        record.user_id,
        record.date.isoformat(),
        record.id,
    )
    return record


def _check_then_upsert(db: Session, user_id: str, step_date: date, steps: int, now: datetime) -> DailySteps:
    record = _find_by_user_and_date(db, user_id, step_date)
    if record is None:
        record = DailySteps(user_id=user_id, date=step_date, steps=steps, created_at=now, updated_at=now)
        db.add(record)
        try:
            db.commit()
        except IntegrityError:
            # Lost the race to a concurrent insert; the constraint kept one row.
            db.rollback()
            logger.warning("Concurrent insert for user %s on %s, updating instead", user_id, step_date)
            record = _find_by_user_and_date(db, user_id, step_date)
            if record is None:
                raise
            record.steps = steps
            record.updated_at = now
            db.commit()
    else:
        record.steps = steps
        record.updated_at = now
        db.commit()
    db.refresh(record)
    logger.info("Recorded %s steps for user %s on %s (id=%s)", steps, user_id, step_date.isoformat(), record.id)
    return record


def _find_by_user_and_date(db: Session, user_id: str, step_date: date) -> Optional[DailySteps]:
    return (
        db.query(DailySteps)
        .filter(DailySteps.user_id == user_id, DailySteps.date == step_date)
        .first()
    )


def list_user_steps(
    db: Session,
    user_id: str,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
) -> list[DailySteps]:
    """Records for ``user_id``, newest date first, with inclusive optional bounds."""
    conditions = [DailySteps.user_id == user_id]
    if start_date is not None:
        conditions.append(DailySteps.date >= start_date)
    if end_date is not None:
        conditions.append(DailySteps.date <= end_date)
    return db.query(DailySteps).filter(*conditions).order_by(DailySteps.date.desc()).all()


def get_steps_by_date(db: Session, user_id: str, step_date: date) -> Optional[DailySteps]:
    return _find_by_user_and_date(db, user_id, step_date)


def update_steps_count(db: Session, record_id: int, steps: int) -> DailySteps:
    record = db.query(DailySteps).filter(DailySteps.id == record_id).first()
    if record is None:
        raise StepsRecordNotFound(record_id)
    record.steps = steps
    record.updated_at = _utcnow()
    db.commit()
    db.refresh(record)
    logger.info("Updated steps record id=%s to %s steps", record.id, record.steps)
    return record


def delete_steps(db: Session, record_id: int) -> bool:
    deleted = (
        db.query(DailySteps)
        .filter(DailySteps.id == record_id)
        .delete(synchronize_session=False)
    )
    db.commit()
    if deleted:
        logger.info("Deleted steps record id=%s", record_id)
    return deleted > 0


def milestone_for(steps: int, goal: int) -> str:
    if steps >= goal:
        return "Goal Achieved!"
    for threshold, label in MILESTONES:
        if steps >= threshold:
            return label
    return "Start Strong!"


def week_bounds(today: date) -> tuple[date, date]:
    """Sunday through Saturday of the week containing ``today``."""
    start = today - timedelta(days=(today.weekday() + 1) % 7)
    return start, start + timedelta(days=6)


def summarize_steps(records: Iterable[DailySteps], today: date, goal: int) -> dict:
    """Statistics shown alongside the step history.

    ``average_daily`` rounds half up, so 7500.5 becomes 7501.
    """
    records = list(records)
    week_start, week_end = week_bounds(today)
    counts = [record.steps for record in records]
    average = math.floor(sum(counts) / len(counts) + 0.5) if counts else 0
    return {
        "goal": goal,
        "days_recorded": len(records),
        "weekly_total": sum(r.steps for r in records if week_start <= r.date <= week_end),
        "average_daily": average,
        "highest_day": max(counts, default=0),
        "goal_days": sum(1 for value in counts if value >= goal),
        "entries": [
            {"date": record.date, "steps": record.steps, "milestone": milestone_for(record.steps, goal)}
            for record in records
        ],
    }
