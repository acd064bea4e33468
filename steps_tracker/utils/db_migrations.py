import logging

from sqlalchemy import inspect, text
from sqlalchemy.engine import Engine

logger = logging.getLogger(__name__)

UNIQUE_KEY = ["user_id", "date"]


def _has_unique_key(engine: Engine) -> bool:
    inspector = inspect(engine)
    for constraint in inspector.get_unique_constraints("daily_steps"):
        if sorted(constraint["column_names"]) == sorted(UNIQUE_KEY):
            return True
    for index in inspector.get_indexes("daily_steps"):
        if index.get("unique") and sorted(index["column_names"]) == sorted(UNIQUE_KEY):
            return True
    return False


def ensure_daily_steps_unique_index(engine: Engine) -> None:
    """Bring a pre-existing ``daily_steps`` table up to one row per user and date.

    Older tables were created without the ``(user_id, date)`` key and may hold
    duplicates; the most recently updated row of each pair survives.
    """
    if "daily_steps" not in inspect(engine).get_table_names():
        return
    if _has_unique_key(engine):
        return

    with engine.begin() as connection:
        removed = connection.execute(
            text(
                "DELETE FROM daily_steps WHERE id NOT IN ("
                "SELECT id FROM ("
                "SELECT id, ROW_NUMBER() OVER ("
                "PARTITION BY user_id, date ORDER BY updated_at DESC, id DESC"
                ") AS row_rank FROM daily_steps"
                ") ranked WHERE row_rank = 1"
                ")"
            )
        ).rowcount
        connection.execute(
            text("CREATE UNIQUE INDEX uq_daily_steps_user_date ON daily_steps (user_id, date)")
        )
    logger.info("Added unique index on daily_steps(user_id, date), removed %s duplicate rows", removed)
