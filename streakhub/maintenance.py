"""
Housekeeping for databases created without enforced foreign keys.
"""
import logging
from typing import Dict

from sqlalchemy import select
from sqlalchemy.orm import Session

from streakhub.models import DailyTask, Goal, Group, Streak

logger = logging.getLogger("streakhub.maintenance")

ORPHAN_TABLES = (
    ("streaks", Streak),
    ("goals", Goal),
    ("daily_tasks", DailyTask),
)


def delete_orphans(db: Session) -> Dict[str, int]:
    """
    Delete streaks, goals and daily tasks whose group no longer exists.

    Returns:
        Number of deleted rows per table name
    """
    group_ids = select(Group.id)
    deleted = {}
    for table_name, model in ORPHAN_TABLES:
        count = db.query(model).filter(
            ~model.group_id.in_(group_ids)
        ).delete(synchronize_session=False)
        deleted[table_name] = count
        if count:
            logger.info(f"Deleted {count} orphaned row(s) from {table_name}")
    db.commit()
    return deleted
