"""
Per-student module completion.

One `ModuleProgress` row per (user, module), created the first time the student
toggles completion. No row means "not completed".
"""

from datetime import datetime
from typing import Iterable, Optional
from uuid import uuid4

from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from lms.models.models import ModuleProgress
from lms.utils.errors import StoreError
from lms.utils.logger import get_logger

logger = get_logger("progress")

_UPSERT_DIALECTS = {"sqlite": sqlite.insert, "postgresql": postgresql.insert}


def is_completed(record: Optional[ModuleProgress]) -> bool:
    return record is not None and bool(record.is_completed)


def compute_completion_rate(records: Iterable[Optional[ModuleProgress]], total_modules: int) -> float:
    """Percentage (0-100) of completed records over total_modules. 0 when there are no modules."""
    if total_modules <= 0:
        return 0.0
    completed = sum(1 for r in records if is_completed(r))
    return completed / total_modules * 100


class ProgressTracker:
    def __init__(self, db: Session):
        self.db = db

    def get_record(self, user_id: int, module_id: str) -> Optional[ModuleProgress]:
        return (
            self.db.query(ModuleProgress)
            .filter(ModuleProgress.user_id == user_id, ModuleProgress.module_id == module_id)
            .first()
        )

    def records_for_user(self, user_id: int, module_ids: Optional[Iterable[str]] = None) -> list[ModuleProgress]:
        q = self.db.query(ModuleProgress).filter(ModuleProgress.user_id == user_id)
        if module_ids is not None:
            q = q.filter(ModuleProgress.module_id.in_(list(module_ids)))
        return q.all()

    def toggle_completion(self, user_id: int, module_id: str) -> ModuleProgress:
        """NotStarted -> Completed (completed_at=now), Completed -> NotStarted (completed_at cleared)."""
        try:
            record = self.get_record(user_id, module_id)
            now = datetime.utcnow()
            if is_completed(record):
                record.is_completed = False
                record.completed_at = None
                record.updated_at = now
                self.db.commit()
                logger.info("module marked incomplete user_id=%s module_id=%s", user_id, module_id)
            else:
                self._upsert_completed(user_id, module_id, now)
                self.db.commit()
                logger.info("module completed user_id=%s module_id=%s", user_id, module_id)
            self.db.expire_all()
            return self.get_record(user_id, module_id)
        except SQLAlchemyError as e:
            self.db.rollback()
            raise StoreError("Failed to update module progress") from e

    def _upsert_completed(self, user_id: int, module_id: str, now: datetime) -> None:
        values = {
            "id": str(uuid4()),
            "user_id": user_id,
            "module_id": module_id,
            "is_completed": True,
            "completed_at": now,
            "updated_at": now,
        }
        insert = _UPSERT_DIALECTS.get(self.db.get_bind().dialect.name)
        if insert is None:
            # No native upsert: the unique constraint still rejects a concurrent duplicate.
            record = self.get_record(user_id, module_id)
            if record is None:
                self.db.add(ModuleProgress(**values))
            else:
                record.is_completed = True
                record.completed_at = now
                record.updated_at = now
            return
        stmt = insert(ModuleProgress).values(**values)
        stmt = stmt.on_conflict_do_update(
            index_elements=[ModuleProgress.user_id, ModuleProgress.module_id],
            set_={
                "is_completed": stmt.excluded.is_completed,
                "completed_at": stmt.excluded.completed_at,
                "updated_at": stmt.excluded.updated_at,
            },
        )
        self.db.execute(stmt)
