"""
Dashboard summaries over published modules.
"""

import math
from datetime import datetime
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from lms.models.models import Module, ModuleProgress, Phase, Section, User
from lms.schemas.dashboard_schemas import (
    DashboardModule,
    InstructorDashboardResponse,
    MissedDeadline,
    ModuleCompletion,
    StudentDashboardResponse,
    StudentSummary,
)
from lms.schemas.curriculum_schemas import TotalProgress
from lms.schemas.user_schemas import CurrentUser
from lms.services.progress import ProgressTracker, compute_completion_rate, is_completed
from lms.utils.common import iso_format, iso_or_none
from lms.utils.errors import StoreError
from lms.utils.logger import get_logger

logger = get_logger("dashboard")

UPCOMING_FOR_STUDENT = 3
UPCOMING_FOR_INSTRUCTOR = 5
SECONDS_PER_DAY = 60 * 60 * 24


def days_overdue(deadline: datetime, now: datetime) -> int:
    return math.ceil((now - deadline).total_seconds() / SECONDS_PER_DAY)


def _dashboard_module(m: Module, record: Optional[ModuleProgress] = None) -> DashboardModule:
    return DashboardModule(
        module_id=m.id,
        title=m.title,
        description=m.description or "",
        deadline=iso_or_none(m.deadline),
        section_title=m.section.title,
        phase_title=m.section.phase.title,
        is_completed=is_completed(record),
        completed_at=iso_or_none(record.completed_at) if is_completed(record) else None,
    )


class DashboardService:
    def __init__(self, db: Session, now: Optional[datetime] = None):
        self.db = db
        self.now = now or datetime.utcnow()

    def _published_modules(self) -> list[Module]:
        return (
            self.db.query(Module)
            .join(Section, Module.section_id == Section.id)
            .join(Phase, Section.phase_id == Phase.id)
            .filter(Module.is_published.is_(True))
            .order_by(Phase.order_index.asc(), Section.order_index.asc(), Module.order_index.asc())
            .all()
        )

    def student(self, user: CurrentUser) -> StudentDashboardResponse:
        try:
            modules = self._published_modules()
            records = {r.module_id: r for r in ProgressTracker(self.db).records_for_user(user.id)}
        except SQLAlchemyError as e:
            raise StoreError("Failed to load dashboard") from e

        items = [_dashboard_module(m, records.get(m.id)) for m in modules]
        completed = sum(1 for i in items if i.is_completed)
        open_with_deadline = sorted(
            ((m.deadline, i) for i, m in zip(items, modules) if not i.is_completed and m.deadline is not None),
            key=lambda pair: pair[0],
        )
        upcoming = [i for _, i in open_with_deadline[:UPCOMING_FOR_STUDENT]]
        return StudentDashboardResponse(
            modules=items,
            progress=TotalProgress(
                total=len(items),
                completed=completed,
                percentage=compute_completion_rate((records.get(m.id) for m in modules), len(modules)),
            ),
            upcoming=upcoming,
        )

    def instructor(self) -> InstructorDashboardResponse:
        try:
            students = self.db.query(User).filter(User.role == "student").order_by(User.id.asc()).all()
            modules = self._published_modules()
            student_ids = [s.id for s in students]
            completed_pairs = set(
                self.db.query(ModuleProgress.module_id, ModuleProgress.user_id)
                .filter(ModuleProgress.is_completed.is_(True), ModuleProgress.user_id.in_(student_ids))
                .all()
            )
        except SQLAlchemyError as e:
            raise StoreError("Failed to load dashboard") from e

        completions = []
        for m in modules:
            count = sum(1 for sid in student_ids if (m.id, sid) in completed_pairs)
            completions.append(
                ModuleCompletion(
                    module_id=m.id,
                    module_title=m.title,
                    section_title=m.section.title,
                    phase_title=m.section.phase.title,
                    deadline=iso_or_none(m.deadline),
                    total_students=len(students),
                    completed_count=count,
                    completion_rate=(count / len(students) * 100) if students else 0.0,
                )
            )

        with_deadline = [m for m in modules if m.deadline is not None]
        upcoming = sorted((m for m in with_deadline if m.deadline >= self.now), key=lambda m: m.deadline)
        past = sorted((m for m in with_deadline if m.deadline < self.now), key=lambda m: m.deadline, reverse=True)

        missed: list[MissedDeadline] = []
        if past:
            latest = past[0]
            for s in students:
                if (latest.id, s.id) in completed_pairs:
                    continue
                missed.append(
                    MissedDeadline(
                        student=StudentSummary(user_id=s.id, full_name=s.full_name or "Unknown Student", email=s.email),
                        module_id=latest.id,
                        module_title=latest.title,
                        deadline=iso_format(latest.deadline),
                        days_overdue=days_overdue(latest.deadline, self.now),
                    )
                )

        return InstructorDashboardResponse(
            students_count=len(students),
            module_completions=completions,
            upcoming_deadlines=[_dashboard_module(m) for m in upcoming[:UPCOMING_FOR_INSTRUCTOR]],
            missed_deadlines=missed,
        )
