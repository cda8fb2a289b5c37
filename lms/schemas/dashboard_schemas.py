"""
Student and instructor dashboard schemas.
"""

from typing import Optional

from pydantic import BaseModel

from lms.schemas.curriculum_schemas import TotalProgress


class DashboardModule(BaseModel):
    module_id: str
    title: str
    description: str
    deadline: Optional[str] = None
    section_title: str
    phase_title: str
    is_completed: bool = False
    completed_at: Optional[str] = None


class StudentDashboardResponse(BaseModel):
    modules: list[DashboardModule]
    progress: TotalProgress
    upcoming: list[DashboardModule]  # incomplete modules with a deadline, soonest first


class ModuleCompletion(BaseModel):
    module_id: str
    module_title: str
    section_title: str
    phase_title: str
    deadline: Optional[str] = None
    total_students: int
    completed_count: int
    completion_rate: float


class StudentSummary(BaseModel):
    user_id: int
    full_name: str
    email: str


class MissedDeadline(BaseModel):
    student: StudentSummary
    module_id: str
    module_title: str
    deadline: str
    days_overdue: int


class InstructorDashboardResponse(BaseModel):
    students_count: int
    module_completions: list[ModuleCompletion]
    upcoming_deadlines: list[DashboardModule]
    missed_deadlines: list[MissedDeadline]
