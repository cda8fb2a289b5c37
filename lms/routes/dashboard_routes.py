"""
Student and instructor dashboards.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from lms.config import get_db
from lms.schemas.dashboard_schemas import InstructorDashboardResponse, StudentDashboardResponse
from lms.schemas.user_schemas import CurrentUser
from lms.services.dashboard import DashboardService
from lms.utils.auth import get_current_user, require_instructor

dashboard_routes = APIRouter()


@dashboard_routes.get("/dashboard/student", response_model=StudentDashboardResponse)
async def student_dashboard(
    current_user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> StudentDashboardResponse:
    """Caller's completion over published modules and the next deadlines still open."""
    return DashboardService(db).student(current_user)


@dashboard_routes.get("/dashboard/instructor", response_model=InstructorDashboardResponse)
async def instructor_dashboard(
    current_user: CurrentUser = Depends(require_instructor),
    db: Session = Depends(get_db),
) -> InstructorDashboardResponse:
    return DashboardService(db).instructor()
