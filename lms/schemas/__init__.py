"""
API schemas package. Import from submodules or from this package.

Example:
    from lms.schemas import PhaseNode, ReorderRequest
    from lms.schemas.curriculum_schemas import PhaseNode
"""

from lms.schemas.auth_schemas import (
    AuthTokenPayload,
    LoginRequest,
    LoginResponse,
    LogoutResponse,
)
from lms.schemas.user_schemas import CurrentUser, Role
from lms.schemas.curriculum_schemas import (
    ContentType,
    ProgressInfo,
    ModuleNode,
    SectionNode,
    PhaseNode,
    TotalProgress,
    CurriculumResponse,
    NavigationModule,
    ModuleDetailResponse,
    CreatePhaseRequest,
    CreateSectionRequest,
    UpdateSectionRequest,
    CreateModuleRequest,
    UpdateModuleMetadataRequest,
    UpdateModuleContentRequest,
    DeleteRequest,
    DeleteResponse,
    ReorderRequest,
    ReorderResponse,
)
from lms.schemas.dashboard_schemas import (
    DashboardModule,
    StudentDashboardResponse,
    ModuleCompletion,
    StudentSummary,
    MissedDeadline,
    InstructorDashboardResponse,
)

__all__ = [
    # auth
    "AuthTokenPayload",
    "LoginRequest",
    "LoginResponse",
    "LogoutResponse",
    # user
    "CurrentUser",
    "Role",
    # curriculum
    "ContentType",
    "ProgressInfo",
    "ModuleNode",
    "SectionNode",
    "PhaseNode",
    "TotalProgress",
    "CurriculumResponse",
    "NavigationModule",
    "ModuleDetailResponse",
    # authoring
    "CreatePhaseRequest",
    "CreateSectionRequest",
    "UpdateSectionRequest",
    "CreateModuleRequest",
    "UpdateModuleMetadataRequest",
    "UpdateModuleContentRequest",
    "DeleteRequest",
    "DeleteResponse",
    "ReorderRequest",
    "ReorderResponse",
    # dashboard
    "DashboardModule",
    "StudentDashboardResponse",
    "ModuleCompletion",
    "StudentSummary",
    "MissedDeadline",
    "InstructorDashboardResponse",
]
