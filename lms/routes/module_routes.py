"""
Module detail, editing, deletion and completion toggling.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from lms.config import get_db
from lms.schemas.curriculum_schemas import (
    DeleteRequest,
    DeleteResponse,
    ModuleDetailResponse,
    ModuleNode,
    ProgressInfo,
    UpdateModuleContentRequest,
    UpdateModuleMetadataRequest,
)
from lms.schemas.user_schemas import CurrentUser
from lms.services.authoring import AuthoringService
from lms.services.curriculum import CurriculumService, module_node
from lms.services.progress import ProgressTracker
from lms.utils.auth import get_current_user, require_instructor
from lms.utils.common import iso_or_none
from lms.utils.errors import NotFoundError

module_routes = APIRouter()


@module_routes.get("/modules/{module_id}", response_model=ModuleDetailResponse)
async def get_module(
    module_id: str,
    current_user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> ModuleDetailResponse:
    """Module with the caller's progress, its phase's table of contents and prev/next navigation."""
    return CurriculumService(db).module_detail_for(current_user, module_id)


@module_routes.patch("/modules/{module_id}", response_model=ModuleNode)
async def update_module_metadata(
    module_id: str,
    req: UpdateModuleMetadataRequest,
    current_user: CurrentUser = Depends(require_instructor),
    db: Session = Depends(get_db),
) -> ModuleNode:
    return module_node(AuthoringService(db).update_module_metadata(module_id, req))


@module_routes.patch("/modules/{module_id}/content", response_model=ModuleNode)
async def update_module_content(
    module_id: str,
    req: UpdateModuleContentRequest,
    current_user: CurrentUser = Depends(require_instructor),
    db: Session = Depends(get_db),
) -> ModuleNode:
    return module_node(AuthoringService(db).update_module_content(module_id, req))


@module_routes.delete("/modules/{module_id}", response_model=DeleteResponse)
async def delete_module(
    module_id: str,
    body: DeleteRequest,
    current_user: CurrentUser = Depends(require_instructor),
    db: Session = Depends(get_db),
) -> DeleteResponse:
    """Delete a module and all progress recorded against it. Requires the re-typed title."""
    AuthoringService(db).delete_module(module_id, body.confirm_title)
    return DeleteResponse(id=module_id, deleted=True)


@module_routes.post("/modules/{module_id}/progress/toggle", response_model=ProgressInfo)
async def toggle_module_completion(
    module_id: str,
    current_user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> ProgressInfo:
    """Flip the caller's completion state for a module."""
    module = AuthoringService(db).get_module(module_id)
    if not module.is_published and not current_user.is_instructor:
        raise NotFoundError("Module not found")
    record = ProgressTracker(db).toggle_completion(current_user.id, module_id)
    return ProgressInfo(is_completed=bool(record.is_completed), completed_at=iso_or_none(record.completed_at))
