"""
Curriculum tree, phase and section endpoints, and section/module reordering.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from lms.config import get_db
from lms.schemas.curriculum_schemas import (
    CreateModuleRequest,
    CreatePhaseRequest,
    CreateSectionRequest,
    CurriculumResponse,
    DeleteRequest,
    DeleteResponse,
    ModuleNode,
    PhaseNode,
    ReorderRequest,
    ReorderResponse,
    SectionNode,
    UpdateSectionRequest,
)
from lms.schemas.user_schemas import CurrentUser
from lms.services.authoring import AuthoringService
from lms.services.curriculum import CurriculumService, module_node, total_progress
from lms.services.ordering import OrderingService
from lms.utils.auth import get_current_user, require_instructor

curriculum_routes = APIRouter()


def _section_node(section, user: CurrentUser) -> SectionNode:
    modules = sorted(section.modules, key=lambda m: m.order_index)
    return SectionNode(
        id=section.id,
        phase_id=section.phase_id,
        title=section.title,
        description=section.description or "",
        order_index=section.order_index,
        modules=[module_node(m) for m in modules if user.is_instructor or m.is_published],
    )


@curriculum_routes.get("/curriculum", response_model=CurriculumResponse)
async def get_curriculum(
    current_user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> CurriculumResponse:
    """Full Phase -> Section -> Module tree with the caller's progress. Students see published modules only."""
    tree = CurriculumService(db).tree_for(current_user)
    return CurriculumResponse(phases=tree, progress=total_progress(tree))


@curriculum_routes.get("/phases/{phase_id}", response_model=PhaseNode)
async def get_phase(
    phase_id: str,
    current_user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> PhaseNode:
    return CurriculumService(db).phase_tree_for(current_user, phase_id)


@curriculum_routes.post("/phases", response_model=PhaseNode)
async def create_phase(
    req: CreatePhaseRequest,
    current_user: CurrentUser = Depends(require_instructor),
    db: Session = Depends(get_db),
) -> PhaseNode:
    phase = AuthoringService(db).create_phase(req)
    return PhaseNode(
        id=phase.id,
        title=phase.title,
        description=phase.description,
        order_index=phase.order_index,
        sections=[],
    )


@curriculum_routes.delete("/phases/{phase_id}", response_model=DeleteResponse)
async def delete_phase(
    phase_id: str,
    body: DeleteRequest,
    current_user: CurrentUser = Depends(require_instructor),
    db: Session = Depends(get_db),
) -> DeleteResponse:
    """Delete a phase with all its sections, modules and progress. Requires the re-typed title."""
    AuthoringService(db).delete_phase(phase_id, body.confirm_title)
    return DeleteResponse(id=phase_id, deleted=True)


@curriculum_routes.post("/phases/{phase_id}/sections", response_model=SectionNode)
async def create_section(
    phase_id: str,
    req: CreateSectionRequest,
    current_user: CurrentUser = Depends(require_instructor),
    db: Session = Depends(get_db),
) -> SectionNode:
    section = AuthoringService(db).create_section(phase_id, req)
    return _section_node(section, current_user)


@curriculum_routes.post("/phases/{phase_id}/sections/reorder", response_model=ReorderResponse)
async def reorder_sections(
    phase_id: str,
    req: ReorderRequest,
    current_user: CurrentUser = Depends(require_instructor),
    db: Session = Depends(get_db),
) -> ReorderResponse:
    """Move one section to `to_index`; every section in the phase gets order_index = position + 1."""
    AuthoringService(db).get_phase(phase_id)
    sections = OrderingService(db).reorder_sections(phase_id, req.moved_id, req.to_index)
    return ReorderResponse(ids=[s.id for s in sections])


@curriculum_routes.patch("/sections/{section_id}", response_model=SectionNode)
async def update_section(
    section_id: str,
    req: UpdateSectionRequest,
    current_user: CurrentUser = Depends(require_instructor),
    db: Session = Depends(get_db),
) -> SectionNode:
    section = AuthoringService(db).update_section(section_id, req)
    return _section_node(section, current_user)


@curriculum_routes.delete("/sections/{section_id}", response_model=DeleteResponse)
async def delete_section(
    section_id: str,
    body: DeleteRequest,
    current_user: CurrentUser = Depends(require_instructor),
    db: Session = Depends(get_db),
) -> DeleteResponse:
    """Delete a section with all its modules and their progress. Requires the re-typed title."""
    AuthoringService(db).delete_section(section_id, body.confirm_title)
    return DeleteResponse(id=section_id, deleted=True)


@curriculum_routes.post("/sections/{section_id}/modules", response_model=ModuleNode)
async def create_module(
    section_id: str,
    req: CreateModuleRequest,
    current_user: CurrentUser = Depends(require_instructor),
    db: Session = Depends(get_db),
) -> ModuleNode:
    return module_node(AuthoringService(db).create_module(section_id, req))


@curriculum_routes.post("/sections/{section_id}/modules/reorder", response_model=ReorderResponse)
async def reorder_modules(
    section_id: str,
    req: ReorderRequest,
    current_user: CurrentUser = Depends(require_instructor),
    db: Session = Depends(get_db),
) -> ReorderResponse:
    """Move one module to `to_index`; every module in the section gets order_index = position + 1."""
    AuthoringService(db).get_section(section_id)
    modules = OrderingService(db).reorder_modules(section_id, req.moved_id, req.to_index)
    return ReorderResponse(ids=[m.id for m in modules])
