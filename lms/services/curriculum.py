"""
Curriculum aggregation: assembles the Phase -> Section -> Module tree annotated with
the caller's progress, and computes previous/next navigation within a phase.
"""

from collections import defaultdict
from typing import Iterable, Mapping, Optional, Sequence

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from lms.models.models import Module, ModuleProgress, Phase, Section
from lms.schemas.curriculum_schemas import (
    ModuleDetailResponse,
    ModuleNode,
    NavigationModule,
    PhaseNode,
    ProgressInfo,
    SectionNode,
    TotalProgress,
)
from lms.schemas.user_schemas import CurrentUser
from lms.services.progress import ProgressTracker, compute_completion_rate
from lms.utils.common import iso_or_none
from lms.utils.errors import NotFoundError, StoreError
from lms.utils.logger import get_logger

logger = get_logger("curriculum")


def _by_order(items: Iterable) -> list:
    # sorted() is stable: equal order_index keeps insertion order.
    return sorted(items, key=lambda x: x.order_index)


def group_progress(records: Iterable[ModuleProgress]) -> dict[str, list[ModuleProgress]]:
    grouped: dict[str, list[ModuleProgress]] = defaultdict(list)
    for r in records:
        grouped[r.module_id].append(r)
    return dict(grouped)


def _progress_info(records: Optional[Sequence[ModuleProgress]]) -> Optional[ProgressInfo]:
    if not records:
        return None
    # Duplicates for one (user, module) pair violate the unique key; tolerate by taking the first.
    first = records[0]
    return ProgressInfo(is_completed=bool(first.is_completed), completed_at=iso_or_none(first.completed_at))


def module_node(m: Module, records: Optional[Sequence[ModuleProgress]] = None) -> ModuleNode:
    return ModuleNode(
        id=m.id,
        section_id=m.section_id,
        title=m.title,
        description=m.description or "",
        content=m.content or "",
        content_type=m.content_type,
        external_url=m.external_url,
        deadline=iso_or_none(m.deadline),
        order_index=m.order_index,
        is_published=bool(m.is_published),
        progress=_progress_info(records),
    )


def build_tree(
    phases: Iterable[Phase],
    sections: Iterable[Section],
    modules: Iterable[Module],
    progress_by_module: Mapping[str, Sequence[ModuleProgress]],
    include_unpublished: bool = False,
) -> list[PhaseNode]:
    """
    Nest and sort: phases by order_index, sections within each phase, modules within
    each section. Unpublished modules are dropped unless include_unpublished.
    Sections/modules whose parent is not in `phases`/`sections` are ignored.
    """
    modules_by_section: dict[str, list[Module]] = defaultdict(list)
    for m in modules:
        if include_unpublished or m.is_published:
            modules_by_section[m.section_id].append(m)

    sections_by_phase: dict[str, list[Section]] = defaultdict(list)
    for s in sections:
        sections_by_phase[s.phase_id].append(s)

    tree: list[PhaseNode] = []
    for p in _by_order(phases):
        section_nodes = [
            SectionNode(
                id=s.id,
                phase_id=s.phase_id,
                title=s.title,
                description=s.description or "",
                order_index=s.order_index,
                modules=[module_node(m, progress_by_module.get(m.id)) for m in _by_order(modules_by_section[s.id])],
            )
            for s in _by_order(sections_by_phase[p.id])
        ]
        tree.append(
            PhaseNode(
                id=p.id,
                title=p.title,
                description=p.description or "",
                order_index=p.order_index,
                sections=section_nodes,
            )
        )
    return tree


def flatten_phase(phase: PhaseNode) -> list[ModuleNode]:
    return [m for s in phase.sections for m in s.modules]


def find_adjacent(flattened: Sequence[ModuleNode], current_id: str) -> tuple[Optional[ModuleNode], Optional[ModuleNode]]:
    """(prev, next) around current_id; (None, None) if it is not in the list."""
    index = next((i for i, m in enumerate(flattened) if m.id == current_id), None)
    if index is None:
        return None, None
    prev = flattened[index - 1] if index > 0 else None
    nxt = flattened[index + 1] if index < len(flattened) - 1 else None
    return prev, nxt


def total_progress(tree: Iterable[PhaseNode]) -> TotalProgress:
    modules = [m for p in tree for m in flatten_phase(p)]
    completed = sum(1 for m in modules if m.is_completed)
    return TotalProgress(
        total=len(modules),
        completed=completed,
        percentage=compute_completion_rate((m.progress for m in modules), len(modules)),
    )


def _nav(m: Optional[ModuleNode]) -> Optional[NavigationModule]:
    if m is None:
        return None
    return NavigationModule(id=m.id, title=m.title, is_completed=m.is_completed)


class CurriculumService:
    """Loads curriculum entities for a user and aggregates them."""

    def __init__(self, db: Session):
        self.db = db
        self.progress = ProgressTracker(db)

    def tree_for(self, user: CurrentUser) -> list[PhaseNode]:
        try:
            phases = self.db.query(Phase).all()
            sections = self.db.query(Section).all()
            modules = self.db.query(Module).all()
            records = self.progress.records_for_user(user.id)
        except SQLAlchemyError as e:
            raise StoreError("Failed to load curriculum") from e
        return build_tree(phases, sections, modules, group_progress(records), include_unpublished=user.is_instructor)

    def phase_tree_for(self, user: CurrentUser, phase_id: str) -> PhaseNode:
        try:
            phase = self.db.query(Phase).filter(Phase.id == phase_id).first()
            if phase is None:
                raise NotFoundError("Phase not found")
            sections = self.db.query(Section).filter(Section.phase_id == phase_id).all()
            modules = (
                self.db.query(Module)
                .filter(Module.section_id.in_([s.id for s in sections]))
                .all()
            )
            records = self.progress.records_for_user(user.id, [m.id for m in modules])
        except SQLAlchemyError as e:
            raise StoreError("Failed to load phase") from e
        return build_tree([phase], sections, modules, group_progress(records), include_unpublished=user.is_instructor)[0]

    def module_detail_for(self, user: CurrentUser, module_id: str) -> ModuleDetailResponse:
        try:
            module = self.db.query(Module).filter(Module.id == module_id).first()
        except SQLAlchemyError as e:
            raise StoreError("Failed to load module") from e
        if module is None or (not module.is_published and not user.is_instructor):
            raise NotFoundError("Module not found")

        phase_node = self.phase_tree_for(user, module.section.phase_id)
        flattened = flatten_phase(phase_node)
        current = next(m for m in flattened if m.id == module_id)
        section_node = next(s for s in phase_node.sections if s.id == module.section_id)
        prev, nxt = find_adjacent(flattened, module_id)
        return ModuleDetailResponse(
            module=current,
            section=section_node,
            phase=phase_node,
            prev=_nav(prev),
            next=_nav(nxt),
        )
