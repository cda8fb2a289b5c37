"""
Instructor authoring: create/update/delete phases, sections and modules.

New siblings are appended (order_index = max + 1). Deletes require the re-typed
title and remove children explicitly, progress rows first, so nothing is orphaned
even on stores that do not enforce ON DELETE CASCADE.
"""

from datetime import datetime, timezone
from typing import Optional
from uuid import uuid4

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from lms.models.models import CONTENT_TYPES, Module, ModuleProgress, Phase, Section
from lms.schemas.curriculum_schemas import (
    CreateModuleRequest,
    CreatePhaseRequest,
    CreateSectionRequest,
    UpdateModuleContentRequest,
    UpdateModuleMetadataRequest,
    UpdateSectionRequest,
)
from lms.services.ordering import next_order
from lms.utils.common import confirmation_matches
from lms.utils.errors import ConfirmationMismatch, CurriculumValidationError, NotFoundError, StoreError
from lms.utils.logger import get_logger

logger = get_logger("authoring")

DEFAULT_MODULE_CONTENT = "# New Module\n\nAdd your content here..."


def require_title(title: Optional[str]) -> str:
    """Title without surrounding whitespace; blank titles are rejected."""
    cleaned = (title or "").strip()
    if not cleaned:
        raise CurriculumValidationError("Title is required")
    return cleaned


def utc_naive(dt: Optional[datetime]) -> Optional[datetime]:
    """Deadlines are stored as naive UTC; offset-aware input is converted first."""
    if dt is None or dt.tzinfo is None:
        return dt
    return dt.astimezone(timezone.utc).replace(tzinfo=None)


def validate_module_fields(title: str, content_type: str, external_url: Optional[str]) -> None:
    require_title(title)
    if content_type not in CONTENT_TYPES:
        raise CurriculumValidationError(f"content_type must be one of {', '.join(CONTENT_TYPES)}")
    if content_type == "external_link" and not (external_url or "").strip():
        raise CurriculumValidationError("external_url is required for external_link modules")


def _clean_url(url: Optional[str]) -> Optional[str]:
    url = (url or "").strip()
    return url or None


class AuthoringService:
    def __init__(self, db: Session):
        self.db = db

    # ----- lookups -----

    def get_phase(self, phase_id: str) -> Phase:
        phase = self.db.query(Phase).filter(Phase.id == phase_id).first()
        if phase is None:
            raise NotFoundError("Phase not found")
        return phase

    def get_section(self, section_id: str) -> Section:
        section = self.db.query(Section).filter(Section.id == section_id).first()
        if section is None:
            raise NotFoundError("Section not found")
        return section

    def get_module(self, module_id: str) -> Module:
        module = self.db.query(Module).filter(Module.id == module_id).first()
        if module is None:
            raise NotFoundError("Module not found")
        return module

    # ----- create -----

    def create_phase(self, req: CreatePhaseRequest) -> Phase:
        current_max = self.db.query(func.max(Phase.order_index)).scalar()
        phase = Phase(
            id=str(uuid4()),
            title=require_title(req.title),
            description=req.description.strip(),
            order_index=next_order([current_max] if current_max is not None else []),
        )
        return self._save(phase, "create phase")

    def create_section(self, phase_id: str, req: CreateSectionRequest) -> Section:
        self.get_phase(phase_id)
        orders = [o for (o,) in self.db.query(Section.order_index).filter(Section.phase_id == phase_id)]
        section = Section(
            id=str(uuid4()),
            phase_id=phase_id,
            title=require_title(req.title),
            description=req.description.strip(),
            order_index=next_order(orders),
        )
        return self._save(section, "create section")

    def create_module(self, section_id: str, req: CreateModuleRequest) -> Module:
        self.get_section(section_id)
        validate_module_fields(req.title, req.content_type, req.external_url)
        content = req.content
        if content is None:
            content = "" if req.content_type == "external_link" else DEFAULT_MODULE_CONTENT
        orders = [o for (o,) in self.db.query(Module.order_index).filter(Module.section_id == section_id)]
        module = Module(
            id=str(uuid4()),
            section_id=section_id,
            title=req.title.strip(),
            description=req.description.strip(),
            content=content,
            content_type=req.content_type,
            external_url=_clean_url(req.external_url),
            deadline=utc_naive(req.deadline),
            order_index=next_order(orders),
            is_published=req.is_published,
        )
        return self._save(module, "create module")

    # ----- update -----

    def update_section(self, section_id: str, req: UpdateSectionRequest) -> Section:
        section = self.get_section(section_id)
        section.title = require_title(req.title)
        section.description = req.description.strip()
        return self._save(section, "update section")

    def update_module_metadata(self, module_id: str, req: UpdateModuleMetadataRequest) -> Module:
        module = self.get_module(module_id)
        validate_module_fields(req.title, req.content_type, req.external_url)
        module.title = req.title.strip()
        module.description = req.description.strip()
        module.content_type = req.content_type
        module.external_url = _clean_url(req.external_url)
        module.deadline = utc_naive(req.deadline)
        if req.is_published is not None:
            module.is_published = req.is_published
        return self._save(module, "update module metadata")

    def update_module_content(self, module_id: str, req: UpdateModuleContentRequest) -> Module:
        module = self.get_module(module_id)
        # An omitted external_url keeps the stored one.
        url = req.external_url if "external_url" in req.model_fields_set else module.external_url
        validate_module_fields(module.title, module.content_type, url)
        module.content = req.content
        module.external_url = _clean_url(url)
        return self._save(module, "update module content")

    # ----- delete -----

    def delete_phase(self, phase_id: str, confirm_title: str) -> None:
        phase = self.get_phase(phase_id)
        self._check_confirmation(confirm_title, phase.title, "phase")
        self._delete(lambda: self._delete_phase_tree(phase_id), "delete phase", phase_id)

    def delete_section(self, section_id: str, confirm_title: str) -> None:
        section = self.get_section(section_id)
        self._check_confirmation(confirm_title, section.title, "section")
        self._delete(lambda: self._delete_sections([section_id]), "delete section", section_id)

    def delete_module(self, module_id: str, confirm_title: str) -> None:
        module = self.get_module(module_id)
        self._check_confirmation(confirm_title, module.title, "module")
        self._delete(lambda: self._delete_modules([module_id]), "delete module", module_id)

    def _delete_phase_tree(self, phase_id: str) -> None:
        section_ids = [sid for (sid,) in self.db.query(Section.id).filter(Section.phase_id == phase_id)]
        self._delete_sections(section_ids)
        self.db.query(Phase).filter(Phase.id == phase_id).delete()

    def _delete_sections(self, section_ids: list[str]) -> None:
        if not section_ids:
            return
        module_ids = [mid for (mid,) in self.db.query(Module.id).filter(Module.section_id.in_(section_ids))]
        self._delete_modules(module_ids)
        self.db.query(Section).filter(Section.id.in_(section_ids)).delete()

    def _delete_modules(self, module_ids: list[str]) -> None:
        if not module_ids:
            return
        self.db.query(ModuleProgress).filter(ModuleProgress.module_id.in_(module_ids)).delete()
        self.db.query(Module).filter(Module.id.in_(module_ids)).delete()

    # ----- helpers -----

    @staticmethod
    def _check_confirmation(typed: str, title: str, kind: str) -> None:
        if not confirmation_matches(typed, title):
            raise ConfirmationMismatch(f"Type the exact {kind} title to confirm deletion")

    def _save(self, obj, action: str):
        try:
            self.db.add(obj)
            self.db.commit()
            self.db.refresh(obj)
        except SQLAlchemyError as e:
            self.db.rollback()
            raise StoreError(f"Failed to {action}") from e
        logger.info("%s id=%s", action, obj.id)
        return obj

    def _delete(self, work, action: str, entity_id: str) -> None:
        try:
            work()
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            raise StoreError(f"Failed to {action}") from e
        logger.info("%s id=%s", action, entity_id)
