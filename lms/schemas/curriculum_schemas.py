"""
Curriculum tree, authoring and reorder schemas.
"""

from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, Field

ContentType = Literal["text", "markdown", "external_link", "attachment"]


class ProgressInfo(BaseModel):
    is_completed: bool
    completed_at: Optional[str] = None  # ISO when completed


class ModuleNode(BaseModel):
    id: str
    section_id: str
    title: str
    description: str
    content: str
    content_type: ContentType
    external_url: Optional[str] = None
    deadline: Optional[str] = None
    order_index: int
    is_published: bool
    progress: Optional[ProgressInfo] = None  # caller's record, absent = not completed

    @property
    def is_completed(self) -> bool:
        return self.progress is not None and self.progress.is_completed


class SectionNode(BaseModel):
    id: str
    phase_id: str
    title: str
    description: str
    order_index: int
    modules: list[ModuleNode]


class PhaseNode(BaseModel):
    id: str
    title: str
    description: str
    order_index: int
    sections: list[SectionNode]


class TotalProgress(BaseModel):
    total: int
    completed: int
    percentage: float


class CurriculumResponse(BaseModel):
    phases: list[PhaseNode]
    progress: TotalProgress


class NavigationModule(BaseModel):
    id: str
    title: str
    is_completed: bool


class ModuleDetailResponse(BaseModel):
    module: ModuleNode
    section: SectionNode
    phase: PhaseNode  # table of contents for the module's phase
    prev: Optional[NavigationModule] = None
    next: Optional[NavigationModule] = None


# ----- authoring -----

class CreatePhaseRequest(BaseModel):
    title: str = Field(min_length=1)
    description: str = ""


class CreateSectionRequest(BaseModel):
    title: str = Field(min_length=1)
    description: str = ""


class UpdateSectionRequest(BaseModel):
    title: str = Field(min_length=1)
    description: str = ""


class CreateModuleRequest(BaseModel):
    title: str = Field(min_length=1)
    description: str = ""
    content: Optional[str] = None
    content_type: ContentType = "markdown"
    external_url: Optional[str] = None
    deadline: Optional[datetime] = None
    is_published: bool = True


class UpdateModuleMetadataRequest(BaseModel):
    title: str = Field(min_length=1)
    description: str = ""
    content_type: ContentType
    external_url: Optional[str] = None
    deadline: Optional[datetime] = None
    is_published: Optional[bool] = None


class UpdateModuleContentRequest(BaseModel):
    content: str
    external_url: Optional[str] = None


class DeleteRequest(BaseModel):
    confirm_title: str


class DeleteResponse(BaseModel):
    id: str
    deleted: bool


class ReorderRequest(BaseModel):
    moved_id: str
    to_index: int = Field(ge=0)


class ReorderResponse(BaseModel):
    ids: list[str]  # siblings in their new order; order_index = position + 1
