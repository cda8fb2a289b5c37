"""
LMS data models. Single import surface for DB entities.

DB entities (lms.models.models):
- User, Phase, Section, Module, ModuleProgress
"""

from lms.models.models import (
    CONTENT_TYPES,
    ROLES,
    User,
    Phase,
    Section,
    Module,
    ModuleProgress,
)

__all__ = [
    "CONTENT_TYPES",
    "ROLES",
    "User",
    "Phase",
    "Section",
    "Module",
    "ModuleProgress",
]
