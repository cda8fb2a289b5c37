"""
Ordering engine for sibling lists (sections within a phase, modules within a section).

The pure helpers (`move_item`, `reorder`, `assign_orders`, `next_order`) know nothing
about the database; `OrderingService` loads siblings, applies them, and persists the
new `order_index` of every sibling in one transaction.
"""

from typing import Iterable, Sequence, TypeVar

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from lms.models.models import Module, Section
from lms.utils.errors import CurriculumValidationError, NotFoundError, StoreError
from lms.utils.logger import get_logger, log_request

logger = get_logger("ordering")

T = TypeVar("T")


def move_item(items: Sequence[T], from_index: int, to_index: int) -> list[T]:
    """Array-move: remove the element at from_index and reinsert it at to_index."""
    n = len(items)
    if not 0 <= from_index < n:
        raise IndexError(f"from_index {from_index} out of range for {n} items")
    if not 0 <= to_index < n:
        raise IndexError(f"to_index {to_index} out of range for {n} items")
    out = list(items)
    out.insert(to_index, out.pop(from_index))
    return out


def reorder(siblings: Sequence[T], moved_id: str, from_index: int, to_index: int) -> list[T]:
    """Move `moved_id` from from_index to to_index. The element at from_index must be `moved_id`."""
    if not 0 <= from_index < len(siblings) or getattr(siblings[from_index], "id") != moved_id:
        raise ValueError(f"{moved_id} is not at index {from_index}")
    return move_item(siblings, from_index, to_index)


def assign_orders(items: Iterable) -> list[tuple[str, int]]:
    """(id, order) pairs with 1-based contiguous order, one per element."""
    return [(item.id, position + 1) for position, item in enumerate(items)]


def next_order(existing_orders: Iterable[int]) -> int:
    """Order for a newly appended sibling: max existing + 1, or 1 for the first one."""
    return max(existing_orders, default=0) + 1


class OrderingService:
    """Persists drag-and-drop reorders of sections and modules."""

    def __init__(self, db: Session):
        self.db = db

    def reorder_sections(self, phase_id: str, moved_id: str, to_index: int) -> list[Section]:
        siblings = (
            self.db.query(Section)
            .filter(Section.phase_id == phase_id)
            .order_by(Section.order_index.asc())
            .all()
        )
        return self._apply(Section, siblings, moved_id, to_index, kind="section")

    def reorder_modules(self, section_id: str, moved_id: str, to_index: int) -> list[Module]:
        siblings = (
            self.db.query(Module)
            .filter(Module.section_id == section_id)
            .order_by(Module.order_index.asc())
            .all()
        )
        return self._apply(Module, siblings, moved_id, to_index, kind="module")

    def _apply(self, model, siblings: list, moved_id: str, to_index: int, *, kind: str) -> list:
        from_index = next((i for i, s in enumerate(siblings) if s.id == moved_id), None)
        if from_index is None:
            raise NotFoundError(f"{kind.capitalize()} not found among siblings")
        if not 0 <= to_index < len(siblings):
            raise CurriculumValidationError(f"to_index must be between 0 and {len(siblings) - 1}")
        if from_index == to_index:
            logger.debug("reorder %s no-op id=%s index=%s", kind, moved_id, to_index)
            return siblings

        new_order = reorder(siblings, moved_id, from_index, to_index)
        with log_request(logger, f"reorder {kind}s count={len(new_order)}"):
            try:
                for sid, order in assign_orders(new_order):
                    self.db.query(model).filter(model.id == sid).update({model.order_index: order})
                self.db.commit()
            except SQLAlchemyError as e:
                self.db.rollback()
                raise StoreError(f"Failed to update {kind} order") from e
        logger.info("reordered %s id=%s from=%s to=%s", kind, moved_id, from_index, to_index)
        return new_order
