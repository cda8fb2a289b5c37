"""
Common utility functions used across multiple routes and services.
"""

from datetime import datetime
from typing import Optional


def iso_format(dt: datetime) -> str:
    """Format datetime as ISO string with Z suffix."""
    return dt.isoformat() + "Z"


def iso_or_none(dt: Optional[datetime]) -> Optional[str]:
    return iso_format(dt) if dt is not None else None


def confirmation_matches(typed: Optional[str], title: str) -> bool:
    """Delete guard: the operator must re-type the exact title (surrounding whitespace ignored)."""
    return typed is not None and typed.strip() == title
