"""
Newsroom - Content Helpers

Slugs, id parsing, lookups and pagination shared by the content routers.
"""

import math
import re
from typing import Any, Dict, Optional, Type, TypeVar
from uuid import UUID

from fastapi import Query
from sqlmodel import Session as DBSession, SQLModel, select

from newsroom.errors import NotFoundError


ModelT = TypeVar("ModelT", bound=SQLModel)

_NON_ALNUM = re.compile(r"[^a-z0-9]+")


def slugify(text: str) -> str:
    """Lowercase, collapse anything non-alphanumeric to '-', trim dashes."""
    return _NON_ALNUM.sub("-", (text or "").lower()).strip("-")


def unique_slug(
    db: DBSession,
    model: Type[ModelT],
    source: str,
    exclude_id: Optional[Any] = None,
) -> str:
    """
    Slug for source that no other row of model uses.

    Collisions get -1, -2, ... appended to the base slug.
    """
    base = slugify(source) or "untitled"
    candidate = base
    counter = 1
    while True:
        statement = select(model).where(model.slug == candidate)
        if exclude_id is not None:
            statement = statement.where(model.id != exclude_id)
        if db.exec(statement).first() is None:
            return candidate
        candidate = f"{base}-{counter}"
        counter += 1


def parse_id(value, label: str) -> UUID:
    """Malformed ids are reported the same way as unknown ones."""
    try:
        return value if isinstance(value, UUID) else UUID(str(value))
    except ValueError:
        raise NotFoundError(f"{label} not found")


def get_or_404(db: DBSession, model: Type[ModelT], value, label: str) -> ModelT:
    row = db.get(model, parse_id(value, label))
    if row is None:
        raise NotFoundError(f"{label} not found")
    return row


class PageParams:
    """Query-string pagination: ?page=1&limit=10."""

    def __init__(
        self,
        page: int = Query(1, ge=1, description="Page number"),
        limit: int = Query(10, ge=1, le=100, description="Items per page"),
    ):
        self.page = page
        self.limit = limit

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


def pagination_meta(total: int, params: PageParams) -> Dict[str, int]:
    return {
        "total": total,
        "page": params.page,
        "limit": params.limit,
        "totalPages": math.ceil(total / params.limit) if total else 0,
    }
