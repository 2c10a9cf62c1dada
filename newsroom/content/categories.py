"""
Newsroom - Category Routes

- GET    /categories        - Active categories (public)
- POST   /categories        - Create (publish:content)
- PATCH  /categories/{id}   - Rename (publish:content)
- DELETE /categories/{id}   - Archive (publish:content)
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy import func
from sqlmodel import Session as DBSession, select

from newsroom.auth.dependencies import AuthenticatedUser, require_capability
from newsroom.content.common import get_or_404, slugify
from newsroom.content.models import Category
from newsroom.content.schemas import CategoryCreate, CategoryRead, CategoryUpdate
from newsroom.database import get_db
from newsroom.errors import ConflictError, api_response
from newsroom.gateway.rbac import Capability


router = APIRouter(prefix="/categories", tags=["categories"])

require_publisher = require_capability(Capability.PUBLISH_CONTENT)


def _name_taken(db: DBSession, name: str, exclude_id=None) -> bool:
    statement = select(Category).where(func.lower(Category.name) == name.lower())
    if exclude_id is not None:
        statement = statement.where(Category.id != exclude_id)
    return db.exec(statement).first() is not None


@router.get("", summary="List active categories")
async def list_categories(db: DBSession = Depends(get_db)):
    rows = db.exec(
        select(Category).where(Category.is_archived == False).order_by(Category.name)  # noqa: E712
    ).all()
    return api_response(
        200,
        [CategoryRead.model_validate(c).model_dump(mode="json") for c in rows],
        "All active categories fetched successfully",
    )


@router.post("", status_code=status.HTTP_201_CREATED, summary="Create a category")
async def create_category(
    body: CategoryCreate,
    user: AuthenticatedUser = Depends(require_publisher),
    db: DBSession = Depends(get_db),
):
    if _name_taken(db, body.name):
        raise ConflictError("Category with this name already exists")

    category = Category(name=body.name, slug=slugify(body.name), owner_id=user.id)
    db.add(category)
    db.commit()
    db.refresh(category)
    return api_response(
        201, CategoryRead.model_validate(category).model_dump(mode="json"), "Category created successfully"
    )


@router.patch("/{category_id}", summary="Rename a category")
async def update_category(
    category_id: str,
    body: CategoryUpdate,
    user: AuthenticatedUser = Depends(require_publisher),
    db: DBSession = Depends(get_db),
):
    category = get_or_404(db, Category, category_id, "Category")
    if _name_taken(db, body.name, exclude_id=category.id):
        raise ConflictError("Category with this name already exists")

    category.name = body.name
    category.slug = slugify(body.name)
    db.add(category)
    db.commit()
    db.refresh(category)
    return api_response(
        200, CategoryRead.model_validate(category).model_dump(mode="json"), "Category updated successfully"
    )


@router.delete("/{category_id}", summary="Archive a category")
async def delete_category(
    category_id: str,
    user: AuthenticatedUser = Depends(require_publisher),
    db: DBSession = Depends(get_db),
):
    category = get_or_404(db, Category, category_id, "Category")
    category.is_archived = True
    db.add(category)
    db.commit()
    db.refresh(category)
    return api_response(
        200, CategoryRead.model_validate(category).model_dump(mode="json"), "Category archived successfully"
    )
