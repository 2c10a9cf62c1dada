"""
Newsroom - Article Routes

Public:
- GET  /articles                  - Published articles (search, category, pagination)
- GET  /articles/{slug}           - One published article
- POST /articles/{slug}/view      - Increment the view counter

Authenticated:
- POST   /articles                    - Create (PUBLISHED for publishers, else DRAFT)
- PATCH  /articles/{id}               - Edit (edit:any_content or author)
- DELETE /articles/{id}               - Archive (edit:any_content only)
- GET    /articles/admin/all          - Every article, any status (staff)
- POST   /articles/admin/bulk-upload  - Create many at once (publish:content)
"""

import logging
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from pydantic import ValidationError as SchemaError
from sqlalchemy import func, or_, update
from sqlmodel import Session as DBSession, select

from newsroom.auth.dependencies import AuthenticatedUser, get_current_user, require_capability
from newsroom.auth.models import User
from newsroom.content.common import PageParams, get_or_404, pagination_meta, slugify, unique_slug
from newsroom.content.models import Article, ArticleStatus, Category
from newsroom.content.schemas import (
    ArticleCreate,
    ArticleRead,
    ArticleUpdate,
    AuthorSummary,
    BulkArticleItem,
    BulkUploadRequest,
    CategorySummary,
)
from newsroom.database import get_db
from newsroom.errors import NotFoundError, api_response
from newsroom.gateway.rbac import AUTHENTICATED, Action, Capability, Requirement, authorize, is_permitted


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/articles", tags=["articles"])

CAN_PUBLISH = Requirement(capability=Capability.PUBLISH_CONTENT)
CAN_EDIT = Requirement(capability=Capability.EDIT_ANY_CONTENT, allow_owner=True)
CAN_DELETE = Requirement(capability=Capability.EDIT_ANY_CONTENT)


def article_view(db: DBSession, article: Article) -> dict:
    data = ArticleRead.model_validate(article)
    author = db.get(User, article.author_id)
    category = db.get(Category, article.category_id)
    data.author = AuthorSummary.model_validate(author) if author else None
    data.category = CategorySummary.model_validate(category) if category else None
    return data.model_dump(mode="json")


def _active_category(db: DBSession, category_id) -> Category:
    category = db.exec(
        select(Category).where(Category.id == category_id, Category.is_archived == False)  # noqa: E712
    ).first()
    if not category:
        raise NotFoundError("Invalid or Archived Category")
    return category


def _find_category(db: DBSession, ref: str) -> Optional[Category]:
    """Match an active category by id, slug or case-insensitive name."""
    try:
        by_id = db.get(Category, UUID(ref))
    except ValueError:
        by_id = None
    if by_id and not by_id.is_archived:
        return by_id
    return db.exec(
        select(Category).where(
            Category.is_archived == False,  # noqa: E712
            or_(Category.slug == slugify(ref), func.lower(Category.name) == ref.lower()),
        )
    ).first()


def _page_of(db: DBSession, conditions, params: PageParams):
    total = db.exec(select(func.count()).select_from(Article).where(*conditions)).one()
    rows = db.exec(
        select(Article)
        .where(*conditions)
        .order_by(Article.created_at.desc())
        .offset(params.offset)
        .limit(params.limit)
    ).all()
    return rows, total


# =============================================================================
# Public
# =============================================================================

@router.get("", summary="List published articles")
async def list_articles(
    params: PageParams = Depends(),
    search: Optional[str] = Query(None, max_length=100),
    category: Optional[str] = Query(None, description="Category slug or name"),
    db: DBSession = Depends(get_db),
):
    conditions = [Article.status == ArticleStatus.PUBLISHED, Article.is_archived == False]  # noqa: E712
    if search:
        conditions.append(Article.title.ilike(f"%{search}%"))
    if category:
        match = _find_category(db, category)
        if match:
            conditions.append(Article.category_id == match.id)

    rows, total = _page_of(db, conditions, params)
    return api_response(
        200,
        {
            "articles": [article_view(db, a) for a in rows],
            "pagination": pagination_meta(total, params),
        },
        "Articles fetched successfully",
    )


@router.get("/admin/all", summary="List all articles (staff)")
async def list_articles_admin(
    params: PageParams = Depends(),
    search: Optional[str] = Query(None, max_length=100),
    article_status: Optional[ArticleStatus] = Query(None, alias="status"),
    category: Optional[str] = Query(None, description="Category id, slug or name"),
    user: AuthenticatedUser = Depends(require_capability(Capability.STAFF_DASHBOARD)),
    db: DBSession = Depends(get_db),
):
    conditions = []
    if search:
        conditions.append(Article.title.ilike(f"%{search}%"))
    if article_status:
        conditions.append(Article.status == article_status)
    if category:
        match = _find_category(db, category)
        if match:
            conditions.append(Article.category_id == match.id)

    rows, total = _page_of(db, conditions, params)
    return api_response(
        200,
        {
            "articles": [article_view(db, a) for a in rows],
            "pagination": pagination_meta(total, params),
        },
        "Admin articles fetched successfully",
    )


@router.get("/{slug}", summary="Get a published article")
async def get_article(slug: str, db: DBSession = Depends(get_db)):
    article = db.exec(
        select(Article).where(
            Article.slug == slug,
            Article.status == ArticleStatus.PUBLISHED,
            Article.is_archived == False,  # noqa: E712
        )
    ).first()
    if not article:
        raise NotFoundError("Article not found or has been archived")
    return api_response(200, article_view(db, article), "Article fetched successfully")


@router.post("/{slug}/view", summary="Increment view count")
async def increment_view(slug: str, db: DBSession = Depends(get_db)):
    # Single UPDATE so concurrent views are not lost
    db.exec(
        update(Article)
        .where(
            Article.slug == slug,
            Article.status == ArticleStatus.PUBLISHED,
            Article.is_archived == False,  # noqa: E712
        )
        .values(views=Article.views + 1)
    )
    db.commit()
    return api_response(200, {}, "View count incremented")


# =============================================================================
# Authenticated
# =============================================================================

@router.post("", status_code=status.HTTP_201_CREATED, summary="Create an article")
async def create_article(
    body: ArticleCreate,
    user: AuthenticatedUser = Depends(get_current_user),
    db: DBSession = Depends(get_db),
):
    """
    Any signed-in account may write. Publishers go straight to PUBLISHED,
    everyone else lands in DRAFT.
    """
    authorize(user, AUTHENTICATED, action=Action.CREATE)
    category = _active_category(db, body.category_id)

    article = Article(
        title=body.title,
        slug=unique_slug(db, Article, body.title),
        content=body.content,
        thumbnail=body.thumbnail,
        category_id=category.id,
        author_id=user.id,
        tags=body.tags,
        is_featured=body.is_featured,
        status=ArticleStatus.PUBLISHED if is_permitted(user, CAN_PUBLISH) else ArticleStatus.DRAFT,
    )
    db.add(article)
    db.commit()
    db.refresh(article)

    logger.info("article.created id=%s author=%s status=%s", article.id, user.id, article.status.value)
    return api_response(201, article_view(db, article), "Article created successfully")


@router.patch("/{article_id}", summary="Update an article")
async def update_article(
    article_id: str,
    body: ArticleUpdate,
    user: AuthenticatedUser = Depends(get_current_user),
    db: DBSession = Depends(get_db),
):
    """
    Editors and admins edit anything, authors edit their own.
    Changing status additionally needs publish:content.
    """
    article = get_or_404(db, Article, article_id, "Article")
    authorize(
        user,
        CAN_EDIT,
        action=Action.UPDATE,
        owner_id=article.author_id,
        message="You can only edit your own articles",
    )
    if body.status is not None:
        authorize(user, CAN_PUBLISH, message="You are not allowed to change article status")

    if body.title is not None and body.title != article.title:
        article.title = body.title.strip()
    if body.content is not None:
        article.content = body.content
    if body.category_id is not None:
        article.category_id = _active_category(db, body.category_id).id
    if body.thumbnail is not None:
        article.thumbnail = body.thumbnail
    if body.tags is not None:
        article.tags = body.tags
    if body.is_featured is not None:
        article.is_featured = body.is_featured
    if body.status is not None:
        article.status = body.status
        article.is_archived = body.status == ArticleStatus.ARCHIVED

    db.add(article)
    db.commit()
    db.refresh(article)
    return api_response(200, article_view(db, article), "Article updated successfully")


@router.delete("/{article_id}", summary="Archive an article")
async def delete_article(
    article_id: str,
    user: AuthenticatedUser = Depends(get_current_user),
    db: DBSession = Depends(get_db),
):
    article = get_or_404(db, Article, article_id, "Article")
    if article.is_archived:
        raise NotFoundError("Article not found")

    authorize(
        user,
        CAN_DELETE,
        action=Action.DELETE,
        owner_id=article.author_id,
        message="Access Denied! You are not authorized to delete articles.",
    )

    article.is_archived = True
    article.status = ArticleStatus.ARCHIVED
    db.add(article)
    db.commit()

    logger.info("article.archived id=%s by=%s", article.id, user.id)
    return api_response(200, {}, "Article moved to archive (Soft Deleted)")


@router.post("/admin/bulk-upload", summary="Bulk create articles")
async def bulk_upload(
    body: BulkUploadRequest,
    user: AuthenticatedUser = Depends(require_capability(Capability.PUBLISH_CONTENT)),
    db: DBSession = Depends(get_db),
):
    """
    Create articles from a list of rows. Each row succeeds or fails on its
    own; failures are reported by title.
    """
    results = {"successful": 0, "failed": 0, "errors": []}

    for raw in body.articles:
        try:
            item = BulkArticleItem.model_validate(raw)
        except SchemaError as exc:
            results["failed"] += 1
            results["errors"].append({"title": raw.get("title"), "error": str(exc.errors()[0]["msg"])})
            continue

        category = _find_category(db, item.category)
        if not category:
            results["failed"] += 1
            results["errors"].append(
                {"title": item.title, "error": f"Category '{item.category}' not found"}
            )
            continue

        db.add(
            Article(
                title=item.title,
                slug=unique_slug(db, Article, item.title),
                content=item.content or "<p>Coming soon...</p>",
                thumbnail=item.thumbnail,
                category_id=category.id,
                author_id=user.id,
                tags=item.tags,
                is_featured=item.is_featured,
                status=item.status or ArticleStatus.DRAFT,
                is_archived=item.status == ArticleStatus.ARCHIVED,
            )
        )
        # Commit per row so the next slug lookup sees this one
        db.commit()
        results["successful"] += 1

    logger.info(
        "article.bulk_upload by=%s ok=%d failed=%d", user.id, results["successful"], results["failed"]
    )
    return api_response(
        200,
        results,
        f"Bulk upload complete. {results['successful']} created, {results['failed']} failed.",
    )
