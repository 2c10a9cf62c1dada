"""
Newsroom - Comment Routes

- GET    /comments/{article_id}   - Comments on an article, newest first (public)
- GET    /comments/admin/all      - Every comment (staff dashboard)
- POST   /comments/{article_id}   - Add a comment (any signed-in account)
- DELETE /comments/{comment_id}   - Remove a comment (edit:any_content)

Authors cannot delete their own comments; removal is moderation only.
"""

import logging

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy import func
from sqlmodel import Session as DBSession, select

from newsroom.auth.dependencies import AuthenticatedUser, get_current_user, require_capability
from newsroom.auth.models import User
from newsroom.content.common import PageParams, get_or_404, pagination_meta, parse_id
from newsroom.content.models import Article, Comment
from newsroom.content.schemas import AuthorSummary, CommentCreate, CommentRead
from newsroom.database import get_db
from newsroom.errors import NotFoundError, api_response
from newsroom.gateway.rbac import AUTHENTICATED, Action, Capability, Requirement, authorize


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/comments", tags=["comments"])

CAN_MODERATE = Requirement(capability=Capability.EDIT_ANY_CONTENT)


def comment_view(db: DBSession, comment: Comment) -> dict:
    data = CommentRead.model_validate(comment)
    owner = db.get(User, comment.owner_id)
    data.owner = AuthorSummary.model_validate(owner) if owner else None
    return data.model_dump(mode="json")


@router.get("/admin/all", summary="List all comments (staff)")
async def list_all_comments(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    user: AuthenticatedUser = Depends(require_capability(Capability.STAFF_DASHBOARD)),
    db: DBSession = Depends(get_db),
):
    params = PageParams(page=page, limit=limit)
    total = db.exec(select(func.count()).select_from(Comment)).one()
    rows = db.exec(
        select(Comment).order_by(Comment.created_at.desc()).offset(params.offset).limit(params.limit)
    ).all()
    return api_response(
        200,
        {"comments": [comment_view(db, c) for c in rows], "pagination": pagination_meta(total, params)},
        "All comments fetched successfully",
    )


@router.get("/{article_id}", summary="List comments on an article")
async def list_comments(
    article_id: str,
    params: PageParams = Depends(),
    db: DBSession = Depends(get_db),
):
    key = parse_id(article_id, "Article")
    total = db.exec(select(func.count()).select_from(Comment).where(Comment.article_id == key)).one()
    rows = db.exec(
        select(Comment)
        .where(Comment.article_id == key)
        .order_by(Comment.created_at.desc())
        .offset(params.offset)
        .limit(params.limit)
    ).all()
    return api_response(
        200,
        {"comments": [comment_view(db, c) for c in rows], "pagination": pagination_meta(total, params)},
        "Comments fetched successfully",
    )


@router.post("/{article_id}", status_code=status.HTTP_201_CREATED, summary="Add a comment")
async def add_comment(
    article_id: str,
    body: CommentCreate,
    user: AuthenticatedUser = Depends(get_current_user),
    db: DBSession = Depends(get_db),
):
    authorize(user, AUTHENTICATED, action=Action.CREATE)
    article = get_or_404(db, Article, article_id, "Article")
    if article.is_archived:
        raise NotFoundError("Article not found")

    comment = Comment(content=body.content, article_id=article.id, owner_id=user.id)
    db.add(comment)
    db.commit()
    db.refresh(comment)
    return api_response(201, comment_view(db, comment), "Comment added successfully")


@router.delete("/{comment_id}", summary="Delete a comment")
async def delete_comment(
    comment_id: str,
    user: AuthenticatedUser = Depends(get_current_user),
    db: DBSession = Depends(get_db),
):
    comment = get_or_404(db, Comment, comment_id, "Comment")
    authorize(
        user,
        CAN_MODERATE,
        action=Action.DELETE,
        owner_id=comment.owner_id,
        message="You are not authorized to delete this comment",
    )
    db.delete(comment)
    db.commit()

    logger.info("comment.deleted id=%s by=%s", comment_id, user.id)
    return api_response(200, {}, "Comment deleted successfully")
