"""
Newsroom - Admin API Routes

Directory (access:dashboard):
- GET   /admin/users              - Search, filter by role, paginate

User management (manage:users):
- POST  /admin/users              - Create an account with any role
- POST  /admin/users/{id}/block   - Toggle blocked status
- PATCH /admin/users/{id}/role    - Change role

Dashboard (access:dashboard):
- GET   /admin/stats              - Content counters and latest articles

Administrators can never be blocked or demoted; the credential store
enforces this, so these routes only translate requests.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy import func
from sqlmodel import Session as DBSession, select

from newsroom.auth import accounts
from newsroom.auth.dependencies import AuthenticatedUser, require_capability
from newsroom.auth.flow import sanitize
from newsroom.auth.models import User
from newsroom.auth.schemas import AdminCreateUserRequest, RoleUpdateRequest
from newsroom.content.articles import article_view
from newsroom.content.common import PageParams, pagination_meta
from newsroom.content.models import Article, ArticleStatus, Category, Comment, Message
from newsroom.database import get_db
from newsroom.errors import api_response
from newsroom.gateway.rbac import Capability


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["admin"])

require_user_manager = require_capability(Capability.MANAGE_USERS)
require_staff = require_capability(Capability.STAFF_DASHBOARD)


# =============================================================================
# User Management Endpoints
# =============================================================================

@router.get("/users", summary="List users")
async def list_users(
    params: PageParams = Depends(),
    search: Optional[str] = Query(None, max_length=100),
    role: Optional[str] = Query(None),
    user: AuthenticatedUser = Depends(require_staff),
    db: DBSession = Depends(get_db),
):
    users, total = accounts.list_accounts(
        db, search=search, role=role, page=params.page, limit=params.limit
    )
    return api_response(
        200,
        {
            "users": [sanitize(u).model_dump(mode="json") for u in users],
            "pagination": pagination_meta(total, params),
        },
        "Users fetched successfully",
    )


@router.post("/users", status_code=status.HTTP_201_CREATED, summary="Create a user")
async def create_user(
    body: AdminCreateUserRequest,
    admin: AuthenticatedUser = Depends(require_user_manager),
    db: DBSession = Depends(get_db),
):
    user = accounts.create_account(
        db,
        username=body.username,
        email=body.email,
        full_name=body.full_name,
        password=body.password,
        role=body.role,
        bio=body.bio or "",
    )
    logger.info("admin.user.created id=%s role=%s by=%s", user.id, user.role.value, admin.id)
    return api_response(201, sanitize(user).model_dump(mode="json"), "User created successfully")


@router.post("/users/{user_id}/block", summary="Block or unblock a user")
async def toggle_block(
    user_id: str,
    admin: AuthenticatedUser = Depends(require_user_manager),
    db: DBSession = Depends(get_db),
):
    user = accounts.toggle_blocked(db, user_id)
    logger.info("admin.user.blocked id=%s blocked=%s by=%s", user.id, user.is_blocked, admin.id)
    state = "blocked" if user.is_blocked else "unblocked"
    return api_response(200, sanitize(user).model_dump(mode="json"), f"User {state} successfully")


@router.patch("/users/{user_id}/role", summary="Change a user's role")
async def change_role(
    user_id: str,
    body: RoleUpdateRequest,
    admin: AuthenticatedUser = Depends(require_user_manager),
    db: DBSession = Depends(get_db),
):
    user = accounts.set_role(db, user_id, body.role)
    logger.info("admin.user.role id=%s role=%s by=%s", user.id, user.role.value, admin.id)
    return api_response(200, sanitize(user).model_dump(mode="json"), "User role updated successfully")


# =============================================================================
# Dashboard
# =============================================================================

@router.get("/stats", summary="Dashboard statistics")
async def dashboard_stats(
    staff: AuthenticatedUser = Depends(require_staff),
    db: DBSession = Depends(get_db),
):
    def count(model, *conditions) -> int:
        return db.exec(select(func.count()).select_from(model).where(*conditions)).one()

    live = (Article.is_archived == False,)  # noqa: E712
    published = live + (Article.status == ArticleStatus.PUBLISHED,)

    total_views = db.exec(
        select(func.coalesce(func.sum(Article.views), 0)).where(*live)
    ).one()
    latest = db.exec(
        select(Article).where(*published).order_by(Article.created_at.desc()).limit(5)
    ).all()

    return api_response(
        200,
        {
            "totalArticles": count(Article, *published),
            "archivedArticles": count(Article, Article.is_archived == True),  # noqa: E712
            "draftArticles": count(Article, Article.status == ArticleStatus.DRAFT),
            "totalCategories": count(Category, Category.is_archived == False),  # noqa: E712
            "totalUsers": count(User),
            "totalComments": count(Comment),
            "unreadMessages": count(Message, Message.is_read == False),  # noqa: E712
            "totalViews": int(total_views),
            "latestArticles": [article_view(db, a) for a in latest],
        },
        "Dashboard stats fetched successfully",
    )
