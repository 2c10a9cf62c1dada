"""
Newsroom - Static Page Routes

Public:
- GET /pages               - Published pages
- GET /pages/slug/{slug}   - One published page

manage:site:
- GET    /pages/admin-list - Every page, drafts included
- POST   /pages            - Create (slug derived from title)
- GET    /pages/{id}       - Load for editing
- PATCH  /pages/{id}       - Update
- DELETE /pages/{id}       - Remove
"""

from fastapi import APIRouter, Depends, status
from sqlmodel import Session as DBSession, select

from newsroom.auth.dependencies import AuthenticatedUser, require_capability
from newsroom.content.common import get_or_404, slugify, unique_slug
from newsroom.content.models import Page, PageStatus
from newsroom.content.schemas import PageCreate, PageRead, PageUpdate
from newsroom.database import get_db
from newsroom.errors import ConflictError, NotFoundError, api_response
from newsroom.gateway.rbac import Capability


router = APIRouter(prefix="/pages", tags=["pages"])

require_site_manager = require_capability(Capability.MANAGE_SITE)


def _dump(page: Page) -> dict:
    return PageRead.model_validate(page).model_dump(mode="json")


@router.get("", summary="List published pages")
async def list_pages(db: DBSession = Depends(get_db)):
    rows = db.exec(
        select(Page).where(Page.status == PageStatus.PUBLISHED).order_by(Page.created_at.desc())
    ).all()
    return api_response(200, [_dump(p) for p in rows], "Pages fetched successfully")


@router.get("/admin-list", summary="List all pages")
async def list_all_pages(
    user: AuthenticatedUser = Depends(require_site_manager),
    db: DBSession = Depends(get_db),
):
    rows = db.exec(select(Page).order_by(Page.created_at.desc())).all()
    return api_response(200, [_dump(p) for p in rows], "Pages fetched successfully")


@router.get("/slug/{slug}", summary="Get a published page")
async def get_page_by_slug(slug: str, db: DBSession = Depends(get_db)):
    page = db.exec(
        select(Page).where(Page.slug == slug, Page.status == PageStatus.PUBLISHED)
    ).first()
    if not page:
        raise NotFoundError("Page not found")
    return api_response(200, _dump(page), "Page fetched successfully")


@router.post("", status_code=status.HTTP_201_CREATED, summary="Create a page")
async def create_page(
    body: PageCreate,
    user: AuthenticatedUser = Depends(require_site_manager),
    db: DBSession = Depends(get_db),
):
    page = Page(
        title=body.title,
        slug=unique_slug(db, Page, body.title),
        content=body.content,
        status=body.status,
        author_id=user.id,
    )
    db.add(page)
    db.commit()
    db.refresh(page)
    return api_response(201, _dump(page), "Page created successfully")


@router.get("/{page_id}", summary="Get a page for editing")
async def get_page(
    page_id: str,
    user: AuthenticatedUser = Depends(require_site_manager),
    db: DBSession = Depends(get_db),
):
    return api_response(200, _dump(get_or_404(db, Page, page_id, "Page")), "Page fetched successfully")


@router.patch("/{page_id}", summary="Update a page")
async def update_page(
    page_id: str,
    body: PageUpdate,
    user: AuthenticatedUser = Depends(require_site_manager),
    db: DBSession = Depends(get_db),
):
    """
    An explicit slug must be free; otherwise a changed title re-derives
    the slug, de-duplicated like a new page.
    """
    page = get_or_404(db, Page, page_id, "Page")

    if body.slug is not None and slugify(body.slug) != page.slug:
        wanted = slugify(body.slug)
        clash = db.exec(select(Page).where(Page.slug == wanted, Page.id != page.id)).first()
        if clash or not wanted:
            raise ConflictError("This custom slug is already in use")
        page.slug = wanted
    elif body.slug is None and body.title is not None and body.title != page.title:
        page.slug = unique_slug(db, Page, body.title, exclude_id=page.id)

    if body.title is not None:
        page.title = body.title
    if body.content is not None:
        page.content = body.content
    if body.status is not None:
        page.status = body.status

    db.add(page)
    db.commit()
    db.refresh(page)
    return api_response(200, _dump(page), "Page updated successfully")


@router.delete("/{page_id}", summary="Delete a page")
async def delete_page(
    page_id: str,
    user: AuthenticatedUser = Depends(require_site_manager),
    db: DBSession = Depends(get_db),
):
    page = get_or_404(db, Page, page_id, "Page")
    db.delete(page)
    db.commit()
    return api_response(200, {}, "Page deleted successfully")
