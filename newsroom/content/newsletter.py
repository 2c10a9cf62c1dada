"""
Newsroom - Newsletter Routes

- POST   /newsletters/subscribe     - Subscribe or resubscribe (public)
- POST   /newsletters/unsubscribe   - Unsubscribe (public)
- GET    /newsletters               - Subscriber list (manage:site)
- DELETE /newsletters/{id}          - Remove a subscriber (manage:site)
"""

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlmodel import Session as DBSession, select

from newsroom.auth.dependencies import AuthenticatedUser, require_capability
from newsroom.content.common import get_or_404
from newsroom.content.models import Subscriber, SubscriptionStatus
from newsroom.content.schemas import SubscribeRequest, SubscriberRead
from newsroom.database import get_db
from newsroom.errors import ConflictError, NotFoundError, api_response
from newsroom.gateway.rbac import Capability


router = APIRouter(prefix="/newsletters", tags=["newsletter"])

require_site_manager = require_capability(Capability.MANAGE_SITE)


def _by_email(db: DBSession, email: str):
    return db.exec(select(Subscriber).where(Subscriber.email == email)).first()


@router.post("/subscribe", summary="Subscribe to the newsletter")
async def subscribe(body: SubscribeRequest, db: DBSession = Depends(get_db)):
    """
    New addresses get 201. A previously unsubscribed address is
    reactivated with 200; an active one is a 409.
    """
    existing = _by_email(db, body.email)
    if existing:
        if existing.status == SubscriptionStatus.SUBSCRIBED:
            raise ConflictError("You are already subscribed to the newsletter.")
        existing.status = SubscriptionStatus.SUBSCRIBED
        db.add(existing)
        db.commit()
        return api_response(200, None, "Successfully resubscribed to the newsletter!")

    db.add(Subscriber(email=body.email))
    db.commit()
    return JSONResponse(
        status_code=201,
        content=api_response(201, None, "Successfully subscribed to the newsletter!"),
    )


@router.post("/unsubscribe", summary="Unsubscribe from the newsletter")
async def unsubscribe(body: SubscribeRequest, db: DBSession = Depends(get_db)):
    subscriber = _by_email(db, body.email)
    if not subscriber:
        raise NotFoundError("Email not found in our database")
    subscriber.status = SubscriptionStatus.UNSUBSCRIBED
    db.add(subscriber)
    db.commit()
    return api_response(200, None, "Successfully unsubscribed.")


@router.get("", summary="List subscribers")
async def list_subscribers(
    user: AuthenticatedUser = Depends(require_site_manager),
    db: DBSession = Depends(get_db),
):
    rows = db.exec(select(Subscriber).order_by(Subscriber.subscribed_at.desc())).all()
    return api_response(
        200,
        [SubscriberRead.model_validate(s).model_dump(mode="json") for s in rows],
        "Subscribers retrieved successfully",
    )


@router.delete("/{subscriber_id}", summary="Remove a subscriber")
async def remove_subscriber(
    subscriber_id: str,
    user: AuthenticatedUser = Depends(require_site_manager),
    db: DBSession = Depends(get_db),
):
    subscriber = get_or_404(db, Subscriber, subscriber_id, "Subscriber")
    db.delete(subscriber)
    db.commit()
    return api_response(200, {}, "Subscriber permanently removed")
