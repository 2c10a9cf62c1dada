"""
Newsroom - Contact Message Routes

- POST   /messages             - Submit the contact form (public)
- GET    /messages             - Inbox, newest first, optional ?is_read= (staff)
- GET    /messages/{id}        - One message (staff)
- PATCH  /messages/{id}/read   - Toggle read/unread (staff)
- DELETE /messages/{id}        - Remove (staff)
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy import func
from sqlmodel import Session as DBSession, select

from newsroom.auth.dependencies import AuthenticatedUser, require_capability
from newsroom.content.common import PageParams, get_or_404, pagination_meta
from newsroom.content.models import Message
from newsroom.content.schemas import MessageCreate, MessageRead
from newsroom.database import get_db
from newsroom.errors import api_response
from newsroom.gateway.rbac import Capability


router = APIRouter(prefix="/messages", tags=["messages"])

require_staff = require_capability(Capability.STAFF_DASHBOARD)


def _dump(message: Message) -> dict:
    return MessageRead.model_validate(message).model_dump(mode="json")


@router.post("", status_code=status.HTTP_201_CREATED, summary="Send a contact message")
async def send_message(body: MessageCreate, db: DBSession = Depends(get_db)):
    message = Message(**body.model_dump())
    db.add(message)
    db.commit()
    db.refresh(message)
    return api_response(201, _dump(message), "Message submitted successfully.")


@router.get("", summary="List contact messages")
async def list_messages(
    params: PageParams = Depends(),
    is_read: Optional[bool] = Query(None),
    user: AuthenticatedUser = Depends(require_staff),
    db: DBSession = Depends(get_db),
):
    conditions = [] if is_read is None else [Message.is_read == is_read]
    total = db.exec(select(func.count()).select_from(Message).where(*conditions)).one()
    rows = db.exec(
        select(Message)
        .where(*conditions)
        .order_by(Message.created_at.desc())
        .offset(params.offset)
        .limit(params.limit)
    ).all()
    return api_response(
        200,
        {"messages": [_dump(m) for m in rows], "pagination": pagination_meta(total, params)},
        "Messages fetched successfully.",
    )


@router.get("/{message_id}", summary="Get a contact message")
async def get_message(
    message_id: str,
    user: AuthenticatedUser = Depends(require_staff),
    db: DBSession = Depends(get_db),
):
    return api_response(
        200, _dump(get_or_404(db, Message, message_id, "Message")), "Message fetched successfully."
    )


@router.patch("/{message_id}/read", summary="Toggle read status")
async def toggle_read(
    message_id: str,
    user: AuthenticatedUser = Depends(require_staff),
    db: DBSession = Depends(get_db),
):
    message = get_or_404(db, Message, message_id, "Message")
    message.is_read = not message.is_read
    db.add(message)
    db.commit()
    db.refresh(message)
    state = "read" if message.is_read else "unread"
    return api_response(200, _dump(message), f"Message marked as {state}.")


@router.delete("/{message_id}", summary="Delete a contact message")
async def delete_message(
    message_id: str,
    user: AuthenticatedUser = Depends(require_staff),
    db: DBSession = Depends(get_db),
):
    message = get_or_404(db, Message, message_id, "Message")
    db.delete(message)
    db.commit()
    return api_response(200, {}, "Message deleted successfully.")
