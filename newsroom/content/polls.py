"""
Newsroom - Poll Routes

Public:
- GET  /polls/active       - Latest active polls (default one, for the widget)
- POST /polls/{id}/vote    - Cast a vote

manage:site:
- GET    /polls            - Every poll
- POST   /polls            - Create with two or more options
- PATCH  /polls/{id}       - Change question or status
- DELETE /polls/{id}       - Remove with its options and votes

One vote per voter per poll. Signed-in voters are identified by account,
anonymous ones by client address.
"""

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy import delete, update
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session as DBSession, select

from newsroom.auth.dependencies import AuthenticatedUser, get_optional_user, require_capability
from newsroom.content.common import get_or_404
from newsroom.content.models import Poll, PollOption, PollStatus, PollVote
from newsroom.content.schemas import (
    PollCreate,
    PollOptionRead,
    PollRead,
    PollUpdate,
    VoteRequest,
    VoteResult,
)
from newsroom.database import get_db
from newsroom.errors import ForbiddenError, ValidationError, api_response
from newsroom.gateway.rbac import Capability


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/polls", tags=["polls"])

require_site_manager = require_capability(Capability.MANAGE_SITE)


def _options(db: DBSession, poll_id) -> List[PollOption]:
    return list(
        db.exec(
            select(PollOption).where(PollOption.poll_id == poll_id).order_by(PollOption.position)
        ).all()
    )


def poll_view(db: DBSession, poll: Poll) -> dict:
    options = _options(db, poll.id)
    return PollRead(
        id=poll.id,
        question=poll.question,
        status=poll.status,
        created_by=poll.created_by,
        created_at=poll.created_at,
        options=[PollOptionRead.model_validate(o) for o in options],
        total_votes=sum(o.votes for o in options),
    ).model_dump(mode="json")


def voter_identity(request: Request, user: Optional[AuthenticatedUser]) -> str:
    if user:
        return f"user:{user.id}"
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return f"ip:{forwarded.split(',')[0].strip()}"
    return f"ip:{request.client.host if request.client else 'anonymous'}"


# =============================================================================
# Public
# =============================================================================

@router.get("/active", summary="Latest active polls")
async def active_polls(
    limit: int = Query(1, ge=1, le=20),
    db: DBSession = Depends(get_db),
):
    rows = db.exec(
        select(Poll)
        .where(Poll.status == PollStatus.ACTIVE)
        .order_by(Poll.created_at.desc())
        .limit(limit)
    ).all()
    return api_response(200, [poll_view(db, p) for p in rows], "Active polls retrieved")


@router.post("/{poll_id}/vote", summary="Vote in a poll")
async def vote(
    poll_id: str,
    body: VoteRequest,
    request: Request,
    user: Optional[AuthenticatedUser] = Depends(get_optional_user),
    db: DBSession = Depends(get_db),
):
    """
    Raises:
        404: unknown poll
        400: poll closed, or option not in this poll
        403: this voter already voted
    """
    poll = get_or_404(db, Poll, poll_id, "Poll")
    if poll.status != PollStatus.ACTIVE:
        raise ValidationError("This poll is closed")

    voter = voter_identity(request, user)
    already = db.exec(
        select(PollVote).where(PollVote.poll_id == poll.id, PollVote.voter == voter)
    ).first()
    if already:
        raise ForbiddenError("You have already voted in this poll")

    option = next((o for o in _options(db, poll.id) if str(o.id) == body.option_id), None)
    if option is None:
        raise ValidationError("Invalid voting option")

    try:
        db.add(PollVote(poll_id=poll.id, voter=voter))
        db.flush()
        db.exec(
            update(PollOption).where(PollOption.id == option.id).values(votes=PollOption.votes + 1)
        )
        db.commit()
    except IntegrityError:
        # A concurrent request from the same voter got there first
        db.rollback()
        raise ForbiddenError("You have already voted in this poll")

    options = _options(db, poll.id)
    total = sum(o.votes for o in options)
    results = [
        VoteResult(
            id=o.id,
            text=o.text,
            votes=o.votes,
            percentage=round(o.votes / total * 100) if total else 0,
        ).model_dump(mode="json")
        for o in options
    ]
    return api_response(
        200,
        {"poll_id": str(poll.id), "results": results, "total_votes": total},
        "Vote cast successfully",
    )


# =============================================================================
# Site management
# =============================================================================

@router.get("", summary="List all polls")
async def list_polls(
    user: AuthenticatedUser = Depends(require_site_manager),
    db: DBSession = Depends(get_db),
):
    rows = db.exec(select(Poll).order_by(Poll.created_at.desc())).all()
    return api_response(200, [poll_view(db, p) for p in rows], "All polls retrieved")


@router.post("", status_code=status.HTTP_201_CREATED, summary="Create a poll")
async def create_poll(
    body: PollCreate,
    user: AuthenticatedUser = Depends(require_site_manager),
    db: DBSession = Depends(get_db),
):
    poll = Poll(question=body.question.strip(), status=body.status, created_by=user.id)
    db.add(poll)
    db.flush()
    for position, text in enumerate(body.options):
        db.add(PollOption(poll_id=poll.id, text=text, position=position))
    db.commit()
    db.refresh(poll)
    return api_response(201, poll_view(db, poll), "Poll created successfully")


@router.patch("/{poll_id}", summary="Update a poll")
async def update_poll(
    poll_id: str,
    body: PollUpdate,
    user: AuthenticatedUser = Depends(require_site_manager),
    db: DBSession = Depends(get_db),
):
    poll = get_or_404(db, Poll, poll_id, "Poll")
    if body.question is not None:
        poll.question = body.question.strip()
    if body.status is not None:
        poll.status = body.status
    db.add(poll)
    db.commit()
    db.refresh(poll)
    return api_response(200, poll_view(db, poll), "Poll updated")


@router.delete("/{poll_id}", summary="Delete a poll")
async def delete_poll(
    poll_id: str,
    user: AuthenticatedUser = Depends(require_site_manager),
    db: DBSession = Depends(get_db),
):
    poll = get_or_404(db, Poll, poll_id, "Poll")
    db.exec(delete(PollVote).where(PollVote.poll_id == poll.id))
    db.exec(delete(PollOption).where(PollOption.poll_id == poll.id))
    db.delete(poll)
    db.commit()
    return api_response(200, {}, "Poll deleted successfully")
