"""
Newsroom - Content Database Models

Articles, categories, comments, polls, static pages, site settings,
contact messages and newsletter subscribers.

Deletion conventions:
- Articles and categories are archived (soft delete)
- Comments, polls, pages, messages and subscribers are removed outright
"""

from datetime import datetime
from enum import Enum
from typing import Any, List, Optional
from uuid import UUID, uuid4

from sqlalchemy import JSON, Column, String, Text, UniqueConstraint
from sqlmodel import Field, SQLModel

from newsroom.auth.models import created_column, updated_column, utcnow


class ArticleStatus(str, Enum):
    DRAFT = "DRAFT"
    PUBLISHED = "PUBLISHED"
    ARCHIVED = "ARCHIVED"
    BLOCKED = "BLOCKED"


class PollStatus(str, Enum):
    ACTIVE = "active"
    CLOSED = "closed"


class PageStatus(str, Enum):
    DRAFT = "draft"
    PUBLISHED = "published"


class SettingType(str, Enum):
    GENERAL = "general"
    THEME = "theme"
    NAVIGATION = "navigation"
    SEO = "seo"
    SOCIAL = "social"
    ADS = "ads"


class SubscriptionStatus(str, Enum):
    SUBSCRIBED = "subscribed"
    UNSUBSCRIBED = "unsubscribed"


class Category(SQLModel, table=True):
    __tablename__ = "categories"

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    name: str = Field(sa_column=Column(String(50), unique=True, index=True, nullable=False))
    slug: str = Field(index=True)
    owner_id: Optional[UUID] = Field(default=None, foreign_key="users.id")
    is_archived: bool = Field(default=False)
    created_at: datetime = Field(default_factory=utcnow, sa_column=created_column())
    updated_at: datetime = Field(
        default_factory=utcnow,
        sa_column=updated_column(),
    )


class Article(SQLModel, table=True):
    """
    News article.

    status and is_archived move together: archiving sets ARCHIVED and
    restoring any other status clears the flag.
    """
    __tablename__ = "articles"

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    slug: str = Field(sa_column=Column(String(255), unique=True, index=True, nullable=False))
    title: str = Field(index=True)
    content: str = Field(sa_column=Column(Text, nullable=False))
    thumbnail: Optional[str] = None
    status: ArticleStatus = Field(default=ArticleStatus.DRAFT, index=True)
    is_archived: bool = Field(default=False)
    category_id: UUID = Field(foreign_key="categories.id", index=True)
    author_id: UUID = Field(foreign_key="users.id", index=True)
    views: int = Field(default=0)
    is_featured: bool = Field(default=False)
    tags: List[str] = Field(default_factory=list, sa_column=Column(JSON, nullable=False, default=list))
    created_at: datetime = Field(default_factory=utcnow, sa_column=created_column(index=True))
    updated_at: datetime = Field(
        default_factory=utcnow,
        sa_column=updated_column(),
    )


class Comment(SQLModel, table=True):
    __tablename__ = "comments"

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    content: str = Field(sa_column=Column(String(500), nullable=False))
    article_id: UUID = Field(foreign_key="articles.id", index=True)
    owner_id: UUID = Field(foreign_key="users.id")
    created_at: datetime = Field(default_factory=utcnow, sa_column=created_column(index=True))


class Poll(SQLModel, table=True):
    __tablename__ = "polls"

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    question: str
    status: PollStatus = Field(default=PollStatus.ACTIVE, index=True)
    created_by: UUID = Field(foreign_key="users.id")
    created_at: datetime = Field(default_factory=utcnow, sa_column=created_column(index=True))


class PollOption(SQLModel, table=True):
    __tablename__ = "poll_options"

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    poll_id: UUID = Field(foreign_key="polls.id", index=True)
    text: str
    votes: int = Field(default=0)
    position: int = Field(default=0)


class PollVote(SQLModel, table=True):
    """One row per (poll, voter); the unique constraint stops double voting."""
    __tablename__ = "poll_votes"
    __table_args__ = (UniqueConstraint("poll_id", "voter", name="uq_poll_voter"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    poll_id: UUID = Field(foreign_key="polls.id", index=True)
    voter: str = Field(max_length=255)


class Page(SQLModel, table=True):
    __tablename__ = "pages"

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    title: str
    slug: str = Field(sa_column=Column(String(255), unique=True, index=True, nullable=False))
    content: str = Field(sa_column=Column(Text, nullable=False))
    status: PageStatus = Field(default=PageStatus.PUBLISHED)
    author_id: UUID = Field(foreign_key="users.id")
    created_at: datetime = Field(default_factory=utcnow, sa_column=created_column(index=True))
    updated_at: datetime = Field(
        default_factory=utcnow,
        sa_column=updated_column(),
    )


class SiteSetting(SQLModel, table=True):
    __tablename__ = "settings"

    id: Optional[int] = Field(default=None, primary_key=True)
    key: str = Field(sa_column=Column(String(100), unique=True, index=True, nullable=False))
    type: SettingType = Field(default=SettingType.GENERAL)
    value: Any = Field(default=None, sa_column=Column(JSON, nullable=True))
    description: Optional[str] = None


class Message(SQLModel, table=True):
    __tablename__ = "messages"

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    name: str
    email: str
    subject: Optional[str] = None
    message: str = Field(sa_column=Column(Text, nullable=False))
    is_read: bool = Field(default=False)
    created_at: datetime = Field(default_factory=utcnow, sa_column=created_column(index=True))


class Subscriber(SQLModel, table=True):
    __tablename__ = "newsletter_subscribers"

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    email: str = Field(sa_column=Column(String(255), unique=True, index=True, nullable=False))
    status: SubscriptionStatus = Field(default=SubscriptionStatus.SUBSCRIBED, index=True)
    subscribed_at: datetime = Field(default_factory=utcnow, sa_column=created_column())
