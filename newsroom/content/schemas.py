"""
Newsroom - Content Request/Response Schemas

Request bodies are validated here; read models are built from ORM rows
with from_attributes so expired instances reload on access.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional, Union
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

from newsroom.auth.schemas import normalize_email
from newsroom.content.models import (
    ArticleStatus,
    PageStatus,
    PollStatus,
    SettingType,
    SubscriptionStatus,
)


def _split_tags(v: Union[str, List[str], None]) -> List[str]:
    if v is None:
        return []
    items = v.split(",") if isinstance(v, str) else v
    return [t.strip() for t in items if t and t.strip()]


def _not_blank(v: str) -> str:
    v = v.strip()
    if not v:
        raise ValueError("Must not be blank")
    return v


# =============================================================================
# Categories
# =============================================================================

class CategoryCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=50)

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        return _not_blank(v)


class CategoryUpdate(CategoryCreate):
    pass


class CategoryRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    slug: str
    is_archived: bool
    created_at: datetime


class CategorySummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    slug: str


# =============================================================================
# Articles
# =============================================================================

class AuthorSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    username: str
    full_name: str
    avatar: Optional[str] = None


class ArticleCreate(BaseModel):
    """Request body for POST /articles. Tags may be a list or a comma string."""
    title: str = Field(..., min_length=5, max_length=200)
    content: str = Field(..., min_length=10)
    category_id: UUID
    thumbnail: Optional[str] = Field(default=None, max_length=512)
    tags: List[str] = Field(default_factory=list)
    is_featured: bool = False

    @field_validator("title")
    @classmethod
    def strip_title(cls, v: str) -> str:
        return _not_blank(v)

    @field_validator("tags", mode="before")
    @classmethod
    def parse_tags(cls, v):
        return _split_tags(v)


class ArticleUpdate(BaseModel):
    """Partial update for PATCH /articles/{id}."""
    title: Optional[str] = Field(default=None, min_length=5, max_length=200)
    content: Optional[str] = Field(default=None, min_length=10)
    category_id: Optional[UUID] = None
    thumbnail: Optional[str] = Field(default=None, max_length=512)
    tags: Optional[List[str]] = None
    is_featured: Optional[bool] = None
    status: Optional[ArticleStatus] = None

    @field_validator("tags", mode="before")
    @classmethod
    def parse_tags(cls, v):
        return None if v is None else _split_tags(v)


class BulkArticleItem(BaseModel):
    """One row of a bulk upload. category is a name or slug."""
    title: str = Field(..., min_length=1, max_length=200)
    category: str = Field(..., min_length=1)
    content: Optional[str] = None
    thumbnail: Optional[str] = None
    tags: List[str] = Field(default_factory=list)
    status: Optional[ArticleStatus] = None
    is_featured: bool = False

    @field_validator("title", "category")
    @classmethod
    def strip_required(cls, v: str) -> str:
        return _not_blank(v)

    @field_validator("tags", mode="before")
    @classmethod
    def parse_tags(cls, v):
        return _split_tags(v)

    @field_validator("is_featured", mode="before")
    @classmethod
    def parse_featured(cls, v):
        if isinstance(v, str):
            return v.strip().lower() in {"true", "1"}
        return bool(v)


class BulkUploadRequest(BaseModel):
    # Items are validated one by one so a bad row does not sink the batch
    articles: List[Dict[str, Any]] = Field(..., min_length=1)


class ArticleRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    title: str
    slug: str
    content: str
    thumbnail: Optional[str] = None
    status: ArticleStatus
    is_archived: bool
    is_featured: bool
    views: int
    tags: List[str] = Field(default_factory=list)
    category_id: UUID
    author_id: UUID
    author: Optional[AuthorSummary] = None
    category: Optional[CategorySummary] = None
    created_at: datetime
    updated_at: datetime


# =============================================================================
# Comments
# =============================================================================

class CommentCreate(BaseModel):
    content: str = Field(..., min_length=1, max_length=500)

    @field_validator("content")
    @classmethod
    def strip_content(cls, v: str) -> str:
        return _not_blank(v)


class CommentRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    content: str
    article_id: UUID
    owner_id: UUID
    owner: Optional[AuthorSummary] = None
    created_at: datetime


# =============================================================================
# Polls
# =============================================================================

class PollCreate(BaseModel):
    question: str = Field(..., min_length=1, max_length=300)
    options: List[str] = Field(..., min_length=2)
    status: PollStatus = PollStatus.ACTIVE

    @field_validator("options", mode="before")
    @classmethod
    def option_texts(cls, v):
        # Accept ["Yes", "No"] or [{"text": "Yes"}, ...]
        if isinstance(v, list):
            return [o.get("text") if isinstance(o, dict) else o for o in v]
        return v

    @field_validator("options")
    @classmethod
    def options_not_blank(cls, v: List[str]) -> List[str]:
        return [_not_blank(o) for o in v]


class PollUpdate(BaseModel):
    question: Optional[str] = Field(default=None, min_length=1, max_length=300)
    status: Optional[PollStatus] = None


class VoteRequest(BaseModel):
    option_id: str


class PollOptionRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    text: str
    votes: int


class PollRead(BaseModel):
    id: UUID
    question: str
    status: PollStatus
    created_by: UUID
    created_at: datetime
    options: List[PollOptionRead]
    total_votes: int


class VoteResult(BaseModel):
    id: UUID
    text: str
    votes: int
    percentage: int


# =============================================================================
# Pages
# =============================================================================

class PageCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    content: str = Field(..., min_length=1)
    status: PageStatus = PageStatus.PUBLISHED


class PageUpdate(BaseModel):
    title: Optional[str] = Field(default=None, min_length=1, max_length=200)
    content: Optional[str] = Field(default=None, min_length=1)
    status: Optional[PageStatus] = None
    slug: Optional[str] = Field(default=None, min_length=1, max_length=255)


class PageRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    title: str
    slug: str
    content: str
    status: PageStatus
    author_id: UUID
    created_at: datetime
    updated_at: datetime


# =============================================================================
# Settings
# =============================================================================

class SettingItem(BaseModel):
    """
    One entry of PUT /settings.

    value may legitimately be null; an entry that omits value entirely
    is skipped, as is one without a key.
    """
    key: Optional[str] = None
    value: Any = None
    type: Optional[SettingType] = None
    description: Optional[str] = None

    @property
    def is_complete(self) -> bool:
        return bool(self.key and self.key.strip()) and "value" in self.model_fields_set


class SettingsUpdateRequest(BaseModel):
    settings: List[SettingItem] = Field(..., min_length=1)


class SettingRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    key: str
    type: SettingType
    value: Any = None
    description: Optional[str] = None


# =============================================================================
# Messages and newsletter
# =============================================================================

class MessageCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    email: str
    subject: Optional[str] = Field(default=None, max_length=200)
    message: str = Field(..., min_length=1, max_length=5000)

    @field_validator("name", "message")
    @classmethod
    def strip_required(cls, v: str) -> str:
        return _not_blank(v)

    @field_validator("email")
    @classmethod
    def email_format(cls, v: str) -> str:
        return normalize_email(v)


class MessageRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    email: str
    subject: Optional[str] = None
    message: str
    is_read: bool
    created_at: datetime


class SubscribeRequest(BaseModel):
    email: str

    @field_validator("email")
    @classmethod
    def email_format(cls, v: str) -> str:
        return normalize_email(v)


class SubscriberRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    email: str
    status: SubscriptionStatus
    subscribed_at: datetime
