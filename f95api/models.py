"""Data models for F95API.

Pydantic models for the objects reconstructed from the platform pages:

1. References and users (``UserRef``, ``PlatformUser``)
2. Post content (``PostElement``, ``Post``)
3. Threads (``Rating``, ``ThreadMetadata``, ``Thread``)

``Thread`` and ``Post`` are frozen: they are only built from a complete,
successful retrieval and never partially updated.
"""

from datetime import datetime
from enum import StrEnum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from f95api.utils import parse_datetime

# =============================================================================
# Section 1: Users
# =============================================================================


class UserRef(BaseModel):
    """Weak reference to a platform user, identified by numeric ID.

    The referenced user has its own lifecycle; resolve it explicitly with
    ``f95api.pipeline.resolve_user``.
    """

    model_config = ConfigDict(frozen=True)

    id: int


class PlatformUser(BaseModel):
    """Resolved profile of a platform user.

    Attributes:
        id: Unique user ID
        name: Display name
        title: User title shown under the name
        avatar: Avatar image URL
        joined: Registration date (UTC)
        message_count: Number of messages posted
    """

    model_config = ConfigDict(extra="ignore")

    id: int
    name: str
    title: Optional[str] = None
    avatar: Optional[str] = None
    joined: Optional[datetime] = None
    message_count: Optional[int] = None

    @field_validator("joined", mode="before")
    @classmethod
    def _coerce_joined(cls, v: Optional[str]) -> Optional[datetime]:
        return parse_datetime(v)


# =============================================================================
# Section 2: Posts
# =============================================================================


class ElementType(StrEnum):
    """Kinds of elements in a post body."""

    TEXT = "text"
    LINK = "link"
    IMAGE = "image"
    SPOILER = "spoiler"


class PostElement(BaseModel):
    """Typed node of a post body.

    Attributes:
        type: Element kind
        text: Text content (link text, spoiler title, plain text)
        href: Link target (links only)
        src: Image source (images only)
        children: Nested elements (spoilers, links wrapping images)
    """

    model_config = ConfigDict(frozen=True)

    type: ElementType
    text: str = ""
    href: Optional[str] = None
    src: Optional[str] = None
    children: tuple["PostElement", ...] = ()


PostElement.model_rebuild()


class Post(BaseModel):
    """Post published by a user inside a thread.

    Attributes:
        id: Unique post ID on the whole platform (sort key in a thread)
        number: Sequential number of the post inside its thread
        published: First publication timestamp (UTC)
        last_edit: Last edit timestamp (UTC); equals ``published`` if never edited
        owner: Weak reference to the author; None for deleted or guest members
        bookmarked: Whether the logged user bookmarked the post
        message: Raw text of the post
        body: Structured content of the post
    """

    model_config = ConfigDict(frozen=True)

    id: int = Field(..., ge=1)
    number: int
    published: datetime
    last_edit: datetime
    owner: Optional[UserRef] = None
    bookmarked: bool = False
    message: str = ""
    body: tuple[PostElement, ...] = ()

    @field_validator("published", "last_edit", mode="before")
    @classmethod
    def _coerce_dates(cls, v: str | datetime) -> Optional[datetime]:
        return parse_datetime(v)


# =============================================================================
# Section 3: Threads
# =============================================================================


class Rating(BaseModel):
    """Aggregate rating of a thread.

    Attributes:
        average: Average rating
        best: Best possible rating
        count: Number of ratings
    """

    model_config = ConfigDict(frozen=True)

    average: float
    best: int
    count: int


class ThreadMetadata(BaseModel):
    """Data extracted from the first rendered page of a thread."""

    title: str
    tags: list[str] = Field(default_factory=list)
    prefixes: list[str] = Field(default_factory=list)
    owner_id: int
    creation: datetime
    pages: int = Field(1, ge=1)
    json_ld: dict = Field(default_factory=dict)

    @field_validator("creation", mode="before")
    @classmethod
    def _coerce_creation(cls, v: str | datetime) -> Optional[datetime]:
        return parse_datetime(v)


class Thread(BaseModel):
    """Fully materialized platform thread.

    Attributes:
        id: Unique thread ID
        url: Canonical thread URL
        title: Thread title (without prefixes)
        tags: Tag names
        prefixes: Prefix labels
        owner: Weak reference to the thread creator
        creation: Creation timestamp (UTC)
        rating: Aggregate rating
        posts: Every post, ascending by post ID
    """

    model_config = ConfigDict(frozen=True)

    id: int = Field(..., ge=1)
    url: str
    title: str
    tags: tuple[str, ...] = ()
    prefixes: tuple[str, ...] = ()
    owner: UserRef
    creation: datetime
    rating: Rating
    posts: tuple[Post, ...] = ()

    def __str__(self) -> str:
        return f"[{self.id}] {self.title} ({len(self.posts)} posts)"
