"""Search query variants for F95API.

The platform offers two search backends with different request shapes:

- ``LatestSearchQuery``: the "Latest Updates" listing (category, tag and
  prefix IDs, sort, date bucket)
- ``ThreadSearchQuery``: the forum full-text search (keywords, tag names,
  date bounds)

``HandiworkSearchQuery`` is the unified, caller-facing query. It is resolved
into one of the two backend variants by ``f95api.resolver``.

Every variant is a plain record: fields can be reassigned freely and are only
checked by ``validate()``. ``create_url()`` refuses to build a URL for an
invalid query and returns ``Failure(InvalidQuery)`` instead.

Example:
    >>> from f95api.queries import LatestSearchQuery
    >>> query = LatestSearchQuery(category="games", sort="likes")
    >>> query.validate()
    True
    >>> query.create_url().value
    'https://f95zone.to/sam/latest_alpha/latest_data.php?cmd=list&cat=games&sort=likes&date=null&page=1'
"""

import datetime as dt
from enum import StrEnum
from typing import TYPE_CHECKING, Literal, Mapping, Optional

import httpx
from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

from f95api.config import settings
from f95api.errors import InvalidQuery
from f95api.result import Failure, Result, Success
from f95api.utils import format_date

if TYPE_CHECKING:
    from f95api.resolver import SearchType

# =============================================================================
# Constants and Enumerations
# =============================================================================

MAX_LATEST_TAGS = 5
MIN_PAGE = 1

DateBucket = Literal[365, 180, 90, 30, 14, 7, 3, 1]
DATE_BUCKETS: tuple[int, ...] = (1, 3, 7, 14, 30, 90, 180, 365)
"""Date buckets of the latest listing, from most to least restrictive."""


class Category(StrEnum):
    """Kinds of handiwork listed on the platform."""

    GAMES = "games"
    COMICS = "comics"
    ANIMATIONS = "animations"
    ASSETS = "assets"


class LatestOrder(StrEnum):
    """Sort options of the latest listing."""

    DATE = "date"
    LIKES = "likes"
    VIEWS = "views"
    TITLE = "title"
    RATING = "rating"


class ThreadOrder(StrEnum):
    """Sort options of the thread search."""

    DATE = "date"
    RELEVANCE = "relevance"
    REPLIES = "replies"
    VIEWS = "views"
    TITLE = "title"


class HandiworkOrder(StrEnum):
    """Unified sort options.

    When the selected backend does not support an order, a replacement is
    used (see ``f95api.resolver.ORDER_REMAP``).
    """

    DATE = "date"
    LIKES = "likes"
    RELEVANCE = "relevance"
    REPLIES = "replies"
    TITLE = "title"
    VIEWS = "views"


# =============================================================================
# Base Query
# =============================================================================


class SearchQuery(BaseModel):
    """Common behaviour of every query variant."""

    model_config = ConfigDict(extra="forbid")

    page: int = Field(MIN_PAGE, ge=MIN_PAGE, strict=True)

    def validation_errors(self) -> dict[str, str]:
        """Check the current field values against the field constraints.

        Returns:
            Mapping of offending field to constraint message (empty if valid)
        """
        values = {name: getattr(self, name) for name in type(self).model_fields}
        try:
            type(self).model_validate(values)
        except ValidationError as exc:
            violations: dict[str, str] = {}
            for err in exc.errors():
                field = ".".join(str(part) for part in err["loc"]) or "query"
                violations.setdefault(field, err["msg"])
            return violations
        return {}

    def validate(self) -> bool:  # type: ignore[override]
        """Verify that the query values are valid."""
        return not self.validation_errors()

    def query_params(self) -> list[tuple[str, str]]:
        """Ordered query string parameters of this query."""
        raise NotImplementedError

    @property
    def endpoint(self) -> str:
        raise NotImplementedError

    def create_url(self) -> Result[InvalidQuery, str]:
        """Build the platform URL of this query.

        Returns:
            ``Success(url)`` or ``Failure(InvalidQuery)`` naming the
            offending fields
        """
        violations = self.validation_errors()
        if violations:
            return Failure(InvalidQuery(violations))
        return Success(str(httpx.URL(self.endpoint, params=self.query_params())))


# =============================================================================
# Backend Variants
# =============================================================================


class LatestSearchQuery(SearchQuery):
    """Query of the "Latest Updates" listing.

    Attributes:
        category: Kind of handiwork to list
        tags: IDs of tags that must be present (max. 5)
        prefixes: IDs of prefixes that must be present
        sort: Sort order
        date: Only items updated in the last N days; None means anytime
        page: Page of results (>= 1)
    """

    category: Category = Category.GAMES
    tags: list[int] = Field(default_factory=list, max_length=MAX_LATEST_TAGS)
    prefixes: list[int] = Field(default_factory=list)
    sort: LatestOrder = LatestOrder.DATE
    date: Optional[DateBucket] = None

    @property
    def endpoint(self) -> str:
        return settings.latest_url

    def query_params(self) -> list[tuple[str, str]]:
        params = [("cmd", "list"), ("cat", str(self.category))]
        params.extend(("tags[]", str(tag)) for tag in self.tags)
        params.extend(("prefixes[]", str(prefix)) for prefix in self.prefixes)
        params.append(("sort", str(self.sort)))
        params.append(("date", "null" if self.date is None else str(self.date)))
        params.append(("page", str(self.page)))
        return params


class ThreadSearchQuery(SearchQuery):
    """Query of the forum thread search.

    Attributes:
        keywords: Free-text keywords
        included_tags: Tag names that must be present
        excluded_tags: Tag names that must be absent
        newer_than: Only threads newer than this date
        older_than: Only threads older than this date
        only_titles: Search keywords in titles only
        order: Sort order
        page: Page of results (>= 1)
    """

    keywords: str = ""
    included_tags: list[str] = Field(default_factory=list)
    excluded_tags: list[str] = Field(default_factory=list)
    newer_than: dt.datetime | dt.date | None = None
    older_than: dt.datetime | dt.date | None = None
    only_titles: bool = False
    order: ThreadOrder = ThreadOrder.RELEVANCE

    @model_validator(mode="after")
    def check_date_range(self) -> "ThreadSearchQuery":
        if self.newer_than and self.older_than:
            if format_date(self.newer_than) > format_date(self.older_than):
                raise ValueError("newer_than must not be after older_than")
        return self

    @property
    def endpoint(self) -> str:
        return settings.search_url

    def query_params(self) -> list[tuple[str, str]]:
        params = [("type", "post"), ("keywords", self.keywords)]
        params.extend(("c[tags][]", tag) for tag in self.included_tags)
        params.extend(("c[excludeTags][]", tag) for tag in self.excluded_tags)
        params.append(("c[newer_than]", format_date(self.newer_than)))
        params.append(("c[older_than]", format_date(self.older_than)))
        params.append(("c[title_only]", "1" if self.only_titles else "0"))
        params.append(("o", str(self.order)))
        params.append(("page", str(self.page)))
        return params


# =============================================================================
# Unified Query
# =============================================================================


class HandiworkSearchQuery(SearchQuery):
    """Unified search over both backends.

    The backend is chosen by ``select_search_type()``: keywords or more than
    five included tags need the thread search, everything else is served by
    the latest listing.

    Attributes:
        keywords: Free-text keywords
        newer_than: Results must be more recent than this date
        older_than: Results must be older than this date
        included_tags: Tag names that must be present
        excluded_tags: Tag names that must be absent
        category: Kind of handiwork
        order: Unified sort order
        page: Page of results (>= 1)
    """

    keywords: str = ""
    newer_than: dt.datetime | dt.date | None = None
    older_than: dt.datetime | dt.date | None = None
    included_tags: list[str] = Field(default_factory=list)
    excluded_tags: list[str] = Field(default_factory=list)
    category: Category = Category.GAMES
    order: HandiworkOrder = HandiworkOrder.RELEVANCE

    def select_search_type(self) -> "SearchType":
        """Select the backend able to serve this query."""
        from f95api.resolver import select_search_type

        return select_search_type(self)

    def cast(
        self,
        search_type: Optional["SearchType"] = None,
        tag_ids: Optional[Mapping[str, int]] = None,
    ) -> LatestSearchQuery | ThreadSearchQuery:
        """Convert to a backend variant (the selected one by default)."""
        from f95api.resolver import cast

        return cast(self, search_type or self.select_search_type(), tag_ids=tag_ids)

    def create_url(
        self,
        tag_ids: Optional[Mapping[str, int]] = None,
    ) -> Result[InvalidQuery, str]:
        """Validate, resolve to a backend variant and build its URL.

        Args:
            tag_ids: Lookup of tag name to platform tag ID, used when the
                latest listing serves the query
        """
        violations = self.validation_errors()
        if violations:
            return Failure(InvalidQuery(violations))
        return self.cast(tag_ids=tag_ids).create_url()
