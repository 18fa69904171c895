"""Resolution of a unified ``HandiworkSearchQuery`` into a backend query.

The resolver answers two questions:

1. Which backend can serve the request (``select_search_type``)? This is a
   hard threshold: keywords, or more than ``MAX_LATEST_TAGS`` included tags,
   require the thread search; anything else uses the latest listing.
2. What does the request look like in that backend's vocabulary
   (``to_latest`` / ``to_thread``)? Orders are translated with the total
   ``ORDER_REMAP`` table and the recency filter is snapped to the nearest
   supported date bucket.

Example:
    >>> from f95api.queries import HandiworkSearchQuery
    >>> from f95api.resolver import SearchType, cast
    >>> query = HandiworkSearchQuery(keywords="sandbox", order="likes")
    >>> query.select_search_type()
    <SearchType.THREAD: 'thread'>
    >>> cast(query, SearchType.THREAD).order
    <ThreadOrder.RELEVANCE: 'relevance'>
"""

import datetime as dt
from enum import StrEnum
from typing import Mapping, Optional

from loguru import logger

from f95api.queries import (
    DATE_BUCKETS,
    MAX_LATEST_TAGS,
    HandiworkOrder,
    HandiworkSearchQuery,
    LatestOrder,
    LatestSearchQuery,
    ThreadOrder,
    ThreadSearchQuery,
)
from f95api.utils import as_date, utc_now


class SearchType(StrEnum):
    """Search backends of the platform."""

    LATEST = "latest"
    THREAD = "thread"


# =============================================================================
# Order Remap Table
# =============================================================================

ORDER_REMAP: dict[SearchType, dict[HandiworkOrder, LatestOrder | ThreadOrder]] = {
    SearchType.LATEST: {
        HandiworkOrder.DATE: LatestOrder.DATE,
        HandiworkOrder.LIKES: LatestOrder.LIKES,
        HandiworkOrder.RELEVANCE: LatestOrder.RATING,
        HandiworkOrder.REPLIES: LatestOrder.VIEWS,
        HandiworkOrder.TITLE: LatestOrder.TITLE,
        HandiworkOrder.VIEWS: LatestOrder.VIEWS,
    },
    SearchType.THREAD: {
        HandiworkOrder.DATE: ThreadOrder.DATE,
        HandiworkOrder.LIKES: ThreadOrder.RELEVANCE,
        HandiworkOrder.RELEVANCE: ThreadOrder.RELEVANCE,
        HandiworkOrder.REPLIES: ThreadOrder.REPLIES,
        HandiworkOrder.TITLE: ThreadOrder.RELEVANCE,
        HandiworkOrder.VIEWS: ThreadOrder.VIEWS,
    },
}


def remap_order(order: HandiworkOrder | str, search_type: SearchType) -> LatestOrder | ThreadOrder:
    """Translate a unified order into the backend vocabulary.

    Raises:
        ValueError: If ``order`` is not a unified order value
    """
    return ORDER_REMAP[search_type][HandiworkOrder(order)]


# =============================================================================
# Backend Selection
# =============================================================================


def select_search_type(query: HandiworkSearchQuery) -> SearchType:
    """Select the backend that must serve the query.

    Args:
        query: Unified query

    Returns:
        ``SearchType.THREAD`` if keywords are set or more than five tags are
        included, ``SearchType.LATEST`` otherwise
    """
    if query.keywords or len(query.included_tags) > MAX_LATEST_TAGS:
        return SearchType.THREAD
    return SearchType.LATEST


def find_nearest_date(
    newer_than: Optional[dt.date],
    today: Optional[dt.date] = None,
) -> Optional[int]:
    """Snap a "newer than" date to a date bucket of the latest listing.

    Buckets are scanned from the most restrictive (1 day) to the least
    restrictive (365 days); the first one covering the elapsed calendar days
    is returned. A bucket exactly equal to the elapsed days covers it.

    Args:
        newer_than: Requested lower bound of the update date
        today: Reference day (defaults to the current UTC day)

    Returns:
        Number of days of the bucket, or None ("anytime") if no bucket is
        large enough or no bound was requested

    Example:
        >>> find_nearest_date(dt.date(2021, 3, 1), today=dt.date(2021, 3, 8))
        7
        >>> find_nearest_date(dt.date(2019, 1, 1), today=dt.date(2021, 3, 8)) is None
        True
    """
    if newer_than is None:
        return None

    today = as_date(today or utc_now())
    elapsed = (today - as_date(newer_than)).days

    for bucket in DATE_BUCKETS:
        if bucket >= elapsed:
            return bucket
    return None


# =============================================================================
# Casting
# =============================================================================


def to_latest(
    query: HandiworkSearchQuery,
    tag_ids: Optional[Mapping[str, int]] = None,
    today: Optional[dt.date] = None,
) -> LatestSearchQuery:
    """Convert a unified query into a latest-listing query.

    Args:
        query: Unified query
        tag_ids: Lookup of tag name to platform tag ID. Names missing from
            the lookup are dropped; without a lookup no tag filter is sent.
        today: Reference day for the date bucket

    Returns:
        Fully populated ``LatestSearchQuery``
    """
    tags: list[int] = []
    if tag_ids is not None:
        for name in query.included_tags:
            tag_id = tag_ids.get(name)
            if tag_id is None:
                logger.warning(f"Unknown tag '{name}' ignored in latest search")
                continue
            tags.append(tag_id)
    elif query.included_tags:
        logger.warning("No tag lookup available, tag filter not applied")

    return LatestSearchQuery.model_construct(
        category=query.category,
        tags=tags,
        prefixes=[],
        sort=remap_order(query.order, SearchType.LATEST),
        date=find_nearest_date(query.newer_than, today),
        page=query.page,
    )


def to_thread(query: HandiworkSearchQuery) -> ThreadSearchQuery:
    """Convert a unified query into a thread-search query.

    Title-only search is always enabled.
    """
    return ThreadSearchQuery.model_construct(
        keywords=query.keywords,
        included_tags=list(query.included_tags),
        excluded_tags=list(query.excluded_tags),
        newer_than=query.newer_than,
        older_than=query.older_than,
        only_titles=True,
        order=remap_order(query.order, SearchType.THREAD),
        page=query.page,
    )


def cast(
    query: HandiworkSearchQuery,
    search_type: SearchType,
    tag_ids: Optional[Mapping[str, int]] = None,
) -> LatestSearchQuery | ThreadSearchQuery:
    """Convert a unified query into the requested backend variant."""
    if SearchType(search_type) == SearchType.LATEST:
        return to_latest(query, tag_ids=tag_ids)
    return to_thread(query)
