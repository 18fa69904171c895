"""Search execution.

Turns a resolved query into a bounded list of absolute thread URLs:

- ``LatestSearchQuery``: the listing endpoint answers JSON with thread IDs
- ``ThreadSearchQuery``: the forum search answers an HTML result page
- ``HandiworkSearchQuery``: resolved first, then executed as above

A failed request fails the whole search (no partial results); an empty
result set is a valid ``Success([])``.

Example:
    >>> query = HandiworkSearchQuery(keywords="sandbox")
    >>> async with AsyncPlatformClient() as client:
    ...     urls = (await fetch_result_urls(client, query, limit=10)).unwrap()
"""

from typing import Mapping, Optional

from loguru import logger

from f95api.config import settings
from f95api.errors import F95Error, InvalidQuery
from f95api.interfaces import IHTMLFetcher
from f95api.queries import HandiworkSearchQuery, LatestSearchQuery, SearchQuery, ThreadSearchQuery
from f95api.resolver import cast, select_search_type
from f95api.result import Failure, Result, Success
from f95api.scrape import parse_latest_results, parse_search_results


async def fetch_latest_urls(
    client: IHTMLFetcher,
    query: LatestSearchQuery,
    limit: int,
) -> Result[F95Error, list[str]]:
    """Run a latest-listing query and return the thread URLs."""
    url = query.create_url()
    if url.is_failure():
        return url

    logger.debug(f"Fetching {url.value}...")
    payload = await client.fetch_json(url.value)
    if payload.is_failure():
        return payload

    thread_ids = parse_latest_results(payload.value, limit)
    if thread_ids.is_failure():
        return thread_ids

    return Success([settings.thread_url(thread_id) for thread_id in thread_ids.value])


async def fetch_thread_urls(
    client: IHTMLFetcher,
    query: ThreadSearchQuery,
    limit: int,
) -> Result[F95Error, list[str]]:
    """Run a thread-search query and return the thread URLs."""
    url = query.create_url()
    if url.is_failure():
        return url

    logger.debug(f"Fetching {url.value}...")
    html = await client.fetch_html(url.value)
    if html.is_failure():
        return html

    return Success(parse_search_results(html.value, limit))


async def fetch_result_urls(
    client: IHTMLFetcher,
    query: SearchQuery,
    limit: Optional[int] = None,
    tag_ids: Optional[Mapping[str, int]] = None,
) -> Result[F95Error, list[str]]:
    """Execute a search and return at most ``limit`` thread URLs.

    Args:
        client: Network access
        query: Any query variant; unified queries are resolved first
        limit: Maximum number of URLs (defaults to ``settings.search_limit``)
        tag_ids: Tag name to ID lookup used when a unified query is cast to
            the latest listing

    Returns:
        Absolute HTTPS URLs in result order
    """
    limit = settings.search_limit if limit is None else limit
    if limit < 1:
        return Failure(InvalidQuery({"limit": f"must be at least 1, received {limit}"}))

    if isinstance(query, HandiworkSearchQuery):
        violations = query.validation_errors()
        if violations:
            return Failure(InvalidQuery(violations))

        search_type = select_search_type(query)
        logger.info(f"Resolved handiwork query to the {search_type} backend")
        query = cast(query, search_type, tag_ids=tag_ids)

    if isinstance(query, LatestSearchQuery):
        urls = await fetch_latest_urls(client, query, limit)
    elif isinstance(query, ThreadSearchQuery):
        urls = await fetch_thread_urls(client, query, limit)
    else:
        return Failure(InvalidQuery({"query": f"unsupported query type {type(query).__name__}"}))

    if urls.is_success():
        logger.info(f"Search returned {len(urls.value)} result(s)")
    return urls


async def fetch_handiwork_urls(
    client: IHTMLFetcher,
    query: SearchQuery,
    limit: Optional[int] = None,
    tag_ids: Optional[Mapping[str, int]] = None,
) -> list[str]:
    """Caller-facing variant of ``fetch_result_urls`` that raises on failure.

    Raises:
        F95Error: The classified failure of the search
    """
    return (await fetch_result_urls(client, query, limit, tag_ids)).unwrap()
