"""Thread and post retrieval pipeline.

One ``ThreadPipeline.fetch`` call materializes one ``Thread``:

    INIT ──► METADATA_FETCHED ──► PAGINATION_CONFIGURED ──► PAGES_FETCHED ──► ASSEMBLED
      │              │                      │                      │
      └──────────────┴──────────────────────┴──────────────────────┴────► FAILED

1. Fetch the first page: title, tags, prefixes, owner, creation date, number
   of pages and the JSON-LD block (rating).
2. Ask the platform to render 100 posts per page (needs a logged session).
3. Fetch every page concurrently; no cap and no cancellation, all requests
   settle before a decision is taken.
4. Scan the page results in request order (first failure wins), merge the
   posts and sort them by post ID.

Failures are forwarded unchanged as ``Failure`` values; a thread is never
returned partially. ``fetch_thread`` is the caller boundary that raises.
"""

import asyncio
from collections.abc import Sequence
from enum import StrEnum
from typing import Mapping, Optional

from loguru import logger
from tqdm.asyncio import tqdm  # type: ignore[import-untyped]

from f95api.config import settings
from f95api.errors import F95Error, InvalidID, NotAuthenticated
from f95api.interfaces import IContentParser, IHTMLFetcher, ISessionProvider
from f95api.models import PlatformUser, Post, Thread, UserRef
from f95api.post_parse import ContentTreeParser
from f95api.queries import SearchQuery
from f95api.result import Failure, Result, Success
from f95api.scrape import extract_rating, find_post, parse_member, parse_posts_in_page, parse_thread_metadata
from f95api.search import fetch_result_urls
from f95api.utils import extract_id_from_url


class FetchState(StrEnum):
    """States of a single thread retrieval."""

    INIT = "init"
    METADATA_FETCHED = "metadata_fetched"
    PAGINATION_CONFIGURED = "pagination_configured"
    PAGES_FETCHED = "pages_fetched"
    ASSEMBLED = "assembled"
    FAILED = "failed"


# =============================================================================
# Assembly Helpers
# =============================================================================


def first_failure(results: Sequence[Result]) -> Optional[Failure]:
    """Return the failure with the lowest index, if any."""
    for result in results:
        if result.is_failure():
            return result
    return None


def assemble_posts(pages: Sequence[Sequence[Post]]) -> list[Post]:
    """Merge the posts of every page into one list sorted by post ID.

    Pages complete in any order, so the sort is what defines the final
    order. A post seen twice (an out-of-range page is redirected to the last
    one) is kept once.
    """
    seen: set[int] = set()
    posts: list[Post] = []
    for page in pages:
        for post in page:
            if post.id in seen:
                continue
            seen.add(post.id)
            posts.append(post)
    return sorted(posts, key=lambda post: post.id)


def page_url(thread_url: str, page: int) -> str:
    return f"{thread_url.rstrip('/')}/page-{page}"


# =============================================================================
# Pipeline
# =============================================================================


class ThreadPipeline:
    """Retrieves complete threads from the platform.

    Args:
        client: Network access
        session: Authenticated session (only read)
        content_parser: Post body parser (defaults to ``ContentTreeParser``)

    Example:
        >>> session = Session()
        >>> async with AsyncPlatformClient() as client:
        ...     await session.login(client, "user", "password")
        ...     pipeline = ThreadPipeline(client, session)
        ...     thread = await pipeline.fetch_thread(12345)
        ...     print(thread.title, len(thread.posts))
    """

    def __init__(
        self,
        client: IHTMLFetcher,
        session: ISessionProvider,
        content_parser: Optional[IContentParser] = None,
    ) -> None:
        self.client = client
        self.session = session
        self.content_parser = content_parser or ContentTreeParser()

    @staticmethod
    def _transition(thread_id: int, state: FetchState) -> None:
        logger.debug(f"Thread {thread_id}: {state}")

    def _fail(self, thread_id: int, error: F95Error) -> Failure:
        logger.error(f"Thread {thread_id}: {FetchState.FAILED} ({type(error).__name__}: {error})")
        return Failure(error)

    async def set_posts_per_page(
        self,
        thread_id: int,
        posts: int = 100,
    ) -> Result[F95Error, None]:
        """Ask the platform to render ``posts`` posts per page of a thread.

        Requires a logged session with a token; the preference is stored
        server-side for the account.
        """
        if not self.session.is_logged or not self.session.token:
            return Failure(NotAuthenticated("Setting the posts per page requires a logged session"))

        params = {
            "_xfResponseType": "json",
            "_xfRequestUri": f"/account/dpp-update?content_type=thread&content_id={thread_id}",
            "_xfToken": self.session.token,
            "_xfWithData": "1",
            "content_id": str(thread_id),
            "content_type": "thread",
            "dpp_custom_config[posts]": str(posts),
        }
        response = await self.client.fetch_post_response(settings.posts_number_url, params)
        if response.is_failure():
            return response
        return Success(None)

    async def fetch_posts(self, thread_url: str, pages: int) -> Result[F95Error, list[Post]]:
        """Fetch and parse pages ``1..pages`` concurrently.

        Returns:
            Posts sorted by ID, or the failure of the lowest-indexed page
        """
        responses = await asyncio.gather(
            *(self.client.fetch_html(page_url(thread_url, page)) for page in range(1, pages + 1))
        )

        parsed: list[Result[F95Error, list[Post]]] = [
            response if response.is_failure() else parse_posts_in_page(response.value, self.content_parser)
            for response in responses
        ]

        failure = first_failure(parsed)
        if failure is not None:
            return failure

        return Success(assemble_posts([result.value for result in parsed]))

    async def fetch(self, thread_id: int) -> Result[F95Error, Thread]:
        """Retrieve a complete thread.

        Args:
            thread_id: Unique thread ID (positive)

        Returns:
            The fully assembled thread, or the first classified failure
        """
        if isinstance(thread_id, bool) or not isinstance(thread_id, int) or thread_id < 1:
            return Failure(InvalidID(f"Invalid thread ID: {thread_id!r}"))

        with logger.contextualize(thread_id=thread_id):
            self._transition(thread_id, FetchState.INIT)
            url = settings.thread_url(thread_id)

            html = await self.client.fetch_html(url)
            if html.is_failure():
                return self._fail(thread_id, html.error)

            metadata = parse_thread_metadata(html.value)
            if metadata.is_failure():
                return self._fail(thread_id, metadata.error)

            rating = extract_rating(metadata.value.json_ld)
            if rating.is_failure():
                return self._fail(thread_id, rating.error)
            self._transition(thread_id, FetchState.METADATA_FETCHED)

            configured = await self.set_posts_per_page(thread_id, settings.posts_per_page)
            if configured.is_failure():
                return self._fail(thread_id, configured.error)
            self._transition(thread_id, FetchState.PAGINATION_CONFIGURED)

            posts = await self.fetch_posts(url, metadata.value.pages)
            if posts.is_failure():
                return self._fail(thread_id, posts.error)
            self._transition(thread_id, FetchState.PAGES_FETCHED)

            thread = Thread(
                id=thread_id,
                url=url,
                title=metadata.value.title,
                tags=tuple(metadata.value.tags),
                prefixes=tuple(metadata.value.prefixes),
                owner=UserRef(id=metadata.value.owner_id),
                creation=metadata.value.creation,
                rating=rating.value,
                posts=tuple(posts.value),
            )
            self._transition(thread_id, FetchState.ASSEMBLED)
            logger.info(f"Fetched thread {thread_id} ({len(thread.posts)} posts)")
            return Success(thread)

    async def fetch_thread(self, thread_id: int) -> Thread:
        """Caller-facing variant of ``fetch`` that raises on failure.

        Raises:
            F95Error: The classified failure of the retrieval
        """
        return (await self.fetch(thread_id)).unwrap()

    async def collect(
        self,
        query: SearchQuery,
        limit: Optional[int] = None,
        tag_ids: Optional[Mapping[str, int]] = None,
    ) -> Result[F95Error, list[Thread]]:
        """Search, then materialize every resulting thread.

        Threads are fetched one after the other; a thread that cannot be
        retrieved is logged and skipped. A failed search fails the call.
        """
        urls = await fetch_result_urls(self.client, query, limit, tag_ids)
        if urls.is_failure():
            return urls

        threads: list[Thread] = []
        for url in tqdm(urls.value, desc="Fetching threads", unit=" threads"):
            thread_id = extract_id_from_url(url)
            if thread_id is None:
                logger.warning(f"No thread ID in {url}, skipped")
                continue

            result = await self.fetch(thread_id)
            if result.is_failure():
                logger.warning(f"Skipping thread {thread_id}: {result.error}")
                continue
            threads.append(result.value)

        return Success(threads)


async def resolve_user(
    client: IHTMLFetcher,
    user: UserRef | int,
) -> Result[F95Error, PlatformUser]:
    """Resolve a weak user reference into the user profile."""
    user_id = user.id if isinstance(user, UserRef) else user
    if isinstance(user_id, bool) or not isinstance(user_id, int) or user_id < 1:
        return Failure(InvalidID(f"Invalid user ID: {user_id!r}"))

    html = await client.fetch_html(f"{settings.members_url}{user_id}/")
    if html.is_failure():
        return html
    return parse_member(html.value, user_id)


async def fetch_post(
    client: IHTMLFetcher,
    session: ISessionProvider,
    post_id: int,
    content_parser: Optional[IContentParser] = None,
) -> Result[F95Error, Post]:
    """Retrieve a single post from its platform-wide ID.

    Post permalinks are only served to logged users.
    """
    if not session.is_logged:
        return Failure(NotAuthenticated("Fetching a post requires a logged session"))
    if isinstance(post_id, bool) or not isinstance(post_id, int) or post_id < 1:
        return Failure(InvalidID(f"Invalid post ID: {post_id!r}"))

    html = await client.fetch_html(f"{settings.posts_url}{post_id}/")
    if html.is_failure():
        return html
    return find_post(html.value, post_id, content_parser or ContentTreeParser())
