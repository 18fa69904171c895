"""F95API - Search and retrieval of F95Zone forum content.

This package resolves loosely specified searches into the platform's query
shapes, executes them, and reassembles complete threads from concurrently
fetched pages. Fallible operations return ``Result`` values.

Example:
    >>> from f95api import AsyncPlatformClient, HandiworkSearchQuery, Session, ThreadPipeline
    >>> import asyncio
    >>>
    >>> async def main():
    ...     session = Session()
    ...     async with AsyncPlatformClient() as client:
    ...         await session.login(client, "user", "password")
    ...         urls = await fetch_handiwork_urls(client, HandiworkSearchQuery(keywords="sandbox"))
    ...         thread = await ThreadPipeline(client, session).fetch_thread(12345)
    >>>
    >>> asyncio.run(main())
"""

from f95api.api import AsyncPlatformClient
from f95api.config import settings
from f95api.errors import (
    F95Error,
    InvalidID,
    InvalidQuery,
    NetworkError,
    NotAuthenticated,
    ParseFailure,
    UnexpectedContentType,
)
from f95api.models import ElementType, PlatformUser, Post, PostElement, Rating, Thread, UserRef
from f95api.pipeline import FetchState, ThreadPipeline, fetch_post, resolve_user
from f95api.queries import (
    Category,
    HandiworkOrder,
    HandiworkSearchQuery,
    LatestOrder,
    LatestSearchQuery,
    ThreadOrder,
    ThreadSearchQuery,
)
from f95api.resolver import SearchType
from f95api.result import Failure, Result, Success
from f95api.search import fetch_handiwork_urls, fetch_result_urls
from f95api.session import Session

__version__ = "0.1.0"

__all__ = [
    # Main components
    "AsyncPlatformClient",
    "Session",
    "ThreadPipeline",
    "FetchState",
    "fetch_result_urls",
    "fetch_handiwork_urls",
    "fetch_post",
    "resolve_user",
    # Configuration
    "settings",
    # Queries
    "SearchType",
    "Category",
    "HandiworkOrder",
    "LatestOrder",
    "ThreadOrder",
    "HandiworkSearchQuery",
    "LatestSearchQuery",
    "ThreadSearchQuery",
    # Models
    "Thread",
    "Post",
    "PostElement",
    "ElementType",
    "Rating",
    "UserRef",
    "PlatformUser",
    # Results and errors
    "Result",
    "Success",
    "Failure",
    "F95Error",
    "NetworkError",
    "UnexpectedContentType",
    "InvalidQuery",
    "InvalidID",
    "NotAuthenticated",
    "ParseFailure",
]
