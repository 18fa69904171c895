"""Protocol interfaces of the retrieval pipeline collaborators.

The pipeline depends on these structural interfaces rather than on concrete
classes, so tests can drive it with in-memory fakes:

- ``IHTMLFetcher``: network access returning ``Result`` values
- ``ISessionProvider``: read-only view of the authenticated session
- ``IContentParser``: converts a post body fragment into typed elements

Example:
    >>> from f95api.interfaces import ISessionProvider
    >>> class FakeSession:
    ...     token = "abc"
    ...     is_logged = True
    >>> isinstance(FakeSession(), ISessionProvider)
    True
"""

from typing import Any, Protocol, runtime_checkable

import httpx
from bs4 import Tag

from f95api.errors import NetworkError, UnexpectedContentType
from f95api.models import PostElement
from f95api.result import Result


@runtime_checkable
class IHTMLFetcher(Protocol):
    """Network access used by search and retrieval.

    Implementations never raise for network problems; they return
    ``Failure(NetworkError)`` or ``Failure(UnexpectedContentType)``.
    """

    async def fetch_html(
        self,
        url: str,
    ) -> Result[NetworkError | UnexpectedContentType, str]:
        """Fetch the HTML source of a page."""
        ...

    async def fetch_json(
        self,
        url: str,
    ) -> Result[NetworkError | UnexpectedContentType, Any]:
        """Fetch and decode a JSON document."""
        ...

    async def fetch_post_response(
        self,
        url: str,
        data: dict[str, str],
    ) -> Result[NetworkError, httpx.Response]:
        """Submit a form and return the raw response."""
        ...


@runtime_checkable
class ISessionProvider(Protocol):
    """Read-only view of the process-wide authenticated session."""

    @property
    def token(self) -> str | None:
        """Current anti-CSRF session token, if any."""
        ...

    @property
    def is_logged(self) -> bool:
        """Whether a user is logged in."""
        ...


@runtime_checkable
class IContentParser(Protocol):
    """Converts a post body fragment into a sequence of typed elements."""

    def parse(self, fragment: Tag | str) -> list[PostElement]:
        ...


__all__ = ["IHTMLFetcher", "ISessionProvider", "IContentParser"]
