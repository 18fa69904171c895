"""Async HTTP client for the F95Zone platform.

This module provides an async HTTP/2 client with:
- Connection pooling and HTTP/2 multiplexing
- Cookie persistence (the login session lives in the cookie jar)
- HTTPS enforcement on every request
- Typed failures: every method returns a ``Result`` instead of raising

Connection-level retries are delegated to the httpx transport
(``settings.transport_retries``); failed requests are never retried here.

Example:
    >>> from f95api.api import AsyncPlatformClient
    >>>
    >>> async with AsyncPlatformClient() as client:
    ...     result = await client.fetch_html("https://f95zone.to/threads/1/")
    ...     if result.is_success():
    ...         print(len(result.value))
"""

from typing import Any

import httpx

from f95api.config import settings
from f95api.errors import NetworkError, UnexpectedContentType
from f95api.logging import logger
from f95api.result import Failure, Result, Success
from f95api.utils import enforce_https_url

HTML_CONTENT_TYPE = "text/html"
JSON_CONTENT_TYPE = "application/json"


class AsyncPlatformClient:
    """Async HTTP/2 client for the platform pages and form endpoints.

    Args:
        transport: Custom httpx transport (tests use ``httpx.MockTransport``)
        timeout: Custom httpx timeout configuration
        pool_limits: Custom httpx connection pool limits

    Example:
        >>> async with AsyncPlatformClient() as client:
        ...     html = await client.fetch_html(settings.base_url)
    """

    def __init__(
        self,
        transport: httpx.AsyncBaseTransport | None = None,
        timeout: httpx.Timeout | None = None,
        pool_limits: httpx.Limits | None = None,
    ) -> None:
        self._limits = pool_limits or httpx.Limits(
            max_connections=100,
            max_keepalive_connections=20,
            keepalive_expiry=30.0,
        )
        self._timeout = timeout or httpx.Timeout(
            timeout=settings.request_timeout,
            connect=settings.connect_timeout,
        )
        self._transport = transport or httpx.AsyncHTTPTransport(
            http2=True,
            retries=settings.transport_retries,
            limits=self._limits,
        )

        # Created on first use
        self._client: httpx.AsyncClient | None = None

    async def _ensure_client(self) -> httpx.AsyncClient:
        """Lazy initialization of the HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                transport=self._transport,
                timeout=self._timeout,
                follow_redirects=True,
                headers={
                    "User-Agent": settings.user_agent,
                    "Connection": "keep-alive",
                },
            )
        return self._client

    async def __aenter__(self) -> "AsyncPlatformClient":
        await self._ensure_client()
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()

    async def close(self) -> None:
        """Close all connections and cleanup resources."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    @property
    def cookies(self) -> httpx.Cookies:
        """Cookie jar shared by every request of this client."""
        if self._client is None:
            return httpx.Cookies()
        return self._client.cookies

    # -------------------------------------------------------------------------
    # Raw requests
    # -------------------------------------------------------------------------

    async def _send(
        self,
        method: str,
        url: str,
        data: dict[str, str] | None = None,
    ) -> Result[NetworkError, httpx.Response]:
        """Send a request and classify transport and HTTP failures.

        Args:
            method: HTTP method
            url: Target URL (scheme is forced to HTTPS)
            data: Form fields for POST requests

        Returns:
            The response, or ``NetworkError`` for transport errors, timeouts
            and HTTP status >= 400
        """
        secure_url = enforce_https_url(url)
        client = await self._ensure_client()

        try:
            resp = await client.request(method, secure_url, data=data)
            resp.raise_for_status()
        except httpx.HTTPStatusError as exc:
            status = exc.response.status_code
            logger.error(f"HTTP {status} while fetching {secure_url}")
            return Failure(
                NetworkError(
                    f"HTTP {status} while fetching {secure_url}",
                    url=secure_url,
                    status_code=status,
                )
            )
        except httpx.HTTPError as exc:
            logger.error(f"Error {exc!r} occurred while trying to fetch {secure_url}")
            return Failure(
                NetworkError(
                    f"Error {exc!r} occurred while trying to fetch {secure_url}",
                    url=secure_url,
                )
            )

        return Success(resp)

    async def fetch_get_response(self, url: str) -> Result[NetworkError, httpx.Response]:
        """Perform a GET request and return the response."""
        logger.trace(f"GET {url}")
        return await self._send("GET", url)

    async def fetch_post_response(
        self,
        url: str,
        data: dict[str, str],
    ) -> Result[NetworkError, httpx.Response]:
        """Perform a form POST request and return the response."""
        logger.trace(f"POST {url}")
        return await self._send("POST", url, data=data)

    # -------------------------------------------------------------------------
    # Typed fetchers
    # -------------------------------------------------------------------------

    async def fetch_html(
        self,
        url: str,
    ) -> Result[NetworkError | UnexpectedContentType, str]:
        """Fetch the HTML source of a page.

        Returns:
            Page source, ``NetworkError`` or ``UnexpectedContentType`` if the
            platform did not answer with HTML
        """
        response = await self.fetch_get_response(url)
        if response.is_failure():
            return response

        content_type = response.value.headers.get("content-type", "")
        if HTML_CONTENT_TYPE not in content_type:
            logger.warning(f"Expected HTML from {url} but received '{content_type}'")
            return Failure(UnexpectedContentType("HTML", content_type, url=url))

        return Success(response.value.text)

    async def fetch_json(
        self,
        url: str,
    ) -> Result[NetworkError | UnexpectedContentType, Any]:
        """Fetch and decode a JSON document."""
        response = await self.fetch_get_response(url)
        if response.is_failure():
            return response

        content_type = response.value.headers.get("content-type", "")
        if JSON_CONTENT_TYPE not in content_type:
            logger.warning(f"Expected JSON from {url} but received '{content_type}'")
            return Failure(UnexpectedContentType("JSON", content_type, url=url))

        try:
            return Success(response.value.json())
        except ValueError:
            return Failure(UnexpectedContentType("JSON", "malformed JSON body", url=url))


__all__ = ["AsyncPlatformClient", "HTML_CONTENT_TYPE", "JSON_CONTENT_TYPE"]
