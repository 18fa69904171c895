"""Authenticated session state.

A ``Session`` holds the anti-CSRF token and the login state of one platform
account. It is created once per process and passed explicitly to whatever
needs it; the retrieval pipeline only reads it (``ISessionProvider``).

Every operation that mutates the session (login, logout, token refresh)
runs behind a single-slot gate, so two logins or refreshes can never race.

Example:
    >>> session = Session()
    >>> async with AsyncPlatformClient() as client:
    ...     result = await session.login(client, "user", "password")
    ...     print(result.is_success(), session.is_logged)
"""

import asyncio
from typing import Optional

from loguru import logger
from pydantic import BaseModel

from f95api.config import settings
from f95api.errors import F95Error, NotAuthenticated, ParseFailure
from f95api.interfaces import IHTMLFetcher
from f95api.result import Failure, Result, Success
from f95api.scrape import extract_login_error, extract_token


class LoginResult(BaseModel):
    """Outcome of a successful login."""

    username: str
    message: str = "Authentication successful"


class Session:
    """Process-wide authentication state behind a single-slot gate.

    Args:
        token: Pre-existing session token (e.g. restored by the caller)
        username: Account the token belongs to
    """

    def __init__(self, token: Optional[str] = None, username: Optional[str] = None) -> None:
        self._token = token
        self._username = username
        self._is_logged = token is not None and username is not None
        self._gate = asyncio.Lock()

    def __repr__(self) -> str:
        return f"Session(username={self._username!r}, is_logged={self._is_logged})"

    @property
    def token(self) -> Optional[str]:
        return self._token

    @property
    def username(self) -> Optional[str]:
        return self._username

    @property
    def is_logged(self) -> bool:
        return self._is_logged

    @property
    def busy(self) -> bool:
        """True while a mutating operation holds the gate."""
        return self._gate.locked()

    async def _fetch_token(self, client: IHTMLFetcher) -> Result[F95Error, str]:
        page = await client.fetch_html(settings.login_url)
        if page.is_failure():
            return page

        token = extract_token(page.value)
        if not token:
            return Failure(ParseFailure("Login page has no session token"))
        return Success(token)

    async def login(
        self,
        client: IHTMLFetcher,
        username: str,
        password: str,
        force: bool = False,
    ) -> Result[F95Error, LoginResult]:
        """Authenticate to the platform.

        Args:
            client: Network access (its cookie jar keeps the session)
            username: Account name
            password: Account password
            force: Log in again even if this session is already logged

        Returns:
            ``LoginResult`` or the failure of the handshake; rejected
            credentials fail with ``NotAuthenticated``
        """
        async with self._gate:
            if self._is_logged and self._username == username and not force:
                logger.debug(f"Already logged in as {username}")
                return Success(LoginResult(username=username, message="Already logged in"))

            logger.info(f"Authenticating with user {username}")

            token = await self._fetch_token(client)
            if token.is_failure():
                return token

            params = {
                "login": username,
                "url": "",
                "password": password,
                "password_confirm": "",
                "additional_security": "",
                "remember": "1",
                "_xfRedirect": f"{settings.base_url}/",
                "website_code": "",
                "_xfToken": token.value,
            }
            response = await client.fetch_post_response(settings.login_url, params)
            if response.is_failure():
                return response

            error_message = extract_login_error(response.value.text).strip()
            if error_message:
                logger.warning(f"Login rejected for {username}: {error_message}")
                self._is_logged = False
                return Failure(NotAuthenticated(error_message))

            # The token is bound to the session cookie and changes on login
            self._token = extract_token(response.value.text) or token.value
            self._username = username
            self._is_logged = True
            logger.info(f"Logged in as {username}")
            return Success(LoginResult(username=username))

    async def refresh_token(self, client: IHTMLFetcher) -> Result[F95Error, str]:
        """Fetch a fresh session token for the current login."""
        async with self._gate:
            if not self._is_logged:
                return Failure(NotAuthenticated("Cannot refresh the token of a logged-out session"))

            token = await self._fetch_token(client)
            if token.is_success():
                self._token = token.value
            return token

    async def logout(self, client: IHTMLFetcher) -> Result[F95Error, None]:
        """Terminate the platform session and forget the token."""
        async with self._gate:
            if not self._is_logged:
                return Success(None)

            response = await client.fetch_post_response(
                settings.logout_url,
                {"_xfToken": self._token or ""},
            )
            if response.is_failure():
                return response

            logger.info(f"Logged out {self._username}")
            self._token = None
            self._username = None
            self._is_logged = False
            return Success(None)
