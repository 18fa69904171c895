"""Error taxonomy for F95API.

Errors are classified once, where they originate, and then forwarded
unchanged inside ``Failure`` values. They are regular exceptions so that
the outermost caller boundary can raise them with ``Result.unwrap()``.

Hierarchy:
    F95Error
    ├── NetworkError            transport, timeout or HTTP >= 400
    ├── UnexpectedContentType   response body is not the expected type
    ├── InvalidQuery            search query fails validation
    ├── InvalidID               non-positive or missing identifier
    ├── NotAuthenticated        operation needs a logged-in session
    └── ParseFailure            expected structured data absent or malformed
"""

from typing import Optional


class F95Error(Exception):
    """Base class of every classified failure."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def __eq__(self, other: object) -> bool:
        return type(self) is type(other) and self.__dict__ == other.__dict__

    def __hash__(self) -> int:
        return hash((type(self), self.message))


class NetworkError(F95Error):
    """Transport failure, timeout, or an HTTP error status."""

    def __init__(
        self,
        message: str,
        url: Optional[str] = None,
        status_code: Optional[int] = None,
    ) -> None:
        super().__init__(message)
        self.url = url
        self.status_code = status_code


class UnexpectedContentType(F95Error):
    """The platform answered with a content type other than the one required."""

    def __init__(self, expected: str, received: str, url: Optional[str] = None) -> None:
        super().__init__(f"Expected {expected} but received {received or 'nothing'}")
        self.expected = expected
        self.received = received
        self.url = url


class InvalidQuery(F95Error):
    """A search query violates one or more field constraints.

    Attributes:
        violations: Mapping of field name to constraint message
    """

    def __init__(self, violations: dict[str, str]) -> None:
        details = "; ".join(f"{field}: {msg}" for field, msg in violations.items())
        super().__init__(f"Invalid query: {details}")
        self.violations = violations


class InvalidID(F95Error):
    """Identifier is missing or not a positive integer."""


class NotAuthenticated(F95Error):
    """Operation requires a logged-in session with a valid token."""


class ParseFailure(F95Error):
    """Structured data expected on a page is missing or malformed."""


__all__ = [
    "F95Error",
    "NetworkError",
    "UnexpectedContentType",
    "InvalidQuery",
    "InvalidID",
    "NotAuthenticated",
    "ParseFailure",
]
