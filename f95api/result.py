"""Discriminated success/failure container.

Every fallible operation in the retrieval pipeline returns a ``Result``
instead of raising. Callers inspect it with ``is_success()`` /
``is_failure()`` and either continue with ``.value`` or forward the
failure unchanged. Only the outermost caller boundary calls ``unwrap()``,
which raises the contained error.

Example:
    >>> from f95api.result import Failure, Success
    >>> ok = Success(42)
    >>> ok.is_success(), ok.value
    (True, 42)
    >>> err = Failure(ValueError("boom"))
    >>> err.is_failure()
    True
"""

from dataclasses import dataclass
from typing import Generic, NoReturn, TypeVar, Union

# =============================================================================
# Type Variables
# =============================================================================

T = TypeVar("T")
E = TypeVar("E", bound=Exception)


# =============================================================================
# Variants
# =============================================================================


@dataclass(frozen=True, slots=True)
class Success(Generic[T]):
    """Successful outcome carrying a value."""

    value: T

    def is_success(self) -> bool:
        return True

    def is_failure(self) -> bool:
        return False

    def unwrap(self) -> T:
        """Return the wrapped value."""
        return self.value


@dataclass(frozen=True, slots=True)
class Failure(Generic[E]):
    """Failed outcome carrying a classified error."""

    error: E

    def is_success(self) -> bool:
        return False

    def is_failure(self) -> bool:
        return True

    @property
    def value(self) -> E:
        """Alias of ``error`` so both variants expose ``.value``."""
        return self.error

    def unwrap(self) -> NoReturn:
        """Raise the wrapped error.

        Raises:
            E: Always; the classified error held by this failure.
        """
        raise self.error


Result = Union[Failure[E], Success[T]]
"""``Result[E, T]``: either ``Failure(E)`` or ``Success(T)``, never both."""


__all__ = ["Success", "Failure", "Result"]
