"""Result values and exceptions for provider dispatch.

Dispatch results follow the convention used by media providers: an
``OpenResult`` carries an optional error message, and the presence of a
message denotes failure. Cancellation is represented by the distinguished
``CANCELLED`` message so callers can tell it apart from a provider-reported
error.

Example:
    >>> res = handler.open()
    >>> if res.is_cancelled:
    ...     return
    >>> if not res.success:
    ...     print(f"Open failed: {res.error}")
"""

from dataclasses import dataclass
from typing import Any, Optional, TYPE_CHECKING

if TYPE_CHECKING:
    from playpath.session.handler import OpenSession


CANCELLED = "Cancelled"
NO_PROVIDER = "No provider found for the provided input"


@dataclass
class OpenResult:
    """Outcome of an open, open-subtitles or open-item dispatch.

    Attributes:
        error: Free-form diagnostic message. None means success.
        payload: Provider-specific success value. Must be None when
            ``error`` is set.
        session: The session produced by a successful top-level open.
    """

    error: Optional[str] = None
    payload: Any = None
    session: Optional["OpenSession"] = None

    def __post_init__(self) -> None:
        if self.error is not None and self.payload is not None:
            raise ValueError("OpenResult cannot carry both an error and a payload")

    @classmethod
    def cancelled(cls) -> "OpenResult":
        return cls(error=CANCELLED)

    @classmethod
    def failed(cls, message: str) -> "OpenResult":
        return cls(error=message)

    @property
    def success(self) -> bool:
        return self.error is None

    @property
    def is_cancelled(self) -> bool:
        return self.error == CANCELLED


class PlaypathError(Exception):
    """Base class for playpath errors."""

    pass


class NoActiveProviderError(PlaypathError):
    """Raised when an item is opened before any provider won an open."""

    def __init__(self, message: str = "No active provider; open() has not succeeded"):
        super().__init__(message)


class DuplicateProviderError(PlaypathError):
    """Raised when two providers register under the same name."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Provider name '{name}' is already registered")


class ProviderLoadError(PlaypathError):
    """A provider factory failed to produce an instance."""

    def __init__(self, name: str, cause: BaseException):
        self.name = name
        self.cause = cause
        super().__init__(f"Failed to load provider '{name}': {cause}")
