"""Error hierarchy for markloom.

Every public error class inherits from MarkloomError. Each carries a
machine-readable ``code`` (from :class:`ErrorCode`), a human-readable
``message``, an optional structured ``context`` dict, and an optional
``cause`` (chained exception).

Malformed trees are never an error: the normalizer repairs them and the
serializer degrades gracefully.  The errors below signal *programming*
mistakes, such as attaching a node where the schema forbids it or calling
a command with arguments it cannot honour.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

# ---------------------------------------------------------------------------
# Error code enum
# ---------------------------------------------------------------------------

class ErrorCode(str, Enum):
    """Machine-readable error codes for every error markloom can raise."""

    SCHEMA_VIOLATION = "SCHEMA_VIOLATION"
    INVALID_COMMAND = "INVALID_COMMAND"


# ---------------------------------------------------------------------------
# Base error
# ---------------------------------------------------------------------------

class MarkloomError(Exception):
    """Base exception for all markloom errors.

    Parameters
    ----------
    code:
        A value from :class:`ErrorCode` (or any string) identifying the
        error category.
    message:
        A developer-friendly description of what went wrong.
    context:
        Arbitrary structured data providing extra diagnostic detail.
    cause:
        The underlying exception, if this error wraps another.
    """

    def __init__(
        self,
        code: str,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        self.code: str = code
        self.message: str = message
        self.context: dict[str, Any] = context or {}
        self.cause: Exception | None = cause
        super().__init__(message)
        if cause is not None:
            self.__cause__ = cause

    def __repr__(self) -> str:
        ctx = f", context={self.context!r}" if self.context else ""
        return f"{type(self).__name__}(code={self.code!r}, message={self.message!r}{ctx})"


# ---------------------------------------------------------------------------
# Document model errors
# ---------------------------------------------------------------------------

class MarkloomSchemaError(MarkloomError):
    """A node was attached where the allowed-children table forbids it.

    Context keys: ``parent_kind``, ``child_kind``, and for heading levels
    ``level``.
    """

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            code=ErrorCode.SCHEMA_VIOLATION,
            message=message,
            context=context,
            cause=cause,
        )


# ---------------------------------------------------------------------------
# Editing errors
# ---------------------------------------------------------------------------

class MarkloomCommandError(MarkloomError):
    """An edit command was invoked with arguments it cannot honour.

    Context keys: ``command`` plus the offending argument
    (e.g. ``format``, ``rows``, ``cols``, ``node_id``).
    """

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            code=ErrorCode.INVALID_COMMAND,
            message=message,
            context=context,
            cause=cause,
        )
