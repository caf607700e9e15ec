"""Error hierarchy for mdpaste.

Every public error class inherits from MdPasteError. Each carries a
machine-readable ``code`` (from :class:`ErrorCode`), a human-readable
``message``, an optional structured ``context`` dict, and an optional
``cause`` (chained exception).

The ``message`` is what a host shows to the user: exactly one message per
failed upload.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

# ---------------------------------------------------------------------------
# Error code enum
# ---------------------------------------------------------------------------

class ErrorCode(str, Enum):
    """Machine-readable error codes for every error mdpaste can raise."""

    NO_IMAGE = "NO_IMAGE"
    CLIPBOARD_TOOL_ERROR = "CLIPBOARD_TOOL_ERROR"
    FILE_ERROR = "FILE_ERROR"
    NETWORK_ERROR = "NETWORK_ERROR"
    TIMEOUT = "TIMEOUT"
    HTTP_STATUS = "HTTP_STATUS"
    INVALID_JSON = "INVALID_JSON"
    FIELD_NOT_FOUND = "FIELD_NOT_FOUND"


# ---------------------------------------------------------------------------
# Base error
# ---------------------------------------------------------------------------

class MdPasteError(Exception):
    """Base exception for all mdpaste errors.

    Parameters
    ----------
    code:
        A value from :class:`ErrorCode` (or any string) identifying the
        error category.
    message:
        A user-presentable description of what went wrong.
    context:
        Arbitrary structured data providing extra diagnostic detail.
        Keys are documented per subclass.
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
# Acquisition errors
# ---------------------------------------------------------------------------

class MdPasteNoImageError(MdPasteError):
    """No image is available on the clipboard or in the paste payload.

    Not fatal: the host should let its default paste behaviour proceed.

    Context keys: ``source``.
    """

    def __init__(
        self,
        message: str = "no image available",
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            code=ErrorCode.NO_IMAGE,
            message=message,
            context=context,
            cause=cause,
        )


class MdPasteClipboardToolError(MdPasteError):
    """An external clipboard utility could not be spawned or exited non-zero.

    Raised inside the strategy chain only; the chain recovers by trying the
    next strategy.

    Context keys: ``tool``, ``exit_code``, ``stderr``.
    """

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            code=ErrorCode.CLIPBOARD_TOOL_ERROR,
            message=message,
            context=context,
            cause=cause,
        )


class MdPasteFileError(MdPasteError):
    """A local image file could not be read.

    Context keys: ``path``.
    """

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            code=ErrorCode.FILE_ERROR,
            message=message,
            context=context,
            cause=cause,
        )


# ---------------------------------------------------------------------------
# Transport errors
# ---------------------------------------------------------------------------

class MdPasteNetworkError(MdPasteError):
    """A connection-level failure (refused, DNS, reset).  Never retried.

    Context keys: ``url``.
    """

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            code=ErrorCode.NETWORK_ERROR,
            message=message,
            context=context,
            cause=cause,
        )


class MdPasteTimeoutError(MdPasteError):
    """The upload request did not complete within the configured window.

    Context keys: ``url``, ``timeout_ms``.
    """

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            code=ErrorCode.TIMEOUT,
            message=message,
            context=context,
            cause=cause,
        )


class MdPasteHTTPStatusError(MdPasteError):
    """The image host answered with a non-2xx status.

    Context keys: ``url``, ``status_code``, ``reason``, ``body``
    (truncated).
    """

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            code=ErrorCode.HTTP_STATUS,
            message=message,
            context=context,
            cause=cause,
        )

    @property
    def status_code(self) -> int | None:
        return self.context.get("status_code")


# ---------------------------------------------------------------------------
# Response errors
# ---------------------------------------------------------------------------

class MdPasteInvalidJSONError(MdPasteError):
    """The response body is not valid JSON.

    Context keys: ``preview`` (truncated body).
    """

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            code=ErrorCode.INVALID_JSON,
            message=message,
            context=context,
            cause=cause,
        )


class MdPasteFieldNotFoundError(MdPasteError):
    """Neither configured dot-path resolved to a usable string.

    Context keys: ``markdown_path``, ``url_path``.
    """

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(
            code=ErrorCode.FIELD_NOT_FOUND,
            message=message,
            context=context,
            cause=cause,
        )
