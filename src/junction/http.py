"""HTTP methods and status code helpers."""

from __future__ import annotations

from enum import Enum, IntEnum
from http import HTTPStatus as _HTTPStatus

from .exceptions import UnsupportedMethod


class HttpMethod(str, Enum):
    """Methods a route can be registered for."""

    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    DELETE = "DELETE"

    def __str__(self) -> str:  # pragma: no cover - trivial
        return self.value

    @classmethod
    def parse(cls, value: "HttpMethod | str") -> "HttpMethod":
        """Coerce ``value`` into a member, accepting case-insensitive strings."""

        if isinstance(value, HttpMethod):
            return value
        try:
            return cls(value.upper())
        except (AttributeError, ValueError):
            raise UnsupportedMethod(value) from None


class Status(IntEnum):
    """Enumeration of the HTTP status codes emitted by the router."""

    OK = 200
    NO_CONTENT = 204
    BAD_REQUEST = 400
    UNAUTHORIZED = 401
    FORBIDDEN = 403
    NOT_FOUND = 404
    METHOD_NOT_ALLOWED = 405
    INTERNAL_SERVER_ERROR = 500


def ensure_status(status: int | Status) -> int:
    """Normalize ``status`` to an ``int`` and ensure it is within the HTTP range."""

    code = int(status)
    if code < 100 or code > 599:
        raise ValueError(f"Invalid HTTP status code: {status}")
    return code


def reason_phrase(status: int | Status) -> str:
    """Return the HTTP reason phrase for ``status`` if known."""

    try:
        code = ensure_status(status)
    except ValueError:
        return "Unknown Status"
    try:
        return _HTTPStatus(code).phrase
    except ValueError:  # pragma: no cover - non-standard status codes
        return "Unknown Status"


__all__ = ["HttpMethod", "Status", "ensure_status", "reason_phrase"]
