"""Framework exception types."""

from __future__ import annotations

from typing import Any

from .serialization import json_encode


class JunctionError(Exception):
    """Base error type."""


class HTTPError(JunctionError):
    """Structured HTTP error that is msgspec serializable."""

    def __init__(self, status: int, detail: Any) -> None:
        from .http import ensure_status, reason_phrase

        status_code = ensure_status(status)
        super().__init__(status_code, detail)
        self.status = status_code
        self.detail = detail
        self.reason = reason_phrase(status_code)

    def to_response_body(self) -> bytes:
        return json_encode({"error": {"status": self.status, "reason": self.reason, "detail": self.detail}})


class PatternError(JunctionError, ValueError):
    """Raised when a path pattern cannot be compiled."""


class UnsupportedMethod(JunctionError, ValueError):
    """Raised for HTTP methods the router does not register."""

    def __init__(self, method: object) -> None:
        super().__init__(f"Unsupported HTTP method: {method!r}")
        self.method = method


class ConfigError(JunctionError, ValueError):
    """Raised when router configuration fails validation."""


class NoRouteMatch(JunctionError, LookupError):
    """No registered route accepts the request."""

    NO_PATH_INFO = "no_path_info"
    NO_ROUTE_MATCH = "no_route_match"

    def __init__(self, scope: str, method: Any, path: str | None) -> None:
        self.scope = scope
        self.method = method
        self.path = path
        self.reason = self.NO_PATH_INFO if path is None else self.NO_ROUTE_MATCH
        super().__init__(f"No route matches {method} {path} in scope {scope!r}")


__all__ = [
    "ConfigError",
    "HTTPError",
    "JunctionError",
    "NoRouteMatch",
    "PatternError",
    "UnsupportedMethod",
]
