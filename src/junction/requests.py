"""Request primitives."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Mapping, MutableMapping, TypeVar
from urllib.parse import parse_qsl

import msgspec

from .serialization import json_decode

if TYPE_CHECKING:
    from .responses import Response

T = TypeVar("T")


class RequestContext:
    """Mutable per-request state threaded through a handler chain.

    ``attributes`` is the shared namespace handlers use to pass data down the
    chain; the dispatcher writes path parameters there under a fixed prefix.
    A handler that halts the chain is expected to have set :attr:`response`.
    """

    __slots__ = (
        "_body",
        "_json_cache",
        "_query_params",
        "_raw_query",
        "attributes",
        "headers",
        "method",
        "path",
        "path_params",
        "response",
    )

    def __init__(
        self,
        *,
        method: str,
        path: str | None,
        headers: Mapping[str, str] | None = None,
        query_string: str | None = None,
        body: bytes | None = None,
        attributes: Mapping[str, Any] | None = None,
    ) -> None:
        self.method = method.upper()
        self.path = path
        self.headers = {k.lower(): v for k, v in (headers or {}).items()}
        self.path_params: dict[str, str] = {}
        self.attributes: dict[str, Any] = dict(attributes or {})
        self.response: "Response | None" = None
        self._raw_query = query_string or ""
        self._body = body or b""
        self._json_cache: Any = msgspec.UNSET
        self._query_params: MutableMapping[str, list[str]] | None = None

    @staticmethod
    def _parse_query(raw: str) -> MutableMapping[str, list[str]]:
        parsed: MutableMapping[str, list[str]] = {}
        for key, value in parse_qsl(raw, keep_blank_values=True):
            parsed.setdefault(key, []).append(value)
        return parsed

    @property
    def query_params(self) -> MutableMapping[str, list[str]]:
        if self._query_params is None:
            self._query_params = self._parse_query(self._raw_query)
        return self._query_params

    @property
    def query_string(self) -> str:
        return self._raw_query

    def header(self, name: str, default: str | None = None) -> str | None:
        return self.headers.get(name.lower(), default)

    def param(self, name: str, default: str | None = None) -> str | None:
        return self.path_params.get(name, default)

    def query(self, name: str, default: str | None = None) -> str | None:
        values = self.query_params.get(name)
        if not values:
            return default
        return values[-1]

    def json(self, model: type[T] | None = None) -> T | Any:
        """Decode the JSON body using :mod:`msgspec`."""

        if self._json_cache is msgspec.UNSET:
            self._json_cache = json_decode(self._body) if self._body else None
        if model is None:
            return self._json_cache
        return msgspec.convert(self._json_cache, type=model)

    def text(self) -> str:
        return self._body.decode()

    def body(self) -> bytes:
        return self._body

    def respond(self, response: "Response") -> bool:
        """Attach ``response`` and return ``False`` so a handler can ``return request.respond(...)``."""

        self.response = response
        return False

    def __repr__(self) -> str:
        return f"RequestContext(method={self.method!r}, path={self.path!r})"


__all__ = ["RequestContext"]
