"""Router configuration objects."""

from __future__ import annotations

from typing import Any, Mapping

import msgspec
from msgspec import Struct

from .exceptions import ConfigError
from .observability import ObservabilityConfig


class RouterConfig(Struct, frozen=True):
    """Typed configuration shared by the scopes of one application."""

    param_prefix: str = "param_"
    query_prefix: str = "query_"
    expose_query_params: bool = True
    observability: ObservabilityConfig = ObservabilityConfig()

    def __post_init__(self) -> None:
        if not self.param_prefix:
            raise ValueError("param_prefix must not be empty")
        if self.expose_query_params and self.query_prefix == self.param_prefix:
            raise ValueError("query_prefix must differ from param_prefix")

    def param_key(self, name: str) -> str:
        """Return the request attribute key a path parameter is stored under."""

        return f"{self.param_prefix}{name}"

    def query_key(self, name: str) -> str:
        return f"{self.query_prefix}{name}"


def load_config(source: bytes | str | Mapping[str, Any] | None = None) -> RouterConfig:
    """Build a :class:`RouterConfig` from JSON text or a plain mapping."""

    if source is None:
        return RouterConfig()
    try:
        if isinstance(source, (bytes, str)):
            return msgspec.json.decode(source, type=RouterConfig)
        return msgspec.convert(dict(source), type=RouterConfig)
    except (msgspec.ValidationError, msgspec.DecodeError) as exc:
        raise ConfigError(f"Invalid router configuration: {exc}") from exc


__all__ = ["RouterConfig", "load_config"]
