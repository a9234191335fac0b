"""Junction request-dispatch core: scoped routes, path patterns and handler chains."""

from .config import RouterConfig, load_config
from .dispatch import ChainRun, ChainState, DispatchOutcome, Dispatcher
from .exceptions import ConfigError, HTTPError, JunctionError, NoRouteMatch, PatternError, UnsupportedMethod
from .http import HttpMethod, Status
from .middleware import HandlerCallable, HandlerChain, MiddlewareSet
from .observability import Observability, ObservabilityConfig
from .patterns import Literal, Param, PathPattern
from .requests import RequestContext
from .responses import JSONResponse, PlainTextResponse, Response
from .routing import RouteEntry, RouteMatch, RouteTable
from .scope import ChainBuilder, RouterScope
from .testing import TestClient

__all__ = [
    "ChainBuilder",
    "ChainRun",
    "ChainState",
    "ConfigError",
    "DispatchOutcome",
    "Dispatcher",
    "HTTPError",
    "HandlerCallable",
    "HandlerChain",
    "HttpMethod",
    "JSONResponse",
    "JunctionError",
    "Literal",
    "MiddlewareSet",
    "NoRouteMatch",
    "Observability",
    "ObservabilityConfig",
    "Param",
    "PathPattern",
    "PatternError",
    "PlainTextResponse",
    "RequestContext",
    "Response",
    "RouteEntry",
    "RouteMatch",
    "RouteTable",
    "RouterConfig",
    "RouterScope",
    "Status",
    "TestClient",
    "load_config",
]
