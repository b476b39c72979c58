"""Routing layer for routeplate - template tokenizing, pattern compiling, registry, dispatch."""

from routeplate.routing.dispatcher import Dispatcher, HandlerFactory
from routeplate.routing.handlers import (
    HTTP_METHODS,
    Handler,
    HandlerMethod,
    RequestContext,
    handle,
)
from routeplate.routing.patterns import CompiledPattern, compile_contract
from routeplate.routing.registry import Registration, RouteRegistry
from routeplate.routing.segments import (
    Contract,
    Segment,
    SegmentKind,
    classify,
    parse_template,
    tokenize,
)

__all__ = [
    "HTTP_METHODS",
    "CompiledPattern",
    "Contract",
    "Dispatcher",
    "Handler",
    "HandlerFactory",
    "HandlerMethod",
    "Registration",
    "RequestContext",
    "RouteRegistry",
    "Segment",
    "SegmentKind",
    "classify",
    "compile_contract",
    "handle",
    "parse_template",
    "tokenize",
]
