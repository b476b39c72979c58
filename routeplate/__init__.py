"""routeplate - a URL-template router for ASGI applications.

Routes are templates such as ``/photos/<id>``. A request is dispatched to
every registered template matching its path, and on each to the handler
method answering the request verb with parameters named after the template's
placeholders.

Usage:
    from routeplate import App, Handler

    class PhotoHandler(Handler):
        async def get(self, id):
            self.response.body(f"photo {id}")

    app = App().add_route("/photos/<id>", PhotoHandler)
"""

__version__ = "0.1.0"

from routeplate.app import App
from routeplate.exceptions import (
    DuplicateRouteException,
    HandlerDeclarationException,
    RegistryFrozenException,
    RouteplateException,
    UnsupportedSegmentKindException,
)
from routeplate.requests import Request
from routeplate.responses import ResponseBuilder
from routeplate.routing import (
    Dispatcher,
    Handler,
    HandlerFactory,
    RequestContext,
    RouteRegistry,
    handle,
)

__all__ = [
    "__version__",
    "App",
    "Dispatcher",
    "DuplicateRouteException",
    "Handler",
    "HandlerDeclarationException",
    "HandlerFactory",
    "RegistryFrozenException",
    "Request",
    "RequestContext",
    "ResponseBuilder",
    "RouteRegistry",
    "RouteplateException",
    "UnsupportedSegmentKindException",
    "handle",
]
