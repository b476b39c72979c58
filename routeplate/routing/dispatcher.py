"""Request-time matching, method resolution and handler invocation."""

import inspect
import logging
from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING, Any

from routeplate.routing.handlers import Handler, RequestContext
from routeplate.routing.registry import Registration, RouteRegistry
from routeplate.routing.segments import tokenize

if TYPE_CHECKING:
    from bevy.containers import Container

    from routeplate.requests import Request
    from routeplate.responses import ResponseBuilder

type CallNext = Callable[["Request", "ResponseBuilder"], Awaitable[Any]]


class HandlerFactory:
    """Builds handler instances for the dispatcher.

    Override ``create`` to construct handlers differently, e.g. to pass extra
    services alongside the request context.
    """

    def create(self, handler_type: type[Handler], context: RequestContext) -> Handler:
        return handler_type(context)


class Dispatcher:
    """Runs every handler whose route matches a request, then forwards.

    Matching registrations are processed one at a time in registration order.
    For each of them the handler's verb table is asked for a method answering
    the request method with the route's placeholder names. Registrations
    without such a method are skipped. Handlers share the response, so the
    last write to any field wins.

    When no method was invoked at all the response status is set to 404. The
    dispatcher never short-circuits: ``call_next`` is always awaited and its
    result returned. Exceptions raised by handlers propagate unchanged.

    Args:
        registry: The registry to match request paths against.
        factory: Creates handler instances. Defaults to ``HandlerFactory()``.
        logger: Logger receiving dispatch events. Defaults to this module's
            logger.
    """

    def __init__(
        self,
        registry: RouteRegistry,
        factory: HandlerFactory | None = None,
        logger: logging.Logger | None = None,
    ):
        self._registry = registry
        self._factory = factory or HandlerFactory()
        self._logger = logger or logging.getLogger(__name__)

    async def handle(
        self,
        request: "Request",
        response: "ResponseBuilder",
        call_next: CallNext,
        *,
        container: "Container | None" = None,
    ) -> Any:
        context = RequestContext(request, response, container)
        path_tokens: list[str] | None = None
        handled = False

        for registration in self._registry.lookup(request.path):
            handler_method = registration.handler_type.resolve_method(
                request.method, registration.contract.placeholder_names
            )
            if handler_method is None:
                continue

            handled = True
            if path_tokens is None:
                path_tokens = tokenize(request.path)

            arguments = self._bind_arguments(registration, path_tokens)
            handler = self._factory.create(registration.handler_type, context)
            self._logger.debug(
                f"{handler_method.name} of {registration.handler_type.__name__} "
                f"handling {request.method} {request.path}"
            )
            result = getattr(handler, handler_method.name)(*arguments)
            if inspect.isawaitable(result):
                await result

        if not handled:
            self._logger.debug(f"No handler found for {request.method} {request.path}")
            response.set_status(404)

        return await call_next(request, response)

    @staticmethod
    def _bind_arguments(registration: Registration, path_tokens: list[str]) -> list[str]:
        return [path_tokens[index] for index in registration.contract.dynamic_positions]
