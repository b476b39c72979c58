"""ASGI application wiring the route registry and dispatcher into a pipeline.

Each HTTP request runs in its own branch of the application's bevy container
with the ``Request``, ``ResponseBuilder`` and the branch ``Container`` added to
it. The dispatcher is the first pipeline stage; it always forwards to the
final stage, which fills in the default not-found body, after which the
response is sent.
"""

import logging
from pathlib import Path

from asgiref.typing import (
    ASGIReceiveCallable as Receive,
)
from asgiref.typing import (
    ASGISendCallable as Send,
)
from asgiref.typing import (
    LifespanShutdownCompleteEvent,
    LifespanStartupCompleteEvent,
    Scope,
)
from bevy import Inject, get_registry, injectable
from bevy.containers import Container

from routeplate.config import (
    DEFAULT_CONFIG_FILE,
    configure_logging,
    import_from_string,
    load_config,
)
from routeplate.requests import Request
from routeplate.responses import ResponseBuilder
from routeplate.routing.dispatcher import Dispatcher, HandlerFactory
from routeplate.routing.handlers import Handler
from routeplate.routing.registry import RouteRegistry


class App:
    """The routeplate ASGI application.

    Routes are registered during startup with ``add_route``. The registry is
    frozen when the ASGI lifespan starts or when the first request arrives,
    whichever comes first.

    Examples:
        ```python
        from routeplate import App, Handler

        class PhotoHandler(Handler):
            def get(self, id):
                self.response.body(f"photo {id}")

        app = App().add_route("/photos/<id>", PhotoHandler)
        ```

        Running it:

        ```bash
        uvicorn myapp:app
        ```

    Args:
        registry: Registry to dispatch against. A new one is created if omitted.
        handler_factory: Builds handler instances, see ``HandlerFactory``.
        logger: Logger shared by the app, its registry and dispatcher. Each
            component uses its own module logger when omitted.
    """

    def __init__(
        self,
        *,
        registry: RouteRegistry | None = None,
        handler_factory: HandlerFactory | None = None,
        logger: logging.Logger | None = None,
    ):
        self._logger = logger or logging.getLogger(__name__)
        self._registry = registry if registry is not None else RouteRegistry(logger=logger)
        self._dispatcher = Dispatcher(
            self._registry, factory=handler_factory, logger=logger
        )
        self._container = get_registry().create_container()

    @classmethod
    def from_config(
        cls, config_path: str | Path = DEFAULT_CONFIG_FILE, **kwargs
    ) -> "App":
        """Creates an app with every route declared in a YAML config file.

        Routes are registered in file order. The ``logging`` section is
        applied before registration so registration events are visible.

        Raises:
            RouteplateConfigError: If the file is invalid or a handler cannot be imported.
            DuplicateRouteException: If two configured templates collide.
        """
        config = load_config(config_path)
        configure_logging(config)

        app = cls(**kwargs)
        for route in config["routes"]:
            app.add_route(route["template"], import_from_string(route["handler"]))

        return app

    @property
    def registry(self) -> RouteRegistry:
        return self._registry

    @property
    def container(self) -> Container:
        return self._container

    def add_route(self, template: str, handler_type: type[Handler]) -> "App":
        """Registers ``handler_type`` for ``template`` and returns the app for chaining."""
        self._registry.register(template, handler_type)
        return self

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        match scope["type"]:
            case "lifespan":
                await self.handle_lifespan(scope, receive, send)
            case "http":
                await self._handle_request(scope, receive, send)
            case _:
                self._logger.warning(f"Unsupported ASGI scope type: {scope['type']}")

    async def handle_lifespan(self, scope: Scope, receive: Receive, send: Send):
        async for event in self._lifespan_iterator(receive):
            match event:
                case {"type": "lifespan.startup"}:
                    self._logger.debug("Lifespan startup event")
                    self._registry.freeze()
                    await send(
                        LifespanStartupCompleteEvent(type="lifespan.startup.complete")
                    )

                case {"type": "lifespan.shutdown"}:
                    self._logger.debug("Lifespan shutdown event")
                    await send(
                        LifespanShutdownCompleteEvent(type="lifespan.shutdown.complete")
                    )

    async def _lifespan_iterator(self, receive: Receive):
        event = {}
        while event.get("type") != "lifespan.shutdown":
            event = await receive()
            yield event

    async def _handle_request(self, scope: Scope, receive: Receive, send: Send):
        self._registry.freeze()
        with self._container.branch() as container:
            request = Request(scope, receive)
            response_builder = ResponseBuilder(send)

            container.add(Request, request)
            container.add(ResponseBuilder, response_builder)
            container.add(Container, container)

            try:
                await container.call(self._dispatch)
            except Exception as e:
                self._logger.exception(
                    "Unhandled exception during request processing", exc_info=e
                )
                response_builder.clear()
                response_builder.set_status(500)
                response_builder.content_type("text/plain")
                response_builder.body("500 Internal Server Error")

            finally:
                try:
                    await response_builder.send_response()
                except Exception as final_send_exc:
                    self._logger.error(
                        "Exception during final send_response", exc_info=final_send_exc
                    )

    @injectable
    async def _dispatch(
        self,
        request: Inject[Request],
        response: Inject[ResponseBuilder],
        container: Inject[Container],
    ):
        return await self._dispatcher.handle(
            request, response, self._finalize_response, container=container
        )

    async def _finalize_response(
        self, request: Request, response: ResponseBuilder
    ) -> ResponseBuilder:
        if response.status == 404 and not response.has_body:
            response.content_type("text/plain")
            response.body("Not Found")

        return response
