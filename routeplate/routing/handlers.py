"""Handler classes and HTTP verb declarations.

A handler is a class whose methods respond to HTTP verbs. Methods are
discovered once, when the class is created, and stored in a table keyed by the
verb and the ordered parameter names. At request time a route's placeholder
names select the method straight from that table.

Examples:
    Naming convention:

    ```python
    class PhotoHandler(Handler):
        def get(self, id):
            self.response.body(f"photo {id}")

        async def delete(self, id):
            ...
    ```

    Explicit declarations:

    ```python
    class AlbumHandler(Handler):
        @handle.GET | handle.HEAD
        def show(self, album, photo):
            ...

        @handle("PURGE")
        def purge_cache(self, album):
            ...
    ```
"""

import inspect
from dataclasses import dataclass
from functools import wraps
from typing import TYPE_CHECKING, Any, ClassVar

from routeplate.exceptions import HandlerDeclarationException

if TYPE_CHECKING:
    from bevy.containers import Container

    from routeplate.requests import Request
    from routeplate.responses import ResponseBuilder

HTTP_METHODS = frozenset(
    {"GET", "POST", "PUT", "DELETE", "PATCH", "OPTIONS", "HEAD"}
)

_POSITIONAL = (
    inspect.Parameter.POSITIONAL_ONLY,
    inspect.Parameter.POSITIONAL_OR_KEYWORD,
)


class _HandleDecorator:
    """Decorator class for marking handler methods with HTTP methods."""

    def __init__(self, methods: frozenset[str]):
        self.methods = methods

    def __call__(self, func):
        @wraps(func)
        def wrapper(*args, **kwargs):
            return func(*args, **kwargs)

        wrapper.__handle_methods__ = (
            getattr(func, "__handle_methods__", frozenset()) | self.methods
        )
        return wrapper

    def __or__(self, other):
        """Support for @handle.GET | handle.POST syntax"""
        if isinstance(other, _HandleDecorator):
            return _HandleDecorator(self.methods | other.methods)
        return NotImplemented


class _HandleRegistry:
    """Provides method decorators like @handle.GET, @handle.POST and @handle("PURGE")"""

    def __init__(self):
        self.GET = _HandleDecorator(frozenset({"GET"}))
        self.POST = _HandleDecorator(frozenset({"POST"}))
        self.PUT = _HandleDecorator(frozenset({"PUT"}))
        self.DELETE = _HandleDecorator(frozenset({"DELETE"}))
        self.PATCH = _HandleDecorator(frozenset({"PATCH"}))
        self.OPTIONS = _HandleDecorator(frozenset({"OPTIONS"}))
        self.HEAD = _HandleDecorator(frozenset({"HEAD"}))

    def __call__(self, *methods: str) -> _HandleDecorator:
        if not methods:
            raise ValueError("At least one HTTP method is required")
        return _HandleDecorator(frozenset(method.upper() for method in methods))


handle = _HandleRegistry()


@dataclass(frozen=True)
class RequestContext:
    """Everything a handler instance is constructed with."""

    request: "Request"
    response: "ResponseBuilder"
    container: "Container | None" = None


@dataclass(frozen=True)
class HandlerMethod:
    verb: str
    name: str
    parameters: tuple[str, ...]


class Handler:
    """Base class for route handlers.

    Every public method answers the request verb it is named after, compared
    case-insensitively, so ``def purge(self, key)`` handles ``PURGE``. Methods
    marked with ``handle`` answer the listed verbs as well. Public methods
    that are static, class methods or take keyword-only or variadic
    parameters are skipped, unless they are named after a standard verb or
    marked with ``handle``, in which case they are rejected.

    The table key is ``(VERB, parameter names)``, so two methods answering the
    same verb for the same placeholders are rejected when the class is defined.
    """

    __verb_table__: ClassVar[dict[tuple[str, tuple[str, ...]], HandlerMethod]] = {}

    def __init__(self, context: RequestContext):
        self.context = context

    @property
    def request(self) -> "Request":
        return self.context.request

    @property
    def response(self) -> "ResponseBuilder":
        return self.context.response

    def __init_subclass__(cls, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        cls.__verb_table__ = {}
        cls._discover_handlers()

    @classmethod
    def _discover_handlers(cls) -> None:
        for method_name in dir(cls):
            if method_name.startswith("_") or method_name in _BASE_ATTRIBUTES:
                continue

            method_callable = getattr(cls, method_name)
            if not callable(method_callable):
                continue

            declared = set(getattr(method_callable, "__handle_methods__", ()))
            if method_name.upper() in HTTP_METHODS:
                declared.add(method_name.upper())

            if not declared and not cls._is_verb_candidate(method_name, method_callable):
                continue

            parameters = cls._get_parameter_names(method_name, method_callable)
            for verb in sorted(declared | {method_name.upper()}):
                cls._register_verb(HandlerMethod(verb, method_name, parameters))

    @classmethod
    def _is_verb_candidate(cls, method_name: str, method_callable) -> bool:
        """Any public instance method taking positional parameters answers the verb it is named after."""
        if not inspect.isfunction(inspect.getattr_static(cls, method_name)):
            return False

        parameters = list(inspect.signature(method_callable).parameters.values())[1:]
        return all(parameter.kind in _POSITIONAL for parameter in parameters)

    @classmethod
    def _get_parameter_names(cls, method_name: str, method_callable) -> tuple[str, ...]:
        if isinstance(
            inspect.getattr_static(cls, method_name), (staticmethod, classmethod)
        ):
            raise HandlerDeclarationException(
                f"{cls.__name__}.{method_name} must be an instance method to handle requests"
            )

        parameters = list(inspect.signature(method_callable).parameters.values())[1:]  # Skip 'self'
        for parameter in parameters:
            if parameter.kind not in _POSITIONAL:
                raise HandlerDeclarationException(
                    f"{cls.__name__}.{method_name} parameter {parameter.name!r} must be positional, "
                    "path values are bound by position"
                )

        return tuple(parameter.name for parameter in parameters)

    @classmethod
    def _register_verb(cls, handler_method: HandlerMethod) -> None:
        key = (handler_method.verb, handler_method.parameters)
        if existing := cls.__verb_table__.get(key):
            raise HandlerDeclarationException(
                f"{cls.__name__}.{handler_method.name} and {cls.__name__}.{existing.name} both handle "
                f"{handler_method.verb} with parameters {handler_method.parameters}"
            )

        cls.__verb_table__[key] = handler_method

    @classmethod
    def resolve_method(
        cls, verb: str, placeholder_names: tuple[str, ...]
    ) -> HandlerMethod | None:
        """Find the method handling ``verb`` for a route with these placeholders.

        The verb is compared case-insensitively; the parameter names must equal
        the placeholder names position by position.
        """
        return cls.__verb_table__.get((verb.upper(), tuple(placeholder_names)))

    @classmethod
    def verbs_for(cls, placeholder_names: tuple[str, ...]) -> list[str]:
        placeholder_names = tuple(placeholder_names)
        return sorted(
            verb
            for verb, parameters in cls.__verb_table__
            if parameters == placeholder_names
        )


_BASE_ATTRIBUTES = frozenset(dir(Handler))
