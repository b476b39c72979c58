"""Route registry: the write-once table of compiled route templates."""

import logging
from collections.abc import Iterator
from dataclasses import dataclass

from routeplate.exceptions import DuplicateRouteException, RegistryFrozenException
from routeplate.routing.handlers import Handler
from routeplate.routing.patterns import CompiledPattern, compile_contract
from routeplate.routing.segments import Contract, parse_template


@dataclass(frozen=True)
class Registration:
    pattern: CompiledPattern
    handler_type: type[Handler]
    contract: Contract
    template: str

    def matches(self, path: str) -> bool:
        return self.pattern.matches(path)


class RouteRegistry:
    """Stores registered templates in registration order.

    Registrations are keyed by the text of their compiled pattern. Two
    templates that differ only in placeholder names compile to the same
    pattern and therefore collide. The registry is filled during startup and
    only read afterwards; ``freeze()`` ends the registration phase.

    Examples:
        ```python
        registry = RouteRegistry()
        registry.register("/photos/<id>", PhotoHandler)

        for registration in registry.lookup("/photos/42/"):
            print(registration.template, registration.handler_type)
        ```

    Args:
        logger: Logger receiving registration events. Defaults to this
            module's logger.
    """

    def __init__(self, logger: logging.Logger | None = None):
        self._registrations: list[Registration] = []
        self._keys: set[str] = set()
        self._frozen = False
        self._logger = logger or logging.getLogger(__name__)

    def register(self, template: str, handler_type: type[Handler]) -> Contract:
        """Adds a route template handled by ``handler_type``.

        Args:
            template: ``/``-separated template, placeholders written as ``<name>``.
            handler_type: The ``Handler`` subclass answering requests on this route.

        Returns:
            The parsed contract of the template.

        Raises:
            TypeError: If ``handler_type`` is not a ``Handler`` subclass.
            DuplicateRouteException: If an identical pattern is already registered.
            RegistryFrozenException: If the registry has been frozen.
        """
        if self._frozen:
            raise RegistryFrozenException(
                f"Cannot register {template!r}, the route registry is frozen"
            )

        if not (isinstance(handler_type, type) and issubclass(handler_type, Handler)):
            raise TypeError(
                f"Route handlers must be Handler subclasses, got {handler_type!r}"
            )

        contract = parse_template(template)
        pattern = compile_contract(contract)
        if pattern.text in self._keys:
            raise DuplicateRouteException(
                f"Route {template!r} compiles to {pattern.text!r}, which is already registered",
                pattern=pattern.text,
                template=template,
            )

        self._keys.add(pattern.text)
        self._registrations.append(
            Registration(pattern, handler_type, contract, template)
        )

        self._logger.debug(
            f"Route {template} added for providing to {handler_type.__name__}"
        )
        if not handler_type.verbs_for(contract.placeholder_names):
            self._logger.warning(
                f"{handler_type.__name__} has no method with parameters "
                f"{contract.placeholder_names} for route {template}, it will never be invoked"
            )

        return contract

    def lookup(self, path: str) -> list[Registration]:
        """Returns every registration matching ``path``, in registration order."""
        return [
            registration
            for registration in self._registrations
            if registration.matches(path)
        ]

    def freeze(self) -> None:
        if not self._frozen:
            self._frozen = True
            self._logger.debug(
                f"Route registry frozen with {len(self._registrations)} routes"
            )

    @property
    def frozen(self) -> bool:
        return self._frozen

    @property
    def registrations(self) -> tuple[Registration, ...]:
        return tuple(self._registrations)

    def __iter__(self) -> Iterator[Registration]:
        return iter(tuple(self._registrations))

    def __len__(self) -> int:
        return len(self._registrations)
