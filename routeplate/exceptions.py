class RouteplateException(Exception):
    """Base exception for routeplate."""
    status_code = 500  # Default status code
    message: str # Type hint for the message attribute

    def __init__(self, message: str | None = None, *args):
        super().__init__(message, *args) # Pass message to parent Exception
        if message is not None:
            self.message = message
        elif args and args[0]:
            self.message = str(args[0])
        else:
            self.message = self.__class__.__name__


class DuplicateRouteException(RouteplateException):
    """Raised when a template compiles to a pattern that is already registered."""
    def __init__(self, message: str, pattern: str, template: str):
        super().__init__(message)
        self.pattern = pattern
        self.template = template


class UnsupportedSegmentKindException(RouteplateException):
    """Raised when the pattern compiler meets a segment kind it cannot render."""


class RegistryFrozenException(RouteplateException):
    """Raised when a route is registered after request handling has started."""


class HandlerDeclarationException(RouteplateException):
    """Raised when a handler class declares an unusable verb method."""
