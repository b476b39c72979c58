import importlib
import logging
import os
import re
import sys
from pathlib import Path
from typing import Any, TypedDict

import yaml

from routeplate.exceptions import RouteplateException

logger = logging.getLogger(__name__)

# Default config file name
DEFAULT_CONFIG_FILE = "routeplate.yaml"

_env_pattern = re.compile(r"\$\{([^}]+)\}")


class RouteConfig(TypedDict):
    template: str
    handler: str


class LoggingConfig(TypedDict, total=False):
    level: str | int
    format: str


class RouteplateConfig(TypedDict, total=False):
    logging: LoggingConfig
    routes: list[RouteConfig]


class RouteplateConfigError(RouteplateException):
    """Custom exception for configuration errors."""


def import_from_string(import_str: str) -> Any:
    """Import a class, function, or variable from a module by string.

    Args:
        import_str: String in the format "module.path:symbol". Nested
            attributes are reached with dots after the colon.

    Returns:
        The imported object.

    Raises:
        RouteplateConfigError: If the module or the symbol cannot be imported.

    Examples:
        ```python
        handler_type = import_from_string("myapp.handlers:PhotoHandler")
        ```
    """
    if ":" not in import_str:
        raise RouteplateConfigError(
            f"Invalid import string format '{import_str}'. Expected 'module.path:symbol'."
        )

    module_path, object_path = import_str.split(":", 1)

    try:
        module = importlib.import_module(module_path)

        # Handle nested attributes
        target = module
        for part in object_path.split("."):
            target = getattr(target, part)

        return target
    except (ImportError, AttributeError) as e:
        raise RouteplateConfigError(f"Failed to import '{import_str}': {str(e)}") from e


def load_raw_config(config_path: str | Path) -> dict[str, Any]:
    """
    Load a configuration file.

    Raises:
        RouteplateConfigError: If the file is missing or is not a YAML mapping.
    """
    config_path_obj = Path(config_path)
    if not config_path_obj.exists():
        raise RouteplateConfigError(f"Configuration file {config_path} not found")

    try:
        with open(config_path_obj) as f:
            config = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as e:
        raise RouteplateConfigError(
            f"Error loading configuration from {config_path}: {str(e)}"
        ) from e

    if config is None:  # Empty file
        config = {}

    if not isinstance(config, dict):
        raise RouteplateConfigError(
            f"Invalid configuration format in {config_path}. Expected a dictionary."
        )

    return config


def _substitute_env_vars(config: dict[str, Any]) -> dict[str, Any]:
    """Substitute ${VAR_NAME} references with environment variable values."""

    def substitute_value(value: Any) -> Any:
        if isinstance(value, str):

            def replace_env_var(match):
                env_var = match.group(1)
                env_value = os.getenv(env_var)
                if env_value is None:
                    raise RouteplateConfigError(
                        f"Required environment variable '{env_var}' is not set"
                    )

                return env_value

            return _env_pattern.sub(replace_env_var, value)

        elif isinstance(value, dict):
            return {k: substitute_value(v) for k, v in value.items()}

        elif isinstance(value, list):
            return [substitute_value(item) for item in value]

        else:
            return value

    return substitute_value(config)


def validate_routes_config(routes: Any) -> None:
    if not isinstance(routes, list):
        raise RouteplateConfigError("'routes' must be a list")

    for i, route in enumerate(routes):
        if not isinstance(route, dict):
            raise RouteplateConfigError(f"Route {i} must be a dictionary")

        for key in ("template", "handler"):
            if not isinstance(route.get(key), str):
                raise RouteplateConfigError(
                    f"Route {i} missing required '{key}' field"
                )


def load_config(config_path: str | Path) -> RouteplateConfig:
    """
    Load, substitute environment variables in, and validate a configuration file.

    Raises:
        RouteplateConfigError: If the configuration is missing or invalid.
    """
    config = _substitute_env_vars(load_raw_config(config_path))
    validate_routes_config(config.setdefault("routes", []))
    logger.debug(f"Loaded {len(config['routes'])} routes from {config_path}")
    return config

def configure_logging(config: RouteplateConfig) -> None:
    """Apply the ``logging`` section of a configuration to the routeplate logger.

    A configured format is set on the routeplate logger's own handler, so it
    takes effect even when the root logger was configured beforehand.
    """
    logging_config = config.get("logging") or {}
    routeplate_logger = logging.getLogger("routeplate")

    if (level := logging_config.get("level")) is not None:
        if isinstance(level, str):
            level = level.upper()

        try:
            routeplate_logger.setLevel(level)
        except ValueError as e:
            raise RouteplateConfigError(f"Invalid log level {level!r}") from e

    if fmt := logging_config.get("format"):
        if not routeplate_logger.handlers:
            routeplate_logger.addHandler(logging.StreamHandler(sys.stderr))

        formatter = logging.Formatter(fmt)
        for handler in routeplate_logger.handlers:
            handler.setFormatter(formatter)

        # Records stop here instead of reaching the root handlers
        routeplate_logger.propagate = False
