"""Command-line interface for routeplate."""

import argparse
import logging
import os
import sys
from pathlib import Path

import uvicorn

from routeplate import __version__
from routeplate.app import App
from routeplate.config import DEFAULT_CONFIG_FILE
from routeplate.exceptions import RouteplateException

logger = logging.getLogger("routeplate")

CONFIG_ENV_VAR = "ROUTEPLATE_CONFIG"


def create_parser():
    """Create and configure the CLI argument parser."""
    parser = argparse.ArgumentParser(
        prog="routeplate",
        description="Command-line interface for the routeplate URL-template router.",
    )
    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {__version__}"
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging for routeplate.",
    )
    parser.add_argument(
        "--config",
        "-c",
        help=f"Path to config file. Default: ./{DEFAULT_CONFIG_FILE}",
        default=DEFAULT_CONFIG_FILE,
    )

    subparsers = parser.add_subparsers(
        title="commands", dest="command", required=True, help="Command to execute"
    )

    routes_parser = subparsers.add_parser(
        "routes", help="List the configured routes and their compiled patterns."
    )
    routes_parser.set_defaults(func=handle_routes_command)

    launch_parser = subparsers.add_parser(
        "launch", help="Serve the configured application with uvicorn."
    )
    launch_parser.add_argument(
        "--host",
        help="Bind socket to this host. Default: 127.0.0.1",
        default="127.0.0.1",
    )
    launch_parser.add_argument(
        "--port",
        "-p",
        type=int,
        help="Bind socket to this port. Default: 8000",
        default=8000,
    )
    launch_parser.add_argument(
        "--reload",
        action="store_true",
        help="Restart the server when source files change.",
    )
    launch_parser.set_defaults(func=handle_launch_command)

    return parser


def handle_routes_command(args_ns) -> int:
    """Handles the 'routes' command."""
    app = App.from_config(args_ns.config)
    if not len(app.registry):
        print("No routes configured.")
        return 0

    for registration in app.registry:
        handler_type = registration.handler_type
        verbs = handler_type.verbs_for(registration.contract.placeholder_names)
        print(
            f"{registration.template}\t{registration.pattern.text}\t"
            f"{handler_type.__module__}.{handler_type.__qualname__}\t"
            f"{','.join(verbs) or '-'}"
        )

    return 0


def create_app() -> App:
    """Application factory used by uvicorn when reloading."""
    return App.from_config(os.environ.get(CONFIG_ENV_VAR, DEFAULT_CONFIG_FILE))


def handle_launch_command(args_ns) -> int:
    """Handles the 'launch' command."""
    app = App.from_config(args_ns.config)
    if args_ns.reload:
        # uvicorn can only reload an app it imports itself
        os.environ[CONFIG_ENV_VAR] = str(Path(args_ns.config).resolve())
        app = "routeplate.cli:create_app"

    logger.info(f"Starting routeplate application on {args_ns.host}:{args_ns.port}")
    uvicorn.run(
        app,
        factory=args_ns.reload,
        reload=args_ns.reload,
        host=args_ns.host,
        port=args_ns.port,
        log_level="debug" if args_ns.debug else "info",
    )
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = create_parser()
    args_ns = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args_ns.debug else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    try:
        return args_ns.func(args_ns)
    except RouteplateException as e:
        logger.error(f"Error: {e.message}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
