"""Command line interface with resource-action structure."""

import argparse
import signal
import threading
from typing import Any, Optional

from trueform import __version__
from trueform.cli.console import print_error, print_json
from trueform.config.provider_config_handler import ProviderConfigManager
from trueform.helpers.logger import setup_logging
from trueform.helpers.utils import load_json_data
from trueform.interface.error_handling import handle_interface_exceptions
from trueform.interface.resource_command_handlers import ACTIONS, handle_resource_action
from trueform.provider import TrueFormProvider

LIST_RESOURCES = "resources"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="trueform",
        description="TrueNAS infrastructure-as-code provider",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument(
        "resource",
        help=f"Resource type (nfs, docker or a full type name), or '{LIST_RESOURCES}' to list them.",
    )
    parser.add_argument("action", nargs="?", choices=ACTIONS, help="Lifecycle operation to run.")
    parser.add_argument("--data", help="JSON string input.")
    parser.add_argument("-f", "--file", help="Path to JSON file input, '-' for stdin.")
    return parser


@handle_interface_exceptions(context="cli")
def run_command(
    args: argparse.Namespace,
    cancel: threading.Event,
    provider_factory=TrueFormProvider,
) -> dict[str, Any]:
    """
    Load configuration, connect and run the requested action.

    Returns:
        The document to print for the host
    """
    input_data = None
    if args.data or args.file:
        input_data = load_json_data(json_str=args.data, json_file=args.file)

    config = ProviderConfigManager.get_config()
    setup_logging(
        log_dir=config.log_dir,
        log_filename=config.log_filename,
        log_level=config.log_level,
        log_destination=config.log_destination,
        log_format=config.log_format,
    )

    with provider_factory(config) as provider:
        return handle_resource_action(provider, args.resource, args.action, input_data, cancel)


def main(argv: Optional[list[str]] = None, provider_factory=TrueFormProvider) -> int:
    """
    Main entry point for the provider.

    Prints one JSON document on standard output and returns the exit code.
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.resource == LIST_RESOURCES:
        print_json({"resources": TrueFormProvider.resource_types()})
        return 0

    if args.action is None:
        parser.error("action is required")

    # console logs go to stderr until the configuration is loaded
    setup_logging()

    cancel = threading.Event()
    previous_handler = signal.signal(signal.SIGTERM, lambda signum, frame: cancel.set())
    try:
        response = run_command(args, cancel, provider_factory)
    finally:
        signal.signal(signal.SIGTERM, previous_handler)

    print_json(response)
    if "error" in response:
        print_error(response["message"])
        return 1
    return 0
