"""Shared Rich consoles for CLI output."""

import json
import os
from functools import wraps
from typing import Any

from rich.console import Console
from rich.markup import escape

# stdout carries the JSON documents read by the host; messages go to stderr
_output = Console(highlight=False, soft_wrap=True)
_error_console = Console(stderr=True)


def _should_print() -> bool:
    """Check if console messages are enabled."""
    return os.environ.get("TRUEFORM_CONSOLE_ENABLED", "true").lower() == "true"


def _console_output(func):
    """Decorator to check if console messages are enabled."""

    @wraps(func)
    def wrapper(*args, **kwargs):
        if _should_print():
            return func(*args, **kwargs)

    return wrapper


def print_json(document: Any) -> None:
    """Write a JSON document to standard output."""
    _output.out(json.dumps(document, indent=2, sort_keys=True))


@_console_output
def print_error(message: str) -> None:
    """Print error message to stderr."""
    _error_console.print(f"[red]{escape(message)}[/red]")

