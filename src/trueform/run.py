#!/usr/bin/env python3
"""CLI entry point with resource-action structure."""

import sys

from trueform.cli.main import main


def cli_main() -> None:
    """Entry point function for console scripts."""
    sys.exit(main())


if __name__ == "__main__":
    cli_main()
