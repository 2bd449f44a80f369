# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""CLI entry point for lenses-client (lenses-cli command).

Usage:
    lenses-cli --help
    lenses-cli configure
    lenses-cli topics list
    lenses-cli --output json sql run "SELECT * FROM payments LIMIT 10"
"""

from .lenses_base import LensesBase


def main() -> None:
    """CLI entry point."""
    lenses = LensesBase()
    lenses.cli.cli(prog_name="lenses-cli")


if __name__ == "__main__":
    main()
