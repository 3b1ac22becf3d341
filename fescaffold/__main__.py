# File: fescaffold/__main__.py
"""
fescaffold - Module entry point.

Allows running the tool directly via::

    python -m fescaffold scaffold ./src/MyApi

This module simply delegates to the CLI entry point defined in ``fescaffold.cli``.
"""

from __future__ import annotations


def main() -> None:
    """Delegate to the CLI main function."""
    from fescaffold.cli import cli_main
    cli_main()


if __name__ == "__main__":
    main()
