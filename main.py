"""Repository-level driver for the ``ai`` CLI."""

from __future__ import annotations

import sys

from terminal_ai.app import main as cli_main


def main(argv: list[str]) -> int:
    return cli_main(argv)


if __name__ == "__main__":
    sys.exit(main(sys.argv[1:]))
