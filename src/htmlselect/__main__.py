#!/usr/bin/env python3
"""Command-line interface for htmlselect."""

from __future__ import annotations

import sys
from typing import Any

from .config import Config
from .errors import ArgumentError, HtmlSelectError
from .pipeline import run

_SELECTOR_REQUIRED = "CSS selector is required. Use -s option followed by a selector."

# flag -> (Config field, message when the value is missing)
_OPTIONS = {
    "-s": ("css_selector", "Expected CSS selector after -s"),
    "-i": ("input_file", "Expected input file name after -i"),
    "-o": ("output_file", "Expected output file name after -o"),
}


def parse_arguments(argv: list[str]) -> Config:
    """Parse command-line arguments (without the program name) into a Config.

    Arguments are read as flag/value pairs. The token after a flag is always
    its value, even when it starts with "-", so ``-s -webkit-box`` selects
    ``-webkit-box``. Values are never glued to the flag (``-s.x`` is an
    unexpected argument). A repeated flag keeps its last value.

    Raises:
        ArgumentError: On an unknown token, a flag without a value, or a
            missing -s
    """
    values: dict[str, str] = {}
    tokens = iter(argv)
    for token in tokens:
        if token not in _OPTIONS:
            raise ArgumentError(f"Unexpected argument: {token}")
        field, missing_message = _OPTIONS[token]
        value = next(tokens, None)
        if value is None:
            raise ArgumentError(missing_message)
        values[field] = value

    if "css_selector" not in values:
        raise ArgumentError(_SELECTOR_REQUIRED)
    return Config(**values)


def _use_utf8(stream: Any) -> None:
    # Only the real process streams; replacements (pipes in tests, wrappers) are left alone
    if stream in (sys.__stdin__, sys.__stdout__) and hasattr(stream, "reconfigure"):
        stream.reconfigure(encoding="utf-8")


def main(argv: list[str] | None = None) -> int:
    """Run the command line. Returns the process exit status."""
    try:
        config = parse_arguments(sys.argv[1:] if argv is None else argv)
        _use_utf8(sys.stdin)
        _use_utf8(sys.stdout)
        run(config, sys.stdin, sys.stdout)
    except HtmlSelectError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
