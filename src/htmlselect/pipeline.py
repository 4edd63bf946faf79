"""Pipeline driver: read the input, parse, select, serialize, write."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, TextIO

from .errors import IoError
from .parser import parse
from .selector import compile as compile_selector
from .selector import select
from .serialize import serialize

if TYPE_CHECKING:
    from collections.abc import Iterable

    from .config import Config

logger = logging.getLogger(__name__)


def read_input(stream: TextIO) -> str:
    """Read the whole stream, unchanged."""
    return stream.read()


def write_output(stream: TextIO, nodes: Iterable[Any]) -> int:
    """Write each node's outer HTML on its own line. Returns the line count."""
    count = 0
    for node in nodes:
        stream.write(serialize(node) + "\n")
        count += 1
    return count


def _read_file(path: str) -> str:
    try:
        with open(path, encoding="utf-8") as f:
            return read_input(f)
    except OSError as e:
        raise IoError(path, e.strerror or str(e)) from e
    except UnicodeDecodeError as e:
        raise IoError(path, f"input is not valid UTF-8 ({e.reason})") from e


def _read_stdin(stream: TextIO) -> str:
    try:
        return read_input(stream)
    except OSError as e:
        raise IoError(None, e.strerror or str(e)) from e
    except UnicodeDecodeError as e:
        raise IoError(None, f"input is not valid UTF-8 ({e.reason})") from e


def run(config: Config, stdin: TextIO, stdout: TextIO) -> int:
    """Run one extraction as described by `config`.

    Reads `config.input_file` (or `stdin`), writes to `config.output_file`
    (or `stdout`). Returns the number of matched elements. The selector is
    compiled before the output file is opened, so a bad selector leaves an
    existing output file untouched.

    Raises:
        InputEmptyError: If the input is empty or whitespace-only
        SelectorSyntaxError: If the selector is invalid
        IoError: If the input or output cannot be read or written
    """
    if config.input_file is not None:
        html = _read_file(config.input_file)
    else:
        html = _read_stdin(stdin)
    logger.debug("read %d characters of input from %s", len(html), config.input_file or "<stdin>")

    document = parse(html)
    logger.debug("parsed document with %d recoverable errors", len(document.errors))

    selector = compile_selector(config.css_selector)
    nodes = select(document.root, selector)
    logger.debug("selector %r matched %d elements", selector.source, len(nodes))

    if config.output_file is None:
        try:
            write_output(stdout, nodes)
            stdout.flush()
        except OSError as e:
            raise IoError(None, e.strerror or str(e)) from e
        return len(nodes)

    try:
        with open(config.output_file, "w", encoding="utf-8", newline="\n") as f:
            write_output(f, nodes)
    except OSError as e:
        raise IoError(config.output_file, e.strerror or str(e)) from e
    return len(nodes)
