"""Compute and print the byte histogram of a file."""

from __future__ import annotations

import argparse
import os
import re
import sys
from collections import Counter
from collections.abc import Sequence

__all__ = ["parse_byte_size", "byte_histogram", "format_histogram", "main"]

SIGMA = 256
DEFAULT_BUFSIZE = 16 * 1024 * 1024

_SIZE_RE = re.compile(
    r"^\s*(\d+(?:\.\d*)?|\.\d+)\s*([kmgtpe])?(i)?(b)?\s*$", re.IGNORECASE
)
_UNIT_POWERS = {"k": 1, "m": 2, "g": 3, "t": 4, "p": 5, "e": 6}
_ESCAPES = {0x9: "\\t", 0xA: "\\n", 0xD: "\\r"}


def parse_byte_size(text: str) -> int:
    """Parse a byte count such as ``512``, ``4k``, ``16Mi`` or ``2GiB``.

    Plain units are powers of 1000, units followed by ``i`` powers of 1024.
    """
    match = _SIZE_RE.match(text)
    if not match:
        raise ValueError(f"invalid byte size: {text!r}")
    number, unit, binary, _ = match.groups()
    if binary and not unit:
        raise ValueError(f"invalid byte size: {text!r}")
    base = 1024 if binary else 1000
    power = _UNIT_POWERS[unit.lower()] if unit else 0
    return int(float(number) * base**power)


def byte_histogram(path: str | os.PathLike[str], bufsize: int = DEFAULT_BUFSIZE) -> tuple[list[int], int]:
    """Count each byte value in a file; returns the 256 counts and the total."""
    if bufsize <= 0:
        raise ValueError("bufsize must be positive")
    counts: Counter[int] = Counter()
    total = 0
    with open(path, "rb") as f:
        while chunk := f.read(bufsize):
            total += len(chunk)
            counts.update(chunk)
    return [counts[i] for i in range(SIGMA)], total


def format_histogram(hist: Sequence[int], total: int) -> str:
    """Render the histogram report, one line per occurring byte value."""
    lines = [f"Read {total} bytes in total. Histogram:"]
    for value, count in enumerate(hist):
        if count > 0:
            label = _ESCAPES.get(value)
            shown = f" ( {label})" if label else f" ('{chr(value)}')"
            lines.append(f"   0x{value:02X}{shown}: {count}")
    return "\n".join(lines) + "\n"


def _byte_size_arg(text: str) -> int:
    try:
        return parse_byte_size(text)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(str(exc)) from None


def main(argv: Sequence[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        description="Computes and prints the histogram of the given file"
    )
    parser.add_argument("file", help="The input file.")
    parser.add_argument(
        "-r", "--rbuf", type=_byte_size_arg, default=DEFAULT_BUFSIZE,
        help="The read buffer size",
    )
    args = parser.parse_args(argv)
    try:
        hist, total = byte_histogram(args.file, args.rbuf)
    except (OSError, ValueError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1
    sys.stdout.write(format_histogram(hist, total))
    return 0


if __name__ == "__main__":
    sys.exit(main())