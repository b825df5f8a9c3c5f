"""Copy a file, optionally keeping only a given set of byte values."""

from __future__ import annotations

import argparse
import os
import sys
from collections.abc import Sequence

from distwt.histogram_tool import DEFAULT_BUFSIZE, parse_byte_size

__all__ = ["filter_file", "main"]


def _as_bytes(keep: bytes | str | None) -> bytes:
    if keep is None:
        return b""
    if isinstance(keep, str):
        return os.fsencode(keep)
    return bytes(keep)


def filter_file(
    infile: str | os.PathLike[str],
    outfile: str | os.PathLike[str],
    keep: bytes | str | None = None,
    bufsize: int = DEFAULT_BUFSIZE,
) -> tuple[int, int]:
    """Copy ``infile`` to ``outfile`` keeping only bytes found in ``keep``.

    An empty or missing ``keep`` copies everything. Returns the numbers of
    bytes read and written.
    """
    if bufsize <= 0:
        raise ValueError("bufsize must be positive")
    allowed = set(_as_bytes(keep))
    delete = bytes(b for b in range(256) if b not in allowed) if allowed else b""

    read = written = 0
    with open(outfile, "wb") as out, open(infile, "rb") as src:
        while chunk := src.read(bufsize):
            read += len(chunk)
            kept = chunk.translate(None, delete) if delete else chunk
            out.write(kept)
            written += len(kept)
    return read, written


def _byte_size_arg(text: str) -> int:
    try:
        return parse_byte_size(text)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(str(exc)) from None


def main(argv: Sequence[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Text processor utility")
    parser.add_argument("infile", help="The input file.")
    parser.add_argument("outfile", help="The output file.")
    parser.add_argument(
        "-f", "--filter", default="",
        help="The output will only contain the specified characters",
    )
    parser.add_argument(
        "-b", "--buffer", type=_byte_size_arg, default=DEFAULT_BUFSIZE,
        help="The read/write buffer size",
    )
    args = parser.parse_args(argv)
    try:
        read, written = filter_file(args.infile, args.outfile, args.filter, args.buffer)
    except (OSError, ValueError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1
    print(f"{read} bytes read, {written} bytes written")
    return 0


if __name__ == "__main__":
    sys.exit(main())