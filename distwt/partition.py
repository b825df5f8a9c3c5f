"""Reading one worker's share of a binary input file of fixed-width symbols."""

from __future__ import annotations

import os
import struct
from collections.abc import Iterator
from pathlib import Path

__all__ = ["FilePartitionReader", "SYMBOL_WIDTHS"]

# supported symbol widths in bytes: 8, 16, 32, 40 and 64 bit
SYMBOL_WIDTHS = (1, 2, 4, 5, 8)

_STRUCT_FORMATS = {2: "<H", 4: "<I", 8: "<Q"}
_INT_MAX = (1 << 31) - 1
_DEFAULT_BUFSIZE = 16 * 1024 * 1024


def _div_ceil(a: int, b: int) -> int:
    return -(-a // b)


class FilePartitionReader:
    """Gives one worker of a group access to its contiguous part of a file.

    The file is read as little-endian unsigned symbols of ``symbol_width``
    bytes. Trailing bytes that do not form a whole symbol are ignored, and
    ``prefix`` (in bytes) optionally limits how much of the file is used.
    The symbols are split into equally sized parts, one per worker.
    """

    def __init__(
        self,
        filename: str | os.PathLike[str],
        rank: int,
        num_workers: int,
        symbol_width: int = 1,
        prefix: int | None = None,
    ) -> None:
        if symbol_width not in SYMBOL_WIDTHS:
            raise ValueError(
                f"unsupported symbol width {symbol_width}; expected one of {SYMBOL_WIDTHS}"
            )
        if num_workers <= 0:
            raise ValueError("num_workers must be positive")
        if not 0 <= rank < num_workers:
            raise ValueError(f"rank {rank} outside of [0, {num_workers})")
        if prefix is not None and prefix < 0:
            raise ValueError("prefix must not be negative")

        self.filename = os.fspath(filename)
        self.rank = rank
        self.num_workers = num_workers
        self.symbol_width = symbol_width

        w = symbol_width
        filesize = os.path.getsize(self.filename)
        mod = filesize % w
        if mod and rank == 0:
            print(
                f"Chopping off {mod} bytes from input file to fit symbols of "
                f"width {w} ({filesize} % {w} = {mod})"
            )

        self.total_size = filesize // w
        if prefix is not None:
            self.total_size = min(self.total_size, prefix // w)
        self.size_per_worker = _div_ceil(self.total_size, num_workers)
        self.local_offset = self.size_per_worker * rank
        local_end = min(self.local_offset + self.size_per_worker, self.total_size)
        self.local_num = max(0, local_end - self.local_offset)

        self.extracted = False
        self.local_filename: str | None = None
        self._buffer: list[int] | None = None

    @property
    def buffered(self) -> bool:
        return self._buffer is not None

    @staticmethod
    def _check_bufsize(bufsize: int) -> int:
        if bufsize <= 0:
            raise ValueError("bufsize must be positive")
        return min(bufsize, _INT_MAX)

    def _read_chunks(self, bufsize: int) -> Iterator[bytes]:
        """Yield the raw bytes of the local part, ``bufsize`` symbols at a time."""
        w = self.symbol_width
        if self.extracted:
            path, start = self.local_filename, 0
        else:
            path, start = self.filename, self.local_offset * w
        with open(path, "rb") as f:
            f.seek(start)
            left = self.local_num
            while left:
                num = min(bufsize, left)
                chunk = f.read(num * w)
                if len(chunk) != num * w:
                    raise EOFError(f"{path} ended before the local part was read")
                yield chunk
                left -= num

    def _decode(self, chunk: bytes) -> Iterator[int]:
        w = self.symbol_width
        if w == 1:
            yield from chunk
        elif w in _STRUCT_FORMATS:
            for (value,) in struct.iter_unpack(_STRUCT_FORMATS[w], chunk):
                yield value
        else:
            view = memoryview(chunk)
            for start in range(0, len(chunk), w):
                yield int.from_bytes(view[start:start + w], "little")

    def extract_local(
        self, local_filename: str | os.PathLike[str], bufsize: int = _DEFAULT_BUFSIZE
    ) -> bool:
        """Copy the local part into ``<local_filename>.part.<rank>``.

        Later reads use the copy. Returns False if the part was already extracted.
        """
        if self.extracted:
            return False
        bufsize = self._check_bufsize(bufsize)
        target = f"{os.fspath(local_filename)}.part.{self.rank}"
        with open(target, "wb") as out:
            for chunk in self._read_chunks(bufsize):
                out.write(chunk)
        self.local_filename = target
        self.extracted = True
        return True

    def iter_local(self, bufsize: int = _DEFAULT_BUFSIZE) -> Iterator[int]:
        """Yield the symbols of the local part in order."""
        if self._buffer is not None:
            yield from self._buffer
            return
        bufsize = self._check_bufsize(bufsize)
        for chunk in self._read_chunks(bufsize):
            yield from self._decode(chunk)

    def buffer(self, bufsize: int = _DEFAULT_BUFSIZE) -> None:
        """Keep the local part in memory for later reads."""
        if self._buffer is None:
            self._buffer = list(self.iter_local(bufsize))

    def free(self) -> None:
        """Drop the in-memory copy of the local part."""
        self._buffer = None

    def __repr__(self) -> str:
        return (
            f"FilePartitionReader({self.filename!r}, rank={self.rank}, "
            f"num_workers={self.num_workers}, symbol_width={self.symbol_width})"
        )


def _local_path(reader: FilePartitionReader) -> Path | None:
    return Path(reader.local_filename) if reader.local_filename else None