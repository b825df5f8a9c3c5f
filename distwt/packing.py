"""Packing of bit sequences into 64-bit words and writing level bit vectors."""

from __future__ import annotations

import os
from collections.abc import Iterable, Sequence
from pathlib import Path

__all__ = [
    "WORD_BITS",
    "required_bufsize",
    "pack_bits",
    "unpack_bits",
    "level_filename",
    "encode_level",
    "save_levels",
]

WORD_BITS = 64


def required_bufsize(num_items: int, items_per_word: int = WORD_BITS) -> int:
    """Number of words needed to hold ``num_items`` items."""
    if items_per_word <= 0:
        raise ValueError("items_per_word must be positive")
    if num_items < 0:
        raise ValueError("num_items must not be negative")
    return -(-num_items // items_per_word)


def pack_bits(bits: Sequence[bool], offset: int, num: int) -> list[int]:
    """Pack ``bits[offset:offset+num]`` into 64-bit words.

    Within a word the first bit goes to the least significant position.
    """
    if offset < 0 or num < 0 or offset + num > len(bits):
        raise IndexError(
            f"range [{offset}, {offset + num}) exceeds {len(bits)} bits"
        )
    words = []
    for start in range(offset, offset + num, WORD_BITS):
        stop = min(start + WORD_BITS, offset + num)
        word = 0
        for pos, bit in enumerate(bits[start:stop]):
            if bit:
                word |= 1 << pos
        words.append(word)
    return words


def unpack_bits(words: Sequence[int], num: int) -> list[bool]:
    """Unpack ``num`` bits from words produced by :func:`pack_bits`."""
    if num < 0:
        raise ValueError("num must not be negative")
    if required_bufsize(num) > len(words):
        raise ValueError(f"{len(words)} words cannot hold {num} bits")
    return [
        bool((words[i // WORD_BITS] >> (i % WORD_BITS)) & 1) for i in range(num)
    ]


def level_filename(output: str, rank: int, extension: str) -> str:
    """File name of one worker's part of a level: output, 4-digit rank, extension."""
    return f"{output}{rank:04d}.{extension}"


def encode_level(bits: Iterable[bool]) -> bytes:
    """Encode a level bit vector as little-endian 64-bit words.

    The first bit of each group of 64 lands in the most significant position;
    a final partial word is padded with zeros.
    """
    out = bytearray()
    word = 0
    count = 0
    for bit in bits:
        if bit:
            word |= 1 << (WORD_BITS - 1 - count)
        count += 1
        if count == WORD_BITS:
            out += word.to_bytes(8, "little")
            word = 0
            count = 0
    if count:
        out += word.to_bytes(8, "little")
    return bytes(out)


def save_levels(
    output: str | os.PathLike[str],
    rank: int,
    levels: Sequence[Sequence[bool]],
    extensions: Sequence[str],
) -> list[Path]:
    """Write each level bit vector of this worker to its own file."""
    if len(levels) != len(extensions):
        raise ValueError(
            f"{len(levels)} levels but {len(extensions)} extensions"
        )
    paths = []
    for bits, extension in zip(levels, extensions):
        path = Path(level_filename(os.fspath(output), rank, extension))
        path.write_bytes(encode_level(bits))
        paths.append(path)
    return paths