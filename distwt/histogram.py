"""Symbol histograms combined over a group of workers."""

from __future__ import annotations

from collections.abc import Hashable, Iterable, Iterator, Mapping, MutableMapping, Sequence
from operator import itemgetter
from typing import Any

from distwt.comm import integer_log2_ceil
from distwt.uint40 import Index

__all__ = ["Histogram", "merge_counts", "extract_map"]

_DEFAULT_BUFSIZE = 16 * 1024 * 1024


def extract_map(mapping: Mapping[Any, Any]) -> tuple[list[Any], list[Any]]:
    """Split a mapping into a list of keys and a list of matching values."""
    return list(mapping.keys()), list(mapping.values())


def merge_counts(
    target: MutableMapping[Any, int],
    symbols: Sequence[Any],
    counts: Sequence[int],
) -> MutableMapping[Any, int]:
    """Add ``counts[i]`` occurrences of ``symbols[i]`` into ``target``."""
    if len(symbols) != len(counts):
        raise ValueError(
            f"{len(symbols)} symbols but {len(counts)} counts"
        )
    for symbol, count in zip(symbols, counts):
        target[symbol] = target.get(symbol, 0) + count
    return target


def _local_counts(symbols: Iterable[Hashable]) -> dict[Any, int]:
    counts: dict[Any, int] = {}
    for symbol in symbols:
        counts[symbol] = counts.get(symbol, 0) + 1
    return counts


def _tree_all_reduce(maps: list[dict[Any, int]]) -> list[dict[Any, int]]:
    """Combine per-worker counts along a tree so that every worker has all."""
    p = len(maps)
    last = p - 1
    logp = integer_log2_ceil(p)

    def roles(lv: int) -> Iterator[tuple[int, bool, int]]:
        # yields (rank, odd, partner) for every worker active on level lv
        d = 1 << lv
        mask = d - 1
        for rank in range(p):
            if lv == 0 or rank == last or (rank & mask) == mask:
                lv_rank = rank >> lv
                if lv_rank & 1:
                    yield rank, True, (lv_rank - 1) * d + mask
                else:
                    yield rank, False, min(rank + d, last)

    def deliver(outbox: dict[tuple[int, int], Any], src: int, dst: int) -> Any:
        try:
            return outbox.pop((src, dst))
        except KeyError:
            raise RuntimeError(
                f"worker {dst} expects a message from {src} that was never sent"
            ) from None

    # bottom-up: accumulate towards the last worker
    for lv in range(logp):
        outbox: dict[tuple[int, int], Any] = {}
        receivers = []
        for rank, odd, partner in roles(lv):
            if odd:
                receivers.append((rank, partner))
            elif partner != rank:
                outbox[(rank, partner)] = extract_map(maps[rank])
        for rank, source in receivers:
            merge_counts(maps[rank], *deliver(outbox, source, rank))
        if outbox:
            raise RuntimeError(f"unreceived messages on level {lv}")

    # top-down: broadcast the complete counts back
    for lv in reversed(range(logp)):
        outbox = {}
        receivers = []
        for rank, odd, partner in roles(lv):
            if odd:
                outbox[(rank, partner)] = extract_map(maps[rank])
            elif partner != rank:
                receivers.append((rank, partner))
        for rank, source in receivers:
            symbols, counts = deliver(outbox, source, rank)
            maps[rank] = dict(zip(symbols, counts))
        if outbox:
            raise RuntimeError(f"unreceived messages on level {lv}")

    return maps


class Histogram:
    """Occurrence counts of symbols, sorted by symbol."""

    def __init__(self, entries: Iterable[tuple[Any, int]] = ()) -> None:
        merged: dict[Any, int] = {}
        for symbol, count in entries:
            if symbol in merged:
                raise ValueError(f"duplicate symbol {symbol!r}")
            count = int(count)
            if count < 0:
                raise ValueError(f"negative count {count} for {symbol!r}")
            merged[symbol] = int(Index(count))
        self.entries: list[tuple[Any, int]] = sorted(
            merged.items(), key=itemgetter(0)
        )

    @classmethod
    def from_partitions(cls, partitions: Iterable[Iterable[Hashable]]) -> "Histogram":
        """Count the symbols held by a group of workers, one iterable each."""
        maps = [_local_counts(part) for part in partitions]
        if not maps:
            raise ValueError("at least one partition is required")
        combined = _tree_all_reduce(maps)
        return cls(combined[0].items())

    @classmethod
    def from_readers(cls, readers: Iterable[Any], bufsize: int = _DEFAULT_BUFSIZE) -> "Histogram":
        """Count the symbols of the local parts read by partition readers."""
        return cls.from_partitions(reader.iter_local(bufsize) for reader in readers)

    @property
    def symbols(self) -> list[Any]:
        return [symbol for symbol, _ in self.entries]

    def __len__(self) -> int:
        return len(self.entries)

    def __iter__(self) -> Iterator[tuple[Any, int]]:
        return iter(self.entries)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Histogram):
            return NotImplemented
        return self.entries == other.entries

    def __repr__(self) -> str:
        return f"Histogram({self.entries!r})"