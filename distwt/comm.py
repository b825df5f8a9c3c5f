"""Per-worker bookkeeping and collective reductions of a group of workers.

A :class:`WorkerContext` describes one worker of a group: its rank, how
workers are laid out on nodes, the traffic it caused and the memory it has
allocated. The module-level collectives compute what every worker receives
from an all-reduce or a prefix scan over the given per-worker vectors.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass, fields
from typing import Any

__all__ = [
    "Traffic",
    "WorkerContext",
    "integer_log2_ceil",
    "elementwise_sum",
    "elementwise_max",
    "all_reduce",
    "scan",
    "ex_scan",
    "gather_traffic",
    "gather_max_alloc",
]

# size of the count field that accompanies every collective message
_INT_SIZE = 4


@dataclass
class Traffic:
    """Bytes sent and received, split into remote, estimated and shared-memory."""

    tx: int = 0
    rx: int = 0
    tx_est: int = 0
    rx_est: int = 0
    tx_shm: int = 0
    rx_shm: int = 0

    def __add__(self, other: "Traffic") -> "Traffic":
        if not isinstance(other, Traffic):
            return NotImplemented
        return Traffic(
            *(getattr(self, f.name) + getattr(other, f.name) for f in fields(self))
        )


def integer_log2_ceil(value: int) -> int:
    """Smallest ``k`` with ``2**k >= value``; zero for values up to one."""
    if value < 0:
        raise ValueError("value must not be negative")
    if value <= 1:
        return 0
    return (value - 1).bit_length()


class WorkerContext:
    """One worker of a group, tracking its traffic and memory allocation."""

    def __init__(self, rank: int, num_workers: int, workers_per_node: int = 1) -> None:
        if num_workers <= 0:
            raise ValueError("num_workers must be positive")
        if workers_per_node <= 0:
            raise ValueError("workers_per_node must be positive")
        if not 0 <= rank < num_workers:
            raise ValueError(f"rank {rank} outside of [0, {num_workers})")
        self.rank = rank
        self.num_workers = num_workers
        self.workers_per_node = workers_per_node
        self.traffic = Traffic()
        self.alloc_current = 0
        self.alloc_max = 0

    def __repr__(self) -> str:
        return (
            f"WorkerContext(rank={self.rank}, num_workers={self.num_workers}, "
            f"workers_per_node={self.workers_per_node})"
        )

    def num_nodes(self) -> int:
        return self.num_workers // self.workers_per_node

    def node_rank(self, worker: int | None = None) -> int:
        """Node that ``worker`` (by default this worker) runs on."""
        if worker is None:
            worker = self.rank
        return worker // self.workers_per_node

    def same_node_as(self, other: int) -> bool:
        return self.node_rank() == self.node_rank(other)

    def is_master(self) -> bool:
        return self.rank == 0

    def count_tx(self, target: int, nbytes: int) -> None:
        """Account for ``nbytes`` sent to ``target``."""
        if self.same_node_as(target):
            self.traffic.tx_shm += nbytes
        else:
            self.traffic.tx += nbytes

    def count_rx(self, source: int, nbytes: int) -> None:
        """Account for ``nbytes`` received from ``source``."""
        if self.same_node_as(source):
            self.traffic.rx_shm += nbytes
        else:
            self.traffic.rx += nbytes

    def _count_tx_est(self, target: int, nbytes: int) -> None:
        if not self.same_node_as(target):
            self.traffic.tx_est += nbytes

    def _count_rx_est(self, source: int, nbytes: int) -> None:
        if not self.same_node_as(source):
            self.traffic.rx_est += nbytes

    def simulate_allreduce_traffic(self, msg_size: int) -> None:
        """Estimate the traffic of an all-reduce along a merge tree."""
        logp = integer_log2_ceil(self.num_workers)
        rank = self.rank
        for level in range(logp):
            q = 1 << level
            v = rank // q
            if v % 2 == 0 and level + 1 < logp:
                # reduction towards, and broadcast from, the right sibling
                self._count_tx_est(rank + q, msg_size)
                self._count_rx_est(rank + q, msg_size)
            if level > 0:
                q_prev = 1 << (level - 1)
                # reduction from, and broadcast to, the left sibling
                self._count_rx_est(rank - q_prev, msg_size)
                self._count_tx_est(rank - q_prev, msg_size)

    def simulate_scan_traffic(self, msg_size: int) -> None:
        """Estimate the traffic of a prefix scan along a merge tree."""
        logp = integer_log2_ceil(self.num_workers)
        rank = self.rank
        for level in range(logp):
            q = 1 << level
            v = rank // q
            if v % 2 == 0 and level + 1 < logp:
                # bottom-up: send to the right sibling
                self._count_tx_est(rank + q, msg_size)
                if rank > 0:
                    # top-down: exchange with the left sibling
                    self._count_tx_est(rank - q, msg_size)
            if level > 0:
                q_prev = 1 << (level - 1)
                # bottom-up: receive from the left sibling of the previous level
                self._count_rx_est(rank - q_prev, msg_size)
                if v % 2 == 0:
                    # top-down: send to the right sibling of the previous level
                    self._count_tx_est(rank + q_prev, msg_size)

    def record_collective(self, num_items: int, item_size: int, *, scan: bool = False) -> None:
        """Estimate traffic for a collective over ``num_items`` items."""
        msg_size = _INT_SIZE + num_items * item_size
        if scan:
            self.simulate_scan_traffic(msg_size)
        else:
            self.simulate_allreduce_traffic(msg_size)

    def track_alloc(self, size: int) -> None:
        self.alloc_current += size
        self.alloc_max = max(self.alloc_max, self.alloc_current)

    def track_free(self, size: int) -> None:
        if size > self.alloc_current:
            raise ValueError(
                f"freeing {size} bytes but only {self.alloc_current} are allocated"
            )
        self.alloc_current -= size


def _check_lengths(a: Sequence[Any], b: Sequence[Any]) -> None:
    if len(a) != len(b):
        raise ValueError(f"vector lengths differ: {len(a)} and {len(b)}")


def elementwise_sum(a: Sequence[Any], b: Sequence[Any]) -> list[Any]:
    """Component-wise sum of two equally long vectors."""
    _check_lengths(a, b)
    return [x + y for x, y in zip(a, b)]


def elementwise_max(a: Sequence[Any], b: Sequence[Any]) -> list[Any]:
    """Component-wise maximum of two equally long vectors."""
    _check_lengths(a, b)
    return [max(x, y) for x, y in zip(a, b)]


Reducer = Callable[[Sequence[Any], Sequence[Any]], list[Any]]


def all_reduce(
    vectors: Sequence[Sequence[Any]], op: Reducer = elementwise_sum
) -> list[Any]:
    """Combine the vectors of all workers; every worker receives the result."""
    if not vectors:
        raise ValueError("all_reduce needs at least one vector")
    result = list(vectors[0])
    for vector in vectors[1:]:
        result = op(result, vector)
    return result


def scan(vectors: Sequence[Sequence[Any]]) -> list[list[Any]]:
    """Inclusive prefix sums: worker ``i`` receives the sum over workers ``0..i``."""
    results: list[list[Any]] = []
    running: list[Any] | None = None
    for vector in vectors:
        running = list(vector) if running is None else elementwise_sum(running, vector)
        results.append(running)
    return results


def ex_scan(vectors: Sequence[Sequence[Any]]) -> list[list[Any]]:
    """Exclusive prefix sums: worker ``i`` receives the sum over workers ``0..i-1``.

    The first worker receives zeros.
    """
    if not vectors:
        return []
    running = [type(x)(0) for x in vectors[0]]
    results: list[list[Any]] = []
    for vector in vectors:
        _check_lengths(running, vector)
        results.append(running)
        running = elementwise_sum(running, vector)
    return results


def gather_traffic(contexts: Iterable[WorkerContext]) -> Traffic:
    """Total traffic over all workers."""
    total = Traffic()
    for ctx in contexts:
        total = total + ctx.traffic
    return total


def gather_max_alloc(contexts: Iterable[WorkerContext]) -> int:
    """Sum of the workers' peak allocations."""
    return sum(ctx.alloc_max for ctx in contexts)