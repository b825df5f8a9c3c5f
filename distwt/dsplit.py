"""Balanced distributed split of data items according to a binary predicate.

Items on which the predicate is false (class 0) are moved, in their global
order, to the first workers. Items on which it is true (class 1) go to the
remaining workers. The number of workers given to each class follows the
ratio of the two global class sizes.
"""

from __future__ import annotations

import math
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass
from typing import Any, TypeVar

from distwt.comm import ex_scan

__all__ = ["SplitLayout", "compute_split_layout", "dsplit"]

T = TypeVar("T")

_EMPTY = object()


@dataclass(frozen=True)
class SplitLayout:
    """How the items of both classes are spread over the workers.

    ``targets0`` workers receive class-0 items and ``targets1`` workers receive
    class-1 items. Each receives ``num_per_target[b]`` items of its class,
    except possibly the last worker of the class.
    """

    num0: int
    num1: int
    targets: int
    targets0: int
    targets1: int
    num_per_target: tuple[int, int]

    @property
    def counts(self) -> tuple[int, int]:
        return (self.num0, self.num1)


def _div_ceil(a: int, b: int) -> int:
    return -(-a // b)


def compute_split_layout(num0: int, num1: int, targets: int) -> SplitLayout:
    """Assign workers to both classes given the global class sizes."""
    if targets < 2:
        raise ValueError(f"a split needs at least 2 workers, got {targets}")
    if num0 < 0 or num1 < 0:
        raise ValueError("item counts must not be negative")

    num_total = num0 + num1
    if num_total == 0:
        targets0 = 0
    else:
        p0 = num0 / num_total
        ceil0 = math.ceil(p0 * targets)
        targets0 = min(ceil0, targets - 1) if num1 > 0 else ceil0
    targets1 = targets - targets0

    num_per_target = (
        _div_ceil(num0, targets0) if targets0 else 0,
        _div_ceil(num1, targets1) if targets1 else 0,
    )
    return SplitLayout(num0, num1, targets, targets0, targets1, num_per_target)


def _expected_size(layout: SplitLayout, rank: int) -> int:
    """Number of items worker ``rank`` waits for after the split."""
    b = int(rank >= layout.targets0)
    last = layout.targets - 1 if b else layout.targets0 - 1
    per = layout.num_per_target[b]
    if rank < last:
        return per
    if per == 0:
        return 0
    mod = layout.counts[b] % per
    return mod or per


def dsplit(
    worker_data: Iterable[Iterable[T]],
    predicate: Callable[[T], Any],
) -> tuple[list[list[T]], int]:
    """Split the items held by a group of workers by ``predicate``.

    ``worker_data`` holds one sequence of items per worker. Returns the new
    per-worker item lists and the rank of the first worker holding class-1
    items. Raises :class:`ValueError` for fewer than two workers, or when the
    balanced layout leaves a worker unable to receive the items it expects.
    """
    data = [list(items) for items in worker_data]
    targets = len(data)
    flags = [[int(bool(predicate(item))) for item in items] for items in data]
    local_counts = [[f.count(0), f.count(1)] for f in flags]

    num0 = sum(c[0] for c in local_counts)
    num1 = sum(c[1] for c in local_counts)
    layout = compute_split_layout(num0, num1, targets)
    offsets = ex_scan(local_counts) if local_counts else []

    out: list[list[Any]] = [
        [_EMPTY] * _expected_size(layout, rank) for rank in range(targets)
    ]
    received = [0] * targets
    first_target = (0, layout.targets0)

    for items, item_flags, offs in zip(data, flags, offsets):
        position = list(offs)
        for item, b in zip(items, item_flags):
            per = layout.num_per_target[b]
            block, local_index = divmod(position[b], per)
            position[b] += 1
            rank = first_target[b] + block
            if rank >= targets or local_index >= len(out[rank]):
                raise ValueError(
                    f"item {position[b] - 1} of class {b} does not fit "
                    f"into the layout of worker {rank}"
                )
            out[rank][local_index] = item
            received[rank] += 1

    for rank, (buf, got) in enumerate(zip(out, received)):
        if got != len(buf):
            raise ValueError(
                f"worker {rank} expects {len(buf)} items but receives {got}"
            )
    return out, layout.targets0