import pytest
from hypothesis import given
from hypothesis import strategies as st

from distwt.comm import (
    Traffic,
    WorkerContext,
    all_reduce,
    elementwise_max,
    elementwise_sum,
    ex_scan,
    gather_max_alloc,
    gather_traffic,
    integer_log2_ceil,
    scan,
)
from distwt.uint40 import UInt40


def test_traffic_add_sums_fields():
    a = Traffic(tx=1, rx=2, tx_est=3, rx_est=4, tx_shm=5, rx_shm=6)
    b = Traffic(tx=10, rx=20, tx_est=30, rx_est=40, tx_shm=50, rx_shm=60)
    assert a + b == Traffic(11, 22, 33, 44, 55, 66)


def test_traffic_add_zero_is_identity():
    a = Traffic(tx=7, rx_shm=3)
    assert a + Traffic() == a


def test_integer_log2_ceil_of_one():
    assert integer_log2_ceil(1) == 0


@given(st.integers(min_value=2, max_value=1 << 40))
def test_integer_log2_ceil_bounds(n):
    k = integer_log2_ceil(n)
    assert (1 << (k - 1)) < n <= (1 << k)


def test_integer_log2_ceil_negative():
    with pytest.raises(ValueError):
        integer_log2_ceil(-1)


def test_node_layout():
    ctx = WorkerContext(rank=5, num_workers=8, workers_per_node=4)
    assert ctx.num_nodes() == 2
    assert ctx.node_rank() == ctx.node_rank(4)
    assert ctx.same_node_as(7)
    assert not ctx.same_node_as(3)
    assert not ctx.is_master()
    assert WorkerContext(0, 8, 4).is_master()


@pytest.mark.parametrize(
    "args", [(0, 0, 1), (-1, 4, 1), (4, 4, 1), (0, 4, 0)]
)
def test_invalid_context(args):
    with pytest.raises(ValueError):
        WorkerContext(*args)


def test_count_tx_rx_local_and_remote():
    ctx = WorkerContext(rank=0, num_workers=4, workers_per_node=2)
    ctx.count_tx(1, 100)
    ctx.count_tx(2, 30)
    ctx.count_rx(1, 5)
    ctx.count_rx(3, 8)
    assert ctx.traffic.tx_shm == 100
    assert ctx.traffic.tx == 30
    assert ctx.traffic.rx_shm == 5
    assert ctx.traffic.rx == 8


def test_single_worker_collectives_cause_no_traffic():
    ctx = WorkerContext(0, 1)
    ctx.simulate_allreduce_traffic(64)
    ctx.simulate_scan_traffic(64)
    assert ctx.traffic == Traffic()


@pytest.mark.parametrize("p", [2, 3, 4, 7, 8, 16])
def test_allreduce_traffic_symmetric_per_worker(p):
    for rank in range(p):
        ctx = WorkerContext(rank, p, 1)
        ctx.simulate_allreduce_traffic(12)
        assert ctx.traffic.tx_est == ctx.traffic.rx_est
        assert ctx.traffic.tx_est % 12 == 0
        assert ctx.traffic.tx == 0 and ctx.traffic.tx_shm == 0


def test_allreduce_traffic_scales_with_message_size():
    a = WorkerContext(0, 8, 1)
    b = WorkerContext(0, 8, 1)
    a.simulate_allreduce_traffic(10)
    b.simulate_allreduce_traffic(20)
    assert b.traffic.tx_est == 2 * a.traffic.tx_est
    assert a.traffic.tx_est > 0


def test_record_collective_matches_simulation():
    a = WorkerContext(2, 8, 1)
    b = WorkerContext(2, 8, 1)
    a.record_collective(3, 8, scan=True)
    b.simulate_scan_traffic(4 + 3 * 8)
    assert a.traffic == b.traffic


def test_track_alloc_and_free():
    ctx = WorkerContext(0, 1)
    ctx.track_alloc(100)
    ctx.track_alloc(50)
    ctx.track_free(120)
    ctx.track_alloc(10)
    assert ctx.alloc_current == 40
    assert ctx.alloc_max == 150


def test_track_free_too_much():
    ctx = WorkerContext(0, 1)
    ctx.track_alloc(10)
    with pytest.raises(ValueError):
        ctx.track_free(11)


def test_gather_max_alloc_sums_peaks():
    contexts = [WorkerContext(r, 3) for r in range(3)]
    for i, ctx in enumerate(contexts):
        ctx.track_alloc(i * 10)
        ctx.track_free(i * 10)
    assert gather_max_alloc(contexts) == sum(c.alloc_max for c in contexts)
    assert gather_max_alloc(contexts) == 30


def test_elementwise_ops():
    assert elementwise_sum([1, 2, 3], [4, 5, 6]) == [5, 7, 9]
    assert elementwise_max([1, 9, 3], [4, 5, 6]) == [4, 9, 6]


@pytest.mark.parametrize("op", [elementwise_sum, elementwise_max])
def test_elementwise_length_mismatch(op):
    with pytest.raises(ValueError):
        op([1, 2], [1])


def test_all_reduce_empty():
    with pytest.raises(ValueError):
        all_reduce([])


vectors_strategy = st.integers(min_value=1, max_value=5).flatmap(
    lambda n: st.lists(
        st.lists(st.integers(min_value=0, max_value=1000), min_size=n, max_size=n),
        min_size=1,
        max_size=8,
    )
)


@given(vectors_strategy)
def test_scan_last_equals_all_reduce(vectors):
    assert scan(vectors)[-1] == all_reduce(vectors)


@given(vectors_strategy)
def test_ex_scan_plus_own_equals_scan(vectors):
    inclusive = scan(vectors)
    exclusive = ex_scan(vectors)
    assert exclusive[0] == [0] * len(vectors[0])
    for ex, own, inc in zip(exclusive, vectors, inclusive):
        assert elementwise_sum(ex, own) == inc


@given(vectors_strategy)
def test_all_reduce_max_bounds_every_vector(vectors):
    result = all_reduce(vectors, elementwise_max)
    for vector in vectors:
        assert all(r >= v for r, v in zip(result, vector))
    assert all(r in column for r, column in zip(result, zip(*vectors)))


def test_uint40_reduction_wraps():
    vectors = [[UInt40.maximum()], [UInt40(1)]]
    assert all_reduce(vectors) == [UInt40(0)]
    assert ex_scan(vectors)[0] == [UInt40(0)]
    assert all_reduce(vectors, elementwise_max) == [UInt40.maximum()]