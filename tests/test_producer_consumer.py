import threading

import pytest

from vzporedno.producer_consumer import (
    ClosedError,
    Product,
    RingBuffer,
    create_product,
    run,
)


def test_create_product_number():
    assert create_product(2, 3) == Product(23)


def test_ring_buffer_is_fifo():
    buffer = RingBuffer(3)
    for item in ("a", "b", "c"):
        buffer.put(item)
    assert [buffer.get() for _ in range(3)] == ["a", "b", "c"]


def test_ring_buffer_rejects_zero_capacity():
    with pytest.raises(ValueError):
        RingBuffer(0)


def test_put_after_close_raises():
    buffer = RingBuffer(2)
    buffer.close()
    with pytest.raises(ClosedError):
        buffer.put(1)


def test_close_drains_then_raises():
    buffer = RingBuffer(2)
    buffer.put(7)
    buffer.close()
    assert buffer.get() == 7
    with pytest.raises(ClosedError):
        buffer.get()


def test_put_blocks_while_full():
    buffer = RingBuffer(1)
    buffer.put("first")
    worker = threading.Thread(target=buffer.put, args=("second",))
    worker.start()
    worker.join(0.1)
    assert worker.is_alive()
    assert len(buffer) == 1
    assert buffer.get() == "first"
    worker.join(2)
    assert not worker.is_alive()
    assert buffer.get() == "second"


@pytest.mark.parametrize("use_queue", [False, True])
@pytest.mark.parametrize("producers,consumers,size", [(1, 1, 1), (3, 2, 2), (2, 4, 5)])
def test_every_product_consumed_once(use_queue, producers, consumers, size):
    result = run(producers, consumers, size, 5, use_queue)
    expected = sorted(create_product(p, t).id
                      for p in range(1, producers + 1) for t in range(1, 6))
    assert sorted(pid for _, pid in result.consumed) == expected
    assert all(1 <= cid <= consumers for cid, _ in result.consumed)


def test_producer_order_is_kept_with_one_consumer():
    result = run(1, 1, 2, 5)
    assert [pid for _, pid in result.consumed] == [create_product(1, t).id for t in range(1, 6)]


def test_events_use_source_labels():
    result = run(1, 1, 1, 2)
    assert "P    1 11" in result.events
    assert "P->b 1 11" in result.events
    assert "\tb->C 1 11" in result.events
    assert "\tC    1 12" in result.events


def test_handover_comes_before_consumption():
    result = run(2, 2, 1, 3, use_queue=True)
    for _, pid in result.consumed:
        put = next(i for i, e in enumerate(result.events) if e.startswith("P->b") and e.endswith(f" {pid}"))
        taken = next(i for i, e in enumerate(result.events) if e.startswith("\tb->C") and e.endswith(f" {pid}"))
        assert put < taken


def test_run_rejects_bad_buffer():
    with pytest.raises(ValueError):
        run(1, 1, 0, 5)