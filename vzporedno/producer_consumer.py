"""Producers and consumers passing products through a bounded buffer."""

from __future__ import annotations

import argparse
import queue
import threading
from collections import deque
from dataclasses import dataclass
from typing import Generic, TypeVar

T = TypeVar("T")


@dataclass(frozen=True)
class Product:
    """A product identified by its number."""

    id: int


class ClosedError(Exception):
    """Raised when a closed buffer or channel is used."""


class RingBuffer(Generic[T]):
    """A bounded FIFO buffer guarded by a lock and two condition variables.

    put blocks while the buffer is full and get while it is empty. After
    close, put raises ClosedError and get drains what is left, then raises.
    """

    def __init__(self, capacity: int) -> None:
        if capacity < 1:
            raise ValueError("buffer capacity must be at least 1")
        self.capacity = capacity
        self._items: deque[T] = deque()
        self._lock = threading.Lock()
        self._not_full = threading.Condition(self._lock)
        self._not_empty = threading.Condition(self._lock)
        self._closed = False

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)

    def put(self, item: T) -> None:
        """Add an item, waiting for room."""
        with self._not_full:
            self._not_full.wait_for(lambda: self._closed or len(self._items) < self.capacity)
            if self._closed:
                raise ClosedError("put on a closed buffer")
            self._items.append(item)
            self._not_empty.notify()

    def get(self) -> T:
        """Remove and return the oldest item, waiting for one to arrive."""
        with self._not_empty:
            self._not_empty.wait_for(lambda: self._closed or bool(self._items))
            if not self._items:
                raise ClosedError("get from a closed, empty buffer")
            item = self._items.popleft()
            self._not_full.notify()
            return item

    def close(self) -> None:
        """Refuse further items and wake everyone waiting."""
        with self._lock:
            self._closed = True
            self._not_full.notify_all()
            self._not_empty.notify_all()


def create_product(producer_id: int, task_id: int) -> Product:
    """Make the product numbered 10 * producer_id + task_id."""
    return Product(10 * producer_id + task_id)


@dataclass(frozen=True)
class Production:
    """The log of a run and which consumer got which product."""

    events: list[str]
    consumed: list[tuple[int, int]]


def _run(producers: int, consumers: int, buffer_size: int, products: int,
         use_queue: bool, echo: bool) -> Production:
    if producers < 0 or consumers < 1 or products < 0:
        raise ValueError("need at least one consumer and no negative counts")
    if buffer_size < 1:
        raise ValueError("buffer size must be at least 1")

    events: list[str] = []
    consumed: list[tuple[int, int]] = []
    log_lock = threading.Lock()

    def say(*words: object) -> None:
        line = " ".join(str(word) for word in words)
        with log_lock:
            events.append(line)
        if echo:
            print(line, flush=True)

    ring: RingBuffer[Product] = RingBuffer(buffer_size)
    channel: queue.Queue[Product | None] = queue.Queue(maxsize=buffer_size)

    def producer(ident: int) -> None:
        for task in range(1, products + 1):
            product = create_product(ident, task)
            say("P   ", ident, product.id)
            say("P->b", ident, product.id)
            if use_queue:
                channel.put(product)
            else:
                ring.put(product)

    def take(ident: int, product: Product) -> None:
        say("\tb->C", ident, product.id)
        with log_lock:
            consumed.append((ident, product.id))
        say("\tC   ", ident, product.id)

    def consumer(ident: int) -> None:
        if use_queue:
            for product in iter(channel.get, None):
                take(ident, product)
            return
        while True:
            try:
                product = ring.get()
            except ClosedError:
                return
            take(ident, product)

    producer_threads = [threading.Thread(target=producer, args=(i,))
                        for i in range(1, producers + 1)]
    consumer_threads = [threading.Thread(target=consumer, args=(i,))
                        for i in range(1, consumers + 1)]
    for thread in producer_threads + consumer_threads:
        thread.start()
    for thread in producer_threads:
        thread.join()
    if use_queue:
        for _ in consumer_threads:
            channel.put(None)
    else:
        ring.close()
    for thread in consumer_threads:
        thread.join()
    return Production(list(events), list(consumed))


def run(producers: int = 1, consumers: int = 1, buffer_size: int = 1,
        products: int = 5, use_queue: bool = False) -> Production:
    """Let each producer make products items; consumers take them until all are used.

    Without use_queue the buffer is a RingBuffer with condition variables,
    otherwise a bounded queue.
    """
    return _run(producers, consumers, buffer_size, products, use_queue, echo=False)


def main(argv: list[str] | None = None) -> int:
    """Run the producer-consumer problem from the command line."""
    parser = argparse.ArgumentParser(description="Producers and consumers.")
    parser.add_argument("-p", dest="producers", type=int, default=1, help="# of producers")
    parser.add_argument("-c", dest="consumers", type=int, default=1, help="# of consumers")
    parser.add_argument("-b", dest="buffer_size", type=int, default=1, help="buffer size")
    parser.add_argument("-n", dest="products", type=int, default=5,
                        help="number of products per producer")
    parser.add_argument("--queue", dest="use_queue", action="store_true",
                        help="use a bounded queue instead of the ring buffer")
    args = parser.parse_args(argv)

    _run(args.producers, args.consumers, args.buffer_size, args.products,
         args.use_queue, echo=True)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())