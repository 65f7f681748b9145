"""Monte Carlo estimation of pi with different ways of sharing the work between threads."""

from __future__ import annotations

import argparse
import math
import queue
import random
import threading
import time
from dataclasses import dataclass
from enum import Enum
from functools import reduce
from typing import Callable, Protocol


class _RandomSource(Protocol):
    def random(self) -> float: ...


@dataclass(frozen=True)
class Experiment:
    """The outcome of a number of shots at the unit square."""

    shots: int = 0
    hits: int = 0

    @property
    def value(self) -> float:
        """The estimate of pi, or NaN when nothing was shot."""
        if self.shots == 0:
            return math.nan
        return 4.0 * self.hits / self.shots

    def combine(self, other: "Experiment") -> "Experiment":
        """Return the experiment that holds the shots of both."""
        return Experiment(self.shots + other.shots, self.hits + other.hits)

    def __str__(self) -> str:
        return f"{{{self.shots} {self.hits} {self.value}}}"


class Strategy(Enum):
    """How the workers share the counters and the random generator."""

    SEQUENTIAL = "sequential"    # one worker does its share alone
    RACE = "race"                # shared counters without protection
    SPIN = "spin"                # shared counters behind a non-atomic busy-wait flag
    TURNS = "turns"              # workers take strict turns updating the counters
    MUTEX = "mutex"              # a mutex around every update
    ATOMIC = "atomic"            # atomic counters
    LOCAL_MUTEX = "local-mutex"  # local counting, one protected merge per worker
    SLOTS = "slots"              # each worker updates its own result slot
    LOCAL_SLOTS = "local-slots"  # local counting, stored in the worker's slot at the end
    CHANNEL = "channel"          # results are sent over a queue
    GLOBAL_RNG = "global-rng"    # one process-wide generator, no control over the seed
    SHARED_RNG = "shared-rng"    # one seeded generator shared behind a mutex
    SEEDED = "seeded"            # a generator per worker, seeded with seed + 100 * id


def _hit(rng: _RandomSource) -> bool:
    x = rng.random()
    y = rng.random()
    return x * x + y * y < 1


def sample(iterations: int, rng: _RandomSource) -> Experiment:
    """Shoot the given number of points drawn from rng and count those inside the circle."""
    hits = sum(1 for _ in range(iterations) if _hit(rng))
    return Experiment(iterations, hits)


def _worker_rng(seed: int | None, worker: int) -> random.Random:
    if seed is None:
        return random.Random(time.time_ns() + worker)
    return random.Random(seed + 100 * worker)


def _run_threads(workers: int, target: Callable[[int], None]) -> None:
    threads = [threading.Thread(target=target, args=(i,)) for i in range(workers)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()


class _Counters:
    """Mutable tally shared between workers."""

    def __init__(self) -> None:
        self.shots = 0
        self.hits = 0

    def freeze(self) -> Experiment:
        return Experiment(self.shots, self.hits)


class _AtomicInt:
    def __init__(self) -> None:
        self._value = 0
        self._lock = threading.Lock()

    def add(self, delta: int) -> None:
        with self._lock:
            self._value += delta

    def load(self) -> int:
        with self._lock:
            return self._value


_GLOBAL_RNG = random.Random()


def _sequential(n: int, workers: int, seed: int | None) -> Experiment:
    return sample(n, _worker_rng(seed, 0))


def _race(n: int, workers: int, seed: int | None) -> Experiment:
    total = _Counters()

    def work(ident: int) -> None:
        rng = _worker_rng(seed, ident)
        for _ in range(n):
            hit = _hit(rng)
            shots = total.shots
            time.sleep(0)
            total.shots = shots + 1
            if hit:
                total.hits += 1

    _run_threads(workers, work)
    return total.freeze()


def _spin(n: int, workers: int, seed: int | None) -> Experiment:
    total = _Counters()
    flag = {"held": False}

    def work(ident: int) -> None:
        rng = _worker_rng(seed, ident)
        for _ in range(n):
            hit = _hit(rng)
            while flag["held"]:
                time.sleep(0)
            flag["held"] = True
            total.shots += 1
            if hit:
                total.hits += 1
            flag["held"] = False

    _run_threads(workers, work)
    return total.freeze()


def _turns(n: int, workers: int, seed: int | None) -> Experiment:
    total = _Counters()
    cond = threading.Condition()
    turn = 0

    def work(ident: int) -> None:
        nonlocal turn
        rng = _worker_rng(seed, ident)
        for _ in range(n):
            hit = _hit(rng)
            with cond:
                cond.wait_for(lambda: turn == ident)
                total.shots += 1
                if hit:
                    total.hits += 1
                turn = (turn + 1) % workers
                cond.notify_all()

    _run_threads(workers, work)
    return total.freeze()


def _mutex(n: int, workers: int, seed: int | None) -> Experiment:
    total = _Counters()
    lock = threading.Lock()

    def work(ident: int) -> None:
        rng = _worker_rng(seed, ident)
        for _ in range(n):
            hit = _hit(rng)
            with lock:
                total.shots += 1
                if hit:
                    total.hits += 1

    _run_threads(workers, work)
    return total.freeze()


def _atomic(n: int, workers: int, seed: int | None) -> Experiment:
    shots = _AtomicInt()
    hits = _AtomicInt()

    def work(ident: int) -> None:
        rng = _worker_rng(seed, ident)
        for _ in range(n):
            hit = _hit(rng)
            shots.add(1)
            if hit:
                hits.add(1)

    _run_threads(workers, work)
    return Experiment(shots.load(), hits.load())


def _local_mutex(n: int, workers: int, seed: int | None) -> Experiment:
    result = Experiment()
    lock = threading.Lock()

    def work(ident: int) -> None:
        nonlocal result
        mine = sample(n, _worker_rng(seed, ident))
        with lock:
            result = result.combine(mine)

    _run_threads(workers, work)
    return result


def _slots(n: int, workers: int, seed: int | None) -> Experiment:
    slots = [_Counters() for _ in range(workers)]

    def work(ident: int) -> None:
        rng = _worker_rng(seed, ident)
        slot = slots[ident]
        for _ in range(n):
            hit = _hit(rng)
            slot.shots += 1
            if hit:
                slot.hits += 1

    _run_threads(workers, work)
    return reduce(Experiment.combine, (slot.freeze() for slot in slots), Experiment())


def _local_slots(n: int, workers: int, seed: int | None) -> Experiment:
    slots = [Experiment()] * workers

    def work(ident: int) -> None:
        slots[ident] = sample(n, _worker_rng(seed, ident))

    _run_threads(workers, work)
    return reduce(Experiment.combine, slots, Experiment())


def _collect(workers: int, produce: Callable[[int], Experiment]) -> Experiment:
    results: queue.Queue[Experiment] = queue.Queue()
    threads = [
        threading.Thread(target=lambda i=i: results.put(produce(i)))
        for i in range(workers)
    ]
    for thread in threads:
        thread.start()
    total = reduce(Experiment.combine, (results.get() for _ in range(workers)), Experiment())
    for thread in threads:
        thread.join()
    return total


def _channel(n: int, workers: int, seed: int | None) -> Experiment:
    return _collect(workers, lambda i: sample(n, _worker_rng(seed, i)))


def _global_rng(n: int, workers: int, seed: int | None) -> Experiment:
    return _collect(workers, lambda i: sample(n, _GLOBAL_RNG))


def _shared_rng(n: int, workers: int, seed: int | None) -> Experiment:
    rng = random.Random(0 if seed is None else seed)
    lock = threading.Lock()

    def produce(ident: int) -> Experiment:
        hits = 0
        for _ in range(n):
            with lock:
                x = rng.random()
            with lock:
                y = rng.random()
            if x * x + y * y < 1:
                hits += 1
        return Experiment(n, hits)

    return _collect(workers, produce)


def _seeded(n: int, workers: int, seed: int | None) -> Experiment:
    base = 0 if seed is None else seed
    return _collect(workers, lambda i: sample(n, random.Random(base + 100 * i)))


_RUNNERS: dict[Strategy, Callable[[int, int, int | None], Experiment]] = {
    Strategy.SEQUENTIAL: _sequential,
    Strategy.RACE: _race,
    Strategy.SPIN: _spin,
    Strategy.TURNS: _turns,
    Strategy.MUTEX: _mutex,
    Strategy.ATOMIC: _atomic,
    Strategy.LOCAL_MUTEX: _local_mutex,
    Strategy.SLOTS: _slots,
    Strategy.LOCAL_SLOTS: _local_slots,
    Strategy.CHANNEL: _channel,
    Strategy.GLOBAL_RNG: _global_rng,
    Strategy.SHARED_RNG: _shared_rng,
    Strategy.SEEDED: _seeded,
}


def estimate(iterations: int = 10_000_000, workers: int = 2,
             strategy: Strategy | str = Strategy.CHANNEL,
             seed: int | None = None) -> Experiment:
    """Estimate pi with iterations split evenly between worker threads.

    Each worker shoots iterations // workers points. Without a seed the
    per-worker generators are seeded from the clock; the shared and seeded
    strategies then use seed 0.
    """
    strategy = Strategy(strategy)
    if workers < 1:
        raise ValueError("workers must be at least 1")
    if iterations < 0:
        raise ValueError("iterations must not be negative")
    return _RUNNERS[strategy](iterations // workers, workers, seed)


def main(argv: list[str] | None = None) -> int:
    """Estimate pi from the command line and print the result and the time taken."""
    parser = argparse.ArgumentParser(description="Monte Carlo estimation of pi.")
    parser.add_argument("-i", dest="iterations", type=int, default=10_000_000,
                        help="# of iterations")
    parser.add_argument("-g", dest="workers", type=int, default=2, help="# of threads")
    parser.add_argument("-s", dest="seed", type=int, default=None, help="random seed")
    parser.add_argument("--strategy", choices=[s.value for s in Strategy],
                        default=Strategy.CHANNEL.value, help="how the work is shared")
    args = parser.parse_args(argv)

    start = time.perf_counter()
    result = estimate(args.iterations, args.workers, args.strategy, args.seed)
    elapsed = time.perf_counter() - start
    print(f"pi: {result} workers: {args.workers} time: {elapsed:.6f}s")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())