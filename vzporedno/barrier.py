"""Barriers that hold threads until all of them have arrived."""

from __future__ import annotations

import argparse
import random
import threading
import time
from enum import Enum
from typing import Protocol


class BarrierKind(Enum):
    """Which barrier the workers meet at."""

    NONE = "none"            # no barrier at all
    ONCE = "once"            # a counter with busy waiting, good for one round only
    PHASE = "phase"          # two doors and a phase flag under a lock
    GATES = "gates"          # two doors opened by handing out tokens
    CONDITION = "condition"  # a lock and a condition variable


class _Waitable(Protocol):
    def wait(self) -> None: ...


def _check_parties(parties: int) -> None:
    if parties < 1:
        raise ValueError("a barrier needs at least one party")


class _NoBarrier:
    """Lets every thread straight through, only counting the passes."""

    def __init__(self, parties: int) -> None:
        _check_parties(parties)
        self.parties = parties
        self._lock = threading.Lock()
        self.passes = 0

    def wait(self) -> None:
        with self._lock:
            self.passes += 1


class _OnceBarrier:
    """Counts arrivals and spins until all have come; cannot be reused."""

    def __init__(self, parties: int) -> None:
        _check_parties(parties)
        self.parties = parties
        self._lock = threading.Lock()
        self._arrived = 0

    def wait(self) -> None:
        with self._lock:
            if self._arrived >= self.parties:
                raise RuntimeError("a one-shot barrier cannot be passed twice")
            self._arrived += 1
        while True:
            with self._lock:
                if self._arrived >= self.parties:
                    return
            time.sleep(0)


class PhaseBarrier:
    """Two doors: the first lets threads in, the second opens once all are in."""

    def __init__(self, parties: int) -> None:
        _check_parties(parties)
        self.parties = parties
        self._cond = threading.Condition(threading.Lock())
        self._between = 0  # threads past the first door and not yet past the second
        self._phase = 0    # 0: passing the first door, 1: passing the second

    def wait(self) -> None:
        with self._cond:
            if self._between > 0:
                self._cond.wait_for(lambda: self._phase != 1)
            else:
                self._phase = 0
                self._cond.notify_all()
            self._between += 1

            if self._between < self.parties:
                self._cond.wait_for(lambda: self._phase != 0)
            else:
                self._phase = 1
                self._cond.notify_all()
            self._between -= 1


class GateBarrier:
    """Two doors: the last to arrive hands out passes to all, likewise the last to leave."""

    def __init__(self, parties: int) -> None:
        _check_parties(parties)
        self.parties = parties
        self._lock = threading.Lock()
        self._count = 0
        self._arrived = threading.Semaphore(0)
        self._left = threading.Semaphore(0)

    def wait(self) -> None:
        with self._lock:
            self._count += 1
            if self._count == self.parties:
                self._arrived.release(self.parties)
        self._arrived.acquire()

        with self._lock:
            self._count -= 1
            if self._count == 0:
                self._left.release(self.parties)
        self._left.acquire()


class ConditionBarrier:
    """The last thread to arrive resets the count and wakes all the others."""

    def __init__(self, parties: int) -> None:
        _check_parties(parties)
        self.parties = parties
        self._cond = threading.Condition(threading.Lock())
        self._count = 0
        self._generation = 0

    def wait(self) -> None:
        with self._cond:
            self._count += 1
            if self._count < self.parties:
                generation = self._generation
                self._cond.wait_for(lambda: self._generation != generation)
            else:
                self._count = 0
                self._generation += 1
                self._cond.notify_all()


_KINDS = {
    BarrierKind.NONE: _NoBarrier,
    BarrierKind.ONCE: _OnceBarrier,
    BarrierKind.PHASE: PhaseBarrier,
    BarrierKind.GATES: GateBarrier,
    BarrierKind.CONDITION: ConditionBarrier,
}


def make_barrier(kind: BarrierKind | str, parties: int) -> _Waitable:
    """Build a barrier of the given kind for the given number of threads."""
    return _KINDS[BarrierKind(kind)](parties)


def _run(goroutines: int, printouts: int, kind: BarrierKind | str,
         echo: bool) -> list[tuple[int, int]]:
    kind = BarrierKind(kind)
    if printouts < 0:
        raise ValueError("printouts must not be negative")
    if kind is BarrierKind.ONCE and printouts > 1:
        raise ValueError("a one-shot barrier supports a single printout")
    barrier = make_barrier(kind, goroutines)
    events: list[tuple[int, int]] = []
    log_lock = threading.Lock()

    def work(ident: int) -> None:
        for printout in range(printouts):
            time.sleep(random.randrange(10) / 1000)
            with log_lock:
                events.append((ident, printout))
            if echo:
                print("Worker", ident, "printout", printout, flush=True)
            barrier.wait()

    threads = [threading.Thread(target=work, args=(i,)) for i in range(goroutines)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()
    return events


def run(goroutines: int = 4, printouts: int = 5,
        kind: BarrierKind | str = BarrierKind.CONDITION) -> list[tuple[int, int]]:
    """Let each thread log printouts rounds, meeting at the barrier after each.

    Returns (worker, printout) pairs in the order they were logged.
    """
    return _run(goroutines, printouts, kind, echo=False)


def main(argv: list[str] | None = None) -> int:
    """Run the barrier demonstration from the command line."""
    parser = argparse.ArgumentParser(description="Barrier synchronisation.")
    parser.add_argument("-g", dest="goroutines", type=int, default=4, help="# of threads")
    parser.add_argument("-p", dest="printouts", type=int, default=5, help="# of printouts")
    parser.add_argument("--kind", choices=[k.value for k in BarrierKind],
                        default=BarrierKind.CONDITION.value, help="which barrier to use")
    args = parser.parse_args(argv)

    _run(args.goroutines, args.printouts, args.kind, echo=True)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())