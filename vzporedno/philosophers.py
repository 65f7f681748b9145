"""The dining philosophers with different ways of controlling the forks."""

from __future__ import annotations

import argparse
import queue
import threading
import time
from dataclasses import dataclass
from enum import Enum

PHILOSOPHERS = 5


class Strategy(Enum):
    """How the philosophers pick up their forks."""

    UNCONTROLLED = "uncontrolled"  # no control at all, forks are shared freely
    LOCKS = "locks"                # a lock per fork, deadlock is possible
    PICKING = "picking"            # only one philosopher at a time picks up forks
    TRY_LOCK = "try-lock"          # put the first fork back if the second is taken
    ORDERED = "ordered"            # everyone takes the lower-numbered fork first
    CHANNELS = "channels"          # ordered, with one-slot queues as forks


def fork_order(philosopher: int, strategy: Strategy | str = Strategy.ORDERED) -> tuple[int, int]:
    """Return the forks a philosopher takes, first and second."""
    strategy = Strategy(strategy)
    if not 0 <= philosopher < PHILOSOPHERS:
        raise ValueError(f"philosopher must be in range 0..{PHILOSOPHERS - 1}")
    first, second = philosopher, (philosopher + 1) % PHILOSOPHERS
    if strategy in (Strategy.ORDERED, Strategy.CHANNELS) and philosopher == PHILOSOPHERS - 1:
        first, second = second, first
    return first, second


class _ChannelFork:
    """A fork held by putting a token into a one-slot queue."""

    def __init__(self) -> None:
        self._slot: queue.Queue[int] = queue.Queue(maxsize=1)

    def acquire(self, blocking: bool = True) -> bool:
        try:
            self._slot.put(1, block=blocking)
        except queue.Full:
            return False
        return True

    def release(self) -> None:
        self._slot.get_nowait()


@dataclass(frozen=True)
class Dinner:
    """What happened at the table."""

    events: list[str]
    conflicts: int
    elapsed: float


class Table:
    """Five forks shared by five philosophers, with a log of what they do.

    conflicts counts the times a fork was taken while someone else held it.
    """

    def __init__(self, strategy: Strategy | str = Strategy.ORDERED,
                 delay: float = 0.1, echo: bool = False) -> None:
        self.strategy = Strategy(strategy)
        self.delay = delay
        self.echo = echo
        self.events: list[str] = []
        self.conflicts = 0
        if self.strategy is Strategy.CHANNELS:
            self._forks = [_ChannelFork() for _ in range(PHILOSOPHERS)]
        else:
            self._forks = [threading.Lock() for _ in range(PHILOSOPHERS)]
        self._picking = threading.Lock()
        self._books = threading.Lock()
        self._holders = [0] * PHILOSOPHERS

    def _say(self, philosopher: int, *words: object) -> None:
        line = " ".join(str(word) for word in ("Philosopher", philosopher, *words))
        with self._books:
            self.events.append(line)
        if self.echo:
            print(line, flush=True)

    def _pause(self, factor: float = 1.0) -> None:
        if self.delay > 0:
            time.sleep(self.delay * factor)

    def _took(self, philosopher: int, fork: int) -> None:
        with self._books:
            if self._holders[fork]:
                self.conflicts += 1
            self._holders[fork] += 1
        self._say(philosopher, "took fork", fork, ".")

    def _dropped(self, fork: int) -> None:
        with self._books:
            self._holders[fork] -= 1

    def _pick_up(self, philosopher: int, first: int, second: int) -> None:
        if self.strategy is Strategy.UNCONTROLLED:
            self._took(philosopher, first)
            self._pause()
            self._took(philosopher, second)
            self._pause()
            return
        if self.strategy is Strategy.TRY_LOCK:
            while True:
                self._forks[first].acquire()
                self._took(philosopher, first)
                self._pause()
                if self._forks[second].acquire(blocking=False):
                    self._took(philosopher, second)
                    return
                self._dropped(first)
                self._forks[first].release()
                self._pause(1 + 0.1 * (philosopher + 1))
        if self.strategy is Strategy.PICKING:
            self._picking.acquire()
        self._forks[first].acquire()
        self._took(philosopher, first)
        self._pause()
        self._forks[second].acquire()
        if self.strategy is Strategy.PICKING:
            self._picking.release()
        self._took(philosopher, second)
        self._pause()

    def _put_down(self, first: int, second: int) -> None:
        for fork in (first, second):
            self._dropped(fork)
            if self.strategy is not Strategy.UNCONTROLLED:
                self._forks[fork].release()

    def session(self, philosopher: int, dishes: int) -> int:
        """Let one philosopher think and eat the given number of dishes; return dishes eaten."""
        first, second = fork_order(philosopher, self.strategy)
        self._say(philosopher, "approached.")
        for dish in range(1, dishes + 1):
            self._say(philosopher, "is thinking.")
            self._pause()
            self._pick_up(philosopher, first, second)
            self._say(philosopher, "is eating", dish, ".")
            self._pause()
            self._put_down(first, second)
            self._say(philosopher, "put down the forks.")
            self._pause()
        self._say(philosopher, "left.")
        return max(dishes, 0)


def _dine(table: Table, dishes: int) -> Dinner:
    threads = [
        threading.Thread(target=table.session, args=(philosopher, dishes))
        for philosopher in range(PHILOSOPHERS)
    ]
    start = time.perf_counter()
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()
    elapsed = time.perf_counter() - start
    return Dinner(list(table.events), table.conflicts, elapsed)


def dine(dishes: int = 20, strategy: Strategy | str = Strategy.ORDERED,
         delay: float = 0.1) -> Dinner:
    """Seat five philosophers, let each eat the given number of dishes and return the log."""
    return _dine(Table(strategy, delay), dishes)


def main(argv: list[str] | None = None) -> int:
    """Run the dinner from the command line, printing each event as it happens."""
    parser = argparse.ArgumentParser(description="The dining philosophers.")
    parser.add_argument("-d", dest="dishes", type=int, default=20, help="# of dishes")
    parser.add_argument("--strategy", choices=[s.value for s in Strategy],
                        default=Strategy.ORDERED.value, help="how forks are controlled")
    parser.add_argument("--delay", type=float, default=0.1, help="seconds per step")
    args = parser.parse_args(argv)

    dinner = _dine(Table(args.strategy, args.delay, echo=True), args.dishes)
    print(f"Time: {dinner.elapsed:.6f}s")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())