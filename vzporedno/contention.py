"""Starvation of a polite worker and a livelock of two polite eaters."""

from __future__ import annotations

import argparse
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import NamedTuple


def polite_worker(lock: threading.Lock, runtime: float) -> int:
    """Take the lock three times briefly per iteration for runtime seconds; return iterations."""
    count = 0
    start = time.monotonic()
    while time.monotonic() - start < runtime:
        for _ in range(3):
            with lock:
                time.sleep(1e-9)
        count += 1
    return count


def greedy_worker(lock: threading.Lock, runtime: float) -> int:
    """Take the lock once for longer per iteration for runtime seconds; return iterations."""
    count = 0
    start = time.monotonic()
    while time.monotonic() - start < runtime:
        with lock:
            time.sleep(3e-9)
        count += 1
    return count


class Starvation(NamedTuple):
    """Iterations completed by each worker."""

    polite: int
    greedy: int


def starvation(runtime: float = 1.0) -> Starvation:
    """Run a polite and a greedy worker on one lock at the same time."""
    lock = threading.Lock()
    with ThreadPoolExecutor(max_workers=2) as pool:
        polite = pool.submit(polite_worker, lock, runtime)
        greedy = pool.submit(greedy_worker, lock, runtime)
        return Starvation(polite.result(), greedy.result())


@dataclass(frozen=True)
class Livelock:
    """The log of the two eaters, the signal rounds sent and whether both ate."""

    events: list[str]
    rounds: int
    resolved: bool


def livelock(max_rounds: int = 10, delay: float = 0.1) -> Livelock:
    """Two people each take their own fork, then try the other and back off on failure.

    A ticker wakes both together every 10 * delay seconds, for at most max_rounds rounds.
    """
    forks = [threading.Lock(), threading.Lock()]
    signals = threading.Semaphore(0)
    stop = threading.Event()
    finished = [False, False]
    events: list[str] = []
    log_lock = threading.Lock()

    def say(*words: object) -> None:
        line = " ".join(str(word) for word in ("Person", *words))
        with log_lock:
            events.append(line)

    def person(ident: int) -> None:
        other = (ident + 1) % 2
        while True:
            signals.acquire()
            if stop.is_set():
                return
            forks[ident].acquire()
            say(ident, "took fork", ident)
            time.sleep(delay)
            if forks[other].acquire(blocking=False):
                say(ident, "took fork", other)
                break
            forks[ident].release()
            say(ident, "released fork", ident)
            time.sleep(delay)
        forks[ident].release()
        say(ident, "released fork", ident)
        forks[other].release()
        say(ident, "released fork", other)
        finished[ident] = True

    people = [threading.Thread(target=person, args=(i,)) for i in range(2)]
    for thread in people:
        thread.start()

    rounds = 0
    while rounds < max_rounds:
        time.sleep(10 * delay)
        if all(finished):
            break
        signals.release(2)
        rounds += 1
    stop.set()
    signals.release(2)
    for thread in people:
        thread.join()
    return Livelock(list(events), rounds, all(finished))


def main(argv: list[str] | None = None) -> int:
    """Demonstrate starvation or livelock from the command line."""
    parser = argparse.ArgumentParser(description="Starvation and livelock.")
    parser.add_argument("demo", choices=["starvation", "livelock"])
    parser.add_argument("-t", dest="runtime", type=float, default=1.0,
                        help="runtime in seconds (starvation)")
    parser.add_argument("--rounds", type=int, default=10, help="signal rounds (livelock)")
    parser.add_argument("--delay", type=float, default=0.1, help="seconds per step (livelock)")
    args = parser.parse_args(argv)

    if args.demo == "starvation":
        result = starvation(args.runtime)
        print("Polite worker:", result.polite, "iterations.")
        print("Greedy worker:", result.greedy, "iterations.")
    else:
        result = livelock(args.rounds, args.delay)
        for line in result.events:
            print(line)
        print("Resolved" if result.resolved else "Gave up", "after", result.rounds, "rounds.")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())