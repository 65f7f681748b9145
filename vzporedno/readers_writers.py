"""Writers and readers sharing a book, with different ways of guarding it."""

from __future__ import annotations

import argparse
import threading
import time
from contextlib import contextmanager
from dataclasses import dataclass
from enum import Enum
from typing import Iterator

from .rwlock import RWLock


class Strategy(Enum):
    """How access to the book is controlled."""

    UNCONTROLLED = "uncontrolled"  # nobody checks anything
    MUTEX = "mutex"                # one lock for readers and writers alike
    COUNTING = "counting"          # readers are counted, the first locks, the last unlocks
    SEMAPHORE = "semaphore"        # as counting, with a one-slot semaphore for the book
    RWLOCK = "rwlock"              # a readers-writer lock, no counting needed


class Book:
    """A shared book that keeps a tally of who is inside.

    conflicts counts the times someone entered while a writer was inside,
    or a writer entered while anyone else was inside.
    """

    def __init__(self, strategy: Strategy | str = Strategy.RWLOCK) -> None:
        self.strategy = Strategy(strategy)
        self._book: threading.Lock | threading.BoundedSemaphore
        if self.strategy is Strategy.SEMAPHORE:
            self._book = threading.BoundedSemaphore(1)
        else:
            self._book = threading.Lock()
        self._readers_lock = threading.Lock()
        self._active_readers = 0
        self._rwlock = RWLock()
        self._stats = threading.Lock()
        self.readers = 0
        self.writers = 0
        self.max_readers = 0
        self.conflicts = 0
        self.reads = 0
        self.writes = 0

    def _enter_read(self) -> None:
        strategy = self.strategy
        if strategy is Strategy.MUTEX:
            self._book.acquire()
        elif strategy in (Strategy.COUNTING, Strategy.SEMAPHORE):
            with self._readers_lock:
                self._active_readers += 1
                if self._active_readers == 1:
                    self._book.acquire()
        elif strategy is Strategy.RWLOCK:
            self._rwlock.acquire_read()

    def _exit_read(self) -> None:
        strategy = self.strategy
        if strategy is Strategy.MUTEX:
            self._book.release()
        elif strategy in (Strategy.COUNTING, Strategy.SEMAPHORE):
            with self._readers_lock:
                self._active_readers -= 1
                if self._active_readers == 0:
                    self._book.release()
        elif strategy is Strategy.RWLOCK:
            self._rwlock.release_read()

    def _enter_write(self) -> None:
        if self.strategy is Strategy.RWLOCK:
            self._rwlock.acquire_write()
        elif self.strategy is not Strategy.UNCONTROLLED:
            self._book.acquire()

    def _exit_write(self) -> None:
        if self.strategy is Strategy.RWLOCK:
            self._rwlock.release_write()
        elif self.strategy is not Strategy.UNCONTROLLED:
            self._book.release()

    @contextmanager
    def reading(self) -> Iterator[None]:
        """Be inside the book as a reader for the duration of the block."""
        self._enter_read()
        with self._stats:
            if self.writers:
                self.conflicts += 1
            self.readers += 1
            self.reads += 1
            self.max_readers = max(self.max_readers, self.readers)
        try:
            yield
        finally:
            with self._stats:
                self.readers -= 1
            self._exit_read()

    @contextmanager
    def writing(self) -> Iterator[None]:
        """Be inside the book as a writer for the duration of the block."""
        self._enter_write()
        with self._stats:
            if self.writers or self.readers:
                self.conflicts += 1
            self.writers += 1
            self.writes += 1
        try:
            yield
        finally:
            with self._stats:
                self.writers -= 1
            self._exit_write()


@dataclass(frozen=True)
class Session:
    """The log of a run and the tally the book kept."""

    events: list[str]
    reads: int
    writes: int
    max_readers: int
    conflicts: int


def _run(writers: int, readers: int, cycles: int, strategy: Strategy | str,
         echo: bool) -> Session:
    if writers < 0 or readers < 0 or cycles < 0:
        raise ValueError("writers, readers and cycles must not be negative")
    book = Book(strategy)
    events: list[str] = []
    log_lock = threading.Lock()
    stop = threading.Event()

    def say(*words: object) -> None:
        line = " ".join(str(word) for word in words)
        with log_lock:
            events.append(line)
        if echo:
            print(line, flush=True)

    def writer(ident: int) -> None:
        pause = ident / 1000
        for cycle in range(cycles):
            with book.writing():
                say("Writer", ident, "start", cycle)
                time.sleep(pause)
                say("Writer", ident, "finish", cycle)
            time.sleep(pause)

    def reader(ident: int) -> None:
        pause = ident / 1000
        while not stop.is_set():
            with book.reading():
                say("Reader", ident, "start")
                time.sleep(pause)
                say("Reader", ident, "finish")
            stop.wait(pause)

    writer_threads = [threading.Thread(target=writer, args=(i,)) for i in range(1, writers + 1)]
    reader_threads = [threading.Thread(target=reader, args=(i,)) for i in range(1, readers + 1)]
    for thread in writer_threads + reader_threads:
        thread.start()
    for thread in writer_threads:
        thread.join()
    stop.set()
    for thread in reader_threads:
        thread.join()
    return Session(list(events), book.reads, book.writes, book.max_readers, book.conflicts)


def run(writers: int = 2, readers: int = 4, cycles: int = 10,
        strategy: Strategy | str = Strategy.RWLOCK) -> Session:
    """Let writers write cycles times while readers read until the writers are done."""
    return _run(writers, readers, cycles, strategy, echo=False)


def main(argv: list[str] | None = None) -> int:
    """Run the readers-writers problem from the command line."""
    parser = argparse.ArgumentParser(description="Readers and writers.")
    parser.add_argument("-w", dest="writers", type=int, default=2, help="# of writers")
    parser.add_argument("-r", dest="readers", type=int, default=4, help="# of readers")
    parser.add_argument("-c", dest="cycles", type=int, default=10, help="# of cycles")
    parser.add_argument("--strategy", choices=[s.value for s in Strategy],
                        default=Strategy.RWLOCK.value, help="how the book is guarded")
    args = parser.parse_args(argv)

    _run(args.writers, args.readers, args.cycles, args.strategy, echo=True)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())