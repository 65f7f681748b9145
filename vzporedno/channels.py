"""Go-style channels built on threads, and the small programs that use them."""

from __future__ import annotations

import argparse
import threading
import time
from collections import deque
from typing import Generic, Iterable, Iterator, TypeVar

from .producer_consumer import ClosedError

T = TypeVar("T")

PRINTOUTS = 10
_STEP = 0.001


class Channel(Generic[T]):
    """A channel with the given capacity; capacity 0 makes every send wait for a receiver."""

    def __init__(self, capacity: int = 0) -> None:
        if capacity < 0:
            raise ValueError("channel capacity must not be negative")
        self.capacity = capacity
        self._slots = max(capacity, 1)
        self._items: deque[T] = deque()
        self._cond = threading.Condition(threading.Lock())
        self._closed = False
        self._sent = 0
        self._taken = 0

    def __len__(self) -> int:
        with self._cond:
            return len(self._items)

    @property
    def closed(self) -> bool:
        with self._cond:
            return self._closed

    def send(self, item: T) -> None:
        """Put an item into the channel; raises ClosedError if it is closed."""
        with self._cond:
            self._cond.wait_for(lambda: self._closed or len(self._items) < self._slots)
            if self._closed:
                raise ClosedError("send on closed channel")
            self._items.append(item)
            self._sent += 1
            ticket = self._sent
            self._cond.notify_all()
            if self.capacity == 0:
                self._cond.wait_for(lambda: self._taken >= ticket or self._closed)

    def receive(self, timeout: float | None = None) -> T:
        """Take the next item.

        Raises ClosedError once the channel is closed and empty, and
        TimeoutError when nothing arrives within timeout seconds.
        """
        with self._cond:
            if not self._cond.wait_for(lambda: self._closed or bool(self._items), timeout):
                raise TimeoutError("nothing received in time")
            if not self._items:
                raise ClosedError("receive from closed channel")
            item = self._items.popleft()
            self._taken += 1
            self._cond.notify_all()
            return item

    def close(self) -> None:
        """Mark the channel closed; receivers drain what is left."""
        with self._cond:
            if self._closed:
                raise ClosedError("close of closed channel")
            self._closed = True
            self._cond.notify_all()

    def __iter__(self) -> Iterator[T]:
        while True:
            try:
                yield self.receive()
            except ClosedError:
                return


def _start(threads: list[threading.Thread]) -> None:
    for thread in threads:
        thread.start()


def _join(threads: list[threading.Thread]) -> None:
    for thread in threads:
        thread.join()


def greet(words: Iterable[str], printouts: int = PRINTOUTS) -> list[str]:
    """Let a thread per word print it printouts times; return the words in printed order."""
    printed: list[str] = []
    lock = threading.Lock()

    def hello(word: str) -> None:
        for _ in range(printouts):
            with lock:
                printed.append(word)
            time.sleep(_STEP)

    threads = [threading.Thread(target=hello, args=(word,)) for word in words]
    _start(threads)
    _join(threads)
    return printed


def stream_greetings(words: Iterable[str], printouts: int = PRINTOUTS,
                     capacity: int = 0) -> list[str]:
    """Each word's thread sends "word-i" into one channel; return all messages received."""
    channel: Channel[str] = Channel(capacity)

    def hello(word: str) -> None:
        for i in range(printouts):
            channel.send(f"{word}-{i}")

    producers = [threading.Thread(target=hello, args=(word,)) for word in words]

    def closer() -> None:
        _join(producers)
        channel.close()

    _start(producers)
    closing = threading.Thread(target=closer)
    closing.start()
    received = list(channel)
    closing.join()
    return received


def letters_from_message(message: str) -> Channel[str]:
    """Return a channel that a background thread fills with the message's characters."""
    stream: Channel[str] = Channel()

    def spell() -> None:
        try:
            for letter in message:
                stream.send(letter)
        finally:
            stream.close()

    threading.Thread(target=spell, daemon=True).start()
    return stream


def message_from_letters(stream: Iterable[str]) -> str:
    """Collect characters from a stream into one upper-case message."""
    return "".join(letter.upper() for letter in stream)


def announce(message: str, listeners: int = 5, delay: float = 5.0) -> list[str]:
    """A speaker announces after delay; listeners wait for it. Return the event log.

    Listener 0 waits in the calling thread, the others in their own.
    """
    if listeners < 1:
        raise ValueError("need at least one listener")
    broadcast = threading.Event()
    events: list[str] = []
    lock = threading.Lock()

    def say(line: str) -> None:
        with lock:
            events.append(line)

    def speaker() -> None:
        time.sleep(delay)
        say(f"Announcement: {message}")
        broadcast.set()

    def listener(ident: int) -> None:
        say(f"Listener {ident} is waiting for an announcement.")
        broadcast.wait()
        say(f"Listener {ident} completed.")

    speaking = threading.Thread(target=speaker)
    others = [threading.Thread(target=listener, args=(i,)) for i in range(1, listeners)]
    speaking.start()
    _start(others)
    listener(0)
    _join(others)
    speaking.join()
    return events


def select_messages(writer_ids: Iterable[int] = (1, 2), duration: float = 20.0,
                    timeout: float | None = 1.0, period: float = 1.0) -> list[str]:
    """Read from several writers for duration seconds and return what was seen.

    Writer i sends "message from i" every (i * i + 1) * period seconds.
    When timeout is given, "timeout" is logged whenever nothing arrives
    for that long. The log ends with "Done".
    """
    merged: Channel[str] = Channel()
    stop = threading.Event()

    def writer(ident: int) -> None:
        pause = (ident * ident + 1) * period
        while not stop.is_set():
            try:
                merged.send(f"message from {ident}")
            except ClosedError:
                return
            if stop.wait(pause):
                return

    writers = [threading.Thread(target=writer, args=(i,)) for i in writer_ids]
    _start(writers)

    events: list[str] = []
    deadline = time.monotonic() + duration
    while True:
        remaining = deadline - time.monotonic()
        if remaining <= 0:
            break
        limit = remaining if timeout is None else min(timeout, remaining)
        try:
            events.append(merged.receive(limit))
        except TimeoutError:
            if timeout is not None and limit >= timeout:
                events.append("timeout")
    events.append("Done")

    stop.set()
    merged.close()
    _join(writers)
    return events


def main(argv: list[str] | None = None) -> int:
    """Run one of the channel demonstrations from the command line."""
    parser = argparse.ArgumentParser(description="Threads and channels.")
    parser.add_argument("demo", choices=["hello", "stream", "letters", "announce",
                                         "select", "deadlock"])
    parser.add_argument("-w", "--words", nargs="+", default=["hello", "world"])
    parser.add_argument("-n", "--printouts", type=int, default=PRINTOUTS)
    parser.add_argument("-b", "--capacity", type=int, default=0, help="channel capacity")
    parser.add_argument("-m", "--message", default="Hello world!")
    parser.add_argument("-t", "--duration", type=float, default=20.0)
    parser.add_argument("--timeout", type=float, default=1.0)
    args = parser.parse_args(argv)

    if args.demo == "hello":
        print(" ".join(greet(args.words, args.printouts)))
    elif args.demo == "stream":
        print(" ".join(stream_greetings(args.words, args.printouts, args.capacity)))
    elif args.demo == "letters":
        caps = message_from_letters(letters_from_message(args.message))
        print(args.message, " --> ", caps)
    elif args.demo == "announce":
        for line in announce(args.message):
            print(line)
        print("Great!")
    elif args.demo == "select":
        for line in select_messages(duration=args.duration, timeout=args.timeout):
            print(line)
    else:
        channel: Channel[int] = Channel()
        try:
            print("Value:", channel.receive(args.timeout))
        except TimeoutError:
            print("Deadlock: no value arrived.")
            return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())