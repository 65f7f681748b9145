"""Writers and readers sharing a dictionary under different protections."""

from __future__ import annotations

import argparse
import threading
import time
from contextlib import AbstractContextManager, nullcontext
from enum import Enum
from typing import Hashable

from .rwlock import RWLock


class MapMode(Enum):
    """How the shared dictionary is protected."""

    UNSAFE = "unsafe"  # no protection at all
    RWLOCK = "rwlock"  # readers-writer lock around each access
    SYNC = "sync"      # a concurrent map guarded internally by a mutex


class SharedMap:
    """A dictionary accessed by several threads, guarded according to its mode."""

    def __init__(self, mode: MapMode | str = MapMode.RWLOCK, records: int = 0) -> None:
        self.mode = MapMode(mode)
        self._data: dict[Hashable, object] = {i: 0 for i in range(records)}
        self._rwlock = RWLock()
        self._mutex = threading.Lock()

    def _guard(self, write: bool) -> AbstractContextManager:
        if self.mode is MapMode.RWLOCK:
            return self._rwlock.write_locked() if write else self._rwlock.read_locked()
        if self.mode is MapMode.SYNC:
            return self._mutex
        return nullcontext()

    def store(self, key: Hashable, value: object) -> None:
        with self._guard(write=True):
            self._data[key] = value

    def load(self, key: Hashable) -> object | None:
        """Return the value for key, or None when it is absent."""
        with self._guard(write=False):
            return self._data.get(key)

    def snapshot(self) -> dict:
        """Return a copy of the current contents."""
        with self._guard(write=False):
            return dict(self._data)


def run(writers: int, readers: int, steps: int,
        mode: MapMode | str = MapMode.RWLOCK) -> tuple[dict, float]:
    """Let writer threads store and reader threads load; return contents and elapsed seconds."""
    shared = SharedMap(mode, max(writers, readers))

    def write(ident: int) -> None:
        if shared.mode is MapMode.SYNC:
            shared.store(ident, 0)
        for i in range(steps):
            shared.store(ident, i)

    def read(ident: int) -> None:
        for _ in range(steps):
            shared.load(ident)

    threads = [threading.Thread(target=write, args=(i,)) for i in range(writers)]
    threads += [threading.Thread(target=read, args=(i,)) for i in range(readers)]
    start = time.perf_counter()
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()
    return shared.snapshot(), time.perf_counter() - start


def _format_map(data: dict) -> str:
    return "map[" + " ".join(f"{k}:{v}" for k, v in sorted(data.items())) + "]"


def main(argv: list[str] | None = None) -> int:
    """Run the shared-dictionary experiment from the command line."""
    parser = argparse.ArgumentParser(description="Concurrent access to a dictionary.")
    parser.add_argument("-gw", dest="writers", type=int, default=1, help="# of writing threads")
    parser.add_argument("-gr", dest="readers", type=int, default=1, help="# of reading threads")
    parser.add_argument("-s", dest="steps", type=int, default=100, help="# of read or write steps")
    parser.add_argument("-m", "--mode", choices=[m.value for m in MapMode],
                        default=MapMode.RWLOCK.value, help="protection of the dictionary")
    args = parser.parse_args(argv)

    data, elapsed = run(args.writers, args.readers, args.steps, args.mode)
    print(f"dict: {_format_map(data)} time: {elapsed:.6f}s")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())