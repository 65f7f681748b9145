"""A small thread-safe store of to-do items keyed by task name."""

from __future__ import annotations

import argparse
from dataclasses import dataclass
from typing import Any, Mapping

from .rwlock import RWLock


@dataclass(frozen=True)
class Todo:
    """A single task and whether it has been completed."""

    task: str
    completed: bool = False

    def to_dict(self) -> dict[str, Any]:
        """Return the JSON-ready form of the item."""
        return {"task": self.task, "completed": self.completed}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Todo":
        """Build an item from its JSON form; missing fields take zero values."""
        return cls(task=str(data.get("task", "")), completed=bool(data.get("completed", False)))


class NotFoundError(LookupError):
    """Raised when a task is not in the store."""

    def __init__(self, task: str) -> None:
        super().__init__("not found")
        self.task = task


class TodoStorage:
    """A dictionary of to-do items guarded by a readers-writer lock."""

    def __init__(self) -> None:
        self._todos: dict[str, Todo] = {}
        self._lock = RWLock()

    def __len__(self) -> int:
        with self._lock.read_locked():
            return len(self._todos)

    def create(self, todo: Todo) -> None:
        """Store the item, replacing any item with the same task."""
        with self._lock.write_locked():
            self._todos[todo.task] = todo

    def read(self, todo: Todo) -> dict[str, Todo]:
        """Return all items when the task is empty, otherwise the matching one."""
        with self._lock.read_locked():
            if not todo.task:
                return dict(self._todos)
            try:
                found = self._todos[todo.task]
            except KeyError:
                raise NotFoundError(todo.task) from None
            return {found.task: found}

    def update(self, todo: Todo) -> None:
        """Replace an existing item."""
        with self._lock.write_locked():
            if todo.task not in self._todos:
                raise NotFoundError(todo.task)
            self._todos[todo.task] = todo

    def delete(self, todo: Todo) -> None:
        """Remove an existing item."""
        with self._lock.write_locked():
            try:
                del self._todos[todo.task]
            except KeyError:
                raise NotFoundError(todo.task) from None


def _format_todos(todos: Mapping[str, Todo]) -> str:
    entries = (
        f"{key}:{{{todo.task} {str(todo.completed).lower()}}}"
        for key, todo in sorted(todos.items())
    )
    return "map[" + " ".join(entries) + "]"


def main(argv: list[str] | None = None) -> int:
    """Run the CRUD operations against a local store and print each step."""
    argparse.ArgumentParser(description="Local use of the to-do store.").parse_args(argv)

    store = TodoStorage()
    lectures_create = Todo("predavanja", False)
    lectures_update = Todo("predavanja", True)
    practicals = Todo("vaje", False)
    read_all = Todo("", False)

    print("1. Create: ", end="")
    store.create(lectures_create)
    print("done")

    print("2. Read 1: ", end="")
    print(_format_todos(store.read(lectures_update)), ": done")

    print("3. Create: ", end="")
    store.create(practicals)
    print("done")

    print("4. Read *: ", end="")
    print(_format_todos(store.read(read_all)), ": done")

    print("5. Update: ", end="")
    store.update(lectures_update)
    print("done")

    print("6. Delete: ", end="")
    store.delete(practicals)
    print("done")

    print("7. Read *: ", end="")
    print(_format_todos(store.read(lectures_update)), ": done")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())