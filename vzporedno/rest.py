"""A RESTful HTTP server and client for CRUD operations on a to-do store."""

from __future__ import annotations

import argparse
import json
import socket
import urllib.error
import urllib.request
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from typing import Any
from urllib.parse import quote, unquote, urlsplit

from .storage import NotFoundError, Todo, TodoStorage, _format_todos

DEFAULT_PORT = 9876


class RestError(Exception):
    """Raised when the server does not accept a request."""


def home_page(host: str) -> str:
    """Return the text served at the root of the server."""
    return (
        "RESTful CRUD server.\n\n"
        "Usage:\n"
        "\thttp://" + host + "/todos/\n"
        "\tREST method params: {task: <string>, completed: <bool>}\n"
    )


def _todo_from_json(raw: bytes) -> Todo:
    data: Any = json.loads(raw)
    if not isinstance(data, dict):
        raise ValueError("expected a JSON object")
    task = data.get("task", "")
    completed = data.get("completed", False)
    if not isinstance(task, str) or not isinstance(completed, bool):
        raise ValueError("task must be a string and completed a boolean")
    return Todo(task, completed)


def _last_segment(path: str) -> str:
    return unquote(path.split("/")[-1])


class _RestServer(ThreadingHTTPServer):
    daemon_threads = True

    def __init__(self, address: tuple[str, int], storage: TodoStorage) -> None:
        self.storage = storage
        super().__init__(address, _Handler)


class _Handler(BaseHTTPRequestHandler):
    server: _RestServer

    def log_message(self, format: str, *args: Any) -> None:
        pass

    def _send(self, status: int, body: bytes = b"",
              content_type: str = "application/json") -> None:
        self.send_response(status)
        self.send_header("Content-Type", content_type)
        self.send_header("Content-Length", str(len(body)))
        self.end_headers()
        if body:
            self.wfile.write(body)

    def _dispatch(self) -> None:
        path = urlsplit(self.path).path
        if path == "/todos" or path.startswith("/todos/"):
            self._crud(path)
        else:
            text = home_page(self.headers.get("Host", ""))
            self._send(200, text.encode(), "text/plain; charset=utf-8")

    do_GET = do_POST = do_PUT = do_DELETE = do_PATCH = do_OPTIONS = _dispatch

    def _crud(self, path: str) -> None:
        handlers = {
            "POST": self._create,
            "GET": self._get,
            "PUT": self._update,
            "DELETE": self._delete,
        }
        handler = handlers.get(self.command)
        if handler is None:
            self._send(404)
            return
        handler(path)

    def _read_body(self) -> bytes:
        length = int(self.headers.get("Content-Length") or 0)
        return self.rfile.read(length) if length > 0 else b""

    def _create(self, path: str) -> None:
        try:
            todo = _todo_from_json(self._read_body())
        except ValueError:
            self._send(500)
            return
        self.server.storage.create(todo)
        self._send(200)

    def _get(self, path: str) -> None:
        if path.endswith("todos") or path.endswith("todos/"):
            match = ""
        else:
            match = _last_segment(path)
        try:
            todos = self.server.storage.read(Todo(match, False))
        except NotFoundError:
            self._send(500)
            return
        body = json.dumps({key: todo.to_dict() for key, todo in todos.items()})
        self._send(200, body.encode())

    def _update(self, path: str) -> None:
        try:
            todo = _todo_from_json(self._read_body())
        except ValueError:
            self._send(500)
            return
        try:
            self.server.storage.update(todo)
        except NotFoundError:
            self._send(404)
            return
        self._send(200)

    def _delete(self, path: str) -> None:
        try:
            self.server.storage.delete(Todo(_last_segment(path), False))
        except NotFoundError:
            self._send(500)
            return
        self._send(200)


def make_server(host: str, port: int, storage: TodoStorage) -> _RestServer:
    """Build a threaded HTTP server serving the store under /todos."""
    return _RestServer((host, port), storage)


class RestClient:
    """Client for the CRUD endpoints; base_url points at the /todos/ collection."""

    def __init__(self, base_url: str, timeout: float = 10.0) -> None:
        self.base_url = base_url if base_url.endswith("/") else base_url + "/"
        self.timeout = timeout

    def _request(self, method: str, task: str = "",
                 todo: Todo | None = None) -> tuple[int, bytes]:
        data = json.dumps(todo.to_dict()).encode() if todo is not None else None
        req = urllib.request.Request(self.base_url + quote(task), data=data, method=method)
        if data is not None:
            req.add_header("Content-Type", "application/json")
        try:
            with urllib.request.urlopen(req, timeout=self.timeout) as resp:
                return resp.status, resp.read()
        except urllib.error.HTTPError as exc:
            with exc:
                return exc.code, exc.read()

    def create(self, todo: Todo) -> None:
        """Store a new item."""
        status, _ = self._request("POST", "", todo)
        if status != 200:
            raise RestError("create not successful")

    def read(self, task: str = "") -> dict[str, Todo]:
        """Return the named item, or all items when task is empty."""
        status, body = self._request("GET", task)
        if status != 200:
            raise RestError("read not successful")
        data = json.loads(body)
        return {key: Todo.from_dict(value) for key, value in data.items()}

    def update(self, task: str, todo: Todo) -> None:
        """Replace an existing item."""
        status, _ = self._request("PUT", task, todo)
        if status != 200:
            raise RestError("update not successful")

    def delete(self, task: str) -> None:
        """Remove an existing item."""
        status, _ = self._request("DELETE", task)
        if status != 200:
            raise RestError("delete not successful")


def main(argv: list[str] | None = None) -> int:
    """Start the server when no server address is given, otherwise run the client steps."""
    parser = argparse.ArgumentParser(description="REST to-do server and client.")
    parser.add_argument("-s", dest="server", default="", help="server address")
    parser.add_argument("-p", dest="port", type=int, default=DEFAULT_PORT, help="port number")
    args = parser.parse_args(argv)

    if not args.server:
        server = make_server("", args.port, TodoStorage())
        print(f"REST server listening at {socket.gethostname()}:{args.port}", flush=True)
        with server:
            server.serve_forever()
        return 0

    url = f"http://{args.server}:{args.port}/todos/"
    print(f"REST client connecting to {url}")
    client = RestClient(url)

    print("1. Create: post    : ", end="")
    client.create(Todo("predavanja", False))
    print("done")

    print("2. Read 1: get     : ", end="")
    print(_format_todos(client.read("predavanja")), ": done")

    print("3. Create: req.post: ", end="")
    client.create(Todo("vaje", False))
    print("done")

    print("4. Read *: req.get : ", end="")
    print(_format_todos(client.read("")), ": done")

    print("5. Update: req.put : ", end="")
    client.update("predavanja", Todo("predavanja", True))
    print("done")

    print("6. Delete: req.del : ", end="")
    client.delete("vaje")
    print("done")

    print("7. Read *: req.get : ", end="")
    print(_format_todos(client.read("")), ": done")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())