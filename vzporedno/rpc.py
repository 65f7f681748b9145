"""Remote calls on a to-do store, over HTTP (XML-RPC) or plain TCP (JSON lines)."""

from __future__ import annotations

import argparse
import json
import socket
import socketserver
import threading
import xmlrpc.client
from concurrent.futures import ThreadPoolExecutor
from typing import Any
from xmlrpc.server import SimpleXMLRPCServer

from .storage import NotFoundError, Todo, TodoStorage, _format_todos

DEFAULT_PORT = 9876
SERVICE = "TodoStorage"
_MALFORMED = "rpc: malformed request"


class RpcError(Exception):
    """Raised when a remote call fails for a reason other than a missing item."""


def _todo_from_params(params: Any) -> Todo:
    if not isinstance(params, dict):
        raise RpcError("rpc: argument must be a to-do item")
    return Todo.from_dict(params)


def _dispatch(storage: TodoStorage, method: str, params: Any) -> Any:
    todo = _todo_from_params(params)
    if method == f"{SERVICE}.Create":
        storage.create(todo)
        return None
    if method == f"{SERVICE}.Read":
        return {key: value.to_dict() for key, value in storage.read(todo).items()}
    if method == f"{SERVICE}.Update":
        storage.update(todo)
        return None
    if method == f"{SERVICE}.Delete":
        storage.delete(todo)
        return None
    raise RpcError(f"rpc: can't find method {method}")


class _XmlRpcService:
    def __init__(self, storage: TodoStorage) -> None:
        self._storage = storage

    def _dispatch(self, method: str, params: tuple[Any, ...]) -> Any:
        if len(params) != 1:
            raise xmlrpc.client.Fault(1, "rpc: expected one argument")
        try:
            return _dispatch(self._storage, method, params[0])
        except (NotFoundError, RpcError) as exc:
            raise xmlrpc.client.Fault(1, str(exc)) from None


class _XmlRpcServer(socketserver.ThreadingMixIn, SimpleXMLRPCServer):
    daemon_threads = True
    storage: TodoStorage


def make_server(host: str, port: int, storage: TodoStorage) -> _XmlRpcServer:
    """Build a threaded XML-RPC server over HTTP exposing the store's methods."""
    server = _XmlRpcServer((host, port), logRequests=False, allow_none=True)
    server.register_instance(_XmlRpcService(storage))
    server.storage = storage
    return server


class _TcpHandler(socketserver.StreamRequestHandler):
    server: "_TcpServer"

    def handle(self) -> None:
        for line in self.rfile:
            if not line.strip():
                continue
            reply = self.server.answer(line)
            self.wfile.write(json.dumps(reply).encode() + b"\n")
            self.wfile.flush()


class _TcpServer(socketserver.ThreadingTCPServer):
    allow_reuse_address = True
    daemon_threads = True

    def __init__(self, address: tuple[str, int], storage: TodoStorage) -> None:
        self.storage = storage
        super().__init__(address, _TcpHandler)

    def answer(self, line: bytes) -> dict[str, Any]:
        try:
            request = json.loads(line)
        except ValueError:
            request = None
        if not isinstance(request, dict):
            return {"id": None, "result": None, "error": _MALFORMED}
        ident = request.get("id")
        try:
            result = _dispatch(self.storage, str(request.get("method", "")),
                               request.get("params"))
        except (NotFoundError, RpcError) as exc:
            return {"id": ident, "result": None, "error": str(exc)}
        return {"id": ident, "result": result, "error": None}


def _make_tcp_server(host: str, port: int, storage: TodoStorage) -> _TcpServer:
    return _TcpServer((host, port), storage)


class RpcClient:
    """Calls the store's methods on a server, over HTTP or plain TCP."""

    def __init__(self, host: str, port: int = DEFAULT_PORT, http: bool = True,
                 timeout: float = 10.0) -> None:
        self.http = http
        self._lock = threading.Lock()
        self._next_id = 0
        if http:
            self._proxy = xmlrpc.client.ServerProxy(f"http://{host}:{port}/", allow_none=True)
        else:
            self._sock = socket.create_connection((host, port), timeout)
            self._file = self._sock.makefile("rwb")

    def __enter__(self) -> "RpcClient":
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()

    def close(self) -> None:
        """Release the connection."""
        if self.http:
            self._proxy("close")()
        else:
            self._file.close()
            self._sock.close()

    def _call(self, method: str, todo: Todo) -> Any:
        name = f"{SERVICE}.{method}"
        with self._lock:
            if self.http:
                try:
                    return getattr(self._proxy, name)(todo.to_dict())
                except xmlrpc.client.Fault as fault:
                    error = fault.faultString
            else:
                self._next_id += 1
                request = {"id": self._next_id, "method": name, "params": todo.to_dict()}
                self._file.write(json.dumps(request).encode() + b"\n")
                self._file.flush()
                line = self._file.readline()
                if not line:
                    raise ConnectionError("connection closed before a reply")
                reply = json.loads(line)
                error = reply.get("error")
                if not error:
                    return reply.get("result")
        if error == "not found":
            raise NotFoundError(todo.task)
        raise RpcError(error)

    def create(self, todo: Todo) -> None:
        """Store an item on the server."""
        self._call("Create", todo)

    def read(self, todo: Todo) -> dict[str, Todo]:
        """Return the matching item, or all items when the task is empty."""
        result = self._call("Read", todo) or {}
        return {key: Todo.from_dict(value) for key, value in result.items()}

    def update(self, todo: Todo) -> None:
        """Replace an existing item on the server."""
        self._call("Update", todo)

    def delete(self, todo: Todo) -> None:
        """Remove an existing item on the server."""
        self._call("Delete", todo)


def main(argv: list[str] | None = None) -> int:
    """Start the server when no server address is given, otherwise run the client steps."""
    parser = argparse.ArgumentParser(description="RPC to-do server and client.")
    parser.add_argument("-s", dest="server", default="", help="server address")
    parser.add_argument("-p", dest="port", type=int, default=DEFAULT_PORT, help="port number")
    parser.add_argument("-c", dest="connection", default="http",
                        help="connection type: http or tcp")
    args = parser.parse_args(argv)
    use_http = args.connection.upper().startswith("H")
    http_flag = str(use_http).lower()

    if not args.server:
        storage = TodoStorage()
        server: socketserver.BaseServer
        if use_http:
            server = make_server("", args.port, storage)
        else:
            server = _make_tcp_server("", args.port, storage)
        print(f"RPC server listening at {socket.gethostname()}:{args.port}, HTTP={http_flag}",
              flush=True)
        with server:
            server.serve_forever()
        return 0

    lectures_create = Todo("predavanja", False)
    lectures_update = Todo("predavanja", True)
    practicals = Todo("vaje", False)
    read_all = Todo("", False)

    print(f"RPC client connecting to {args.server}:{args.port}, HTTP={http_flag}")
    with RpcClient(args.server, args.port, use_http) as client:
        print("1. Create: ", end="")
        client.create(lectures_create)
        print("done")

        print("2. Read 1: ", end="")
        print(_format_todos(client.read(lectures_update)), ": done")

        print("3. Create: ", end="")
        client.create(practicals)
        print("done")

        print("4. Read *: ", end="")
        print(_format_todos(client.read(read_all)), ": done")

        print("5. Update: ", end="")
        client.update(lectures_update)
        print("done")

        print("6. Delete: ", end="")
        client.delete(practicals)
        print("done")

        print("7. Read *: ", end="")
        with ThreadPoolExecutor(max_workers=1) as pool:
            pending = pool.submit(client.read, lectures_update)
            print(_format_todos(pending.result()), ": done")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())