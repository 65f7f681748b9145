"""A TCP server that greets clients, exchanging plain strings or structured messages."""

from __future__ import annotations

import argparse
import json
import socket
import socketserver
import time
from dataclasses import dataclass
from datetime import datetime
from typing import NamedTuple, Union

DEFAULT_PORT = 9876
BUFFER_SIZE = 1024
DATETIME_FORMAT = "%Y-%m-%d %H:%M:%S"


def _now() -> datetime:
    return datetime.now().astimezone()


def format_message(message: str, now: datetime) -> str:
    """Append a timestamp to a message."""
    return f"{message} @ {now.strftime(DATETIME_FORMAT)}"


def make_reply(message: str, now: datetime) -> str:
    """Greet the text before the first '@' and stamp it with a new time."""
    return f"Hello {message.split('@')[0]}@ {now.strftime(DATETIME_FORMAT)}"


@dataclass(frozen=True)
class MessageAndTime:
    """A message with the time it was made."""

    message: str
    time: datetime

    def encode(self) -> bytes:
        """Serialise to JSON bytes."""
        return json.dumps({"message": self.message, "time": self.time.isoformat()}).encode()

    @classmethod
    def decode(cls, data: bytes) -> "MessageAndTime":
        """Parse JSON bytes made by encode."""
        try:
            obj = json.loads(data)
            return cls(str(obj["message"]), datetime.fromisoformat(obj["time"]))
        except (ValueError, KeyError, TypeError) as exc:
            raise ValueError(f"malformed message: {exc}") from exc

    def __str__(self) -> str:
        return f"{{{self.message} {self.time}}}"


class Exchange(NamedTuple):
    """What a client sent and what came back."""

    sent: Union[str, MessageAndTime]
    received: Union[str, MessageAndTime]


class _Server(socketserver.ThreadingTCPServer):
    allow_reuse_address = True
    daemon_threads = True


def _make_server(host: str, port: int, structured: bool, delay: float) -> _Server:
    class Handler(socketserver.BaseRequestHandler):
        def handle(self) -> None:
            if structured:
                self._structured()
            else:
                self._plain()

        def _plain(self) -> None:
            received = self.request.recv(BUFFER_SIZE).decode()
            print("Received message:", received)
            time.sleep(delay)
            reply = make_reply(received, _now())
            print("Sent message:", reply)
            self.request.sendall(reply.encode())

        def _structured(self) -> None:
            with self.request.makefile("rb") as stream:
                line = stream.readline()
            if not line:
                return
            received = MessageAndTime.decode(line)
            print("Received message:", received)
            time.sleep(delay)
            reply = MessageAndTime("Hello " + received.message, _now())
            print("Sent message:", reply)
            self.request.sendall(reply.encode() + b"\n")

    return _Server((host, port), Handler)


def serve(host: str = "", port: int = DEFAULT_PORT, structured: bool = False,
          delay: float = 5.0) -> None:
    """Serve clients forever, each in its own thread, replying after delay seconds."""
    server = _make_server(host, port, structured, delay)
    kind = "struct" if structured else "string"
    print(f"TCP ({kind}) server listening at {socket.gethostname()}:{port}", flush=True)
    with server:
        server.serve_forever()


def request(host: str, port: int = DEFAULT_PORT, message: str = "world",
            structured: bool = False) -> Exchange:
    """Send a timestamped message to the server and return it with the reply."""
    with socket.create_connection((host, port)) as sock:
        if structured:
            sent = MessageAndTime(message, _now())
            sock.sendall(sent.encode() + b"\n")
            with sock.makefile("rb") as stream:
                line = stream.readline()
            if not line:
                raise ConnectionError("connection closed before a reply")
            return Exchange(sent, MessageAndTime.decode(line))
        text = format_message(message, _now())
        sock.sendall(text.encode())
        return Exchange(text, sock.recv(BUFFER_SIZE).decode())


def main(argv: list[str] | None = None) -> int:
    """Start the server when no server address is given, otherwise a client."""
    parser = argparse.ArgumentParser(description="TCP greeting server and client.")
    parser.add_argument("-s", dest="server", default="", help="server address")
    parser.add_argument("-p", dest="port", type=int, default=DEFAULT_PORT, help="port number")
    parser.add_argument("-m", dest="message", default="world", help="message")
    parser.add_argument("--struct", dest="structured", action="store_true",
                        help="exchange structured messages instead of strings")
    parser.add_argument("--delay", type=float, default=5.0, help="server reply delay in seconds")
    args = parser.parse_args(argv)

    if not args.server:
        serve("", args.port, args.structured, args.delay)
        return 0

    kind = "struct" if args.structured else "string"
    exchange = request(args.server, args.port, args.message, args.structured)
    print(f"TCP ({kind}) client connected to {args.server}:{args.port}")
    print("Sent message:", exchange.sent)
    print("Received message:", exchange.received)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())