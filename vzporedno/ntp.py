"""NTP v3 client and a comparison of wall-clock and monotonic time."""

from __future__ import annotations

import argparse
import socket
import struct
import time
from dataclasses import astuple, dataclass
from datetime import datetime, timezone

NTP_EPOCH_OFFSET = 2208988800  # seconds between 1900-01-01 and 1970-01-01
NTP_PORT = 123
DEFAULT_SERVER = "ntp1.arnes.si"
_NS = 1_000_000_000


def ntp_to_unix_ns(sec: int, frac: int) -> int:
    """Convert NTP seconds and fraction of a second to Unix nanoseconds."""
    secs = sec - NTP_EPOCH_OFFSET
    nanos = (frac * _NS) >> 32
    return secs * _NS + nanos


def unix_ns_to_ntp(ns: int) -> tuple[int, int]:
    """Convert Unix nanoseconds to NTP seconds and fraction of a second."""
    secs, nanos = divmod(ns, _NS)
    sec = (secs + NTP_EPOCH_OFFSET) & 0xFFFFFFFF
    frac = ((nanos << 32) // _NS) & 0xFFFFFFFF
    return sec, frac


_TELEGRAM = struct.Struct(">BBbb11I")


@dataclass(frozen=True)
class Telegram:
    """An NTP v3 packet; requests and replies share the layout."""

    settings: int = 0  # leap indicator (2 bits), version (3 bits), mode (3 bits)
    stratum: int = 0
    poll: int = 0
    precision: int = 0
    root_delay: int = 0
    root_dispersion: int = 0
    reference_id: int = 0
    ref_time_sec: int = 0
    ref_time_frac: int = 0
    orig_time_sec: int = 0
    orig_time_frac: int = 0
    rx_time_sec: int = 0
    rx_time_frac: int = 0
    tx_time_sec: int = 0
    tx_time_frac: int = 0

    SIZE = _TELEGRAM.size

    def pack(self) -> bytes:
        """Encode the packet in network byte order."""
        return _TELEGRAM.pack(*astuple(self))

    @classmethod
    def unpack(cls, data: bytes) -> "Telegram":
        """Decode a packet of exactly SIZE bytes."""
        if len(data) != _TELEGRAM.size:
            raise ValueError(f"NTP telegram must be {_TELEGRAM.size} bytes, got {len(data)}")
        return cls(*_TELEGRAM.unpack(data))


def round_trip(t1: int, t2: int, t3: int, t4: int) -> tuple[int, int]:
    """Return (delta, theta) in nanoseconds from the four NTP timestamps.

    delta is the network round-trip time; theta > 0 means the client lags.
    """
    delta = (t4 - t1) - (t3 - t2)
    half = delta // 2 if delta >= 0 else -((-delta) // 2)
    theta = (t3 + half) - t4
    return delta, theta


@dataclass(frozen=True)
class NtpResult:
    """A request, its reply and the local send and receive times."""

    server: str
    request: Telegram
    response: Telegram
    t1_ns: int
    t4_ns: int

    @property
    def reference_ns(self) -> int:
        return ntp_to_unix_ns(self.response.ref_time_sec, self.response.ref_time_frac)

    @property
    def t1_telegram_ns(self) -> int:
        return ntp_to_unix_ns(self.response.orig_time_sec, self.response.orig_time_frac)

    @property
    def t2_ns(self) -> int:
        return ntp_to_unix_ns(self.response.rx_time_sec, self.response.rx_time_frac)

    @property
    def t3_ns(self) -> int:
        return ntp_to_unix_ns(self.response.tx_time_sec, self.response.tx_time_frac)

    @property
    def delta_ns(self) -> int:
        return round_trip(self.t1_telegram_ns, self.t2_ns, self.t3_ns, self.t4_ns)[0]

    @property
    def theta_ns(self) -> int:
        return round_trip(self.t1_telegram_ns, self.t2_ns, self.t3_ns, self.t4_ns)[1]


def _address(server: str) -> tuple[str, int]:
    host, sep, port = server.rpartition(":")
    if sep and host and port.isdigit():
        return host, int(port)
    return server, NTP_PORT


def query(server: str = DEFAULT_SERVER, timeout: float = 3.0) -> NtpResult:
    """Ask an NTP server for the time; "host:port" picks a port other than 123."""
    host, port = _address(server)
    family, kind, proto, _, sockaddr = socket.getaddrinfo(host, port, type=socket.SOCK_DGRAM)[0]
    with socket.socket(family, kind, proto) as sock:
        sock.settimeout(timeout)
        sock.connect(sockaddr)
        t1 = time.time_ns()
        sec, frac = unix_ns_to_ntp(t1)
        request = Telegram(settings=0x1B, tx_time_sec=sec, tx_time_frac=frac)
        sock.send(request.pack())
        data = sock.recv(1024)
        t4 = time.time_ns()
    response = Telegram.unpack(data[: Telegram.SIZE])
    return NtpResult(server, request, response, t1, t4)


@dataclass(frozen=True)
class SleepMeasurement:
    """Wall-clock and monotonic readings around a sleep."""

    start_ns: int
    end_ns: int
    wall_seconds: float
    monotonic_seconds: float


def measure_sleep(seconds: float) -> SleepMeasurement:
    """Sleep and measure the interval with the wall clock and the monotonic clock."""
    start_wall = time.time_ns()
    start_mono = time.monotonic_ns()
    time.sleep(seconds)
    end_wall = time.time_ns()
    end_mono = time.monotonic_ns()
    return SleepMeasurement(
        start_wall,
        end_wall,
        (end_wall - start_wall) / 1e9,
        (end_mono - start_mono) / 1e9,
    )


def _fmt(ns: int) -> str:
    return datetime.fromtimestamp(ns / 1e9, timezone.utc).isoformat()


def main(argv: list[str] | None = None) -> int:
    """Query an NTP server, or with --clock compare wall and monotonic time."""
    parser = argparse.ArgumentParser(description="NTP client.")
    parser.add_argument("-s", dest="server", default=DEFAULT_SERVER, help="NTP server address")
    parser.add_argument("--clock", type=float, metavar="SECONDS",
                        help="measure a sleep of SECONDS instead of querying a server")
    args = parser.parse_args(argv)

    if args.clock is not None:
        m = measure_sleep(args.clock)
        print(f"Time start: {_fmt(m.start_ns)}")
        print(f"Time end  : {_fmt(m.end_ns)}")
        print(f"Time elapsed (wall-clock): {m.wall_seconds}s")
        print(f"Time elapsed (monotonic) : {m.monotonic_seconds}s")
        return 0

    result = query(args.server)
    print(f"Server: {result.server}")
    print(f"Telegram (req): {result.request!r}")
    print(f"Telegram (res): {result.response!r}")
    print(f"Tref : {_fmt(result.reference_ns)}")
    print(f"T1   : {_fmt(result.t1_ns)}")
    print(f"T1tel: {_fmt(result.t1_telegram_ns)}")
    print(f"T2   : {_fmt(result.t2_ns)}")
    print(f"T3   : {_fmt(result.t3_ns)}")
    print(f"T4   : {_fmt(result.t4_ns)}")
    print(f"delta: {result.delta_ns} ns = {result.delta_ns / 1e9} s")
    print(f"theta: {result.theta_ns} ns = {result.theta_ns / 1e9} s")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())