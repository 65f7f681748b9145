"""Worked examples of concurrent and distributed programming: locks, barriers, channels,
Monte Carlo pi, a to-do store served over TCP, REST and RPC, and an NTP client."""

__version__ = "0.1.0"