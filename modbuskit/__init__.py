"""Modbus messages, a worker registry and a threaded Modbus/TCP server."""

__version__ = "0.1.0"

__all__ = ["types", "swap", "message", "server", "tcp_server"]