"""Threaded Modbus TCP server with a limited number of client slots."""

from __future__ import annotations

import logging
import socket
import threading
import time

from .message import ModbusMessage
from .server import ModbusServer
from .types import Error

logger = logging.getLogger(__name__)

_HEADER_SIZE = 6
_MIN_FRAME = 8          # header plus server ID and function code
_BUFFER_SIZE = 300      # largest frame accepted in one go
_BYTE_WAIT = 0.1        # seconds to wait for the rest of a started frame
_POLL = 0.05            # seconds between checks of the stop flag


def _count_protocol_error(server: ModbusServer) -> None:
    with server._count_lock:
        server._message_count += 1
        server._error_count += 1


def handle_frame(server: ModbusServer, frame) -> bytes:
    """Answer one received TCP frame (header plus request).

    Returns the response frame, or b"" if nothing is to be sent.
    """
    frame = bytes(frame)
    if len(frame) < _MIN_FRAME:
        return b""
    request = ModbusMessage(frame[_HEADER_SIZE:])
    if frame[2:4] == b"\x00\x00":
        response = server.serve_request(request)
    else:
        response = ModbusMessage.error_response(
            request.server_id, request.function_code, Error.TCP_HEAD_MISMATCH
        )
        _count_protocol_error(server)
    if len(response) < 3:
        return b""
    return frame[:4] + len(response).to_bytes(2, "big") + bytes(response)


def _read_frame(conn: socket.socket) -> bytes | None:
    """Read one frame from the connection.

    Returns b"" if nothing arrived within the poll interval and None if the
    peer closed the connection. A frame cut short by a pause longer than the
    byte wait is returned as far as it was received.
    """
    buffer = bytearray()
    while True:
        if len(buffer) < _HEADER_SIZE:
            wanted = _HEADER_SIZE - len(buffer)
        else:
            expected = int.from_bytes(buffer[4:6], "big") + _HEADER_SIZE
            if len(buffer) >= expected:
                return bytes(buffer)
            wanted = expected - len(buffer)
        wanted = min(wanted, _BUFFER_SIZE - len(buffer))
        if wanted <= 0:
            # Overflow: let the header tell the length actually received.
            buffer[4:6] = len(buffer).to_bytes(2, "big")
            logger.error("Potential buffer overrun (>%d)!", len(buffer))
            return bytes(buffer)
        conn.settimeout(_BYTE_WAIT if buffer else _POLL)
        try:
            chunk = conn.recv(wanted)
        except socket.timeout:
            return bytes(buffer)
        if not chunk:
            return None
        buffer.extend(chunk)


class ModbusServerTCP(ModbusServer):
    """Modbus TCP server serving each client in its own thread."""

    def __init__(self):
        super().__init__()
        self._listener: socket.socket | None = None
        self._thread: threading.Thread | None = None
        self._stopping = threading.Event()
        self._clients_lock = threading.Lock()
        self._clients: dict[threading.Thread, socket.socket] = {}
        self._max_clients = 0
        self._timeout = 20.0

    def start(self, port=502, max_clients=1, timeout=20.0, host=None) -> bool:
        """Start listening; a running server is stopped first.

        timeout is the idle time in seconds after which a client is dropped;
        0 keeps idle clients forever.
        """
        if self._thread is not None:
            self.stop()
        self._max_clients = max_clients
        self._timeout = timeout
        self._stopping.clear()
        listener = socket.create_server((host or "", port))
        listener.settimeout(_POLL)
        self._listener = listener
        self._thread = threading.Thread(
            target=self._serve, name=f"MBserve{port:04X}", daemon=True
        )
        self._thread.start()
        logger.debug("Server started on %s", self.address)
        return True

    def stop(self) -> bool:
        """Close all client connections and stop listening."""
        self._stopping.set()
        with self._clients_lock:
            clients = list(self._clients.items())
        for _, conn in clients:
            try:
                conn.shutdown(socket.SHUT_RDWR)
            except OSError:
                pass
        if self._thread is not None:
            self._thread.join()
            self._thread = None
        for thread, _ in clients:
            thread.join()
        if self._listener is not None:
            self._listener.close()
            self._listener = None
        self._stopping.clear()
        return True

    @property
    def active_clients(self) -> int:
        """Number of clients currently served."""
        with self._clients_lock:
            return len(self._clients)

    @property
    def address(self) -> tuple[str, int] | None:
        """Host and port listened on, or None if not running."""
        if self._listener is None:
            return None
        return tuple(self._listener.getsockname()[:2])

    def __enter__(self) -> ModbusServerTCP:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.stop()

    def _serve(self) -> None:
        listener = self._listener
        while not self._stopping.is_set():
            if self.active_clients >= self._max_clients:
                time.sleep(_POLL / 5)
                continue
            try:
                conn, peer = listener.accept()
            except socket.timeout:
                continue
            except OSError:
                break
            thread = threading.Thread(
                target=self._serve_client, args=(conn,), daemon=True
            )
            with self._clients_lock:
                self._clients[thread] = conn
            thread.start()
            logger.debug("Accepted connection from %s", peer)
        logger.debug("Server going down")

    def _serve_client(self, conn: socket.socket) -> None:
        last_message = time.monotonic()
        try:
            while not self._stopping.is_set():
                if self._timeout and time.monotonic() - last_message >= self._timeout:
                    logger.debug("Worker stopping due to timeout")
                    break
                frame = _read_frame(conn)
                if frame is None:
                    logger.debug("Worker stopping due to client disconnect")
                    break
                if not frame:
                    continue
                response = handle_frame(self, frame)
                if response:
                    conn.sendall(response)
                last_message = time.monotonic()
        except OSError as exc:
            logger.debug("Client connection error: %s", exc)
        finally:
            conn.close()
            with self._clients_lock:
                self._clients.pop(threading.current_thread(), None)