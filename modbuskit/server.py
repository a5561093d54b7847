"""Server base: a registry of worker functions and request dispatch."""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable

from .message import ModbusMessage
from .types import Error, FunctionCode

logger = logging.getLogger(__name__)

#: Worker reply meaning "send no response at all".
NIL_RESPONSE = ModbusMessage(b"\xff\xf0")
#: Worker reply meaning "send the request back as the response".
ECHO_RESPONSE = ModbusMessage(b"\xff\xf1")

_NIL = 0xF0
_ECHO = 0xF1

Worker = Callable[[ModbusMessage], ModbusMessage]


def _predefined(response: ModbusMessage) -> int | None:
    """Return the marker byte if the response is NIL or ECHO, else None."""
    if response[0] == 0xFF and response[1] in (_NIL, _ECHO):
        return response[1]
    return None


def _call_worker(worker: Worker, request: ModbusMessage) -> ModbusMessage:
    result = worker(request)
    if isinstance(result, ModbusMessage):
        return result
    return ModbusMessage(result)


class ModbusServer:
    """Holds workers for server ID / function code pairs and dispatches requests."""

    def __init__(self):
        self._workers: dict[int, dict[int, Worker]] = {}
        self._message_count = 0
        self._error_count = 0
        self._count_lock = threading.Lock()

    def register_worker(self, server_id: int, function_code: int, worker: Worker) -> None:
        """Register a worker; an existing one for the same pair is replaced."""
        self._workers.setdefault(server_id, {})[function_code] = worker
        logger.debug("Registered worker for %02X/%02X", server_id, function_code)

    def get_worker(self, server_id: int, function_code: int) -> Worker | None:
        """Return the worker for the pair, falling back to ANY_FUNCTION_CODE."""
        workers = self._workers.get(server_id)
        if workers is None:
            return None
        worker = workers.get(function_code)
        if worker is not None:
            return worker
        return workers.get(FunctionCode.ANY_FUNCTION_CODE)

    def unregister_worker(self, server_id: int, function_code: int = 0) -> bool:
        """Remove one worker, or all of a server ID if function_code is 0.

        Returns True if anything was removed.
        """
        workers = self._workers.get(server_id)
        if workers is None:
            return False
        if function_code:
            return workers.pop(function_code, None) is not None
        del self._workers[server_id]
        return True

    def is_server_for(self, server_id: int) -> bool:
        """True if any worker is registered for the server ID."""
        return server_id in self._workers

    @property
    def message_count(self) -> int:
        """Number of requests served."""
        return self._message_count

    @property
    def error_count(self) -> int:
        """Number of error responses produced."""
        return self._error_count

    def reset_counts(self) -> None:
        """Set message and error counts to zero."""
        with self._count_lock:
            self._message_count = 0
            self._error_count = 0

    def local_request(self, msg: ModbusMessage) -> ModbusMessage:
        """Answer a request directly, without any transport.

        A NIL reply gives an empty message, an ECHO reply a copy of the request.
        """
        server_id, function_code = msg.server_id, msg.function_code
        worker = self.get_worker(server_id, function_code)
        if worker is None:
            error = (
                Error.ILLEGAL_FUNCTION
                if self.is_server_for(server_id)
                else Error.INVALID_SERVER
            )
            return ModbusMessage.error_response(server_id, function_code, error)
        response = _call_worker(worker, msg)
        kind = _predefined(response)
        if kind == _NIL:
            return ModbusMessage()
        if kind == _ECHO:
            return msg.copy()
        return response

    def serve_request(self, request: ModbusMessage) -> ModbusMessage:
        """Produce the response a network server sends for a request.

        An empty message means nothing is to be sent. The request is counted,
        and so is an error response. An ECHO for the write-multiple function
        codes is cut to server ID, function code, address and quantity.
        """
        with self._count_lock:
            self._message_count += 1
        server_id, function_code = request.server_id, request.function_code
        if not self.is_server_for(server_id):
            response = ModbusMessage.error_response(
                server_id, function_code, Error.INVALID_SERVER
            )
        else:
            worker = self.get_worker(server_id, function_code)
            if worker is None:
                response = ModbusMessage.error_response(
                    server_id, function_code, Error.ILLEGAL_FUNCTION
                )
            else:
                data = _call_worker(worker, request)
                kind = _predefined(data)
                if kind == _NIL:
                    response = ModbusMessage()
                elif kind == _ECHO:
                    response = request.copy()
                    if function_code in (
                        FunctionCode.WRITE_MULT_REGISTERS,
                        FunctionCode.WRITE_MULT_COILS,
                    ):
                        response.resize(6)
                else:
                    response = data
        if response.error != Error.SUCCESS:
            with self._count_lock:
                self._error_count += 1
        return response

    def list_server(self) -> list[str]:
        """Describe every server ID with the function codes it serves."""
        lines = []
        for server_id in sorted(self._workers):
            codes = "".join(f" {fc:02X}" for fc in sorted(self._workers[server_id]))
            lines.append(f"Server {server_id:3d}: {codes}")
        for line in lines:
            logger.info("%s", line)
        return lines