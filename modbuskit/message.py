"""The Modbus message: a byte sequence with Modbus-aware accessors."""

from __future__ import annotations

from collections.abc import Iterable, Iterator

from .swap import (
    SwapRule,
    double_from_bytes,
    double_to_bytes,
    float_from_bytes,
    float_to_bytes,
)
from .types import Error


class ModbusMessage:
    """A Modbus PDU with server ID: server ID, function code and data bytes."""

    __hash__ = None  # mutable

    def __init__(self, data: Iterable[int] | bytes = b""):
        self._data = bytearray(data)

    @classmethod
    def error_response(cls, server_id, function_code, error):
        """Create an error response for the given server ID and function code."""
        msg = cls()
        msg.set_error(server_id, function_code, error)
        return msg

    # Sequence behaviour -------------------------------------------------

    def __len__(self) -> int:
        return len(self._data)

    def __bool__(self) -> bool:
        """A message is usable once it holds at least server ID and function code."""
        return len(self._data) >= 2

    def __eq__(self, other) -> bool:
        if isinstance(other, ModbusMessage):
            return self._data == other._data
        if isinstance(other, (bytes, bytearray, memoryview)):
            return self._data == bytes(other)
        return NotImplemented

    def __getitem__(self, index):
        """Return a byte; an index out of bounds yields 0 instead of raising."""
        if isinstance(index, slice):
            return bytes(self._data[index])
        if -len(self._data) <= index < len(self._data):
            return self._data[index]
        return 0

    def __iter__(self) -> Iterator[int]:
        return iter(bytes(self._data))

    def __bytes__(self) -> bytes:
        return bytes(self._data)

    def __repr__(self) -> str:
        return f"ModbusMessage({bytes(self._data).hex(' ').upper()!r})"

    # Modbus fields -------------------------------------------------------

    @property
    def server_id(self) -> int:
        """Server ID, or 0 if the message is too short."""
        return self._data[0] if len(self._data) >= 2 else 0

    @server_id.setter
    def server_id(self, value: int) -> None:
        if self._data:
            self._data[0] = value
        else:
            self._data.append(value)

    @property
    def function_code(self) -> int:
        """Function code, or 0 if the message is too short."""
        return self._data[1] if len(self._data) >= 2 else 0

    @function_code.setter
    def function_code(self, value: int) -> None:
        if len(self._data) < 2:
            # An unset server ID becomes 0, which is intentionally invalid.
            self._data[:] = bytes([self._data[0] if self._data else 0, value])
        else:
            self._data[1] = value

    @property
    def error(self) -> Error:
        """Error code carried by an error response, SUCCESS otherwise."""
        if len(self._data) > 2 and self._data[1] & 0x80:
            return Error(self._data[2])
        return Error.SUCCESS

    # Manipulation --------------------------------------------------------

    def copy(self) -> ModbusMessage:
        return ModbusMessage(self._data)

    def clear(self) -> None:
        self._data.clear()

    def resize(self, size: int) -> int:
        """Truncate or zero-pad to the given size; return the new size."""
        if size < 0:
            raise ValueError("size must not be negative")
        if size < len(self._data):
            del self._data[size:]
        else:
            self._data.extend(bytes(size - len(self._data)))
        return len(self._data)

    def append(self, other) -> int:
        """Append another message or byte sequence; return the new size."""
        self._data.extend(bytes(other))
        return len(self._data)

    def add_bytes(self, data) -> int:
        """Append raw bytes; return the new size."""
        self._data.extend(data)
        return len(self._data)

    def _add_uint(self, width: int, values) -> int:
        mask = (1 << (8 * width)) - 1
        for value in values:
            self._data.extend((int(value) & mask).to_bytes(width, "big"))
        return len(self._data)

    def add_uint8(self, *args) -> int:
        """Append 8-bit values; return the new size."""
        return self._add_uint(1, args)

    def add_uint16(self, *args) -> int:
        """Append 16-bit values MSB first; return the new size."""
        return self._add_uint(2, args)

    def add_uint32(self, *args) -> int:
        """Append 32-bit values MSB first; return the new size."""
        return self._add_uint(4, args)

    def add_uint64(self, *args) -> int:
        """Append 64-bit values MSB first; return the new size."""
        return self._add_uint(8, args)

    def add_float(self, value: float, swap_rule=SwapRule.NONE) -> int:
        """Append an IEEE754 single, MSB first with optional swapping."""
        self._data.extend(float_to_bytes(value, swap_rule))
        return len(self._data)

    def add_double(self, value: float, swap_rule=SwapRule.NONE) -> int:
        """Append an IEEE754 double, MSB first with optional swapping."""
        self._data.extend(double_to_bytes(value, swap_rule))
        return len(self._data)

    # Extraction ----------------------------------------------------------

    def _fits(self, index: int, width: int) -> bool:
        return 0 <= index and index + width <= len(self._data)

    def get_uint(self, index: int, width: int = 2) -> tuple[int, int]:
        """Read an unsigned MSB-first value of width bytes.

        Returns (value, next index); if it does not fit, (0, index).
        """
        if width <= 0:
            raise ValueError("width must be positive")
        if not self._fits(index, width):
            return 0, index
        value = int.from_bytes(self._data[index:index + width], "big")
        return value, index + width

    def get_bytes(self, index: int, count: int) -> tuple[bytes, int]:
        """Read up to count bytes, fewer if the message ends first."""
        if index < 0 or count <= 0:
            return b"", index
        chunk = bytes(self._data[index:index + count])
        return chunk, index + len(chunk)

    def get_float(self, index: int, swap_rule=SwapRule.NONE) -> tuple[float, int]:
        """Read a float; returns (value, next index) or (0.0, index) if it does not fit."""
        if not self._fits(index, 4):
            return 0.0, index
        return float_from_bytes(self._data[index:index + 4], swap_rule), index + 4

    def get_double(self, index: int, swap_rule=SwapRule.NONE) -> tuple[float, int]:
        """Read a double; returns (value, next index) or (0.0, index) if it does not fit."""
        if not self._fits(index, 8):
            return 0.0, index
        return double_from_bytes(self._data[index:index + 8], swap_rule), index + 8

    def set_error(self, server_id: int, function_code: int, error) -> None:
        """Replace the contents with an error response."""
        self._data[:] = bytes(
            [server_id & 0xFF, (function_code | 0x80) & 0xFF, int(error) & 0xFF]
        )