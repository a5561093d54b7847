"""Byte order handling for float and double values in Modbus data."""

from __future__ import annotations

import struct
from enum import IntFlag


class SwapRule(IntFlag):
    """Re-ordering rules for multi-register values."""

    NONE = 0x00
    SWAP_BYTES = 0x01
    SWAP_REGISTERS = 0x02
    SWAP_WORDS = 0x04
    SWAP_NIBBLES = 0x08


SWAP_TABLES = (
    (0, 1, 2, 3, 4, 5, 6, 7),  # no swap
    (1, 0, 3, 2, 5, 4, 7, 6),  # bytes only
    (2, 3, 0, 1, 6, 7, 4, 5),  # registers only
    (3, 2, 1, 0, 7, 6, 5, 4),  # registers and bytes
    (4, 5, 6, 7, 0, 1, 2, 3),  # words only (double)
    (5, 4, 7, 6, 1, 0, 3, 2),  # words and bytes (double)
    (6, 7, 4, 5, 2, 3, 0, 1),  # words and registers (double)
    (7, 6, 5, 4, 3, 2, 1, 0),  # words, registers and bytes (double)
)


def _swap_nibbles(byte):
    return ((byte & 0x0F) << 4) | ((byte >> 4) & 0x0F)


def swap_bytes(data, swap_rule):
    """Re-order the 4 or 8 bytes of a value according to a swap rule.

    Four-byte values only honour byte and register swaps.
    """
    data = bytes(data)
    if len(data) == 4:
        mask = 0x03
    elif len(data) == 8:
        mask = 0x07
    else:
        raise ValueError(f"swap needs 4 or 8 bytes, got {len(data)}")
    rule = int(swap_rule)
    table = SWAP_TABLES[rule & mask]
    result = bytes(data[src] for src in table[: len(data)])
    if rule & SwapRule.SWAP_NIBBLES:
        result = bytes(_swap_nibbles(b) for b in result)
    return result


def float_to_bytes(value, swap_rule=SwapRule.NONE):
    """Encode a float as IEEE754 single precision, MSB first, then swapped."""
    data = struct.pack(">f", value)
    rule = int(swap_rule) & 0x0B
    return swap_bytes(data, rule) if rule else data


def float_from_bytes(data, swap_rule=SwapRule.NONE):
    """Decode four bytes produced by float_to_bytes with the same rule."""
    data = bytes(data)
    if len(data) != 4:
        raise ValueError(f"float needs 4 bytes, got {len(data)}")
    rule = int(swap_rule) & 0x0B
    if rule:
        data = swap_bytes(data, rule)
    return struct.unpack(">f", data)[0]


def double_to_bytes(value, swap_rule=SwapRule.NONE):
    """Encode a float as IEEE754 double precision, MSB first, then swapped."""
    data = struct.pack(">d", value)
    rule = int(swap_rule) & 0x0F
    return swap_bytes(data, rule) if rule else data


def double_from_bytes(data, swap_rule=SwapRule.NONE):
    """Decode eight bytes produced by double_to_bytes with the same rule."""
    data = bytes(data)
    if len(data) != 8:
        raise ValueError(f"double needs 8 bytes, got {len(data)}")
    rule = int(swap_rule) & 0x0F
    if rule:
        data = swap_bytes(data, rule)
    return struct.unpack(">d", data)[0]