import math

import pytest

from modbuskit.message import ModbusMessage
from modbuskit.swap import SwapRule
from modbuskit.types import Error


def test_construct_from_bytes_and_length():
    msg = ModbusMessage(b"\x01\x03\x00\x10")
    assert len(msg) == 4
    assert bytes(msg) == b"\x01\x03\x00\x10"
    assert list(msg) == [1, 3, 0, 0x10]


def test_bool_needs_two_bytes():
    assert not ModbusMessage()
    assert not ModbusMessage(b"\x01")
    assert ModbusMessage(b"\x01\x03")


def test_equality_with_message_and_bytes():
    a = ModbusMessage(b"\x01\x02\x03")
    b = ModbusMessage([1, 2, 3])
    assert a == b
    assert a == b"\x01\x02\x03"
    assert a != ModbusMessage(b"\x01\x02")
    assert a != ModbusMessage(b"\x01\x02\x04")


def test_getitem_out_of_bounds_returns_zero():
    msg = ModbusMessage(b"\xff\xf0")
    assert msg[0] == 0xFF
    assert msg[1] == 0xF0
    assert msg[5] == 0
    assert ModbusMessage()[0] == 0


def test_getitem_slice():
    msg = ModbusMessage(b"\x01\x02\x03\x04")
    assert msg[1:3] == b"\x02\x03"


def test_server_id_and_function_code():
    msg = ModbusMessage(b"\x05\x04\x00")
    assert msg.server_id == 5
    assert msg.function_code == 4
    short = ModbusMessage(b"\x05")
    assert short.server_id == 0
    assert short.function_code == 0


def test_setting_function_code_on_empty_pads_server_id():
    msg = ModbusMessage()
    msg.function_code = 3
    assert bytes(msg) == b"\x00\x03"
    msg.server_id = 7
    assert bytes(msg) == b"\x07\x03"


def test_error_response_bytes():
    msg = ModbusMessage.error_response(1, 3, Error.TIMEOUT)
    assert bytes(msg) == bytes([1, 0x83, 0xE0])
    assert msg.error == Error.TIMEOUT
    assert msg.server_id == 1


def test_error_success_for_normal_message():
    assert ModbusMessage(b"\x01\x03\x02\x00\x01").error == Error.SUCCESS
    assert ModbusMessage(b"\x01\x83").error == Error.SUCCESS


def test_set_error_replaces_content():
    msg = ModbusMessage(b"\x01\x03\x00\x00\x00\x0a")
    msg.set_error(2, 6, Error.ILLEGAL_DATA_ADDRESS)
    assert len(msg) == 3
    assert msg.error == Error.ILLEGAL_DATA_ADDRESS
    assert msg.function_code & 0x7F == 6


def test_copy_is_independent():
    msg = ModbusMessage(b"\x01\x03")
    dup = msg.copy()
    dup.add_uint8(9)
    assert len(msg) == 2
    assert len(dup) == 3


def test_clear_and_resize():
    msg = ModbusMessage(b"\x01\x02\x03\x04")
    assert msg.resize(2) == 2
    assert bytes(msg) == b"\x01\x02"
    assert msg.resize(4) == 4
    assert bytes(msg) == b"\x01\x02\x00\x00"
    msg.clear()
    assert len(msg) == 0


def test_resize_negative_raises():
    with pytest.raises(ValueError):
        ModbusMessage().resize(-1)


def test_append_message_and_bytes():
    msg = ModbusMessage(b"\x01")
    assert msg.append(ModbusMessage(b"\x02\x03")) == 3
    assert msg.append(b"\x04") == 4
    assert bytes(msg) == b"\x01\x02\x03\x04"


def test_add_uint_msb_first():
    msg = ModbusMessage()
    msg.add_uint8(0x01, 0x03)
    msg.add_uint16(0x1234)
    msg.add_uint32(0xDEADBEEF)
    assert bytes(msg) == b"\x01\x03\x12\x34\xde\xad\xbe\xef"


def test_add_returns_size():
    msg = ModbusMessage()
    assert msg.add_bytes(b"\x01\x02") == 2
    assert msg.add_uint16(1, 2) == 6
    assert msg.add_uint64(5) == 14


@pytest.mark.parametrize("width,value", [(1, 0xAB), (2, 0xBEEF), (4, 0x01020304), (8, 2**63 + 5)])
def test_uint_round_trip(width, value):
    msg = ModbusMessage(b"\x00")
    adder = {1: msg.add_uint8, 2: msg.add_uint16, 4: msg.add_uint32, 8: msg.add_uint64}[width]
    adder(value)
    got, index = msg.get_uint(1, width)
    assert got == value
    assert index == 1 + width


def test_get_uint_not_fitting_keeps_index():
    msg = ModbusMessage(b"\x01\x02\x03")
    assert msg.get_uint(2, 2) == (0, 2)
    assert msg.get_uint(0, 4) == (0, 0)


def test_get_uint_invalid_width():
    with pytest.raises(ValueError):
        ModbusMessage(b"\x01").get_uint(0, 0)


def test_get_bytes_stops_at_end():
    msg = ModbusMessage(b"\x01\x02\x03\x04")
    assert msg.get_bytes(1, 2) == (b"\x02\x03", 3)
    assert msg.get_bytes(2, 10) == (b"\x03\x04", 4)
    assert msg.get_bytes(4, 1) == (b"", 4)


def test_add_float_ieee_bytes():
    msg = ModbusMessage()
    msg.add_float(77230.0)
    assert bytes(msg) == bytes([0x47, 0x96, 0xD7, 0x00])


def test_add_double_ieee_bytes():
    msg = ModbusMessage()
    msg.add_double(5791007487489389.0)
    assert bytes(msg) == bytes([0x43, 0x34, 0x92, 0xE4, 0x00, 0x2E, 0xF5, 0x6D])


def test_add_float_with_byte_swap_reorders():
    plain = ModbusMessage()
    plain.add_float(77230.0)
    swapped = ModbusMessage()
    swapped.add_float(77230.0, SwapRule.SWAP_BYTES)
    assert bytes(swapped) == bytes([plain[1], plain[0], plain[3], plain[2]])


@pytest.mark.parametrize("rule", [0, 1, 2, 3, 8, 11])
def test_float_round_trip(rule):
    msg = ModbusMessage(b"\x01\x03")
    msg.add_float(-12.5, rule)
    value, index = msg.get_float(2, rule)
    assert value == -12.5
    assert index == 6


@pytest.mark.parametrize("rule", list(range(16)))
def test_double_round_trip(rule):
    msg = ModbusMessage(b"\x01\x03")
    msg.add_double(math.pi, rule)
    value, index = msg.get_double(2, rule)
    assert value == math.pi
    assert index == 10


def test_get_float_and_double_not_fitting():
    msg = ModbusMessage(b"\x01\x02\x03")
    assert msg.get_float(0) == (0.0, 0)
    assert msg.get_double(1) == (0.0, 1)


def test_repr_contains_hex():
    assert "01 03" in repr(ModbusMessage(b"\x01\x03"))