"""Function codes, error codes and function code classification."""

from __future__ import annotations

from enum import IntEnum


class FunctionCode(IntEnum):
    """Modbus function codes."""

    ANY_FUNCTION_CODE = 0x00
    READ_COIL = 0x01
    READ_DISCR_INPUT = 0x02
    READ_HOLD_REGISTER = 0x03
    READ_INPUT_REGISTER = 0x04
    WRITE_COIL = 0x05
    WRITE_HOLD_REGISTER = 0x06
    READ_EXCEPTION_SERIAL = 0x07
    DIAGNOSTICS_SERIAL = 0x08
    READ_COMM_CNT_SERIAL = 0x0B
    READ_COMM_LOG_SERIAL = 0x0C
    WRITE_MULT_COILS = 0x0F
    WRITE_MULT_REGISTERS = 0x10
    REPORT_SERVER_ID_SERIAL = 0x11
    READ_FILE_RECORD = 0x14
    WRITE_FILE_RECORD = 0x15
    MASK_WRITE_REGISTER = 0x16
    R_W_MULT_REGISTERS = 0x17
    READ_FIFO_QUEUE = 0x18
    ENCAPSULATED_INTERFACE = 0x2B
    USER_DEFINED_41 = 0x41
    USER_DEFINED_42 = 0x42
    USER_DEFINED_43 = 0x43
    USER_DEFINED_44 = 0x44
    USER_DEFINED_45 = 0x45
    USER_DEFINED_46 = 0x46
    USER_DEFINED_47 = 0x47
    USER_DEFINED_48 = 0x48
    USER_DEFINED_64 = 0x64
    USER_DEFINED_65 = 0x65
    USER_DEFINED_66 = 0x66
    USER_DEFINED_67 = 0x67
    USER_DEFINED_68 = 0x68
    USER_DEFINED_69 = 0x69
    USER_DEFINED_6A = 0x6A
    USER_DEFINED_6B = 0x6B
    USER_DEFINED_6C = 0x6C
    USER_DEFINED_6D = 0x6D
    USER_DEFINED_6E = 0x6E


class Error(IntEnum):
    """Modbus exception codes and library error codes.

    Any byte value is accepted; values without a name become unnamed members.
    """

    SUCCESS = 0x00
    ILLEGAL_FUNCTION = 0x01
    ILLEGAL_DATA_ADDRESS = 0x02
    ILLEGAL_DATA_VALUE = 0x03
    SERVER_DEVICE_FAILURE = 0x04
    ACKNOWLEDGE = 0x05
    SERVER_DEVICE_BUSY = 0x06
    NEGATIVE_ACKNOWLEDGE = 0x07
    MEMORY_PARITY_ERROR = 0x08
    GATEWAY_PATH_UNAVAIL = 0x0A
    GATEWAY_TARGET_NO_RESP = 0x0B
    TIMEOUT = 0xE0
    INVALID_SERVER = 0xE1
    CRC_ERROR = 0xE2
    FC_MISMATCH = 0xE3
    SERVER_ID_MISMATCH = 0xE4
    PACKET_LENGTH_ERROR = 0xE5
    PARAMETER_COUNT_ERROR = 0xE6
    PARAMETER_LIMIT_ERROR = 0xE7
    REQUEST_QUEUE_FULL = 0xE8
    ILLEGAL_IP_OR_PORT = 0xE9
    IP_CONNECTION_FAILED = 0xEA
    TCP_HEAD_MISMATCH = 0xEB
    EMPTY_MESSAGE = 0xEC
    ASCII_FRAME_ERR = 0xED
    ASCII_CRC_ERR = 0xEE
    ASCII_INVALID_CHAR = 0xEF
    BROADCAST_ERROR = 0xF0
    UNDEFINED_ERROR = 0xFF

    @classmethod
    def _missing_(cls, value):
        if isinstance(value, int) and 0 <= value <= 0xFF:
            member = int.__new__(cls, value)
            member._name_ = f"ERROR_{value:02X}"
            member._value_ = value
            return member
        return None


class FCType(IntEnum):
    """Parameter layout class of a function code."""

    FC01_TYPE = 0   # two 16-bit parameters
    FC07_TYPE = 1   # no additional parameter
    FC0F_TYPE = 2   # two 16-bit parameters, byte count and coil bytes
    FC10_TYPE = 3   # two 16-bit parameters, byte count and register words
    FC16_TYPE = 4   # three 16-bit parameters
    FC18_TYPE = 5   # one 16-bit parameter
    FCGENERIC = 6   # not explicitly coded
    FCUSER = 7      # no checks except the server ID
    FCILLEGAL = 8   # not allowed


_DEFINED_TYPES: dict[int, FCType] = {
    **{fc: FCType.FC01_TYPE for fc in range(0x01, 0x07)},
    0x07: FCType.FC07_TYPE,
    0x08: FCType.FCGENERIC,
    0x0B: FCType.FC07_TYPE,
    0x0C: FCType.FC07_TYPE,
    0x0F: FCType.FC0F_TYPE,
    0x10: FCType.FC10_TYPE,
    0x11: FCType.FC07_TYPE,
    0x14: FCType.FCGENERIC,
    0x15: FCType.FCGENERIC,
    0x16: FCType.FC16_TYPE,
    0x17: FCType.FCGENERIC,
    0x18: FCType.FC18_TYPE,
    0x2B: FCType.FCGENERIC,
    **{fc: FCType.FCUSER for fc in range(0x41, 0x49)},
    **{fc: FCType.FCUSER for fc in range(0x64, 0x6F)},
}


class FunctionCodeTable:
    """Maps each of the 128 function codes to its parameter layout class."""

    def __init__(self):
        self._table = [_DEFINED_TYPES.get(fc, FCType.FCILLEGAL) for fc in range(128)]

    def get_type(self, function_code):
        """Return the type of a function code; the error bit 0x80 is ignored."""
        return self._table[function_code & 0x7F]

    def redefine_type(self, function_code, fc_type=FCType.FCUSER):
        """Set the type of a yet undefined code and return the effective type."""
        fc = function_code & 0x7F
        if self._table[fc] == FCType.FCILLEGAL:
            self._table[fc] = FCType(fc_type)
        return self._table[fc]


_ERROR_TEXTS: dict[Error, str] = {
    Error.SUCCESS: "Success",
    Error.ILLEGAL_FUNCTION: "Illegal function code",
    Error.ILLEGAL_DATA_ADDRESS: "Illegal data address",
    Error.ILLEGAL_DATA_VALUE: "Illegal data value",
    Error.SERVER_DEVICE_FAILURE: "Server device failure",
    Error.ACKNOWLEDGE: "Acknowledge",
    Error.SERVER_DEVICE_BUSY: "Server device busy",
    Error.NEGATIVE_ACKNOWLEDGE: "Negative acknowledge",
    Error.MEMORY_PARITY_ERROR: "Memory parity error",
    Error.GATEWAY_PATH_UNAVAIL: "Gateway path unavailable",
    Error.GATEWAY_TARGET_NO_RESP: "Gateway target not responding",
    Error.TIMEOUT: "Timeout",
    Error.INVALID_SERVER: "Invalid server",
    Error.CRC_ERROR: "CRC check error",
    Error.FC_MISMATCH: "Function code mismatch",
    Error.SERVER_ID_MISMATCH: "Server ID mismatch",
    Error.PACKET_LENGTH_ERROR: "Packet length error",
    Error.PARAMETER_COUNT_ERROR: "Wrong # of parameters",
    Error.PARAMETER_LIMIT_ERROR: "Parameter out of bounds",
    Error.REQUEST_QUEUE_FULL: "Request queue full",
    Error.ILLEGAL_IP_OR_PORT: "Illegal IP or port",
    Error.IP_CONNECTION_FAILED: "IP connection failed",
    Error.TCP_HEAD_MISMATCH: "TCP header mismatch",
    Error.EMPTY_MESSAGE: "Incomplete request",
    Error.ASCII_FRAME_ERR: "Invalid ASCII frame",
    Error.ASCII_CRC_ERR: "Invalid ASCII CRC",
    Error.ASCII_INVALID_CHAR: "Invalid ASCII character",
    Error.BROADCAST_ERROR: "Broadcast data invalid",
}


def error_text(error):
    """Return the descriptive text for an error code."""
    return _ERROR_TEXTS.get(int(error), "Unspecified error")


class ModbusError(Exception):
    """Exception carrying a Modbus error code."""

    def __init__(self, error=Error.SUCCESS):
        self.error = Error(error)
        super().__init__(error_text(self.error))

    @property
    def text(self):
        return error_text(self.error)

    def __int__(self):
        return int(self.error)


_default_table = FunctionCodeTable()


def get_type(function_code):
    """Return the type of a function code from the shared table."""
    return _default_table.get_type(function_code)


def redefine_type(function_code, fc_type=FCType.FCUSER):
    """Redefine an undefined function code in the shared table."""
    return _default_table.redefine_type(function_code, fc_type)