# modbuskit

Modbus message handling and a threaded Modbus/TCP server. It is written in
pure Python and needs no third-party packages.

## Modules

- `modbuskit.types` holds the function codes (`FunctionCode`), the error codes
  (`Error`) and the function-code categories (`FCType`). It also has the
  function-code table (`FunctionCodeTable`, plus the shared-table helpers
  `get_type` and `redefine_type`), error texts (`error_text`) and the
  `ModbusError` exception.
- `modbuskit.swap` converts floats and doubles to and from their IEEE 754
  bytes, MSB first. It applies the byte, register, word and nibble swap rules
  (`SwapRule`, `swap_bytes`, `float_to_bytes`, `float_from_bytes`,
  `double_to_bytes`, `double_from_bytes`).
- `modbuskit.message` holds `ModbusMessage`, a byte container with
  properties for server ID, function code and error. It has big-endian
  integer, float and double writers (`add_uint8`, `add_uint16`, `add_uint32`,
  `add_uint64`, `add_float`, `add_double`) and readers (`get_uint`,
  `get_bytes`, `get_float`, `get_double`). It can also build error responses
  (`error_response`, `set_error`).
- `modbuskit.server` holds `ModbusServer`, a registry that maps a server ID
  and function code to a worker callable. It answers requests through
  `local_request` and `serve_request`, counts messages and errors, and
  defines the `NIL_RESPONSE` and `ECHO_RESPONSE` markers.
- `modbuskit.tcp_server` holds `ModbusServerTCP`, a Modbus/TCP server that
  serves each client in its own thread. `handle_frame` answers a single raw
  TCP frame.

## Installation

```
pip install modbuskit
```

## Messages

```python
from modbuskit.message import ModbusMessage
from modbuskit.swap import SwapRule

msg = ModbusMessage()
msg.add_uint8(1, 3, 4)
msg.add_float(1.0, SwapRule.SWAP_REGISTERS)   # bytes 00 00 3F 80
value, next_index = msg.get_float(3, SwapRule.SWAP_REGISTERS)
```

If a reader does not fit in the message, it returns `0` (or `0.0`) and the
unchanged index. Indexing past the end of a message gives `0`.

## Workers and local requests

```python
from modbuskit.message import ModbusMessage
from modbuskit.server import ModbusServer
from modbuskit.types import FunctionCode

def read_registers(request: ModbusMessage) -> ModbusMessage:
    response = ModbusMessage()
    response.add_uint8(request.server_id, request.function_code, 4)
    response.add_uint16(0x1234, 0x5678)
    return response

server = ModbusServer()
server.register_worker(1, FunctionCode.READ_HOLD_REGISTER, read_registers)

request = ModbusMessage()
request.add_uint8(1, FunctionCode.READ_HOLD_REGISTER)
request.add_uint16(0, 2)
response = server.local_request(request)
```

A worker registered with `FunctionCode.ANY_FUNCTION_CODE` handles every
function code of its server ID that has no worker of its own. The server
answers `Error.ILLEGAL_FUNCTION` when it knows the server ID but has no
worker for the function code. It answers `Error.INVALID_SERVER` when no
worker exists for the server ID at all. A worker can return `NIL_RESPONSE`
to send nothing, or `ECHO_RESPONSE` to send the request back.

## Serving over TCP

```python
from modbuskit.tcp_server import ModbusServerTCP

server = ModbusServerTCP()
server.register_worker(1, FunctionCode.READ_HOLD_REGISTER, read_registers)
with server:
    server.start(port=5020, max_clients=4, timeout=20.0)
    print(server.address, server.active_clients)
    ...
```

`timeout` is the idle time in seconds after which a client is dropped. `0`
keeps idle clients forever. Leaving the `with` block calls `stop()`, which
closes all client connections and the listening socket. The server answers
a frame whose protocol ID is not zero with `Error.TCP_HEAD_MISMATCH`.

## What it does not do

- It has no Modbus client. You send requests to a server yourself, for
  example over a plain socket, with a 6-byte TCP header in front of the
  message bytes.
- It has no request builder that checks parameters against function-code
  limits. You build messages byte by byte with `ModbusMessage`.
- It has only the threaded TCP server. It has no asyncio server and no
  serial (RTU or ASCII) transport.
- It has no command-line program.

## Running the tests

```
pip install -e .[test]
pytest
```