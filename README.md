# doggie

An asyncio implementation of the SLCAN (serial line CAN) protocol, with the
core of a CAN-to-serial bridge. A host sends SLCAN commands over a serial
link. The bridge applies them to a CAN controller. Frames received from the
bus go back to the host as SLCAN text.

The package has no runtime dependencies.

## Installation

```
pip install .
```

To run the test suite, install the `test` extra and run pytest:

```
pip install .[test]
pytest
```

## Frames and identifiers

`doggie.frame` defines three classes:

- `StandardId`: an 11-bit identifier, at most `0x7FF`.
- `ExtendedId`: a 29-bit identifier, at most `0x1FFFFFFF`.
- `CanFrame`: up to eight data bytes, an `is_remote` flag and an optional
  16-bit `timestamp`.

Out-of-range values raise `ValueError`. `CanFrame.dlc` is the number of data
bytes.

```python
from doggie.frame import CanFrame, StandardId

frame = CanFrame.from_data(StandardId(0x123), False, b"\xf1\xf2\xf3")
hex_frame = CanFrame.from_hex(StandardId(0x456), False, b"112233")
assert hex_frame.data == b"\x11\x22\x33"
```

The module also has two hex helpers:

- `parse_hex(text)` reads up to eight hex digits, in either case.
- `format_hex(value, width)` writes the lowest `width` nibbles of `value` in
  upper case.

## Parsing and serializing SLCAN

`doggie.commands` has one class for each SLCAN command:

| Class | Command |
| --- | --- |
| `OpenChannel` | `O` |
| `CloseChannel` | `C` |
| `ReadStatusFlags` | `F` |
| `Listen` | `L` |
| `SetBitrate` | `S0` to `S8`, see `SlcanBitrate` |
| `SetBitTimeRegister` | `s` |
| `Frame` | `t`, `T`, `r`, `R` |
| `FilterId` | `m` |
| `FilterMask` | `M` |
| `Timestamp` | `Z0`, `Z1` |
| `Version` | `V`, `v` |
| `SerialNo` | `N` |

`IncompleteMessage` means more bytes are needed.

`SlcanSerializer` reads bytes one at a time. When a message ends with `\r` it
returns the command, and until then it returns `IncompleteMessage`. Bad input
raises a subclass of `SlcanError`:

- `InvalidCommand`: the message is malformed.
- `MessageTooLong`: 31 bytes arrived without a `\r`. The buffer is then
  cleared.
- `CommandNotImplemented`: the message is an `s` command.

`from_bytes(data)` feeds bytes until one command is complete and stops there.

```python
from doggie.serializer import SlcanSerializer
from doggie.commands import Frame, OpenChannel

serializer = SlcanSerializer()
assert serializer.from_bytes(b"O\r") == OpenChannel()

command = serializer.from_bytes(b"t4563112233\r")
assert isinstance(command, Frame)
assert serializer.to_bytes(command) == b"t4563112233\r"
```

`to_bytes` encodes only `Frame` commands and returns `None` for any other
command. When a frame has a timestamp, it is written as four hex digits after
the data.

## Running the bridge

`doggie.core` contains the bridge. You supply two objects:

- a serial port: a subclass of `SerialPort` with async `read(size)` and
  `write(data)`;
- a CAN controller: a subclass of `doggie.can.CanDevice` with `transmit`,
  `receive` (returning `None` when nothing is waiting), `set_bitrate`,
  `set_filter` and `set_mask`.

Put both in a `Bsp` and build a `Core` from it. `Core.run()` must be called
inside a running event loop. It starts two tasks and returns them. The tasks
pass commands over bounded queues of 16 entries, created by `new_channel()`.
`run()` takes the peripherals out of the `Bsp`, so a second call raises
`RuntimeError`.

```python
import asyncio
from doggie.core import Bsp, Core

async def main(can_device, serial_port):
    core = Core(Bsp(can_device, serial_port))
    await asyncio.gather(*core.run())
```

### Commands handled on the serial side

The SLCAN task replies to these commands itself:

| Command | Reply |
| --- | --- |
| `V` | `V1337\r` |
| `N` | `N1337\r` |
| `F` | `F00\r` (always) |
| `O`, `C`, `L`, `Z0`, `Z1` | a bare `\r` |

- `O` and `C` do not start or stop anything. They are only acknowledged.
- `L` switches to listen-only mode. From then on, frames, filters and bitrate
  changes from the host are dropped and an error is logged.
- `Z1` starts an `ElapsedTimer`. Each outgoing frame is then stamped with the
  microseconds since that moment, modulo 65536.
- Decoding errors are logged and the input that caused them is skipped.

### Commands applied to the CAN device

The CAN task polls `receive()` and forwards received frames to the host. It
applies commands from the host to the device:

- Frames are sent with `transmit` as data frames, even when the host sent a
  remote frame.
- Both `m` and `M` call `set_filter`.
- `S` calls `set_bitrate` with the `CanBitrate` of the same kbit/s value. The
  only value without one is 800 kbit/s, which falls back to 250 kbit/s.
- `SetBitTimeRegister` is ignored.

## Bitrate tables

`doggie.can` maps bitrate values to controller settings:

- `CanBitrate` lists the bitrates a device can be switched to.
- `CanBitrate.from_raw` looks up a bitrate by its kbit/s value.
- `CanSpeed` holds the MCP2515 speed codes. 31.25 kbit/s is `3125` and
  33.3 kbit/s is `333`.
- `can_speed_from_raw` looks up a `CanSpeed` by its code.
- `convert_bitrate` translates a `CanBitrate` into a `CanSpeed`.

A value with no entry falls back to 250 kbit/s.

## What this package does not do

- It has no command-line program.
- It has no drivers. It does not open serial ports, USB links or CAN
  controllers. The MCP2515 appears only in the `CanSpeed` table, and you must
  provide your own `SerialPort` and `CanDevice` implementations.
- It does not report real status flags.
- It does not implement the `s` (bit timing register) command.