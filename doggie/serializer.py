"""Streaming decoder and encoder for the SLCAN ASCII protocol."""

from __future__ import annotations

from collections.abc import Callable, Iterable

from doggie.commands import (
    CloseChannel,
    CommandNotImplemented,
    FilterId,
    FilterMask,
    Frame,
    IncompleteMessage,
    InvalidCommand,
    Listen,
    MessageTooLong,
    OpenChannel,
    ReadStatusFlags,
    SerialNo,
    SetBitrate,
    SlcanBitrate,
    SlcanCommand,
    Timestamp,
    Version,
)
from doggie.frame import CanFrame, ExtendedId, StandardId, format_hex, parse_hex

MAX_MESSAGE_LEN = 31
TERMINATOR = 0x0D

_STANDARD_ID_DIGITS = 3
_EXTENDED_ID_DIGITS = 8


def _hex(chunk: bytes) -> int:
    try:
        return parse_hex(chunk)
    except ValueError as exc:
        raise InvalidCommand(f"invalid hex: {chunk!r}") from exc


class SlcanSerializer:
    """Turns a byte stream into SLCAN commands and frames into SLCAN messages.

    Bytes are collected until a carriage return ends a message; a message
    that reaches 31 bytes without one is dropped as too long.
    """

    def __init__(self) -> None:
        self._buffer = bytearray()
        self._parsers: dict[int, Callable[[bytes], SlcanCommand]] = {
            ord("O"): lambda msg: self._bare(msg, OpenChannel()),
            ord("C"): lambda msg: self._bare(msg, CloseChannel()),
            ord("F"): lambda msg: self._bare(msg, ReadStatusFlags()),
            ord("L"): lambda msg: self._bare(msg, Listen()),
            ord("S"): self._set_bitrate,
            ord("s"): self._not_implemented,
            ord("t"): lambda msg: self._standard_frame(msg, is_remote=False),
            ord("T"): lambda msg: self._extended_frame(msg, is_remote=False),
            ord("r"): lambda msg: self._standard_frame(msg, is_remote=True),
            ord("R"): lambda msg: self._extended_frame(msg, is_remote=True),
            ord("m"): lambda msg: self._filter(msg, FilterId),
            ord("M"): lambda msg: self._filter(msg, FilterMask),
            ord("Z"): self._timestamp,
            ord("V"): lambda msg: self._bare(msg, Version()),
            ord("v"): lambda msg: self._bare(msg, Version()),
            ord("N"): lambda msg: self._bare(msg, SerialNo()),
        }

    # Encoding

    def to_bytes(self, cmd: SlcanCommand) -> bytes | None:
        """Encode a Frame command as an SLCAN message; other commands give None."""
        if isinstance(cmd, Frame):
            return self._serialize_frame(cmd.frame)
        return None

    @staticmethod
    def _serialize_frame(frame: CanFrame) -> bytes:
        if isinstance(frame.can_id, ExtendedId):
            prefix = "R" if frame.is_remote else "T"
            ident = format_hex(frame.can_id.raw, _EXTENDED_ID_DIGITS)
        else:
            prefix = "r" if frame.is_remote else "t"
            ident = format_hex(frame.can_id.raw, _STANDARD_ID_DIGITS)
        parts = [prefix, ident, format_hex(frame.dlc, 1)]
        parts.extend(format_hex(byte, 2) for byte in frame.data)
        if frame.timestamp is not None:
            parts.append(format_hex(frame.timestamp, 4))
        parts.append("\r")
        return "".join(parts).encode("ascii")

    # Decoding

    def from_bytes(self, data: Iterable[int]) -> SlcanCommand:
        """Feed bytes until one completes a command and return it.

        Bytes after the completing one are not consumed. Returns
        IncompleteMessage if no command was completed.
        """
        for byte in data:
            result = self.from_byte(byte)
            if not isinstance(result, IncompleteMessage):
                return result
        return IncompleteMessage()

    def from_byte(self, byte: int) -> SlcanCommand:
        """Feed one byte; return the completed command or IncompleteMessage.

        Raises an SlcanError subclass when a completed message is invalid
        or when the message grows too long.
        """
        if isinstance(byte, (bytes, bytearray)):
            if len(byte) != 1:
                raise ValueError("expected a single byte")
            byte = byte[0]
        if not 0 <= byte <= 0xFF:
            raise ValueError(f"not a byte value: {byte}")

        if len(self._buffer) >= MAX_MESSAGE_LEN:
            self._buffer.clear()
            raise MessageTooLong("message exceeds the receive buffer")

        self._buffer.append(byte)
        if byte != TERMINATOR:
            return IncompleteMessage()

        message = bytes(self._buffer)
        self._buffer.clear()
        return self._parse(message)

    def _parse(self, message: bytes) -> SlcanCommand:
        parser = self._parsers.get(message[0])
        if parser is None:
            raise InvalidCommand(f"unknown command: {message!r}")
        return parser(message)

    @staticmethod
    def _bare(message: bytes, command: SlcanCommand) -> SlcanCommand:
        if len(message) != 2:
            raise InvalidCommand(f"unexpected arguments: {message!r}")
        return command

    @staticmethod
    def _not_implemented(message: bytes) -> SlcanCommand:
        raise CommandNotImplemented(f"command not implemented: {message!r}")

    @staticmethod
    def _set_bitrate(message: bytes) -> SlcanCommand:
        if len(message) != 3:
            raise InvalidCommand(f"malformed bitrate command: {message!r}")
        return SetBitrate(SlcanBitrate.from_code(chr(message[1])))

    @staticmethod
    def _timestamp(message: bytes) -> SlcanCommand:
        if len(message) != 3:
            raise InvalidCommand(f"malformed timestamp command: {message!r}")
        flag = message[1:2]
        if flag == b"0":
            return Timestamp(False)
        if flag == b"1":
            return Timestamp(True)
        raise InvalidCommand(f"invalid timestamp flag: {flag!r}")

    @staticmethod
    def _filter(message: bytes, kind: type[FilterId] | type[FilterMask]) -> SlcanCommand:
        try:
            if len(message) == _STANDARD_ID_DIGITS + 2:
                return kind(StandardId(_hex(message[1 : 1 + _STANDARD_ID_DIGITS])))
            if len(message) == _EXTENDED_ID_DIGITS + 2:
                return kind(ExtendedId(_hex(message[1 : 1 + _EXTENDED_ID_DIGITS])))
        except ValueError as exc:
            raise InvalidCommand(str(exc)) from exc
        raise InvalidCommand(f"malformed filter command: {message!r}")

    @staticmethod
    def _frame(
        message: bytes,
        digits: int,
        id_type: type[StandardId] | type[ExtendedId],
        is_remote: bool,
    ) -> SlcanCommand:
        header = 1 + digits + 1
        if len(message) < header + 1:
            raise InvalidCommand(f"frame too short: {message!r}")
        raw_id = _hex(message[1 : 1 + digits])
        dlc = _hex(message[1 + digits : header])
        if len(message) != header + 2 * dlc + 1:
            raise InvalidCommand(f"frame length does not match dlc: {message!r}")
        try:
            can_id = id_type(raw_id)
            frame = CanFrame.from_hex(can_id, is_remote, message[header : header + 2 * dlc])
        except ValueError as exc:
            raise InvalidCommand(str(exc)) from exc
        return Frame(frame)

    def _standard_frame(self, message: bytes, is_remote: bool) -> SlcanCommand:
        return self._frame(message, _STANDARD_ID_DIGITS, StandardId, is_remote)

    def _extended_frame(self, message: bytes, is_remote: bool) -> SlcanCommand:
        return self._frame(message, _EXTENDED_ID_DIGITS, ExtendedId, is_remote)