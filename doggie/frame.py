"""CAN identifiers and frames, plus the hex helpers used by the SLCAN wire format."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import ClassVar, Union

_HEX_DIGITS = frozenset("0123456789abcdefABCDEF")

MAX_DATA_LEN = 8
MAX_TIMESTAMP = 0xFFFF


def _as_text(text: str | bytes | bytearray) -> str:
    if isinstance(text, (bytes, bytearray)):
        return bytes(text).decode("ascii")
    return text


def parse_hex(text: str | bytes | bytearray) -> int:
    """Parse up to eight hex digits (either case) into an integer.

    An empty input yields 0. Raises ValueError on any non-hex character
    or on more than eight digits.
    """
    digits = _as_text(text)
    if len(digits) > 8:
        raise ValueError(f"too many hex digits: {digits!r}")
    if not all(char in _HEX_DIGITS for char in digits):
        raise ValueError(f"invalid hex digits: {digits!r}")
    return int(digits, 16) if digits else 0


def format_hex(value: int, width: int) -> str:
    """Render the lowest ``width`` nibbles of ``value`` as upper-case hex."""
    if width < 0:
        raise ValueError("width must not be negative")
    if width == 0:
        return ""
    return format(value & ((1 << (4 * width)) - 1), f"0{width}X")


@dataclass(frozen=True)
class StandardId:
    """An 11-bit CAN identifier."""

    MAX: ClassVar[int] = 0x7FF

    raw: int

    def __post_init__(self) -> None:
        if not 0 <= self.raw <= self.MAX:
            raise ValueError(f"standard id out of range: {self.raw:#x}")


@dataclass(frozen=True)
class ExtendedId:
    """A 29-bit CAN identifier."""

    MAX: ClassVar[int] = 0x1FFF_FFFF

    raw: int

    def __post_init__(self) -> None:
        if not 0 <= self.raw <= self.MAX:
            raise ValueError(f"extended id out of range: {self.raw:#x}")


CanId = Union[StandardId, ExtendedId]


@dataclass
class CanFrame:
    """A classic CAN frame of up to eight data bytes, with an optional timestamp."""

    can_id: CanId
    data: bytes = b""
    is_remote: bool = False
    timestamp: int | None = field(default=None)

    def __post_init__(self) -> None:
        if not isinstance(self.can_id, (StandardId, ExtendedId)):
            raise TypeError("can_id must be a StandardId or an ExtendedId")
        self.data = bytes(self.data)
        if len(self.data) > MAX_DATA_LEN:
            raise ValueError(f"frame data longer than {MAX_DATA_LEN} bytes")
        if self.timestamp is not None and not 0 <= self.timestamp <= MAX_TIMESTAMP:
            raise ValueError(f"timestamp out of range: {self.timestamp}")

    @property
    def dlc(self) -> int:
        """Number of data bytes."""
        return len(self.data)

    @property
    def is_extended(self) -> bool:
        return isinstance(self.can_id, ExtendedId)

    @classmethod
    def from_data(cls, can_id: CanId, is_remote: bool, data: bytes) -> CanFrame:
        """Build a frame from raw data bytes."""
        return cls(can_id=can_id, data=bytes(data), is_remote=is_remote)

    @classmethod
    def from_hex(
        cls, can_id: CanId, is_remote: bool, hex_data: str | bytes | bytearray
    ) -> CanFrame:
        """Build a frame from data given as pairs of hex digits."""
        digits = _as_text(hex_data)
        if len(digits) > 2 * MAX_DATA_LEN:
            raise ValueError("too much hex data for one frame")
        if len(digits) % 2:
            raise ValueError("hex data must have an even number of digits")
        data = bytes(
            parse_hex(digits[pos : pos + 2]) for pos in range(0, len(digits), 2)
        )
        return cls(can_id=can_id, data=data, is_remote=is_remote)