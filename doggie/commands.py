"""SLCAN commands, bitrate codes and the errors raised while decoding them."""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum
from typing import Union

from doggie.frame import CanFrame, CanId, ExtendedId, StandardId

MAX_BIT_TIME_REGISTER = 0xFFFF_FFFF


class SlcanError(Exception):
    """Base class for every SLCAN decoding error."""


class InvalidCommand(SlcanError):
    """The message is not a well-formed SLCAN command."""


class MessageTooLong(SlcanError):
    """The message exceeded the receive buffer before a carriage return."""


class CommandNotImplemented(SlcanError):
    """The command is recognised but not supported."""


class SlcanBitrate(IntEnum):
    """Bitrates selectable with the ``S`` command, valued in kbit/s."""

    CAN10KB = 10
    CAN20KB = 20
    CAN50KB = 50
    CAN100KB = 100
    CAN125KB = 125
    CAN250KB = 250
    CAN500KB = 500
    CAN800KB = 800
    CAN1000KB = 1000

    @classmethod
    def from_code(cls, code: str | int) -> SlcanBitrate:
        """Map an ``S`` command code (``'0'`` to ``'8'``, or 0 to 8) to a bitrate.

        Raises InvalidCommand for any other code.
        """
        if isinstance(code, str):
            if len(code) != 1 or code not in "012345678":
                raise InvalidCommand(f"unknown bitrate code: {code!r}")
            index = int(code)
        elif isinstance(code, int) and not isinstance(code, bool):
            index = code
        else:
            raise InvalidCommand(f"unknown bitrate code: {code!r}")
        members = list(cls)
        if not 0 <= index < len(members):
            raise InvalidCommand(f"unknown bitrate code: {code!r}")
        return members[index]


def _check_id(can_id: object) -> None:
    if not isinstance(can_id, (StandardId, ExtendedId)):
        raise TypeError("can_id must be a StandardId or an ExtendedId")


@dataclass(frozen=True)
class OpenChannel:
    """``O``: open the CAN channel."""


@dataclass(frozen=True)
class CloseChannel:
    """``C``: close the CAN channel."""


@dataclass(frozen=True)
class ReadStatusFlags:
    """``F``: read the status flags."""


@dataclass(frozen=True)
class Listen:
    """``L``: open the channel in listen-only mode."""


@dataclass(frozen=True)
class SetBitrate:
    """``S``: select one of the standard bitrates."""

    bitrate: SlcanBitrate

    def __post_init__(self) -> None:
        object.__setattr__(self, "bitrate", SlcanBitrate(self.bitrate))


@dataclass(frozen=True)
class SetBitTimeRegister:
    """``s``: set the raw bit timing register."""

    value: int

    def __post_init__(self) -> None:
        if not 0 <= self.value <= MAX_BIT_TIME_REGISTER:
            raise ValueError(f"bit time register out of range: {self.value:#x}")


@dataclass(frozen=True)
class Frame:
    """``t``, ``T``, ``r`` or ``R``: a CAN frame to send or that was received."""

    frame: CanFrame

    def __post_init__(self) -> None:
        if not isinstance(self.frame, CanFrame):
            raise TypeError("frame must be a CanFrame")


@dataclass(frozen=True)
class FilterId:
    """``m``: accept only frames with this identifier."""

    can_id: CanId

    def __post_init__(self) -> None:
        _check_id(self.can_id)


@dataclass(frozen=True)
class FilterMask:
    """``M``: set the acceptance mask."""

    can_id: CanId

    def __post_init__(self) -> None:
        _check_id(self.can_id)


@dataclass(frozen=True)
class Timestamp:
    """``Z``: switch frame timestamps on or off."""

    enabled: bool


@dataclass(frozen=True)
class Version:
    """``V`` or ``v``: query the version."""


@dataclass(frozen=True)
class SerialNo:
    """``N``: query the serial number."""


@dataclass(frozen=True)
class IncompleteMessage:
    """More bytes are needed before a command is complete."""


SlcanCommand = Union[
    OpenChannel,
    CloseChannel,
    ReadStatusFlags,
    Listen,
    SetBitrate,
    SetBitTimeRegister,
    Frame,
    FilterId,
    FilterMask,
    Timestamp,
    Version,
    SerialNo,
    IncompleteMessage,
]