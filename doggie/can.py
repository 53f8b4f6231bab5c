"""CAN bitrates, controller speed codes and the interface a CAN device offers."""

from __future__ import annotations

from abc import ABC, abstractmethod
from enum import IntEnum

from doggie.frame import CanFrame, CanId


class CanBitrate(IntEnum):
    """Bitrates a CAN device can be switched to, valued in kbit/s (rounded down)."""

    Kbps5 = 5
    Kbps10 = 10
    Kbps20 = 20
    Kbps31_25 = 31
    Kbps33_3 = 33
    Kbps40 = 40
    Kbps50 = 50
    Kbps80 = 80
    Kbps100 = 100
    Kbps125 = 125
    Kbps200 = 200
    Kbps250 = 250
    Kbps500 = 500
    Kbps1000 = 1000

    @classmethod
    def from_raw(cls, value: int) -> CanBitrate:
        """Map a kbit/s value to a bitrate, falling back to 250 kbit/s."""
        try:
            return cls(value)
        except ValueError:
            return cls.Kbps250


class CanSpeed(IntEnum):
    """Speed settings of the MCP2515 controller, keyed by their raw codes."""

    Kbps5 = 5
    Kbps10 = 10
    Kbps20 = 20
    Kbps31_25 = 3125
    Kbps33_3 = 333
    Kbps40 = 40
    Kbps50 = 50
    Kbps80 = 80
    Kbps100 = 100
    Kbps125 = 125
    Kbps200 = 200
    Kbps250 = 250
    Kbps500 = 500
    Kbps1000 = 1000


def can_speed_from_raw(speed: int) -> CanSpeed:
    """Map a raw speed code to a controller speed, falling back to 250 kbit/s."""
    try:
        return CanSpeed(speed)
    except ValueError:
        return CanSpeed.Kbps250


def convert_bitrate(bitrate: CanBitrate) -> CanSpeed:
    """Translate a device bitrate into the controller speed for its raw value."""
    return can_speed_from_raw(int(bitrate))


class CanDevice(ABC):
    """A CAN controller that can send and receive frames and be configured."""

    @abstractmethod
    def transmit(self, frame: CanFrame) -> None:
        """Queue a frame for sending; raise on a controller error."""

    @abstractmethod
    def receive(self) -> CanFrame | None:
        """Return a received frame, or None when nothing is waiting."""

    @abstractmethod
    def set_bitrate(self, bitrate: CanBitrate) -> None:
        """Switch the bus to the given bitrate."""

    @abstractmethod
    def set_filter(self, can_id: CanId) -> None:
        """Accept only frames carrying this identifier."""

    @abstractmethod
    def set_mask(self, can_id: CanId) -> None:
        """Set the acceptance mask."""