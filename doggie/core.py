"""The bridge between a serial SLCAN link and a CAN device."""

from __future__ import annotations

import asyncio
import logging
import time
from abc import ABC, abstractmethod
from collections.abc import Callable
from dataclasses import dataclass, field, replace
from typing import NoReturn

from doggie.can import CanBitrate, CanDevice
from doggie.commands import (
    CloseChannel,
    FilterId,
    FilterMask,
    Frame,
    IncompleteMessage,
    Listen,
    OpenChannel,
    ReadStatusFlags,
    SerialNo,
    SetBitrate,
    SetBitTimeRegister,
    SlcanCommand,
    SlcanError,
    Timestamp,
    Version,
)
from doggie.frame import CanFrame
from doggie.serializer import SlcanSerializer

logger = logging.getLogger(__name__)

CAN_CHANNEL_SIZE = 16
SERIAL_BUFFER_SIZE = 64

_ACK = b"\r"
_STATUS_FLAGS = b"F00\r"
_VERSION = b"V1337\r"
_SERIAL_NUMBER = b"N1337\r"


def new_channel() -> asyncio.Queue:
    """Create a bounded queue carrying SLCAN commands between the tasks."""
    return asyncio.Queue(maxsize=CAN_CHANNEL_SIZE)


class SerialPort(ABC):
    """An asynchronous byte stream such as a UART or a USB CDC link."""

    @abstractmethod
    async def read(self, size: int) -> bytes:
        """Wait for data and return up to ``size`` bytes."""

    @abstractmethod
    async def write(self, data: bytes) -> int:
        """Write some of ``data`` and return how many bytes were taken."""


class ElapsedTimer:
    """Microseconds since start, wrapped to 16 bits as SLCAN timestamps are."""

    def __init__(self, clock: Callable[[], int] = time.monotonic_ns) -> None:
        self._clock = clock
        self._start: int | None = None

    def start(self) -> None:
        self._start = self._clock()

    def current(self) -> int | None:
        """Elapsed microseconds modulo 65536, or None if never started."""
        if self._start is None:
            return None
        return ((self._clock() - self._start) // 1000) & 0xFFFF


@dataclass
class Bsp:
    """The board's peripherals: a CAN device and a serial port."""

    can: CanDevice | None
    serial: SerialPort | None


async def _write_all(serial: SerialPort, data: bytes) -> None:
    view = memoryview(data)
    while view:
        written = await serial.write(bytes(view))
        if written <= 0:
            raise OSError("serial port accepted no data")
        view = view[written:]


@dataclass
class _SlcanSession:
    serial: SerialPort
    out_channel: asyncio.Queue
    serializer: SlcanSerializer = field(default_factory=SlcanSerializer)
    timer: ElapsedTimer = field(default_factory=ElapsedTimer)
    listen_only: bool = False
    timestamp_enabled: bool = False

    async def handle_serial(self, chunk: bytes) -> None:
        for byte in chunk:
            try:
                cmd = self.serializer.from_byte(byte)
            except SlcanError as exc:
                logger.error("slcan error: %s", exc)
                continue
            await self._handle_command(cmd)

    async def _handle_command(self, cmd: SlcanCommand) -> None:
        if isinstance(cmd, IncompleteMessage):
            return
        if isinstance(cmd, (OpenChannel, CloseChannel)):
            await _write_all(self.serial, _ACK)
        elif isinstance(cmd, ReadStatusFlags):
            await _write_all(self.serial, _STATUS_FLAGS)
        elif isinstance(cmd, Listen):
            self.listen_only = True
            await _write_all(self.serial, _ACK)
        elif isinstance(cmd, Version):
            await _write_all(self.serial, _VERSION)
        elif isinstance(cmd, SerialNo):
            await _write_all(self.serial, _SERIAL_NUMBER)
        elif isinstance(cmd, Timestamp):
            if cmd.enabled and not self.timestamp_enabled:
                logger.info("timestamp started")
                self.timer.start()
            self.timestamp_enabled = cmd.enabled
            await _write_all(self.serial, _ACK)
        elif self.listen_only:
            logger.error("cannot send frame in listen only mode")
        else:
            await self.out_channel.put(cmd)

    async def handle_can(self, cmd: SlcanCommand) -> None:
        if not isinstance(cmd, Frame):
            return
        frame = cmd.frame
        if self.timestamp_enabled:
            frame = replace(frame, timestamp=self.timer.current())
        message = self.serializer.to_bytes(Frame(frame))
        if message is not None:
            await _write_all(self.serial, message)


class Core:
    """Owns the board peripherals and runs the serial and CAN tasks."""

    def __init__(self, bsp: Bsp) -> None:
        self.bsp = bsp

    @staticmethod
    async def slcan_task(
        serial: SerialPort, in_channel: asyncio.Queue, out_channel: asyncio.Queue
    ) -> NoReturn:
        """Decode SLCAN from the serial port and encode frames coming from CAN."""
        session = _SlcanSession(serial, out_channel)
        read_task: asyncio.Future | None = None
        get_task: asyncio.Future | None = None
        try:
            while True:
                if read_task is None:
                    read_task = asyncio.ensure_future(serial.read(SERIAL_BUFFER_SIZE))
                if get_task is None:
                    get_task = asyncio.ensure_future(in_channel.get())
                done, _ = await asyncio.wait(
                    {read_task, get_task}, return_when=asyncio.FIRST_COMPLETED
                )
                if read_task in done:
                    chunk = read_task.result()
                    read_task = None
                    await session.handle_serial(chunk)
                if get_task in done:
                    cmd = get_task.result()
                    get_task = None
                    await session.handle_can(cmd)
        finally:
            for pending in (read_task, get_task):
                if pending is not None:
                    pending.cancel()

    @staticmethod
    async def can_task(
        can: CanDevice, in_channel: asyncio.Queue, out_channel: asyncio.Queue
    ) -> NoReturn:
        """Forward received frames and apply commands to the CAN device."""
        logger.info("can task started")
        while True:
            received = can.receive()
            if received is not None:
                logger.info("new frame received")
                await out_channel.put(Frame(received))

            if not in_channel.empty():
                cmd = in_channel.get_nowait()
                if isinstance(cmd, Frame):
                    logger.info("sending new frame")
                    can.transmit(
                        CanFrame.from_data(cmd.frame.can_id, False, cmd.frame.data)
                    )
                elif isinstance(cmd, (FilterId, FilterMask)):
                    can.set_filter(cmd.can_id)
                elif isinstance(cmd, SetBitrate):
                    can.set_bitrate(CanBitrate.from_raw(int(cmd.bitrate)))
                elif isinstance(cmd, SetBitTimeRegister):
                    pass

            await asyncio.sleep(0)

    def run(self) -> tuple[asyncio.Task, asyncio.Task]:
        """Take the peripherals and start both tasks on the running event loop."""
        serial, can = self.bsp.serial, self.bsp.can
        if serial is None or can is None:
            raise RuntimeError("peripherals have already been taken")
        self.bsp.serial = None
        self.bsp.can = None

        serial_channel = new_channel()
        can_channel = new_channel()
        return (
            asyncio.create_task(self.slcan_task(serial, serial_channel, can_channel)),
            asyncio.create_task(self.can_task(can, can_channel, serial_channel)),
        )