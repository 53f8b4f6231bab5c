import pytest

from doggie.commands import (
    CloseChannel,
    CommandNotImplemented,
    FilterId,
    FilterMask,
    Frame,
    IncompleteMessage,
    InvalidCommand,
    MessageTooLong,
    OpenChannel,
    SetBitrate,
    SetBitTimeRegister,
    SlcanBitrate,
    SlcanError,
    Timestamp,
    Version,
)
from doggie.frame import CanFrame, ExtendedId, StandardId


@pytest.mark.parametrize(
    "code, expected",
    [
        ("0", SlcanBitrate.CAN10KB),
        ("1", SlcanBitrate.CAN20KB),
        ("2", SlcanBitrate.CAN50KB),
        ("3", SlcanBitrate.CAN100KB),
        ("4", SlcanBitrate.CAN125KB),
        ("5", SlcanBitrate.CAN250KB),
        ("6", SlcanBitrate.CAN500KB),
        ("7", SlcanBitrate.CAN800KB),
        ("8", SlcanBitrate.CAN1000KB),
    ],
)
def test_from_code_character(code, expected):
    assert SlcanBitrate.from_code(code) is expected


def test_from_code_integer():
    assert SlcanBitrate.from_code(5) is SlcanBitrate.CAN250KB


@pytest.mark.parametrize("code", ["9", "X", "", "10", 9, -1])
def test_from_code_invalid(code):
    with pytest.raises(InvalidCommand):
        SlcanBitrate.from_code(code)


def test_bitrate_values_are_kbps():
    values = [int(SlcanBitrate.from_code(str(code))) for code in range(9)]
    assert values == [10, 20, 50, 100, 125, 250, 500, 800, 1000]


@pytest.mark.parametrize("error", [InvalidCommand, MessageTooLong, CommandNotImplemented])
def test_errors_caught_by_base(error):
    with pytest.raises(SlcanError) as info:
        raise error()
    assert type(info.value) is error
    assert type(info.value) is not SlcanError


def test_invalid_code_caught_as_base_error():
    with pytest.raises(SlcanError):
        SlcanBitrate.from_code("X")


def test_simple_commands_compare_by_type():
    assert OpenChannel() == OpenChannel()
    assert not OpenChannel() == CloseChannel()
    assert IncompleteMessage() == IncompleteMessage()
    assert Version() == Version()


def test_set_bitrate_coerces_value():
    assert SetBitrate(250).bitrate is SlcanBitrate.CAN250KB


def test_set_bitrate_rejects_unknown_value():
    with pytest.raises(ValueError):
        SetBitrate(42)


def test_bit_time_register_range():
    assert SetBitTimeRegister(0xFFFFFFFF).value == 0xFFFFFFFF
    with pytest.raises(ValueError):
        SetBitTimeRegister(0x1_0000_0000)


def test_frame_command_equality():
    first = Frame(CanFrame.from_data(StandardId(0x123), False, b"\x11\x22"))
    second = Frame(CanFrame.from_data(StandardId(0x123), False, b"\x11\x22"))
    assert first == second
    assert first.frame.dlc == 2


def test_frame_command_requires_frame():
    with pytest.raises(TypeError):
        Frame(b"\x00")


def test_filter_commands_hold_ids():
    assert FilterId(StandardId(0x123)).can_id == StandardId(0x123)
    assert FilterMask(ExtendedId(0x12ABCDEF)).can_id.raw == 0x12ABCDEF
    assert not FilterId(StandardId(0x123)) == FilterMask(StandardId(0x123))


def test_filter_rejects_plain_int():
    with pytest.raises(TypeError):
        FilterId(0x123)


def test_timestamp_flag():
    assert Timestamp(True).enabled is True
    assert Timestamp(False) == Timestamp(False)
    assert not Timestamp(True) == Timestamp(False)