import struct

import pytest

from lowcar.defs import Analog, DeviceType
from lowcar.hardware import HIGH, LOW, Board, PinMode
from lowcar.sensors import LimitSwitch, LineFollower


def test_limit_switch_identity():
    device = LimitSwitch()
    assert device.dev_id.type == DeviceType.LIMIT_SWITCH
    assert device.dev_id.year == 0


@pytest.mark.parametrize("param, pin", [(0, Analog.IO0), (1, Analog.IO1), (2, Analog.IO2)])
def test_limit_switch_pressed_when_low(param, pin):
    board = Board()
    device = LimitSwitch(board)
    board.set_input(pin, LOW)
    assert device.device_read(param) == b"\x01"
    board.set_input(pin, HIGH)
    assert device.device_read(param) == b"\x00"


def test_limit_switch_out_of_range():
    device = LimitSwitch()
    assert device.device_read(3) == b""
    assert device.device_read(-1) == b""
    assert device.device_write(0, b"\x01") == 0


def test_limit_switch_enable_sets_inputs():
    board = Board()
    LimitSwitch(board).device_enable()
    assert all(board.pin_modes[pin] == PinMode.INPUT for pin in LimitSwitch.PINS)


def test_line_follower_identity():
    device = LineFollower()
    assert device.dev_id.type == DeviceType.LINE_FOLLOWER
    assert device.dev_id.year == 1


def test_line_follower_extremes():
    board = Board()
    device = LineFollower(board)
    board.set_input(Analog.IO0, 0)
    board.set_input(Analog.IO1, 1023)
    assert device.device_read(0) == struct.pack("<f", 1.0)
    assert device.device_read(1) == struct.pack("<f", 0.0)


def test_line_follower_decreases_with_reading():
    board = Board()
    device = LineFollower(board)
    values = []
    for reading in (100, 400, 800):
        board.set_input(Analog.IO2, reading)
        values.append(struct.unpack("<f", device.device_read(2))[0])
    assert values == sorted(values, reverse=True)
    assert all(0.0 <= v <= 1.0 for v in values)


def test_line_follower_out_of_range():
    device = LineFollower()
    assert device.device_read(3) == b""


def test_line_follower_enable_sets_inputs():
    board = Board()
    LineFollower(board).device_enable()
    assert all(board.pin_modes[pin] == PinMode.INPUT for pin in LineFollower.PINS)