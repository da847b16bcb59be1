import struct

import pytest

from lowcar.defs import DeviceType
from lowcar.hardware import Board
from lowcar.servo_control import SERVO_CENTER, SERVO_PINS, ServoControl


def _f(value):
    return struct.pack("<f", value)


@pytest.fixture
def servo():
    return ServoControl(Board())


def test_identity(servo):
    assert servo.dev_id.type == DeviceType.SERVO_CONTROL
    assert servo.dev_id.year == 1


def test_starts_centered_and_detached(servo):
    assert servo.device_read(0) == _f(0.0)
    assert servo.device_read(1) == _f(0.0)
    assert not any(servo.board.servo_attached(pin) for pin in SERVO_PINS)


def test_write_attaches_and_sets_pulse(servo):
    assert servo.device_write(0, _f(0.0)) == 4
    assert servo.board.servo_attached(SERVO_PINS[0])
    assert servo.board.servo_pulses[SERVO_PINS[0]] == SERVO_CENTER
    assert not servo.board.servo_attached(SERVO_PINS[1])


def test_write_quarter_position(servo):
    servo.device_write(1, _f(0.25))
    assert servo.board.servo_pulses[SERVO_PINS[1]] == 1750


def test_write_then_read_round_trip(servo):
    servo.device_write(1, _f(-0.75))
    assert servo.device_read(1) == _f(-0.75)


@pytest.mark.parametrize("value", [1.5, -1.01, float("nan")])
def test_out_of_range_write_is_rejected(servo, value):
    assert servo.device_write(0, _f(value)) == 0
    assert servo.device_read(0) == _f(0.0)
    assert not servo.board.servo_attached(SERVO_PINS[0])


def test_limits_are_accepted(servo):
    assert servo.device_write(0, _f(1.0)) == 4
    assert servo.device_write(1, _f(-1.0)) == 4
    assert servo.device_read(0) == _f(1.0)


def test_unknown_param(servo):
    assert servo.device_read(2) == b""
    assert servo.device_write(2, _f(0.5)) == 0


def test_reset_detaches_but_keeps_positions(servo):
    servo.device_write(0, _f(0.5))
    servo.device_write(1, _f(0.5))
    servo.device_reset()
    assert not any(servo.board.servo_attached(pin) for pin in SERVO_PINS)
    assert servo.device_read(0) == _f(0.5)


def test_disable_all_detaches(servo):
    servo.device_write(0, _f(0.1))
    servo.disable_all()
    assert servo.board.servo_attached(SERVO_PINS[0]) is False