"""The KoalaBear two-motor controller with encoders and PID control."""

from __future__ import annotations

import math
import struct
from dataclasses import dataclass
from enum import IntEnum

from .defs import DeviceType
from .device import Device
from .hardware import HIGH, LOW, Board, ByteStream, PinMode
from .koala_leds import (
    AENC1,
    AENC2,
    AIN1,
    AIN2,
    BENC1,
    BENC2,
    BIN1,
    BIN2,
    HEARTBEAT,
    RESET,
    SCS,
    SLEEP,
    LEDKoala,
)
from .pid import PID

# Motor controller registers and options.
CTRL_REG = 0b000
TORQUE_REG = 0b001
DTIME_410_NS = 0b00
ISGAIN_20 = 0b10
ENABLE = 0b1
TORQUE = 0x70

MAX_DUTY_CYCLE = 1.0
"""Cap on the duty cycle sent to the motors, in (0, 1]."""

ACCEL = 2.0
"""Acceleration of the motors in duty-cycle units per second squared."""

KP_DEFAULT = 0.045
KI_DEFAULT = 0.35
KD_DEFAULT = 0.001

LED_SWITCH_MS = 2000
SETUP_DELAY_MS = 100
PARAMS_PER_MOTOR = 8

_FLOAT = struct.Struct("<f")
_INT = struct.Struct("<i")


def _f32(value: float) -> float:
    return _FLOAT.unpack(_FLOAT.pack(value))[0]


def _i32(value: int) -> int:
    return (value + 2**31) % 2**32 - 2**31


def _unpack(fmt: struct.Struct, data: bytes):
    return fmt.unpack(bytes(data[: fmt.size]).ljust(fmt.size, b"\x00"))[0]


class Motor(IntEnum):
    A = 0
    B = 1


class MotorParam(IntEnum):
    """Parameter of a motor; motor B's parameters follow motor A's."""

    VELOCITY = 0
    DEADBAND = 1
    INVERT = 2
    PID_ENABLED = 3
    PID_KP = 4
    PID_KI = 5
    PID_KD = 6
    ENC = 7


@dataclass
class _MotorState:
    pid: PID
    pwm_pins: tuple[int, int]
    enc_pins: tuple[int, int]
    velocity: float = 0.0
    deadband: float = _f32(0.05)
    invert: int = 0
    pid_enabled: int = 0
    curr_velocity: float = 0.0
    enc: int = 0


class KoalaBear(Device):
    """Drives two motors, with optional PID control from their encoders."""

    def __init__(self, board: Board | None = None, stream: ByteStream | None = None) -> None:
        super().__init__(DeviceType.KOALA_BEAR, 13, board, stream)
        self.motors = {
            Motor.A: _MotorState(PID(self.board), (AIN1, AIN2), (AENC1, AENC2)),
            Motor.B: _MotorState(PID(self.board), (BIN1, BIN2), (BENC1, BENC2)),
        }
        for state in self.motors.values():
            state.pid.set_coefficients(KP_DEFAULT, KI_DEFAULT, KD_DEFAULT)
        self.led = LEDKoala(self.board)
        now = self.board.millis()
        self.prev_led_time = now
        self.prev_loop_time = now
        self.curr_led_mtr = Motor.A
        self.online = False
        self.ctrl_read_data = 0
        self.torque_read_data = 0

    def encoder_tick(self, motor: Motor | int) -> None:
        """Count one rising edge on the motor's encoder interrupt pin."""
        state = self.motors[Motor(motor)]
        step = 1 if self.board.digital_read(state.enc_pins[1]) else -1
        state.enc = _i32(state.enc + step)

    @staticmethod
    def _locate(param: int) -> tuple[Motor, MotorParam] | None:
        if not 0 <= param < PARAMS_PER_MOTOR * len(Motor):
            return None
        return Motor(param // PARAMS_PER_MOTOR), MotorParam(param % PARAMS_PER_MOTOR)

    def device_read(self, param: int) -> bytes:
        located = self._locate(param)
        if located is None:
            return b""
        motor, field = located
        state = self.motors[motor]
        if field == MotorParam.VELOCITY:
            return _FLOAT.pack(state.velocity)
        if field == MotorParam.DEADBAND:
            return _FLOAT.pack(state.deadband)
        if field == MotorParam.INVERT:
            return bytes([1 if state.invert else 0])
        if field == MotorParam.PID_ENABLED:
            return bytes([1 if state.pid_enabled else 0])
        if field == MotorParam.PID_KP:
            return _FLOAT.pack(state.pid.kp)
        if field == MotorParam.PID_KI:
            return _FLOAT.pack(state.pid.ki)
        if field == MotorParam.PID_KD:
            return _FLOAT.pack(state.pid.kd)
        return _INT.pack(state.enc)

    def device_write(self, param: int, data: bytes) -> int:
        located = self._locate(param)
        if located is None:
            return 0
        motor, field = located
        state = self.motors[motor]
        pid = state.pid
        if field == MotorParam.VELOCITY:
            value = _unpack(_FLOAT, data)
            value = 1.0 if value > 1.0 else value
            value = -1.0 if value < -1.0 else value
            state.velocity = value
            return _FLOAT.size
        if field == MotorParam.DEADBAND:
            state.deadband = _unpack(_FLOAT, data)
            return _FLOAT.size
        if field == MotorParam.INVERT:
            state.invert = bytes(data[:1] or b"\x00")[0]
            return 1
        if field == MotorParam.PID_ENABLED:
            state.pid_enabled = bytes(data[:1] or b"\x00")[0]
            return 1
        if field == MotorParam.PID_KP:
            pid.set_coefficients(_unpack(_FLOAT, data), pid.ki, pid.kd)
            return _FLOAT.size
        if field == MotorParam.PID_KI:
            pid.set_coefficients(pid.kp, _unpack(_FLOAT, data), pid.kd)
            return _FLOAT.size
        if field == MotorParam.PID_KD:
            pid.set_coefficients(pid.kp, pid.ki, _unpack(_FLOAT, data))
            return _FLOAT.size
        state.enc = _unpack(_INT, data)
        pid.set_position(float(state.enc))
        return _INT.size

    def device_enable(self) -> None:
        """Set up the motor controller chip, encoder pins, LEDs and motor pins."""
        self._electrical_setup()
        for state in self.motors.values():
            for pin in state.enc_pins:
                self.board.pin_mode(pin, PinMode.INPUT)
            state.pid_enabled = 0
        self.led.setup_leds()
        for state in self.motors.values():
            for pin in state.pwm_pins:
                self.board.pin_mode(pin, PinMode.OUTPUT)

    def device_reset(self) -> None:
        """Restore default PID coefficients, stop both motors and disable PID."""
        for state in self.motors.values():
            state.pid.set_coefficients(KP_DEFAULT, KI_DEFAULT, KD_DEFAULT)
            state.velocity = 0.0
            state.curr_velocity = 0.0
            state.pid_enabled = 0
        self.online = False

    def device_actions(self) -> None:
        """Update the LEDs and drive the motors toward their target velocities."""
        if not self.online:
            # The first loop only records the time, so no huge step follows.
            self.prev_loop_time = self.board.millis()
            self.online = True
            return

        curr_time = self.board.millis()
        interval_secs = (curr_time - self.prev_loop_time) / 1000.0

        if curr_time - self.prev_led_time > LED_SWITCH_MS:
            self.curr_led_mtr = Motor.B if self.curr_led_mtr == Motor.A else Motor.A
            self.prev_led_time = curr_time
        shown = self.motors[self.curr_led_mtr]
        self.led.ctrl_leds(shown.velocity, shown.deadband, True)

        duty_cycles = {}
        for motor, state in self.motors.items():
            sign = 1.0 if state.velocity - state.curr_velocity > 0 else -1.0
            state.curr_velocity = _f32(state.curr_velocity + sign * ACCEL * interval_secs)
            adjusted = _f32(
                MAX_DUTY_CYCLE * (-state.curr_velocity if state.invert else state.curr_velocity)
            )
            # Keep the motor from oscillating around zero when asked to stop.
            if state.velocity == 0.0 and -state.deadband < adjusted < state.deadband:
                state.curr_velocity = adjusted = 0.0
            if state.pid_enabled:
                state.pid.velocity = adjusted
                duty_cycles[motor] = state.pid.compute(float(state.enc))
            else:
                duty_cycles[motor] = adjusted

        self.board.digital_write(SLEEP, HIGH)
        self.board.digital_write(RESET, LOW)

        for motor, duty in duty_cycles.items():
            self._drive(duty, motor)

        self.prev_loop_time = curr_time

    # Helpers

    def _drive(self, target: float, motor: Motor) -> None:
        """Set the PWM pins of ``motor``; one pin always stays at 255."""
        pin1, pin2 = self.motors[motor].pwm_pins
        direction = 1.0 if target > 0.0 else -1.0
        raw = target * direction * 255.0
        if math.isnan(raw):
            difference = 0
        else:
            difference = int(min(max(raw, 0.0), 255.0))
        pwm1 = pwm2 = 255
        if direction > 0:
            pwm1 -= difference
        else:
            pwm2 -= difference
        self.board.analog_write(pin1, pwm1)
        self.board.analog_write(pin2, pwm2)

    def _electrical_setup(self) -> None:
        for pin in (HEARTBEAT, RESET, SLEEP, SCS):
            self.board.pin_mode(pin, PinMode.OUTPUT)
        self.board.delay(SETUP_DELAY_MS)
        self.board.digital_write(SLEEP, HIGH)
        self.board.digital_write(RESET, LOW)
        self.board.digital_write(HEARTBEAT, HIGH)
        self.board.digital_write(SCS, LOW)
        self._write_current_lim()
        self._read_current_lim()

    def _spi(self, value: int) -> int:
        self.board.digital_write(SCS, HIGH)
        response = self.board.spi_transfer16(value)
        self.board.digital_write(SCS, LOW)
        return response & 0xFFFF

    def _write_current_lim(self) -> None:
        self._spi((0 << 15) + (CTRL_REG << 12) + (DTIME_410_NS << 10) + (ISGAIN_20 << 8) + ENABLE)
        self._spi((0 << 15) + (TORQUE_REG << 12) + TORQUE)

    def _read_current_lim(self) -> None:
        self.ctrl_read_data = self._spi((1 << 15) + (CTRL_REG << 12))
        self.torque_read_data = self._spi((1 << 15) + (TORQUE_REG << 12))