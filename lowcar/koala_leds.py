"""Pin assignments of the KoalaBear and its three status LEDs."""

from __future__ import annotations

from .defs import A0, A2, A3, A4, A5
from .hardware import HIGH, LOW, Board, PinMode

SLEEP = 13  # kept high
RESET = 10  # kept low

AIN1 = 5  # first motor, PWM1
AIN2 = 9  # first motor, PWM2
BIN1 = 6  # second motor, PWM1
BIN2 = 3  # second motor, PWM2

LED_RED = A3
LED_YELLOW = A4
LED_GREEN = A5

HEARTBEAT = A2
SCS = 11  # motor controller chip select

AENC1 = 1  # motor 1 encoder, interrupt pin
AENC2 = A0  # motor 1 encoder, direction pin
BENC1 = 2  # motor 2 encoder, interrupt pin
BENC2 = 0  # motor 2 encoder, direction pin

_LED_PINS = (LED_GREEN, LED_RED, LED_YELLOW)


class LEDKoala:
    """Red when stopped, yellow when reversing, green when going forward."""

    def __init__(self, board: Board) -> None:
        self._board = board
        self.red_state = False
        self.yellow_state = False
        self.green_state = False
        for pin in (LED_RED, LED_YELLOW, LED_GREEN):
            board.pin_mode(pin, PinMode.OUTPUT)

    def ctrl_leds(self, vel: float, deadband: float, enabled: bool) -> None:
        """Light the LED matching ``vel``; all go dark when not ``enabled``."""
        self.red_state = bool(enabled) and -deadband < vel < deadband
        self.yellow_state = bool(enabled) and vel < -deadband
        self.green_state = bool(enabled) and vel > deadband
        self._board.digital_write(LED_RED, HIGH if self.red_state else LOW)
        self._board.digital_write(LED_YELLOW, HIGH if self.yellow_state else LOW)
        self._board.digital_write(LED_GREEN, HIGH if self.green_state else LOW)

    def test_leds(self) -> None:
        """Light every LED for one second, then turn them off."""
        for pin in _LED_PINS:
            self._board.digital_write(pin, HIGH)
        self._board.delay(1000)
        for pin in _LED_PINS:
            self._board.digital_write(pin, LOW)

    def setup_leds(self) -> None:
        for pin in _LED_PINS:
            self._board.pin_mode(pin, PinMode.OUTPUT)