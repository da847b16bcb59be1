"""A simulated microcontroller board, serial stream and status LED."""

from __future__ import annotations

from collections import deque
from enum import Enum

from .defs import LED_BUILTIN

LOW = 0
HIGH = 1

MIN_PULSE_WIDTH = 544
MAX_PULSE_WIDTH = 2400
DEFAULT_PULSE_WIDTH = 1500


class PinMode(Enum):
    INPUT = "input"
    OUTPUT = "output"
    INPUT_PULLUP = "input_pullup"


class Board:
    """In-memory stand-in for the board a device runs on.

    Time only moves when advanced or delayed; inputs are set by the caller
    and every output is recorded for inspection.
    """

    def __init__(self) -> None:
        self._micros = 0
        self._outputs: dict[int, int] = {}
        self._inputs: dict[int, int] = {}
        self._attached: set[int] = set()
        self.pin_modes: dict[int, PinMode] = {}
        self.pwm: dict[int, int] = {}
        self.servo_pulses: dict[int, int] = {}
        self.spi_sent: list[int] = []
        self.spi_responses: deque[int] = deque()
        self.i2c_log: list[tuple[int, bytes]] = []
        self.tones: dict[int, int] = {}

    # Time

    def millis(self) -> int:
        return self._micros // 1000

    def micros(self) -> int:
        return self._micros

    def advance(self, ms: float) -> None:
        """Move the clock forward by ``ms`` milliseconds."""
        if ms < 0:
            raise ValueError("time cannot go backwards")
        self._micros += round(ms * 1000)

    def delay(self, ms: float) -> None:
        self.advance(ms)

    # Pins

    def pin_mode(self, pin: int, mode: PinMode) -> None:
        self.pin_modes[pin] = mode

    def digital_write(self, pin: int, value: int) -> None:
        self._outputs[pin] = HIGH if value else LOW

    def digital_read(self, pin: int) -> int:
        if pin in self._inputs:
            return HIGH if self._inputs[pin] else LOW
        return self._outputs.get(pin, LOW)

    def analog_write(self, pin: int, value: int) -> None:
        self.pwm[pin] = int(value)

    def analog_read(self, pin: int) -> int:
        return int(self._inputs.get(pin, 0))

    def set_input(self, pin: int, value: int) -> None:
        """Set the level or reading seen on an input pin."""
        self._inputs[pin] = int(value)

    # Servos

    def attach_servo(self, pin: int) -> None:
        self.pin_modes[pin] = PinMode.OUTPUT
        self._attached.add(pin)
        self.servo_pulses.setdefault(pin, DEFAULT_PULSE_WIDTH)

    def detach_servo(self, pin: int) -> None:
        self._attached.discard(pin)

    def servo_attached(self, pin: int) -> bool:
        return pin in self._attached

    def write_servo_us(self, pin: int, us: float) -> None:
        self.servo_pulses[pin] = int(min(max(us, MIN_PULSE_WIDTH), MAX_PULSE_WIDTH))

    # Buses and sound

    def spi_transfer16(self, value: int) -> int:
        self.spi_sent.append(value & 0xFFFF)
        return self.spi_responses.popleft() if self.spi_responses else 0

    def i2c_write(self, address: int, data: int | bytes) -> None:
        payload = bytes([data & 0xFF]) if isinstance(data, int) else bytes(data)
        self.i2c_log.append((address, payload))

    def tone(self, pin: int, frequency: int) -> None:
        self.tones[pin] = frequency

    def no_tone(self, pin: int) -> None:
        self.tones.pop(pin, None)


class ByteStream:
    """A serial byte stream, either in memory or over an open serial port.

    The port, if given, needs ``in_waiting``, ``read``, ``write`` and
    ``baudrate`` as a pyserial ``Serial`` has.
    """

    def __init__(self, port=None) -> None:
        self._port = port
        self._rx = bytearray()
        self._tx = bytearray()
        self.baud: int | None = None

    def begin(self, baud: int) -> None:
        self.baud = baud
        if self._port is not None:
            self._port.baudrate = baud

    def _pull(self) -> None:
        if self._port is not None:
            waiting = self._port.in_waiting
            if waiting:
                self._rx += self._port.read(waiting)

    def feed(self, data: bytes) -> None:
        """Queue bytes as if they had been received."""
        self._rx += data

    def available(self) -> int:
        self._pull()
        return len(self._rx)

    def peek(self) -> int:
        self._pull()
        return self._rx[0] if self._rx else -1

    def read(self) -> int:
        self._pull()
        return self._rx.pop(0) if self._rx else -1

    def read_until(self, terminator: int, size: int) -> bytes:
        """Read up to ``size`` bytes, stopping at (and consuming) ``terminator``."""
        self._pull()
        out = bytearray()
        while len(out) < size and self._rx:
            byte = self._rx.pop(0)
            if byte == terminator:
                break
            out.append(byte)
        return bytes(out)

    def write(self, data: int | bytes) -> int:
        payload = bytes([data & 0xFF]) if isinstance(data, int) else bytes(data)
        if self._port is not None:
            written = self._port.write(payload)
            return len(payload) if written is None else written
        self._tx += payload
        return len(payload)

    def take_output(self) -> bytes:
        """Return and forget everything written so far (in-memory mode)."""
        out = bytes(self._tx)
        self._tx.clear()
        return out


class StatusLED:
    """The on-board LED."""

    LED_PIN = LED_BUILTIN
    QUICK_TIME = 300
    SLOW_TIME = QUICK_TIME * 3
    PAUSE_TIME = QUICK_TIME

    def __init__(self, board: Board) -> None:
        self._board = board
        board.pin_mode(self.LED_PIN, PinMode.OUTPUT)
        board.digital_write(self.LED_PIN, LOW)
        self.is_on = False

    def toggle(self) -> None:
        self._board.digital_write(self.LED_PIN, LOW if self.is_on else HIGH)
        self.is_on = not self.is_on

    def quick_blink(self, num: int) -> None:
        self._blink(num, self.QUICK_TIME, self.PAUSE_TIME)

    def slow_blink(self, num: int) -> None:
        self._blink(num, self.SLOW_TIME, self.PAUSE_TIME)

    def _blink(self, num: int, ms: int, space: int) -> None:
        for _ in range(num):
            self.toggle()
            self._board.delay(ms)
            self.toggle()
            self._board.delay(space)