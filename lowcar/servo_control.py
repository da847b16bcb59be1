"""A device driving two servos to positions between -1.0 and 1.0."""

from __future__ import annotations

import struct

from .defs import DeviceType
from .device import Device
from .hardware import Board, ByteStream

NUM_SERVOS = 2
SERVO_PINS = (5, 6)
SERVO_CENTER = 1500  # pulse width in microseconds at position 0
SERVO_RANGE = 1000  # pulse width swing at positions -1 and 1

_FLOAT = struct.Struct("<f")


class ServoControl(Device):
    """Two servos; each is attached on its first write and detached on reset."""

    def __init__(self, board: Board | None = None, stream: ByteStream | None = None) -> None:
        super().__init__(DeviceType.SERVO_CONTROL, 1, board, stream)
        self.positions = [0.0] * NUM_SERVOS
        self.disable_all()

    def device_read(self, param: int) -> bytes:
        if not 0 <= param < NUM_SERVOS:
            return b""
        return _FLOAT.pack(self.positions[param])

    def device_write(self, param: int, data: bytes) -> int:
        if not 0 <= param < NUM_SERVOS:
            return 0
        (value,) = _FLOAT.unpack(bytes(data[: _FLOAT.size]).ljust(_FLOAT.size, b"\x00"))
        if not -1.0 <= value <= 1.0:
            return 0
        pin = SERVO_PINS[param]
        if not self.board.servo_attached(pin):
            self.board.attach_servo(pin)
        self.positions[param] = value
        self.board.write_servo_us(pin, int(SERVO_CENTER + value * SERVO_RANGE))
        return _FLOAT.size

    def device_reset(self) -> None:
        self.disable_all()

    def disable_all(self) -> None:
        """Detach every servo."""
        for pin in SERVO_PINS:
            self.board.detach_servo(pin)