"""Simple input devices: the limit switch and the line follower."""

from __future__ import annotations

import struct

from .defs import Analog, DeviceType
from .device import Device
from .hardware import LOW, Board, ByteStream, PinMode

ADC_MAX = 1023.0


class LimitSwitch(Device):
    """Three switches; each reads 1 while pressed (pin pulled low)."""

    PINS = (Analog.IO0, Analog.IO1, Analog.IO2)

    def __init__(self, board: Board | None = None, stream: ByteStream | None = None) -> None:
        super().__init__(DeviceType.LIMIT_SWITCH, 0, board, stream)

    def device_read(self, param: int) -> bytes:
        if not 0 <= param < len(self.PINS):
            return b""
        pressed = self.board.digital_read(self.PINS[param]) == LOW
        return bytes([int(pressed)])

    def device_enable(self) -> None:
        for pin in self.PINS:
            self.board.pin_mode(pin, PinMode.INPUT)


class LineFollower(Device):
    """Three reflectance sensors, each read as a float from 0.0 to 1.0."""

    PINS = (Analog.IO0, Analog.IO1, Analog.IO2)

    def __init__(self, board: Board | None = None, stream: ByteStream | None = None) -> None:
        super().__init__(DeviceType.LINE_FOLLOWER, 1, board, stream)

    def device_read(self, param: int) -> bytes:
        if not 0 <= param < len(self.PINS):
            return b""
        reading = self.board.analog_read(self.PINS[param])
        return struct.pack("<f", 1.0 - reading / ADC_MAX)

    def device_enable(self) -> None:
        for pin in self.PINS:
            self.board.pin_mode(pin, PinMode.INPUT)