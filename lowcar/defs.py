"""Protocol constants, identifiers, message containers and errors."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, IntEnum

MAX_PARAMS = 32
"""The maximum number of parameters of a lowcar device."""

DATA_INTERVAL_MS = 1
"""Milliseconds between DEVICE_DATA messages."""

PARAM_BITMAP_BYTES = MAX_PARAMS // 8
"""Size of the parameter bitmap at the start of data and write payloads."""

FLOAT_BYTES = 4
"""Size of a single-precision float on the wire."""

MAX_PAYLOAD_SIZE = PARAM_BITMAP_BYTES + MAX_PARAMS * FLOAT_BYTES
"""Largest payload: a bitmap followed by every parameter as a float."""

# Analog pin numbers of the boards lowcar devices run on.
A0 = 18
A1 = 19
A2 = 20
A3 = 21
A4 = 22
A5 = 23

LED_BUILTIN = 13


class Analog(IntEnum):
    """Analog I/O pins."""

    IO0 = A0
    IO1 = A1
    IO2 = A2
    IO3 = A3


class Digital(IntEnum):
    """Digital I/O pins."""

    IO4 = 2
    IO5 = 3
    IO6 = 6
    IO7 = 9
    IO8 = 10
    IO9 = 11


class MessageID(IntEnum):
    """The types of messages exchanged with the device handler."""

    NOP = 0x00
    DEVICE_PING = 0x01
    ACKNOWLEDGEMENT = 0x02
    DEVICE_WRITE = 0x03
    DEVICE_DATA = 0x04
    LOG = 0x05
    RST = 0x06


class DeviceType(IntEnum):
    """Identification of device types."""

    DUMMY_DEVICE = 0x00
    LIMIT_SWITCH = 0x01
    LINE_FOLLOWER = 0x02
    BATTERY_BUZZER = 0x03
    SERVO_CONTROL = 0x04
    POLAR_BEAR = 0x05
    KOALA_BEAR = 0x06
    PDB = 0x07


class Status(Enum):
    """Outcome of a protocol operation."""

    SUCCESS = "success"
    PROCESS_ERROR = "process_error"
    MALFORMED_DATA = "malformed_data"
    NO_DATA = "no_data"


class LowcarError(Exception):
    """Base class of protocol errors."""

    status = Status.PROCESS_ERROR


class ProcessError(LowcarError):
    """A message could not be built, sent or fully read."""

    status = Status.PROCESS_ERROR


class MalformedDataError(LowcarError):
    """Received bytes do not form a valid packet."""

    status = Status.MALFORMED_DATA


@dataclass
class Message:
    """A decoded lowcar packet."""

    message_id: MessageID | int = MessageID.NOP
    payload: bytearray = field(default_factory=bytearray)

    def __post_init__(self) -> None:
        self.payload = bytearray(self.payload)
        if len(self.payload) > MAX_PAYLOAD_SIZE:
            raise ValueError(f"payload exceeds {MAX_PAYLOAD_SIZE} bytes")

    @property
    def payload_length(self) -> int:
        return len(self.payload)

    def append(self, data: bytes) -> None:
        """Append bytes to the payload, raising ProcessError if they do not fit."""
        if len(self.payload) + len(data) > MAX_PAYLOAD_SIZE:
            raise ProcessError("payload would exceed the maximum size")
        self.payload += data

    def clear(self) -> None:
        """Reset to an empty NOP message."""
        self.message_id = MessageID.NOP
        self.payload = bytearray()


@dataclass
class DeviceId:
    """Unique identification of a specific device."""

    type: DeviceType
    year: int
    uid: int = 0

    def to_bytes(self) -> bytes:
        """Wire form: type, year, then the uid as 8 little-endian bytes."""
        return bytes([int(self.type), self.year]) + self.uid.to_bytes(8, "little")