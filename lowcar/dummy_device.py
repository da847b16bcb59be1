"""A device that represents no hardware, used to exercise the protocol."""

from __future__ import annotations

import struct
from enum import IntEnum

from .defs import DeviceType
from .device import Device
from .hardware import Board, ByteStream


class DummyParam(IntEnum):
    RUNTIME = 0
    SHEPHERD = 1
    DAWN = 2
    DEVOPS = 3
    ATLAS = 4
    INFRA = 5
    SENS = 6
    PDB = 7
    MECH = 8
    CPR = 9
    EDU = 10
    EXEC = 11
    PIEF = 12
    FUNTIME = 13
    SHEEP = 14
    DUSK = 15


# Attribute name and struct format of each parameter, by parameter number.
_FIELDS = {
    DummyParam.RUNTIME: ("runtime", "<i"),
    DummyParam.SHEPHERD: ("shepherd", "<f"),
    DummyParam.DAWN: ("dawn", "<B"),
    DummyParam.DEVOPS: ("devops", "<i"),
    DummyParam.ATLAS: ("atlas", "<f"),
    DummyParam.INFRA: ("infra", "<B"),
    DummyParam.SENS: ("sens", "<i"),
    DummyParam.PDB: ("pdb", "<f"),
    DummyParam.MECH: ("mech", "<B"),
    DummyParam.CPR: ("cpr", "<i"),
    DummyParam.EDU: ("edu", "<f"),
    DummyParam.EXEC: ("exec", "<B"),
    DummyParam.PIEF: ("pief", "<i"),
    DummyParam.FUNTIME: ("funtime", "<f"),
    DummyParam.SHEEP: ("sheep", "<B"),
    DummyParam.DUSK: ("dusk", "<i"),
}

_READ_ONLY = frozenset(range(DummyParam.RUNTIME, DummyParam.SENS))
_WRITE_ONLY = frozenset(range(DummyParam.SENS, DummyParam.PIEF))
READABLE = frozenset(_FIELDS) - _WRITE_ONLY
WRITABLE = frozenset(_FIELDS) - _READ_ONLY

UPDATE_INTERVAL_MS = 500


def _f32(value: float) -> float:
    return struct.unpack("<f", struct.pack("<f", value))[0]


def _i32(value: int) -> int:
    return (value + 2**31) % 2**32 - 2**31


class DummyDevice(Device):
    """Sixteen parameters of every type and access mode; read-only ones change over time."""

    def __init__(self, board: Board | None = None, stream: ByteStream | None = None) -> None:
        super().__init__(DeviceType.DUMMY_DEVICE, 13, board, stream)
        self.runtime = 1
        self.shepherd = _f32(0.1)
        self.dawn = 1

        self.devops = 1
        self.atlas = _f32(0.1)
        self.infra = 1

        self.sens = 0
        self.pdb = _f32(-0.1)
        self.mech = 0

        self.cpr = 0
        self.edu = 0.0
        self.exec = 0

        self.pief = 0
        self.funtime = _f32(-0.1)
        self.sheep = 0

        self.dusk = 0
        self._last_update_time = 0

    def device_read(self, param: int) -> bytes:
        if param not in READABLE:
            return b""
        name, fmt = _FIELDS[DummyParam(param)]
        return struct.pack(fmt, getattr(self, name))

    def device_write(self, param: int, data: bytes) -> int:
        if param not in WRITABLE:
            return 0
        name, fmt = _FIELDS[DummyParam(param)]
        size = struct.calcsize(fmt)
        (value,) = struct.unpack_from(fmt, bytes(data[:size]).ljust(size, b"\x00"))
        setattr(self, name, value)
        return size

    def device_enable(self) -> None:
        self.messenger.printf("DUMMY DEVICE ENABLED")

    def device_disable(self) -> None:
        self.messenger.printf("DUMMY DEVICE DISABLED")

    def device_actions(self) -> None:
        """Change the read-only parameters every half second."""
        now = self.board.millis()
        if now - self._last_update_time > UPDATE_INTERVAL_MS:
            self.runtime = _i32(self.runtime + 2)
            self.shepherd = _f32(self.shepherd + 1.9)
            self.dawn = 0 if self.dawn else 1

            self.devops = _i32(self.devops + 1)
            self.atlas = _f32(self.atlas + 0.9)
            self.infra = 1

            self._last_update_time = now