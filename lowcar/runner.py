"""Builds a device by name and runs its loop."""

from __future__ import annotations

import argparse
import random
import time

from .device import Device
from .dummy_device import DummyDevice
from .hardware import Board, ByteStream
from .koala_bear import KoalaBear
from .pdb import PDB
from .sensors import LimitSwitch, LineFollower
from .servo_control import ServoControl

DEVICES: dict[str, type[Device]] = {
    cls.__name__: cls
    for cls in (DummyDevice, KoalaBear, LimitSwitch, LineFollower, PDB, ServoControl)
}

_UID_LIMIT = 2**64


def build_device(name: str, board: Board | None, port, uid: int) -> Device:
    """Create the device called ``name`` with the given 64-bit ``uid``.

    ``port`` is an open serial port, or None to talk over an in-memory stream.
    """
    lookup = {key.lower(): cls for key, cls in DEVICES.items()}
    cls = lookup.get(name.lower())
    if cls is None:
        raise ValueError(f"unknown device {name!r}; choose from {', '.join(DEVICES)}")
    if not 0 <= uid < _UID_LIMIT:
        raise ValueError("uid must fit in 64 bits")
    device = cls(board if board is not None else Board(), ByteStream(port))
    device.set_uid(uid)
    return device


def _parse_uid(text: str) -> int:
    return int(text, 0)


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(prog="lowcar", description="Run a lowcar device.")
    parser.add_argument("device", choices=sorted(DEVICES), help="device type to run")
    parser.add_argument("--port", help="serial port to talk on (in-memory if omitted)")
    parser.add_argument("--uid", type=_parse_uid, help="64-bit device uid (random if omitted)")
    parser.add_argument("--iterations", type=int, help="stop after this many loops")
    args = parser.parse_args(argv)

    uid = args.uid if args.uid is not None else random.getrandbits(64)
    port = None
    if args.port:
        import serial

        port = serial.Serial(args.port, timeout=0)

    try:
        device = build_device(args.device, None, port, uid)
    except ValueError as exc:
        parser.error(str(exc))

    print(f"{args.device} uid 0x{uid:016X}")
    last = time.monotonic()
    count = 0
    try:
        while args.iterations is None or count < args.iterations:
            now = time.monotonic()
            device.board.advance((now - last) * 1000.0)
            last = now
            device.loop()
            count += 1
    except KeyboardInterrupt:
        pass
    finally:
        if port is not None:
            port.close()
    return 0