"""Framing, encoding and logging of messages to and from the device handler."""

from __future__ import annotations

import contextlib
import struct
from functools import reduce

from .defs import (
    MAX_PAYLOAD_SIZE,
    DeviceId,
    MalformedDataError,
    Message,
    MessageID,
    ProcessError,
)
from .hardware import ByteStream

BAUD_RATE = 115200
_DELIMITER = 0x00
_HEADER_BYTES = 2  # message id and payload length


def cobs_encode(data: bytes) -> bytes:
    """COBS-encode ``data``; the result contains no zero bytes."""
    out = bytearray()
    block = bytearray()

    def finish_block() -> None:
        out.append(len(block) + 1)
        out.extend(block)
        block.clear()

    for byte in data:
        if byte == 0:
            finish_block()
        else:
            block.append(byte)
            if len(block) == 0xFE:
                finish_block()
    finish_block()
    return bytes(out)


def cobs_decode(data: bytes) -> bytes:
    """Decode COBS-encoded ``data``; raise MalformedDataError if it is cut short."""
    out = bytearray()
    pos = 0
    end = len(data)
    while pos < end:
        code = data[pos]
        pos += 1
        for _ in range(1, code):
            if pos >= end:
                raise MalformedDataError("COBS block runs past the end of the data")
            out.append(data[pos])
            pos += 1
        if code < 0xFF and pos != end:
            out.append(0)
    return bytes(out)


def checksum(data: bytes) -> int:
    """XOR of every byte of ``data``."""
    return reduce(lambda acc, byte: acc ^ byte, data, 0)


def _f32(value: float) -> float:
    return struct.unpack("<f", struct.pack("<f", value))[0]


class Messenger:
    """Sends and receives framed messages and queues log lines."""

    def __init__(self, stream: ByteStream) -> None:
        self._stream = stream
        self._stream.begin(BAUD_RATE)
        self._logs: list[str] = []

    @property
    def pending_logs(self) -> tuple[str, ...]:
        return tuple(self._logs)

    def send_message(
        self,
        message_id: MessageID,
        message: Message,
        dev_id: DeviceId | None = None,
    ) -> None:
        """Frame and write ``message`` as ``message_id``, then clear it.

        An ACKNOWLEDGEMENT carries ``dev_id`` appended to the payload.
        Raises ProcessError if the payload cannot be built or the write is short.
        """
        message.message_id = message_id
        try:
            if message_id == MessageID.ACKNOWLEDGEMENT:
                if dev_id is None:
                    raise ProcessError("an acknowledgement needs a device id")
                message.append(dev_id.to_bytes())
        except ProcessError:
            message.clear()
            raise

        data = bytes([int(message.message_id), message.payload_length]) + bytes(message.payload)
        data += bytes([checksum(data)])
        encoded = cobs_encode(data)
        frame = bytes([_DELIMITER, len(encoded) & 0xFF]) + encoded
        written = self._stream.write(frame)
        message.clear()
        if written != len(frame):
            raise ProcessError(f"wrote {written} of {len(frame)} bytes")

    def read_message(self) -> Message | None:
        """Read one message; None if nothing is waiting.

        Raises MalformedDataError for a bad frame or checksum and
        ProcessError if fewer bytes arrive than the frame announces.
        """
        stream = self._stream
        if not stream.available():
            return None

        last = -1
        while stream.available():
            last = stream.read()
            if last == _DELIMITER:
                break
        if last != _DELIMITER:
            raise MalformedDataError("no packet delimiter found")
        if stream.available() == 0 or stream.peek() == _DELIMITER:
            raise MalformedDataError("no packet length found")

        cobs_len = stream.read()
        encoded = stream.read_until(_DELIMITER, cobs_len)
        if len(encoded) != cobs_len:
            raise ProcessError(f"expected {cobs_len} bytes, got {len(encoded)}")

        data = cobs_decode(encoded)
        if len(data) < _HEADER_BYTES + 1:
            raise MalformedDataError("packet too short")
        raw_id, payload_length = data[0], data[1]
        if payload_length > MAX_PAYLOAD_SIZE or len(data) < _HEADER_BYTES + payload_length + 1:
            raise MalformedDataError("payload length does not fit the packet")

        body_end = _HEADER_BYTES + payload_length
        if data[body_end] != checksum(data[:body_end]):
            raise MalformedDataError("checksum mismatch")

        try:
            message_id: MessageID | int = MessageID(raw_id)
        except ValueError:
            message_id = raw_id
        return Message(message_id, data[_HEADER_BYTES:body_end])

    # Logging

    def printf(self, fmt: str, *args) -> None:
        """Queue a log line formatted printf-style."""
        self._logs.append(fmt % args)

    def print_float(self, name: str, value: float) -> None:
        """Queue ``"<name>: <value>"`` with the value to three decimal places."""
        value = _f32(value)
        negative = value < 0.0
        if negative:
            value = -value
        whole = int(value)
        thousandths = int(_f32(_f32(value - whole) * 1000))
        if negative:
            self.printf("%s: %c%d.%03d", name, "-", whole, thousandths)
        else:
            self.printf("%s:%c%d.%03d", name, " ", whole, thousandths)

    def flush(self) -> None:
        """Send every queued log line as a LOG message and empty the queue."""
        logs, self._logs = self._logs, []
        for text in logs:
            raw = text.encode("utf-8", errors="replace")[: MAX_PAYLOAD_SIZE - 1]
            message = Message(MessageID.LOG, raw + b"\x00")
            with contextlib.suppress(ProcessError):
                self.send_message(MessageID.LOG, message)