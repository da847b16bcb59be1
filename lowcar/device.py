"""The generic lowcar device: handshake, timeouts and parameter exchange."""

from __future__ import annotations

import contextlib
from collections.abc import Iterator

from .defs import (
    DATA_INTERVAL_MS,
    MAX_PARAMS,
    MAX_PAYLOAD_SIZE,
    PARAM_BITMAP_BYTES,
    DeviceId,
    DeviceType,
    LowcarError,
    Message,
    MessageID,
    ProcessError,
)
from .hardware import Board, ByteStream, StatusLED
from .messenger import Messenger


def _set_bits(bitmap: int) -> Iterator[int]:
    """Yield the indices of the set bits of ``bitmap``, lowest first."""
    position = 0
    while bitmap >> position:
        if bitmap & (1 << position):
            yield position
        position += 1


class Device:
    """A lowcar device talking to the device handler over a serial stream.

    Subclasses override ``device_read``, ``device_write``, ``device_enable``,
    ``device_reset`` and ``device_actions``; the defaults do nothing.
    """

    def __init__(
        self,
        dev_type: DeviceType,
        year: int,
        board: Board | None = None,
        stream: ByteStream | None = None,
        timeout: int = 1000,
    ) -> None:
        self.board = board if board is not None else Board()
        self.stream = stream if stream is not None else ByteStream()
        self.dev_id = DeviceId(DeviceType(dev_type), year)
        self.timeout = timeout
        self.enabled = False
        self.messenger = Messenger(self.stream)
        self.led = StatusLED(self.board)
        now = self.board.millis()
        self.curr_time = now
        self._last_sent_data_time = now
        self._last_received_ping_time = now

    def set_uid(self, uid: int) -> None:
        """Set the unique id reported in the acknowledgement."""
        self.dev_id.uid = uid

    def _send(self, message_id: MessageID, message: Message, dev_id: DeviceId | None = None) -> None:
        with contextlib.suppress(ProcessError):
            self.messenger.send_message(message_id, message, dev_id)

    def loop(self) -> None:
        """Run one iteration: handle a message, act, time out, report data and logs."""
        self.curr_time = self.board.millis()
        try:
            message = self.messenger.read_message()
        except LowcarError:
            message = None
            self.messenger.printf("Error when reading message by lowcar device")

        if message is not None:
            self._handle(message)

        self.device_actions()

        if (
            self.enabled
            and self.timeout > 0
            and self.curr_time - self._last_received_ping_time >= self.timeout
        ):
            self.device_reset()
            self.enabled = False
            self._send(MessageID.RST, Message(MessageID.RST))

        if not self.enabled:
            return

        if self.curr_time - self._last_sent_data_time >= DATA_INTERVAL_MS:
            self._last_sent_data_time = self.curr_time
            self._send(MessageID.DEVICE_DATA, self._read_params())

        self.messenger.flush()

    def _handle(self, message: Message) -> None:
        message_id = message.message_id
        if message_id == MessageID.DEVICE_PING:
            self._last_received_ping_time = self.curr_time
            if not self.enabled:
                self._send(MessageID.ACKNOWLEDGEMENT, message, self.dev_id)
                self.messenger.printf(
                    "Device type %d, UID 0x...%X sent ACK",
                    int(self.dev_id.type),
                    self.dev_id.uid & 0xFFFF,
                )
                self.enabled = True
                self.device_enable()
        elif message_id == MessageID.DEVICE_WRITE:
            self._last_received_ping_time = self.curr_time
            self._write_params(message)
        elif message_id == MessageID.RST:
            self.device_reset()
            self.enabled = False
        else:
            self.messenger.printf("Unrecognized message received by lowcar device")

    # Device-specific behaviour

    def device_read(self, param: int) -> bytes:
        """Return the wire bytes of ``param``, or empty bytes if it is not readable."""
        return b""

    def device_write(self, param: int, data: bytes) -> int:
        """Write ``param`` from the start of ``data``; return the bytes consumed (0 on failure)."""
        return 0

    def device_enable(self) -> None:
        """Set the device up once a connection is established."""

    def device_reset(self) -> None:
        """Return the device to its state when first plugged in."""

    def device_actions(self) -> None:
        """Do the device's continuous, non-blocking work for one loop."""

    # Helpers

    def _read_params(self) -> Message:
        bitmap = 0
        values = bytearray()
        for param in range(MAX_PARAMS):
            data = bytes(self.device_read(param))
            if data:
                bitmap |= 1 << param
                values += data
        payload = bitmap.to_bytes(PARAM_BITMAP_BYTES, "little") + values
        return Message(MessageID.DEVICE_DATA, payload)

    def _write_params(self, message: Message) -> None:
        if message.message_id != MessageID.DEVICE_WRITE:
            return
        payload = bytes(message.payload).ljust(MAX_PAYLOAD_SIZE, b"\x00")
        bitmap = int.from_bytes(payload[:PARAM_BITMAP_BYTES], "little")
        offset = PARAM_BITMAP_BYTES
        for param in _set_bits(bitmap):
            offset += self.device_write(param, payload[offset:])