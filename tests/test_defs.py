import pytest

from lowcar.defs import (
    MAX_PAYLOAD_SIZE,
    DeviceId,
    DeviceType,
    LowcarError,
    MalformedDataError,
    Message,
    MessageID,
    ProcessError,
    Status,
)


def test_clear_resets_message():
    msg = Message(MessageID.DEVICE_DATA, b"\x01\x02\x03")
    msg.clear()
    assert msg.message_id == MessageID.NOP
    assert msg.payload == bytearray()
    assert msg.payload_length == 0


def test_payload_length_follows_payload():
    msg = Message(MessageID.LOG, b"abc")
    msg.append(b"de")
    assert msg.payload_length == len(b"abcde")
    assert bytes(msg.payload) == b"abcde"


def test_append_overflow_raises_and_keeps_payload():
    msg = Message(MessageID.DEVICE_DATA, bytes(MAX_PAYLOAD_SIZE - 1))
    with pytest.raises(ProcessError):
        msg.append(b"\x01\x02")
    assert msg.payload_length == MAX_PAYLOAD_SIZE - 1


def test_oversized_payload_rejected():
    with pytest.raises(ValueError):
        Message(MessageID.LOG, bytes(MAX_PAYLOAD_SIZE + 1))


def test_device_id_bytes_round_trip():
    dev = DeviceId(DeviceType.KOALA_BEAR, 13, 0x0123456789ABCDEF)
    raw = dev.to_bytes()
    assert raw[0] == DeviceType.KOALA_BEAR
    assert raw[1] == 13
    assert int.from_bytes(raw[2:], "little") == 0x0123456789ABCDEF
    assert len(raw) == 2 + 8


def test_message_ids_match_protocol():
    assert MessageID(0x01) is MessageID.DEVICE_PING
    assert MessageID(0x02) is MessageID.ACKNOWLEDGEMENT
    assert MessageID(0x06) is MessageID.RST
    msg = Message(MessageID(0x04), b"")
    assert msg.message_id is MessageID.DEVICE_DATA


def test_device_type_written_as_protocol_byte():
    raw = DeviceId(DeviceType.PDB, 1, 0).to_bytes()
    assert raw[0] == 0x07


def test_error_statuses():
    assert MalformedDataError().status is Status.MALFORMED_DATA
    assert ProcessError().status is Status.PROCESS_ERROR
    assert issubclass(MalformedDataError, LowcarError)