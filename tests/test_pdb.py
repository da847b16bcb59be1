import struct

import pytest

from lowcar.defs import DeviceId, DeviceType, Message, MessageID
from lowcar.hardware import Board, ByteStream
from lowcar.messenger import Messenger
from lowcar.pdb import (
    BUZZER,
    CELL1,
    CELL2,
    CELL3,
    EXPANDER_ADDRESS,
    NET_SWITCH_PIN,
    NOTE_A5,
    PDB,
    SEVEN_SEGMENT,
    PDBParam,
)


@pytest.fixture
def pdb():
    return PDB(Board(), ByteStream())


def _set_cells(board, r1, r2, r3):
    board.set_input(CELL1, r1)
    board.set_input(CELL2, r2)
    board.set_input(CELL3, r3)


def test_fixed_boolean_params(pdb):
    assert pdb.device_read(PDBParam.IS_UNSAFE) == b"\x00"
    assert pdb.device_read(PDBParam.CALIBRATED) == b"\x01"


def test_network_switch_follows_pin(pdb):
    assert pdb.device_read(PDBParam.NETWORK_SWITCH) == b"\x00"
    pdb.board.set_input(NET_SWITCH_PIN, 1)
    assert pdb.device_read(PDBParam.NETWORK_SWITCH) == b"\x01"


def test_params_past_the_last_read_as_zero_floats(pdb):
    assert pdb.device_read(20) == bytes(4)
    assert struct.unpack("<f", pdb.device_read(PDBParam.DV_CELL2)) == (0.0,)


def test_measure_healthy_cells(pdb):
    _set_cells(pdb.board, 256, 512, 768)
    pdb.measure_cells()
    assert (pdb.v_cell1, pdb.v_cell2, pdb.v_cell3) == (5.0, 5.0, 5.0)
    assert struct.unpack("<f", pdb.device_read(PDBParam.V_BATT))[0] == 15.0
    assert BUZZER not in pdb.board.tones


def test_low_cell_sounds_buzzer_then_stops(pdb):
    pdb.measure_cells()
    assert pdb.board.tones[BUZZER] == NOTE_A5
    _set_cells(pdb.board, 256, 512, 768)
    pdb.measure_cells()
    assert BUZZER not in pdb.board.tones


def test_battery_is_sum_of_cells(pdb):
    _set_cells(pdb.board, 300, 610, 900)
    pdb.measure_cells()
    total = pdb.v_cell1 + pdb.v_cell2 + pdb.v_cell3
    assert pdb.v_batt == pytest.approx(total)


def test_write_string_patterns_and_bus_traffic(pdb):
    codes = pdb.write_string("ALL")
    assert codes == bytes([SEVEN_SEGMENT["A"], SEVEN_SEGMENT["L"], SEVEN_SEGMENT["L"]])
    log = pdb.board.i2c_log
    assert log[0] == (EXPANDER_ADDRESS, bytes([~SEVEN_SEGMENT["A"] & 0xFF]))
    assert log[1] == (EXPANDER_ADDRESS, b"\xff")
    assert len(log) == 6


def test_decimal_point_merges_with_previous_character(pdb):
    codes = pdb.write_string("2.5")
    assert codes == bytes([SEVEN_SEGMENT["2"] | 0b00000100, SEVEN_SEGMENT["5"]])


def test_unknown_characters_are_skipped(pdb):
    assert pdb.write_string("Z1") == pdb.write_string("1")


def test_at_most_four_digits_are_shown(pdb):
    pdb.write_string("88888")
    assert len(pdb.board.i2c_log) == 8


def test_write_float_matches_formatted_string(pdb):
    assert pdb.write_float(12.34) == pdb.write_string("12.34")
    assert pdb.write_float(5.0) == pdb.write_string(" 5.00")


def test_display_sequence_advances_each_second(pdb):
    pdb.curr_time = 0
    pdb.device_actions()
    assert pdb.sequence == 0
    pdb.curr_time = 1001
    pdb.device_actions()
    assert pdb.sequence == 1


def test_display_sequence_wraps(pdb):
    pdb.sequence = 9
    pdb.curr_time = 1001
    pdb.device_actions()
    assert pdb.sequence == 0


def test_actions_measure_after_interval(pdb):
    _set_cells(pdb.board, 256, 512, 768)
    pdb.curr_time = 1000
    pdb.device_actions()
    assert pdb.v_batt == 0.0
    pdb.curr_time = 1501
    pdb.device_actions()
    assert pdb.v_batt == 15.0
    assert pdb.last_measure_time == 1501


def test_ping_is_acknowledged_with_pdb_id():
    device = PDB(Board(), ByteStream())
    device.set_uid(42)
    sender = ByteStream()
    Messenger(sender).send_message(MessageID.DEVICE_PING, Message())
    device.stream.feed(sender.take_output())
    device.loop()
    reader = ByteStream()
    reader.feed(device.stream.take_output())
    reply = Messenger(reader).read_message()
    assert reply.message_id == MessageID.ACKNOWLEDGEMENT
    assert bytes(reply.payload) == DeviceId(DeviceType.PDB, 1, 42).to_bytes()