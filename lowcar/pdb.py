"""The power distribution board: cell voltages, buzzer and a four-digit display."""

from __future__ import annotations

import struct
from enum import IntEnum

from .defs import Analog, DeviceType
from .device import Device
from .hardware import HIGH, LOW, Board, ByteStream, PinMode

EXPANDER_ADDRESS = 0b0100000
"""Hard-wired I2C address of the display's port expander."""

CELL1 = Analog.IO3
CELL2 = Analog.IO2
CELL3 = Analog.IO1

BUZZER = 10
NET_SWITCH_PIN = 16
ADC_COUNTS = 1024

TX = 0
RX = 1

DISP_PIN_1 = Analog.IO0
DISP_PIN_2 = 15
DISP_PIN_3 = 14
DISP_PIN_4 = 9
DIGIT_PINS = (DISP_PIN_1, DISP_PIN_2, DISP_PIN_3, DISP_PIN_4)
NUM_DIGITS = len(DIGIT_PINS)

SEGMENT_CHANGE_MS = 1000
MEASURE_INTERVAL_MS = 1500
UNSAFE_CELL_VOLTS = 3
DECIMAL_POINT = 0b00000100

# Frequencies in hertz of the notes the buzzer can play.
NOTES = {
    "B0": 31, "C1": 33, "CS1": 35, "D1": 37, "DS1": 39, "E1": 41, "F1": 44,
    "FS1": 46, "G1": 49, "GS1": 52, "A1": 55, "AS1": 58, "B1": 62,
    "C2": 65, "CS2": 69, "D2": 73, "DS2": 78, "E2": 82, "F2": 87, "FS2": 93,
    "G2": 98, "GS2": 104, "A2": 110, "AS2": 117, "B2": 123,
    "C3": 131, "CS3": 139, "D3": 147, "DS3": 156, "E3": 165, "F3": 175,
    "FS3": 185, "G3": 196, "GS3": 208, "A3": 220, "AS3": 233, "B3": 247,
    "C4": 262, "CS4": 277, "D4": 294, "DS4": 311, "E4": 330, "F4": 349,
    "FS4": 370, "G4": 392, "GS4": 415, "A4": 440, "AS4": 466, "B4": 494,
    "C5": 523, "CS5": 554, "D5": 587, "DS5": 622, "E5": 659, "F5": 698,
    "FS5": 740, "G5": 784, "GS5": 831, "A5": 880, "AS5": 932, "B5": 988,
    "C6": 1047, "CS6": 1109, "D6": 1175, "DS6": 1245, "E6": 1319, "F6": 1397,
    "FS6": 1480, "G6": 1568, "GS6": 1661, "A6": 1760, "AS6": 1865, "B6": 1976,
    "C7": 2093, "CS7": 2217, "D7": 2349, "DS7": 2489, "E7": 2637, "F7": 2794,
    "FS7": 2960, "G7": 3136, "GS7": 3322, "A7": 3520, "AS7": 3729, "B7": 3951,
    "C8": 4186, "CS8": 4435, "D8": 4699, "DS8": 4978,
}
NOTE_A5 = NOTES["A5"]

# Segment patterns of the characters the display can show.
# Bits, high to low: top left, top right, bottom right, middle, top,
# decimal point, bottom, bottom left.
SEVEN_SEGMENT = {
    "0": 0b11101011,
    "1": 0b01100000,
    "2": 0b01011011,
    "3": 0b01111010,
    "4": 0b11110000,
    "5": 0b10111010,
    "6": 0b10111011,
    "7": 0b11101000,
    "8": 0b11111011,
    "9": 0b11111010,
    "A": 0b11111001,
    "F": 0b10011001,
    "L": 0b10000011,
    "E": 0b10011011,
    "C": 0b10001011,
    "U": 0b11100011,
    "P": 0b11011001,
    "N": 0b11101001,
    " ": 0b00000000,
}

_FLOAT = struct.Struct("<f")


def _f32(value: float) -> float:
    return _FLOAT.unpack(_FLOAT.pack(value))[0]


class PDBParam(IntEnum):
    IS_UNSAFE = 0
    CALIBRATED = 1
    V_CELL1 = 2
    V_CELL2 = 3
    V_CELL3 = 4
    V_BATT = 5
    DV_CELL2 = 6
    DV_CELL3 = 7
    NETWORK_SWITCH = 8


class PDB(Device):
    """Measures the battery cells, sounds the buzzer when one is low and cycles a display.

    Parameters past NETWORK_SWITCH read as four zero bytes.
    """

    def __init__(self, board: Board | None = None, stream: ByteStream | None = None) -> None:
        super().__init__(DeviceType.PDB, 1, board, stream)
        self.v_cell1 = 0.0
        self.v_cell2 = 0.0
        self.v_cell3 = 0.0
        self.v_batt = 0.0
        self.vref_guess = 0.0
        self.sequence = 0
        self.last_seg_change = self.curr_time
        self.last_measure_time = self.curr_time

        board = self.board
        for pin in DIGIT_PINS:
            board.pin_mode(pin, PinMode.OUTPUT)
        for pin in (CELL1, CELL2, CELL3, NET_SWITCH_PIN, RX):
            board.pin_mode(pin, PinMode.INPUT)
        board.pin_mode(BUZZER, PinMode.OUTPUT)
        board.pin_mode(TX, PinMode.OUTPUT)

    def device_read(self, param: int) -> bytes:
        if param == PDBParam.IS_UNSAFE:
            return b"\x00"
        if param == PDBParam.CALIBRATED:
            return b"\x01"
        if param == PDBParam.NETWORK_SWITCH:
            return bytes([1 if self.board.digital_read(NET_SWITCH_PIN) else 0])
        values = {
            PDBParam.V_CELL1: self.v_cell1,
            PDBParam.V_CELL2: self.v_cell2,
            PDBParam.V_CELL3: self.v_cell3,
            PDBParam.V_BATT: self.v_batt,
            PDBParam.DV_CELL2: 0.0,
            PDBParam.DV_CELL3: 0.0,
        }
        if param in values:
            return _FLOAT.pack(values[param])
        return bytes(_FLOAT.size)

    def device_actions(self) -> None:
        """Refresh the display and measure the cells every 1.5 seconds."""
        self._handle_display()
        if self.curr_time - self.last_measure_time > MEASURE_INTERVAL_MS:
            self.measure_cells()
            self.last_measure_time = self.curr_time

    def measure_cells(self) -> None:
        """Read the three cell voltages and sound the buzzer if any is below 3 V."""
        def volts(pin: int) -> float:
            return self.board.analog_read(pin) * 4.0 / ADC_COUNTS * 5.0

        self.v_cell1 = _f32(volts(CELL1))
        self.v_cell2 = _f32(volts(CELL2) - self.v_cell1)
        self.v_cell3 = _f32(volts(CELL3) - self.v_cell2 - self.v_cell1)
        cells = (self.v_cell1, self.v_cell2, self.v_cell3)
        if any(cell < UNSAFE_CELL_VOLTS for cell in cells):
            self.board.tone(BUZZER, NOTE_A5)
        else:
            self.board.no_tone(BUZZER)
        self.v_batt = _f32(_f32(self.v_cell1 + self.v_cell2) + self.v_cell3)

    def _handle_display(self) -> None:
        step = self.sequence
        if step == 0:
            self.write_string("ALL")
        elif step == 1:
            self.write_float(self.v_batt)
        elif step in (2, 4, 6):
            self.write_string(f"CEL{step // 2}")
        elif step in (3, 5, 7):
            self.write_float((self.v_cell1, self.v_cell2, self.v_cell3)[step // 2 - 1])
        elif step == 8:
            self.write_string("0N")
        elif step == 9:
            on_local = self.board.digital_read(NET_SWITCH_PIN)
            self.write_string("L0C" if on_local else "P1E")

        if self.curr_time > self.last_seg_change + SEGMENT_CHANGE_MS:
            self.sequence = (self.sequence + 1) % 10
            self.last_seg_change = self.curr_time

    def clear_display(self) -> None:
        """Turn every digit off."""
        for pin in DIGIT_PINS:
            self.board.digital_write(pin, LOW)
        self.expander_write(0xFF)

    def expander_write(self, data: int) -> None:
        """Send one byte of segment data to the port expander."""
        self.board.i2c_write(EXPANDER_ADDRESS, data & 0xFF)

    def write_string(self, text: str) -> bytes:
        """Show ``text`` on the display and return its segment patterns.

        Characters the display cannot show are skipped; a '.' lights the
        decimal point of the character before it. At most four digits show.
        """
        codes = bytearray()
        chars = iter(enumerate(text))
        for index, char in chars:
            code = SEVEN_SEGMENT.get(char)
            if code is None:
                continue
            if index + 1 < len(text) and text[index + 1] == ".":
                code |= DECIMAL_POINT
                next(chars, None)
            codes.append(code)

        for pin, code in zip(DIGIT_PINS, codes):
            self.board.digital_write(pin, HIGH)
            self.expander_write(~code)
            self.board.delay(1)
            self.clear_display()
        return bytes(codes)

    def write_float(self, value: float) -> bytes:
        """Show ``value`` with two decimals, padded to four digits below ten."""
        integer_part = int(value)
        hundredths = int(value * 100.0)
        decimal_part = abs(hundredths) % 100 * (-1 if hundredths < 0 else 1)
        if integer_part < 10:
            text = " %d.%02d" % (integer_part, decimal_part)
        else:
            text = "%d.%02d" % (integer_part, decimal_part)
        return self.write_string(text)