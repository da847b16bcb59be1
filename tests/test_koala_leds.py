import pytest

from lowcar.hardware import HIGH, LOW, Board, PinMode
from lowcar.koala_leds import LED_GREEN, LED_RED, LED_YELLOW, LEDKoala


def _levels(board):
    return (
        board.digital_read(LED_RED),
        board.digital_read(LED_YELLOW),
        board.digital_read(LED_GREEN),
    )


def test_constructor_sets_outputs_and_states_off():
    board = Board()
    leds = LEDKoala(board)
    for pin in (LED_RED, LED_YELLOW, LED_GREEN):
        assert board.pin_modes[pin] == PinMode.OUTPUT
    assert (leds.red_state, leds.yellow_state, leds.green_state) == (False, False, False)


@pytest.mark.parametrize(
    "vel, expected",
    [
        (0.0, (HIGH, LOW, LOW)),
        (0.5, (LOW, LOW, HIGH)),
        (-0.5, (LOW, HIGH, LOW)),
    ],
)
def test_ctrl_leds_by_velocity(vel, expected):
    board = Board()
    leds = LEDKoala(board)
    leds.ctrl_leds(vel, 0.05, True)
    assert _levels(board) == expected


def test_exactly_at_deadband_lights_nothing():
    board = Board()
    leds = LEDKoala(board)
    leds.ctrl_leds(0.05, 0.05, True)
    assert _levels(board) == (LOW, LOW, LOW)
    leds.ctrl_leds(-0.05, 0.05, True)
    assert _levels(board) == (LOW, LOW, LOW)


def test_disabled_turns_all_off():
    board = Board()
    leds = LEDKoala(board)
    leds.ctrl_leds(0.0, 0.05, True)
    leds.ctrl_leds(0.0, 0.05, False)
    assert _levels(board) == (LOW, LOW, LOW)
    assert leds.red_state is False


def test_states_follow_levels():
    board = Board()
    leds = LEDKoala(board)
    leds.ctrl_leds(0.9, 0.05, True)
    assert leds.green_state is True
    assert leds.red_state is False
    assert leds.yellow_state is False


def test_test_leds_blinks_for_a_second():
    board = Board()
    leds = LEDKoala(board)
    leds.test_leds()
    assert board.millis() == 1000
    assert _levels(board) == (LOW, LOW, LOW)


def test_setup_leds_sets_outputs():
    board = Board()
    leds = LEDKoala(board)
    board.pin_modes.clear()
    leds.setup_leds()
    assert {board.pin_modes[pin] for pin in (LED_RED, LED_YELLOW, LED_GREEN)} == {PinMode.OUTPUT}