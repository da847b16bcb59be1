"""PID velocity controller for one motor, driven by encoder position."""

from __future__ import annotations

import math
from collections import deque
from collections.abc import Sequence

from .hardware import Board

MAX_TPS = 2700.0
"""Maximum encoder ticks per second a motor can reach."""

SAMPLES = 5
"""Number of samples used to estimate the derivative of the error."""

_ONE_MILLION = 1_000_000.0


def velocity_to_tps(velocity: float) -> float:
    """Convert a duty-cycle velocity in [-1, 1] to encoder ticks per second."""
    return MAX_TPS * velocity


def regression(x_vals: Sequence[float], y_vals: Sequence[float]) -> float:
    """Slope of the least-squares line through the points ``(x_vals[i], y_vals[i])``.

    Returns NaN when every x value is the same.
    """
    if len(x_vals) != len(y_vals):
        raise ValueError("x_vals and y_vals must have the same length")
    if not x_vals:
        raise ValueError("regression needs at least one point")
    x_avg = sum(x_vals) / len(x_vals)
    y_avg = sum(y_vals) / len(y_vals)
    numerator = sum((x - x_avg) * (y - y_avg) for x, y in zip(x_vals, y_vals))
    denominator = sum((x - x_avg) ** 2 for x in x_vals)
    if denominator == 0.0:
        return math.nan
    return numerator / denominator


class PID:
    """Position-tracking PID controller producing a duty cycle.

    ``kp``, ``ki`` and ``kd`` are the coefficients; ``velocity`` is the
    target velocity in duty-cycle units.
    """

    def __init__(self, board: Board | None = None) -> None:
        self._board = board if board is not None else Board()
        self.kp = self.ki = self.kd = 0.0
        self.velocity = 0.0
        self.integral = 0.0
        self.prev_pos = 0.0
        self._prev_desired_pos = 0.0
        now = self._now()
        self._errors: deque[float] = deque([0.0] * SAMPLES, maxlen=SAMPLES)
        self._times: deque[float] = deque([now] * SAMPLES, maxlen=SAMPLES)

    def _now(self) -> float:
        return self._board.micros() / _ONE_MILLION

    @property
    def desired_pos(self) -> float:
        """Position the controller is currently aiming for."""
        return self._prev_desired_pos

    def compute(self, curr_pos: float) -> float:
        """Return the duty cycle that moves the motor toward its target position."""
        curr_time = self._now()
        interval_secs = curr_time - self._times[-1]
        desired_pos = self._prev_desired_pos + velocity_to_tps(self.velocity) * interval_secs
        error = desired_pos - curr_pos
        self.integral += error * interval_secs

        self._errors.append(error)
        self._times.append(curr_time)

        output = (
            self.kp * error
            + self.ki * self.integral
            + self.kd * regression(list(self._times), list(self._errors))
        )

        self.prev_pos = curr_pos
        self._prev_desired_pos = desired_pos

        if self.velocity == 0.0:
            # Stopped: avoid jitter and flush the accumulated error.
            self.integral = 0.0
            self._prev_desired_pos = curr_pos
            return 0.0
        return output

    def set_coefficients(self, kp: float, ki: float, kd: float) -> None:
        self.kp = kp
        self.ki = ki
        self.kd = kd

    def set_position(self, curr_pos: float) -> None:
        """Restart tracking from ``curr_pos`` after the encoder is overwritten."""
        self.prev_pos = self._prev_desired_pos = curr_pos
        now = self._now()
        last_error, last_time = self._errors[-1], self._times[-1]
        self._errors = deque([0.0] * (SAMPLES - 1) + [last_error], maxlen=SAMPLES)
        self._times = deque([now] * (SAMPLES - 1) + [last_time], maxlen=SAMPLES)
        self.integral = 0.0