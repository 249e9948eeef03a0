"""Errors raised by the shift classifier and the payroll aggregator."""

from datetime import date


class ShiftValidationError(ValueError):
    """A shift definition that cannot be classified."""


class AggregationError(Exception):
    """A pay period was rejected because one of its shifts is invalid."""

    def __init__(self, shift_date: date, shift_index: int, cause: ShiftValidationError):
        self.shift_date = shift_date
        self.shift_index = shift_index
        self.cause = cause
        super().__init__(f"Shift on {shift_date.isoformat()} (#{shift_index + 1}): {cause}")
