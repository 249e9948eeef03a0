"""Shift classification into Colombian pay categories.

A shift is split into pieces inside which the three conditions that decide
the category (overtime, Sunday/holiday, night) cannot change. Pieces are cut
at midnight, at the start and end of the night window, at the break window
and at the instant the worked time crosses the daily overtime threshold.
Each piece is then mapped to a category through ``DECISION_TABLE``.
"""

import logging
import re
from datetime import date, datetime, time, timedelta
from typing import Dict, FrozenSet, List, Optional, Tuple

from dateutil.rrule import DAILY, rrule

from .config import Config
from .exceptions import ShiftValidationError
from .holidays import HolidayCalendarProvider
from .models import ClassifiedShift, PayCategory, ShiftInput, empty_category_map

logger = logging.getLogger(__name__)

TIME_PATTERN = re.compile(r"^(\d{2}):(\d{2})$")

# (is_overtime, is_holiday_or_sunday, is_night) -> category
DECISION_TABLE = {
    (False, False, False): PayCategory.ORDINARY_DAY,
    (False, False, True): PayCategory.NIGHT_SURCHARGE,
    (False, True, False): PayCategory.HOLIDAY_SUNDAY_DAY_SURCHARGE,
    (False, True, True): PayCategory.HOLIDAY_SUNDAY_NIGHT_SURCHARGE,
    (True, False, False): PayCategory.OVERTIME_DAY,
    (True, False, True): PayCategory.OVERTIME_NIGHT,
    (True, True, False): PayCategory.OVERTIME_HOLIDAY_SUNDAY_DAY,
    (True, True, True): PayCategory.OVERTIME_HOLIDAY_SUNDAY_NIGHT,
}

Interval = Tuple[datetime, datetime]


def parse_hhmm(value: Optional[str], field_name: str) -> time:
    """Parse a strict ``HH:mm`` string."""
    if not value:
        raise ShiftValidationError(f"Missing {field_name} (expected HH:mm)")

    match = TIME_PATTERN.fullmatch(value)
    if not match:
        raise ShiftValidationError(f"Invalid {field_name} '{value}' (expected HH:mm)")

    hours, minutes = int(match.group(1)), int(match.group(2))
    if hours > 23 or minutes > 59:
        raise ShiftValidationError(f"Invalid {field_name} '{value}' (out of range)")

    return time(hours, minutes)


def category_for(is_overtime: bool, is_holiday_or_sunday: bool, is_night: bool) -> PayCategory:
    return DECISION_TABLE[(is_overtime, is_holiday_or_sunday, is_night)]


def calendar_days(start: datetime, end: datetime) -> List[date]:
    """Calendar dates touched by the instants in [start, end]."""
    first = datetime.combine(start.date(), time())
    last = datetime.combine(end.date(), time())
    return [day.date() for day in rrule(DAILY, dtstart=first, until=last)]


def subtract_windows(interval: Interval, windows: List[Interval]) -> List[Interval]:
    """Remove every window from the interval, keeping the remaining pieces in order."""
    segments = [interval]
    for window_start, window_end in windows:
        remaining = []
        for seg_start, seg_end in segments:
            if window_end <= seg_start or window_start >= seg_end:
                remaining.append((seg_start, seg_end))
                continue
            if seg_start < window_start:
                remaining.append((seg_start, window_start))
            if window_end < seg_end:
                remaining.append((window_end, seg_end))
        segments = remaining
    return segments


class ShiftClassifier:
    """Turns one shift into hours and payments per pay category."""

    def __init__(self, config: Config, holiday_provider: HolidayCalendarProvider):
        self.config = config
        self.holiday_provider = holiday_provider

    def resolve_interval(self, shift: ShiftInput) -> Tuple[datetime, datetime, Optional[Tuple[time, time]]]:
        """Validate the shift and return its absolute start/end and break window."""
        start_time = parse_hhmm(shift.start_time, "start time")
        end_time = parse_hhmm(shift.end_time, "end time")

        start = datetime.combine(shift.date, start_time)
        end_day = shift.date + timedelta(days=1) if shift.crosses_midnight else shift.date
        end = datetime.combine(end_day, end_time)

        if end <= start:
            raise ShiftValidationError(
                f"End time {shift.end_time} must be after start time {shift.start_time}"
            )

        break_window = None
        if shift.has_break:
            break_start = parse_hhmm(shift.break_start, "break start")
            break_end = parse_hhmm(shift.break_end, "break end")
            if break_end <= break_start:
                raise ShiftValidationError(
                    f"Break end {shift.break_end} must be after break start {shift.break_start}"
                )
            break_window = (break_start, break_end)

        return start, end, break_window

    def worked_segments(self, start: datetime, end: datetime,
                        break_window: Optional[Tuple[time, time]]) -> List[Interval]:
        if break_window is None:
            return [(start, end)]

        # The break is a clock window, so it repeats on each day the shift touches.
        windows = [
            (datetime.combine(day, break_window[0]), datetime.combine(day, break_window[1]))
            for day in calendar_days(start, end)
        ]
        return subtract_windows((start, end), windows)

    def _cut_points(self, seg_start: datetime, seg_end: datetime) -> List[datetime]:
        legal = self.config.legal
        points = set()
        for day in calendar_days(seg_start, seg_end):
            midnight = datetime.combine(day, time())
            for offset in (0, legal.night_end_hour, legal.night_start_hour):
                point = midnight + timedelta(hours=offset)
                if seg_start < point < seg_end:
                    points.add(point)
        return sorted(points)

    def is_night(self, instant: datetime) -> bool:
        legal = self.config.legal
        return instant.hour >= legal.night_start_hour or instant.hour < legal.night_end_hour

    @staticmethod
    def is_holiday_or_sunday(day: date, holiday_sets: Dict[int, FrozenSet[date]]) -> bool:
        return day.weekday() == 6 or day in holiday_sets.get(day.year, frozenset())

    def classify(self, shift: ShiftInput) -> ClassifiedShift:
        """Classify a shift, raising ShiftValidationError for invalid input."""
        start, end, break_window = self.resolve_interval(shift)

        # One lookup per year; the whole shift is classified against this snapshot.
        years = sorted({day.year for day in calendar_days(start, end)})
        holiday_sets = {}
        unavailable = []
        for year in years:
            holiday_sets[year] = self.holiday_provider.holidays_for(year)
            if self.holiday_provider.is_unavailable(year):
                unavailable.append(year)

        threshold_seconds = self.config.legal.overtime_threshold_hours * 3600
        hours = empty_category_map()
        worked_seconds = 0.0

        for seg_start, seg_end in self.worked_segments(start, end, break_window):
            bounds = [seg_start] + self._cut_points(seg_start, seg_end) + [seg_end]
            for piece_start, piece_end in zip(bounds, bounds[1:]):
                duration = (piece_end - piece_start).total_seconds()
                night = self.is_night(piece_start)
                holiday = self.is_holiday_or_sunday(piece_start.date(), holiday_sets)

                regular = min(duration, max(0.0, threshold_seconds - worked_seconds))
                overtime = duration - regular
                if regular > 0:
                    hours[category_for(False, holiday, night)] += regular / 3600
                if overtime > 0:
                    hours[category_for(True, holiday, night)] += overtime / 3600
                worked_seconds += duration

        payments = empty_category_map()
        for category in PayCategory:
            if category is not PayCategory.ORDINARY_DAY:
                payments[category] = hours[category] * self.config.rates.rate_for(category)

        result = ClassifiedShift(
            date=shift.date,
            hours_by_category=hours,
            payment_by_category=payments,
            total_worked_hours=worked_seconds / 3600,
            total_surcharge_payment=sum(payments.values()),
            unavailable_holiday_years=unavailable
        )
        logger.debug(f"Classified shift {shift.date} {shift.start_time}-{shift.end_time}: "
                     f"{result.total_worked_hours:.2f}h, surcharges {result.total_surcharge_payment:.2f}")
        return result
