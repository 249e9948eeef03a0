"""Test configuration and shared fixtures."""

import pytest
import tempfile
import shutil
from pathlib import Path
from datetime import date
from typing import List

from nomina.config import Config
from nomina.holidays import HolidaySource, HolidayCalendarProvider
from nomina.classifier import ShiftClassifier
from nomina.aggregator import PayrollAggregator
from nomina.models import HolidayDate, PayPeriod, ShiftInput, Adjustment


class FakeHolidaySource(HolidaySource):
    """In-memory holiday source that records the years it was asked for."""

    def __init__(self, holidays=(), fail_years=()):
        self.holidays = list(holidays)
        self.fail_years = set(fail_years)
        self.calls: List[int] = []

    def fetch(self, year: int) -> List[HolidayDate]:
        self.calls.append(year)
        if year in self.fail_years:
            raise ConnectionError(f"holiday service unreachable for {year}")
        return [
            HolidayDate(year=d.year, month=d.month, day=d.day)
            for d in self.holidays if d.year == year
        ]


@pytest.fixture
def temp_dir():
    """Create a temporary directory for tests."""
    temp_dir = tempfile.mkdtemp()
    yield Path(temp_dir)
    shutil.rmtree(temp_dir)


@pytest.fixture
def sample_config():
    """Configuration with the default legal values and rates."""
    return Config.default()


@pytest.fixture
def holiday_source():
    """Holiday source without any holidays."""
    return FakeHolidaySource()


@pytest.fixture
def holiday_provider(holiday_source):
    return HolidayCalendarProvider(holiday_source)


@pytest.fixture
def classifier(sample_config, holiday_provider):
    return ShiftClassifier(sample_config, holiday_provider)


@pytest.fixture
def aggregator(sample_config, holiday_provider):
    return PayrollAggregator(sample_config, holiday_provider)


@pytest.fixture
def weekday_shift():
    """Tuesday 08:00-16:00, no break."""
    return ShiftInput(date=date(2024, 6, 11), start_time="08:00", end_time="16:00")


@pytest.fixture
def sample_period():
    """Fortnight with a weekday shift, a Saturday night shift and adjustments."""
    return PayPeriod(
        employee_id="E2",
        period_start=date(2024, 6, 1),
        period_end=date(2024, 6, 15),
        shifts=[
            ShiftInput(date=date(2024, 6, 4), start_time="08:00", end_time="17:00",
                       has_break=True, break_start="12:00", break_end="13:00"),
            ShiftInput(date=date(2024, 6, 8), start_time="22:00", end_time="04:00",
                       crosses_midnight=True),
        ],
        base_salary_for_period=711750,
        apply_transport_allowance=True,
        other_income=[Adjustment(amount=50000, description="Bonificación")],
        other_deductions=[Adjustment(amount=20000, description="Préstamo")]
    )
