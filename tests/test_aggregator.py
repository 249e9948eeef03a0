"""Tests for payroll aggregation."""

import pytest
from datetime import date
from unittest.mock import patch

from nomina.aggregator import PayrollAggregator
from nomina.classifier import ShiftClassifier
from nomina.exceptions import AggregationError, ShiftValidationError
from nomina.holidays import HolidayCalendarProvider
from nomina.models import Adjustment, PayCategory, PayPeriod, ShiftInput

from conftest import FakeHolidaySource


def make_period(shifts=(), base_salary=711750, transport=False, income=(), deductions=()):
    return PayPeriod(
        employee_id="E1",
        period_start=date(2024, 6, 1),
        period_end=date(2024, 6, 15),
        shifts=list(shifts),
        base_salary_for_period=base_salary,
        apply_transport_allowance=transport,
        other_income=[Adjustment(amount=a, description="ingreso") for a in income],
        other_deductions=[Adjustment(amount=a, description="deducción") for a in deductions]
    )


def test_end_to_end_single_shift(aggregator):
    """One ten hour Monday shift on the base fortnightly salary."""
    period = make_period([
        ShiftInput(date=date(2024, 6, 10), start_time="08:00", end_time="18:00")
    ])

    result = aggregator.aggregate(period)

    assert result.employee_id == "E1"
    assert result.shifts_calculated == 1
    assert result.hours_by_category[PayCategory.ORDINARY_DAY] == pytest.approx(7.66)
    assert result.hours_by_category[PayCategory.OVERTIME_DAY] == pytest.approx(2.34)
    assert result.total_worked_hours == pytest.approx(10.0)

    surcharges = 2.34 * 7736.41
    assert result.total_surcharge_payment == pytest.approx(surcharges)
    assert result.total_surcharge_payment == pytest.approx(18103.2, abs=0.1)
    assert result.gross_pay_before_extras == pytest.approx(711750 + surcharges)
    assert result.gross_pay == pytest.approx(729853.2, abs=0.1)
    assert result.transport_allowance_applied == 0
    assert result.contribution_base == pytest.approx(result.gross_pay_before_extras)
    assert result.health_deduction == pytest.approx(result.contribution_base * 0.04)
    assert result.pension_deduction == pytest.approx(result.contribution_base * 0.04)
    assert result.net_pay == pytest.approx(result.gross_pay - 2 * result.contribution_base * 0.04)
    assert result.unavailable_holiday_years == []


def test_sums_across_shifts(aggregator, sample_period):
    result = aggregator.aggregate(sample_period)

    # Tuesday 08-17 with an hour break, then Saturday 22:00-04:00 into Sunday
    assert result.shifts_calculated == 2
    assert result.total_worked_hours == pytest.approx(14.0)
    assert result.hours_by_category[PayCategory.ORDINARY_DAY] == pytest.approx(7.66)
    assert result.hours_by_category[PayCategory.OVERTIME_DAY] == pytest.approx(0.34)
    assert result.hours_by_category[PayCategory.NIGHT_SURCHARGE] == pytest.approx(2.0)
    assert result.hours_by_category[PayCategory.HOLIDAY_SUNDAY_NIGHT_SURCHARGE] == pytest.approx(4.0)
    assert sum(result.hours_by_category.values()) == pytest.approx(result.total_worked_hours)

    expected_surcharges = 0.34 * 7736.41 + 2 * 2166 + 4 * 6808
    assert result.total_surcharge_payment == pytest.approx(expected_surcharges)
    assert result.payment_by_category[PayCategory.ORDINARY_DAY] == 0


def test_adjustments_and_transport(aggregator, sample_period):
    result = aggregator.aggregate(sample_period)

    before_extras = 711750 + result.total_surcharge_payment
    assert result.transport_allowance_applied == pytest.approx(81000)
    assert result.total_other_income == pytest.approx(50000)
    assert result.gross_pay == pytest.approx(before_extras + 81000 + 50000)
    # Transport allowance stays out of the contribution base
    assert result.contribution_base == pytest.approx(before_extras + 50000)
    assert result.total_other_deductions == pytest.approx(20000)
    assert result.net_pay == pytest.approx(
        result.gross_pay - result.health_deduction - result.pension_deduction - 20000
    )


def test_transport_not_applied_when_not_requested(aggregator):
    result = aggregator.aggregate(make_period(transport=False))

    assert result.transport_allowance_applied == 0


def test_transport_eligibility_limit(aggregator):
    """Eligible up to two minimum wages of estimated monthly salary."""
    at_limit = aggregator.aggregate(make_period(base_salary=1_300_000, transport=True))
    above_limit = aggregator.aggregate(make_period(base_salary=1_300_001, transport=True))

    assert at_limit.transport_allowance_applied == pytest.approx(81000)
    assert above_limit.transport_allowance_applied == 0


def test_contribution_base_floor(aggregator):
    """The contribution base never drops below half a minimum wage."""
    result = aggregator.aggregate(make_period(base_salary=300000, income=[10000]))

    assert result.contribution_base == pytest.approx(650000)
    assert result.health_deduction == pytest.approx(26000)
    assert result.pension_deduction == pytest.approx(26000)
    assert result.gross_pay == pytest.approx(310000)
    assert result.net_pay == pytest.approx(310000 - 52000)


def test_empty_period(aggregator):
    result = aggregator.aggregate(make_period(base_salary=711750))

    assert result.shifts_calculated == 0
    assert result.total_worked_hours == 0
    assert all(hours == 0 for hours in result.hours_by_category.values())
    assert result.gross_pay == pytest.approx(711750)


@pytest.mark.parametrize("bad_index", [0, 1, 2])
def test_fail_fast_on_invalid_shift(aggregator, bad_index):
    """One invalid shift rejects the whole period wherever it appears."""
    shifts = [
        ShiftInput(date=date(2024, 6, 3), start_time="08:00", end_time="16:00"),
        ShiftInput(date=date(2024, 6, 4), start_time="08:00", end_time="16:00"),
        ShiftInput(date=date(2024, 6, 5), start_time="08:00", end_time="16:00"),
    ]
    shifts[bad_index] = ShiftInput(date=date(2024, 6, 3 + bad_index), start_time="18:00", end_time="08:00")

    with pytest.raises(AggregationError) as exc_info:
        aggregator.aggregate(make_period(shifts))

    error = exc_info.value
    assert error.shift_date == date(2024, 6, 3 + bad_index)
    assert error.shift_index == bad_index
    assert isinstance(error.cause, ShiftValidationError)
    assert isinstance(error.__cause__, ShiftValidationError)
    assert f"2024-06-0{3 + bad_index}" in str(error)


def test_fail_fast_stops_classifying(aggregator):
    shifts = [
        ShiftInput(date=date(2024, 6, 3), start_time="bad", end_time="16:00"),
        ShiftInput(date=date(2024, 6, 4), start_time="08:00", end_time="16:00"),
    ]

    with patch.object(ShiftClassifier, "classify", autospec=True,
                      side_effect=ShiftClassifier.classify) as mock_classify:
        with pytest.raises(AggregationError):
            aggregator.aggregate(make_period(shifts))

    assert mock_classify.call_count == 1


def test_unavailable_holiday_years_propagate(sample_config):
    provider = HolidayCalendarProvider(FakeHolidaySource(fail_years=[2024]))
    aggregator = PayrollAggregator(sample_config, provider)

    result = aggregator.aggregate(make_period([
        ShiftInput(date=date(2024, 6, 10), start_time="08:00", end_time="12:00")
    ]))

    assert result.unavailable_holiday_years == [2024]


def test_independent_periods_share_holiday_cache(sample_config):
    source = FakeHolidaySource()
    aggregator = PayrollAggregator(sample_config, HolidayCalendarProvider(source))
    period = make_period([ShiftInput(date=date(2024, 6, 11), start_time="08:00", end_time="12:00")])

    first = aggregator.aggregate(period)
    second = aggregator.aggregate(period)

    assert source.calls == [2024]
    assert first.net_pay == second.net_pay


def test_custom_legal_values(sample_config, holiday_provider):
    sample_config.legal.monthly_minimum_wage = 1_423_500
    sample_config.legal.monthly_transport_allowance = 200_000
    aggregator = PayrollAggregator(sample_config, holiday_provider)

    result = aggregator.aggregate(make_period(base_salary=700000, transport=True))

    assert result.transport_allowance_applied == pytest.approx(100000)
    assert result.contribution_base == pytest.approx(711750)


def test_adjustment_amount_must_be_positive():
    with pytest.raises(ValueError):
        Adjustment(amount=0, description="nada")


def test_period_bounds_are_checked():
    with pytest.raises(ValueError):
        PayPeriod(employee_id="E1", period_start=date(2024, 6, 15), period_end=date(2024, 6, 1),
                  base_salary_for_period=711750)
