"""Bi-weekly payroll aggregation."""

import logging
from typing import List

from .classifier import ShiftClassifier
from .config import Config
from .exceptions import AggregationError, ShiftValidationError
from .holidays import HolidayCalendarProvider
from .models import ClassifiedShift, PayCategory, PayPeriod, PayrollResult, empty_category_map

logger = logging.getLogger(__name__)


class PayrollAggregator:
    """Sums classified shifts and derives gross pay, contribution base and net pay."""

    def __init__(self, config: Config, holiday_provider: HolidayCalendarProvider):
        self.config = config
        self.classifier = ShiftClassifier(config, holiday_provider)

    def classify_shifts(self, period: PayPeriod) -> List[ClassifiedShift]:
        """Classify every shift, stopping at the first invalid one."""
        classified = []
        for index, shift in enumerate(period.shifts):
            try:
                classified.append(self.classifier.classify(shift))
            except ShiftValidationError as e:
                logger.error(f"Payroll for {period.employee_id} rejected: shift {shift.date} is invalid: {e}")
                raise AggregationError(shift.date, index, e) from e
        return classified

    def transport_allowance(self, period: PayPeriod) -> float:
        """Fortnightly transport allowance, zero when not requested or not eligible."""
        legal = self.config.legal
        estimated_monthly_salary = period.base_salary_for_period * 2
        eligible = estimated_monthly_salary <= 2 * legal.monthly_minimum_wage

        if not period.apply_transport_allowance:
            return 0.0
        if not eligible:
            logger.info(f"Transport allowance requested for {period.employee_id} but estimated monthly "
                        f"salary {estimated_monthly_salary:.0f} exceeds two minimum wages")
            return 0.0
        return legal.monthly_transport_allowance / 2

    def aggregate(self, period: PayPeriod) -> PayrollResult:
        """Compute the full payroll for a period.

        Raises AggregationError when any shift is invalid; no partial result is
        produced in that case.
        """
        classified = self.classify_shifts(period)
        legal = self.config.legal

        hours = empty_category_map()
        payments = empty_category_map()
        total_worked_hours = 0.0
        unavailable_years = set()

        for shift in classified:
            for category in PayCategory:
                hours[category] += shift.hours_by_category[category]
                payments[category] += shift.payment_by_category[category]
            total_worked_hours += shift.total_worked_hours
            unavailable_years.update(shift.unavailable_holiday_years)

        total_surcharge_payment = sum(
            amount for category, amount in payments.items()
            if category is not PayCategory.ORDINARY_DAY
        )

        gross_pay_before_extras = period.base_salary_for_period + total_surcharge_payment
        transport_allowance = self.transport_allowance(period)
        total_other_income = sum(item.amount for item in period.other_income)
        gross_pay = gross_pay_before_extras + transport_allowance + total_other_income

        # Transport allowance is not part of the contribution base.
        contribution_floor = legal.monthly_minimum_wage / 2
        contribution_base = max(gross_pay_before_extras + total_other_income, contribution_floor)

        health_deduction = contribution_base * legal.health_rate
        pension_deduction = contribution_base * legal.pension_rate
        total_other_deductions = sum(item.amount for item in period.other_deductions)
        net_pay = gross_pay - health_deduction - pension_deduction - total_other_deductions

        if unavailable_years:
            logger.warning(f"Payroll for {period.employee_id} computed without holiday data "
                           f"for {sorted(unavailable_years)}")

        result = PayrollResult(
            employee_id=period.employee_id,
            period_start=period.period_start,
            period_end=period.period_end,
            shifts_calculated=len(classified),
            hours_by_category=hours,
            payment_by_category=payments,
            total_surcharge_payment=total_surcharge_payment,
            total_worked_hours=total_worked_hours,
            base_salary=period.base_salary_for_period,
            gross_pay_before_extras=gross_pay_before_extras,
            transport_allowance_applied=transport_allowance,
            total_other_income=total_other_income,
            gross_pay=gross_pay,
            contribution_base=contribution_base,
            health_deduction=health_deduction,
            pension_deduction=pension_deduction,
            total_other_deductions=total_other_deductions,
            net_pay=net_pay,
            unavailable_holiday_years=sorted(unavailable_years)
        )
        logger.info(f"Payroll for {period.employee_id} ({period.period_start} - {period.period_end}): "
                    f"{len(classified)} shifts, gross {gross_pay:.2f}, net {net_pay:.2f}")
        return result
