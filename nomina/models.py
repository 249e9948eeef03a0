"""Data models for the payroll calculator."""

from datetime import date, datetime
from enum import Enum
from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field, model_validator


class PayCategory(str, Enum):
    ORDINARY_DAY = "ordinary_day"
    NIGHT_SURCHARGE = "night_surcharge"
    HOLIDAY_SUNDAY_DAY_SURCHARGE = "holiday_sunday_day_surcharge"
    HOLIDAY_SUNDAY_NIGHT_SURCHARGE = "holiday_sunday_night_surcharge"
    OVERTIME_DAY = "overtime_day"
    OVERTIME_NIGHT = "overtime_night"
    OVERTIME_HOLIDAY_SUNDAY_DAY = "overtime_holiday_sunday_day"
    OVERTIME_HOLIDAY_SUNDAY_NIGHT = "overtime_holiday_sunday_night"

    @property
    def label(self) -> str:
        return CATEGORY_LABELS[self]

    @property
    def code(self) -> str:
        return CATEGORY_CODES[self]


CATEGORY_LABELS = {
    PayCategory.ORDINARY_DAY: "Horas Base Diurnas",
    PayCategory.NIGHT_SURCHARGE: "Recargo Nocturno",
    PayCategory.HOLIDAY_SUNDAY_DAY_SURCHARGE: "Recargo Dominical/Festivo Diurno",
    PayCategory.HOLIDAY_SUNDAY_NIGHT_SURCHARGE: "Recargo Dominical/Festivo Nocturno",
    PayCategory.OVERTIME_DAY: "Horas Extras Diurnas",
    PayCategory.OVERTIME_NIGHT: "Horas Extras Nocturnas",
    PayCategory.OVERTIME_HOLIDAY_SUNDAY_DAY: "Horas Extras Diurnas Dominical/Festivo",
    PayCategory.OVERTIME_HOLIDAY_SUNDAY_NIGHT: "Horas Extras Nocturnas Dominical/Festivo",
}

CATEGORY_CODES = {
    PayCategory.ORDINARY_DAY: "HBD",
    PayCategory.NIGHT_SURCHARGE: "RN",
    PayCategory.HOLIDAY_SUNDAY_DAY_SURCHARGE: "RDD",
    PayCategory.HOLIDAY_SUNDAY_NIGHT_SURCHARGE: "RDN",
    PayCategory.OVERTIME_DAY: "HED",
    PayCategory.OVERTIME_NIGHT: "HEN",
    PayCategory.OVERTIME_HOLIDAY_SUNDAY_DAY: "HEDD/F",
    PayCategory.OVERTIME_HOLIDAY_SUNDAY_NIGHT: "HEND/F",
}


def empty_category_map() -> Dict[PayCategory, float]:
    return {category: 0.0 for category in PayCategory}


class HolidayDate(BaseModel):
    year: int
    month: int = Field(ge=1, le=12)
    day: int = Field(ge=1, le=31)

    def as_date(self) -> date:
        return date(self.year, self.month, self.day)


class ShiftInput(BaseModel):
    """One clocked shift. Times are raw HH:mm strings, checked by the classifier."""
    date: date
    start_time: str
    end_time: str
    crosses_midnight: bool = False
    has_break: bool = False
    break_start: Optional[str] = None
    break_end: Optional[str] = None

    model_config = {"frozen": True}


class Adjustment(BaseModel):
    amount: float = Field(gt=0)
    description: str = ""


class PayPeriod(BaseModel):
    employee_id: str
    period_start: date
    period_end: date
    shifts: List[ShiftInput] = Field(default_factory=list)
    base_salary_for_period: float = Field(ge=0)
    apply_transport_allowance: bool = False
    other_income: List[Adjustment] = Field(default_factory=list)
    other_deductions: List[Adjustment] = Field(default_factory=list)

    @model_validator(mode="after")
    def check_period_bounds(self) -> "PayPeriod":
        if self.period_end < self.period_start:
            raise ValueError("period_end must not be before period_start")
        return self


class ClassifiedShift(BaseModel):
    date: date
    hours_by_category: Dict[PayCategory, float] = Field(default_factory=empty_category_map)
    payment_by_category: Dict[PayCategory, float] = Field(default_factory=empty_category_map)
    total_worked_hours: float = 0.0
    total_surcharge_payment: float = 0.0
    unavailable_holiday_years: List[int] = Field(default_factory=list)


class PayrollResult(BaseModel):
    employee_id: str
    period_start: date
    period_end: date
    shifts_calculated: int
    hours_by_category: Dict[PayCategory, float]
    payment_by_category: Dict[PayCategory, float]
    total_surcharge_payment: float
    total_worked_hours: float
    base_salary: float
    gross_pay_before_extras: float
    transport_allowance_applied: float
    total_other_income: float
    gross_pay: float
    contribution_base: float
    health_deduction: float
    pension_deduction: float
    total_other_deductions: float
    net_pay: float
    unavailable_holiday_years: List[int] = Field(default_factory=list)
    calculated_at: datetime = Field(default_factory=datetime.now)


class PayrollBatch(BaseModel):
    results: List[PayrollResult]
    failures: Dict[str, str] = Field(default_factory=dict)
    summary: Dict[str, Any] = Field(default_factory=dict)
    processing_timestamp: datetime
    total_files_processed: int
    successful_calculations: int
    failed_calculations: int
