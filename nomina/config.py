"""Configuration management for the payroll calculator."""

import toml
from pathlib import Path
from typing import Dict
from dataclasses import dataclass, field

from .models import PayCategory


@dataclass
class RatesConfig:
    """Hourly value (COP) paid for each category on top of the base salary."""
    night_surcharge: float = 2166
    overtime_day: float = 7736.41
    overtime_night: float = 10830.98
    holiday_sunday_day_surcharge: float = 4642
    holiday_sunday_night_surcharge: float = 6808
    overtime_holiday_sunday_day: float = 12378.26
    overtime_holiday_sunday_night: float = 15472.83
    ordinary_day: float = 0

    def __post_init__(self):
        # The base salary already pays ordinary daytime hours.
        if self.ordinary_day != 0:
            raise ValueError("rates.ordinary_day must be 0")
        for name, value in self.as_table().items():
            if value < 0:
                raise ValueError(f"Negative rate for {name.value}: {value}")

    def rate_for(self, category: PayCategory) -> float:
        return getattr(self, category.value)

    def as_table(self) -> Dict[PayCategory, float]:
        return {category: getattr(self, category.value) for category in PayCategory}


@dataclass
class LegalConfig:
    overtime_threshold_hours: float = 7.66
    night_start_hour: int = 21
    night_end_hour: int = 6
    monthly_minimum_wage: float = 1_300_000
    monthly_transport_allowance: float = 162_000
    health_rate: float = 0.04
    pension_rate: float = 0.04

    def __post_init__(self):
        if self.overtime_threshold_hours <= 0:
            raise ValueError("legal.overtime_threshold_hours must be positive")
        if not (0 <= self.night_end_hour < self.night_start_hour <= 24):
            raise ValueError(
                f"Invalid night window: {self.night_start_hour}:00-{self.night_end_hour}:00"
            )


@dataclass
class HolidaysConfig:
    source: str = "static"
    api_url: str = "https://date.nager.at/api/v3"
    country_code: str = "CO"
    timeout_seconds: float = 10.0


@dataclass
class OutputConfig:
    log_level: str = "INFO"
    json_indent: int = 2
    console_summary: bool = True
    output_folder: str = "output"


@dataclass
class Config:
    rates: RatesConfig = field(default_factory=RatesConfig)
    legal: LegalConfig = field(default_factory=LegalConfig)
    holidays: HolidaysConfig = field(default_factory=HolidaysConfig)
    output: OutputConfig = field(default_factory=OutputConfig)

    @classmethod
    def default(cls) -> "Config":
        """Configuration with the legal values used when no file is given."""
        return cls()

    @classmethod
    def load(cls, config_path: str = "config.toml") -> "Config":
        """Load configuration from TOML file.

        Missing sections or keys fall back to the defaults.
        """
        config_file = Path(config_path)
        if not config_file.exists():
            raise FileNotFoundError(f"Configuration file not found: {config_path}")

        data = toml.load(config_file)

        return cls(
            rates=RatesConfig(**data.get("rates", {})),
            legal=LegalConfig(**data.get("legal", {})),
            holidays=HolidaysConfig(**data.get("holidays", {})),
            output=OutputConfig(**data.get("output", {}))
        )
