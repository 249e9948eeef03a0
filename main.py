#!/usr/bin/env python3
"""
Nómina Calculator - CLI Entry Point

Classifies worked hours into Colombian surcharge and overtime categories
and computes the bi-weekly payroll statement for each pay period file.
"""

import click
import sys
import logging
from datetime import date
from pathlib import Path

from nomina.processor import PayrollProcessor, format_currency, format_hours
from nomina.config import Config
from nomina.models import PayCategory, ShiftInput
from nomina.holidays import HolidayCalendarProvider, create_holiday_source
from nomina.classifier import ShiftClassifier
from nomina.exceptions import ShiftValidationError

logger = logging.getLogger(__name__)


def _load_config(config: str) -> Config:
    if Path(config).exists():
        return Config.load(config)
    return Config.default()


def _collect_period_files(paths) -> list:
    period_files = []
    for raw_path in paths:
        path = Path(raw_path)
        if path.is_dir():
            period_files.extend(sorted(
                p for p in path.iterdir()
                if p.is_file() and p.suffix.lower() in (".json", ".toml") and not p.name.startswith('.')
            ))
        else:
            period_files.append(path)
    return period_files


@click.group()
@click.version_option(version="1.0.0")
def cli():
    """Nómina Calculator - Colombian surcharge, overtime and payroll calculation."""
    pass


@cli.command()
@click.argument('periods', nargs=-1, required=True)
@click.option(
    '--config', '-c',
    default='config.toml',
    help='Path to configuration file (defaults are used if it does not exist)'
)
@click.option(
    '--output', '-o',
    default=None,
    help='Output directory for results'
)
@click.option(
    '--verbose', '-v',
    is_flag=True,
    help='Enable verbose logging'
)
def calculate(periods, config: str, output: str, verbose: bool):
    """Calculate payroll for period files (JSON/TOML) or folders of them."""
    try:
        period_files = _collect_period_files(periods)
        if not period_files:
            click.echo("❌ No period files found", err=True)
            sys.exit(1)

        processor = PayrollProcessor(config if Path(config).exists() else None)

        # Override log level if verbose
        if verbose:
            logging.getLogger().setLevel(logging.DEBUG)

        click.echo(f"🚀 Calculating payroll for {len(period_files)} period(s)...")
        batch = processor.run(period_files, output)

        if batch.failed_calculations > 0:
            click.echo(f"⚠️  Completed with {batch.failed_calculations} failures")
            sys.exit(1)
        else:
            click.echo("✅ Payroll calculated successfully")
            sys.exit(0)

    except KeyboardInterrupt:
        click.echo("\n❌ Calculation interrupted by user", err=True)
        sys.exit(130)
    except Exception as e:
        click.echo(f"❌ Calculation failed: {e}", err=True)
        if verbose:
            import traceback
            traceback.print_exc()
        sys.exit(1)


@cli.command()
@click.option('--date', 'shift_date', required=True, type=click.DateTime(formats=["%Y-%m-%d"]),
              help='Shift date (YYYY-MM-DD)')
@click.option('--start', 'start_time', required=True, help='Start time (HH:mm)')
@click.option('--end', 'end_time', required=True, help='End time (HH:mm)')
@click.option('--next-day', is_flag=True, help='The shift ends on the following day')
@click.option('--break-start', default=None, help='Break start (HH:mm)')
@click.option('--break-end', default=None, help='Break end (HH:mm)')
@click.option('--config', '-c', default='config.toml', help='Path to configuration file')
def classify(shift_date, start_time, end_time, next_day, break_start, break_end, config):
    """Classify a single shift into pay categories."""
    try:
        cfg = _load_config(config)
        shift = ShiftInput(
            date=shift_date.date(),
            start_time=start_time,
            end_time=end_time,
            crosses_midnight=next_day,
            has_break=break_start is not None or break_end is not None,
            break_start=break_start,
            break_end=break_end
        )

        provider = HolidayCalendarProvider(create_holiday_source(cfg))
        result = ShiftClassifier(cfg, provider).classify(shift)

        click.echo(f"📅 {shift.date} {start_time} - {end_time}{' (+1d)' if next_day else ''}")
        for category in PayCategory:
            hours = result.hours_by_category[category]
            if hours > 0:
                click.echo(f"  {category.code:<7} {category.label:<42} "
                           f"{format_hours(hours):>6} h  {format_currency(result.payment_by_category[category]):>12}")
        click.echo(f"Total worked: {format_hours(result.total_worked_hours)} h")
        click.echo(f"Surcharges and overtime: {format_currency(result.total_surcharge_payment)}")

        if result.unavailable_holiday_years:
            click.echo(f"⚠️  Holiday data unavailable for {result.unavailable_holiday_years}")

    except ShiftValidationError as e:
        click.echo(f"❌ Invalid shift: {e}", err=True)
        sys.exit(1)
    except Exception as e:
        click.echo(f"❌ Classification failed: {e}", err=True)
        sys.exit(1)


@cli.command()
@click.argument('year', type=int, required=False)
@click.option('--config', '-c', default='config.toml', help='Path to configuration file')
def holidays(year: int, config: str):
    """List the public holidays used for a year (the current year by default)."""
    if year is None:
        year = date.today().year

    try:
        cfg = _load_config(config)
        provider = HolidayCalendarProvider(create_holiday_source(cfg))
        days = sorted(provider.holidays_for(year))

        if provider.is_unavailable(year):
            click.echo(f"❌ Holiday data for {year} could not be retrieved", err=True)
            sys.exit(1)

        click.echo(f"📅 {len(days)} holidays in {year} ({cfg.holidays.source} source)")
        for day in days:
            click.echo(f"  • {day.isoformat()} ({day.strftime('%A')})")

    except Exception as e:
        click.echo(f"❌ Failed to list holidays: {e}", err=True)
        sys.exit(1)


@cli.command()
@click.option(
    '--config', '-c',
    default='config.toml',
    help='Path to configuration file'
)
def validate_config(config: str):
    """Validate configuration file and holiday source."""
    try:
        click.echo("🔍 Validating configuration...")

        cfg = Config.load(config)
        click.echo(f"✅ Configuration loaded: {config}")
        click.echo(f"✅ Overtime threshold: {cfg.legal.overtime_threshold_hours} h")
        click.echo(f"✅ Night window: {cfg.legal.night_start_hour}:00 - {cfg.legal.night_end_hour}:00")
        click.echo(f"✅ Minimum wage: {format_currency(cfg.legal.monthly_minimum_wage)}")

        click.echo("📅 Testing holiday source...")
        provider = HolidayCalendarProvider(create_holiday_source(cfg))
        year = date.today().year
        days = provider.holidays_for(year)
        if provider.is_unavailable(year):
            click.echo(f"❌ Holiday source '{cfg.holidays.source}' failed for {year}", err=True)
            sys.exit(1)
        click.echo(f"✅ Holiday source: {cfg.holidays.source} ({len(days)} holidays in {year})")

        click.echo("🎉 Configuration validation successful!")

    except Exception as e:
        click.echo(f"❌ Configuration validation failed: {e}", err=True)
        sys.exit(1)


@cli.command()
def setup():
    """Interactive setup wizard for first-time configuration."""
    click.echo("🔧 Nómina Calculator Setup")
    click.echo("=" * 50)

    # Check if config already exists
    if Path("config.toml").exists():
        if not click.confirm("Configuration file already exists. Overwrite?"):
            click.echo("Setup cancelled.")
            return

    defaults = Config.default()

    click.echo("\n1. Legal values")
    minimum_wage = click.prompt("Monthly minimum wage (SMLMV)", type=float,
                                default=defaults.legal.monthly_minimum_wage)
    transport = click.prompt("Monthly transport allowance", type=float,
                             default=defaults.legal.monthly_transport_allowance)
    threshold = click.prompt("Daily hours before overtime", type=float,
                             default=defaults.legal.overtime_threshold_hours)

    click.echo("\n2. Holiday source")
    source = click.prompt(
        "Choose holiday source",
        type=click.Choice(['static', 'nager']),
        default=defaults.holidays.source
    )

    click.echo("\n3. Output")
    output_folder = click.prompt("Output folder", default=defaults.output.output_folder)

    rates = defaults.rates
    config_content = f"""[rates]
night_surcharge = {rates.night_surcharge}
overtime_day = {rates.overtime_day}
overtime_night = {rates.overtime_night}
holiday_sunday_day_surcharge = {rates.holiday_sunday_day_surcharge}
holiday_sunday_night_surcharge = {rates.holiday_sunday_night_surcharge}
overtime_holiday_sunday_day = {rates.overtime_holiday_sunday_day}
overtime_holiday_sunday_night = {rates.overtime_holiday_sunday_night}
ordinary_day = 0

[legal]
overtime_threshold_hours = {threshold}
night_start_hour = {defaults.legal.night_start_hour}
night_end_hour = {defaults.legal.night_end_hour}
monthly_minimum_wage = {minimum_wage}
monthly_transport_allowance = {transport}
health_rate = {defaults.legal.health_rate}
pension_rate = {defaults.legal.pension_rate}

[holidays]
source = "{source}"
api_url = "{defaults.holidays.api_url}"
country_code = "{defaults.holidays.country_code}"
timeout_seconds = {defaults.holidays.timeout_seconds}

[output]
log_level = "INFO"
json_indent = 2
console_summary = true
output_folder = "{output_folder}"
"""

    with open("config.toml", 'w', encoding="utf-8") as f:
        f.write(config_content)

    click.echo("✅ Configuration saved to config.toml")
    click.echo("\n🎉 Setup complete! You can now run:")
    click.echo("  python main.py calculate periods/")


if __name__ == "__main__":
    cli()
