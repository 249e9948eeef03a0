"""Main processing orchestrator for the payroll calculator."""

import json
import logging
from datetime import datetime
from pathlib import Path
from typing import List, Optional

import toml
from rich.console import Console
from rich.progress import Progress
from rich.table import Table

from .config import Config
from .models import PayCategory, PayPeriod, PayrollBatch, PayrollResult
from .holidays import HolidayCalendarProvider, create_holiday_source
from .aggregator import PayrollAggregator
from .exceptions import AggregationError

logger = logging.getLogger(__name__)


def format_currency(value: float) -> str:
    """Format pesos the Colombian way: no decimals, dots for thousands."""
    sign = "-" if value < 0 else ""
    return f"{sign}${abs(value):,.0f}".replace(",", ".")


def format_hours(hours: float) -> str:
    return f"{hours:.2f}".replace(".", ",")


def load_period(period_path: Path) -> PayPeriod:
    """Load a pay period description from a JSON or TOML file."""
    if not period_path.exists():
        raise FileNotFoundError(f"Period file not found: {period_path}")

    if period_path.suffix.lower() == ".toml":
        data = toml.load(period_path)
    else:
        with open(period_path, encoding="utf-8") as f:
            data = json.load(f)

    return PayPeriod.model_validate(data)


class PayrollProcessor:
    """Loads pay periods, runs the calculation and reports the results."""

    def __init__(self, config_path: Optional[str] = None):
        self.config = Config.load(config_path) if config_path else Config.default()
        self.console = Console()

        # Initialize services
        self.holiday_provider = HolidayCalendarProvider(create_holiday_source(self.config))
        self.aggregator = PayrollAggregator(self.config, self.holiday_provider)

        # Setup logging
        self._setup_logging()

    def _setup_logging(self):
        """Configure logging based on config."""
        log_level = getattr(logging, self.config.output.log_level.upper())
        logging.basicConfig(
            level=log_level,
            format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
            handlers=[
                logging.StreamHandler(),
                logging.FileHandler('nomina.log')
            ]
        )

    def calculate(self, period: PayPeriod) -> PayrollResult:
        return self.aggregator.aggregate(period)

    def process_periods(self, period_paths: List[Path]) -> PayrollBatch:
        """Calculate payroll for every period file; a failing file does not stop the others."""
        start_time = datetime.now()
        logger.info(f"Starting payroll batch with {len(period_paths)} period files")

        results = []
        failures = {}

        with Progress(console=self.console) as progress:
            task = progress.add_task(
                "[cyan]Calculating payroll...",
                total=len(period_paths)
            )

            for period_path in period_paths:
                try:
                    progress.update(task, description=f"Calculating {period_path.name}")
                    period = load_period(period_path)
                    results.append(self.calculate(period))
                except AggregationError as e:
                    logger.error(f"Payroll rejected for {period_path}: {e}")
                    failures[str(period_path)] = str(e)
                except (OSError, ValueError) as e:
                    logger.error(f"Could not read period file {period_path}: {e}")
                    failures[str(period_path)] = str(e)

                progress.advance(task)

        batch = PayrollBatch(
            results=results,
            failures=failures,
            summary=self._generate_summary(results),
            processing_timestamp=start_time,
            total_files_processed=len(period_paths),
            successful_calculations=len(results),
            failed_calculations=len(failures)
        )

        logger.info(f"Batch complete: {len(results)} successful, {len(failures)} failed")
        return batch

    def _generate_summary(self, results: List[PayrollResult]) -> dict:
        """Generate totals across all calculated periods."""
        if not results:
            return {}

        hours_by_category = {category.value: 0.0 for category in PayCategory}
        for result in results:
            for category, hours in result.hours_by_category.items():
                hours_by_category[category.value] += hours

        degraded_years = sorted({year for result in results for year in result.unavailable_holiday_years})

        return {
            "employees": sorted({result.employee_id for result in results}),
            "hours_by_category": {k: round(v, 2) for k, v in hours_by_category.items()},
            "totals": {
                "worked_hours": round(sum(r.total_worked_hours for r in results), 2),
                "surcharges": round(sum(r.total_surcharge_payment for r in results), 2),
                "gross_pay": round(sum(r.gross_pay for r in results), 2),
                "net_pay": round(sum(r.net_pay for r in results), 2)
            },
            "holiday_data_unavailable_for": degraded_years
        }

    def save_results(self, batch: PayrollBatch, output_path: Optional[str] = None) -> Path:
        """Save each payroll result and the batch summary as JSON."""
        output_dir = Path(output_path or self.config.output.output_folder)
        output_dir.mkdir(parents=True, exist_ok=True)

        timestamp = batch.processing_timestamp.strftime("%Y%m%d_%H%M%S")

        for result in batch.results:
            filename = f"payroll_{result.employee_id}_{result.period_start.isoformat()}_{timestamp}.json"
            with open(output_dir / filename, 'w', encoding="utf-8") as f:
                json.dump(
                    result.model_dump(mode="json"),
                    f,
                    indent=self.config.output.json_indent
                )

        summary_path = output_dir / f"batch_summary_{timestamp}.json"
        with open(summary_path, 'w', encoding="utf-8") as f:
            json.dump(
                batch.model_dump(mode="json"),
                f,
                indent=self.config.output.json_indent
            )

        logger.info(f"Results saved to {output_dir}")
        return output_dir

    def display_result(self, result: PayrollResult):
        """Print the category breakdown and the payroll statement of one period."""
        hours_table = Table(title=f"{result.employee_id}: {result.period_start} - {result.period_end}")
        hours_table.add_column("Categoría", style="cyan")
        hours_table.add_column("Código", style="blue")
        hours_table.add_column("Horas", style="green", justify="right")
        hours_table.add_column("Pago", style="yellow", justify="right")

        for category in PayCategory:
            hours_table.add_row(
                category.label,
                category.code,
                format_hours(result.hours_by_category[category]),
                format_currency(result.payment_by_category[category])
            )
        hours_table.add_row("Total", "", format_hours(result.total_worked_hours),
                            format_currency(result.total_surcharge_payment), style="bold")
        self.console.print(hours_table)

        statement = Table(title="Liquidación")
        statement.add_column("Concepto", style="cyan")
        statement.add_column("Valor", style="green", justify="right")
        statement.add_row("Salario base", format_currency(result.base_salary))
        statement.add_row("(+) Recargos y extras", format_currency(result.total_surcharge_payment))
        statement.add_row("(+) Auxilio de transporte", format_currency(result.transport_allowance_applied))
        statement.add_row("(+) Otros ingresos", format_currency(result.total_other_income))
        statement.add_row("Total devengado", format_currency(result.gross_pay), style="bold")
        statement.add_row("IBC", format_currency(result.contribution_base))
        statement.add_row("(-) Salud", format_currency(result.health_deduction))
        statement.add_row("(-) Pensión", format_currency(result.pension_deduction))
        statement.add_row("(-) Otras deducciones", format_currency(result.total_other_deductions))
        statement.add_row("Neto a pagar", format_currency(result.net_pay), style="bold green")
        self.console.print(statement)

        if result.unavailable_holiday_years:
            self.console.print(f"[bold yellow]⚠️  Holiday data unavailable for "
                               f"{result.unavailable_holiday_years}; holidays counted as ordinary days[/bold yellow]")

    def display_summary(self, batch: PayrollBatch):
        """Display processing summary to console."""
        if not self.config.output.console_summary:
            return

        for result in batch.results:
            self.display_result(result)

        stats_table = Table(title="Batch Statistics")
        stats_table.add_column("Metric", style="cyan")
        stats_table.add_column("Value", style="green")
        stats_table.add_row("Files Processed", str(batch.total_files_processed))
        stats_table.add_row("Successful Calculations", str(batch.successful_calculations))
        stats_table.add_row("Failed Calculations", str(batch.failed_calculations))
        self.console.print(stats_table)

        for path, error in batch.failures.items():
            self.console.print(f"[bold red]❌ {path}:[/bold red] {error}")

    def run(self, period_paths: List[Path], output_path: Optional[str] = None) -> PayrollBatch:
        """Run the complete calculation pipeline."""
        batch = self.process_periods(period_paths)
        self.display_summary(batch)

        if batch.results:
            output_dir = self.save_results(batch, output_path)
            self.console.print(f"\n[bold cyan]📄 Results saved to:[/bold cyan] {output_dir}")

        return batch
