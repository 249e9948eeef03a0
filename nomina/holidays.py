"""Colombian public-holiday sources and the per-year holiday cache."""

import logging
from abc import ABC, abstractmethod
from datetime import date
from typing import Dict, FrozenSet, List, Set

import httpx

from .config import Config
from .models import HolidayDate

logger = logging.getLogger(__name__)


class HolidaySource(ABC):
    """Abstract base class for holiday data providers."""

    @abstractmethod
    def fetch(self, year: int) -> List[HolidayDate]:
        """Return the public holidays of the given year."""
        pass


class NagerDateHolidaySource(HolidaySource):
    """Holiday lookup against the Nager.Date public holiday API.

    An injected client is left open for its owner; otherwise each fetch opens
    and closes its own client.
    """

    def __init__(self, config: Config, client: httpx.Client = None):
        self.config = config
        self.client = client

    def fetch(self, year: int) -> List[HolidayDate]:
        url = (f"{self.config.holidays.api_url.rstrip('/')}/PublicHolidays/"
               f"{year}/{self.config.holidays.country_code}")
        logger.info(f"Fetching holidays for {year} from {url}")

        if self.client is not None:
            response = self.client.get(url)
        else:
            with httpx.Client(timeout=self.config.holidays.timeout_seconds) as client:
                response = client.get(url)
        response.raise_for_status()

        holidays = []
        for item in response.json():
            # Entries look like {"date": "2024-01-01", "localName": "Año Nuevo", ...}
            parsed = date.fromisoformat(item["date"])
            holidays.append(HolidayDate(year=parsed.year, month=parsed.month, day=parsed.day))
        return holidays


# Fixed Colombian holiday tables (Ley Emiliani dates already moved to Monday).
COLOMBIAN_HOLIDAYS = {
    2023: [
        (1, 1), (1, 9), (3, 20), (4, 6), (4, 7), (5, 1), (5, 22), (6, 12),
        (6, 19), (7, 3), (7, 20), (8, 7), (8, 21), (10, 16), (11, 6),
        (11, 13), (12, 8), (12, 25),
    ],
    2024: [
        (1, 1), (1, 8), (3, 25), (3, 28), (3, 29), (5, 1), (5, 13), (6, 3),
        (6, 10), (7, 1), (7, 20), (8, 7), (8, 19), (10, 14), (11, 4),
        (11, 11), (12, 8), (12, 25),
    ],
    2025: [
        (1, 1), (1, 6), (3, 24), (4, 17), (4, 18), (5, 1), (6, 2), (6, 23),
        (6, 30), (7, 20), (8, 7), (8, 18), (10, 13), (11, 3), (11, 17),
        (12, 8), (12, 25),
    ],
    2026: [
        (1, 1), (1, 12), (3, 23), (4, 2), (4, 3), (5, 1), (5, 18), (6, 8),
        (6, 15), (6, 29), (7, 20), (8, 7), (8, 17), (10, 12), (11, 2),
        (11, 16), (12, 8), (12, 25),
    ],
}


class StaticHolidaySource(HolidaySource):
    """Holiday lookup from the bundled tables. Unknown years have no holidays."""

    def __init__(self, table: Dict[int, List[tuple]] = None):
        self.table = COLOMBIAN_HOLIDAYS if table is None else table

    def fetch(self, year: int) -> List[HolidayDate]:
        if year not in self.table:
            logger.warning(f"No bundled holiday data for {year}")
            return []
        return [HolidayDate(year=year, month=month, day=day) for month, day in self.table[year]]


def create_holiday_source(config: Config) -> HolidaySource:
    """Factory function to create the configured holiday source."""
    if config.holidays.source.lower() == "nager":
        return NagerDateHolidaySource(config)
    elif config.holidays.source.lower() == "static":
        return StaticHolidaySource()
    else:
        raise ValueError(f"Unsupported holiday source: {config.holidays.source}")


class HolidayCalendarProvider:
    """Caches the holiday set of each year for the lifetime of the provider.

    A failed lookup is not cached: the caller gets an empty set, the year is
    recorded as unavailable and the next request for that year tries again.
    """

    def __init__(self, source: HolidaySource):
        self.source = source
        self._cache: Dict[int, FrozenSet[date]] = {}
        self._unavailable: Set[int] = set()

    @property
    def unavailable_years(self) -> FrozenSet[int]:
        return frozenset(self._unavailable)

    def holidays_for(self, year: int) -> FrozenSet[date]:
        if year in self._cache:
            return self._cache[year]

        try:
            entries = self.source.fetch(year)
        except Exception as e:
            logger.warning(f"Holiday lookup for {year} failed, treating it as having no holidays: {e}")
            self._unavailable.add(year)
            return frozenset()

        holidays = set()
        for entry in entries:
            try:
                holiday = entry.as_date()
            except ValueError as e:
                logger.warning(f"Skipping invalid holiday {entry}: {e}")
                continue
            if holiday.year != year:
                logger.warning(f"Skipping holiday {holiday} returned for year {year}")
                continue
            holidays.add(holiday)

        result = frozenset(holidays)
        self._cache[year] = result
        self._unavailable.discard(year)
        logger.debug(f"Cached {len(result)} holidays for {year}")
        return result

    def is_holiday(self, day: date) -> bool:
        return day in self.holidays_for(day.year)

    def is_unavailable(self, year: int) -> bool:
        return year in self._unavailable

    def clear(self):
        self._cache.clear()
        self._unavailable.clear()
