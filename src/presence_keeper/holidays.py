"""Public holiday lookup backed by the OpenHolidays REST API."""

from __future__ import annotations

import logging
import time
from datetime import date
from typing import Any, Callable, Protocol

import requests

logger = logging.getLogger(__name__)

OPEN_HOLIDAYS_URL = "https://openholidaysapi.org/PublicHolidays"
REQUEST_TIMEOUT_SECONDS = 10
FAILURE_RETRY_SECONDS = 15 * 60


class HolidayLookup(Protocol):
    def is_holiday(self, day: date, country_code: str, language_code: str) -> bool:
        ...


class NoHolidays:
    """Offline lookup that never reports a holiday."""

    def is_holiday(self, day: date, country_code: str, language_code: str) -> bool:
        return False


class OpenHolidaysClient:
    """Fetches a year of nationwide public holidays and answers per-day queries.

    Successful responses are cached per (year, country, language). A
    transport or parse failure is logged once and treated as "not a holiday"
    until ``retry_seconds`` have passed, so an unreachable API costs one
    request per retry interval rather than one per poll.
    """

    def __init__(
        self,
        base_url: str = OPEN_HOLIDAYS_URL,
        *,
        timeout: float = REQUEST_TIMEOUT_SECONDS,
        session: requests.Session | None = None,
        retry_seconds: float = FAILURE_RETRY_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.base_url = base_url
        self.timeout = timeout
        self.retry_seconds = retry_seconds
        self._session = session or requests.Session()
        self._clock = clock
        self._cache: dict[tuple[int, str, str], list[tuple[date, date]]] = {}
        self._failed_at: dict[tuple[int, str, str], float] = {}

    def is_holiday(self, day: date, country_code: str, language_code: str) -> bool:
        key = (day.year, country_code.upper(), language_code.upper())
        failed_at = self._failed_at.get(key)
        if failed_at is not None and self._clock() - failed_at < self.retry_seconds:
            return False
        try:
            periods = self._holidays_for(*key)
        except (requests.RequestException, ValueError, KeyError, TypeError, AttributeError) as exc:
            self._failed_at[key] = self._clock()
            logger.warning(
                "Holiday lookup failed for %s (%s); assuming a working day for %.0f min: %s",
                day.isoformat(),
                country_code,
                self.retry_seconds / 60,
                exc,
            )
            return False
        self._failed_at.pop(key, None)
        return any(start <= day <= end for start, end in periods)

    def _holidays_for(
        self, year: int, country_code: str, language_code: str
    ) -> list[tuple[date, date]]:
        key = (year, country_code.upper(), language_code.upper())
        cached = self._cache.get(key)
        if cached is not None:
            return cached
        response = self._session.get(
            self.base_url,
            params={
                "countryIsoCode": key[1],
                "languageIsoCode": key[2],
                "validFrom": f"{year}-01-01",
                "validTo": f"{year}-12-31",
            },
            headers={"Accept": "application/json"},
            timeout=self.timeout,
        )
        response.raise_for_status()
        periods = parse_holidays(response.json())
        self._cache[key] = periods
        logger.debug("Loaded %d nationwide holidays for %s %d", len(periods), key[1], year)
        return periods


def parse_holidays(payload: Any) -> list[tuple[date, date]]:
    """Extract (start, end) date ranges of nationwide holidays from the API payload."""
    if not isinstance(payload, list):
        raise ValueError("Unexpected holiday payload; expected a list")
    periods: list[tuple[date, date]] = []
    for record in payload:
        if not record.get("nationwide", False):
            continue
        start = date.fromisoformat(record["startDate"])
        end = date.fromisoformat(record.get("endDate") or record["startDate"])
        periods.append((start, end))
    return periods
