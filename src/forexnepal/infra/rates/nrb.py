"""Nepal Rastra Bank forex API client for bounded-size historical range requests."""

import logging
from datetime import date
from decimal import Decimal, InvalidOperation
from typing import Any, Optional

import httpx
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from forexnepal.domain.models.rates import DailyRates
from forexnepal.exceptions import UpstreamBadResponse, UpstreamTimeout, UpstreamUnavailable
from forexnepal.infra.http.rate_limited_client import RateLimitedClient
from forexnepal.utils.dates import parse_date

logger = logging.getLogger(__name__)

BASE_URL = "https://www.nrb.org.np/api/forex/v1"

PER_PAGE = 100  # NRB hard limit per page
MAX_PAGES = 20


def _to_decimal(value: Any) -> Optional[Decimal]:
    if value is None or value == "":
        return None
    try:
        return Decimal(str(value))
    except InvalidOperation:
        return None


def parse_payload(data: Any) -> tuple[list[DailyRates], int]:
    """Parse one NRB response page into ``(days, total_pages)``.

    Raises ``UpstreamBadResponse(malformed=True)`` when the envelope is not what NRB publishes.
    """
    try:
        status = data.get("status") or {}
        code = status.get("code", 200)
        if code != 200:
            raise UpstreamBadResponse(f"NRB reported status {code}: {status.get('message', '')}", status_code=code)

        body = data["data"]
        payload = body["payload"] or []
        total_pages = int((body.get("pagination") or {}).get("total_page") or 1)

        days: list[DailyRates] = []
        for day in payload:
            rates: dict[str, tuple[Optional[Decimal], Optional[Decimal]]] = {}
            for rate in day.get("rates") or []:
                iso3 = (rate.get("currency") or {}).get("iso3")
                if not iso3:
                    continue
                rates[iso3.upper()] = (_to_decimal(rate.get("buy")), _to_decimal(rate.get("sell")))
            days.append(DailyRates(date=parse_date(day["date"]), rates=rates))
        return days, total_pages
    except UpstreamBadResponse:
        raise
    except (AttributeError, KeyError, TypeError, ValueError) as exc:
        raise UpstreamBadResponse(f"Malformed NRB payload: {exc!r}", malformed=True) from exc


class NRBClient:
    """Fetch published daily rates for a date window from the NRB API."""

    def __init__(
        self,
        http_client: RateLimitedClient,
        base_url: str = BASE_URL,
        timeout: float = 30.0,
    ) -> None:
        self._http = http_client
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout

    async def fetch_range(self, start: date, end: date) -> list[DailyRates]:
        """All published days in ``[start, end]``, following pagination if NRB splits the window."""
        days: list[DailyRates] = []
        page = 1
        while True:
            data = await self._get_page(start, end, page)
            page_days, total_pages = parse_payload(data)
            days.extend(page_days)
            if page >= min(total_pages, MAX_PAGES):
                break
            page += 1
        logger.debug("NRB %s..%s: %d days over %d page(s)", start, end, len(days), page)
        return days

    @retry(
        retry=retry_if_exception_type(httpx.ConnectError),
        stop=stop_after_attempt(2),
        wait=wait_exponential(multiplier=1, min=1, max=4),
        reraise=True,
    )
    async def _request(self, params: dict[str, Any]) -> httpx.Response:
        return await self._http.get(f"{self._base_url}/rates", params=params, timeout=self._timeout)

    async def _get_page(self, start: date, end: date, page: int) -> Any:
        params = {"from": start.isoformat(), "to": end.isoformat(), "per_page": PER_PAGE, "page": page}
        try:
            response = await self._request(params)
        except httpx.TimeoutException as exc:
            raise UpstreamTimeout(f"NRB timed out after {self._timeout}s for {start}..{end}") from exc
        except httpx.TransportError as exc:
            raise UpstreamUnavailable(f"NRB unreachable for {start}..{end}: {exc}") from exc

        if not 200 <= response.status_code < 300:
            logger.warning("NRB returned %d for %s..%s", response.status_code, start, end)
            raise UpstreamBadResponse(f"NRB returned HTTP {response.status_code}", status_code=response.status_code)

        try:
            return response.json()
        except ValueError as exc:
            raise UpstreamBadResponse("NRB returned a non-JSON body", malformed=True) from exc
