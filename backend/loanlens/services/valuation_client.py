"""RentCast property valuation client.

Looks up an automated value estimate and the sale history for an address.
Results are cached per address on a ValuationCache owned by the client, so
repeated addresses within a process reuse the first answer. The cache never
evicts; treat entries as point-in-time snapshots.
"""
from __future__ import annotations

import logging
from typing import Any, Optional, Protocol

import httpx
import pandas as pd

from loanlens.config import settings
from loanlens.errors import ValuationError
from loanlens.models.valuation import PricePoint, ValuationResult
from loanlens.underwriting.history import HISTORY_MONTHS

logger = logging.getLogger(__name__)


class ValuationLookup(Protocol):
    def get_value(self, address: str) -> ValuationResult: ...

    def get_history(self, address: str) -> list[PricePoint]: ...


class ValuationCache:
    """Address-keyed value and history snapshots."""

    def __init__(self) -> None:
        self.values: dict[str, ValuationResult] = {}
        self.histories: dict[str, list[PricePoint]] = {}

    def __len__(self) -> int:
        return len(self.values.keys() | self.histories.keys())

    def clear(self) -> None:
        self.values.clear()
        self.histories.clear()


def _first_present(*values: Any) -> Any:
    for value in values:
        if value is not None:
            return value
    return None


def parse_valuation(data: Any) -> ValuationResult:
    """Map a RentCast /avm/value payload onto ValuationResult."""
    if not isinstance(data, dict):
        raise ValuationError(f"Unexpected RentCast valuation payload: {type(data).__name__}")
    price_range = data.get("range") if isinstance(data.get("range"), dict) else {}
    comps = data.get("comps")
    return ValuationResult(
        estimated_value=_first_present(data.get("price"), data.get("estimatedValue"), 0),
        confidence=data.get("confidence"),
        low_estimate=_first_present(
            data.get("priceRangeLow"), price_range.get("low"), data.get("lowEstimate")
        ),
        high_estimate=_first_present(
            data.get("priceRangeHigh"), price_range.get("high"), data.get("highEstimate")
        ),
        comparables=[c for c in comps if isinstance(c, dict)] if isinstance(comps, list) else [],
    )


def parse_sale_history(payload: Any) -> list[PricePoint]:
    """Turn a RentCast /properties payload into at most 12 chronological points.

    The first matching property carries a ``history`` mapping of
    ``{date: {event, date, price}}``. Events without a positive price or a
    parseable date are dropped.
    """
    first = payload[0] if isinstance(payload, list) and payload else None
    history = first.get("history") if isinstance(first, dict) else None
    if not isinstance(history, dict) or not history:
        return []

    rows = []
    for key, event in history.items():
        event = event if isinstance(event, dict) else {}
        rows.append({"date": event.get("date") or key, "price": event.get("price")})
    df = pd.DataFrame(rows)
    df["date"] = pd.to_datetime(df["date"], errors="coerce", utc=True, format="mixed")
    df["price"] = pd.to_numeric(df["price"], errors="coerce")
    df = df[df["date"].notna() & df["price"].notna() & (df["price"] > 0)]
    df = df.sort_values("date").tail(HISTORY_MONTHS)

    return [
        PricePoint(month=row.date.strftime("%b %Y"), value=float(row.price))
        for row in df.itertuples(index=False)
    ]


class PropertyValuationClient:
    """Minimal RentCast client for value estimates and sale history."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        cache: Optional[ValuationCache] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self._api_key = settings.RENTCAST_API_KEY if api_key is None else api_key
        self.cache = cache if cache is not None else ValuationCache()
        self._client = httpx.Client(
            base_url=base_url or settings.RENTCAST_BASE_URL,
            headers={"X-Api-Key": self._api_key, "Accept": "application/json"},
            timeout=timeout or settings.HTTP_TIMEOUT_SECONDS,
            transport=transport,
        )

    def close(self) -> None:
        self._client.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()

    def get_value(self, address: str) -> ValuationResult:
        if address in self.cache.values:
            return self.cache.values[address]
        self._require_key()

        resp = self._get("/avm/value", address)
        if resp.is_error:
            raise ValuationError(f"RentCast error: {resp.status_code} {resp.text}")
        try:
            result = parse_valuation(resp.json())
        except (ValueError, TypeError) as e:
            raise ValuationError(f"Unreadable RentCast valuation: {e}") from e

        logger.info("RentCast value for %r: %s", address, result.estimated_value)
        self.cache.values[address] = result
        return result

    def get_history(self, address: str) -> list[PricePoint]:
        if address in self.cache.histories:
            return self.cache.histories[address]
        self._require_key()

        resp = self._get("/properties", address)
        if resp.is_error:
            logger.warning("RentCast history lookup returned %d", resp.status_code)
            return []
        try:
            points = parse_sale_history(resp.json())
        except (ValueError, TypeError, KeyError) as e:
            raise ValuationError(f"Unreadable RentCast history: {e}") from e

        self.cache.histories[address] = points
        return points

    def _require_key(self) -> None:
        if not self._api_key:
            raise ValuationError("RENTCAST_API_KEY is not set")

    def _get(self, path: str, address: str) -> httpx.Response:
        try:
            return self._client.get(path, params={"address": address})
        except httpx.HTTPError as e:
            raise ValuationError(f"RentCast request failed: {e}") from e
