from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel


class PricePoint(BaseModel):
    """One month of a property price trend, e.g. month="Oct 2026"."""
    month: str
    value: float


class HistorySource(str, Enum):
    market = "market"        # Sale history from the valuation provider
    synthetic = "synthetic"  # Generated placeholder trend


class ValuationResult(BaseModel):
    """Automated valuation returned by the valuation provider."""
    estimated_value: float
    confidence: Optional[float] = None
    low_estimate: Optional[float] = None
    high_estimate: Optional[float] = None
    price_history: list[PricePoint] = []
    comparables: list[dict[str, Any]] = []  # RentCast "comps"


class ValuationBlock(BaseModel):
    """Valuation as embedded in a DocumentAnalysis."""
    estimated_value: float
    confidence: Optional[float] = None
    low_estimate: Optional[float] = None
    high_estimate: Optional[float] = None
    price_history: list[PricePoint] = []
    comparables: list[dict[str, Any]] = []  # RentCast "comps"
    history_source: HistorySource = HistorySource.market

    model_config = {"frozen": True}
