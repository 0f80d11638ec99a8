"""Synthetic price history for when the valuation provider has none.

A deterministic wave around the baseline, not a market model: it keeps the
trend chart populated and is flagged as synthetic on the valuation block.
"""
from __future__ import annotations

from datetime import date

import numpy as np

from loanlens.models.valuation import PricePoint

HISTORY_MONTHS = 12
MIN_BASELINE = 100_000.0
DEFAULT_BASELINE = 300_000.0


def month_label(day: date) -> str:
    """Short month and year, e.g. 'Oct 2026'."""
    return day.strftime("%b %Y")


def _months_before(today: date, months_back: int) -> date:
    year, month_index = divmod(today.year * 12 + today.month - 1 - months_back, 12)
    return date(year, month_index + 1, 1)


def generate_synthetic_history(
    baseline: float | None, today: date | None = None
) -> list[PricePoint]:
    """Twelve monthly points, oldest first, ending at the current month."""
    today = today or date.today()
    base = max(MIN_BASELINE, baseline or DEFAULT_BASELINE)

    offsets = np.arange(HISTORY_MONTHS - 1, -1, -1)
    drift = 1.0 + (np.sin(offsets / 2.0) * 0.02 + offsets * 0.001)
    values = np.floor(base * drift + 0.5)

    return [
        PricePoint(month=month_label(_months_before(today, int(i))), value=float(v))
        for i, v in zip(offsets, values)
    ]
