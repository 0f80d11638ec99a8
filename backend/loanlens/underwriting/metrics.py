"""Metrics calculator: loan facts plus an optional valuation to ratios.

Every input has a fallback so the calculation never raises on a partially
extracted document:

- property value: external estimate, else the loan amount (LTV 100%)
- monthly income: extracted value, else 8000
- monthly debts: extracted value, else $30 per $1000 borrowed
- P&I / tax / insurance: extracted values, else computed payment,
  0.1% of value per year, and a flat 100
"""
from __future__ import annotations

import math
import sys
from typing import Optional

from loanlens.models.analysis import LoanMetrics
from loanlens.models.extraction import ExtractedFacts

DEFAULT_MONTHLY_INCOME = 8000.0
DEFAULT_LOAN_TERM_YEARS = 30
DEFAULT_MONTHLY_INSURANCE = 100.0
_DEBT_PER_THOUSAND_BORROWED = 30.0

_EPSILON = sys.float_info.epsilon


def round_half_up(value: float, ndigits: int = 0) -> float:
    """Round with halves going up (2.5 -> 3), unlike the builtin round()."""
    factor = 10 ** ndigits
    return math.floor(value * factor + 0.5) / factor


def round_percent(value: float) -> float:
    """Two-decimal percentage, nudged by machine epsilon before rounding."""
    return round_half_up(value + _EPSILON, 2)


def round_money(value: float) -> int:
    return int(round_half_up(value))


def calculate_monthly_payment(
    principal: float, annual_rate_percent: float, term_years: float
) -> int:
    """Fixed-rate amortizing payment, rounded to whole units.

    PMT = P * r(1+r)^n / ((1+r)^n - 1), with r = rate / 100 / 12 and
    n = term * 12. A zero rate falls back to straight-line P / n.
    """
    years = term_years if term_years and term_years > 0 else DEFAULT_LOAN_TERM_YEARS
    n_payments = years * 12
    monthly_rate = (annual_rate_percent or 0.0) / 100.0 / 12.0
    if monthly_rate == 0:
        return round_money(principal / n_payments)
    growth = (1.0 + monthly_rate) ** n_payments
    return round_money(principal * (monthly_rate * growth) / (growth - 1.0))


def resolve_property_value(loan_amount: float, estimated_value: Optional[float]) -> float:
    """Value used for LTV: the estimate, else the loan amount (never below 1)."""
    if estimated_value is not None and estimated_value > 0:
        return estimated_value
    return max(1.0, loan_amount)


def calculate_loan_metrics(
    facts: ExtractedFacts, estimated_value: Optional[float] = None
) -> LoanMetrics:
    property_value = resolve_property_value(facts.loan_amount, estimated_value)
    ltv = facts.loan_amount / property_value * 100.0

    monthly_income = max(1.0, facts.monthly_income or DEFAULT_MONTHLY_INCOME)
    monthly_debts = facts.monthly_debt_payments or round_money(
        facts.loan_amount / 1000.0 * _DEBT_PER_THOUSAND_BORROWED
    )
    dti = monthly_debts / monthly_income * 100.0

    monthly_payment = calculate_monthly_payment(
        facts.loan_amount, facts.interest_rate, facts.loan_term
    )
    principal_and_interest = facts.principal_and_interest or monthly_payment
    property_tax = facts.property_tax or round_money(property_value / 12.0 * 0.001)
    insurance = facts.insurance or DEFAULT_MONTHLY_INSURANCE
    piti = principal_and_interest + property_tax + insurance
    housing_ratio = piti / monthly_income * 100.0

    return LoanMetrics(
        ltv=round_percent(ltv),
        dti=round_percent(dti),
        housing_ratio=round_percent(housing_ratio),
        piti=round_money(piti),
        monthly_payment=monthly_payment,
    )
