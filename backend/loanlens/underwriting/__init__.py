"""Underwriting math: ratios, eligibility tiers, recommendations, trends."""
from loanlens.underwriting.metrics import calculate_loan_metrics, calculate_monthly_payment
from loanlens.underwriting.eligibility import assess_eligibility
from loanlens.underwriting.recommendations import generate_recommendations
from loanlens.underwriting.history import generate_synthetic_history

__all__ = [
    "calculate_loan_metrics",
    "calculate_monthly_payment",
    "assess_eligibility",
    "generate_recommendations",
    "generate_synthetic_history",
]
