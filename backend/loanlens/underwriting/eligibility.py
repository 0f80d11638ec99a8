"""Eligibility classifier: metrics + credit score to a three-tier decision.

Approval needs every metric inside its threshold. Conditional needs only ONE
metric inside its widened band (LTV/DTI +5 points, credit -20), so an
applicant far off on two dimensions is still conditional when the third is
close. Denial is everything else.
"""
from __future__ import annotations

from typing import Optional

from loanlens.models.analysis import (
    EligibilityDecision,
    EligibilityStatus,
    LoanMetrics,
    MortgageCriteria,
)

RATIO_MARGIN_PERCENT = 5.0
CREDIT_MARGIN_POINTS = 20

APPROVED_REASON = "All metrics within lender thresholds."
CONDITIONAL_REASON = "Close to thresholds; additional documentation required."
DENIED_REASON = "Key metrics outside lender thresholds."


def assess_eligibility(
    metrics: LoanMetrics,
    credit_score: Optional[int],
    criteria: MortgageCriteria | None = None,
) -> EligibilityDecision:
    """Classify an application. A missing credit score counts as 0."""
    criteria = criteria or MortgageCriteria()
    credit = credit_score if credit_score is not None else 0

    if (
        metrics.ltv <= criteria.max_ltv_percent
        and metrics.dti <= criteria.max_dti_percent
        and credit >= criteria.min_credit_score
    ):
        return EligibilityDecision(status=EligibilityStatus.approved, reason=APPROVED_REASON)

    if (
        metrics.ltv <= criteria.max_ltv_percent + RATIO_MARGIN_PERCENT
        or metrics.dti <= criteria.max_dti_percent + RATIO_MARGIN_PERCENT
        or credit >= criteria.min_credit_score - CREDIT_MARGIN_POINTS
    ):
        return EligibilityDecision(status=EligibilityStatus.conditional, reason=CONDITIONAL_REASON)

    return EligibilityDecision(status=EligibilityStatus.denied, reason=DENIED_REASON)
