from __future__ import annotations

from typing import Optional

from loanlens.models.analysis import LoanMetrics, MortgageCriteria

LTV_RECOMMENDATION = "Consider a larger down payment or lower loan amount"
DTI_RECOMMENDATION = "Reduce monthly debts or increase verifiable income"
CREDIT_RECOMMENDATION = "Provide credit history explanations or improve credit score"


def generate_recommendations(
    metrics: LoanMetrics,
    credit_score: Optional[int],
    criteria: MortgageCriteria | None = None,
) -> list[str]:
    """One suggestion per violated threshold, in LTV, DTI, credit order.

    A missing credit score is treated as 850, i.e. never flagged.
    """
    criteria = criteria or MortgageCriteria()
    recs: list[str] = []
    if metrics.ltv > criteria.max_ltv_percent:
        recs.append(LTV_RECOMMENDATION)
    if metrics.dti > criteria.max_dti_percent:
        recs.append(DTI_RECOMMENDATION)
    credit = credit_score if credit_score is not None else 850
    if credit < criteria.min_credit_score:
        recs.append(CREDIT_RECOMMENDATION)
    return recs
