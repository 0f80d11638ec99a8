from enum import Enum
from typing import Optional

from pydantic import BaseModel

from loanlens.models.extraction import ExtractedFacts
from loanlens.models.valuation import ValuationBlock


class EligibilityStatus(str, Enum):
    approved = "approved"
    conditional = "conditional"
    denied = "denied"


class MortgageCriteria(BaseModel):
    """Lender thresholds used by the classifier and recommendations."""
    max_ltv_percent: float = 80.0
    max_dti_percent: float = 43.0
    min_credit_score: int = 620


class LoanMetrics(BaseModel):
    """Underwriting ratios. Percentages have 2 decimals, money is whole units."""
    ltv: float
    dti: float
    housing_ratio: float
    piti: int
    monthly_payment: int

    model_config = {"frozen": True}


class EligibilityDecision(BaseModel):
    status: EligibilityStatus
    reason: str

    model_config = {"frozen": True}


class DocumentAnalysis(BaseModel):
    """Result of analysing one submitted document. Never mutated."""
    extracted: ExtractedFacts
    valuation: Optional[ValuationBlock] = None
    metrics: LoanMetrics
    eligibility_status: EligibilityStatus
    eligibility_reason: str
    recommendations: list[str] = []

    model_config = {"frozen": True}
