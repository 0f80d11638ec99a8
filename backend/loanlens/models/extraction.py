from typing import Optional

from pydantic import BaseModel

# Used when the document carries no borrower email
DEFAULT_BORROWER_EMAIL = "infobookish@gmail.com"

DEFAULT_CREDIT_SCORE = 720
MIN_CREDIT_SCORE = 300
MAX_CREDIT_SCORE = 850


class BorrowerInfo(BaseModel):
    first_name: str = ""
    last_name: str = ""
    email: str = DEFAULT_BORROWER_EMAIL


class ExtractedFacts(BaseModel):
    """Normalized fields pulled from a mortgage document.

    Monetary amounts are monthly unless noted; interest_rate is a percent
    (6.5 means 6.5%) and loan_term is in years.
    """
    borrower_info: BorrowerInfo = BorrowerInfo()
    property_address: Optional[str] = None
    zip_code: Optional[str] = None
    loan_amount: float = 0.0
    interest_rate: float = 0.0
    loan_term: float = 30.0
    monthly_debt_payments: float = 0.0
    monthly_income: float = 0.0
    principal_and_interest: float = 0.0
    property_tax: float = 0.0
    insurance: float = 0.0
    credit_score: int = DEFAULT_CREDIT_SCORE
