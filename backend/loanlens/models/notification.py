from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel


class NotificationType(str, Enum):
    approval = "approval"
    conditional = "conditional"
    denial = "denial"
    follow_up = "follow-up"


class DeliveryStatus(str, Enum):
    sent = "sent"
    delivered = "delivered"
    opened = "opened"
    failed = "failed"


class EmailContent(BaseModel):
    subject: str
    html_body: str


class EmailNotification(BaseModel):
    """History entry for one notification send attempt."""
    id: str
    type: NotificationType
    recipient_email: str
    sent_at: datetime
    status: DeliveryStatus
    message_id: Optional[str] = None
    template: str
    content: EmailContent


class SendResult(BaseModel):
    success: bool
    message_id: Optional[str] = None
    error: Optional[str] = None


class LoanApprovalDetails(BaseModel):
    loan_id: str = "N/A"
    loan_amount: float
    interest_rate: float
    loan_term: Optional[float] = None
    monthly_payment: float
    property_address: Optional[str] = None
    ltv: Optional[float] = None
    dti: Optional[float] = None
    credit_score: Optional[int] = None
