from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from loanlens.api.deps import get_notification_service
from loanlens.errors import StoreError
from loanlens.models.notification import LoanApprovalDetails, SendResult
from loanlens.services.notification_service import NotificationService

router = APIRouter(tags=["notifications"])


class ApprovalEmailRequest(BaseModel):
    borrower_email: str = ""
    borrower_name: str = ""
    loan_details: Optional[LoanApprovalDetails] = None


class ConditionalEmailRequest(BaseModel):
    borrower_email: str = ""
    borrower_name: str = ""
    conditions: Optional[list[str]] = None


def _respond(result: SendResult) -> dict:
    if not result.success:
        raise HTTPException(status_code=502, detail=result.error or "Email failed")
    return {"success": True, "message_id": result.message_id}


@router.post("/notifications/send-approval")
def send_approval(
    request: ApprovalEmailRequest,
    service: NotificationService = Depends(get_notification_service),
):
    if not request.borrower_email or not request.borrower_name or request.loan_details is None:
        raise HTTPException(status_code=400, detail="Missing required fields")
    return _respond(
        service.send_approval(request.borrower_email, request.borrower_name, request.loan_details)
    )


@router.post("/notifications/send-conditional")
def send_conditional(
    request: ConditionalEmailRequest,
    service: NotificationService = Depends(get_notification_service),
):
    if not request.borrower_email or not request.borrower_name or request.conditions is None:
        raise HTTPException(status_code=400, detail="Missing required fields")
    return _respond(
        service.send_conditional(request.borrower_email, request.borrower_name, request.conditions)
    )


@router.get("/notifications/history")
def notification_history(service: NotificationService = Depends(get_notification_service)):
    """Last 50 notification attempts, most recent first."""
    try:
        return {"success": True, "notifications": service.history()}
    except StoreError:
        return {"success": False, "notifications": []}
