"""Borrower email notifications.

EmailDispatchClient posts a rendered email to the mail dispatch webhook.
NotificationService renders the approval / conditional templates, sends them
and appends every attempt to the notification history log.
"""
from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Optional, Protocol

import httpx
from pydantic import ValidationError

from loanlens.config import settings
from loanlens.db.store import EMAIL_HISTORY_KEY, RecordStore
from loanlens.errors import StoreError
from loanlens.models.notification import (
    DeliveryStatus,
    EmailContent,
    EmailNotification,
    LoanApprovalDetails,
    NotificationType,
    SendResult,
)
from loanlens.services import email_templates

logger = logging.getLogger(__name__)

HISTORY_PAGE_SIZE = 50


class EmailDispatcher(Protocol):
    def send(self, template: str, recipient: str, content: EmailContent) -> SendResult: ...


class NotificationSender(Protocol):
    def send_approval(
        self, recipient: str, borrower_name: str, details: LoanApprovalDetails
    ) -> SendResult: ...

    def send_conditional(
        self, recipient: str, borrower_name: str, conditions: list[str]
    ) -> SendResult: ...


class EmailDispatchClient:
    """HTTP client for the email dispatch webhook."""

    def __init__(
        self,
        url: Optional[str] = None,
        token: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self._url = settings.EMAIL_DISPATCH_URL if url is None else url
        token = settings.EMAIL_DISPATCH_TOKEN if token is None else token
        headers = {"Accept": "application/json"}
        if token:
            headers["Authorization"] = f"Bearer {token}"
        self._client = httpx.Client(
            headers=headers,
            timeout=timeout or settings.HTTP_TIMEOUT_SECONDS,
            transport=transport,
        )

    def close(self) -> None:
        self._client.close()

    def send(self, template: str, recipient: str, content: EmailContent) -> SendResult:
        if not self._url:
            return SendResult(success=False, error="EMAIL_DISPATCH_URL is not set")
        try:
            resp = self._client.post(self._url, json={
                "to": recipient,
                "subject": content.subject,
                "html": content.html_body,
                "template": template,
            })
            resp.raise_for_status()
            data: Any = resp.json() if resp.content else {}
        except (httpx.HTTPError, ValueError) as e:
            logger.warning("Email dispatch for %s failed: %s", template, e)
            return SendResult(success=False, error=str(e) or f"Failed to send {template} email")

        if not isinstance(data, dict):
            data = {}
        if data.get("successful") is False:
            return SendResult(
                success=False, error=data.get("error") or f"Failed to send {template} email"
            )
        message_id = data.get("id") or data.get("messageId")
        return SendResult(success=True, message_id=str(message_id) if message_id else None)


class NotificationService:
    def __init__(self, dispatcher: EmailDispatcher, store: RecordStore):
        self._dispatcher = dispatcher
        self._store = store

    def send_approval(
        self, recipient: str, borrower_name: str, details: LoanApprovalDetails
    ) -> SendResult:
        content = email_templates.render_approval(borrower_name, details)
        return self._deliver(
            NotificationType.approval, email_templates.APPROVAL_TEMPLATE, recipient, content
        )

    def send_conditional(
        self, recipient: str, borrower_name: str, conditions: list[str]
    ) -> SendResult:
        content = email_templates.render_conditional(borrower_name, conditions)
        return self._deliver(
            NotificationType.conditional, email_templates.CONDITIONAL_TEMPLATE, recipient, content
        )

    def history(self, limit: int = HISTORY_PAGE_SIZE) -> list[EmailNotification]:
        """Most recent notifications first."""
        items = []
        for raw in self._store.list_history(EMAIL_HISTORY_KEY, 0, limit - 1):
            try:
                items.append(EmailNotification.model_validate(raw))
            except ValidationError as e:
                logger.warning("Skipping malformed notification record: %s", e)
        return items

    def _deliver(
        self,
        kind: NotificationType,
        template: str,
        recipient: str,
        content: EmailContent,
    ) -> SendResult:
        result = self._dispatcher.send(template, recipient, content)
        notification = EmailNotification(
            id=str(uuid.uuid4()),
            type=kind,
            recipient_email=recipient,
            sent_at=datetime.now(timezone.utc),
            status=DeliveryStatus.sent if result.success else DeliveryStatus.failed,
            message_id=result.message_id,
            template=template,
            content=content,
        )
        try:
            self._store.append_history(EMAIL_HISTORY_KEY, notification.model_dump(mode="json"))
        except StoreError as e:
            logger.warning("Could not record %s notification: %s", kind.value, e)
        logger.info("Sent %s email to %s: success=%s", kind.value, recipient, result.success)
        return result
