"""HTML email bodies for borrower notifications."""
from __future__ import annotations

import html
from datetime import datetime, timezone

from loanlens.config import settings
from loanlens.models.notification import EmailContent, LoanApprovalDetails

APPROVAL_TEMPLATE = "loan_approval"
CONDITIONAL_TEMPLATE = "conditional_approval"

APPROVAL_SUBJECT = "Great News! Your Loan Application Has Been Approved"
CONDITIONAL_SUBJECT = "Your Loan Application Status Update - Action Required"

_STYLE = """
    body { font-family: 'Segoe UI', Tahoma, Geneva, Verdana, sans-serif; line-height: 1.6; color: #333; }
    .container { max-width: 600px; margin: 0 auto; padding: 20px; }
    .header { color: white; padding: 30px; text-align: center; border-radius: 10px 10px 0 0; background: %s; }
    .content { background: white; padding: 30px; border: 1px solid #ddd; }
    .footer { background: #f8f9fa; padding: 20px; text-align: center; font-size: 12px; color: #666; }
    .panel { background: #f8f9fa; padding: 20px; border-radius: 8px; margin: 20px 0; }
    .row { display: flex; justify-content: space-between; margin: 10px 0; }
    .btn { padding: 12px 24px; text-decoration: none; border-radius: 6px; display: inline-block; margin: 20px 0; }
"""


def _page(title: str, header_color: str, body: str) -> str:
    year = datetime.now(timezone.utc).year
    return (
        "<!DOCTYPE html>\n<html>\n<head>\n<meta charset=\"utf-8\">\n"
        f"<title>{html.escape(title)}</title>\n<style>{_STYLE % header_color}</style>\n"
        "</head>\n<body>\n<div class=\"container\">\n"
        f"{body}\n"
        f"<div class=\"footer\">&copy; {year} LoanLens AI. All rights reserved.</div>\n"
        "</div>\n</body>\n</html>"
    )


def _link(path: str) -> str:
    return f"{settings.APP_URL.rstrip('/')}{path}" if settings.APP_URL else "#"


def _row(label: str, value: str) -> str:
    return (
        f"<div class=\"row\"><span><strong>{label}:</strong></span>"
        f"<span>{html.escape(value)}</span></div>"
    )


def render_approval(borrower_name: str, details: LoanApprovalDetails) -> EmailContent:
    rows = [
        _row("Loan Amount", f"{details.loan_amount:,.0f}"),
        _row("Interest Rate", f"{details.interest_rate:g}%"),
    ]
    if details.loan_term:
        rows.append(_row("Loan Term", f"{details.loan_term:g} years"))
    rows.append(_row("Monthly Payment", f"{details.monthly_payment:,.0f}"))
    if details.property_address:
        rows.append(_row("Property Address", details.property_address))

    body = (
        "<div class=\"header\">"
        f"<h1>Congratulations {html.escape(borrower_name)}!</h1>"
        "<h2>Your Loan Application Has Been Approved</h2></div>\n"
        "<div class=\"content\">"
        "<p><strong>Great news!</strong> Your mortgage application has been approved "
        "and you're one step closer to owning your new home.</p>"
        f"<div class=\"panel\"><h3>Loan Details</h3>{''.join(rows)}</div>"
        f"<a class=\"btn\" href=\"{_link('/dashboard/loan/' + details.loan_id)}\">"
        "View Full Loan Details</a></div>"
    )
    return EmailContent(
        subject=APPROVAL_SUBJECT,
        html_body=_page("Loan Approval Notification", "#667eea", body),
    )


def render_conditional(borrower_name: str, conditions: list[str]) -> EmailContent:
    items = "".join(
        f"<div class=\"row\"><strong>{i}.</strong> {html.escape(condition)}</div>"
        for i, condition in enumerate(conditions, start=1)
    )
    body = (
        "<div class=\"header\"><h1>Conditional Approval</h1>"
        "<h2>Action Required on Your Loan Application</h2></div>\n"
        "<div class=\"content\">"
        f"<p>Hello {html.escape(borrower_name)}, your loan application has been "
        "conditionally approved. Please review the conditions below to complete "
        "your approval.</p>"
        f"<div class=\"panel\"><h3>Required Actions</h3>{items}</div>"
        f"<a class=\"btn\" href=\"{_link('/dashboard/conditions')}\">"
        "Upload Required Documents</a></div>"
    )
    return EmailContent(
        subject=CONDITIONAL_SUBJECT,
        html_body=_page("Conditional Loan Approval", "#ffc107", body),
    )
