"""Analysis orchestrator.

Runs one document through extraction, valuation, metrics, eligibility and
recommendations, then performs the optional side effects (borrower email,
persistence). Extraction failures propagate. Valuation failures degrade to
"no valuation". Side-effect failures are logged and reported as
BestEffortResult entries but never raised and never change the analysis.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from typing import Any, Callable, Optional

from loanlens.db.store import ANALYSIS_HISTORY_KEY, LATEST_ANALYSIS_KEY, RecordStore
from loanlens.models.analysis import DocumentAnalysis, EligibilityStatus, MortgageCriteria
from loanlens.models.extraction import ExtractedFacts
from loanlens.models.notification import LoanApprovalDetails, SendResult
from loanlens.models.valuation import HistorySource, ValuationBlock, ValuationResult
from loanlens.services.extraction import DocumentRef, Extractor, resolve_credit_score
from loanlens.services.notification_service import NotificationSender
from loanlens.services.valuation_client import ValuationLookup
from loanlens.underwriting.eligibility import assess_eligibility
from loanlens.underwriting.history import HISTORY_MONTHS, generate_synthetic_history
from loanlens.underwriting.metrics import calculate_loan_metrics
from loanlens.underwriting.recommendations import generate_recommendations

logger = logging.getLogger(__name__)

# Fewer market points than this and the trend is synthesized instead
MIN_MARKET_HISTORY_POINTS = 1


@dataclass
class BestEffortResult:
    """Outcome of a side effect that must not fail the analysis."""
    name: str
    succeeded: bool
    error: Optional[str] = None


@dataclass
class AnalysisOutcome:
    analysis: DocumentAnalysis
    side_effects: list[BestEffortResult] = field(default_factory=list)


def best_effort(name: str, action: Callable[[], Any]) -> BestEffortResult:
    try:
        action()
    except Exception as e:
        logger.warning("%s failed: %s", name, e)
        return BestEffortResult(name=name, succeeded=False, error=str(e))
    return BestEffortResult(name=name, succeeded=True)


def build_valuation_block(
    facts: ExtractedFacts,
    valuation: Optional[ValuationResult],
    today: Optional[date] = None,
) -> ValuationBlock:
    """Valuation as shown with the analysis, with a trend always populated.

    Without a usable estimate the loan amount stands in. Market history is
    kept when it has at least MIN_MARKET_HISTORY_POINTS points, otherwise a
    synthetic trend around the estimate replaces it.
    """
    has_estimate = valuation is not None and valuation.estimated_value > 0
    estimated_value = valuation.estimated_value if has_estimate else facts.loan_amount

    history = valuation.price_history if valuation is not None else []
    if len(history) >= MIN_MARKET_HISTORY_POINTS:
        price_history, source = history[-HISTORY_MONTHS:], HistorySource.market
    else:
        logger.warning("No market price history; using synthetic trend")
        price_history = generate_synthetic_history(estimated_value, today=today)
        source = HistorySource.synthetic

    return ValuationBlock(
        estimated_value=estimated_value,
        confidence=valuation.confidence if valuation else None,
        low_estimate=valuation.low_estimate if valuation else None,
        high_estimate=valuation.high_estimate if valuation else None,
        comparables=valuation.comparables if valuation else [],
        price_history=price_history,
        history_source=source,
    )


class DocumentAnalyzer:
    def __init__(
        self,
        extractor: Extractor,
        valuation: ValuationLookup,
        store: Optional[RecordStore] = None,
        notifier: Optional[NotificationSender] = None,
        criteria: Optional[MortgageCriteria] = None,
    ):
        self._extractor = extractor
        self._valuation = valuation
        self._store = store
        self._notifier = notifier
        self._criteria = criteria or MortgageCriteria()

    def analyze(
        self,
        document: DocumentRef,
        address_override: Optional[str] = None,
        notify: bool = False,
    ) -> DocumentAnalysis:
        return self.run(document, address_override=address_override, notify=notify).analysis

    def run(
        self,
        document: DocumentRef,
        address_override: Optional[str] = None,
        notify: bool = False,
    ) -> AnalysisOutcome:
        facts = self._extractor.extract(document)

        address = address_override or facts.property_address
        valuation = self._lookup_valuation(address) if address else None

        metrics = calculate_loan_metrics(
            facts, valuation.estimated_value if valuation else None
        )
        credit_score = resolve_credit_score(facts.credit_score)
        decision = assess_eligibility(metrics, credit_score, self._criteria)
        recommendations = generate_recommendations(metrics, credit_score, self._criteria)

        analysis = DocumentAnalysis(
            extracted=facts,
            valuation=build_valuation_block(facts, valuation),
            metrics=metrics,
            eligibility_status=decision.status,
            eligibility_reason=decision.reason,
            recommendations=recommendations,
        )
        logger.info(
            "Analysis complete: status=%s ltv=%.2f dti=%.2f",
            decision.status.value, metrics.ltv, metrics.dti,
        )

        outcome = AnalysisOutcome(analysis=analysis)
        if notify:
            result = self._notify(analysis)
            if result is not None:
                outcome.side_effects.append(result)
        outcome.side_effects.extend(self._persist(analysis))
        return outcome

    def _lookup_valuation(self, address: str) -> Optional[ValuationResult]:
        try:
            value = self._valuation.get_value(address)
            history = self._valuation.get_history(address)
        except Exception as e:
            logger.warning("Valuation unavailable for %r: %s", address, e)
            return None
        return value.model_copy(update={"price_history": history})

    def _notify(self, analysis: DocumentAnalysis) -> Optional[BestEffortResult]:
        """Email the borrower about an approval or conditional approval.

        Skipped (None) without a notifier, without both email and first name,
        or for denied applications.
        """
        borrower = analysis.extracted.borrower_info
        if self._notifier is None or not borrower.email or not borrower.first_name:
            return None

        facts, metrics = analysis.extracted, analysis.metrics
        if analysis.eligibility_status == EligibilityStatus.approved:
            name = "approval email"
            details = LoanApprovalDetails(
                loan_amount=facts.loan_amount,
                interest_rate=facts.interest_rate,
                loan_term=facts.loan_term or 30,
                monthly_payment=metrics.monthly_payment,
                property_address=facts.property_address,
                ltv=metrics.ltv,
                dti=metrics.dti,
                credit_score=facts.credit_score,
            )

            def send() -> SendResult:
                return self._notifier.send_approval(borrower.email, borrower.first_name, details)
        elif analysis.eligibility_status == EligibilityStatus.conditional:
            name = "conditional email"

            def send() -> SendResult:
                return self._notifier.send_conditional(
                    borrower.email, borrower.first_name, list(analysis.recommendations)
                )
        else:
            return None

        def deliver() -> None:
            result = send()
            if not result.success:
                raise RuntimeError(result.error or "send failed")

        return best_effort(name, deliver)

    def _persist(self, analysis: DocumentAnalysis) -> list[BestEffortResult]:
        if self._store is None:
            return []
        record = analysis.model_dump(mode="json")
        entry = {**record, "created_at": datetime.now(timezone.utc).isoformat()}
        return [
            best_effort("save latest analysis",
                        lambda: self._store.set_latest(LATEST_ANALYSIS_KEY, record)),
            best_effort("append analysis history",
                        lambda: self._store.append_history(ANALYSIS_HISTORY_KEY, entry)),
        ]
