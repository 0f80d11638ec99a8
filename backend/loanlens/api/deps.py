"""FastAPI dependencies: process-wide collaborators and the analyzer."""
from functools import lru_cache

from fastapi import Depends

from loanlens.config import settings
from loanlens.db.store import RecordStore, create_record_store
from loanlens.models.analysis import MortgageCriteria
from loanlens.services.analysis_service import DocumentAnalyzer
from loanlens.services.extraction import OpenAIDocumentExtractor
from loanlens.services.notification_service import EmailDispatchClient, NotificationService
from loanlens.services.valuation_client import PropertyValuationClient


@lru_cache
def get_record_store() -> RecordStore:
    return create_record_store()


@lru_cache
def get_valuation_client() -> PropertyValuationClient:
    """One client, and so one address cache, per process."""
    return PropertyValuationClient()


@lru_cache
def get_extractor() -> OpenAIDocumentExtractor:
    return OpenAIDocumentExtractor()


@lru_cache
def get_email_dispatcher() -> EmailDispatchClient:
    return EmailDispatchClient()


def get_criteria() -> MortgageCriteria:
    return MortgageCriteria(
        max_ltv_percent=settings.MAX_LTV_PERCENT,
        max_dti_percent=settings.MAX_DTI_PERCENT,
        min_credit_score=settings.MIN_CREDIT_SCORE,
    )


def get_notification_service(
    store: RecordStore = Depends(get_record_store),
    dispatcher: EmailDispatchClient = Depends(get_email_dispatcher),
) -> NotificationService:
    return NotificationService(dispatcher, store)


def get_analyzer(
    extractor: OpenAIDocumentExtractor = Depends(get_extractor),
    valuation: PropertyValuationClient = Depends(get_valuation_client),
    store: RecordStore = Depends(get_record_store),
    notifier: NotificationService = Depends(get_notification_service),
    criteria: MortgageCriteria = Depends(get_criteria),
) -> DocumentAnalyzer:
    return DocumentAnalyzer(extractor, valuation, store=store, notifier=notifier, criteria=criteria)
