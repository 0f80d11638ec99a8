from fastapi import APIRouter, Depends

from loanlens.api.deps import get_record_store, get_valuation_client
from loanlens.db.connection import db_pool
from loanlens.db.store import RecordStore
from loanlens.services.valuation_client import PropertyValuationClient

router = APIRouter(tags=["health"])


@router.get("/health")
def health_check(
    store: RecordStore = Depends(get_record_store),
    valuation: PropertyValuationClient = Depends(get_valuation_client),
):
    return {
        "status": "ok",
        "database": db_pool.test_connection(),
        "store": store.backend,
        "valuation_cache_entries": len(valuation.cache),
    }
