from fastapi import APIRouter, Depends, HTTPException, Query

from loanlens.api.deps import get_record_store
from loanlens.db.store import ANALYSIS_HISTORY_KEY, LATEST_ANALYSIS_KEY, RecordStore
from loanlens.errors import StoreError

router = APIRouter(tags=["analysis"])


@router.get("/analysis/latest")
def get_latest_analysis(store: RecordStore = Depends(get_record_store)):
    """Most recently completed analysis, for hydrating the dashboard."""
    try:
        analysis = store.get_latest(LATEST_ANALYSIS_KEY)
    except StoreError:
        raise HTTPException(status_code=500, detail="Failed to load latest analysis")
    if analysis is None:
        raise HTTPException(status_code=404, detail="No analysis found")
    return {"success": True, "analysis": analysis}


@router.get("/analysis/history")
def get_analysis_history(
    limit: int = Query(20, ge=1, le=200),
    store: RecordStore = Depends(get_record_store),
):
    try:
        items = store.list_history(ANALYSIS_HISTORY_KEY, 0, limit - 1)
    except StoreError:
        raise HTTPException(status_code=500, detail="Failed to load analysis history")
    return {"success": True, "analyses": items}
