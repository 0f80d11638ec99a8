from typing import Optional

from fastapi import APIRouter, Depends, HTTPException

from loanlens.api.deps import get_valuation_client
from loanlens.errors import ValuationError
from loanlens.models.valuation import ValuationResult
from loanlens.services.valuation_client import PropertyValuationClient

router = APIRouter(tags=["valuation"])


@router.get("/property-valuation", response_model=ValuationResult)
def get_property_valuation(
    address: Optional[str] = None,
    client: PropertyValuationClient = Depends(get_valuation_client),
):
    """Value estimate and sale history for an address."""
    if not address:
        raise HTTPException(status_code=400, detail="address required")
    try:
        value = client.get_value(address)
        history = client.get_history(address)
    except ValuationError as e:
        raise HTTPException(status_code=502, detail=str(e))
    return value.model_copy(update={"price_history": history})
