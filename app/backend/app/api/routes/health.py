"""Health check endpoints."""

from fastapi import APIRouter, Depends

from app.api.dependencies import get_billability_index
from app.reporting.billability import BillabilityIndex

router = APIRouter()


@router.get("/health")
def health(index: BillabilityIndex = Depends(get_billability_index)) -> dict[str, object]:
    """Liveness plus whether billability flags have been loaded yet."""

    return {"status": "ok", "billabilityLoaded": index.is_loaded}
