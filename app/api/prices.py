from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
import logging

from app.database import get_db
from app.api.dependencies import get_pricing_client, get_notifier
from app.schemas import PriceCheckResponse
from app.services.price_check import PriceCheckService

logger = logging.getLogger(__name__)

router = APIRouter()


async def _run_price_check(db: Session, pricing_client, notifier) -> PriceCheckResponse:
    service = PriceCheckService(db, pricing_client, notifier=notifier)
    try:
        summary = await service.run()
    except Exception as e:
        logger.exception(f"Error in price check: {e}")
        raise HTTPException(status_code=500, detail=f"Price check failed: {e}")

    return PriceCheckResponse(policy=service.policy.name, **summary.to_dict())


@router.post("/check-prices", response_model=PriceCheckResponse)
async def check_prices(
    db: Session = Depends(get_db),
    pricing_client=Depends(get_pricing_client),
    notifier=Depends(get_notifier),
):
    """Run a price check over all tracked flights now."""
    return await _run_price_check(db, pricing_client, notifier)


@router.get("/cron/check-prices", response_model=PriceCheckResponse)
async def cron_check_prices(
    db: Session = Depends(get_db),
    pricing_client=Depends(get_pricing_client),
    notifier=Depends(get_notifier),
):
    """Same as POST /check-prices, for external cron services that only issue GETs."""
    return await _run_price_check(db, pricing_client, notifier)
