from fastapi import APIRouter, Depends

from app.services.shares.currency_service import ExchangeRateService

router = APIRouter(prefix="/exchange-rates", tags=["Exchange Rates"])


@router.get("")
async def get_exchange_rates(
    exchange_service: ExchangeRateService = Depends(ExchangeRateService),
):
    return await exchange_service.get_rates_async()
