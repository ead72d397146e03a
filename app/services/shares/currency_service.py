import time
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Dict, Optional

import httpx
from fastapi import Depends
from loguru import logger

from app.core.deps import get_http_client
from app.core.settings import settings

BASE_CURRENCY = "EGP"

CURRENCIES: Dict[str, Dict[str, str]] = {
    "EGP": {"name": "Egyptian Pound", "symbol": "EGP"},
    "USD": {"name": "US Dollar", "symbol": "$"},
}

DEFAULT_RATES: Dict[str, float] = {
    "EGP": 1.0,
    "USD": 0.032,
}

# process-wide cache shared by every request
_rates_cache: Dict[str, Any] = {"rates": None, "fetched_at": 0.0}


def reset_rates_cache() -> None:
    _rates_cache["rates"] = None
    _rates_cache["fetched_at"] = 0.0


def convert_price(amount_egp: float | Decimal, rate: float) -> Decimal:
    """Convert an EGP amount with a rate relative to EGP."""
    value = Decimal(str(amount_egp)) * Decimal(str(rate))
    return value.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)


def format_price(
    amount_egp: float | Decimal,
    currency: str = BASE_CURRENCY,
    rates: Optional[Dict[str, float]] = None,
) -> str:
    rates = rates or DEFAULT_RATES
    rate = rates.get(currency) or DEFAULT_RATES.get(currency) or 1.0
    symbol = CURRENCIES.get(currency, {}).get("symbol", currency)
    return f"{convert_price(amount_egp, rate):.2f} {symbol}"


class ExchangeRateService:
    def __init__(self, http: httpx.AsyncClient = Depends(get_http_client)):
        self.http = http

    async def get_rates_async(self) -> Dict[str, Any]:
        cached = _rates_cache["rates"]
        age = time.monotonic() - _rates_cache["fetched_at"]
        if cached and age < settings.EXCHANGE_RATE_CACHE_SECONDS:
            return {"success": True, "rates": cached, "cached": True}

        try:
            res = await self.http.get(settings.EXCHANGE_RATE_URL)
            res.raise_for_status()
            data = res.json()
            usd = data.get("rates", {}).get("USD")
            if not usd:
                raise ValueError("USD rate missing from response")

            rates = {"EGP": 1.0, "USD": float(usd)}
            _rates_cache["rates"] = rates
            _rates_cache["fetched_at"] = time.monotonic()
            logger.info(f"💱 Exchange rates refreshed: {rates}")
            return {"success": True, "rates": rates, "cached": False}

        except (httpx.HTTPError, ValueError) as e:
            logger.warning(f"⚠ Exchange rate fetch failed, using fallback: {e}")
            return {
                "success": False,
                "rates": dict(DEFAULT_RATES),
                "error": "Failed to fetch exchange rates",
                "fallback": True,
            }
