import httpx
from fastapi import Depends
from loguru import logger

from app.core.settings import settings
from app.core.deps import get_http_client


class CaptchaService:
    def __init__(self, http: httpx.AsyncClient = Depends(get_http_client)):
        self.http = http

    async def verify_async(self, token: str | None) -> bool:
        """Verify a reCAPTCHA token with Google."""
        if not token:
            return False
        try:
            res = await self.http.post(
                settings.RECAPTCHA_VERIFY_URL,
                data={"secret": settings.RECAPTCHA_SECRET_KEY, "response": token},
            )
            res.raise_for_status()
            return bool(res.json().get("success"))
        except (httpx.HTTPError, ValueError) as e:
            logger.error(f"❌ reCAPTCHA verification failed: {e}")
            return False
