# backend/utils/google_client.py
import httpx
import logging
from typing import List, Optional
from config import settings

logger = logging.getLogger(__name__)


class GoogleTokenError(Exception):
    pass


class GoogleClient:
    def __init__(self, tokeninfo_url: Optional[str] = None, client_ids: Optional[List[str]] = None):
        self.tokeninfo_url = tokeninfo_url or settings.GOOGLE_TOKENINFO_URL
        self._client_ids = client_ids

    @property
    def client_ids(self) -> List[str]:
        # Read lazily so settings changes (tests, reloads) are picked up
        return self._client_ids if self._client_ids is not None else settings.google_client_ids

    @property
    def configured(self) -> bool:
        return bool(self.client_ids)

    async def verify_id_token(self, id_token: str) -> dict:
        # Ask Google to validate the signature and expiry, then check the audience ourselves
        async with httpx.AsyncClient(timeout=10.0) as client:
            try:
                response = await client.get(self.tokeninfo_url, params={"id_token": id_token})
            except httpx.RequestError as e:
                logger.error("Google tokeninfo request failed: %s", e)
                raise GoogleTokenError("could not reach Google") from e

        if response.status_code != 200:
            logger.warning("Google tokeninfo rejected token: %s", response.text)
            raise GoogleTokenError("token rejected by Google")

        payload = response.json()
        if payload.get("aud") not in self.client_ids:
            raise GoogleTokenError("token audience mismatch")
        if not payload.get("sub"):
            raise GoogleTokenError("token has no subject")
        return payload


google_client = GoogleClient()
