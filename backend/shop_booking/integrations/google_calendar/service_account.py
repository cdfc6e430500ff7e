"""Google service-account credentials for the Calendar API"""

import asyncio
import logging
from typing import Optional, Protocol

from google.auth.transport.requests import Request
from google.oauth2 import service_account

logger = logging.getLogger(__name__)

CALENDAR_SCOPES = ["https://www.googleapis.com/auth/calendar"]
GOOGLE_TOKEN_URI = "https://oauth2.googleapis.com/token"


class TokenProvider(Protocol):
    async def get_token(self) -> str:
        ...


class ServiceAccountTokenProvider:
    """Mint and cache access tokens from a client email / private key pair"""

    def __init__(self, client_email: str, private_key: str, scopes: Optional[list] = None):
        if not client_email or not private_key:
            raise ValueError("Service account requires GCAL_CLIENT_EMAIL and GCAL_PRIVATE_KEY")
        self.credentials = service_account.Credentials.from_service_account_info(
            {
                "client_email": client_email,
                "private_key": private_key,
                "token_uri": GOOGLE_TOKEN_URI,
            },
            scopes=scopes or CALENDAR_SCOPES,
        )
        self._lock = asyncio.Lock()

    async def get_token(self) -> str:
        async with self._lock:
            if not self.credentials.valid:
                logger.info("🔄 Refreshing Google service account token...")
                # google-auth refreshes synchronously over requests
                await asyncio.to_thread(self.credentials.refresh, Request())
            return self.credentials.token


class StaticTokenProvider:
    """Fixed bearer token (tests, or a token minted elsewhere)"""

    def __init__(self, token: str):
        self.token = token

    async def get_token(self) -> str:
        return self.token
