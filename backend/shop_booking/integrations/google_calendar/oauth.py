"""Google OAuth 2.0 installed-app flow (offline setup only, not used by the API)"""

import json
import logging
from pathlib import Path
from typing import Optional, Sequence
from urllib.parse import urlencode

import aiohttp

logger = logging.getLogger(__name__)

GOOGLE_AUTH_URL = "https://accounts.google.com/o/oauth2/v2/auth"
GOOGLE_TOKEN_URL = "https://oauth2.googleapis.com/token"
GMAIL_SEND_SCOPE = "https://www.googleapis.com/auth/gmail.send"


class InstalledAppOAuth:
    """Handle the one-time consent flow for a desktop OAuth client"""

    def __init__(
        self,
        client_id: str,
        client_secret: str,
        redirect_uri: str,
        scopes: Sequence[str] = (GMAIL_SEND_SCOPE,),
    ):
        self.client_id = client_id
        self.client_secret = client_secret
        self.redirect_uri = redirect_uri
        self.scopes = list(scopes)

    @classmethod
    def from_client_secrets_file(
        cls, path: Path, scopes: Sequence[str] = (GMAIL_SEND_SCOPE,)
    ) -> "InstalledAppOAuth":
        """Read a credentials.json downloaded from the Google Cloud console"""
        data = json.loads(Path(path).read_text(encoding="utf-8"))
        section = data.get("installed") or data.get("web")
        if not section:
            raise ValueError(f"{path} has neither an 'installed' nor a 'web' client")
        return cls(
            client_id=section["client_id"],
            client_secret=section["client_secret"],
            redirect_uri=(section.get("redirect_uris") or ["urn:ietf:wg:oauth:2.0:oob"])[0],
            scopes=scopes,
        )

    def get_authorization_url(self, state: Optional[str] = None) -> str:
        """
        Generate the Google OAuth authorization URL

        Returns:
            Authorization URL for the operator to visit
        """
        params = {
            "client_id": self.client_id,
            "redirect_uri": self.redirect_uri,
            "response_type": "code",
            "scope": " ".join(self.scopes),
            "access_type": "offline",  # Get refresh token
            "prompt": "consent",  # Force consent screen
        }
        if state:
            params["state"] = state

        return f"{GOOGLE_AUTH_URL}?{urlencode(params)}"

    async def exchange_code_for_tokens(self, code: str) -> dict:
        """
        Exchange authorization code for the token payload

        Returns:
            Token response (access_token, refresh_token, expires_in, ...)
        """
        async with aiohttp.ClientSession() as session:
            async with session.post(
                GOOGLE_TOKEN_URL,
                data={
                    "client_id": self.client_id,
                    "client_secret": self.client_secret,
                    "code": code,
                    "redirect_uri": self.redirect_uri,
                    "grant_type": "authorization_code",
                },
            ) as resp:
                if resp.status != 200:
                    error_text = await resp.text()
                    logger.error(f"Token exchange failed: {error_text}")
                    raise RuntimeError(f"Failed to exchange code: {resp.status}")

                data = await resp.json()

        if not data.get("access_token"):
            raise RuntimeError("No access token in response")

        logger.info("Successfully exchanged code for tokens")
        return data


def save_tokens(tokens: dict, path: Path) -> None:
    Path(path).write_text(json.dumps(tokens), encoding="utf-8")
