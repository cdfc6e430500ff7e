from __future__ import annotations

import argparse
import asyncio
import sys
from pathlib import Path

# Ensure the backend project root (the directory containing the "shop_booking"
# package) is on sys.path so this script can be executed from the repo root or backend/.
PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from shop_booking.integrations.google_calendar.oauth import (
    GMAIL_SEND_SCOPE,
    InstalledAppOAuth,
    save_tokens,
)


async def authorize(credentials: Path, token: Path, scopes: list[str]) -> None:
    """Run the consent flow once and store the token next to the credentials."""
    if token.exists():
        print(f"✅ Already authorized - {token} exists.")
        return

    oauth = InstalledAppOAuth.from_client_secrets_file(credentials, scopes=scopes)
    print("👉 Open this link in your browser:")
    print(oauth.get_authorization_url())

    code = input("\n📋 Paste the code from Google here: ").strip()
    tokens = await oauth.exchange_code_for_tokens(code)
    save_tokens(tokens, token)
    print(f"✅ Token saved to {token}")


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="One-time Google OAuth setup (writes token.json).")
    parser.add_argument("--credentials", default="credentials.json", help="OAuth client secrets file")
    parser.add_argument("--token", default="token.json", help="Where to store the token")
    parser.add_argument(
        "--scope",
        action="append",
        dest="scopes",
        help=f"OAuth scope (repeatable, default {GMAIL_SEND_SCOPE})",
    )
    return parser.parse_args()


def main() -> None:
    args = parse_args()
    asyncio.run(authorize(Path(args.credentials), Path(args.token), args.scopes or [GMAIL_SEND_SCOPE]))


if __name__ == "__main__":
    main()
