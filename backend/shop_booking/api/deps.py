import hmac
from typing import Optional

from fastapi import Header, HTTPException, Request

from shop_booking.core.context import AppContext


def get_context(request: Request) -> AppContext:
    return request.app.state.context


async def require_admin(
    request: Request,
    x_admin_key: Optional[str] = Header(default=None),
) -> None:
    """Guard for admin routes; open when ADMIN_API_KEY is not configured."""
    expected = request.app.state.context.config.admin_api_key
    if not expected:
        return
    if not x_admin_key or not hmac.compare_digest(x_admin_key, expected):
        raise HTTPException(status_code=401, detail="Invalid or missing admin key")
