from typing import Any, Dict

from fastapi import APIRouter, Depends

from shop_booking.api.deps import get_context
from shop_booking.core.context import AppContext

router = APIRouter(prefix="/calendar", tags=["calendar"])


@router.get("/events")
async def get_calendar_events(ctx: AppContext = Depends(get_context)) -> Dict[str, Any]:
    """Upcoming events plus blocked slots for the booking form"""
    overview = await ctx.admin.calendar_overview()
    return {
        "success": True,
        "events": [e.to_google_event() for e in overview.events],
        "blockedSlots": overview.blocked_slots,
    }
