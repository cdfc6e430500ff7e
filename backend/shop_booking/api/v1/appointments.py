from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from shop_booking.api.deps import get_context, require_admin
from shop_booking.core.context import AppContext

logger = logging.getLogger(__name__)

router = APIRouter(tags=["appointments"])


class CreateAppointmentRequest(BaseModel):
    """Booking request from the public form.

    Every field is optional here so that missing ones are reported by the
    service as a 400, not by pydantic as a 422. Extra fields are kept and
    stored with the appointment.
    """

    name: Optional[str] = None
    email: Optional[str] = None
    start_iso: Optional[str] = None
    end_iso: Optional[str] = None
    service: Optional[str] = None
    phone: Optional[str] = None
    notes: Optional[str] = None

    class Config:
        extra = "allow"


class StatusUpdateRequest(BaseModel):
    status: Optional[str] = None


@router.post("/appointments")
async def create_appointment(
    body: CreateAppointmentRequest,
    ctx: AppContext = Depends(get_context),
) -> Dict[str, Any]:
    """Book an appointment: calendar event, local record, confirmation mail."""
    result = await ctx.appointments.create_appointment(body.model_dump())
    return {
        "success": True,
        "id": result.appointment_id,
        "gcal_event_id": result.gcal_event_id,
        "notification_sent": result.notification_sent,
    }


@router.get("/appointments", dependencies=[Depends(require_admin)])
async def list_appointments(ctx: AppContext = Depends(get_context)) -> Dict[str, Any]:
    """Upcoming calendar events (from 24h ago) with the shop's response status."""
    views = await ctx.admin.list_upcoming()
    return {"success": True, "events": [v.to_dict() for v in views]}


@router.delete("/appointments/{event_id}", dependencies=[Depends(require_admin)])
async def delete_appointment(
    event_id: str,
    ctx: AppContext = Depends(get_context),
) -> Dict[str, Any]:
    """Delete the calendar event (notifying attendees), then the local mirror."""
    await ctx.admin.delete_appointment(event_id)
    return {"success": True}


@router.patch("/appointments/{event_id}/status", dependencies=[Depends(require_admin)])
async def update_status(
    event_id: str,
    body: StatusUpdateRequest,
    ctx: AppContext = Depends(get_context),
) -> Dict[str, Any]:
    await ctx.admin.set_status(event_id, body.status)
    return {"success": True}
