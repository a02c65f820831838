"""
Fleet routes.

Endpoints:
- POST /api/fleets - Create a fleet and announce it
- PATCH /api/fleets/{fleet_id} - Edit a fleet and its announcements
- DELETE /api/fleets/{fleet_id} - Cancel a fleet's announcements and delete it
- POST /api/channels/{channel_id}/upcoming/refresh - Refresh a channel's upcoming list

Discord delivery is best-effort: these endpoints succeed once the data is
saved, and report per-channel notification counts in the response.
"""

from datetime import datetime
from typing import Any

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel

from timerboard import create_fleet, delete_fleet, update_fleet
from timerboard.errors import NotFoundError
from timerboard.notifications import refresh_upcoming_list

router = APIRouter(prefix="/api", tags=["fleets"])


class CreateFleetRequest(BaseModel):
    """Schema for creating a fleet."""

    category_id: int
    name: str
    commander_id: str
    fleet_time: str  # "YYYY-MM-DD HH:MM" (UTC) or "now"
    description: str | None = None
    hidden: bool = False
    disable_reminder: bool = False
    field_values: dict[int, str] = {}


class UpdateFleetRequest(BaseModel):
    """Schema for editing a fleet. Omitted fields are left unchanged."""

    category_id: int | None = None
    name: str | None = None
    commander_id: str | None = None
    fleet_time: str | None = None
    description: str | None = None
    hidden: bool | None = None
    disable_reminder: bool | None = None
    field_values: dict[int, str] | None = None


def _serialize(result: dict) -> dict[str, Any]:
    fleet = dict(result["fleet"])
    for key, value in fleet.items():
        if isinstance(value, datetime):
            fleet[key] = value.isoformat()
    return {
        "fleet": fleet,
        "notifications": result["notifications"],
        "lists": result["lists"],
    }


@router.post("/fleets", status_code=201)
async def create_fleet_endpoint(request: CreateFleetRequest) -> dict[str, Any]:
    """Create a fleet. Posts the creation announcement unless hidden."""
    try:
        result = await create_fleet(
            category_id=request.category_id,
            name=request.name,
            commander_id=request.commander_id,
            fleet_time=request.fleet_time,
            description=request.description,
            hidden=request.hidden,
            disable_reminder=request.disable_reminder,
            field_values=request.field_values,
        )
    except NotFoundError as e:
        raise HTTPException(404, str(e))
    except ValueError as e:
        raise HTTPException(400, str(e))

    return _serialize(result)


@router.patch("/fleets/{fleet_id}")
async def update_fleet_endpoint(
    fleet_id: int, request: UpdateFleetRequest
) -> dict[str, Any]:
    """Edit a fleet. Every existing announcement is edited in place."""
    changes = request.model_dump(exclude_unset=True)
    field_values = changes.pop("field_values", None)

    try:
        result = await update_fleet(fleet_id, changes, field_values=field_values)
    except NotFoundError as e:
        raise HTTPException(404, str(e))
    except ValueError as e:
        raise HTTPException(400, str(e))

    return _serialize(result)


@router.delete("/fleets/{fleet_id}")
async def delete_fleet_endpoint(
    fleet_id: int, cancelled_by: str | None = None
) -> dict[str, Any]:
    """Cancel a fleet: announcements are replaced by a cancellation notice."""
    try:
        result = await delete_fleet(fleet_id, cancelled_by=cancelled_by)
    except NotFoundError as e:
        raise HTTPException(404, str(e))

    return _serialize(result)


@router.post("/channels/{channel_id}/upcoming/refresh")
async def refresh_upcoming_endpoint(channel_id: str) -> dict[str, Any]:
    """Post, edit or repost a channel's upcoming events list."""
    try:
        result = await refresh_upcoming_list(channel_id)
    except ValueError as e:
        raise HTTPException(400, str(e))

    return {
        "channel_id": str(result.channel_id),
        "action": result.action.value,
        "message_id": str(result.message_id) if result.message_id else None,
    }
