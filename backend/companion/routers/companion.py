"""Companion router: live recommendations, proactive messages and trip mode."""

from datetime import datetime, timezone

from fastapi import APIRouter, Depends, HTTPException, Query

from companion.dependencies import get_companion
from companion.exceptions import ActivityNotFoundError, MessageNotFoundError, ModeTransitionError
from companion.models.activity import Activity, EnrichedActivity
from companion.models.context import LocationContext, PositionFix
from companion.models.message import ProactiveMessage
from companion.models.mode import ModeContext
from companion.schemas.companion import (
    CravingRequest,
    DayRequest,
    ItineraryRequest,
    LocationFixRequest,
    ModeSwitchRequest,
    PreferencesRequest,
    ProactiveToggleRequest,
    TripActivateRequest,
)
from companion.services.companion_service import ActiveCompanion
from companion.services.location_tracker import detect_movement

router = APIRouter()


def _enriched(e: EnrichedActivity) -> dict:
    return {
        "id": e.id,
        "name": e.activity.name,
        "category": e.activity.category,
        "score": e.score,
        "distance_m": round(e.distance_m) if e.distance_m is not None else None,
        "why_now": {
            "category": e.why_now.primary.category.value,
            "text": e.why_now.primary.text,
            "secondary": [
                {"category": r.category.value, "text": r.text} for r in e.why_now.secondary
            ],
        },
        "signals": e.signals,
        "serendipity_reason": e.serendipity_reason,
    }


def _message(m: ProactiveMessage) -> dict:
    return {
        "id": m.id,
        "type": m.type.value,
        "category": m.category,
        "message": m.message,
        "detail": m.detail,
        "priority": m.priority.value,
        "activity_id": m.activity_id,
        "action": {
            "label": m.action.label,
            "type": m.action.type,
            "payload": m.action.payload,
        } if m.action else None,
        "created_at": m.created_at.isoformat() if m.created_at else None,
        "expires_at": m.expires_at.isoformat() if m.expires_at else None,
        "is_dismissed": m.is_dismissed,
    }


def _mode(ctx: ModeContext) -> dict:
    return {
        "mode": ctx.mode.value,
        "sub_mode": ctx.sub_mode.value if ctx.sub_mode else None,
        "has_active_trip": ctx.has_active_trip,
        "trip_id": ctx.trip_id,
        "day_number": ctx.day_number,
    }


# ─── Itinerary & context ───

@router.put("/activities")
async def set_activities(
    req: ItineraryRequest,
    companion: ActiveCompanion = Depends(get_companion),
):
    """Replace the candidate activity list."""
    fired = companion.set_activities([Activity(**a.model_dump()) for a in req.activities])
    return {"count": len(companion.activities), "new_messages": [_message(m) for m in fired]}


@router.get("/activities/day/{day_number}")
async def activities_for_day(
    day_number: int,
    companion: ActiveCompanion = Depends(get_companion),
):
    return {
        "day_number": day_number,
        "activities": [{"id": a.id, "name": a.name, "category": a.category} for a in companion.activities_for_day(day_number)],
    }


@router.post("/location")
async def update_location(
    req: LocationFixRequest,
    companion: ActiveCompanion = Depends(get_companion),
):
    """Apply a position fix, then refresh weather for the new coordinates."""
    fix = PositionFix(
        latitude=req.latitude,
        longitude=req.longitude,
        accuracy=req.accuracy,
        timestamp=req.timestamp or datetime.now(timezone.utc),
        heading=req.heading,
        speed=req.speed,
    )
    if companion.tracker is not None:
        context = await companion.tracker.handle_fix(fix)
        if context is None:
            return {"applied": False, "new_messages": []}
        fired = companion.update_location(context)
    else:
        fired = companion.update_location(LocationContext(
            latitude=fix.latitude,
            longitude=fix.longitude,
            accuracy=fix.accuracy,
            timestamp=fix.timestamp,
            heading=fix.heading,
            speed=fix.speed,
            is_moving=detect_movement(fix, companion.location),
        ))
    fired += await companion.refresh_weather()
    location = companion.location
    return {
        "applied": True,
        "city": location.city if location else None,
        "is_moving": location.is_moving if location else False,
        "new_messages": [_message(m) for m in fired],
    }


@router.post("/weather/refresh")
async def refresh_weather(
    force: bool = Query(False),
    companion: ActiveCompanion = Depends(get_companion),
):
    if companion.location is None:
        raise HTTPException(status_code=409, detail="No location yet")
    fired = await companion.refresh_weather(force=force)
    weather = companion.weather
    return {
        "weather": {
            "condition": weather.condition.value,
            "temperature": weather.temperature,
            "precipitation_chance": weather.precipitation_chance,
            "fetched_at": weather.fetched_at.isoformat(),
        } if weather else None,
        "new_messages": [_message(m) for m in fired],
    }


@router.post("/tick")
async def tick(companion: ActiveCompanion = Depends(get_companion)):
    fired = companion.tick()
    return {"new_messages": [_message(m) for m in fired]}


# ─── Recommendations ───

@router.get("/recommendations")
async def get_recommendations(
    count: int = Query(3, ge=1, le=20),
    companion: ActiveCompanion = Depends(get_companion),
):
    return {"recommendations": [_enriched(e) for e in companion.recommendations(count)]}


@router.post("/craving")
async def search_craving(
    req: CravingRequest,
    companion: ActiveCompanion = Depends(get_companion),
):
    result = companion.search_craving(
        req.query,
        limit=req.limit,
        max_distance_m=req.max_distance_m,
        require_open=req.require_open,
    )
    return {
        "query": result.query,
        "explanation": result.explanation,
        "matches": [_enriched(e) for e in result.matches],
    }


@router.get("/serendipity")
async def get_serendipity(companion: ActiveCompanion = Depends(get_companion)):
    pick = companion.get_serendipity()
    return {"pick": _enriched(pick) if pick else None}


# ─── Messages ───

@router.get("/messages")
async def list_messages(companion: ActiveCompanion = Depends(get_companion)):
    return {"messages": [_message(m) for m in companion.active_messages()]}


@router.post("/messages/{message_id}/dismiss")
async def dismiss_message(
    message_id: str,
    companion: ActiveCompanion = Depends(get_companion),
):
    try:
        message = companion.dismiss_message(message_id)
    except MessageNotFoundError:
        raise HTTPException(status_code=404, detail="Message not found")
    return _message(message)


@router.post("/messages/{message_id}/act")
async def act_on_message(
    message_id: str,
    companion: ActiveCompanion = Depends(get_companion),
):
    try:
        message = companion.act_on_message(message_id)
    except MessageNotFoundError:
        raise HTTPException(status_code=404, detail="Message not found")
    return _message(message)


@router.delete("/messages")
async def clear_messages(companion: ActiveCompanion = Depends(get_companion)):
    companion.clear_messages()
    return {"ok": True}


@router.put("/proactive")
async def set_proactive(
    req: ProactiveToggleRequest,
    companion: ActiveCompanion = Depends(get_companion),
):
    companion.set_proactive_enabled(req.enabled)
    return {"enabled": companion.proactive_enabled}


# ─── Trip mode ───

@router.get("/mode")
async def get_mode(companion: ActiveCompanion = Depends(get_companion)):
    return _mode(companion.mode_context)


@router.post("/trip/activate")
async def activate_trip(
    req: TripActivateRequest,
    companion: ActiveCompanion = Depends(get_companion),
):
    return _mode(companion.activate_trip(req.trip_id, req.day_number))


@router.post("/trip/end")
async def end_trip(companion: ActiveCompanion = Depends(get_companion)):
    return _mode(companion.end_trip())


@router.put("/mode")
async def switch_mode(
    req: ModeSwitchRequest,
    companion: ActiveCompanion = Depends(get_companion),
):
    try:
        return _mode(companion.switch_mode(req.sub_mode))
    except ModeTransitionError as e:
        raise HTTPException(status_code=409, detail=str(e))


@router.put("/day")
async def set_day(
    req: DayRequest,
    companion: ActiveCompanion = Depends(get_companion),
):
    try:
        return _mode(companion.set_day(req.day_number))
    except ModeTransitionError as e:
        raise HTTPException(status_code=409, detail=str(e))


# ─── Activity feedback ───

@router.post("/activities/{activity_id}/{action}")
async def activity_feedback(
    activity_id: str,
    action: str,
    companion: ActiveCompanion = Depends(get_companion),
):
    """choose | complete | skip | not-interested"""
    handlers = {
        "choose": companion.record_choice,
        "complete": companion.record_completion,
        "skip": companion.record_skip,
        "not-interested": companion.mark_not_interested,
    }
    handler = handlers.get(action)
    if handler is None:
        raise HTTPException(status_code=422, detail=f"Unknown action: {action}")
    try:
        fired = handler(activity_id)
    except ActivityNotFoundError:
        raise HTTPException(status_code=404, detail="Activity not found")
    return {"ok": True, "new_messages": [_message(m) for m in fired]}


@router.post("/undo")
async def undo(companion: ActiveCompanion = Depends(get_companion)):
    entry = companion.undo()
    if entry is None:
        return {"undone": None}
    return {"undone": {"action": entry.action, "activity_id": entry.activity_id}}


@router.post("/break")
async def take_break(companion: ActiveCompanion = Depends(get_companion)):
    companion.take_break()
    return {"ok": True}


# ─── Learning ───

@router.put("/preferences")
async def set_preferences(
    req: PreferencesRequest,
    companion: ActiveCompanion = Depends(get_companion),
):
    companion.set_preferences(req.preferences)
    return {"preferences": companion.preferences}


@router.get("/stats")
async def get_stats(companion: ActiveCompanion = Depends(get_companion)):
    return companion.get_stats()


@router.get("/learning")
async def get_learning(companion: ActiveCompanion = Depends(get_companion)):
    return companion.learning.get_data().to_dict()


@router.delete("/learning")
async def reset_learning(companion: ActiveCompanion = Depends(get_companion)):
    companion.reset_learning()
    return {"ok": True}
