from __future__ import annotations

from typing import Any

from ..errors import InternalError
from ..models import Draw, Participant


def participant_card(p: Participant) -> dict[str, Any]:
    return {"id": p.id, "name": p.name, "photoUrl": p.photo_url}


def _readable_assignment(p: Participant) -> int | None:
    try:
        return p.assigned_participant_id
    except ValueError as e:
        raise InternalError("Assignments of this draw cannot be read.") from e


def organizer_view(draw: Draw) -> dict[str, Any]:
    """Full detail, only ever returned to holders of the organizer code."""
    return {
        "id": draw.id,
        "title": draw.title,
        "budget": draw.budget,
        "adminCode": draw.organizer_code,
        "publicCode": draw.participant_code,
        "status": draw.status.value,
        "participants": [
            {
                **participant_card(p),
                "assignedParticipantId": _readable_assignment(p),
                "hasDrawn": p.has_drawn,
            }
            for p in draw.participants
        ],
    }


def participant_view(draw: Draw) -> dict[str, Any]:
    # No codes and no assignments: anyone with the public link sees this.
    return {
        "id": draw.id,
        "title": draw.title,
        "budget": draw.budget,
        "status": draw.status.value,
        "participants": [
            {**participant_card(p), "hasDrawn": p.has_drawn}
            for p in draw.participants
        ],
    }


def draw_summary(draw: Draw) -> dict[str, Any]:
    return {
        "id": draw.id,
        "title": draw.title,
        "budget": draw.budget,
        "status": draw.status.value,
    }
