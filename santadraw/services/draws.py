from __future__ import annotations

import logging
import math
import random
from collections.abc import Iterable, Mapping
from typing import Any

from flask import current_app

from ..errors import InsufficientParticipants, InternalError, NotFound, ValidationError
from ..extensions import db
from ..models import Draw, DrawStatus, Participant
from ..security import generate_unique_code
from .derangement import DEFAULT_MAX_ATTEMPTS, generate_derangement
from .locking import draw_transaction


logger = logging.getLogger(__name__)

MAX_TITLE_LENGTH = 120
MAX_NAME_LENGTH = 64
MAX_PHOTO_URL_LENGTH = 512
MIN_PARTICIPANTS = 2
# Largest value of the Numeric(10, 2) budget column
MAX_BUDGET = 99_999_999.99


# --------- Lookups ----------

def get_draw_by_organizer_code(code: str | None) -> Draw:
    code = (code or "").strip()
    draw = Draw.query.filter_by(organizer_code=code).first() if code else None
    if draw is None:
        raise NotFound()
    return draw


def get_draw_by_participant_code(code: str | None) -> Draw:
    code = (code or "").strip()
    draw = Draw.query.filter_by(participant_code=code).first() if code else None
    if draw is None:
        raise NotFound()
    return draw


def _code_is_taken(code: str) -> bool:
    return db.session.query(
        Draw.query.filter((Draw.organizer_code == code) | (Draw.participant_code == code)).exists()
    ).scalar()


# --------- Input cleaning ----------

def _clean_title(title: Any) -> str:
    if not isinstance(title, str) or not title.strip():
        raise ValidationError("A title is required for the draw.")
    title = title.strip()
    if len(title) > MAX_TITLE_LENGTH:
        raise ValidationError(f"The title must be at most {MAX_TITLE_LENGTH} characters.")
    return title


def _parse_budget(budget: Any) -> float | None:
    if budget is None or (isinstance(budget, str) and not budget.strip()):
        return None
    if isinstance(budget, bool):
        raise ValidationError("The budget must be a number.")
    try:
        value = float(budget)
    except (TypeError, ValueError):
        raise ValidationError("The budget must be a number.") from None
    if not math.isfinite(value) or value < 0:
        raise ValidationError("The budget must be a positive number.")
    if value > MAX_BUDGET:
        raise ValidationError(f"The budget must be at most {MAX_BUDGET:,.2f}.")
    return round(value, 2)


def clean_participant_entries(entries: Any) -> list[dict[str, str | None]]:
    """
    Normalise a submitted participant list to ``[{"name", "photo_url"}]``.

    Names and photo references are trimmed, entries without a name dropped.
    At least two entries must be submitted and at least two must survive.
    """
    if not isinstance(entries, list) or len(entries) < MIN_PARTICIPANTS:
        raise ValidationError("Please provide at least 2 participants.")

    cleaned = []
    for entry in entries:
        if not isinstance(entry, Mapping):
            raise ValidationError("Each participant must be an object with a name.")
        name = str(entry.get("name") or "").strip()
        photo_url = str(entry.get("photo_url") or "").strip() or None
        if not name:
            continue
        if len(name) > MAX_NAME_LENGTH:
            raise ValidationError(f"Participant names must be at most {MAX_NAME_LENGTH} characters.")
        if photo_url and len(photo_url) > MAX_PHOTO_URL_LENGTH:
            raise ValidationError("Photo reference is too long.")
        cleaned.append({"name": name, "photo_url": photo_url})

    if len(cleaned) < MIN_PARTICIPANTS:
        raise InsufficientParticipants("Please provide at least 2 participants with a non-empty name.")
    return cleaned


# --------- State machine ----------

def create_draw(title: Any, budget: Any = None) -> Draw:
    draw = Draw(
        title=_clean_title(title),
        budget=_parse_budget(budget),
        status=DrawStatus.DRAFT,
    )
    draw.organizer_code = generate_unique_code(_code_is_taken)
    draw.participant_code = generate_unique_code(
        lambda c: c == draw.organizer_code or _code_is_taken(c)
    )
    db.session.add(draw)
    db.session.commit()

    logger.info("Created draw %s", draw.id)
    return draw


def set_participants(draw_id: int, entries: Iterable[Mapping[str, Any]]) -> Draw:
    """Replace the whole participant list; any previous draw result is discarded."""
    cleaned = clean_participant_entries(entries)

    with draw_transaction(draw_id) as draw:
        # delete-orphan removes the old rows along with their assignments
        draw.participants.clear()
        db.session.flush()

        for position, entry in enumerate(cleaned):
            draw.participants.append(
                Participant(
                    position=position,
                    name=entry["name"],
                    photo_url=entry["photo_url"],
                    has_drawn=False,
                )
            )
        draw.status = DrawStatus.DRAFT
        draw.touch()

    logger.info("Draw %s now has %d participants", draw_id, len(cleaned))
    return draw


def start(draw_id: int, rng: random.Random | None = None) -> Draw:
    """Compute a fresh derangement, store it and open the draw for reveals."""
    max_attempts = int(current_app.config.get("DERANGEMENT_MAX_ATTEMPTS", DEFAULT_MAX_ATTEMPTS))

    with draw_transaction(draw_id) as draw:
        participants = list(draw.participants)
        if len(participants) < MIN_PARTICIPANTS:
            raise InsufficientParticipants("At least 2 participants are needed to start the draw.")

        try:
            mapping = generate_derangement([p.id for p in participants], max_attempts=max_attempts, rng=rng)
        except InternalError:
            logger.exception("Derangement failed for draw %s", draw_id)
            raise
        except ValidationError as e:
            # ids come from the database, so they are unique and numerous enough
            raise InternalError(str(e)) from e

        for giver in participants:
            giver.assigned_participant_id = mapping[giver.id]
            giver.has_drawn = False
        draw.status = DrawStatus.READY
        draw.touch()

    logger.info("Started draw %s with %d participants", draw_id, len(participants))
    return draw


def reset(draw_id: int) -> Draw:
    """Drop the draw result but keep the participants; back to draft."""
    with draw_transaction(draw_id) as draw:
        participants = list(draw.participants)
        if len(participants) < MIN_PARTICIPANTS:
            raise InsufficientParticipants("At least 2 participants are needed to reset the draw.")

        for p in participants:
            p.clear_assignment()
        draw.status = DrawStatus.DRAFT
        draw.touch()

    logger.info("Reset draw %s", draw_id)
    return draw
