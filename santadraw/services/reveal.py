from __future__ import annotations

import logging
from dataclasses import dataclass

from ..errors import InternalError, NotFound, NotReady
from ..models import DrawStatus, Participant
from .locking import draw_transaction


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RevealResult:
    participant: Participant
    receiver: Participant
    already_revealed: bool


def reveal(draw_id: int, participant_id: int) -> RevealResult:
    """
    Show a participant who they gift.

    The first call flags the participant as having drawn; later calls return
    the same receiver with ``already_revealed`` set and change nothing. Only
    the caller's own assignment is ever read.
    """
    with draw_transaction(draw_id) as draw:
        if draw.status != DrawStatus.READY:
            raise NotReady()

        participant = draw.find_participant(participant_id)
        if participant is None:
            raise NotFound("Participant not found.")

        try:
            receiver_id = participant.assigned_participant_id
        except ValueError as e:
            logger.error("Unreadable assignment for participant %s in draw %s", participant.id, draw_id)
            raise InternalError("No one is assigned to this participant.") from e

        receiver = draw.find_participant(receiver_id) if receiver_id is not None else None
        if receiver is None or receiver.id == participant.id:
            logger.error("Participant %s in ready draw %s has no valid assignment", participant.id, draw_id)
            raise InternalError("No one is assigned to this participant.")

        already_revealed = participant.has_drawn
        if not already_revealed:
            participant.has_drawn = True
            draw.touch()

        result = RevealResult(participant=participant, receiver=receiver, already_revealed=already_revealed)

    if not already_revealed:
        logger.info("Participant %s revealed their assignment in draw %s", participant_id, draw_id)
    return result
