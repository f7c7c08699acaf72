from __future__ import annotations

import logging
from datetime import datetime, timezone

from flask import Blueprint, jsonify, request
from flask.views import MethodView
from werkzeug.exceptions import RequestEntityTooLarge

from ..errors import DrawError, InternalError, ValidationError
from ..services import draws as draw_service
from ..services.reveal import reveal
from ..services.uploads import save_photo
from .serializers import draw_summary, organizer_view, participant_card, participant_view


logger = logging.getLogger(__name__)

api_bp = Blueprint("api", __name__, url_prefix="/api")


@api_bp.errorhandler(DrawError)
def handle_draw_error(e: DrawError):
    if isinstance(e, InternalError):
        logger.error("Internal draw error on %s: %s", request.path, e, exc_info=e)
    return jsonify({"error": e.message}), e.status_code


@api_bp.errorhandler(RequestEntityTooLarge)
def handle_too_large(e: RequestEntityTooLarge):
    return jsonify({"error": "The uploaded file is too large."}), 413


def _json_body() -> dict:
    body = request.get_json(silent=True)
    return body if isinstance(body, dict) else {}


def _participant_id(raw) -> int:
    """Accept a JSON integer or a string of digits; booleans and floats are rejected."""
    if raw is None or raw == "":
        raise ValidationError("participantId is required.")
    if isinstance(raw, int) and not isinstance(raw, bool):
        return raw
    if isinstance(raw, str) and raw.strip().isascii() and raw.strip().isdigit():
        return int(raw.strip())
    raise ValidationError("participantId must be an integer.")


class HealthView(MethodView):
    def get(self):
        return jsonify({"status": "ok", "timestamp": datetime.now(timezone.utc).isoformat()})


class UploadPhotoView(MethodView):
    def post(self):
        url = save_photo(request.files.get("photo"))
        return jsonify({"url": url})


class CreateDrawView(MethodView):
    def post(self):
        body = _json_body()
        draw = draw_service.create_draw(body.get("title"), body.get("budget"))
        return jsonify({
            "id": draw.id,
            "title": draw.title,
            "budget": draw.budget,
            "adminCode": draw.organizer_code,
            "publicCode": draw.participant_code,
        })


class OrganizerDrawView(MethodView):
    def get(self, organizer_code: str):
        draw = draw_service.get_draw_by_organizer_code(organizer_code)
        return jsonify(organizer_view(draw))


class ParticipantsView(MethodView):
    def post(self, organizer_code: str):
        entries = _json_body().get("participants")
        if isinstance(entries, list):
            entries = [
                {"name": e.get("name"), "photo_url": e.get("photoUrl")} if isinstance(e, dict) else e
                for e in entries
            ]

        draw = draw_service.get_draw_by_organizer_code(organizer_code)
        draw = draw_service.set_participants(draw.id, entries)
        return jsonify({**draw_summary(draw), "participants": organizer_view(draw)["participants"]})


class StartDrawView(MethodView):
    def post(self, organizer_code: str):
        draw = draw_service.get_draw_by_organizer_code(organizer_code)
        draw = draw_service.start(draw.id)
        return jsonify({**draw_summary(draw), "publicCode": draw.participant_code})


class ResetDrawView(MethodView):
    def post(self, organizer_code: str):
        draw = draw_service.get_draw_by_organizer_code(organizer_code)
        draw = draw_service.reset(draw.id)
        return jsonify(draw_summary(draw))


class PublicDrawView(MethodView):
    def get(self, participant_code: str):
        draw = draw_service.get_draw_by_participant_code(participant_code)
        return jsonify(participant_view(draw))


class RevealView(MethodView):
    def post(self, participant_code: str):
        participant_id = _participant_id(_json_body().get("participantId"))
        draw = draw_service.get_draw_by_participant_code(participant_code)
        result = reveal(draw.id, participant_id)
        return jsonify({
            "alreadyDrawn": result.already_revealed,
            "participant": participant_card(result.participant),
            "receiver": participant_card(result.receiver),
        })


# Register routes
api_bp.add_url_rule("/health", view_func=HealthView.as_view("health"))
api_bp.add_url_rule("/upload-photo", view_func=UploadPhotoView.as_view("upload_photo"), methods=["POST"])

api_bp.add_url_rule("/draws", view_func=CreateDrawView.as_view("create_draw"), methods=["POST"])
api_bp.add_url_rule("/draws/by-admin/<organizer_code>", view_func=OrganizerDrawView.as_view("organizer_draw"))
api_bp.add_url_rule(
    "/draws/<organizer_code>/participants",
    view_func=ParticipantsView.as_view("set_participants"),
    methods=["POST"],
)
api_bp.add_url_rule("/draws/<organizer_code>/start", view_func=StartDrawView.as_view("start_draw"), methods=["POST"])
api_bp.add_url_rule("/draws/<organizer_code>/reset", view_func=ResetDrawView.as_view("reset_draw"), methods=["POST"])

api_bp.add_url_rule("/draws/by-public/<participant_code>", view_func=PublicDrawView.as_view("public_draw"))
api_bp.add_url_rule("/draws/<participant_code>/draw", view_func=RevealView.as_view("reveal"), methods=["POST"])
