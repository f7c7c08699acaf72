from __future__ import annotations

from flask import Blueprint, send_from_directory
from flask.views import MethodView

from ..services.uploads import upload_dir


public_bp = Blueprint("public", __name__)


class UploadedPhotoView(MethodView):
    def get(self, filename: str):
        return send_from_directory(upload_dir(), filename)


public_bp.add_url_rule("/uploads/<path:filename>", view_func=UploadedPhotoView.as_view("uploaded_photo"))
