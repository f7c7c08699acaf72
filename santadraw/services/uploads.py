from __future__ import annotations

import logging
import secrets
from pathlib import Path

from flask import current_app
from werkzeug.datastructures import FileStorage
from werkzeug.utils import secure_filename

from ..errors import ValidationError


logger = logging.getLogger(__name__)

DEFAULT_PHOTO_EXTENSIONS = frozenset({"png", "jpg", "jpeg", "gif", "webp"})


def upload_dir() -> Path:
    path = Path(current_app.config["UPLOAD_FOLDER"])
    path.mkdir(parents=True, exist_ok=True)
    return path


def _stored_name(original: str, extension: str) -> str:
    base = Path(secure_filename(original)).stem.lower() or "photo"
    return f"{base}_{secrets.token_hex(4)}.{extension}"


def save_photo(file: FileStorage | None) -> str:
    """Store an uploaded photo and return the URL it will be served from."""
    if file is None or not file.filename:
        raise ValidationError("No file received.")

    allowed = current_app.config.get("ALLOWED_PHOTO_EXTENSIONS", DEFAULT_PHOTO_EXTENSIONS)
    extension = Path(file.filename).suffix.lower().lstrip(".")
    if extension not in allowed:
        raise ValidationError("Unsupported photo format.")

    filename = _stored_name(file.filename, extension)
    destination = upload_dir() / filename
    file.save(destination)

    logger.info("Stored photo %s (%d bytes)", filename, destination.stat().st_size)
    return f"/uploads/{filename}"
