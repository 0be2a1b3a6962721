"""
Profile image uploads: validation, storage on disk and the static route
that serves them back.
"""
from __future__ import annotations

import logging
import os
import time
import uuid

from flask import current_app, send_from_directory
from marshmallow import ValidationError
from werkzeug.datastructures import FileStorage

logger = logging.getLogger(__name__)

PROFILE_IMAGE_FIELD = "profile_image"
PROFILE_IMAGE_SUBDIR = "profile-images"

ALLOWED_PROFILE_IMAGE_TYPES = {
    "image/jpg": "jpg",
    "image/png": "png",
    "image/jpeg": "jpeg",
    "image/heic": "heic",
}


def profile_image_dir(upload_folder: str) -> str:
    return os.path.join(upload_folder, PROFILE_IMAGE_SUBDIR)


def _file_size(file: FileStorage) -> int:
    stream = file.stream
    stream.seek(0, os.SEEK_END)
    size = stream.tell()
    stream.seek(0)
    return size


def _extension(file: FileStorage) -> str:
    # from the validated content type, never the client's filename
    return ALLOWED_PROFILE_IMAGE_TYPES[file.mimetype]


def build_profile_filename(ext: str) -> str:
    """<epoch-millis>-<uuid4>.<ext>; unique without trusting the client's name."""
    return f"{int(time.time() * 1000)}-{uuid.uuid4()}.{ext}"


def validate_profile_image(file: FileStorage, max_size: int) -> None:
    if file.mimetype not in ALLOWED_PROFILE_IMAGE_TYPES:
        raise ValidationError({PROFILE_IMAGE_FIELD: ["file type not allowed"]})
    if _file_size(file) > max_size:
        raise ValidationError(
            {PROFILE_IMAGE_FIELD: [f"file is larger than {max_size // (1024 * 1024)} MiB"]}
        )


def save_profile_image(file: FileStorage | None, upload_folder: str, max_size: int) -> str | None:
    """
    Validate and store an uploaded profile image; returns the stored filename,
    or None when no file was sent.
    """
    if file is None or not file.filename:
        return None
    validate_profile_image(file, max_size)

    directory = profile_image_dir(upload_folder)
    os.makedirs(directory, exist_ok=True)
    filename = build_profile_filename(_extension(file))
    file.save(os.path.join(directory, filename))
    logger.info("Stored profile image %s", filename)
    return filename


def remove_profile_image(upload_folder: str, filename: str | None) -> None:
    if not filename:
        return
    path = os.path.join(profile_image_dir(upload_folder), filename)
    try:
        os.remove(path)
    except FileNotFoundError:
        logger.warning("Profile image %s already removed", filename)


def serve_profile_image(filename: str):
    """
    Serve an uploaded profile image
    ---
    tags:
      - Uploads
    parameters:
      - in: path
        name: filename
        type: string
        required: true
    responses:
      200:
        description: The image file
      404:
        description: Not found
    """
    directory = profile_image_dir(current_app.config["UPLOAD_FOLDER"])
    return send_from_directory(directory, filename)


def register_profile_image_route(app) -> None:
    """Mount the static route under PROFILE_IMAGE_URL_PREFIX."""
    prefix = app.config["PROFILE_IMAGE_URL_PREFIX"].rstrip("/")
    app.add_url_rule(f"{prefix}/<path:filename>", "profile_image", serve_profile_image, methods=["GET"])
