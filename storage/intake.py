"""Intake of uploaded license artifacts.

The artifact is only validated for type and size and stored; its contents
are never parsed. Callers keep the returned reference on the account.
"""

from __future__ import annotations

import os
import uuid
from pathlib import Path
from typing import Iterable

from flask import current_app
from werkzeug.datastructures import FileStorage

from utils.errors import ValidationError

from .local_storage import LocalStorage

MAX_UPLOAD_SIZE_DEFAULT = 10 * 1024 * 1024  # 10 MB
ALLOWED_EXTENSIONS_DEFAULT = {"jpeg", "jpg", "png", "pdf"}


def allowed_extensions() -> set[str]:
    configured = current_app.config.get("ALLOWED_UPLOAD_TYPES")
    if not configured:
        return set(ALLOWED_EXTENSIONS_DEFAULT)
    if isinstance(configured, str):
        values: Iterable[str] = configured.split(",")
    else:
        values = configured

    normalized: set[str] = set()
    for raw in values:
        if not isinstance(raw, str):
            continue

        item = raw.strip().lower()
        if not item:
            continue

        if "/" in item and not item.startswith("."):
            item = item.rsplit("/", 1)[-1]

        item = item.lstrip(".")
        if item:
            normalized.add(item)

    if not normalized:
        return set(ALLOWED_EXTENSIONS_DEFAULT)
    if "jpeg" in normalized:
        normalized.add("jpg")
    if "jpg" in normalized:
        normalized.add("jpeg")
    return normalized


def _measure(file: FileStorage) -> int:
    file.stream.seek(0, os.SEEK_END)
    size = file.stream.tell()
    file.stream.seek(0)
    return size


def _validate(file: FileStorage, field: str) -> int:
    if file.filename is None or file.filename.strip() == "":
        raise ValidationError(errors={field: "A file is required."})

    extension = file.filename.rsplit(".", 1)[-1].lower() if "." in file.filename else ""
    allowed = allowed_extensions()
    if extension not in allowed:
        raise ValidationError(
            errors={
                field: f"File type not allowed. Allowed types: {', '.join(sorted(allowed))}."
            }
        )

    max_size = int(current_app.config.get("MAX_UPLOAD_SIZE", MAX_UPLOAD_SIZE_DEFAULT))
    size = _measure(file)
    if size > max_size:
        raise ValidationError(
            errors={field: f"File exceeds the maximum upload size of {max_size} bytes."}
        )
    return size


def _build_unique_filename(original: str) -> str:
    return f"{uuid.uuid4().hex}{Path(original).suffix.lower()}"


def store_upload(file: FileStorage, field: str = "license") -> dict:
    """Validate and store an upload, returning its stored reference."""

    size = _validate(file, field)
    storage = LocalStorage(current_app.config.get("UPLOAD_DIR"))
    stored_name = _build_unique_filename(file.filename or "upload")
    stored_path = storage.save(file, stored_name)

    return {
        "filename": stored_name,
        "original_name": file.filename,
        "path": stored_path,
        "mimetype": file.mimetype or "application/octet-stream",
        "size": size,
        "url": f"/uploads/{stored_name}",
    }
