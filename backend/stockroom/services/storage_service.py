# Overview: Service-layer operations for uploaded files (avatars, product and invoice photos).

"""
File Storage Service

Files live under UPLOAD_FOLDER/<bucket>/<owner>/<random>.<ext> and are
served back at PUBLIC_UPLOAD_URL/<bucket>/<owner>/<random>.<ext>.

Only image extensions are accepted. The stored name is random so an
upload never overwrites another one and user-supplied names never reach
the filesystem.
"""

import os
import secrets

from flask import current_app
from werkzeug.utils import secure_filename

BUCKET_AVATARS = "avatars"
BUCKET_PRODUCT_PHOTOS = "product-photos"
BUCKET_INVOICE_PHOTOS = "invoice-photos"

BUCKETS = (BUCKET_AVATARS, BUCKET_PRODUCT_PHOTOS, BUCKET_INVOICE_PHOTOS)

ALLOWED_EXTENSIONS = {"jpg", "jpeg", "png", "gif", "webp"}


class StorageError(Exception):
    """Raised when an upload is rejected or cannot be stored."""
    pass


def _extension(filename: str) -> str:
    safe = secure_filename(filename or "")
    if "." not in safe:
        return ""
    return safe.rsplit(".", 1)[1].lower()


def bucket_root(bucket: str) -> str:
    if bucket not in BUCKETS:
        raise StorageError(f"Unknown bucket: {bucket}")
    return os.path.join(current_app.config["UPLOAD_FOLDER"], bucket)


def public_url(bucket: str, path: str) -> str:
    base = current_app.config.get("PUBLIC_UPLOAD_URL", "/uploads").rstrip("/")
    return f"{base}/{bucket}/{path}"


def save_upload(bucket: str, owner: str | int, file_storage) -> str:
    """
    Store an uploaded file and return its public URL.

    file_storage is a werkzeug FileStorage (request.files[...]).
    """
    if file_storage is None or not file_storage.filename:
        raise StorageError("No file uploaded")

    ext = _extension(file_storage.filename)
    if ext not in ALLOWED_EXTENSIONS:
        raise StorageError(
            f"Unsupported file type. Allowed: {', '.join(sorted(ALLOWED_EXTENSIONS))}"
        )

    owner_dir = secure_filename(str(owner)) or "shared"
    relative_path = f"{owner_dir}/{secrets.token_hex(16)}.{ext}"

    target_dir = os.path.join(bucket_root(bucket), owner_dir)
    try:
        os.makedirs(target_dir, exist_ok=True)
        file_storage.save(os.path.join(bucket_root(bucket), relative_path))
    except OSError as e:
        current_app.logger.exception("Failed to store upload in bucket %s", bucket)
        raise StorageError("Could not store file") from e

    return public_url(bucket, relative_path)
