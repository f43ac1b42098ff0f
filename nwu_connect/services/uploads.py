"""
Presigned direct-to-bucket uploads.
"""

from __future__ import annotations

from nwu_connect.constants import PRESIGNED_URL_EXPIRY_SECONDS, UPLOAD_FOLDERS
from nwu_connect.errors import InvalidRequestError
from nwu_connect.records import new_id
from nwu_connect.storage import StorageClient


def create_presigned_upload(
    mime_type: str, folder: str = "profiles", *, storage: StorageClient
) -> dict:
    kind, _, subtype = mime_type.partition("/")
    if kind != "image" or not subtype:
        raise InvalidRequestError("Only image uploads are allowed")
    if folder not in UPLOAD_FOLDERS:
        raise InvalidRequestError(f"Unknown upload folder: {folder}")
    key = f"{folder}/{new_id()}.{subtype}"
    return {
        "upload_url": storage.presign_put(
            key, mime_type, expires_in=PRESIGNED_URL_EXPIRY_SECONDS
        ),
        "public_url": storage.public_url(key),
        "key": key,
    }
