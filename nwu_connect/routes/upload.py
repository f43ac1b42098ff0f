from __future__ import annotations

from fastapi import APIRouter, Depends

from nwu_connect.auth import AuthUser
from nwu_connect.dependencies import get_active_user, get_storage_client
from nwu_connect.schemas import PresignedUrlRequest, PresignedUrlResponse
from nwu_connect.services.uploads import create_presigned_upload
from nwu_connect.storage import StorageClient

router = APIRouter(prefix="/upload", tags=["upload"])


@router.post("/presigned-url", response_model=PresignedUrlResponse)
def presigned_url(
    payload: PresignedUrlRequest,
    auth_user: AuthUser = Depends(get_active_user),
    storage: StorageClient = Depends(get_storage_client),
):
    """Signed PUT URL for a direct image upload to the bucket."""
    return PresignedUrlResponse(
        **create_presigned_upload(payload.mime_type, payload.folder, storage=storage)
    )
