"""
Dependency wiring for the FastAPI app.

Collaborators are process-wide singletons; tests swap them through
``app.dependency_overrides``.
"""

from __future__ import annotations

from fastapi import Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from nwu_connect.auth import (
    AuthUser,
    FirebaseIdentityVerifier,
    IdentityVerifier,
    InMemoryIdentityVerifier,
)
from nwu_connect.config import Settings, get_settings
from nwu_connect.db import DbClient, InMemoryDbClient
from nwu_connect.db_sql import SqlDbClient
from nwu_connect.errors import UnauthorizedError
from nwu_connect.firebase import get_firebase_app
from nwu_connect.push import FirebasePushGateway, InMemoryPushGateway, PushGateway
from nwu_connect.queue import InMemoryJobQueue, JobQueue, RedisJobQueue
from nwu_connect.realtime import (
    FirebaseRealtimeClient,
    InMemoryRealtimeClient,
    RealtimeClient,
)
from nwu_connect.records import UserRecord
from nwu_connect.storage import InMemoryStorageClient, R2StorageClient, StorageClient

_db_client: DbClient | None = None
_identity_verifier: IdentityVerifier | None = None
_realtime_client: RealtimeClient | None = None
_push_gateway: PushGateway | None = None
_storage_client: StorageClient | None = None
_queue_client: JobQueue | None = None

bearer_scheme = HTTPBearer(auto_error=False)


def _use_firebase(settings: Settings) -> bool:
    return settings.firebase_configured and not settings.use_in_memory_backends


def get_db_client() -> DbClient:
    """
    Return a singleton DB client so state persists across requests.
    """
    global _db_client
    if _db_client:
        return _db_client

    settings = get_settings()
    if settings.use_in_memory_backends or not settings.database_url:
        _db_client = InMemoryDbClient()
    else:
        _db_client = SqlDbClient(settings.database_url)
    return _db_client


def get_identity_verifier() -> IdentityVerifier:
    global _identity_verifier
    if _identity_verifier:
        return _identity_verifier

    settings = get_settings()
    if _use_firebase(settings):
        _identity_verifier = FirebaseIdentityVerifier(get_firebase_app(settings))
    else:
        _identity_verifier = InMemoryIdentityVerifier()
    return _identity_verifier


def get_realtime_client() -> RealtimeClient:
    global _realtime_client
    if _realtime_client:
        return _realtime_client

    settings = get_settings()
    if _use_firebase(settings) and settings.firebase_database_url:
        _realtime_client = FirebaseRealtimeClient(get_firebase_app(settings))
    else:
        _realtime_client = InMemoryRealtimeClient()
    return _realtime_client


def get_push_gateway() -> PushGateway:
    global _push_gateway
    if _push_gateway:
        return _push_gateway

    settings = get_settings()
    if _use_firebase(settings):
        _push_gateway = FirebasePushGateway(get_firebase_app(settings))
    else:
        _push_gateway = InMemoryPushGateway()
    return _push_gateway


def get_storage_client() -> StorageClient:
    global _storage_client
    if _storage_client:
        return _storage_client

    settings = get_settings()
    if settings.use_in_memory_backends or not settings.r2_bucket_name:
        _storage_client = InMemoryStorageClient()
    else:
        _storage_client = R2StorageClient(
            account_id=settings.r2_account_id or "",
            bucket=settings.r2_bucket_name,
            access_key_id=settings.r2_access_key_id or "",
            secret_access_key=settings.r2_secret_access_key or "",
            public_domain=settings.r2_public_domain,
        )
    return _storage_client


def get_queue_client() -> JobQueue:
    """
    Return a singleton queue client for dispatching broadcasts to workers.
    """
    global _queue_client
    if _queue_client:
        return _queue_client

    settings = get_settings()
    if settings.redis_url:
        _queue_client = RedisJobQueue(
            url=settings.redis_url,
            queue_key=settings.redis_queue_key,
        )
    else:
        _queue_client = InMemoryJobQueue()
    return _queue_client


def get_auth_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    verifier: IdentityVerifier = Depends(get_identity_verifier),
) -> AuthUser:
    if credentials is None or not credentials.credentials:
        raise HTTPException(status_code=401, detail="Not authenticated")
    try:
        return verifier.verify(credentials.credentials)
    except UnauthorizedError:
        raise HTTPException(status_code=401, detail="Invalid or expired token")


def get_active_user(
    auth_user: AuthUser = Depends(get_auth_user),
    db: DbClient = Depends(get_db_client),
) -> AuthUser:
    """Authenticated caller whose account is not banned."""
    user = db.get_user_by_uid(auth_user.uid)
    if user and user.is_banned:
        raise HTTPException(status_code=403, detail="Account is banned")
    return auth_user


def require_admin(
    auth_user: AuthUser = Depends(get_auth_user),
    db: DbClient = Depends(get_db_client),
) -> UserRecord:
    user = db.get_user_by_uid(auth_user.uid)
    if not user or not user.is_admin:
        raise HTTPException(status_code=403, detail="Admin access required")
    return user
