"""
Identity provider abstraction: verifies bearer tokens issued to the mobile client.
"""

from __future__ import annotations

import logging
import secrets
from dataclasses import dataclass, field
from typing import Optional, Protocol

import firebase_admin
from firebase_admin import auth as firebase_auth

from nwu_connect.errors import UnauthorizedError

logger = logging.getLogger(__name__)


@dataclass
class AuthUser:
    """Claims taken from a verified ID token."""

    uid: str
    email: Optional[str] = None


class IdentityVerifier(Protocol):
    def verify(self, token: str) -> AuthUser:
        """Return the token's claims or raise UnauthorizedError."""
        ...


@dataclass
class InMemoryIdentityVerifier:
    """Issues opaque tokens for local runs and tests."""

    tokens: dict[str, AuthUser] = field(default_factory=dict)

    def issue(self, uid: str, email: Optional[str] = None) -> str:
        token = secrets.token_urlsafe(16)
        self.tokens[token] = AuthUser(uid=uid, email=email)
        return token

    def verify(self, token: str) -> AuthUser:
        claims = self.tokens.get(token)
        if claims is None:
            raise UnauthorizedError("Invalid or expired token")
        return claims


class FirebaseIdentityVerifier:
    def __init__(self, app: firebase_admin.App):
        self.app = app

    def verify(self, token: str) -> AuthUser:
        try:
            decoded = firebase_auth.verify_id_token(token, app=self.app)
        except (
            firebase_auth.InvalidIdTokenError,
            firebase_auth.ExpiredIdTokenError,
            firebase_auth.RevokedIdTokenError,
            firebase_auth.CertificateFetchError,
            ValueError,
        ) as exc:
            logger.info("Rejected ID token: %s", exc)
            raise UnauthorizedError("Invalid or expired token") from exc
        return AuthUser(uid=decoded["uid"], email=decoded.get("email"))
