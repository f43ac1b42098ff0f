"""
Firebase Admin SDK initialization shared by the auth, realtime and push adapters.
"""

from __future__ import annotations

import logging

import firebase_admin
from firebase_admin import credentials

from nwu_connect.config import Settings

logger = logging.getLogger(__name__)


def get_firebase_app(settings: Settings) -> firebase_admin.App:
    """Return the default Firebase app, initializing it on first use."""
    try:
        return firebase_admin.get_app()
    except ValueError:
        pass

    if settings.firebase_service_account_path:
        cred = credentials.Certificate(settings.firebase_service_account_path)
    else:
        cred = credentials.ApplicationDefault()
    options = {}
    if settings.firebase_database_url:
        options["databaseURL"] = settings.firebase_database_url
    logger.info("Initializing Firebase app")
    return firebase_admin.initialize_app(cred, options or None)
