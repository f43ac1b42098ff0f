"""
HTTP routes, one module per resource.
"""

from __future__ import annotations

from fastapi import APIRouter

from nwu_connect.routes import (
    admin,
    chat,
    connect,
    feed,
    health,
    notifications,
    profile,
    reports,
    upload,
    users,
)

router = APIRouter()
for module in (
    health,
    users,
    profile,
    feed,
    connect,
    chat,
    notifications,
    reports,
    upload,
    admin,
):
    router.include_router(module.router)
