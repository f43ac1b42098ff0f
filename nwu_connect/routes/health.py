from __future__ import annotations

from fastapi import APIRouter

router = APIRouter(tags=["health"])


@router.get("/")
def root():
    return {"status": "ok", "service": "nwu-connect"}


@router.get("/health")
def health():
    return {"status": "ok"}
