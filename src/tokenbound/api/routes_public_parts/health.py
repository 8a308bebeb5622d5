from __future__ import annotations

from typing import Any, Dict

from fastapi import APIRouter, Request

router = APIRouter()


@router.get("/health")
def health(request: Request) -> Dict[str, Any]:
    host = getattr(request.app.state, "host", None)
    return {
        "ok": True,
        "ready": host is not None,
        "chain_id": int(host.chain_id) if host is not None else None,
    }
