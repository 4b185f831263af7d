from __future__ import annotations

import time
from datetime import datetime, timezone
from typing import Any, Dict

from fastapi import APIRouter, Request


router = APIRouter()


@router.get("/health")
async def health(request: Request) -> Dict[str, Any]:
    dispatcher = request.app.state.dispatcher
    started_at = request.app.state.started_at
    return {
        "status": "ok",
        "uptime": round(time.monotonic() - started_at, 3),
        "clients": dispatcher.online_count,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
