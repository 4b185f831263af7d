from __future__ import annotations

import re
from datetime import datetime
from typing import Optional


_ANGLE_BRACKETS = re.compile(r"[<>]")


def sanitize(text: str, max_len: int) -> str:
    """Truncate to ``max_len`` characters, drop ``<``/``>`` and trim whitespace.

    Truncation happens first, so the result may be shorter than ``max_len``
    once brackets and surrounding whitespace are removed.
    """
    if not text:
        return ""
    return _ANGLE_BRACKETS.sub("", text[:max_len]).strip()


def format_timestamp(now: Optional[datetime] = None) -> str:
    now = now or datetime.now()
    return now.strftime("%H:%M:%S")
