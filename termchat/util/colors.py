from __future__ import annotations

import random
from typing import Optional, Sequence


GREEN = "\x1b[32m"
CYAN = "\x1b[36m"
YELLOW = "\x1b[33m"
RED = "\x1b[31m"
WHITE = "\x1b[37m"
RESET = "\x1b[0m"

NAMED = {
    "green": GREEN,
    "cyan": CYAN,
    "yellow": YELLOW,
    "red": RED,
    "white": WHITE,
}

# Red is reserved for errors, so users never get it.
PALETTE = (GREEN, CYAN, YELLOW, WHITE)


def pick_color(rng: Optional[random.Random] = None, palette: Sequence[str] = PALETTE) -> str:
    rng = rng or random.Random()
    return rng.choice(palette)


def paint(text: str, color: str) -> str:
    return f"{color}{text}{RESET}"


def parse_color(value: str) -> Optional[str]:
    if not value:
        return None
    v = value.strip().lower()
    if v in NAMED:
        return NAMED[v]
    if v.startswith("\x1b[") and v.endswith("m"):
        return value.strip()
    return None
