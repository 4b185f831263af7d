from __future__ import annotations

import random
from typing import Optional, Sequence


ADJECTIVES = (
    "swift", "lunar", "cyber", "neon", "phantom", "storm",
    "zero", "rogue", "vortex", "static", "chrome", "void",
)

NOUNS = (
    "fox", "hawk", "pulse", "sync", "echo", "wave",
    "blade", "drift", "grid", "flux", "code", "byte",
)

NUMBER_RANGE = 999


def generate_username(
    rng: Optional[random.Random] = None,
    adjectives: Sequence[str] = ADJECTIVES,
    nouns: Sequence[str] = NOUNS,
) -> str:
    """Return ``"{adjective}-{noun}-{number}"`` with number in ``[0, 999)``.

    No collision check happens here; the caller decides whether the name is free.
    """
    rng = rng or random.Random()
    adj = rng.choice(adjectives)
    noun = rng.choice(nouns)
    num = rng.randrange(NUMBER_RANGE)
    return f"{adj}-{noun}-{num}"
