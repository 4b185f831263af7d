from __future__ import annotations

import asyncio
import random
from datetime import datetime
from typing import Any, Dict, List, Optional

import pytest
import pytest_asyncio

from termchat.core.connection import Connection
from termchat.core.dispatcher import Dispatcher


FIXED_NOW = datetime(2024, 1, 1, 12, 34, 56)


class FakeTransport:
    """In-memory stand-in for a websocket: records sends, can fail or stall."""

    def __init__(self) -> None:
        self.sent: List[Dict[str, Any]] = []
        self.closed: Optional[int] = None
        self.fail = False
        self.delay = 0.0

    async def send_json(self, data: Any) -> None:
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.fail:
            raise RuntimeError("socket is closed")
        self.sent.append(data)

    async def close(self, code: int = 1000, reason: Optional[str] = None) -> None:
        self.closed = code

    def of_type(self, type_: str) -> List[Dict[str, Any]]:
        return [m for m in self.sent if m.get("type") == type_]


@pytest.fixture
def rng() -> random.Random:
    return random.Random(1234)


@pytest_asyncio.fixture
async def dispatcher(rng: random.Random) -> Dispatcher:
    d = Dispatcher(rng=rng, send_timeout=0.2, clock=lambda: FIXED_NOW)
    await d.start()
    return d


@pytest.fixture
def connect(dispatcher: Dispatcher):
    async def _connect() -> Connection:
        conn = dispatcher.new_connection(FakeTransport())
        await dispatcher.on_connect(conn)
        return conn

    return _connect
