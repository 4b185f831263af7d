from __future__ import annotations

import asyncio
import logging
from typing import Any, Optional, Protocol

from ..errors import SendError
from .registry import Session


logger = logging.getLogger(__name__)


class Transport(Protocol):
    async def send_json(self, data: Any) -> None: ...

    async def close(self, code: int = 1000, reason: Optional[str] = None) -> None: ...


class Connection:
    """One live transport plus its (possibly unregistered) session.

    Writes are serialized per connection and bounded by ``send_timeout`` so a
    stalled peer only ever holds up itself.
    """

    def __init__(self, transport: Transport, session: Session, send_timeout: float = 5.0) -> None:
        self.transport = transport
        self.session = session
        self.send_timeout = send_timeout
        self.open = True
        self._write_lock = asyncio.Lock()

    @property
    def id(self) -> str:
        return self.session.id

    async def _write(self, data: Any) -> None:
        async with self._write_lock:
            await self.transport.send_json(data)

    async def send(self, data: Any) -> None:
        if not self.open:
            raise SendError(f"connection {self.id} is closed")
        try:
            await asyncio.wait_for(self._write(data), timeout=self.send_timeout)
        except asyncio.TimeoutError as exc:
            self.open = False
            raise SendError(f"send to {self.id} timed out after {self.send_timeout:.1f}s") from exc
        except Exception as exc:
            self.open = False
            raise SendError(f"send to {self.id} failed: {exc!r}") from exc

    async def close(self, code: int = 1000, reason: Optional[str] = None) -> None:
        self.open = False
        try:
            await asyncio.wait_for(self.transport.close(code=code, reason=reason), timeout=self.send_timeout)
        except Exception as exc:
            # The peer is usually already gone at this point
            logger.debug("Closing %s failed: %r", self.id, exc)

    def __repr__(self) -> str:
        return f"Connection(id={self.id!r}, name={self.session.name!r}, open={self.open})"
