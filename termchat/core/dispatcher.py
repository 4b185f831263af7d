from __future__ import annotations

import asyncio
import itertools
import logging
import random
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Dict, List, Optional, Sequence, Set, Tuple

from pydantic import BaseModel

from ..errors import AlreadyRegisteredError, NameTakenError, SendError, ServiceStoppedError
from ..models import ChatEvent, ErrorPayload, Event, PongPayload, SystemEvent, WelcomePayload
from ..util.colors import CYAN, PALETTE, RED, paint, pick_color
from ..util.names import generate_username
from ..util.sanitize import format_timestamp, sanitize
from .connection import Connection, Transport
from .history import DEFAULT_CAPACITY, HistoryBuffer
from .registry import Session, SessionRegistry


logger = logging.getLogger(__name__)


DEFAULT_GREETING = paint("[SYSTEM] Welcome to Retro Terminal Chat", CYAN)
MAX_USERNAME_LENGTH = 16
MAX_MESSAGE_LENGTH = 512


@dataclass(frozen=True)
class RegisterResult:
    accepted: bool
    name: Optional[str] = None
    reason: Optional[str] = None


class Dispatcher:
    """Owns the session registry and history, and fans events out to live connections.

    Every public operation runs under one ``asyncio.Lock``: registry changes,
    history appends and the broadcast that follows them are never interleaved
    with another operation. A connection whose write fails during any send is
    dropped inside the same step, so a dead session never stays listed.
    """

    def __init__(
        self,
        *,
        max_history: int = DEFAULT_CAPACITY,
        max_username_length: int = MAX_USERNAME_LENGTH,
        max_message_length: int = MAX_MESSAGE_LENGTH,
        send_timeout: float = 5.0,
        greeting: str = DEFAULT_GREETING,
        palette: Sequence[str] = PALETTE,
        rng: Optional[random.Random] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        self.max_username_length = max_username_length
        self.max_message_length = max_message_length
        self.send_timeout = send_timeout
        self.greeting = greeting
        self.palette = tuple(palette)
        self._rng = rng or random.Random()
        self._clock = clock or datetime.now
        self._ids = itertools.count(1)
        self._lock = asyncio.Lock()
        self._connections: Dict[str, Connection] = {}
        self._registry = SessionRegistry()
        self._history = HistoryBuffer(max_history)
        self._accepting = False
        self._releasing: Set[asyncio.Task] = set()

    # Lifecycle

    @property
    def accepting(self) -> bool:
        return self._accepting

    async def start(self) -> None:
        async with self._lock:
            self._accepting = True
        logger.info("Dispatcher accepting connections (history=%d)", self._history.capacity)

    async def stop(self) -> None:
        if self._releasing:
            await asyncio.gather(*list(self._releasing), return_exceptions=True)
        # Acquiring the lock waits out whatever operation is in flight
        async with self._lock:
            self._accepting = False
            live = len(self._connections)
        logger.info("Dispatcher stopped with %d live connection(s)", live)

    # Read-only views

    @property
    def online_count(self) -> int:
        return len(self._connections)

    def registered_names(self) -> List[str]:
        return self._registry.names()

    def history(self) -> List[Event]:
        return self._history.snapshot()

    # Operations

    def new_connection(self, transport: Transport) -> Connection:
        session = Session(id=self._next_session_id())
        return Connection(transport, session, send_timeout=self.send_timeout)

    async def on_connect(self, conn: Connection) -> WelcomePayload:
        async with self._lock:
            if not self._accepting:
                raise ServiceStoppedError("dispatcher is not accepting connections")
            self._connections[conn.id] = conn
            welcome = WelcomePayload(
                message=self.greeting,
                history=self._history.snapshot(),
                onlineCount=len(self._connections),
            )
            dropped = await self._send_private(conn, welcome)
        await self._close_dropped(dropped)
        return welcome

    async def register(self, conn: Connection, requested_name: Optional[str]) -> RegisterResult:
        async with self._lock:
            result, dropped = await self._register_locked(conn, requested_name)
        await self._close_dropped(dropped)
        return result

    async def post_message(self, conn: Connection, raw_text: str) -> bool:
        async with self._lock:
            accepted, dropped = await self._post_locked(conn, raw_text)
        await self._close_dropped(dropped)
        return accepted

    async def unregister(self, conn: Connection) -> bool:
        async with self._lock:
            leave = self._drop(conn)
            dropped = await self._broadcast(leave) if leave is not None else []
        await self._close_dropped(dropped)
        return leave is not None

    async def release(self, conn: Connection) -> bool:
        """Unregister ``conn`` even if the calling task is cancelled meanwhile.

        The removal runs in its own task; cancelling the caller only stops the
        wait, never the removal itself.
        """
        task = asyncio.ensure_future(self.unregister(conn))
        self._releasing.add(task)
        task.add_done_callback(self._releasing.discard)
        return await asyncio.shield(task)

    async def heartbeat(self, conn: Connection) -> None:
        # Never touches registry or history
        try:
            await conn.send(PongPayload().model_dump())
        except SendError as exc:
            logger.warning("Pong to %s failed: %s", conn.id, exc)
            await self.unregister(conn)
            await self._close_dropped([conn])
            return
        logger.debug("Pong sent to %s", conn.id)

    # Internals; callers hold self._lock

    async def _register_locked(
        self, conn: Connection, requested_name: Optional[str]
    ) -> Tuple[RegisterResult, List[Connection]]:
        if self._connections.get(conn.id) is not conn:
            return RegisterResult(False, reason="closed"), []

        name = sanitize(requested_name or "", self.max_username_length)
        if not name:
            name = generate_username(self._rng)

        try:
            self._check_claim(conn, name)
        except NameTakenError as exc:
            logger.warning("Registration rejected for %s: %s", conn.id, exc)
            error = ErrorPayload(message=paint("[ERROR] Username already taken", RED))
            return RegisterResult(False, reason="name_taken"), await self._send_private(conn, error)
        except AlreadyRegisteredError as exc:
            logger.warning("Registration rejected for %s: %s", conn.id, exc)
            error = ErrorPayload(message=paint(f"[ERROR] Already registered as {exc.name}", RED))
            return RegisterResult(False, name=exc.name, reason="already_registered"), await self._send_private(conn, error)

        conn.session.name = name
        conn.session.color = pick_color(self._rng, self.palette)
        self._registry.add(conn.session)
        logger.info("Session %s registered as %r (%d registered)", conn.id, name, self._registry.count())

        event = SystemEvent(
            timestamp=self._timestamp(),
            message=f"{name} joined the terminal",
            onlineCount=len(self._connections),
        )
        self._history.append(event)
        return RegisterResult(True, name=name), await self._broadcast(event)

    async def _post_locked(self, conn: Connection, raw_text: str) -> Tuple[bool, List[Connection]]:
        session = conn.session
        if not session.registered or session.id not in self._registry:
            return False, []
        text = sanitize(raw_text, self.max_message_length)
        if not text:
            return False, []

        event = ChatEvent(
            timestamp=self._timestamp(),
            username=session.name or "",
            color=session.color or "",
            message=text,
            id=session.id,
        )
        self._history.append(event)
        logger.debug("Chat from %s (%s): %d chars", session.name, session.id, len(text))
        return True, await self._broadcast(event)

    def _check_claim(self, conn: Connection, name: str) -> None:
        if conn.session.registered:
            raise AlreadyRegisteredError(conn.session.name or "")
        if self._registry.is_taken(name):
            raise NameTakenError(name)

    def _drop(self, conn: Connection) -> Optional[SystemEvent]:
        """Remove ``conn`` from the live set and registry.

        Returns the leave event (already appended to history) when the
        connection had a registered session, otherwise None.
        """
        if self._connections.get(conn.id) is conn:
            del self._connections[conn.id]
        session = self._registry.remove(conn.id)
        if session is None:
            return None
        name = session.name
        session.name = None
        session.color = None
        logger.info("Session %s (%r) left (%d live)", conn.id, name, len(self._connections))

        event = SystemEvent(
            timestamp=self._timestamp(),
            message=f"{name} left the terminal",
            onlineCount=len(self._connections),
        )
        self._history.append(event)
        return event

    async def _send_private(self, conn: Connection, payload: BaseModel) -> List[Connection]:
        try:
            await conn.send(payload.model_dump())
        except SendError as exc:
            logger.warning("Dropping %s: %s", conn.id, exc)
            leave = self._drop(conn)
            dropped = [conn]
            if leave is not None:
                dropped.extend(await self._broadcast(leave))
            return dropped
        return []

    async def _broadcast(self, event: Event) -> List[Connection]:
        """Send ``event`` to every live connection; return those that were dropped.

        Targets are the live set at the moment of sending. Leave events for
        connections dropped along the way are delivered in the same step.
        """
        dropped: List[Connection] = []
        pending: List[Event] = [event]
        while pending:
            current = pending.pop(0)
            data = current.model_dump()
            targets = list(self._connections.values())
            results = await asyncio.gather(*(c.send(data) for c in targets), return_exceptions=True)
            for conn, result in zip(targets, results):
                if not isinstance(result, BaseException):
                    continue
                logger.warning("Dropping %s after failed broadcast: %s", conn.id, result)
                dropped.append(conn)
                leave = self._drop(conn)
                if leave is not None:
                    pending.append(leave)
        return dropped

    async def _close_dropped(self, dropped: List[Connection]) -> None:
        for conn in dropped:
            await conn.close(code=1011, reason="Send failed")

    def _timestamp(self) -> str:
        return format_timestamp(self._clock())

    def _next_session_id(self) -> str:
        return f"{next(self._ids):x}{self._rng.getrandbits(24):06x}"
