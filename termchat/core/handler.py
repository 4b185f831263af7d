from __future__ import annotations

import logging
from typing import Optional, Union

from fastapi import WebSocket

from ..errors import FrameError, ServiceStoppedError
from ..models import MessageFrame, PingFrame, RegisterFrame, decode_frame
from .connection import Connection, Transport
from .dispatcher import Dispatcher


logger = logging.getLogger(__name__)


class ConnectionHandler:
    """Per-connection adapter between a transport and the dispatcher.

    Frames from one connection are handled strictly in arrival order; the
    dispatcher is told about the close exactly once.
    """

    def __init__(self, dispatcher: Dispatcher, transport: Transport) -> None:
        self.dispatcher = dispatcher
        self.connection: Connection = dispatcher.new_connection(transport)
        self._closed = False

    async def on_connect(self) -> bool:
        try:
            await self.dispatcher.on_connect(self.connection)
        except ServiceStoppedError:
            logger.info("Refusing connection %s: server shutting down", self.connection.id)
            self._closed = True
            await self.connection.close(code=1001, reason="Server shutting down")
            return False
        return True

    async def on_frame(self, raw: Optional[Union[str, bytes]]) -> None:
        if raw is None:
            logger.warning("Ignoring non-text frame from %s", self.connection.id)
            return
        try:
            frame = decode_frame(raw)
        except FrameError as exc:
            logger.warning("Ignoring malformed frame from %s: %s", self.connection.id, exc)
            return

        if isinstance(frame, RegisterFrame):
            await self.dispatcher.register(self.connection, frame.username)
        elif isinstance(frame, MessageFrame):
            await self.dispatcher.post_message(self.connection, frame.message)
        elif isinstance(frame, PingFrame):
            await self.dispatcher.heartbeat(self.connection)

    async def on_close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self.connection.open = False
        await self.dispatcher.release(self.connection)

    async def serve(self, ws: WebSocket) -> None:
        if not await self.on_connect():
            return
        try:
            while True:
                message = await ws.receive()
                if message["type"] == "websocket.disconnect":
                    break
                try:
                    await self.on_frame(message.get("text"))
                except Exception:
                    logger.exception("Unexpected error handling frame from %s", self.connection.id)
        except Exception as exc:
            logger.warning("Transport error on %s: %r", self.connection.id, exc)
        finally:
            await self.on_close()
