from __future__ import annotations

import logging
import random
import time
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request, WebSocket
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .config import Config
from .core.dispatcher import Dispatcher
from .core.handler import ConnectionHandler
from .routes.health import router as health_router
from .routes.static import mount_client


logger = logging.getLogger(__name__)


def create_app(config: Optional[Config] = None, rng: Optional[random.Random] = None) -> FastAPI:
    config = config or Config.load()
    dispatcher = Dispatcher(
        max_history=config.max_history,
        max_username_length=config.max_username_length,
        max_message_length=config.max_message_length,
        send_timeout=config.send_timeout,
        greeting=config.greeting,
        palette=config.palette,
        rng=rng,
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        app.state.started_at = time.monotonic()
        await dispatcher.start()
        logger.info("Retro Terminal Chat online: ws+http on %s:%d", config.bind, config.port)
        try:
            yield
        finally:
            logger.info("Shutdown requested, draining dispatcher...")
            await dispatcher.stop()
            logger.info("Server closed")

    app = FastAPI(title="Retro Terminal Chat", version="0.1.0", lifespan=lifespan)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Attach shared state
    app.state.config = config
    app.state.dispatcher = dispatcher

    app.include_router(health_router)

    @app.exception_handler(StarletteHTTPException)
    async def http_error(request: Request, exc: StarletteHTTPException):
        if exc.status_code == 404:
            return JSONResponse({"error": "Not Found"}, status_code=404)
        return JSONResponse({"error": exc.detail}, status_code=exc.status_code)

    @app.websocket("/")
    async def chat_ws(ws: WebSocket):
        await ws.accept()
        handler = ConnectionHandler(dispatcher, ws)
        await handler.serve(ws)

    # Registered last so API and websocket routes win
    mount_client(app, config.static_dir)

    return app


app = create_app()
