from __future__ import annotations

import logging
from pathlib import Path

from fastapi import FastAPI
from fastapi.responses import FileResponse
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException


logger = logging.getLogger(__name__)


class ClientBundle(StaticFiles):
    """Static files with ``index.html`` served for any unknown path."""

    async def get_response(self, path: str, scope):
        try:
            return await super().get_response(path, scope)
        except StarletteHTTPException as exc:
            if exc.status_code != 404:
                raise
            index = Path(str(self.directory)) / "index.html"
            if index.is_file():
                return FileResponse(index)
            raise


def mount_client(app: FastAPI, directory: Path) -> bool:
    if not directory.is_dir():
        logger.warning("Static directory %s not found; client bundle will not be served", directory)
        return False
    app.mount("/", ClientBundle(directory=str(directory), html=True), name="client")
    logger.info("Serving client bundle from %s", directory.resolve())
    return True
