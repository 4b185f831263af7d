import logging
import sys

import uvicorn
from dotenv import load_dotenv

from .config import Config
from .errors import ConfigError


def setup_logging(level: str = "info") -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


def main() -> None:
    load_dotenv()
    try:
        config = Config.load()
    except ConfigError as exc:
        setup_logging()
        logging.error("Failed to load configuration: %s", exc)
        sys.exit(1)
    setup_logging(config.log_level)
    logging.info(
        "Configuration loaded. bind=%s port=%d history=%d static_dir=%s",
        config.bind,
        config.port,
        config.max_history,
        config.static_dir,
    )
    uvicorn.run(
        "termchat.main:app",
        host=config.bind,
        port=config.port,
        reload=False,
        log_level=config.log_level,
        timeout_graceful_shutdown=int(config.send_timeout) + 1,
    )


if __name__ == "__main__":
    main()
