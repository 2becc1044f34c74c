from __future__ import annotations

import uvicorn

from hidetok.config import get_settings
from hidetok.utils.logging import configure_logging, get_logger
from hidetok.web.app import create_app


logger = get_logger("main")


def main() -> None:
    settings = get_settings()
    configure_logging(settings.log_level)
    app = create_app(settings)
    logger.info("starting_web", host=settings.web_host, port=settings.web_port)
    uvicorn.run(
        app,
        host=settings.web_host,
        port=settings.web_port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
