import logging
import sys

import uvicorn

from apitherapy.core.config import get_settings
from apitherapy.core.structured_logger import setup_logging

logger = logging.getLogger("apitherapy.startup")


def main() -> None:
    settings = get_settings()
    setup_logging(settings.logging)

    logger.info(f"{settings.app_name} v{settings.app_version} ({settings.app_env})")
    logger.info(f"Python version: {sys.version.split()[0]}")
    logger.info(f"Session slot: {settings.session.storage_dir}/{settings.session.storage_key}.json")
    logger.info(f"Starting uvicorn server on {settings.host}:{settings.port}...")

    # The session store lives in process memory, so a single worker only
    uvicorn.run(
        "apitherapy.app:app",
        host=settings.host,
        port=settings.port,
        workers=1,
        log_level=settings.logging.level.lower(),
        access_log=True,
        timeout_keep_alive=75,
        reload=settings.debug,
    )


if __name__ == "__main__":
    main()
