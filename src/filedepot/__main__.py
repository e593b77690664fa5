"""Run the service with uvicorn: ``python -m src.filedepot``."""

import uvicorn

from src.filedepot.core.config import get_settings

if __name__ == "__main__":
    settings = get_settings()
    uvicorn.run(
        "src.filedepot.main:app",
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )
