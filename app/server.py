"""
Run the HTTP server. From project root:

  python -m app.server

Binds to HOST:PORT from settings (default 0.0.0.0:3000).
"""

import uvicorn

from app.core.config import get_settings
from app.core.logging_config import configure_logging


def main() -> None:
    settings = get_settings()
    configure_logging(settings.LOG_LEVEL)
    uvicorn.run(
        "app.main:app",
        host=settings.HOST,
        port=settings.PORT,
        log_config=None,
    )


if __name__ == "__main__":
    main()
