"""
ASGI Entry Point for the reportocr API.

This module exposes the `app` object required by ASGI servers (Uvicorn/Gunicorn).
It loads environment variables from `.env` before the application factory
runs, so AWS settings are visible to the lifespan wiring.

Usage
-----
Run via the module entry point:
    $ uv run python -m reportocr.api.server

Or via uvicorn directly:
    $ uv run uvicorn reportocr.api.server:app --reload
"""

from pathlib import Path

import uvicorn
from dotenv import load_dotenv

from reportocr.api.app import create_app
from reportocr.core.settings import get_logger, load_settings

load_dotenv(dotenv_path=Path(".env"))

app = create_app()


def main() -> None:
    """Run the API server locally for development."""
    settings = load_settings()
    logger = get_logger("reportocr.server")
    logger.info(
        "Starting server | region=%s credentials=%s batch_limit=%d rpm=%d",
        settings.aws_region,
        "explicit" if settings.has_explicit_credentials else "default chain",
        settings.max_batch_size,
        settings.document_requests_per_minute,
    )

    uvicorn.run(
        "reportocr.api.server:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.is_dev,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
