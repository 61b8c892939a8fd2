"""
Run the proxy with uvicorn.

Usage:
    python -m src
"""

import uvicorn

from .core.config import settings
from .core.logging import setup_logging


def main():
    logger = setup_logging()
    logger.info(f"Server started at http://localhost:{settings.port}/")
    uvicorn.run("src.api.main:app", host=settings.host, port=settings.port, log_config=None)


if __name__ == "__main__":
    main()
