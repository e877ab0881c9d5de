"""
Run the service with uvicorn.

Usage:
    python -m src.service
"""
from __future__ import annotations

import logging

import uvicorn

from .settings import get_settings


# PUBLIC_INTERFACE
def main() -> None:
    """Serve src.service.main:app on SERVICE_HOST:SERVICE_PORT."""
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    settings = get_settings()
    uvicorn.run("src.service.main:app", host=settings.host, port=settings.port)


if __name__ == "__main__":
    main()
