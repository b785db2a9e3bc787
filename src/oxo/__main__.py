"""Entry point for running oxo via ``python -m oxo``."""

from __future__ import annotations

import logging
import os

import uvicorn


def main() -> None:
    """Start the FastAPI-powered oxo game server."""

    host = os.environ.get("OXO_HOST", "0.0.0.0")
    port = int(os.environ.get("OXO_PORT", "8000"))
    log_level = os.environ.get("OXO_LOG_LEVEL", "INFO").upper()
    logging.basicConfig(
        level=log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    uvicorn.run("oxo.api:app", host=host, port=port, reload=False, log_level=log_level.lower())


if __name__ == "__main__":
    main()
