"""Run the drone fleet API.

Usage:
  python main.py
"""

import logging
import os

import uvicorn

from drone_fleet.api.app import create_app
from drone_fleet.core.settings import Settings

settings = Settings()
logging.basicConfig(
    level=getattr(logging, settings.log_level, logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

app = create_app(settings)


if __name__ == "__main__":
    uvicorn.run(
        app,
        host=os.getenv("HOST", "127.0.0.1"),
        port=int(os.getenv("PORT", "8000")),
        log_level=settings.log_level.lower(),
    )
