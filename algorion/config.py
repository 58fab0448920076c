"""
Configuration - Environment settings and logging setup.
"""

import logging
import os

# Environment configuration
ALGORION_ENV = os.getenv("ALGORION_ENV", "development")
ALGORION_CONTENT_PATH = os.getenv("ALGORION_CONTENT_PATH", None)
_initial_ph = os.getenv("ALGORION_INITIAL_PH")
# None leaves the content's game_config.initial_ph in charge
ALGORION_INITIAL_PH = int(_initial_ph) if _initial_ph else None
ALGORION_LOG_LEVEL = os.getenv("ALGORION_LOG_LEVEL", "INFO")
ALLOWED_ORIGINS = os.getenv("ALLOWED_ORIGINS", "*").split(",")
ALGORION_HOST = os.getenv("ALGORION_HOST", "0.0.0.0")
ALGORION_PORT = int(os.getenv("ALGORION_PORT", "3001"))

LOG_FORMAT = "%(asctime)s %(levelname)-8s %(name)s - %(message)s"


def configure_logging(level: str | int | None = None) -> None:
    """Configure root logging once for the process."""
    level = level or ALGORION_LOG_LEVEL
    if isinstance(level, str):
        level = getattr(logging, level.upper(), logging.INFO)
    logging.basicConfig(level=level, format=LOG_FORMAT)
