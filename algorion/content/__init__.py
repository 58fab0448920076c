"""
Content - Static game content (houses, fragments, events, heroes).

Loaded once at startup and only read afterwards.
"""

from .catalog import (
    ContentCatalog,
    Fragment,
    HouseContent,
    HeroContent,
    FinalChallenge,
    DEFAULT_SEED_PATH,
)

__all__ = [
    "ContentCatalog",
    "Fragment",
    "HouseContent",
    "HeroContent",
    "FinalChallenge",
    "DEFAULT_SEED_PATH",
]
