"""
Configuration - Environment driven settings.

Environment variables:
    TODOTAC_ENV             development | production
    GEMINI_API_KEY          Gemini API key (API_KEY is accepted too)
    TODOTAC_MODEL           Model used by both oracles
    TODOTAC_ORACLE          gemini | offline (default: gemini when a key is set)
    TODOTAC_MOVE_DELAY      Seconds to show the opponent's reasoning before it moves
    TODOTAC_ORACLE_TIMEOUT  Seconds before an oracle call is abandoned
    ALLOWED_ORIGINS         Comma separated CORS origins
    TODOTAC_LOG_LEVEL       Logging level name
"""

import logging
import os

TODOTAC_ENV = os.getenv("TODOTAC_ENV", "development")
GEMINI_API_KEY = os.getenv("GEMINI_API_KEY") or os.getenv("API_KEY")
TODOTAC_MODEL = os.getenv("TODOTAC_MODEL", "gemini-3-flash-preview")
TODOTAC_ORACLE = os.getenv("TODOTAC_ORACLE", "gemini" if GEMINI_API_KEY else "offline")
TODOTAC_MOVE_DELAY = float(os.getenv("TODOTAC_MOVE_DELAY", "1.5"))
TODOTAC_ORACLE_TIMEOUT = float(os.getenv("TODOTAC_ORACLE_TIMEOUT", "30"))
ALLOWED_ORIGINS = os.getenv("ALLOWED_ORIGINS", "*").split(",")
TODOTAC_LOG_LEVEL = os.getenv("TODOTAC_LOG_LEVEL", "INFO")

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(level: str | None = None):
    """Configure root logging for the CLI and server."""
    logging.basicConfig(
        level=getattr(logging, (level or TODOTAC_LOG_LEVEL).upper(), logging.INFO),
        format=LOG_FORMAT,
    )
