import logging
import sys

from plantcare.core.config import settings

LOG_FORMAT = "%(asctime)s  %(levelname)-8s  %(name)s: %(message)s"


def configure_logging(level: str | None = None) -> None:
    """Install a single stdout handler on the root logger. Safe to call twice."""
    root = logging.getLogger()
    root.setLevel((level or settings.LOG_LEVEL).upper())
    if any(getattr(h, "_plantcare", False) for h in root.handlers):
        return

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    handler._plantcare = True
    root.addHandler(handler)


def mask_token(token: str | None) -> str:
    if not token:
        return "<none>"
    return f"{token[:20]}..."
