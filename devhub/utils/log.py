"""Logging setup and structured event lines.

Every line emitted through :func:`log_event` reads ``event_name: key=value``
so the service log can be grepped by event. Post text and tokens are never
logged; log ids and text lengths instead.
"""

import logging
import os
import sys

EVENT_APP_START = "app_start"
EVENT_DB_CONNECTED = "db_connected"
EVENT_POST_CREATED = "post_created"
EVENT_POST_DELETED = "post_deleted"
EVENT_POST_LIKED = "post_liked"
EVENT_POST_UNLIKED = "post_unliked"
EVENT_COMMENT_ADDED = "comment_added"
EVENT_COMMENT_DELETED = "comment_deleted"
EVENT_DB_READ_FAILED = "db_read_failed"
EVENT_DB_WRITE_FAILED = "db_write_failed"
EVENT_SAVE_CONFLICT = "save_conflict"
EVENT_UNHANDLED_ERROR = "unhandled_error"

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

_HANDLER_ATTR = "_devhub"


def setup_logging(level=None) -> None:
    """Attach the service handler to the root logger.

    Calling it again is a no-op, so the app factory can run it on every
    ``create_app()`` without duplicating output.
    """
    root = logging.getLogger()
    root.setLevel(level or LOG_LEVEL)

    for h in root.handlers:
        if getattr(h, _HANDLER_ATTR, False):
            return

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        logging.Formatter(
            fmt="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
    )
    setattr(handler, _HANDLER_ATTR, True)
    root.addHandler(handler)


def log_event(logger: logging.Logger, level: str, event_name: str, **kwargs: object) -> None:
    """Emit ``event_name: k=v ...`` at ``level`` (``"info"``, ``"error"``, ``"exception"``...)."""
    parts = " ".join(f"{k}={v}" for k, v in kwargs.items())
    message = f"{event_name}: {parts}" if parts else event_name
    log_fn = getattr(logger, level, logger.info)
    log_fn(message)
