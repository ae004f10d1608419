"""
Logging helpers shared by the whole application.

Every module grabs its own logger:

    from app.utils import get_logger

    log = get_logger(__name__)
"""
import logging
import os
import sys

from app.core import config

LOG_FORMAT = "%(asctime)s [%(process_tag)s] %(levelname)s %(name)s: %(message)s"

_handler: logging.Handler | None = None
_process_tag = "main"


class _ProcessTagFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        record.process_tag = _process_tag
        return True


def _build_handler() -> logging.Handler:
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    handler.addFilter(_ProcessTagFilter())
    return handler


def _root_logger() -> logging.Logger:
    global _handler
    root = logging.getLogger("app")
    if _handler is None:
        _handler = _build_handler()
        root.addHandler(_handler)
        root.setLevel(config.LOG_LEVEL)
        root.propagate = False
    return root


def get_logger(name: str) -> logging.Logger:
    """Return a logger living under the application's root logger."""
    root = _root_logger()
    if name == root.name or name.startswith(root.name + "."):
        return logging.getLogger(name)
    return root.getChild(name)


def reopen_logging(tag: str | None = None) -> None:
    """
    Re-create the stdout handler, optionally with a new process tag.

    Forked worker processes call this so their output is labelled with the
    worker name instead of the parent's.
    """
    global _handler, _process_tag
    root = _root_logger()
    _process_tag = tag or str(os.getpid())
    if _handler is not None:
        root.removeHandler(_handler)
        _handler.close()
    _handler = _build_handler()
    root.addHandler(_handler)
