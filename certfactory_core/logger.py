"""
certfactory_core.logger
-----------------------
Every package logger lives under the "certfactory" namespace. Handlers are
attached to that parent only; module loggers propagate to it, so a log file
added at runtime (TLSConfig.log_file) also receives records from loggers
created at import time.
"""

import logging, json, sys, time, os

ROOT_LOGGER = "certfactory"

_FORMAT = json.dumps({
    "ts": "%(asctime)s",
    "level": "%(levelname)s",
    "name": "%(name)s",
    "msg": "%(message)s"
})


def _formatter() -> logging.Formatter:
    formatter = logging.Formatter(fmt=_FORMAT, datefmt="%Y-%m-%dT%H:%M:%SZ")
    formatter.converter = time.gmtime  # UTC timestamps
    return formatter


def get_logger(component: str = "", level=logging.INFO) -> logging.Logger:
    """Return the package logger, or its child for `component`."""
    root = logging.getLogger(ROOT_LOGGER)
    if not root.handlers:
        root.setLevel(level)
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(_formatter())
        root.addHandler(handler)
    return root.getChild(component) if component else root


def add_log_file(path: str) -> logging.FileHandler:
    """Mirror package logs into `path`; adding the same file twice is a no-op."""
    root = get_logger()
    path = os.path.abspath(path)
    for h in root.handlers:
        if isinstance(h, logging.FileHandler) and h.baseFilename == path:
            return h

    os.makedirs(os.path.dirname(path), exist_ok=True)
    handler = logging.FileHandler(path)
    handler.setFormatter(_formatter())
    root.addHandler(handler)
    return handler
