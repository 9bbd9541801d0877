"""Logging setup for the scraper and its CLI.

Records go to stderr unless told otherwise, since the CLI prints its JSON
result on stdout. Inside a Kubernetes pod the default switches to stdout so
the cluster's log collector picks them up.
"""

from __future__ import annotations

import json
import logging
import os
import sys
from logging.handlers import RotatingFileHandler
from typing import List, Literal, Optional

LogOutput = Literal["stderr", "stdout", "file", "both"]
LogFormat = Literal["text", "json"]

TEXT_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(filename)s:%(lineno)d | %(message)s"
DEFAULT_LOG_FILE = "logs/newsharvest.log"
MAX_LOG_BYTES = 10 * 1024 * 1024
LOG_BACKUPS = 5

# Chatty at INFO when requests retries or sniffs encodings.
_QUIET_LOGGERS = ("urllib3", "charset_normalizer")
_SERVICE_ACCOUNT_DIR = "/var/run/secrets/kubernetes.io/serviceaccount"


class JsonFormatter(logging.Formatter):
    """One JSON object per line."""

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "timestamp": self.formatTime(record),
            "level": record.levelname,
            "name": record.name,
            "file": f"{record.filename}:{record.lineno}",
            "message": record.getMessage(),
        }
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False)


def running_in_kubernetes() -> bool:
    return bool(
        os.environ.get("K8S_CLUSTER")
        or os.environ.get("KUBERNETES_SERVICE_HOST")
        or os.path.exists(_SERVICE_ACCOUNT_DIR)
    )


def _default_output() -> str:
    if "LOG_OUTPUT" in os.environ:
        return os.environ["LOG_OUTPUT"].lower()
    return "stdout" if running_in_kubernetes() else "stderr"


def _build_handlers(output: str, file_path: str) -> List[logging.Handler]:
    handlers: List[logging.Handler] = []
    if output in ("stderr", "both"):
        handlers.append(logging.StreamHandler(sys.stderr))
    elif output == "stdout":
        handlers.append(logging.StreamHandler(sys.stdout))
    if output in ("file", "both"):
        directory = os.path.dirname(file_path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        handlers.append(RotatingFileHandler(file_path, maxBytes=MAX_LOG_BYTES, backupCount=LOG_BACKUPS))
    return handlers


def configure_logging(
    level: str | int | None = None,
    output: LogOutput | None = None,
    file_path: str | None = None,
    log_format: LogFormat | None = None,
    module: Optional[str] = None,
) -> None:
    """(Re)initialise the root logger.

    Unset arguments fall back to ``LOG_LEVEL``, ``LOG_OUTPUT``,
    ``LOG_FILE_PATH`` and ``LOG_FORMAT``, read at call time so a ``.env``
    loaded by the CLI takes effect. ``module`` additionally pins that
    logger's level.
    """
    level = level if level is not None else os.environ.get("LOG_LEVEL", "INFO").upper()
    output = output or _default_output()
    file_path = file_path or os.environ.get("LOG_FILE_PATH") or DEFAULT_LOG_FILE
    log_format = log_format or os.environ.get("LOG_FORMAT", "text").lower()

    formatter = JsonFormatter() if log_format == "json" else logging.Formatter(TEXT_FORMAT)
    root = logging.getLogger()
    root.setLevel(level)
    root.handlers.clear()
    for handler in _build_handlers(output, file_path):
        handler.setFormatter(formatter)
        root.addHandler(handler)

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
    if module:
        logging.getLogger(module).setLevel(level)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
