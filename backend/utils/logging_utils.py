"""
Logging setup for the workflow runtime.

Every line is tagged with the workflow id of the run that produced it, so
interleaved runs on the Flask host can be told apart in a single stream.
"""

import json
import logging
import os
import re
from contextlib import contextmanager
from contextvars import ContextVar

NO_RUN = "-"
NOISY_LOGGERS = ("urllib3", "requests", "werkzeug")

_current_run: ContextVar[str] = ContextVar("workflow_run", default=NO_RUN)


@contextmanager
def log_run(run_id: str):
    """Tag log records emitted inside the block with ``run_id``."""
    token = _current_run.set(run_id or NO_RUN)
    try:
        yield
    finally:
        _current_run.reset(token)


class RunContextFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        record.run_id = _current_run.get()
        return True


class OneLineFormatter(logging.Formatter):
    """Collapses whitespace so multi-line payloads stay on one log line."""

    _ws_re = re.compile(r"\s+")

    def __init__(self, fmt=None, datefmt=None, max_len: int | None = None):
        super().__init__(fmt=fmt, datefmt=datefmt)
        self.max_len = max_len

    def format(self, record: logging.LogRecord) -> str:
        msg = self._ws_re.sub(" ", super().format(record)).strip()
        if self.max_len and len(msg) > self.max_len:
            msg = msg[: self.max_len] + " …(truncated)"
        return msg


def compact_json(data) -> str:
    try:
        return json.dumps(data, separators=(",", ":"), ensure_ascii=False, default=str)
    except (TypeError, ValueError):
        return str(data)


def _env_int(name: str, default: int) -> int:
    try:
        return int(os.getenv(name, default))
    except ValueError:
        return default


def setup_logging() -> None:
    """
    Configure the root logger once per process.

    WORKFLOW_LOG_LEVEL picks the level (default INFO) and WORKFLOW_LOG_MAX_LEN
    truncates long lines (0 disables truncation).
    """
    level = getattr(logging, os.getenv("WORKFLOW_LOG_LEVEL", "INFO").upper(), logging.INFO)
    root = logging.getLogger()
    root.setLevel(level)
    if root.handlers:
        return

    handler = logging.StreamHandler()
    handler.addFilter(RunContextFilter())
    handler.setFormatter(OneLineFormatter(
        fmt="%(asctime)s %(levelname)s [%(name)s] (run %(run_id)s) %(message)s",
        datefmt="%H:%M:%S",
        max_len=_env_int("WORKFLOW_LOG_MAX_LEN", 0) or None,
    ))
    root.addHandler(handler)

    for noisy in NOISY_LOGGERS:
        logging.getLogger(noisy).setLevel(max(logging.WARNING, level))
