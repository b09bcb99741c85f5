from __future__ import annotations

import logging
import sys
from typing import Any

__all__ = ["STAGE_NAMES", "InitFormatter", "setup_stderr_logging", "parse_log_level"]

# Module -> stage tag shown in the ``[init:<stage>]`` prefix
STAGE_NAMES: dict[str, str] = {
    "screeps_init.config": "config",
    "screeps_init.services": "config",
    "screeps_init.service_launcher": "deps",
    "screeps_init.port_utils": "probe",
    "screeps_init.process": "proc",
    "screeps_init.toolchain": "prestart",
    "screeps_init.prestart": "prestart",
    "screeps_init.handoff": "handoff",
    "screeps_init.environment": "env",
}

_SENTINEL_KEY = "_screeps_init_stderr_handler"


class InitFormatter(logging.Formatter):
    """Render records as ``[init:<stage>] LEVEL: message``.

    INFO and DEBUG records omit the level so ordinary progress lines read
    like the shell entrypoint they replace.  A record may carry an explicit
    ``stage`` attribute (``logger.error(..., extra={"stage": "deps"})``)
    which wins over the module mapping.
    """

    def format(self, record: logging.LogRecord) -> str:  # noqa: D401 - short summary sufficient
        stage = getattr(record, "stage", None) or STAGE_NAMES.get(record.name)
        prefix = f"[init:{stage}]" if stage else "[init]"
        message = record.getMessage()
        if record.levelno >= logging.WARNING:
            message = f"{record.levelname}: {message}"
        text = f"{prefix} {message}"
        if record.exc_info:
            text += "\n" + self.formatException(record.exc_info)
        return text


def parse_log_level(value: Any) -> int:
    if isinstance(value, int):
        return value
    if not value:
        return logging.INFO
    level = str(value).strip().upper()
    if level.isdigit():
        return int(level)
    resolved = logging.getLevelName(level)
    return resolved if isinstance(resolved, int) else logging.INFO


def setup_stderr_logging(*, level: Any = logging.INFO) -> logging.StreamHandler:
    """Ensure a single ``[init]``-formatted handler to ``sys.stderr`` exists.

    Calling this repeatedly (tests, ``--dry-run`` followed by a real run in
    the same interpreter) reuses the handler instead of stacking duplicates.
    """

    root = logging.getLogger()
    resolved = parse_log_level(level)
    root.setLevel(resolved)

    handler = getattr(root, _SENTINEL_KEY, None)
    if not isinstance(handler, logging.StreamHandler) or handler not in root.handlers:
        handler = logging.StreamHandler(sys.stderr)
        root.addHandler(handler)
    else:
        handler.setStream(sys.stderr)

    handler.setLevel(resolved)
    handler.setFormatter(InitFormatter())
    setattr(root, _SENTINEL_KEY, handler)
    return handler
