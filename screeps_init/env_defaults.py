"""Default environment variable values for screeps-init.

This module centralizes the default values for every setting the container
entrypoint reads.  :func:`screeps_init.config.resolve_plan` falls back to
these values when a variable is not defined in the host environment.
"""

from __future__ import annotations

DEFAULTS: dict[str, str] = {
    # Foreground command; no default, the panel always provides one
    "STARTUP": "",
    "CONTAINER_HOME": "/home/container",

    # Background pre-start of the Screeps server
    "SCREEPS_SERVER_CMD": "npx screeps start",
    "SCREEPS_LEGACY_SERVER_CMD": "npx screeps start",
    "PRESTART_SERVER": "0",
    "PRESTART_SERVER_LEGACY": "0",
    "PRESTART_ON_CLI": "0",
    "CLI_HOST": "127.0.0.1",
    "CLI_PORT": "21026",
    "CLI_TIMEOUT": "300",

    # Local Redis
    "START_LOCAL_REDIS": "0",
    "REDIS_HOST": "127.0.0.1",
    "REDIS_PORT": "6379",
    "REDIS_EXTRA_ARGS": "",
    "REDIS_CLEAN_LOG": "0",

    # Local MongoDB
    "START_LOCAL_MONGO": "0",
    "MONGO_HOST": "127.0.0.1",
    "MONGO_PORT": "27017",
    "MONGO_EXTRA_ARGS": "",
    "MONGO_CLEAN_LOG": "0",
    # mongod grabs RAM aggressively; screepsmod-mongo recommends a small cache
    "MONGO_WT_CACHE_GB": "0.25",

    # Python 2 for node-gyp builds of the legacy server
    "LEGACY_PYTHON_PATH": "/usr/bin/python2",
    "LEGACY_PYTHON_ROOT": "/home/container/.pyenv/versions",

    "INIT_LOG_LEVEL": "INFO",
}

__all__ = ["DEFAULTS"]
