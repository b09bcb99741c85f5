"""Resolve environment settings into an :class:`OrchestrationPlan`.

The resolver only reads from the mapping it is handed and performs no side
effects, so a conflicting configuration is rejected before any process is
spawned.
"""

from __future__ import annotations

import logging
import os
import re
from pathlib import Path
from typing import List, Mapping, Optional

from .config_schema import InitSettings, validate_settings
from .env_defaults import DEFAULTS
from .errors import ConfigError, ConfigErrorReason
from .flags import get_bool
from .plan import OrchestrationPlan, PrestartMode, PrimarySpec, ServiceSpec
from .services import mongo_spec, redis_spec

__all__ = [
    "rewrite_placeholders",
    "is_cli_startup",
    "select_prestart_mode",
    "resolve_plan",
]

logger = logging.getLogger(__name__)

_CLI_STARTUP = re.compile(r"(^|\s)screeps(\s.*)?\scli(\s|$)")


def _get(env: Mapping[str, str], name: str) -> str:
    value = env.get(name)
    if value is None:
        return DEFAULTS.get(name, "")
    return value


def rewrite_placeholders(template: str) -> str:
    """Turn panel ``{{VAR}}`` tokens into shell ``${VAR}`` expansions."""

    return template.replace("{{", "${").replace("}}", "}")


def is_cli_startup(command: str | None) -> bool:
    """Return ``True`` for startup commands of the form ``... screeps ... cli``."""

    return bool(command) and _CLI_STARTUP.search(command) is not None


def select_prestart_mode(env: Mapping[str, str], startup: Optional[str]) -> PrestartMode:
    background = get_bool(env, "PRESTART_SERVER")
    legacy = get_bool(env, "PRESTART_SERVER_LEGACY")
    if background and legacy:
        raise ConfigError(
            ConfigErrorReason.CONFLICTING_FLAGS,
            "PRESTART_SERVER and PRESTART_SERVER_LEGACY are mutually exclusive; "
            "enable at most one",
        )
    if background:
        return PrestartMode.BACKGROUND
    if legacy:
        return PrestartMode.LEGACY_BACKGROUND
    if get_bool(env, "PRESTART_ON_CLI") and is_cli_startup(startup):
        logger.info("Detected CLI startup; server will be pre-started in background")
        return PrestartMode.BACKGROUND
    return PrestartMode.NONE


def _resolve_services(
    env: Mapping[str, str], home: Path, settings: InitSettings
) -> List[ServiceSpec]:
    services: List[ServiceSpec] = []
    if get_bool(env, "START_LOCAL_REDIS"):
        services.append(
            redis_spec(
                home,
                host=settings.redis_host,
                port=settings.redis_port,
                extra_args=_get(env, "REDIS_EXTRA_ARGS"),
                clean_log=get_bool(env, "REDIS_CLEAN_LOG"),
            )
        )
    if get_bool(env, "START_LOCAL_MONGO"):
        services.append(
            mongo_spec(
                home,
                host=settings.mongo_host,
                port=settings.mongo_port,
                cache_gb=settings.mongo_wt_cache_gb,
                extra_args=_get(env, "MONGO_EXTRA_ARGS"),
                clean_log=get_bool(env, "MONGO_CLEAN_LOG"),
            )
        )
    return services


def resolve_plan(env: Mapping[str, str] | None = None) -> OrchestrationPlan:
    """Build a fully defaulted, validated plan from *env*.

    Raises :class:`ConfigError` on conflicting background modes or invalid
    values.  A missing ``STARTUP`` is not an error here; the caller decides
    when the foreground command is actually required.
    """

    if env is None:
        env = os.environ

    raw_startup = _get(env, "STARTUP").strip()
    startup = rewrite_placeholders(raw_startup) if raw_startup else None

    # Before anything else: both background modes is a hard error
    mode = select_prestart_mode(env, startup)

    try:
        settings = validate_settings(env)
    except ValueError as exc:
        raise ConfigError(ConfigErrorReason.INVALID_VALUE, f"invalid setting {exc}") from exc

    home = Path(settings.container_home)
    try:
        services = _resolve_services(env, home, settings)
    except ValueError as exc:
        raise ConfigError(ConfigErrorReason.INVALID_VALUE, f"invalid setting {exc}") from exc

    primary = PrimarySpec(
        startup=startup,
        prestart_mode=mode,
        server_command=_get(env, "SCREEPS_SERVER_CMD").strip() or DEFAULTS["SCREEPS_SERVER_CMD"],
        legacy_server_command=(
            _get(env, "SCREEPS_LEGACY_SERVER_CMD").strip()
            or DEFAULTS["SCREEPS_LEGACY_SERVER_CMD"]
        ),
        cli_host=settings.cli_host,
        cli_port=settings.cli_port,
        cli_timeout=settings.cli_timeout,
    )
    return OrchestrationPlan(
        primary=primary,
        services=tuple(services),
        home=home,
        legacy_python_path=Path(settings.legacy_python_path),
        legacy_python_root=Path(settings.legacy_python_root),
    )
