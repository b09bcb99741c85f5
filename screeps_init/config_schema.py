from __future__ import annotations

from typing import Mapping

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .env_defaults import DEFAULTS

__all__ = ["InitSettings", "validate_settings"]


class InitSettings(BaseModel):
    """Typed view of the numeric and path settings read from the environment.

    Boolean toggles are intentionally not part of the schema: they go through
    :func:`screeps_init.flags.parse_bool`, which never rejects a value.
    """

    model_config = ConfigDict(extra="ignore", frozen=True)

    container_home: str = Field(min_length=1)
    cli_host: str = Field(min_length=1)
    cli_port: int = Field(ge=1, le=65535)
    cli_timeout: float = Field(gt=0, allow_inf_nan=False)
    redis_host: str = Field(min_length=1)
    redis_port: int = Field(ge=1, le=65535)
    mongo_host: str = Field(min_length=1)
    mongo_port: int = Field(ge=1, le=65535)
    mongo_wt_cache_gb: float = Field(gt=0, allow_inf_nan=False)
    legacy_python_path: str = Field(min_length=1)
    legacy_python_root: str = Field(min_length=1)

    @field_validator(
        "container_home",
        "cli_host",
        "redis_host",
        "mongo_host",
        "legacy_python_path",
        "legacy_python_root",
        mode="before",
    )
    @classmethod
    def _strip(cls, value: object) -> object:
        return value.strip() if isinstance(value, str) else value


def _lookup(env: Mapping[str, str], name: str) -> str:
    value = env.get(name)
    if value is None or not str(value).strip():
        return DEFAULTS[name]
    return str(value)


def validate_settings(env: Mapping[str, str]) -> InitSettings:
    """Validate the typed settings found in *env*.

    Blank values fall back to :data:`DEFAULTS`.  Raises ``ValueError`` naming
    the offending environment variable(s) on validation errors.
    """

    data = {
        name.lower(): _lookup(env, name)
        for name in (
            "CONTAINER_HOME",
            "CLI_HOST",
            "CLI_PORT",
            "CLI_TIMEOUT",
            "REDIS_HOST",
            "REDIS_PORT",
            "MONGO_HOST",
            "MONGO_PORT",
            "MONGO_WT_CACHE_GB",
            "LEGACY_PYTHON_PATH",
            "LEGACY_PYTHON_ROOT",
        )
    }
    try:
        return InitSettings(**data)
    except ValidationError as exc:
        problems = []
        for error in exc.errors():
            loc = ".".join(str(part) for part in error.get("loc", ()))
            problems.append(f"{loc.upper()}={data.get(loc)!r}: {error.get('msg')}")
        raise ValueError("; ".join(problems)) from exc
