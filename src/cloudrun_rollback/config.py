"""
cloudrun_rollback.config — Run configuration.

Each field resolves as: explicit CLI value, then environment variable, then
default. Blank strings count as missing.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

from cloudrun_rollback.exceptions import ConfigurationError
from cloudrun_rollback.gcloud import (
    DEFAULT_GCLOUD_BINARY,
    DEFAULT_REVISION_LIMIT,
    DEFAULT_TIMEOUT_SECONDS,
)

PROJECT_ENV = "CLOUDSDK_CORE_PROJECT"
REGION_ENV = "CLOUDSDK_RUN_REGION"
KEY_ENV = "ROLLBACK_SERVICE_ACCOUNT_KEY"
KEY_PATH_ENV = "ROLLBACK_KEY_PATH"
LIMIT_ENV = "ROLLBACK_REVISION_LIMIT"
TIMEOUT_ENV = "ROLLBACK_TIMEOUT_SECONDS"
GCLOUD_BINARY_ENV = "GCLOUD_BINARY"


@dataclass(frozen=True)
class RollbackConfig:
    project: str
    service: str
    region: str
    key: str | None = field(default=None, repr=False)
    key_path: Path | None = None
    revision_limit: int = DEFAULT_REVISION_LIMIT
    timeout_seconds: int = DEFAULT_TIMEOUT_SECONDS
    gcloud_binary: str = DEFAULT_GCLOUD_BINARY
    dry_run: bool = False


def _clean(value: str | None) -> str:
    return (value or "").strip()


def _from_env(explicit: str | None, env_name: str | None) -> str:
    value = _clean(explicit)
    if value or env_name is None:
        return value
    return _clean(os.environ.get(env_name))


def _positive_int(explicit: int | None, env_name: str, default: int, flag: str) -> int:
    if explicit is not None:
        value = explicit
    else:
        raw = _clean(os.environ.get(env_name))
        if not raw:
            return default
        try:
            value = int(raw)
        except ValueError as exc:
            raise ConfigurationError(f"{env_name} must be an integer, got {raw!r}") from exc
    if value <= 0:
        raise ConfigurationError(f"{flag} must be a positive integer, got {value}")
    return value


def resolve_config(
    *,
    project: str | None = None,
    service: str | None = None,
    region: str | None = None,
    key: str | None = None,
    key_path: str | None = None,
    revision_limit: int | None = None,
    timeout_seconds: int | None = None,
    gcloud_binary: str | None = None,
    dry_run: bool = False,
) -> RollbackConfig:
    """Build a RollbackConfig, raising ConfigurationError on missing inputs."""
    resolved_project = _from_env(project, PROJECT_ENV)
    resolved_service = _from_env(service, None)
    resolved_region = _from_env(region, REGION_ENV)

    missing = [
        flag
        for flag, value in (
            ("--project", resolved_project),
            ("--service", resolved_service),
            ("--region", resolved_region),
        )
        if not value
    ]
    if missing:
        raise ConfigurationError(
            "project, service, and region flags are required "
            f"(missing: {', '.join(missing)})"
        )

    resolved_key_path = _from_env(key_path, KEY_PATH_ENV)
    return RollbackConfig(
        project=resolved_project,
        service=resolved_service,
        region=resolved_region,
        key=_from_env(key, KEY_ENV) or None,
        key_path=Path(resolved_key_path).expanduser() if resolved_key_path else None,
        revision_limit=_positive_int(revision_limit, LIMIT_ENV, DEFAULT_REVISION_LIMIT, "--limit"),
        timeout_seconds=_positive_int(
            timeout_seconds, TIMEOUT_ENV, DEFAULT_TIMEOUT_SECONDS, "--timeout-seconds"
        ),
        gcloud_binary=_from_env(gcloud_binary, GCLOUD_BINARY_ENV) or DEFAULT_GCLOUD_BINARY,
        dry_run=dry_run,
    )
