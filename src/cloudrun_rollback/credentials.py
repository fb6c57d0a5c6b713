"""
cloudrun_rollback.credentials — Service account key installation.

The raw key payload is written to a file created with mode 0600 and handed
to gcloud by path. Without an explicit path the file lives in a fresh
private directory (mkdtemp, mode 0700) that is removed with the key.
An existing file is never overwritten. The payload itself is never logged.
"""

from __future__ import annotations

import json
import os
import tempfile
from pathlib import Path

from aws_lambda_powertools import Logger

from cloudrun_rollback.exceptions import ConfigurationError

logger = Logger(service="cloudrun-rollback")

KEY_FILE_NAME = "service-account.json"
KEY_DIR_PREFIX = "cloudrun-rollback-"


def install_service_account_key(key_payload: str, key_path: Path | None = None) -> Path:
    """Validate and write a service account key; returns the file path."""
    try:
        parsed = json.loads(key_payload)
    except json.JSONDecodeError as exc:
        raise ConfigurationError("--key must be a service account key in JSON form") from exc
    if not isinstance(parsed, dict):
        raise ConfigurationError("--key must be a JSON object")

    if key_path is None:
        key_path = Path(tempfile.mkdtemp(prefix=KEY_DIR_PREFIX)) / KEY_FILE_NAME
    else:
        key_path.parent.mkdir(parents=True, exist_ok=True)

    try:
        fd = os.open(key_path, os.O_WRONLY | os.O_CREAT | os.O_EXCL, 0o600)
    except FileExistsError as exc:
        raise ConfigurationError(
            f"Refusing to overwrite existing file at key path {key_path}"
        ) from exc
    with os.fdopen(fd, "w", encoding="utf-8") as handle:
        handle.write(key_payload)
    logger.info(
        "Service account key written",
        extra={"key_path": str(key_path), "client_email": parsed.get("client_email", "unknown")},
    )
    return key_path


def remove_service_account_key(key_path: Path, *, remove_dir: bool = False) -> None:
    """Delete a written key; remove_dir also drops its (now empty) private directory."""
    if key_path.exists():
        key_path.unlink()
        logger.info("Service account key removed", extra={"key_path": str(key_path)})
    if remove_dir and key_path.parent.is_dir():
        key_path.parent.rmdir()
