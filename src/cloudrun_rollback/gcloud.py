"""
cloudrun_rollback.gcloud — Thin wrapper around the gcloud CLI.

The only module that starts child processes. Every call:
  - logs the command before running it,
  - runs with a timeout (the core itself has none),
  - raises CollaboratorFailure on non-zero exit, missing binary or timeout.

Credentials are passed to the child through its environment
(GOOGLE_APPLICATION_CREDENTIALS); the parent environment is never modified.
"""

from __future__ import annotations

import os
import subprocess
from collections.abc import Callable, Mapping
from pathlib import Path
from typing import Any

from aws_lambda_powertools import Logger

from cloudrun_rollback.exceptions import CollaboratorFailure, ConfigurationError
from cloudrun_rollback.models import RevisionRecord, parse_revision_list

logger = Logger(service="cloudrun-rollback")

DEFAULT_GCLOUD_BINARY = "gcloud"
DEFAULT_REVISION_LIMIT = 5
DEFAULT_TIMEOUT_SECONDS = 120
CREDENTIALS_ENV_VAR = "GOOGLE_APPLICATION_CREDENTIALS"
_STDERR_TAIL_CHARS = 4000

Runner = Callable[..., subprocess.CompletedProcess]


class GcloudClient:
    """
    gcloud CLI client scoped to one project and region.

    runner defaults to subprocess.run and is injectable so tests can stand in
    a fake without touching the real CLI.
    """

    def __init__(
        self,
        project: str,
        region: str,
        *,
        gcloud_binary: str = DEFAULT_GCLOUD_BINARY,
        timeout_seconds: int = DEFAULT_TIMEOUT_SECONDS,
        credentials_path: Path | None = None,
        runner: Runner | None = None,
        base_env: Mapping[str, str] | None = None,
    ) -> None:
        self.project = project
        self.region = region
        self.gcloud_binary = gcloud_binary
        self.timeout_seconds = timeout_seconds
        self.credentials_path = credentials_path
        self._runner: Runner = runner or subprocess.run
        self._base_env = dict(base_env if base_env is not None else os.environ)

    def child_env(self) -> dict[str, str]:
        env = dict(self._base_env)
        if self.credentials_path is not None:
            env[CREDENTIALS_ENV_VAR] = str(self.credentials_path)
        return env

    def run(self, args: list[str]) -> str:
        """Run `gcloud <args>` and return stripped stdout."""
        command = [self.gcloud_binary, *args]
        cmd_display = " ".join(command)
        logger.info("Running gcloud command", extra={"command": cmd_display})
        try:
            result: Any = self._runner(
                command,
                check=False,
                capture_output=True,
                text=True,
                timeout=self.timeout_seconds,
                env=self.child_env(),
            )
        except subprocess.TimeoutExpired as exc:
            raise CollaboratorFailure(
                f"Command timed out after {self.timeout_seconds}s: {cmd_display}",
                command=command,
            ) from exc
        except OSError as exc:
            raise CollaboratorFailure(
                f"Command could not be started: {cmd_display} ({exc})",
                command=command,
            ) from exc

        stdout = (result.stdout or "").strip()
        stderr = (result.stderr or "").strip()[-_STDERR_TAIL_CHARS:]
        if result.returncode != 0:
            logger.error(
                "gcloud command failed",
                extra={"command": cmd_display, "returncode": result.returncode, "stderr": stderr},
            )
            raise CollaboratorFailure(
                f"Command failed ({result.returncode}): {cmd_display}",
                command=command,
                returncode=result.returncode,
                stderr=stderr,
            )
        return stdout

    def list_revisions(
        self, service: str, *, limit: int = DEFAULT_REVISION_LIMIT
    ) -> list[RevisionRecord]:
        stdout = self.run(
            [
                "run",
                "revisions",
                "list",
                "--project",
                self.project,
                "--service",
                service,
                "--region",
                self.region,
                "--format",
                "json",
                "--limit",
                str(limit),
            ]
        )
        revisions = parse_revision_list(stdout)
        logger.info(
            "Listed revisions",
            extra={"cloud_run_service": service, "count": len(revisions)},
        )
        return revisions

    def update_traffic(self, service: str, revision_name: str) -> None:
        """Send 100% of traffic for service to revision_name."""
        if not revision_name.strip():
            raise ConfigurationError("revision name must be non-empty to update traffic")
        self.run(
            [
                "run",
                "services",
                "update-traffic",
                service,
                "--to-revisions",
                f"{revision_name}=100",
                "--project",
                self.project,
                "--region",
                self.region,
            ]
        )

    def activate_service_account(self, key_file: Path) -> None:
        self.run(["auth", "activate-service-account", f"--key-file={key_file}"])
