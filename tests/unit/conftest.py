"""Shared fixtures for cloudrun_rollback unit tests."""

from __future__ import annotations

import json
import subprocess
from typing import Any

import pytest


def make_resource(
    name: str,
    created: str,
    conditions: list[tuple[str, str]] | None = None,
    *,
    service: str = "checkout",
    image: str | None = "europe-docker.pkg.dev/acme/checkout/api:1.0.0",
) -> dict[str, Any]:
    """Build a revision resource shaped like `gcloud run revisions list --format json`."""
    resource: dict[str, Any] = {
        "apiVersion": "serving.knative.dev/v1",
        "kind": "Revision",
        "metadata": {
            "name": name,
            "creationTimestamp": created,
            "labels": {
                "cloud.googleapis.com/location": "europe-west1",
                "serving.knative.dev/service": service,
            },
        },
        "spec": {"containerConcurrency": 80, "containers": []},
        "status": {
            "conditions": [
                {
                    "type": "Active",
                    "reason": reason,
                    "status": status,
                    "lastTransitionTime": created,
                }
                for reason, status in (conditions or [])
            ],
            "observedGeneration": 1,
        },
    }
    if image:
        resource["spec"]["containers"].append({"image": image})
    return resource


class FakeRunner:
    """Stand-in for subprocess.run that records calls and replays canned results."""

    def __init__(self, results: list[subprocess.CompletedProcess | BaseException]) -> None:
        self._results = list(results)
        self.calls: list[tuple[list[str], dict[str, Any]]] = []

    def __call__(self, command: list[str], **kwargs: Any) -> subprocess.CompletedProcess:
        self.calls.append((list(command), kwargs))
        if not self._results:
            raise AssertionError(f"unexpected command: {command}")
        result = self._results.pop(0)
        if isinstance(result, BaseException):
            raise result
        return result

    @property
    def commands(self) -> list[list[str]]:
        return [command for command, _ in self.calls]


def completed(
    stdout: Any = "", *, returncode: int = 0, stderr: str = ""
) -> subprocess.CompletedProcess:
    if not isinstance(stdout, str):
        stdout = json.dumps(stdout)
    return subprocess.CompletedProcess(args=[], returncode=returncode, stdout=stdout, stderr=stderr)


_CONFIG_ENV_VARS = (
    "CLOUDSDK_CORE_PROJECT",
    "CLOUDSDK_RUN_REGION",
    "ROLLBACK_SERVICE_ACCOUNT_KEY",
    "ROLLBACK_KEY_PATH",
    "ROLLBACK_REVISION_LIMIT",
    "ROLLBACK_TIMEOUT_SECONDS",
    "GCLOUD_BINARY",
    "GOOGLE_APPLICATION_CREDENTIALS",
)


@pytest.fixture(autouse=True)
def clean_rollback_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep the operator's gcloud/rollback environment out of the tests."""
    for name in _CONFIG_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
