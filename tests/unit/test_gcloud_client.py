"""Unit tests for cloudrun_rollback.gcloud — gcloud command construction and failures."""

from __future__ import annotations

import os
import subprocess
from pathlib import Path

import pytest
from cloudrun_rollback.exceptions import CollaboratorFailure, ConfigurationError
from cloudrun_rollback.gcloud import CREDENTIALS_ENV_VAR, GcloudClient
from conftest import FakeRunner, completed, make_resource

_PROJECT = "acme-prod"
_REGION = "europe-west1"
_RETIRED = ("Retired", "True")
_READY = ("Ready", "True")


def _client(runner: FakeRunner, **kwargs) -> GcloudClient:
    return GcloudClient(_PROJECT, _REGION, runner=runner, base_env={"PATH": "/usr/bin"}, **kwargs)


def test_list_revisions_runs_expected_command() -> None:
    runner = FakeRunner(
        [
            completed(
                [
                    make_resource("checkout-00002-xyz", "2026-03-01T10:00:00Z", [_RETIRED]),
                    make_resource("checkout-00003-abc", "2026-03-02T10:00:00Z", [_READY]),
                ]
            )
        ]
    )

    revisions = _client(runner).list_revisions("checkout")

    assert runner.commands == [
        [
            "gcloud",
            "run",
            "revisions",
            "list",
            "--project",
            _PROJECT,
            "--service",
            "checkout",
            "--region",
            _REGION,
            "--format",
            "json",
            "--limit",
            "5",
        ]
    ]
    names = [revision.name for revision in revisions]
    assert names == ["checkout-00002-xyz", "checkout-00003-abc"]


def test_list_revisions_honours_limit_and_timeout() -> None:
    runner = FakeRunner([completed([])])

    _client(runner, timeout_seconds=15).list_revisions("checkout", limit=20)

    command, kwargs = runner.calls[0]
    assert command[-2:] == ["--limit", "20"]
    assert kwargs["timeout"] == 15
    assert kwargs["check"] is False
    assert kwargs["capture_output"] is True
    assert kwargs["text"] is True


def test_update_traffic_sends_single_revision_at_100_percent() -> None:
    runner = FakeRunner([completed("")])

    _client(runner).update_traffic("checkout", "checkout-00002-xyz")

    assert runner.commands == [
        [
            "gcloud",
            "run",
            "services",
            "update-traffic",
            "checkout",
            "--to-revisions",
            "checkout-00002-xyz=100",
            "--project",
            _PROJECT,
            "--region",
            _REGION,
        ]
    ]


def test_update_traffic_rejects_empty_revision_name() -> None:
    runner = FakeRunner([])
    with pytest.raises(ConfigurationError):
        _client(runner).update_traffic("checkout", "  ")
    assert runner.calls == []


def test_activate_service_account_passes_key_file() -> None:
    runner = FakeRunner([completed("")])

    _client(runner).activate_service_account(Path("/tmp/sa.json"))

    assert runner.commands == [
        ["gcloud", "auth", "activate-service-account", "--key-file=/tmp/sa.json"]
    ]


def test_custom_gcloud_binary_is_used() -> None:
    runner = FakeRunner([completed([])])
    _client(runner, gcloud_binary="/opt/google-cloud-sdk/bin/gcloud").list_revisions("checkout")
    assert runner.commands[0][0] == "/opt/google-cloud-sdk/bin/gcloud"


def test_credentials_path_is_threaded_into_child_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv(CREDENTIALS_ENV_VAR, raising=False)
    runner = FakeRunner([completed([])])

    _client(runner, credentials_path=Path("/tmp/sa.json")).list_revisions("checkout")

    env = runner.calls[0][1]["env"]
    assert env[CREDENTIALS_ENV_VAR] == "/tmp/sa.json"
    assert env["PATH"] == "/usr/bin"
    assert CREDENTIALS_ENV_VAR not in os.environ


def test_no_credentials_path_leaves_child_env_alone() -> None:
    runner = FakeRunner([completed([])])
    _client(runner).list_revisions("checkout")
    assert CREDENTIALS_ENV_VAR not in runner.calls[0][1]["env"]


def test_non_zero_exit_raises_collaborator_failure() -> None:
    runner = FakeRunner(
        [
            completed(
                "",
                returncode=1,
                stderr="ERROR: (gcloud.run.revisions.list) PERMISSION_DENIED",
            )
        ]
    )

    with pytest.raises(CollaboratorFailure) as exc_info:
        _client(runner).list_revisions("checkout")

    assert exc_info.value.returncode == 1
    assert "PERMISSION_DENIED" in exc_info.value.stderr
    assert exc_info.value.command[:4] == ["gcloud", "run", "revisions", "list"]
    assert "Command failed (1)" in str(exc_info.value)


def test_missing_binary_raises_collaborator_failure() -> None:
    runner = FakeRunner([FileNotFoundError(2, "No such file or directory", "gcloud")])

    with pytest.raises(CollaboratorFailure, match="could not be started") as exc_info:
        _client(runner).list_revisions("checkout")

    assert isinstance(exc_info.value.__cause__, FileNotFoundError)
    assert exc_info.value.returncode is None


def test_timeout_raises_collaborator_failure() -> None:
    runner = FakeRunner([subprocess.TimeoutExpired(cmd="gcloud", timeout=5)])

    with pytest.raises(CollaboratorFailure, match="timed out after 5s"):
        _client(runner, timeout_seconds=5).update_traffic("checkout", "checkout-00002-xyz")


def test_malformed_listing_raises_collaborator_failure() -> None:
    runner = FakeRunner([completed("Listed 0 items.")])
    with pytest.raises(CollaboratorFailure, match="not valid JSON"):
        _client(runner).list_revisions("checkout")
