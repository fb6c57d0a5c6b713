"""
cloudrun_rollback.rollback — End-to-end rollback of one Cloud Run service.

Order of operations:
    1. install + activate the service account key (only when one is given)
    2. list the most recent revisions
    3. select the most recently retired revision
    4. move 100% of traffic to it (skipped on dry run)

First error wins. The key file written in step 1 is removed afterwards
whatever the outcome.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass

from aws_lambda_powertools import Logger

from cloudrun_rollback.config import RollbackConfig
from cloudrun_rollback.credentials import install_service_account_key, remove_service_account_key
from cloudrun_rollback.gcloud import GcloudClient
from cloudrun_rollback.models import RevisionRecord
from cloudrun_rollback.selector import select_retired_revision

logger = Logger(service="cloudrun-rollback")


@dataclass(frozen=True)
class RollbackResult:
    service: str
    region: str
    revision: RevisionRecord
    traffic_updated: bool


def build_client(config: RollbackConfig) -> GcloudClient:
    return GcloudClient(
        config.project,
        config.region,
        gcloud_binary=config.gcloud_binary,
        timeout_seconds=config.timeout_seconds,
    )


def rollback_service(
    config: RollbackConfig,
    client: GcloudClient,
    *,
    on_update: Callable[[RevisionRecord], None] | None = None,
) -> RollbackResult:
    """Roll config.service back; on_update is told the revision just before traffic moves."""
    logger.append_keys(
        project=config.project, cloud_run_service=config.service, region=config.region
    )
    key_file = None
    try:
        if config.key:
            key_file = install_service_account_key(config.key, config.key_path)
            client.credentials_path = key_file
            client.activate_service_account(key_file)

        revisions = client.list_revisions(config.service, limit=config.revision_limit)
        selected = select_retired_revision(revisions)
        logger.info(
            "Selected retired revision",
            extra={"revision": selected.name, "created_at": selected.created_at.isoformat()},
        )

        if config.dry_run:
            logger.info("Dry run, traffic left unchanged", extra={"revision": selected.name})
            return RollbackResult(
                service=config.service,
                region=config.region,
                revision=selected,
                traffic_updated=False,
            )

        logger.info("Updating all traffic to revision", extra={"revision": selected.name})
        if on_update is not None:
            on_update(selected)
        client.update_traffic(config.service, selected.name)
        logger.info("Traffic moved", extra={"revision": selected.name, "percent": 100})
        return RollbackResult(
            service=config.service,
            region=config.region,
            revision=selected,
            traffic_updated=True,
        )
    finally:
        if key_file is not None:
            client.credentials_path = None
            remove_service_account_key(key_file, remove_dir=config.key_path is None)
