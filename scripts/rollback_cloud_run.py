#!/usr/bin/env python3
"""
rollback_cloud_run.py — Roll a Cloud Run service back to its last retired revision.

Lists the most recent revisions of the service, picks the newest one carrying
a Retired=True condition and moves 100% of traffic to it.

Exit codes:
    0  Traffic moved (or revision reported on --dry-run)
    1  gcloud call failed or returned malformed output
    2  Missing or invalid configuration
    3  No retired revision to roll back to

Usage:
    python scripts/rollback_cloud_run.py --project <id> --service <name> --region <region>
    python scripts/rollback_cloud_run.py ... --key "$(cat sa-key.json)"
    python scripts/rollback_cloud_run.py ... --dry-run
"""

from __future__ import annotations

import argparse
import logging
import sys

from cloudrun_rollback import (
    CollaboratorFailure,
    ConfigurationError,
    RevisionNotFound,
    RevisionRecord,
    RollbackConfig,
    RollbackResult,
    build_client,
    resolve_config,
    rollback_service,
)

logger = logging.getLogger("rollback_cloud_run")
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
)

EXIT_OK = 0
EXIT_COLLABORATOR_FAILURE = 1
EXIT_CONFIGURATION_ERROR = 2
EXIT_NOT_FOUND = 3


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse CLI arguments."""
    parser = argparse.ArgumentParser(
        prog="rollback_cloud_run.py",
        description="Roll a Cloud Run service back to its most recently retired revision.",
    )
    parser.add_argument(
        "--project",
        default=None,
        help="The project id of the Cloud Run service to roll back",
    )
    parser.add_argument(
        "--service",
        default=None,
        help="The name of the Cloud Run service to roll back",
    )
    parser.add_argument(
        "--region",
        default=None,
        help="The region where the Cloud Run service is deployed",
    )
    parser.add_argument(
        "--key",
        default=None,
        help="Service account key (JSON) allowed to update the Cloud Run service",
    )
    parser.add_argument(
        "--key-path",
        default=None,
        help=(
            "Where to write the service account key; must not already exist "
            "(default: a fresh private temp dir, removed afterwards)"
        ),
    )
    parser.add_argument(
        "--limit",
        type=int,
        default=None,
        help="Number of most recent revisions to inspect (default 5)",
    )
    parser.add_argument(
        "--timeout-seconds",
        type=int,
        default=None,
        help="Timeout for each gcloud call (default 120)",
    )
    parser.add_argument("--gcloud-binary", default=None, help="gcloud executable to run")
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Report the selected revision without moving traffic",
    )
    return parser.parse_args(argv)


def config_from_args(args: argparse.Namespace) -> RollbackConfig:
    return resolve_config(
        project=args.project,
        service=args.service,
        region=args.region,
        key=args.key,
        key_path=args.key_path,
        revision_limit=args.limit,
        timeout_seconds=args.timeout_seconds,
        gcloud_binary=args.gcloud_binary,
        dry_run=args.dry_run,
    )


def run(config: RollbackConfig) -> RollbackResult:
    print(f"Rolling back service {config.service} in region {config.region}...")
    client = build_client(config)
    return rollback_service(config, client, on_update=_announce_update)


def _announce_update(revision: RevisionRecord) -> None:
    if revision.image:
        print(f"Update all traffic to revision {revision.name} (image {revision.image})...")
    else:
        print(f"Update all traffic to revision {revision.name}...")


def _print_result(result: RollbackResult) -> None:
    revision = result.revision.name
    if result.traffic_updated:
        print(f"Rolled back {result.service} to {revision}")
    else:
        print(f"Dry run: would update all traffic to revision {revision}")


def main(argv: list[str] | None = None) -> int:
    """CLI entrypoint."""
    args = parse_args(argv)
    try:
        config = config_from_args(args)
        result = run(config)
    except ConfigurationError as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        return EXIT_CONFIGURATION_ERROR
    except RevisionNotFound as exc:
        print(f"ERROR: nothing to roll back to: {exc}", file=sys.stderr)
        return EXIT_NOT_FOUND
    except CollaboratorFailure as exc:
        print(f"ERROR: gcloud call failed: {exc}", file=sys.stderr)
        if exc.stderr:
            print(exc.stderr, file=sys.stderr)
        return EXIT_COLLABORATOR_FAILURE

    _print_result(result)
    logger.info("Rollback finished: %s -> %s", result.service, result.revision.name)
    return EXIT_OK


if __name__ == "__main__":
    raise SystemExit(main())
