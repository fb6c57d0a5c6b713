"""
cloudrun_rollback.models — Cloud Run revision records as Python dataclasses.

Records are read-only snapshots of `gcloud run revisions list --format json`
output. They are built fresh on every invocation and never persisted.

Only the fields the rollback needs are read:
    metadata.name
    metadata.creationTimestamp                      RFC 3339
    spec.containers[0].image
    status.conditions[*].{reason, status}

Unknown fields are ignored.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from datetime import UTC, datetime
from enum import StrEnum
from typing import Any

from cloudrun_rollback.exceptions import CollaboratorFailure


class ConditionReason(StrEnum):
    RETIRED = "Retired"


class ConditionStatus(StrEnum):
    TRUE = "True"


@dataclass(frozen=True)
class RevisionCondition:
    """One lifecycle condition recorded against a revision."""

    reason: str
    status: str

    @property
    def is_retired(self) -> bool:
        return self.reason == ConditionReason.RETIRED and self.status == ConditionStatus.TRUE


@dataclass(frozen=True)
class RevisionRecord:
    """Immutable deployment revision as reported by the platform.

    A record with an empty name is treated as absent and is never selected
    for rollback.
    """

    name: str
    created_at: datetime  # timezone-aware
    conditions: tuple[RevisionCondition, ...] = ()
    image: str | None = None

    @property
    def is_retired(self) -> bool:
        return any(condition.is_retired for condition in self.conditions)

    @classmethod
    def from_resource(cls, resource: Any) -> RevisionRecord:
        """Build a record from one decoded revision resource."""
        if not isinstance(resource, dict):
            raise CollaboratorFailure(
                f"Revision resource must be a JSON object, got {type(resource).__name__}"
            )
        metadata = _as_dict(resource.get("metadata"))
        status = _as_dict(resource.get("status"))
        spec = _as_dict(resource.get("spec"))

        name = str(metadata.get("name") or "").strip()
        created_at = parse_timestamp(metadata.get("creationTimestamp"), revision=name)

        raw_conditions = status.get("conditions") or []
        if not isinstance(raw_conditions, list):
            raise CollaboratorFailure(f"status.conditions must be a list for revision {name!r}")
        conditions = tuple(_condition(raw) for raw in raw_conditions if isinstance(raw, dict))

        image = None
        containers = spec.get("containers")
        if isinstance(containers, list) and containers and isinstance(containers[0], dict):
            image = str(containers[0].get("image") or "").strip() or None

        return cls(
            name=name,
            created_at=created_at,
            conditions=conditions,
            image=image,
        )


def _as_dict(value: Any) -> dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _condition(raw: dict[str, Any]) -> RevisionCondition:
    return RevisionCondition(
        reason=str(raw.get("reason") or ""),
        status=str(raw.get("status") or ""),
    )


def parse_timestamp(raw: Any, *, revision: str = "") -> datetime:
    """Parse an RFC 3339 timestamp into an aware UTC datetime.

    Naive timestamps are taken as UTC. Anything unparseable is a
    CollaboratorFailure: the listing produced output we cannot order.
    """
    if not isinstance(raw, str) or not raw.strip():
        raise CollaboratorFailure(f"Missing metadata.creationTimestamp for revision {revision!r}")
    text = raw.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError as exc:
        raise CollaboratorFailure(
            f"Invalid metadata.creationTimestamp {raw!r} for revision {revision!r}"
        ) from exc
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed.astimezone(UTC)


def parse_revision_list(payload: str | bytes | None) -> list[RevisionRecord]:
    """Decode the stdout of `gcloud run revisions list --format json`."""
    if isinstance(payload, bytes):
        payload = payload.decode("utf-8", errors="replace")
    text = (payload or "").strip()
    if not text:
        return []
    try:
        decoded = json.loads(text)
    except json.JSONDecodeError as exc:
        raise CollaboratorFailure(f"Revision listing is not valid JSON: {exc.msg}") from exc
    if not isinstance(decoded, list):
        raise CollaboratorFailure(
            f"Revision listing must be a JSON array, got {type(decoded).__name__}"
        )
    return [RevisionRecord.from_resource(item) for item in decoded]
