"""
cloudrun_rollback — Roll a Cloud Run service back to its last retired revision.

Lists recent revisions through the gcloud CLI, picks the most recently
retired one and sends all traffic to it.
"""

from cloudrun_rollback.config import RollbackConfig, resolve_config
from cloudrun_rollback.exceptions import (
    CollaboratorFailure,
    ConfigurationError,
    RevisionNotFound,
    RollbackError,
)
from cloudrun_rollback.gcloud import GcloudClient
from cloudrun_rollback.models import RevisionCondition, RevisionRecord, parse_revision_list
from cloudrun_rollback.rollback import RollbackResult, build_client, rollback_service
from cloudrun_rollback.selector import find_retired_revision, select_retired_revision

__all__ = [
    "CollaboratorFailure",
    "ConfigurationError",
    "GcloudClient",
    "RevisionCondition",
    "RevisionNotFound",
    "RevisionRecord",
    "RollbackConfig",
    "RollbackError",
    "RollbackResult",
    "build_client",
    "find_retired_revision",
    "parse_revision_list",
    "resolve_config",
    "rollback_service",
    "select_retired_revision",
]
