"""
cloudrun_rollback.selector — Pick the revision to roll back to.

Ordering: creation timestamp descending, ties broken by name descending, so
the result does not depend on the order the platform listed revisions in.
The first retired revision with a non-empty name wins; that is the most
recently retired one, not the oldest.

Pure functions, no I/O.
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime

from cloudrun_rollback.exceptions import RevisionNotFound
from cloudrun_rollback.models import RevisionRecord


def _newest_first_key(revision: RevisionRecord) -> tuple[datetime, str]:
    return (revision.created_at, revision.name)


def order_newest_first(revisions: Iterable[RevisionRecord]) -> list[RevisionRecord]:
    """Return a new list ordered newest first; the input is left untouched."""
    return sorted(revisions, key=_newest_first_key, reverse=True)


def find_retired_revision(revisions: Iterable[RevisionRecord]) -> RevisionRecord | None:
    """Return the most recently created retired revision, or None."""
    for revision in order_newest_first(revisions):
        if revision.name and revision.is_retired:
            return revision
    return None


def select_retired_revision(revisions: Iterable[RevisionRecord]) -> RevisionRecord:
    """Like find_retired_revision, but raise RevisionNotFound instead of returning None."""
    selected = find_retired_revision(revisions)
    if selected is None:
        raise RevisionNotFound("no retired revision found")
    return selected
