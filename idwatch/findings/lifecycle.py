"""
Finding Lifecycle
=================

Allowed status transitions for validated findings.

Breach and exposure findings follow the remediation machine:

    new ──► monitoring ──► removal_requested ──► completed
     │          │                 │
     │          └──► ignored      └──► failed
     ├──► ignored
     └──► removal_requested

Impersonation and mention findings are only reviewed:

    new ──► reviewed | dismissed

Any status without outgoing edges is terminal.

Author: idwatch Team
Version: 1.0.0
"""

from typing import Dict, FrozenSet, Mapping

from idwatch.errors import InvalidTransition
from shared.schemas.findings import FindingCategory, FindingStatus


S = FindingStatus

REMEDIATION_TRANSITIONS: Mapping[FindingStatus, FrozenSet[FindingStatus]] = {
    S.NEW: frozenset({S.MONITORING, S.IGNORED, S.REMOVAL_REQUESTED}),
    S.MONITORING: frozenset({S.REMOVAL_REQUESTED, S.IGNORED}),
    S.REMOVAL_REQUESTED: frozenset({S.COMPLETED, S.FAILED}),
}

REVIEW_TRANSITIONS: Mapping[FindingStatus, FrozenSet[FindingStatus]] = {
    S.NEW: frozenset({S.REVIEWED, S.DISMISSED}),
}

TRANSITIONS_BY_CATEGORY: Dict[FindingCategory, Mapping[FindingStatus, FrozenSet[FindingStatus]]] = {
    FindingCategory.BREACH: REMEDIATION_TRANSITIONS,
    FindingCategory.EXPOSURE: REMEDIATION_TRANSITIONS,
    FindingCategory.IMPERSONATION: REVIEW_TRANSITIONS,
    FindingCategory.MENTION: REVIEW_TRANSITIONS,
}


class LifecycleManager:
    """Decides whether a status change is an allowed edge."""

    def allowed_targets(
        self,
        category: FindingCategory,
        current: FindingStatus,
    ) -> FrozenSet[FindingStatus]:
        """Statuses reachable in one step from ``current``."""
        table = TRANSITIONS_BY_CATEGORY[FindingCategory(category)]
        return table.get(FindingStatus(current), frozenset())

    def can_transition(
        self,
        category: FindingCategory,
        current: FindingStatus,
        requested: FindingStatus,
    ) -> bool:
        return FindingStatus(requested) in self.allowed_targets(category, current)

    def is_terminal(self, category: FindingCategory, status: FindingStatus) -> bool:
        return not self.allowed_targets(category, status)

    def check(
        self,
        finding_id: str,
        category: FindingCategory,
        current: FindingStatus,
        requested: FindingStatus,
    ) -> None:
        """
        Raise unless ``current → requested`` is an allowed edge.

        Raises:
            InvalidTransition: The edge is not in the category's table
        """
        if not self.can_transition(category, current, requested):
            raise InvalidTransition(
                finding_id,
                FindingStatus(current).value,
                FindingStatus(requested).value,
            )

    @staticmethod
    def spawns_deletion_request(requested: FindingStatus) -> bool:
        """Entering removal_requested creates a pending DeletionRequest."""
        return FindingStatus(requested) == FindingStatus.REMOVAL_REQUESTED

    @staticmethod
    def settles_deletion_request(requested: FindingStatus) -> bool:
        """Leaving removal_requested settles the DeletionRequest."""
        return FindingStatus(requested) in (FindingStatus.COMPLETED, FindingStatus.FAILED)
