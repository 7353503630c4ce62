"""Per-user dismissed issues."""

import threading
from typing import Dict, Iterable, List, Optional, Set, Tuple, TypeVar

from clustercodex.policy import UserInfo

T = TypeVar("T")


class DismissalStore:
    """Set of dismissed issue ids for each user.

    Membership is the only state: no ordering, no timestamps, no expiry. Ids
    of findings the aggregator no longer returns simply never match. Every
    operation is a no-op for a missing user.
    """

    def __init__(self):
        self._dismissed: Dict[str, Set[str]] = {}
        self._lock = threading.Lock()

    def dismiss(self, user: Optional[UserInfo], issue_id: str) -> None:
        if user is None:
            return
        with self._lock:
            self._dismissed.setdefault(user.id, set()).add(issue_id)

    def restore(self, user: Optional[UserInfo], issue_id: str) -> None:
        if user is None:
            return
        with self._lock:
            existing = self._dismissed.get(user.id)
            if existing is not None:
                existing.discard(issue_id)

    def list_dismissed(self, user: Optional[UserInfo]) -> List[str]:
        if user is None:
            return []
        with self._lock:
            return sorted(self._dismissed.get(user.id, ()))

    def is_dismissed(self, user: Optional[UserInfo], issue_id: str) -> bool:
        if user is None:
            return False
        with self._lock:
            return issue_id in self._dismissed.get(user.id, ())

    def split(self, user: Optional[UserInfo], issues: Iterable[T]) -> Tuple[List[T], List[T]]:
        """Split issues into the active and dismissed views for a user."""
        dismissed_ids = set(self.list_dismissed(user))
        active: List[T] = []
        dismissed: List[T] = []
        for issue in issues:
            (dismissed if getattr(issue, "id", None) in dismissed_ids else active).append(issue)
        return active, dismissed
