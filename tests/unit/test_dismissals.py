"""Unit tests for the dismissal store."""

from clustercodex.dismissals import DismissalStore
from clustercodex.issues.fallback import fallback_issues
from clustercodex.policy import UserInfo

ALICE = UserInfo(id="alice")
BOB = UserInfo(id="bob")


class TestDismissalStore:
    """Test per-user dismissals."""

    def test_dismiss_and_restore(self):
        store = DismissalStore()
        store.dismiss(ALICE, "k8sgpt:oom-1")
        assert store.is_dismissed(ALICE, "k8sgpt:oom-1")
        store.restore(ALICE, "k8sgpt:oom-1")
        assert not store.is_dismissed(ALICE, "k8sgpt:oom-1")

    def test_dismiss_is_idempotent(self):
        store = DismissalStore()
        store.dismiss(ALICE, "a")
        store.dismiss(ALICE, "a")
        assert store.list_dismissed(ALICE) == ["a"]

    def test_restore_unknown_is_noop(self):
        store = DismissalStore()
        store.restore(ALICE, "never-dismissed")
        assert store.list_dismissed(ALICE) == []

    def test_users_are_isolated(self):
        store = DismissalStore()
        store.dismiss(ALICE, "a")
        assert not store.is_dismissed(BOB, "a")
        assert store.list_dismissed(BOB) == []

    def test_no_user(self):
        store = DismissalStore()
        store.dismiss(None, "a")
        assert store.list_dismissed(None) == []
        assert not store.is_dismissed(None, "a")

    def test_split(self):
        store = DismissalStore()
        issues = fallback_issues()
        store.dismiss(ALICE, "k8sgpt:imagepull-1")
        store.dismiss(ALICE, "stale-id")
        active, dismissed = store.split(ALICE, issues)
        assert [i.id for i in active] == ["k8sgpt:crashloop-1", "k8sgpt:oom-1"]
        assert [i.id for i in dismissed] == ["k8sgpt:imagepull-1"]
