"""Access policy engine.

Every finding and every raw cluster resource shown to an operator passes
through this module. A policy is a pair of allow-lists (namespaces, kinds)
where ``"*"`` means unrestricted. Administrators always resolve to the
unrestricted policy; everybody else gets their stored policy or, absent one,
the empty policy that denies everything.

Filtering fails closed: when no policy resolves (no identity) the result is
empty, never the unfiltered input.
"""

import threading
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, TypeVar

import structlog

from clustercodex.enums import Role

logger = structlog.get_logger(__name__)

WILDCARD = "*"

T = TypeVar("T")


@dataclass(frozen=True)
class UserInfo:
    """Resolved identity of the caller.

    Attributes:
        id: Stable user identifier
        email: Email address, if known
        role: Either admin or user
    """

    id: str
    email: Optional[str] = None
    role: Role = Role.USER

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "email": self.email, "role": self.role.value}


@dataclass(frozen=True)
class AccessPolicy:
    """Namespace and kind allow-lists for one user."""

    namespace_allow_list: List[str] = field(default_factory=list)
    kind_allow_list: List[str] = field(default_factory=list)

    @classmethod
    def unrestricted(cls) -> "AccessPolicy":
        return cls([WILDCARD], [WILDCARD])

    @classmethod
    def empty(cls) -> "AccessPolicy":
        return cls([], [])

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "AccessPolicy":
        """Build a policy from its camelCase wire form."""
        return cls(
            namespace_allow_list=list(data.get("namespaceAllowList") or []),
            kind_allow_list=list(data.get("kindAllowList") or []),
        )

    def to_dict(self) -> Dict[str, List[str]]:
        return {
            "namespaceAllowList": list(self.namespace_allow_list),
            "kindAllowList": list(self.kind_allow_list),
        }

    @property
    def allows_all_namespaces(self) -> bool:
        return WILDCARD in self.namespace_allow_list

    @property
    def allows_all_kinds(self) -> bool:
        return WILDCARD in self.kind_allow_list

    def allows_namespace(self, namespace: str) -> bool:
        return is_allowed(namespace, self.namespace_allow_list)

    def allows_kind(self, kind: str) -> bool:
        return is_allowed(kind, self.kind_allow_list)


def is_allowed(value: str, allow_list: Sequence[str]) -> bool:
    """Check a value against an allow-list; ``"*"`` allows everything."""
    if WILDCARD in allow_list:
        return True
    return value in allow_list


def _read(item: Any, name: str) -> str:
    """Read a string field from a mapping or an object."""
    if isinstance(item, Mapping):
        value = item.get(name)
    else:
        value = getattr(item, name, None)
    return value if isinstance(value, str) else ""


class AccessPolicyEngine:
    """Per-user policy table plus the filters that apply it.

    The table is instance state, created once per service process and
    injected into the request handlers. A single lock guards it; updates
    replace a user's policy wholesale.
    """

    def __init__(self, policies: Optional[Mapping[str, AccessPolicy]] = None):
        self._policies: Dict[str, AccessPolicy] = dict(policies or {})
        self._lock = threading.Lock()

    @classmethod
    def from_config(cls, seed: Mapping[str, Mapping[str, Any]]) -> "AccessPolicyEngine":
        """Create an engine from the ``access_policies`` configuration table."""
        return cls({user_id: AccessPolicy.from_dict(raw) for user_id, raw in seed.items()})

    def resolve_policy(self, user: Optional[UserInfo]) -> Optional[AccessPolicy]:
        """Resolve the effective policy for a user.

        Returns:
            The unrestricted policy for admins, the stored or empty policy for
            everybody else, and None when there is no identity at all
        """
        if user is None:
            return None
        if user.is_admin:
            return AccessPolicy.unrestricted()
        return self.get_policy(user.id)

    def get_policy(self, user_id: str) -> AccessPolicy:
        """Return the stored policy for a user id, or the empty policy."""
        with self._lock:
            return self._policies.get(user_id) or AccessPolicy.empty()

    def update_policy(self, user_id: str, policy: AccessPolicy) -> None:
        """Replace the stored policy for a user id."""
        with self._lock:
            self._policies[user_id] = policy
        logger.info(
            "access_policy_updated",
            user_id=user_id,
            namespaces=len(policy.namespace_allow_list),
            kinds=len(policy.kind_allow_list),
        )

    def filter_issues(self, items: Iterable[T], user: Optional[UserInfo]) -> List[T]:
        """Keep the findings whose kind and namespace are both allowed."""
        policy = self.resolve_policy(user)
        if policy is None:
            return []
        items = list(items)
        if policy.allows_all_namespaces and policy.allows_all_kinds:
            return items
        return [
            item
            for item in items
            if policy.allows_namespace(_read(item, "namespace"))
            and policy.allows_kind(_read(item, "kind"))
        ]

    def filter_resources(self, items: Iterable[T], user: Optional[UserInfo]) -> List[T]:
        """Keep the raw cluster resources whose kind is allowed.

        The kind is read from ``type`` and then ``kind``. Cluster-scoped
        objects (empty namespace) pass the namespace check once their kind is
        allowed.
        """
        policy = self.resolve_policy(user)
        if policy is None:
            return []
        items = list(items)
        if policy.allows_all_namespaces and policy.allows_all_kinds:
            return items

        kept = []
        for item in items:
            kind = _read(item, "type") or _read(item, "kind")
            if not policy.allows_kind(kind):
                continue
            namespace = _read(item, "namespace")
            if not namespace or policy.allows_namespace(namespace):
                kept.append(item)
        return kept
