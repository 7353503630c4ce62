"""Caller identity.

The service does not verify credentials. It sits behind an authenticating
proxy that forwards the caller's id, email and role as request headers;
:class:`HeaderIdentityResolver` turns those headers into a :class:`UserInfo`.
"""

from typing import Mapping, Optional

from clustercodex.config import Config
from clustercodex.enums import Role
from clustercodex.policy import UserInfo


class HeaderIdentityResolver:
    """Resolve the caller from forwarded identity headers.

    Args:
        user_id_header: Header carrying the user id
        email_header: Header carrying the email address
        role_header: Header carrying the role (``admin`` or ``user``)
    """

    def __init__(
        self,
        user_id_header: str = "X-User-Id",
        email_header: str = "X-User-Email",
        role_header: str = "X-User-Role",
    ):
        self.user_id_header = user_id_header
        self.email_header = email_header
        self.role_header = role_header

    @classmethod
    def from_config(cls, config: Config) -> "HeaderIdentityResolver":
        return cls(
            user_id_header=config.identity_header_user_id,
            email_header=config.identity_header_email,
            role_header=config.identity_header_role,
        )

    def resolve(self, headers: Mapping[str, str]) -> Optional[UserInfo]:
        """Build the caller identity, or None when no user id is present.

        Header lookup is case-insensitive for Starlette headers; any role
        other than ``admin`` resolves to a regular user.
        """
        user_id = (headers.get(self.user_id_header) or "").strip()
        if not user_id:
            return None
        email = (headers.get(self.email_header) or "").strip() or None
        role_value = (headers.get(self.role_header) or "").strip().lower()
        role = Role.ADMIN if role_value == Role.ADMIN.value else Role.USER
        return UserInfo(id=user_id, email=email, role=role)
