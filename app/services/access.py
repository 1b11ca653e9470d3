"""
Access gate: bearer access-token verification plus role checks.

Which operations need a principal, and which roles they accept, is declared in
OPERATION_POLICIES and consulted at dispatch time by AccessGate.authorize().
"""

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType

from app.models.user import UserRole
from app.schemas.auth import CurrentUser
from app.services.errors import ForbiddenError, UnauthorizedError
from app.services.tokens import InvalidTokenError, TokenService

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class OperationPolicy:
    """requires_auth: a verified access token is needed. required_roles: empty means any role."""

    requires_auth: bool = True
    required_roles: frozenset[UserRole] = field(default_factory=frozenset)


_PUBLIC = OperationPolicy(requires_auth=False)
_AUTHENTICATED = OperationPolicy()
_ADMIN_ONLY = OperationPolicy(required_roles=frozenset({UserRole.ADMIN}))

OPERATION_POLICIES = MappingProxyType(
    {
        "auth.register": _PUBLIC,
        "auth.login": _PUBLIC,
        # The refresh token travels in the body and is checked by AuthService.refresh
        "auth.refresh": _PUBLIC,
        "auth.logout": _AUTHENTICATED,
        "auth.logout_all": _AUTHENTICATED,
        "auth.me": _AUTHENTICATED,
        "auth.sessions": _AUTHENTICATED,
        "auth.list_users": _ADMIN_ONLY,
    }
)


class AccessGate:
    """Stateless per-request authentication and authorization."""

    def __init__(
        self,
        tokens: TokenService,
        policies: Mapping[str, OperationPolicy] = OPERATION_POLICIES,
    ) -> None:
        self.tokens = tokens
        self.policies = policies

    def authenticate(self, access_token: str | None) -> CurrentUser:
        """Verify a bearer access token and return the principal. Raises UnauthorizedError."""
        if not access_token:
            raise UnauthorizedError("Not authenticated")
        try:
            claims = self.tokens.verify(access_token, self.tokens.access)
        except InvalidTokenError as e:
            raise UnauthorizedError("Invalid or expired token") from e
        try:
            role = UserRole(claims.role)
        except ValueError as e:
            raise UnauthorizedError("Invalid token payload") from e
        return CurrentUser(id=claims.sub, username=claims.username, role=role)

    @staticmethod
    def check_roles(principal: CurrentUser, required_roles: Iterable[UserRole]) -> None:
        """Raise ForbiddenError unless required_roles is empty or contains the principal's role."""
        required = frozenset(required_roles)
        if required and principal.role not in required:
            logger.info(
                "Role check failed",
                extra={"user_id": principal.id, "role": principal.role.value},
            )
            raise ForbiddenError("You do not have access to this resource")

    def authorize(self, operation: str, access_token: str | None) -> CurrentUser | None:
        """
        Apply the policy declared for operation. Returns the principal, or None
        for operations that do not require authentication. Unknown operation
        ids raise KeyError.
        """
        policy = self.policies[operation]
        if not policy.requires_auth:
            return None
        principal = self.authenticate(access_token)
        self.check_roles(principal, policy.required_roles)
        return principal
