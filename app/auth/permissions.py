# app/auth/permissions.py
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional
import logging

from app.core.exceptions import Forbidden, Unauthenticated
from app.models.shared.enums import Role

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AuthContext:
    """Caller identity for one request; all fields are None for anonymous callers"""

    user_id: Optional[int] = None
    email: Optional[str] = None
    role: Optional[Role] = None

    @property
    def is_authenticated(self) -> bool:
        return self.user_id is not None

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN


ANONYMOUS = AuthContext()


class Access(str, Enum):
    PUBLIC = "PUBLIC"
    AUTHENTICATED = "AUTHENTICATED"
    ADMIN = "ADMIN"


# Required access per API operation, keyed by GraphQL root field name
OPERATION_POLICY: Dict[str, Access] = {
    # Queries
    "me": Access.AUTHENTICATED,
    "shipments": Access.AUTHENTICATED,
    "shipment": Access.AUTHENTICATED,
    "shipmentStats": Access.ADMIN,
    # Mutations
    "login": Access.PUBLIC,
    "register": Access.PUBLIC,
    "createShipment": Access.AUTHENTICATED,
    "updateShipment": Access.AUTHENTICATED,
    "deleteShipment": Access.ADMIN,
    "addTrackingEvent": Access.AUTHENTICATED,
}


def require_auth(context: AuthContext) -> None:
    if not context.is_authenticated:
        raise Unauthenticated()


def require_admin(context: AuthContext) -> None:
    require_auth(context)
    if not context.is_admin:
        raise Forbidden()


def enforce_policy(operation: str, context: AuthContext) -> None:
    """
    Check the caller against the policy table before an operation runs.
    Operations missing from the table are denied.
    """
    access = OPERATION_POLICY.get(operation)
    if access is None:
        logger.warning(f"No access policy declared for operation '{operation}'")
        raise Forbidden(f"Operation '{operation}' is not permitted")

    if access is Access.ADMIN:
        require_admin(context)
    elif access is Access.AUTHENTICATED:
        require_auth(context)
