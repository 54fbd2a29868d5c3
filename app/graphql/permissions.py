from typing import Any

from strawberry.permission import BasePermission
from strawberry.types import Info

from app.auth.permissions import enforce_policy


class OperationPolicy(BasePermission):
    """Checks the caller against OPERATION_POLICY for the root field being resolved.

    Violations raise the taxonomy error directly so clients see its code
    (UNAUTHENTICATED or FORBIDDEN) instead of a generic permission message.
    """

    message = "Not authorized"

    def has_permission(self, source: Any, info: Info, **kwargs: Any) -> bool:
        enforce_policy(info.field_name, info.context.auth)
        return True
