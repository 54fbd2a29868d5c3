from typing import Any, Dict, Optional


class BaseAppException(Exception):
    """Base for every error surfaced to API callers.

    ``extensions`` is picked up by graphql-core when the exception is raised
    inside a resolver, so clients receive ``errors[].extensions.code``.
    """

    code: str = "INTERNAL_SERVER_ERROR"
    default_detail: str = "Internal server error"

    def __init__(self, detail: Optional[str] = None):
        self.detail = detail or self.default_detail
        super().__init__(self.detail)

    @property
    def message(self) -> str:
        return self.detail

    @property
    def extensions(self) -> Dict[str, Any]:
        return {"code": self.code}


class Unauthenticated(BaseAppException):
    code = "UNAUTHENTICATED"
    default_detail = "Authentication required"


class Forbidden(BaseAppException):
    code = "FORBIDDEN"
    default_detail = "Admin access required"


class NotFoundError(BaseAppException):
    code = "NOT_FOUND"
    default_detail = "Resource not found"


class InvalidCredentials(BaseAppException):
    code = "INVALID_CREDENTIALS"
    default_detail = "Invalid credentials"


class AlreadyExists(BaseAppException):
    code = "ALREADY_EXISTS"
    default_detail = "User already exists"


class ValidationError(BaseAppException):
    code = "BAD_USER_INPUT"
    default_detail = "Validation error"


class QueryTooComplex(BaseAppException):
    code = "QUERY_TOO_COMPLEX"

    def __init__(self, cost: int, max_cost: int):
        self.cost = cost
        self.max_cost = max_cost
        super().__init__(f"Query is too complex: {cost}. Maximum allowed complexity: {max_cost}")

    @property
    def extensions(self) -> Dict[str, Any]:
        return {"code": self.code, "cost": self.cost, "maxCost": self.max_cost}
