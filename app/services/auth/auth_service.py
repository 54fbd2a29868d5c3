import logging
from typing import Optional
from sqlalchemy.ext.asyncio import AsyncSession
from app.auth.jwt_handler import decode_access_token, extract_bearer_token
from app.auth.permissions import ANONYMOUS, AuthContext
from app.core.exceptions import AlreadyExists, BaseAppException, InvalidCredentials
from app.core.logging import log_user_action
from app.core.security import verify_password, get_password_hash, create_access_token
from app.models.auth.user import User
from app.models.shared.enums import Role
from app.schemas.auth.user import LoginRequest, RegisterRequest
from app.services.auth.user_service import UserService

logger = logging.getLogger(__name__)

class AuthService:
    def __init__(self, session: AsyncSession):
        self.session = session
        self.user_service = UserService(session)

    async def authenticate_user(
        self,
        credentials: LoginRequest,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
    ) -> User:
        """Authenticate user with email and password"""
        user = await self.user_service.get_user_by_email(credentials.email)

        if not user:
            logger.warning(f"Failed login for {credentials.email}: user not found (ip={ip_address}, agent={user_agent})")
            raise InvalidCredentials()

        if not verify_password(credentials.password, user.hashed_password):
            logger.warning(f"Failed login for {credentials.email}: wrong password (ip={ip_address}, agent={user_agent})")
            raise InvalidCredentials()

        log_user_action(user.id, "login", "auth")
        return user

    async def register_user(self, data: RegisterRequest) -> User:
        """Create an EMPLOYEE account"""
        try:
            existing = await self.user_service.get_user_by_email(data.email)
            if existing:
                raise AlreadyExists()

            user = User(
                email=data.email,
                hashed_password=get_password_hash(data.password),
                name=data.name,
                role=Role.EMPLOYEE,
            )
            self.session.add(user)
            await self.session.commit()
            await self.session.refresh(user)

            log_user_action(user.id, "register", "user", user.id)
            return user

        except BaseAppException:
            raise
        except Exception as e:
            await self.session.rollback()
            logger.error(f"Error registering user {data.email}: {str(e)}")
            raise

    def create_token(self, user: User) -> str:
        """Create the access token returned by login and register"""
        return create_access_token(
            data={
                "sub": str(user.id),
                "email": user.email,
                "name": user.name,
                "role": user.role.value,
            }
        )

    async def resolve_auth_context(self, authorization: Optional[str]) -> AuthContext:
        """
        Resolve the caller from an Authorization header.
        Any token problem yields the anonymous context; the user row is
        re-read so the role reflects the current record, not the token.
        """
        token = extract_bearer_token(authorization)
        if not token:
            return ANONYMOUS

        payload = decode_access_token(token)
        if payload is None:
            return ANONYMOUS

        try:
            user_id = int(payload.get("sub"))
        except (TypeError, ValueError):
            return ANONYMOUS

        user = await self.user_service.get_user(user_id)
        if user is None:
            return ANONYMOUS

        return AuthContext(user_id=user.id, email=user.email, role=user.role)
