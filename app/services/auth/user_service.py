import logging
from typing import Optional, List, Sequence
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from app.models.auth.user import User

logger = logging.getLogger(__name__)

class UserService:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_user(self, user_id: int) -> Optional[User]:
        """Get user by ID"""
        result = await self.session.execute(
            select(User).where(User.id == user_id)
        )
        return result.scalar_one_or_none()

    async def get_user_by_email(self, email: str) -> Optional[User]:
        """Get user by email"""
        result = await self.session.execute(
            select(User).where(User.email == email)
        )
        return result.scalar_one_or_none()

    async def get_users_by_ids(self, user_ids: Sequence[int]) -> List[User]:
        """Bulk lookup; order of the result is unspecified"""
        if not user_ids:
            return []
        result = await self.session.execute(
            select(User).where(User.id.in_(list(user_ids)))
        )
        return list(result.scalars().all())
