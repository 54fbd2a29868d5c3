import asyncio
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession
from strawberry.fastapi import BaseContext

from app.auth.permissions import AuthContext
from app.core.database import get_async_session
from app.graphql.dataloader import DataLoaders, create_dataloaders
from app.services.auth.auth_service import AuthService


class GraphQLContext(BaseContext):
    """Per-request state shared by every resolver of one GraphQL operation"""

    def __init__(self, session: AsyncSession, auth: AuthContext, session_lock: Optional[asyncio.Lock] = None):
        super().__init__()
        self.session = session
        self.auth = auth
        self.session_lock = session_lock or asyncio.Lock()
        self.loaders: DataLoaders = create_dataloaders(session, self.session_lock)

    @asynccontextmanager
    async def use_session(self) -> AsyncIterator[AsyncSession]:
        """Exclusive use of the request session; do not await loaders inside"""
        async with self.session_lock:
            yield self.session


async def get_context(
    request: Request,
    session: AsyncSession = Depends(get_async_session),
) -> GraphQLContext:
    auth = await AuthService(session).resolve_auth_context(request.headers.get("Authorization"))
    return GraphQLContext(session=session, auth=auth)
