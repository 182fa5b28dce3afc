from fastapi import Depends, Query
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from blogpress.config import settings
from blogpress.database import get_db
from blogpress.exceptions import ForbiddenError, UnauthorizedError
from blogpress.models import ROLE_ADMIN, User
from blogpress.security import decode_access_token

bearer_scheme = HTTPBearer(auto_error=False)


class PaginationParams:
    """
    Reusable FastAPI dependency that parses and validates pagination
    query parameters.

    Usage in a router::

        @router.get("/api/posts")
        async def list_posts(pagination: PaginationParams = Depends()):
            ...

    Attributes
    ----------
    page:
        1-based page number (minimum 1).
    limit:
        Number of items per page, clamped to ``settings.MAX_PAGE_SIZE``
        regardless of the value supplied by the caller.
    """

    def __init__(
        self,
        page: int = Query(
            1,
            ge=1,
            description="Page number (1-based).",
        ),
        limit: int = Query(
            settings.DEFAULT_PAGE_SIZE,
            ge=1,
            description=f"Posts per page (values above {settings.MAX_PAGE_SIZE} are clamped).",
        ),
    ) -> None:
        self.page = page
        self.limit = min(limit, settings.MAX_PAGE_SIZE)

    @property
    def offset(self) -> int:
        """SQL OFFSET value computed from the current page and page size."""
        return (self.page - 1) * self.limit


async def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    db: AsyncSession = Depends(get_db),
) -> User:
    """Resolve the bearer token to a stored user or fail with 401."""
    if credentials is None:
        raise UnauthorizedError()

    user_id = decode_access_token(credentials.credentials)
    if user_id is None:
        raise UnauthorizedError()

    user = await db.get(User, user_id)
    if user is None:
        raise UnauthorizedError()
    return user


async def require_admin(user: User = Depends(get_current_user)) -> User:
    if user.role != ROLE_ADMIN:
        raise ForbiddenError(f"User role {user.role} is not authorized to access this route")
    return user
