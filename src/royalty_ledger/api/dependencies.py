"""FastAPI dependencies for dependency injection."""

from collections.abc import AsyncGenerator
from typing import Annotated
from uuid import UUID

from fastapi import Depends, Header, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from royalty_ledger.database import init_db
from royalty_ledger.services.cache import LedgerCache


async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """Get database session dependency."""
    _, factory = init_db()
    async with factory() as session:
        try:
            yield session
        finally:
            await session.close()


async def get_user_id(
    x_user_id: Annotated[str | None, Header()] = None
) -> UUID:
    """Extract the owning user ID from header."""
    if not x_user_id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="X-User-ID header is required",
        )
    try:
        return UUID(x_user_id)
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid X-User-ID format",
        )


def get_ledger_cache(request: Request) -> LedgerCache | None:
    """The application's ledger cache, created at startup."""
    return getattr(request.app.state, "ledger_cache", None)


# Type aliases for cleaner dependency injection
DbSession = Annotated[AsyncSession, Depends(get_db_session)]
UserId = Annotated[UUID, Depends(get_user_id)]
Cache = Annotated[LedgerCache | None, Depends(get_ledger_cache)]
