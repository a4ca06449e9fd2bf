"""
app/database/session.py

Async engine, session factory and the `get_db` request dependency.
"""

from collections.abc import AsyncGenerator

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from app.core.config import settings

# -----------------------------------------------------
# SQLAlchemy Async Engine Initialization
# -----------------------------------------------------
engine = create_async_engine(
    settings.db_url,
    echo=False,
    pool_pre_ping=True,
)

# -----------------------------------------------------
# Session Factory
# -----------------------------------------------------
AsyncSessionLocal = async_sessionmaker(
    bind=engine,
    class_=AsyncSession,
    autoflush=False,
    expire_on_commit=False,  # ORM objects stay readable after commit for response building
)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    Yields a single session per request. Uncommitted work is rolled back
    if the handler raises.
    """
    async with AsyncSessionLocal() as db:
        try:
            yield db
        except Exception:
            await db.rollback()
            raise
