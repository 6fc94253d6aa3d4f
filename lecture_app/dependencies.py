from datetime import datetime

from sqlalchemy.ext.asyncio import AsyncSession

from lecture_app.database import database


async def get_db() -> AsyncSession:
    """
    Dependency function that yields db sessions
    """
    async with database.get_session() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


def get_now() -> datetime:
    """
    Current server-local time. Every week-boundary computation in a request
    goes through this dependency so the clock can be pinned.
    """
    return datetime.now()
