import logging
from typing import Optional

from sqlalchemy import text
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession
from sqlalchemy.orm import sessionmaker, declarative_base
from sqlalchemy.pool import NullPool

from lecture_app.config import get_settings

logger = logging.getLogger(__name__)

Base = declarative_base()


class Database:
    def __init__(self, url: Optional[str] = None):
        self.url = url
        self.engine = None
        self.async_session = None
        self.is_connected = False

    async def connect(self):
        """Create the async engine and session factory"""
        settings = get_settings()
        connection_string = self.url or settings.sqlalchemy_url

        try:
            engine_options = {"echo": settings.sql_echo}
            if connection_string.startswith("mysql"):
                engine_options.update(
                    pool_pre_ping=True,
                    pool_recycle=3600,
                    poolclass=NullPool
                )

            self.engine = create_async_engine(connection_string, **engine_options)

            self.async_session = sessionmaker(
                self.engine,
                class_=AsyncSession,
                expire_on_commit=False
            )

            self.is_connected = True
            logger.info(f"Database engine created for {self.engine.url.render_as_string(hide_password=True)}")
            return True

        except Exception as e:
            logger.error(f"Error connecting to database: {e}", exc_info=True)
            self.is_connected = False
            return False

    async def disconnect(self):
        """Dispose of the engine"""
        if self.engine:
            await self.engine.dispose()
            self.is_connected = False
            logger.info("Database connection closed")

    def get_session(self) -> AsyncSession:
        """Get async database session"""
        if not self.is_connected:
            raise RuntimeError("Database is not connected. Call connect() first.")
        return self.async_session()

    async def create_tables(self):
        """Create all tables defined in Base metadata"""
        # models register themselves on Base when imported
        from lecture_app.models import attendance, lecture, student  # noqa: F401

        try:
            async with self.engine.begin() as conn:
                await conn.run_sync(Base.metadata.create_all)
            logger.info("Tables created successfully")
        except Exception as e:
            logger.error(f"Error creating tables: {e}", exc_info=True)
            raise

    async def check_connection(self) -> bool:
        if not self.is_connected:
            return False
        try:
            async with self.engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
            return True
        except Exception as e:
            logger.warning(f"Database ping failed: {e}")
            return False


# Create global database instance
database = Database()
