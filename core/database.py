"""
Query executor over the SQLAlchemy async engine
"""

from typing import Any, Dict, List, Optional
import asyncio
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.sql import Executable
from core.config import settings
from core.exceptions import StoreError
import logging

logger = logging.getLogger(__name__)


class QueryExecutor:
    """
    Run single statements against the relational store.

    Every call checks a connection out of the engine pool, runs the
    statement in its own session, commits and returns the result rows
    as plain dictionaries. Failures surface as StoreError.
    """

    def __init__(self, database_url: Optional[str] = None, echo: bool = False):
        self.engine = create_async_engine(
            database_url or settings.DATABASE_URL,
            echo=echo,
            pool_pre_ping=True,
        )
        self.session_maker = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
            autoflush=False
        )

    async def execute_query(
        self,
        statement: Executable,
        params: Optional[Dict[str, Any]] = None
    ) -> List[Dict[str, Any]]:
        """
        Execute a statement and return its rows.

        Args:
            statement: SQLAlchemy Core statement
            params: Extra bind parameters

        Returns:
            Result rows as dictionaries (empty for statements without rows)

        Raises:
            StoreError: If the statement fails
        """
        async with self.session_maker() as session:
            try:
                result = await session.execute(statement, params)
                rows = [dict(row) for row in result.mappings().all()] if result.returns_rows else []
                await session.commit()
                return rows

            except SQLAlchemyError as e:
                await session.rollback()
                raise StoreError(
                    "Failed to execute statement",
                    context={
                        "statement": str(statement)[:500],
                        "params": params,
                    },
                    original_exception=e
                )

            except (OSError, asyncio.TimeoutError) as e:
                # Connection failures from the driver are not DBAPI errors
                raise StoreError(
                    "Database connection failed",
                    context={
                        "statement": str(statement)[:500],
                        "params": params,
                    },
                    original_exception=e
                )

    async def shutdown(self):
        """Dispose of the connection pool"""
        logger.info("Disconnecting pool")
        await self.engine.dispose()
        logger.info("Pool has been disconnected")
