import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from infrastructure.persistence.models.currency import Base

logger = logging.getLogger(__name__)


class Database:
	"""Async engine and session factory for the currency state table."""

	def __init__(self, db_url: str, echo: bool = False):
		self.url = db_url
		self.engine = create_async_engine(db_url, echo=echo)
		self.session_factory = async_sessionmaker(self.engine, expire_on_commit=False)

	async def create_tables(self) -> None:
		async with self.engine.begin() as conn:
			await conn.run_sync(Base.metadata.create_all)
		logger.debug(f'Ensured tables {sorted(Base.metadata.tables)} exist')

	async def close(self) -> None:
		await self.engine.dispose()

	@asynccontextmanager
	async def session(self) -> AsyncIterator[AsyncSession]:
		"""One unit of work: commits on success, rolls back and re-raises on error."""
		async with self.session_factory() as session:
			try:
				yield session
				await session.commit()
			except Exception:
				await session.rollback()
				raise
