from datetime import UTC, datetime

from infrastructure.persistence.database import Database
from infrastructure.persistence.models.currency import CurrencyStateDB

STATE_ROW_ID = 1


class DatabaseStateStore:
	"""Keeps the persisted currency record as a single row."""

	def __init__(self, database: Database):
		self.database = database

	async def load(self) -> str | None:
		async with self.database.session() as session:
			row = await session.get(CurrencyStateDB, STATE_ROW_ID)
			return row.payload if row else None

	async def save(self, payload: str) -> None:
		async with self.database.session() as session:
			row = await session.get(CurrencyStateDB, STATE_ROW_ID)
			now = datetime.now(UTC).replace(tzinfo=None)
			if row is None:
				session.add(CurrencyStateDB(id=STATE_ROW_ID, payload=payload, updated_at=now))
			else:
				row.payload = payload
				row.updated_at = now

	async def close(self) -> None:
		await self.database.close()
