from datetime import datetime

from sqlalchemy import DateTime, Integer, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
	pass


class CurrencyStateDB(Base):
	__tablename__ = 'currency_state'

	id: Mapped[int] = mapped_column(Integer, primary_key=True)
	payload: Mapped[str] = mapped_column(Text, nullable=False)
	updated_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)
