from typing import Protocol


class StateStore(Protocol):
	"""Holds the single persisted currency record as an encoded payload."""

	async def load(self) -> str | None: ...

	async def save(self, payload: str) -> None: ...

	async def close(self) -> None: ...
