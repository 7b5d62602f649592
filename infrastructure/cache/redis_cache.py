from redis import asyncio as redis


class RedisStateStore:
	STATE_KEY = 'currency:state'

	def __init__(self, redis_client: redis.Redis, key: str = STATE_KEY):
		self.redis = redis_client
		self.key = key

	async def load(self) -> str | None:
		data = await self.redis.get(self.key)
		if not data:
			return None
		if isinstance(data, bytes):
			return data.decode('utf-8')
		return data

	async def save(self, payload: str) -> None:
		# No expiry: the record is the last good table, staleness is decided by the cache.
		await self.redis.set(self.key, payload)

	async def close(self) -> None:
		await self.redis.aclose()
