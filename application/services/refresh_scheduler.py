import asyncio
import logging
from collections.abc import Awaitable, Callable
from contextlib import suppress

logger = logging.getLogger(__name__)


class RefreshScheduler:
	"""
	Cancellable periodic task that triggers a rate refresh every interval.

	Owned by whoever starts it; ``stop()`` must be awaited on teardown so no
	timer outlives its owner.
	"""

	def __init__(self, refresh: Callable[[], Awaitable[object]], interval_seconds: float):
		if interval_seconds <= 0:
			raise ValueError('interval_seconds must be positive')
		self.refresh = refresh
		self.interval_seconds = interval_seconds
		self.is_running = False
		self._task: asyncio.Task | None = None

	@property
	def active(self) -> bool:
		return self._task is not None and not self._task.done()

	def start(self, immediate: bool = False) -> None:
		if self.active:
			return
		self._task = asyncio.create_task(self.run(immediate), name='rate-refresh-scheduler')

	async def run(self, immediate: bool = False) -> None:
		self.is_running = True
		logger.info(f'Rate refresh scheduler started (every {self.interval_seconds}s)')

		try:
			if immediate:
				await self._tick()
			while self.is_running:
				await asyncio.sleep(self.interval_seconds)
				await self._tick()
		except asyncio.CancelledError:
			logger.info('Rate refresh scheduler received cancellation signal')
			raise
		finally:
			self.is_running = False

	async def _tick(self) -> None:
		try:
			await self.refresh()
		except Exception as e:
			logger.error(f'Scheduled rate refresh failed: {e}', exc_info=True)

	async def stop(self) -> None:
		self.is_running = False
		task, self._task = self._task, None
		if task is None:
			return
		task.cancel()
		with suppress(asyncio.CancelledError):
			await task
		logger.info('Rate refresh scheduler stopped')
