import asyncio
import logging
from collections.abc import Callable
from dataclasses import replace

from tenacity import AsyncRetrying, retry_if_exception_type, stop_after_attempt, wait_exponential

from domain.exceptions.currency import (
	FetchTimeoutError,
	MalformedResponseError,
	NetworkError,
	RateSourceError,
)
from domain.models.currency import (
	CacheSnapshot,
	ErrorKind,
	RateTable,
	RefreshOutcome,
	RefreshResult,
	RefreshState,
	RefreshStatus,
)
from domain.registry import CurrencyRegistry
from infrastructure.providers.base import RateSource
from utils.time import now_millis, seconds_to_millis

logger = logging.getLogger(__name__)

RETRYABLE_ERRORS = (NetworkError, FetchTimeoutError)

RefreshListener = Callable[[RefreshOutcome], None]


def error_kind_for(error: Exception) -> ErrorKind:
	if isinstance(error, FetchTimeoutError):
		return ErrorKind.TIMEOUT
	if isinstance(error, MalformedResponseError):
		return ErrorKind.MALFORMED
	return ErrorKind.NETWORK


class RateCache:
	"""
	Holds the single authoritative rate table.

	Reads (``current``) are synchronous and never wait on the network. Refreshes
	are single-flight: concurrent ``refresh_now`` callers share one fetch and
	observe the same outcome. A fetched table is only committed when its attempt
	started no earlier than the attempt behind the table already held, so a slow
	response can never replace a newer one. Failed or superseded attempts leave
	the held table untouched and are recorded on ``state.last_error``.
	"""

	def __init__(
		self,
		source: RateSource,
		registry: CurrencyRegistry,
		base_code: str = 'USD',
		ttl_seconds: float = 3600,
		initial_table: RateTable | None = None,
		clock: Callable[[], int] = now_millis,
		retry_attempts: int = 1,
		retry_wait_seconds: float = 1.0,
	):
		registry.get(base_code)
		if retry_attempts < 1:
			raise ValueError('retry_attempts must be at least 1')

		self.source = source
		self.registry = registry
		self.base_code = base_code
		self.ttl_seconds = ttl_seconds
		self.retry_attempts = retry_attempts
		self.retry_wait_seconds = retry_wait_seconds
		self._clock = clock

		self._table = RateTable.bootstrap(base_code, registry.codes)
		self._state = RefreshState()
		self._inflight: asyncio.Task[RefreshOutcome] | None = None
		self._listeners: list[RefreshListener] = []

		if initial_table is not None:
			self.commit(initial_table)

	@property
	def ttl_millis(self) -> int:
		return seconds_to_millis(self.ttl_seconds)

	@property
	def table(self) -> RateTable:
		return self._table

	@property
	def state(self) -> RefreshState:
		return self._state

	@property
	def in_flight(self) -> bool:
		return self._inflight is not None

	def now(self) -> int:
		return self._clock()

	def current(self) -> CacheSnapshot:
		table = self._table
		return CacheSnapshot(table=table, stale=self.is_stale(table))

	def is_stale(self, table: RateTable | None = None) -> bool:
		table = table or self._table
		if table.is_bootstrap:
			return True
		return self._clock() - table.fetched_at >= self.ttl_millis

	def add_listener(self, listener: RefreshListener) -> Callable[[], None]:
		self._listeners.append(listener)

		def remove() -> None:
			if listener in self._listeners:
				self._listeners.remove(listener)

		return remove

	def _validate(self, table: RateTable) -> None:
		if table.base_code != self.base_code:
			raise ValueError(f'Table base {table.base_code} does not match cache base {self.base_code}')
		missing = [code for code in self.registry.codes if code not in table.rates]
		if missing:
			raise ValueError(f'Table is missing rates for {", ".join(missing)}')

	def commit(self, table: RateTable) -> bool:
		"""Swap in ``table`` unless it comes from an attempt older than the held table's."""
		self._validate(table)

		held = self._table
		if table.fetch_started_at < held.fetch_started_at:
			logger.info(
				f'Discarding rate table from {table.source} started at {table.fetch_started_at}: '
				f'held table started at {held.fetch_started_at}'
			)
			return False

		self._table = table
		self._state = replace(self._state, last_updated=table.fetched_at, last_error=None)
		logger.info(
			f'Committed {len(table.rates)} rates from {table.source} '
			f'(base {table.base_code}, fetched at {table.fetched_at})'
		)
		return True

	async def refresh_now(self) -> RefreshOutcome:
		if self._inflight is None:
			self._inflight = asyncio.create_task(self._run_attempt(), name='rate-cache-refresh')
		else:
			logger.debug('Refresh already in flight, attaching to it')
		return await asyncio.shield(self._inflight)

	async def wait_idle(self) -> None:
		"""Wait for the in-flight refresh, if any, to settle."""
		if self._inflight is not None:
			await asyncio.shield(self._inflight)

	async def _fetch(self) -> RateTable:
		async for attempt in AsyncRetrying(
			stop=stop_after_attempt(self.retry_attempts),
			wait=wait_exponential(multiplier=self.retry_wait_seconds, max=10),
			retry=retry_if_exception_type(RETRYABLE_ERRORS),
			reraise=True,
		):
			with attempt:
				if attempt.retry_state.attempt_number > 1:
					logger.info(
						f'Retrying rate fetch from {self.source.name} '
						f'(attempt {attempt.retry_state.attempt_number}/{self.retry_attempts})'
					)
				table = await self.source.fetch()
		try:
			self._validate(table)
		except ValueError as e:
			raise MalformedResponseError(
				f'Rate source {self.source.name} returned an unusable table: {e}'
			) from e
		return table

	async def _run_attempt(self) -> RefreshOutcome:
		started_at = self._clock()
		self._state = replace(self._state, status=RefreshStatus.REFRESHING)

		try:
			try:
				fetched = await self._fetch()
			except RateSourceError as e:
				outcome = self._record_failure(started_at, error_kind_for(e), str(e))
			except Exception as e:
				logger.error(f'Unexpected error from rate source {self.source.name}', exc_info=True)
				outcome = self._record_failure(started_at, ErrorKind.NETWORK, str(e))
			else:
				fetched = replace(fetched, fetch_started_at=started_at)
				if self.commit(fetched):
					outcome = RefreshOutcome(
						result=RefreshResult.COMMITTED,
						table=self._table,
						fetch_started_at=started_at,
					)
				else:
					outcome = self._record_failure(
						started_at,
						ErrorKind.SUPERSEDED,
						'A newer rate table was committed while this fetch was in flight',
						result=RefreshResult.SUPERSEDED,
					)
		finally:
			self._state = replace(self._state, status=RefreshStatus.IDLE)
			self._inflight = None

		self._notify(outcome)
		return outcome

	def _record_failure(
		self,
		started_at: int,
		kind: ErrorKind,
		message: str,
		result: RefreshResult = RefreshResult.FAILED,
	) -> RefreshOutcome:
		self._state = replace(self._state, last_error=kind)
		logger.warning(
			f'Rate refresh from {self.source.name} did not commit ({kind.value}): {message}. '
			f'Serving table from {self._table.source}'
		)
		return RefreshOutcome(
			result=result,
			table=self._table,
			fetch_started_at=started_at,
			error=kind,
			message=message,
		)

	def _notify(self, outcome: RefreshOutcome) -> None:
		for listener in list(self._listeners):
			try:
				listener(outcome)
			except Exception:
				logger.error('Refresh listener failed', exc_info=True)
