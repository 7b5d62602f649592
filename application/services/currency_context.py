import asyncio
import logging
from collections.abc import Callable
from dataclasses import dataclass
from decimal import Decimal

from application.services.conversion_service import Amount, ConversionService
from application.services.price_formatter import PriceFormatter, format_relative_age
from application.services.rate_cache import RateCache
from application.services.refresh_scheduler import RefreshScheduler
from domain.exceptions.currency import StateDecodeError, UnknownCurrencyError
from domain.models.currency import (
	ContextEvent,
	ContextEventKind,
	ContextSnapshot,
	Currency,
	ErrorKind,
	PersistedState,
	RateTable,
	RefreshOutcome,
	RefreshResult,
)
from domain.registry import CurrencyRegistry
from infrastructure.persistence.base import StateStore
from infrastructure.state_codec import dump_state, load_state

logger = logging.getLogger(__name__)

Subscriber = Callable[[ContextEvent], None]


@dataclass(frozen=True)
class PriceView:
	"""Conversions pinned to one table and one display currency for a whole render pass."""

	table: RateTable
	currency: Currency
	base_code: str
	conversion: ConversionService
	formatter: PriceFormatter

	def convert(self, amount: Amount, from_code: str | None = None) -> Decimal:
		return self.conversion.convert(amount, from_code or self.base_code, self.currency.code, self.table)

	def format(self, amount: Decimal | int | float, with_decimals: bool = True) -> str:
		return self.formatter.format(amount, self.currency, with_decimals)

	def convert_and_format(
		self, amount: Amount, from_code: str | None = None, with_decimals: bool = True
	) -> str:
		return self.format(self.convert(amount, from_code), with_decimals)


class CurrencyContext:
	"""
	Process-wide currency state for the UI, constructed and owned by the app root.

	Lifecycle: ``load()`` restores the persisted selection and last good table,
	``start()`` schedules periodic refreshes (plus one immediate refresh when the
	table is stale), ``close()`` cancels the schedule. Subscribers are notified
	synchronously after every state transition.
	"""

	def __init__(
		self,
		registry: CurrencyRegistry,
		cache: RateCache,
		store: StateStore | None = None,
		conversion: ConversionService | None = None,
		formatter: PriceFormatter | None = None,
		refresh_interval_seconds: float | None = None,
	):
		self.registry = registry
		self.cache = cache
		self.store = store
		self.conversion = conversion or ConversionService()
		self.formatter = formatter or PriceFormatter()
		self.base_code = cache.base_code

		self._selected = self.base_code
		self._pending_refreshes = 0
		self._subscribers: list[Subscriber] = []
		self._writes: set[asyncio.Task] = set()
		self._write_lock = asyncio.Lock()
		self._loaded = False
		self._scheduler = RefreshScheduler(
			self.refresh_rates, refresh_interval_seconds or cache.ttl_seconds
		)
		self._remove_cache_listener = cache.add_listener(self._on_refresh_outcome)

	# Lifecycle

	async def load(self) -> None:
		self._loaded = True
		if self.store is None:
			return

		try:
			raw = await self.store.load()
		except Exception as e:
			logger.error(f'Failed to read persisted currency state: {e}')
			return
		if raw is None:
			logger.info('No persisted currency state, starting from bootstrap rates')
			return

		try:
			state = load_state(raw, self.registry, self.base_code)
		except StateDecodeError as e:
			logger.warning(f'Ignoring malformed persisted currency state: {e}')
			return

		if state.selected_code in self.registry:
			self._selected = state.selected_code
		else:
			logger.warning(
				f'Persisted currency {state.selected_code!r} is not supported, '
				f'falling back to {self.base_code}'
			)
		if state.table is not None:
			self.cache.commit(state.table)

	async def start(self) -> None:
		if not self._loaded:
			await self.load()
		stale = self.cache.is_stale()
		self._scheduler.start(immediate=stale)
		logger.info(
			f'Currency context running (currency {self._selected}, '
			f'rates from {self.cache.table.source}, stale={stale})'
		)

	async def close(self) -> None:
		await self._scheduler.stop()
		await self.cache.wait_idle()
		if self._writes:
			await asyncio.gather(*self._writes, return_exceptions=True)
		self._remove_cache_listener()
		logger.info('Currency context closed')

	async def __aenter__(self) -> 'CurrencyContext':
		await self.start()
		return self

	async def __aexit__(self, exc_type, exc, tb) -> None:
		await self.close()

	# Reads

	@property
	def is_loading(self) -> bool:
		return self._pending_refreshes > 0

	@property
	def last_updated(self) -> int | None:
		return self.cache.state.last_updated

	@property
	def last_error(self) -> ErrorKind | None:
		return self.cache.state.last_error

	@property
	def is_stale(self) -> bool:
		return self.cache.is_stale()

	@property
	def scheduler_active(self) -> bool:
		return self._scheduler.active

	def get_currencies(self) -> tuple[Currency, ...]:
		return self.registry.all()

	def get_current_currency(self) -> str:
		return self._selected

	def snapshot(self) -> ContextSnapshot:
		current = self.cache.current()
		state = self.cache.state
		return ContextSnapshot(
			current_currency=self._selected,
			table=current.table,
			stale=current.stale,
			is_loading=self.is_loading,
			last_updated=state.last_updated,
			last_error=state.last_error,
		)

	def last_updated_label(self) -> str:
		return format_relative_age(self.last_updated, self.cache.now())

	def render_pass(self) -> PriceView:
		return PriceView(
			table=self.cache.current().table,
			currency=self.registry.get(self._selected),
			base_code=self.base_code,
			conversion=self.conversion,
			formatter=self.formatter,
		)

	def convert_price(self, amount: Amount, from_code: str | None = None) -> Decimal:
		return self.render_pass().convert(amount, from_code)

	def format_price(self, amount: Decimal | int | float, with_decimals: bool = True) -> str:
		return self.render_pass().format(amount, with_decimals)

	def convert_and_format(
		self, amount: Amount, from_code: str | None = None, with_decimals: bool = True
	) -> str:
		return self.render_pass().convert_and_format(amount, from_code, with_decimals)

	# Transitions

	async def set_current_currency(self, code: str) -> None:
		if code not in self.registry:
			logger.warning(f'Rejected unsupported currency selection {code!r}')
			raise UnknownCurrencyError(code)

		previous, self._selected = self._selected, code
		self._emit(ContextEventKind.CURRENCY_CHANGED, previous=previous)
		write = self._schedule_write()
		if write is not None:
			await write

	async def refresh_rates(self) -> RefreshOutcome:
		self._pending_refreshes += 1
		if self._pending_refreshes == 1:
			self._emit(ContextEventKind.LOADING_CHANGED)
		try:
			return await self.cache.refresh_now()
		finally:
			self._pending_refreshes -= 1
			if self._pending_refreshes == 0:
				self._emit(ContextEventKind.LOADING_CHANGED)

	def subscribe(self, subscriber: Subscriber) -> Callable[[], None]:
		self._subscribers.append(subscriber)

		def unsubscribe() -> None:
			if subscriber in self._subscribers:
				self._subscribers.remove(subscriber)

		return unsubscribe

	def _on_refresh_outcome(self, outcome: RefreshOutcome) -> None:
		if outcome.result is RefreshResult.COMMITTED:
			self._emit(ContextEventKind.RATES_COMMITTED, source=outcome.table.source)
			self._schedule_write()
		elif outcome.result is RefreshResult.SUPERSEDED:
			self._emit(ContextEventKind.REFRESH_DISCARDED, error=outcome.error)
		else:
			self._emit(ContextEventKind.REFRESH_FAILED, error=outcome.error, message=outcome.message)

	def _emit(self, kind: ContextEventKind, **details) -> None:
		event = ContextEvent(kind=kind, snapshot=self.snapshot(), details=details)
		for subscriber in list(self._subscribers):
			try:
				subscriber(event)
			except Exception:
				logger.error(f'Currency subscriber failed on {kind.value}', exc_info=True)

	# Persistence

	def _schedule_write(self) -> asyncio.Task | None:
		"""Queue a write of the current record; writes land in the order they were queued."""
		if self.store is None:
			return None
		payload = dump_state(PersistedState(selected_code=self._selected, table=self._persistable_table()))
		task = asyncio.get_running_loop().create_task(self._write(payload))
		self._writes.add(task)
		task.add_done_callback(self._writes.discard)
		return task

	def _persistable_table(self) -> RateTable | None:
		table = self.cache.table
		return None if table.is_bootstrap else table

	async def _write(self, payload: str) -> None:
		async with self._write_lock:
			try:
				await self.store.save(payload)
			except Exception as e:
				logger.error(f'Failed to persist currency state: {e}')
