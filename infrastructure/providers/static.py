from collections.abc import Callable, Mapping
from decimal import Decimal

from domain.exceptions.currency import MalformedResponseError
from domain.models.currency import RateTable
from domain.registry import CurrencyRegistry
from infrastructure.providers.base import build_rates
from utils.time import now_millis

# Approximate USD-based rates, used when no upstream provider is reachable or configured.
DEFAULT_USD_RATES: dict[str, Decimal] = {
	'USD': Decimal('1.0'),
	'EUR': Decimal('0.92'),
	'GBP': Decimal('0.79'),
	'RON': Decimal('4.55'),
	'JPY': Decimal('149.50'),
	'CNY': Decimal('7.24'),
	'CAD': Decimal('1.35'),
	'AUD': Decimal('1.52'),
	'CHF': Decimal('0.88'),
	'INR': Decimal('83.12'),
	'BRL': Decimal('4.87'),
	'MXN': Decimal('17.05'),
}


class StaticRateSource:
	"""Serves a fixed rate table, rebased onto whichever base currency is configured."""

	def __init__(
		self,
		registry: CurrencyRegistry,
		base_code: str = 'USD',
		rates: Mapping[str, Decimal] = DEFAULT_USD_RATES,
		clock: Callable[[], int] = now_millis,
	):
		registry.get(base_code)
		self.registry = registry
		self.base_code = base_code
		self._rates = dict(rates)
		self._clock = clock

	@property
	def name(self) -> str:
		return 'static'

	def _rebased(self) -> dict[str, Decimal]:
		if self.base_code not in self._rates:
			raise MalformedResponseError(f'No static rate for base currency {self.base_code}')
		base_rate = self._rates[self.base_code]
		return {code: rate / base_rate for code, rate in self._rates.items()}

	async def fetch(self) -> RateTable:
		started_at = self._clock()
		rates = build_rates(self._rebased(), self.base_code, self.registry)
		return RateTable(
			base_code=self.base_code,
			rates=rates,
			fetched_at=self._clock(),
			fetch_started_at=started_at,
			source=self.name,
		)

	async def close(self) -> None:
		return None
