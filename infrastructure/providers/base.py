from collections.abc import Mapping
from decimal import Decimal, InvalidOperation
from typing import Protocol, runtime_checkable

from domain.exceptions.currency import MalformedResponseError
from domain.models.currency import RateTable
from domain.registry import CurrencyRegistry


@runtime_checkable
class RateSource(Protocol):
	"""Fetches one complete rate table per call. Implementations keep no state between calls."""

	@property
	def name(self) -> str: ...

	async def fetch(self) -> RateTable: ...

	async def close(self) -> None: ...


def parse_rate(code: str, value: object) -> Decimal:
	if isinstance(value, bool) or not isinstance(value, (int, float, str, Decimal)):
		raise MalformedResponseError(f'Invalid rate for {code}: {value!r}')
	try:
		rate = Decimal(str(value))
	except InvalidOperation as e:
		raise MalformedResponseError(f'Invalid rate for {code}: {value!r}') from e
	if not rate.is_finite() or rate <= 0:
		raise MalformedResponseError(f'Invalid rate for {code}: {value!r}')
	return rate


def build_rates(
	raw_rates: object,
	base_code: str,
	registry: CurrencyRegistry,
	tolerance: float = 1e-6,
) -> dict[str, Decimal]:
	"""
	Validate an upstream rate mapping against the registry.

	Keeps exactly one entry per registered code (extra upstream codes are
	dropped) and pins the base rate to exactly 1 once it is within tolerance.
	"""
	if not isinstance(raw_rates, Mapping):
		raise MalformedResponseError('Response field "rates" must be an object')

	rates: dict[str, Decimal] = {}
	for code in registry.codes:
		if code not in raw_rates:
			raise MalformedResponseError(f'Missing rate for {code}')
		rates[code] = parse_rate(code, raw_rates[code])

	if base_code not in rates:
		raise MalformedResponseError(f'Missing rate for base currency {base_code}')
	if abs(rates[base_code] - 1) > Decimal(str(tolerance)):
		raise MalformedResponseError(
			f'Base currency {base_code} rate is {rates[base_code]}, expected 1'
		)
	rates[base_code] = Decimal(1)
	return rates
