from decimal import ROUND_HALF_UP, Decimal, InvalidOperation, localcontext

from domain.exceptions.currency import InvalidAmountError
from domain.models.currency import Currency
from utils.time import millis_to_datetime

MINUTE_MS = 60 * 1000
HOUR_MS = 60 * MINUTE_MS


class PriceFormatter:
	"""
	Locale-invariant price rendering.

	Rounds to the currency's display precision with the configured rounding
	mode, groups thousands, and prefixes the currency symbol. The same input
	always yields the same string regardless of the host locale.
	"""

	def __init__(
		self,
		rounding: str = ROUND_HALF_UP,
		thousands_separator: str = ',',
		decimal_separator: str = '.',
	):
		self.rounding = rounding
		self.thousands_separator = thousands_separator
		self.decimal_separator = decimal_separator
		self._separators = str.maketrans({',': thousands_separator, '.': decimal_separator})

	def format(self, amount: Decimal | int | float, currency: Currency, with_decimals: bool = True) -> str:
		if isinstance(amount, bool):
			raise InvalidAmountError(f'Amount must be a number, got {amount!r}')
		try:
			value = amount if isinstance(amount, Decimal) else Decimal(str(amount))
		except InvalidOperation as e:
			raise InvalidAmountError(f'Amount must be a number, got {amount!r}') from e
		if not value.is_finite():
			raise InvalidAmountError(f'Amount must be finite, got {amount!r}')

		digits = currency.decimal_digits if with_decimals else 0
		with localcontext() as ctx:
			# quantize needs room for every integer digit plus the requested decimals
			ctx.prec = max(ctx.prec, value.adjusted() + digits + 2)
			rounded = value.quantize(Decimal(1).scaleb(-digits), rounding=self.rounding)

		sign = '-' if rounded < 0 else ''
		text = f'{rounded.copy_abs():,.{digits}f}'.translate(self._separators)
		return f'{sign}{currency.symbol}{text}'


def format_relative_age(last_updated: int | None, now: int) -> str:
	"""Short label for how long ago rates were refreshed, e.g. ``5m ago``."""
	if last_updated is None:
		return 'Never'

	diff = max(now - last_updated, 0)
	minutes = diff // MINUTE_MS
	hours = diff // HOUR_MS

	if minutes < 1:
		return 'Just now'
	if minutes < 60:
		return f'{minutes}m ago'
	if hours < 24:
		return f'{hours}h ago'
	return millis_to_datetime(last_updated).date().isoformat()
