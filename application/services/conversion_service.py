from decimal import Decimal, InvalidOperation

from domain.exceptions.currency import InvalidAmountError, UnknownCurrencyError
from domain.models.currency import RateTable

Amount = Decimal | int | float | str


def to_amount(amount: Amount) -> Decimal:
	"""Coerce a price amount to Decimal, rejecting negative and non-finite values."""
	if isinstance(amount, bool) or not isinstance(amount, (Decimal, int, float, str)):
		raise InvalidAmountError(f'Amount must be a number, got {amount!r}')
	try:
		value = amount if isinstance(amount, Decimal) else Decimal(str(amount))
	except InvalidOperation as e:
		raise InvalidAmountError(f'Amount must be a number, got {amount!r}') from e
	if not value.is_finite():
		raise InvalidAmountError(f'Amount must be finite, got {amount!r}')
	if value < 0:
		raise InvalidAmountError(f'Amount must not be negative, got {amount!r}')
	return value


class ConversionService:
	"""Pure conversion arithmetic over a rate table. No rounding happens here."""

	def rate(self, from_code: str, to_code: str, table: RateTable) -> Decimal:
		rates = table.rates
		if from_code not in rates:
			raise UnknownCurrencyError(from_code)
		if to_code not in rates:
			raise UnknownCurrencyError(to_code)
		if from_code == to_code:
			return Decimal(1)
		return rates[to_code] / rates[from_code]

	def convert(self, amount: Amount, from_code: str, to_code: str, table: RateTable) -> Decimal:
		value = to_amount(amount)
		rates = table.rates
		if from_code not in rates:
			raise UnknownCurrencyError(from_code)
		if to_code not in rates:
			raise UnknownCurrencyError(to_code)
		if from_code == to_code:
			return value
		return value * rates[to_code] / rates[from_code]
