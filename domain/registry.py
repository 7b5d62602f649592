from collections.abc import Iterable, Iterator

from domain.exceptions.currency import UnknownCurrencyError
from domain.models.currency import Currency

DEFAULT_BASE_CURRENCY = 'USD'

SUPPORTED_CURRENCIES: tuple[Currency, ...] = (
	Currency(code='USD', name='US Dollar', symbol='$', decimal_digits=2, flag='🇺🇸'),
	Currency(code='EUR', name='Euro', symbol='€', decimal_digits=2, flag='🇪🇺'),
	Currency(code='GBP', name='British Pound', symbol='£', decimal_digits=2, flag='🇬🇧'),
	Currency(code='RON', name='Romanian Leu', symbol='lei', decimal_digits=2, flag='🇷🇴'),
	Currency(code='JPY', name='Japanese Yen', symbol='¥', decimal_digits=0, flag='🇯🇵'),
	Currency(code='CNY', name='Chinese Yuan', symbol='¥', decimal_digits=2, flag='🇨🇳'),
	Currency(code='CAD', name='Canadian Dollar', symbol='C$', decimal_digits=2, flag='🇨🇦'),
	Currency(code='AUD', name='Australian Dollar', symbol='A$', decimal_digits=2, flag='🇦🇺'),
	Currency(code='CHF', name='Swiss Franc', symbol='Fr', decimal_digits=2, flag='🇨🇭'),
	Currency(code='INR', name='Indian Rupee', symbol='₹', decimal_digits=2, flag='🇮🇳'),
	Currency(code='BRL', name='Brazilian Real', symbol='R$', decimal_digits=2, flag='🇧🇷'),
	Currency(code='MXN', name='Mexican Peso', symbol='Mex$', decimal_digits=2, flag='🇲🇽'),
)


class CurrencyRegistry:
	"""Closed, ordered catalog of the currencies prices can be shown in."""

	def __init__(self, currencies: Iterable[Currency] = SUPPORTED_CURRENCIES):
		self._currencies: dict[str, Currency] = {}
		for currency in currencies:
			if currency.code in self._currencies:
				raise ValueError(f'Duplicate currency code: {currency.code}')
			if currency.decimal_digits < 0:
				raise ValueError(f'Negative decimal digits for {currency.code}')
			self._currencies[currency.code] = currency

	def all(self) -> tuple[Currency, ...]:
		return tuple(self._currencies.values())

	def get(self, code: str) -> Currency:
		try:
			return self._currencies[code]
		except (KeyError, TypeError):
			raise UnknownCurrencyError(code) from None

	@property
	def codes(self) -> tuple[str, ...]:
		return tuple(self._currencies)

	def __contains__(self, code: object) -> bool:
		return isinstance(code, str) and code in self._currencies

	def __iter__(self) -> Iterator[Currency]:
		return iter(self._currencies.values())

	def __len__(self) -> int:
		return len(self._currencies)


default_registry = CurrencyRegistry()
