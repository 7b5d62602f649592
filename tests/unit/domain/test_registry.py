# nosec B101

import pytest

from domain.exceptions.currency import UnknownCurrencyError
from domain.models.currency import Currency
from domain.registry import SUPPORTED_CURRENCIES, CurrencyRegistry


def test_all_returns_catalog_in_order(registry):
    codes = [c.code for c in registry.all()]

    assert codes[:3] == ['USD', 'EUR', 'GBP']
    assert len(codes) == len(SUPPORTED_CURRENCIES) == 12


def test_get_returns_currency_metadata(registry):
    yen = registry.get('JPY')

    assert yen.symbol == '¥'
    assert yen.decimal_digits == 0
    assert registry.get('EUR').decimal_digits == 2


def test_get_unknown_code_raises():
    registry = CurrencyRegistry()

    with pytest.raises(UnknownCurrencyError) as exc_info:
        registry.get('ZZZ')

    assert exc_info.value.code == 'ZZZ'
    assert 'ZZZ' in str(exc_info.value)


def test_lookup_is_case_sensitive(registry):
    assert 'usd' not in registry
    with pytest.raises(UnknownCurrencyError):
        registry.get('usd')


def test_membership_tolerates_non_string_codes(registry):
    assert None not in registry
    assert ['USD'] not in registry


def test_duplicate_codes_rejected():
    usd = Currency(code='USD', name='US Dollar', symbol='$', decimal_digits=2, flag='')

    with pytest.raises(ValueError, match='Duplicate'):
        CurrencyRegistry([usd, usd])


def test_negative_precision_rejected():
    bad = Currency(code='XXX', name='Bad', symbol='X', decimal_digits=-1, flag='')

    with pytest.raises(ValueError):
        CurrencyRegistry([bad])
