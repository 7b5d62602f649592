from decimal import Decimal

import pytest
from fastapi.testclient import TestClient

from api.dependencies import get_currency_context
from api.main import app
from application.services import CurrencyContext, RateCache
from domain.exceptions.currency import NetworkError
from infrastructure.providers import StaticRateSource


@pytest.fixture
def context(registry, clock, make_table):
    cache = RateCache(
        StaticRateSource(registry, clock=clock),
        registry,
        initial_table=make_table(fetched_at=clock.now, source='static'),
        clock=clock,
    )
    return CurrencyContext(registry, cache)


@pytest.fixture
def client(context):
    # Override the real dependency with an in-memory context
    app.dependency_overrides[get_currency_context] = lambda: context
    client = TestClient(app)
    yield client
    app.dependency_overrides.clear()


# ============================================================================
# Currency selection
# ============================================================================

def test_list_currencies(client, registry):
    response = client.get('/api/currencies')

    assert response.status_code == 200
    data = response.json()
    assert [c['code'] for c in data['currencies']] == list(registry.codes)
    assert data['current'] == 'USD'
    jpy = next(c for c in data['currencies'] if c['code'] == 'JPY')
    assert jpy['decimal_digits'] == 0
    assert jpy['symbol'] == '¥'


def test_select_currency(client, context):
    response = client.put('/api/currency', json={'code': 'eur'})

    assert response.status_code == 200
    assert response.json()['currency']['code'] == 'EUR'
    assert context.get_current_currency() == 'EUR'
    assert client.get('/api/currency').json()['currency']['symbol'] == '€'


def test_select_unsupported_currency(client, context):
    response = client.put('/api/currency', json={'code': 'ZZZ'})

    assert response.status_code == 400
    assert response.json()['detail'] == 'Currency ZZZ is not supported'
    assert response.json()['code'] == 'ZZZ'
    assert context.get_current_currency() == 'USD'


def test_select_short_unknown_code_is_unsupported(client, context):
    response = client.put('/api/currency', json={'code': 'ZZ'})

    assert response.status_code == 400
    assert response.json()['code'] == 'ZZ'
    assert context.get_current_currency() == 'USD'


def test_select_currency_missing_code(client):
    response = client.put('/api/currency', json={})

    assert response.status_code == 422


def test_convert_short_unknown_source_code(client):
    response = client.get('/api/convert', params={'amount': '5', 'from_currency': 'ZZ'})

    assert response.status_code == 400


# ============================================================================
# Conversion / formatting
# ============================================================================

def test_convert_into_selected_currency(client):
    client.put('/api/currency', json={'code': 'EUR'})

    response = client.get('/api/convert', params={'amount': '100'})

    assert response.status_code == 200
    data = response.json()
    assert data['from_currency'] == 'USD'
    assert data['to_currency'] == 'EUR'
    assert Decimal(data['converted_amount']) == Decimal('92.00')
    assert Decimal(data['exchange_rate']) == Decimal('0.92')
    assert data['formatted'] == '€92.00'
    assert data['rates_source'] == 'static'
    assert data['stale'] is False


def test_convert_from_other_currency(client):
    client.put('/api/currency', json={'code': 'JPY'})

    response = client.get(
        '/api/convert', params={'amount': '92', 'from_currency': 'eur', 'with_decimals': 'false'}
    )

    assert response.status_code == 200
    data = response.json()
    assert Decimal(data['converted_amount']) == Decimal('14950')
    assert data['formatted'] == '¥14,950'


def test_convert_same_currency_is_identity(client):
    response = client.get('/api/convert', params={'amount': '19.99'})

    data = response.json()
    assert Decimal(data['converted_amount']) == Decimal('19.99')
    assert data['formatted'] == '$19.99'


def test_convert_negative_amount_rejected(client):
    response = client.get('/api/convert', params={'amount': '-5'})

    assert response.status_code == 422


def test_convert_unknown_source_currency(client):
    response = client.get('/api/convert', params={'amount': '5', 'from_currency': 'XYZ'})

    assert response.status_code == 400
    assert 'XYZ' in response.json()['detail']


def test_format_price(client):
    response = client.get('/api/format', params={'amount': '1234567.5'})

    assert response.status_code == 200
    assert response.json()['formatted'] == '$1,234,567.50'


# ============================================================================
# Rates
# ============================================================================

def test_rate_status(client):
    response = client.get('/api/rates')

    assert response.status_code == 200
    data = response.json()
    assert data['base_currency'] == 'USD'
    assert data['is_loading'] is False
    assert data['stale'] is False
    assert data['source'] == 'static'
    assert data['last_updated_label'] == 'Just now'
    assert data['last_error'] is None
    assert Decimal(data['rates']['GBP']) == Decimal('0.79')


def test_refresh_rates(client, clock):
    clock.advance(3600 * 1000)

    response = client.post('/api/rates/refresh')

    assert response.status_code == 200
    data = response.json()
    assert data['result'] == 'committed'
    assert data['error'] is None
    assert data['status']['last_updated'] == clock.now
    assert data['status']['stale'] is False


def test_refresh_failure_keeps_serving_rates(registry, clock, make_table, rate_source):
    rate_source.results.append(NetworkError('connection refused'))
    cache = RateCache(
        rate_source, registry, initial_table=make_table(fetched_at=clock.now), clock=clock
    )
    context = CurrencyContext(registry, cache)
    app.dependency_overrides[get_currency_context] = lambda: context
    try:
        client = TestClient(app)

        response = client.post('/api/rates/refresh')

        assert response.status_code == 200
        data = response.json()
        assert data['result'] == 'failed'
        assert data['error'] == 'network'
        assert data['status']['is_loading'] is False
        assert data['status']['last_updated'] == clock.now
        assert Decimal(data['status']['rates']['EUR']) == Decimal('0.92')
    finally:
        app.dependency_overrides.clear()


# ============================================================================
# WebSocket
# ============================================================================

def test_websocket_sends_initial_state(client):
    with client.websocket_connect('/api/ws/currency') as websocket:
        message = websocket.receive_json()

        assert message['type'] == 'connection_established'
        assert message['state']['current_currency'] == 'USD'
        assert message['state']['source'] == 'static'
        assert message['state']['rates']['EUR'] == '0.92'

        websocket.send_text('ping')
        assert websocket.receive_json() == {'type': 'pong'}


def test_websocket_stats(client):
    response = client.get('/api/ws/stats')

    assert response.status_code == 200
    assert isinstance(response.json()['total_connections'], int)
