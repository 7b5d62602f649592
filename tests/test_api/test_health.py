import pytest
from fastapi.testclient import TestClient

from api.dependencies import get_currency_context
from api.main import app
from application.services import CurrencyContext, RateCache


@pytest.fixture
def build_client(registry, clock, rate_source):
    def build(initial_table=None):
        cache = RateCache(rate_source, registry, initial_table=initial_table, clock=clock)
        context = CurrencyContext(registry, cache)
        app.dependency_overrides[get_currency_context] = lambda: context
        return TestClient(app)

    yield build
    app.dependency_overrides.clear()


def test_health_check_healthy(build_client, make_table, clock):
    client = build_client(make_table(fetched_at=clock.now))

    response = client.get('/api/health')

    assert response.status_code == 200
    data = response.json()
    assert data['status'] == 'healthy'
    assert data['rates_source'] == 'scripted'
    assert data['stale'] is False
    assert data['last_error'] is None
    assert data['refresh_scheduled'] is False
    assert 'timestamp' in data


def test_health_check_degraded_on_bootstrap_rates(build_client):
    client = build_client()

    response = client.get('/api/health')

    assert response.status_code == 200
    data = response.json()
    assert data['status'] == 'degraded'
    assert data['rates_source'] == 'bootstrap'
    assert data['stale'] is True


def test_health_check_degraded_when_stale(build_client, make_table, clock):
    client = build_client(make_table(fetched_at=clock.now))
    clock.advance(3600 * 1000)

    response = client.get('/api/health')

    assert response.json()['status'] == 'degraded'
