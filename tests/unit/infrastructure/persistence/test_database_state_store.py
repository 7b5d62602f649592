# nosec B101


import pytest
import pytest_asyncio

from infrastructure.persistence.database import Database
from infrastructure.persistence.repositories.currency_state import DatabaseStateStore


@pytest_asyncio.fixture
async def store(tmp_path):
    database = Database(f'sqlite+aiosqlite:///{tmp_path / "state.db"}')
    await database.create_tables()
    store = DatabaseStateStore(database)
    yield store
    await store.close()


@pytest.mark.asyncio
async def test_load_empty_database_returns_none(store):
    assert await store.load() is None


@pytest.mark.asyncio
async def test_save_then_load(store):
    await store.save('{"selected_code": "EUR"}')

    assert await store.load() == '{"selected_code": "EUR"}'


@pytest.mark.asyncio
async def test_save_overwrites_single_record(store):
    await store.save('{"selected_code": "EUR"}')
    await store.save('{"selected_code": "JPY"}')

    assert await store.load() == '{"selected_code": "JPY"}'


@pytest.mark.asyncio
async def test_record_survives_new_store_instance(tmp_path):
    url = f'sqlite+aiosqlite:///{tmp_path / "state.db"}'
    first = DatabaseStateStore(Database(url))
    await first.database.create_tables()
    await first.save('{"selected_code": "CHF"}')
    await first.close()

    second = DatabaseStateStore(Database(url))
    try:
        assert await second.load() == '{"selected_code": "CHF"}'
    finally:
        await second.close()
