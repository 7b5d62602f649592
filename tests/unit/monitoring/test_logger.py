# nosec B101


import json
import logging
import sys
from decimal import Decimal

from domain.models.currency import ErrorKind
from monitoring.logger import JSONFormatter, configure_logging


def make_record(**extra):
    record = logging.LogRecord(
        name='application.services.rate_cache',
        level=logging.WARNING,
        pathname=__file__,
        lineno=10,
        msg='Rate refresh did not commit',
        args=(),
        exc_info=None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_json_formatter_fields():
    entry = json.loads(JSONFormatter().format(make_record()))

    assert entry['level'] == 'WARNING'
    assert entry['logger'] == 'application.services.rate_cache'
    assert entry['message'] == 'Rate refresh did not commit'
    assert 'timestamp' in entry
    assert 'data' not in entry


def test_json_formatter_extra_data():
    record = make_record(extra_data={'rate': Decimal('0.92'), 'error': ErrorKind.TIMEOUT})

    entry = json.loads(JSONFormatter().format(record))

    assert entry['data'] == {'rate': '0.92', 'error': 'timeout'}


def test_json_formatter_exception():
    try:
        raise ValueError('bad payload')
    except ValueError:
        record = make_record(exc_info=sys.exc_info())

    entry = json.loads(JSONFormatter().format(record))

    assert entry['exception']['type'] == 'ValueError'
    assert entry['exception']['message'] == 'bad payload'


def test_configure_logging_writes_rotating_file(tmp_path):
    configure_logging('DEBUG', log_directory=str(tmp_path / 'logs'))
    try:
        logging.getLogger('test').info('hello')
        for handler in logging.getLogger().handlers:
            handler.flush()

        lines = (tmp_path / 'logs' / 'currency.log').read_text(encoding='utf-8').splitlines()
        assert json.loads(lines[-1])['message'] == 'hello'
        assert logging.getLogger('httpx').level == logging.WARNING
    finally:
        for handler in logging.getLogger().handlers:
            handler.close()
        logging.getLogger().handlers.clear()
        logging.getLogger().setLevel(logging.WARNING)
