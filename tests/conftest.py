import json

import pytest

from app import create_app, db
from app.models import QuotationRecord


@pytest.fixture
def dataset_path(tmp_path):
    path = tmp_path / 'dataset.json'
    path.write_text(json.dumps([
        {'QUOTATION NO': 'Q-001', 'QUOTATION DATE': '01-Jan-24', 'CLIENT': 'Gulftainer',
         'TOTAL AMOUNT': '1,000.00', 'STATUS': 'INVOICED'},
        {'QUOTATION NO': 'Q-002', 'QUOTATION DATE': '15-Mar-25', 'CLIENT': 'DP World',
         'TOTAL AMOUNT': '', 'STATUS': 'pending'},
        {'QUOTATION NO': 'Q-003', 'QUOTATION DATE': '24-Oct-25', 'CLIENT': 'Emirates Steel',
         'TOTAL AMOUNT': '500.50', 'STATUS': 'REGRET'},
    ]))
    return str(path)


@pytest.fixture
def cache_path(tmp_path):
    return str(tmp_path / 'instance' / 'quotations_cache.json')


@pytest.fixture
def app(dataset_path, cache_path):
    app = create_app('testing', {
        'QUOTATION_DATASET_PATH': dataset_path,
        'QUOTATION_CACHE_PATH': cache_path,
    })
    return app


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def runner(app):
    return app.test_cli_runner()


@pytest.fixture
def app_ctx(app):
    with app.app_context():
        yield


@pytest.fixture
def db_ctx(app, app_ctx):
    db.create_all()
    yield
    db.session.remove()
    db.drop_all()


def make_record(quotation_no, **fields):
    fields.setdefault('quotation_date', '01-Jan-25')
    fields.setdefault('client', 'Client ' + quotation_no)
    return QuotationRecord(quotation_no=quotation_no, **fields)
