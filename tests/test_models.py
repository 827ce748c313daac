"""Record mapping and table model tests."""
from app import db
from app.models import FIELD_KEYS, Quotation, QuotationRecord


def test_record_normalizes_values():
    record = QuotationRecord(quotation_no=' Q-1 ', status='invoiced', client_type='old', qty=3.0)
    assert record.quotation_no == 'Q-1'
    assert record.status == 'INVOICED'
    assert record.client_type == 'OLD'
    assert record.qty == '3'


def test_record_defaults_status_to_pending():
    assert QuotationRecord(quotation_no='Q-1', status='').status == 'PENDING'


def test_from_fields_reads_aliases_and_normalizes_date():
    record = QuotationRecord.from_fields({
        'QUOTATION NO': 'Q-9',
        'QUOTATION DATE ': '2025-10-24',
        'CLIENT': 'Gulftainer',
        'SALES  PERSON': 'Ahmed',
        'TOTAL  AMOUNT': '1,250.00',
    }, default_client_type='OLD')
    assert record.quotation_date == '24-Oct-25'
    assert record.sales_person == 'Ahmed'
    assert record.total_amount == '1,250.00'
    assert record.client_type == 'OLD'


def test_to_fields_has_every_key_in_order():
    fields = QuotationRecord(quotation_no='Q-1').to_fields()
    assert list(fields) == FIELD_KEYS
    assert all(isinstance(v, str) for v in fields.values())


def test_row_mapping_uses_column_names():
    record = QuotationRecord(quotation_no='Q-1', client_type='NEW', client='DP World')
    row = record.to_row('owner-1')
    assert row['new_old'] == 'NEW'
    assert row['owner_id'] == 'owner-1'
    assert QuotationRecord.from_row(row) == record


def test_copy_returns_changed_record():
    record = QuotationRecord(quotation_no='Q-1', client='A')
    changed = record.copy(client='B')
    assert changed.client == 'B'
    assert record.client == 'A'


def test_quotation_model_round_trip(db_ctx):
    record = QuotationRecord(quotation_no='Q-1', quotation_date='01-Jan-25', client='Gulftainer',
                             total_amount='100.00', status='OPEN')
    quotation = Quotation(owner_id='')
    quotation.apply_record(record)
    db.session.add(quotation)
    db.session.commit()
    stored = Quotation.query.filter_by(quotation_no='Q-1').one()
    assert stored.id
    assert stored.created_at is not None
    assert stored.to_record() == record
