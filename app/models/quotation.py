"""Quotation table model."""
import uuid
from datetime import datetime

from app import db
from app.models.record import FIELD_MAP, QuotationRecord

ROW_COLUMNS = [column for _attr, column in FIELD_MAP.values()]


class Quotation(db.Model):
    __tablename__ = 'quotations'
    __table_args__ = (
        db.UniqueConstraint('quotation_no', 'owner_id', name='uq_quotations_quotation_no_owner'),
    )

    id = db.Column(db.String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    owner_id = db.Column(db.String(64), nullable=False, default='', index=True)
    quotation_no = db.Column(db.String(50), nullable=False, index=True)
    quotation_date = db.Column(db.String(20), nullable=False, default='')
    client = db.Column(db.String(200), nullable=False, default='')
    new_old = db.Column(db.String(10), nullable=False, default='')
    description_1 = db.Column(db.Text, nullable=False, default='')
    description_2 = db.Column(db.Text, nullable=False, default='')
    qty = db.Column(db.String(30), nullable=False, default='')
    unit_cost = db.Column(db.String(30), nullable=False, default='')
    total_amount = db.Column(db.String(30), nullable=False, default='')
    sales_person = db.Column(db.String(120), nullable=False, default='')
    invoice_no = db.Column(db.String(50), nullable=False, default='')
    status = db.Column(db.String(20), nullable=False, default='PENDING')
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def to_row(self):
        row = {column: getattr(self, column) for column in ROW_COLUMNS}
        row['owner_id'] = self.owner_id
        return row

    def to_record(self):
        return QuotationRecord.from_row(self.to_row())

    def apply_record(self, record):
        for column, value in record.to_row(self.owner_id).items():
            if column != 'owner_id':
                setattr(self, column, value)

    def __repr__(self):
        return f'<Quotation {self.quotation_no}>'
