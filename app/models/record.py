"""In-memory quotation record and its field mappings."""
from dataclasses import dataclass, fields, replace

from app.parsers import normalize_quotation_date

STATUSES = ['PENDING', 'INVOICED', 'REGRET', 'OPEN']
CLIENT_TYPES = ['NEW', 'OLD']

# Display/extraction field keys in export column order
FIELD_KEYS = [
    'QUOTATION NO',
    'QUOTATION DATE',
    'CLIENT',
    'NEW/OLD',
    'DESCRIPTION 1',
    'DESCRIPTION 2',
    'QTY',
    'UNIT COST',
    'TOTAL AMOUNT',
    'SALES PERSON',
    'INVOICE NO',
    'STATUS',
]

# Field key -> (record attribute, remote column)
FIELD_MAP = {
    'QUOTATION NO': ('quotation_no', 'quotation_no'),
    'QUOTATION DATE': ('quotation_date', 'quotation_date'),
    'CLIENT': ('client', 'client'),
    'NEW/OLD': ('client_type', 'new_old'),
    'DESCRIPTION 1': ('description_1', 'description_1'),
    'DESCRIPTION 2': ('description_2', 'description_2'),
    'QTY': ('qty', 'qty'),
    'UNIT COST': ('unit_cost', 'unit_cost'),
    'TOTAL AMOUNT': ('total_amount', 'total_amount'),
    'SALES PERSON': ('sales_person', 'sales_person'),
    'INVOICE NO': ('invoice_no', 'invoice_no'),
    'STATUS': ('status', 'status'),
}

# Spellings found in legacy datasets and spreadsheets
FIELD_ALIASES = {
    'QUOTATION NO': ['Quotation No', 'quotation_no', 'QUOTATION NUMBER'],
    'QUOTATION DATE': ['QUOTATION DATE ', 'Quotation Date', 'quotation_date', 'DATE'],
    'CLIENT': ['Client', 'client', 'CUSTOMER'],
    'NEW/OLD': ['New/Old', 'new_old', 'TYPE'],
    'DESCRIPTION 1': ['Description 1', 'description_1', 'DESCRIPTION'],
    'DESCRIPTION 2': ['Description 2', 'description_2'],
    'QTY': ['Qty', 'qty', 'QUANTITY'],
    'UNIT COST': ['Unit Cost', 'unit_cost'],
    'TOTAL AMOUNT': ['TOTAL  AMOUNT', 'Total Amount', 'total_amount', 'Amount', 'AMOUNT'],
    'SALES PERSON': ['SALES  PERSON', 'Sales Person', 'sales_person'],
    'INVOICE NO': ['Invoice No', 'invoice_no'],
    'STATUS': ['Status', 'status'],
}


def _text(value):
    if value is None:
        return ''
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value).strip()


def lookup_field(source, key):
    """Value for a field key from a mapping, trying its known aliases."""
    for name in [key] + FIELD_ALIASES.get(key, []):
        value = source.get(name)
        if value is not None and value != '':
            return value
    return None


@dataclass
class QuotationRecord:
    quotation_no: str
    quotation_date: str = ''
    client: str = ''
    client_type: str = 'NEW'
    description_1: str = ''
    description_2: str = ''
    qty: str = ''
    unit_cost: str = ''
    total_amount: str = ''
    sales_person: str = ''
    invoice_no: str = ''
    status: str = 'PENDING'

    def __post_init__(self):
        for f in fields(self):
            setattr(self, f.name, _text(getattr(self, f.name)))
        self.status = self.status.upper() or 'PENDING'
        self.client_type = self.client_type.upper()

    @classmethod
    def from_fields(cls, data, default_client_type='NEW'):
        """Build a record from a mapping keyed by display field names."""
        values = {}
        for key, (attr, _column) in FIELD_MAP.items():
            values[attr] = lookup_field(data, key)
        values['quotation_date'] = normalize_quotation_date(values['quotation_date'])
        values['client_type'] = values['client_type'] or default_client_type
        return cls(**{k: ('' if v is None else v) for k, v in values.items()})

    def to_fields(self):
        return {key: getattr(self, attr) for key, (attr, _column) in FIELD_MAP.items()}

    @classmethod
    def from_row(cls, row):
        """Build a record from a quotations table row (column names)."""
        values = {attr: row.get(column) for attr, column in FIELD_MAP.values()}
        return cls(**{k: ('' if v is None else v) for k, v in values.items()})

    def to_row(self, owner_id=''):
        row = {column: getattr(self, attr) for attr, column in FIELD_MAP.values()}
        row['owner_id'] = owner_id or ''
        return row

    def copy(self, **changes):
        return replace(self, **changes)

    def __repr__(self):
        return f'<QuotationRecord {self.quotation_no}>'
