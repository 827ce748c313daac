"""Quotation forms."""
from flask_wtf import FlaskForm
from flask_wtf.file import FileField, FileRequired, FileAllowed, MultipleFileField
from wtforms import StringField, SelectField, TextAreaField
from wtforms.validators import DataRequired, Optional, Regexp, Length

from app.models import QuotationRecord

DATE_PATTERN = r'^\d{1,2}-(Jan|Feb|Mar|Apr|May|Jun|Jul|Aug|Sep|Oct|Nov|Dec)-\d{2}$'
SCAN_EXTENSIONS = ['jpg', 'jpeg', 'png', 'webp', 'gif', 'pdf', 'xlsx', 'xls']


class QuotationForm(FlaskForm):
    quotation_no = StringField('Quotation No *', validators=[DataRequired(), Length(max=50)])
    quotation_date = StringField('Quotation Date *', validators=[
        DataRequired(),
        Regexp(DATE_PATTERN, message='Use the DD-Mon-YY format, e.g. 24-Oct-25.'),
    ])
    client = StringField('Client *', validators=[DataRequired(), Length(max=200)])
    client_type = SelectField('New/Old', choices=[
        ('NEW', 'New'),
        ('OLD', 'Old'),
    ], default='NEW')
    description_1 = TextAreaField('Description 1', validators=[Optional()])
    description_2 = TextAreaField('Description 2', validators=[Optional()])
    qty = StringField('Qty', validators=[Optional(), Length(max=30)])
    unit_cost = StringField('Unit Cost', validators=[Optional(), Length(max=30)])
    total_amount = StringField('Total Amount', validators=[Optional(), Length(max=30)])
    sales_person = StringField('Sales Person', validators=[Optional(), Length(max=120)])
    invoice_no = StringField('Invoice No', validators=[Optional(), Length(max=50)])
    status = SelectField('Status *', choices=[
        ('PENDING', 'Pending'),
        ('INVOICED', 'Invoiced'),
        ('REGRET', 'Regret'),
        ('OPEN', 'Open'),
    ], default='PENDING', validators=[DataRequired()])

    def to_record(self):
        return QuotationRecord(
            quotation_no=self.quotation_no.data,
            quotation_date=self.quotation_date.data,
            client=self.client.data,
            client_type=self.client_type.data,
            description_1=self.description_1.data,
            description_2=self.description_2.data,
            qty=self.qty.data,
            unit_cost=self.unit_cost.data,
            total_amount=self.total_amount.data,
            sales_person=self.sales_person.data,
            invoice_no=self.invoice_no.data,
            status=self.status.data,
        )

    def fill(self, record):
        for name in ('quotation_no', 'quotation_date', 'client', 'client_type', 'description_1',
                     'description_2', 'qty', 'unit_cost', 'total_amount', 'sales_person',
                     'invoice_no', 'status'):
            getattr(self, name).data = getattr(record, name)


class DocumentScanForm(FlaskForm):
    document = FileField('Document *', validators=[
        FileRequired(),
        FileAllowed(SCAN_EXTENSIONS, 'Upload an image, PDF or spreadsheet.'),
    ])


class DocumentBatchForm(FlaskForm):
    documents = MultipleFileField('Documents *', validators=[
        FileRequired('Select at least one document.'),
        FileAllowed(SCAN_EXTENSIONS, 'Upload images, PDFs or spreadsheets.'),
    ])


class WorkbookImportForm(FlaskForm):
    workbook = FileField('Workbook *', validators=[
        FileRequired(),
        FileAllowed(['xlsx'], 'Upload an .xlsx workbook.'),
    ])
