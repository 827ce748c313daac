"""Excel and PDF exports of a quotation view."""
from datetime import date
from io import BytesIO

import openpyxl
from openpyxl.styles import Font, PatternFill
from openpyxl.utils import get_column_letter
from reportlab.lib import colors
from reportlab.lib.pagesizes import A4, landscape
from reportlab.lib.styles import getSampleStyleSheet, ParagraphStyle
from reportlab.lib.units import mm
from reportlab.pdfgen import canvas
from reportlab.platypus import SimpleDocTemplate, Paragraph, Spacer, Table, TableStyle

from app.models import FIELD_KEYS

XLSX_MIMETYPE = 'application/vnd.openxmlformats-officedocument.spreadsheetml.sheet'

TEAL = colors.Color(15 / 255, 108 / 255, 130 / 255)
ROW_SHADE = colors.Color(240 / 255, 248 / 255, 250 / 255)

# Excel column widths (characters) in FIELD_KEYS order; client is sized to content
EXCEL_WIDTHS = [15, 12, None, 10, 30, 30, 10, 12, 15, 15, 12, 10]

PDF_COLUMNS = [
    ('Quotation No', 'quotation_no', 20),
    ('Date', 'quotation_date', 18),
    ('Client', 'client', 35),
    ('Type', 'client_type', 12),
    ('Description', 'description_1', 40),
    ('Qty', 'qty', 15),
    ('Unit Cost', 'unit_cost', 18),
    ('Total', 'total_amount', 20),
    ('Sales Person', 'sales_person', 22),
    ('Invoice', 'invoice_no', 18),
    ('Status', 'status', 15),
]


def export_filename(prefix, extension, today=None):
    today = today or date.today()
    return f'{prefix}_{today.isoformat()}.{extension}'


def _header_style(ws):
    for cell in ws[1]:
        cell.font = Font(bold=True, color='FFFFFF')
        cell.fill = PatternFill('solid', fgColor='0F6C82')


def build_quotations_workbook(records):
    """Workbook with one row per record in the twelve-field column order."""
    records = list(records)
    wb = openpyxl.Workbook()
    ws = wb.active
    ws.title = 'Quotations'
    ws.append(FIELD_KEYS)
    for record in records:
        fields = record.to_fields()
        ws.append([fields[key] for key in FIELD_KEYS])
    _header_style(ws)
    client_width = max([10] + [len(r.client) for r in records])
    for index, width in enumerate(EXCEL_WIDTHS, start=1):
        ws.column_dimensions[get_column_letter(index)].width = width or client_width
    buf = BytesIO()
    wb.save(buf)
    buf.seek(0)
    return buf.getvalue()


def build_clients_workbook(records):
    """Workbook listing the distinct non-empty client names, sorted."""
    clients = sorted({r.client for r in records if r.client and r.client.strip()})
    wb = openpyxl.Workbook()
    ws = wb.active
    ws.title = 'Clients'
    ws.append(['No.', 'Client Name'])
    for index, client in enumerate(clients, start=1):
        ws.append([index, client])
    _header_style(ws)
    ws.column_dimensions['A'].width = 8
    ws.column_dimensions['B'].width = 50
    buf = BytesIO()
    wb.save(buf)
    buf.seek(0)
    return buf.getvalue()


def _numbered_canvas(footer):
    """Canvas class that stamps ``Page i of N | footer`` once the page count is known."""

    class NumberedCanvas(canvas.Canvas):
        def __init__(self, *args, **kwargs):
            super().__init__(*args, **kwargs)
            self._saved_pages = []

        def showPage(self):
            self._saved_pages.append(dict(self.__dict__))
            self._startPage()

        def save(self):
            total = len(self._saved_pages)
            for state in self._saved_pages:
                self.__dict__.update(state)
                self._draw_footer(total)
                super().showPage()
            super().save()

        def _draw_footer(self, total):
            width, _height = self._pagesize
            self.setFont('Helvetica', 8)
            self.setFillColor(colors.HexColor('#969696'))
            text = f'Page {self._pageNumber} of {total}'
            if footer:
                text += f' | {footer}'
            self.drawCentredString(width / 2, 10 * mm, text)

    return NumberedCanvas


def build_quotations_pdf(records, title='QUOTATION TRACKER', footer='', generated_on=None):
    """Landscape A4 table of the records with a title block and page footers."""
    records = list(records)
    generated_on = generated_on or date.today()
    buffer = BytesIO()
    margin = 14 * mm
    doc = SimpleDocTemplate(
        buffer, pagesize=landscape(A4),
        leftMargin=margin, rightMargin=margin, topMargin=12 * mm, bottomMargin=18 * mm,
        title=title,
    )
    styles = getSampleStyleSheet()
    title_style = ParagraphStyle(
        'ExportTitle', parent=styles['Heading1'],
        fontSize=18, textColor=TEAL, fontName='Helvetica-Bold', spaceAfter=4,
    )
    meta_style = ParagraphStyle(
        'ExportMeta', parent=styles['Normal'], fontSize=10, textColor=colors.HexColor('#646464'),
    )
    cell_style = ParagraphStyle('ExportCell', parent=styles['Normal'], fontSize=8, leading=9.5)

    story = [
        Paragraph(title.replace('<', '&lt;'), title_style),
        Paragraph('Generated on: {}'.format(generated_on.strftime('%d/%m/%Y')), meta_style),
        Paragraph('Total Records: {}'.format(len(records)), meta_style),
        Spacer(1, 4 * mm),
    ]

    data = [[label for label, _attr, _width in PDF_COLUMNS]]
    for record in records:
        data.append([
            Paragraph((getattr(record, attr) or '').replace('&', '&amp;').replace('<', '&lt;'), cell_style)
            for _label, attr, _width in PDF_COLUMNS
        ])
    table = Table(data, colWidths=[width * mm for _l, _a, width in PDF_COLUMNS], repeatRows=1)
    table.setStyle(TableStyle([
        ('BACKGROUND', (0, 0), (-1, 0), TEAL),
        ('TEXTCOLOR', (0, 0), (-1, 0), colors.white),
        ('FONTNAME', (0, 0), (-1, 0), 'Helvetica-Bold'),
        ('FONTSIZE', (0, 0), (-1, -1), 8),
        ('ROWBACKGROUNDS', (0, 1), (-1, -1), [colors.white, ROW_SHADE]),
        ('VALIGN', (0, 0), (-1, -1), 'TOP'),
        ('LEFTPADDING', (0, 0), (-1, -1), 1.5 * mm),
        ('RIGHTPADDING', (0, 0), (-1, -1), 1.5 * mm),
        ('TOPPADDING', (0, 0), (-1, -1), 2),
        ('BOTTOMPADDING', (0, 0), (-1, -1), 2),
        ('GRID', (0, 0), (-1, -1), 0.25, colors.HexColor('#cccccc')),
    ]))
    story.append(table)

    doc.build(story, canvasmaker=_numbered_canvas(footer))
    buffer.seek(0)
    return buffer.getvalue()
