"""Parsers for the string-encoded quotation fields.

Every function here is total: malformed input yields a safe default
(``0`` for money, ``None`` for dates and years) instead of an exception.
"""
import re
from datetime import date, datetime, timedelta

MONTHS = ['Jan', 'Feb', 'Mar', 'Apr', 'May', 'Jun', 'Jul', 'Aug', 'Sep', 'Oct', 'Nov', 'Dec']
MONTH_NUMBERS = {name: index + 1 for index, name in enumerate(MONTHS)}

EXCEL_EPOCH = date(1899, 12, 30)

_QUOTATION_DATE_RE = re.compile(r'^\d{1,2}-[A-Z][a-z]{2}-\d{2}$')
_SLASH_DATE_RE = re.compile(r'^(\d{1,2})/(\d{1,2})/(\d{4})$')
_ISO_DATE_RE = re.compile(r'^(\d{4})-(\d{2})-(\d{2})(?:[ T]\d{2}:\d{2}(?::\d{2}(?:\.\d+)?)?)?$')
_MONEY_PREFIX_RE = re.compile(r'^[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?')


def parse_money(value):
    """Parse a comma-grouped amount such as ``"1,234.50"``.

    Only the leading number counts, so ``"1,500 AED"`` is 1500. Returns 0
    when there is no leading number.
    """
    if value is None:
        return 0.0
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return float(value)
    text = str(value).replace(',', '').strip()
    if not text or text == '-':
        return 0.0
    match = _MONEY_PREFIX_RE.match(text)
    if not match:
        return 0.0
    amount = float(match.group(0))
    if amount != amount or amount in (float('inf'), float('-inf')):
        return 0.0
    return amount


def format_money(amount):
    return '{:,.2f}'.format(amount)


def parse_quotation_date(value):
    """Parse ``DD-Mon-YY`` (e.g. ``24-Oct-25``) into a date; ``None`` if malformed."""
    if not value or not isinstance(value, str):
        return None
    parts = value.strip().split('-')
    if len(parts) != 3:
        return None
    day, month, year = parts
    month_number = MONTH_NUMBERS.get(month)
    if month_number is None:
        return None
    if not (day.isdigit() and year.isdigit() and len(year) == 2):
        return None
    try:
        return date(2000 + int(year), month_number, int(day))
    except ValueError:
        return None


def quotation_year(value):
    """Four-digit year string from the ``YY`` segment of a quotation date."""
    if not value or not isinstance(value, str):
        return None
    parts = value.strip().split('-')
    if len(parts) != 3 or not parts[2].isdigit() or len(parts[2]) != 2:
        return None
    return '20' + parts[2]


def format_quotation_date(value):
    return '{:02d}-{}-{:02d}'.format(value.day, MONTHS[value.month - 1], value.year % 100)


def excel_serial_to_date(serial):
    """Excel serial day number (days since 1899-12-30) to a date."""
    try:
        return EXCEL_EPOCH + timedelta(days=int(float(serial)))
    except (TypeError, ValueError, OverflowError):
        return None


def normalize_quotation_date(value):
    """Coerce the date shapes seen in imports to ``DD-Mon-YY``.

    Accepts ``DD-Mon-YY`` as is, ``DD/MM/YYYY``, ISO dates with an optional
    time part, ``date``/``datetime`` objects and Excel serial numbers.
    Anything else is returned verbatim as a string.
    """
    if value is None:
        return ''
    if isinstance(value, datetime):
        return format_quotation_date(value.date())
    if isinstance(value, date):
        return format_quotation_date(value)
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        parsed = excel_serial_to_date(value)
        return format_quotation_date(parsed) if parsed else str(value)
    text = str(value).strip()
    if not text:
        return ''
    if _QUOTATION_DATE_RE.match(text):
        return text
    match = _SLASH_DATE_RE.match(text)
    if match:
        day, month, year = (int(g) for g in match.groups())
        try:
            return format_quotation_date(date(year, month, day))
        except ValueError:
            return text
    match = _ISO_DATE_RE.match(text)
    if match:
        year, month, day = (int(g) for g in match.groups())
        try:
            return format_quotation_date(date(year, month, day))
        except ValueError:
            return text
    return text


def parse_filter_date(value):
    """Parse a ``YYYY-MM-DD`` filter bound; ``None`` means no bound."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not value:
        return None
    try:
        return datetime.strptime(str(value).strip(), '%Y-%m-%d').date()
    except ValueError:
        return None


def contains_text(field, query):
    """Case-insensitive substring containment."""
    return query.lower() in (field or '').lower()
