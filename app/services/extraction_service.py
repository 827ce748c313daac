"""AI extraction of quotation fields from uploaded documents.

A document arrives as a base64 data URL and is classified once into an
image, PDF or spreadsheet variant. Each variant carries its own prompts and
builds its own message content; the request forces a single function tool
whose parameters are the twelve quotation field keys.
"""
import base64
import binascii
import json
import logging
import mimetypes
import re
from dataclasses import dataclass, field
from io import BytesIO
from zipfile import BadZipFile

import openpyxl
from openpyxl.utils.exceptions import InvalidFileException
from flask import current_app
from openai import APIConnectionError, APIStatusError, APITimeoutError, OpenAI

from app.models import FIELD_KEYS
from app.models.record import lookup_field
from app.parsers import normalize_quotation_date

logger = logging.getLogger(__name__)

TOOL_NAME = 'extract_quotation_fields'

FIELD_DESCRIPTIONS = {
    'QUOTATION NO': 'Quotation reference number',
    'QUOTATION DATE': 'Date in DD/MM/YYYY format',
    'CLIENT': 'Client or company name',
    'NEW/OLD': 'Client status (NEW or OLD)',
    'DESCRIPTION 1': 'Primary item/service description',
    'DESCRIPTION 2': 'Additional description',
    'QTY': 'Quantity',
    'UNIT COST': 'Unit cost without currency symbols',
    'TOTAL AMOUNT': 'Total amount without currency symbols',
    'SALES PERSON': 'Sales person name',
    'INVOICE NO': 'Invoice number if available',
    'STATUS': 'Quotation status',
}

FIELD_LIST = '\n'.join(f'- {key}: {FIELD_DESCRIPTIONS[key]}' for key in FIELD_KEYS)

EXTRACTION_RULES = """RULES:
- Extract text EXACTLY as it appears; do NOT guess or infer missing information
- For amounts: remove AED, $, or any currency symbols and thousands separators
- For dates: convert to DD/MM/YYYY format
- Use an empty string "" for any field that is not present"""

SPREADSHEET_MAX_ROWS = 200


class ExtractionError(Exception):
    pass


@dataclass
class ExtractionResult:
    success: bool
    data: dict = field(default_factory=dict)
    error: str = ''

    def as_dict(self):
        if self.success:
            return {'success': True, 'data': self.data}
        return {'success': False, 'error': self.error}


def tool_definition():
    return {
        'type': 'function',
        'function': {
            'name': TOOL_NAME,
            'description': 'Extract structured quotation data from the document',
            'parameters': {
                'type': 'object',
                'properties': {
                    key: {'type': 'string', 'description': FIELD_DESCRIPTIONS[key]}
                    for key in FIELD_KEYS
                },
                'required': list(FIELD_KEYS),
            },
        },
    }


@dataclass
class Document:
    mime_type: str
    data_url: str

    system_prompt = ''
    instructions = ''

    def content(self):
        return [
            {'type': 'text', 'text': self.instructions},
            {'type': 'image_url', 'image_url': {'url': self.data_url}},
        ]

    def messages(self):
        return [
            {'role': 'system', 'content': self.system_prompt},
            {'role': 'user', 'content': self.content()},
        ]


class ImageDocument(Document):
    system_prompt = (
        'You are an expert OCR and data extraction assistant. '
        'Extract quotation information from images with perfect accuracy.'
    )
    instructions = (
        'Carefully analyze this quotation image and extract all visible information.\n\n'
        f'EXTRACT THESE FIELDS:\n{FIELD_LIST}\n\n{EXTRACTION_RULES}\n'
        '- Pay attention to tables, headers, and structured layouts'
    )


class PdfDocument(Document):
    system_prompt = (
        'You are an expert data extraction assistant. Extract quotation information '
        'from documents with 100% accuracy. Only extract visible text - never guess '
        'or make up information.'
    )
    instructions = (
        'Analyze this PDF quotation document carefully and extract the following fields.\n\n'
        f'FIELDS:\n{FIELD_LIST}\n\n{EXTRACTION_RULES}\n'
        '- Pay attention to headers, labels, and document structure'
    )


class SpreadsheetDocument(Document):
    system_prompt = (
        'You are an expert data extraction assistant specializing in Excel documents. '
        'Extract quotation information with 100% accuracy.'
    )
    instructions = (
        'Analyze this Excel quotation and extract all fields accurately. Look for '
        'headers, labels, and structured data in rows and columns.\n\n'
        f'FIELDS:\n{FIELD_LIST}\n\n{EXTRACTION_RULES}\n\n'
        'Sheet content (tab separated):\n{table}'
    )

    def content(self):
        return [{'type': 'text', 'text': self.instructions.replace('{table}', self.sheet_text())}]

    def sheet_text(self):
        workbook = openpyxl.load_workbook(BytesIO(decode_data_url(self.data_url)), read_only=True, data_only=True)
        try:
            sheet = workbook.worksheets[0]
            lines = []
            for row in sheet.iter_rows(values_only=True):
                cells = ['' if v is None else str(v) for v in row]
                if any(cells):
                    lines.append('\t'.join(cells).rstrip())
                if len(lines) >= SPREADSHEET_MAX_ROWS:
                    break
        finally:
            workbook.close()
        return '\n'.join(lines)


def data_url_mime_type(data_url):
    if not isinstance(data_url, str) or not data_url.startswith('data:'):
        raise ExtractionError('Invalid file format. Expected base64 data URL.')
    return data_url.split(';', 1)[0].split(':', 1)[1].strip().lower()


def decode_data_url(data_url):
    try:
        return base64.b64decode(data_url.split(',', 1)[1], validate=False)
    except (IndexError, binascii.Error, ValueError) as e:
        raise ExtractionError('Could not decode file data.') from e


def document_from_data_url(data_url):
    """Classify a data URL into its document variant."""
    mime_type = data_url_mime_type(data_url)
    if 'spreadsheet' in mime_type or 'excel' in mime_type:
        return SpreadsheetDocument(mime_type, data_url)
    if mime_type == 'application/pdf':
        return PdfDocument(mime_type, data_url)
    return ImageDocument(mime_type, data_url)


def to_data_url(content, filename=None, mime_type=None):
    mime_type = mime_type or mimetypes.guess_type(filename or '')[0] or 'application/octet-stream'
    encoded = base64.b64encode(content).decode('ascii')
    return f'data:{mime_type};base64,{encoded}'


def _scavenge_json(text):
    candidates = []
    fenced = re.search(r'```(?:json)?\s*(.*?)```', text, re.DOTALL)
    if fenced and fenced.group(1):
        candidates.append(fenced.group(1).strip())
    start, end = text.find('{'), text.rfind('}')
    if start != -1 and end > start:
        candidates.append(text[start:end + 1])
    candidates.append(text.strip())
    for candidate in candidates:
        try:
            parsed = json.loads(candidate)
        except ValueError:
            continue
        if isinstance(parsed, dict):
            return parsed
    return None


def normalize_fields(payload):
    """Exactly the twelve field keys, all string-valued."""
    data = {}
    for key in FIELD_KEYS:
        value = lookup_field(payload, key)
        data[key] = '' if value is None else str(value).strip()
    data['QUOTATION DATE'] = normalize_quotation_date(data['QUOTATION DATE'])
    return data


class ExtractionService:
    def __init__(self, client=None, model=None, timeout=None):
        self._client = client
        self.model = model
        self.timeout = timeout

    @classmethod
    def from_config(cls, config=None):
        config = config or current_app.config
        return cls(model=config['AI_MODEL'], timeout=config['AI_TIMEOUT'])

    @property
    def client(self):
        if self._client is None:
            config = current_app.config
            if not config.get('AI_API_KEY'):
                raise ExtractionError('AI_API_KEY is not configured')
            self._client = OpenAI(
                api_key=config['AI_API_KEY'],
                base_url=config.get('AI_BASE_URL'),
                max_retries=0,
            )
        return self._client

    def extract(self, data_url):
        """Run one extraction; failures come back as an unsuccessful result."""
        try:
            document = document_from_data_url(data_url)
            logger.info('Extracting quotation from %s (%d chars)', document.mime_type, len(data_url))
            payload = self._complete(document)
        except ExtractionError as e:
            logger.error('Quotation extraction failed: %s', e)
            return ExtractionResult(False, error=str(e))
        except (OSError, ValueError, KeyError, BadZipFile, InvalidFileException) as e:
            logger.error('Could not read document for extraction: %s', e)
            return ExtractionResult(False, error=f'Failed to process document: {e}')
        return ExtractionResult(True, data=normalize_fields(payload))

    def _complete(self, document):
        try:
            completion = self.client.chat.completions.create(
                model=self.model,
                messages=document.messages(),
                tools=[tool_definition()],
                tool_choice={'type': 'function', 'function': {'name': TOOL_NAME}},
                timeout=self.timeout,
            )
        except APIStatusError as e:
            logger.error('AI gateway error %s: %s', e.status_code, e.message)
            if e.status_code == 429:
                raise ExtractionError('Rate limit exceeded. Please try again in a moment.') from e
            if e.status_code == 402:
                raise ExtractionError('AI credits exhausted. Please add credits to your workspace.') from e
            raise ExtractionError(f'AI gateway error: {e.status_code} - {e.message}') from e
        except (APIConnectionError, APITimeoutError) as e:
            raise ExtractionError(f'AI gateway unreachable: {e}') from e
        return self._parse(completion)

    @staticmethod
    def _parse(completion):
        choices = getattr(completion, 'choices', None) or []
        if not choices:
            raise ExtractionError('No content or tool calls in AI response')
        message = choices[0].message
        for call in getattr(message, 'tool_calls', None) or []:
            try:
                arguments = json.loads(call.function.arguments)
            except (TypeError, ValueError):
                continue
            if isinstance(arguments, dict):
                return arguments
        content = getattr(message, 'content', None)
        if not content:
            raise ExtractionError('No content or tool calls in AI response')
        parsed = _scavenge_json(content)
        if parsed is None:
            raise ExtractionError('AI response did not contain quotation JSON')
        return parsed
