"""Quotation routes."""
import logging
from io import BytesIO

from flask import render_template, redirect, url_for, flash, request, send_file, jsonify, current_app

from app.blueprints.quotations import quotations_bp
from app.exceptions import QuotationError, StoreError
from app.forms import QuotationForm, DocumentScanForm, DocumentBatchForm, WorkbookImportForm
from app.models import QuotationRecord
from app.services import (
    ExtractionService,
    QuotationFilters,
    QuotationService,
    compute_stats,
    filter_options,
    get_collection,
    get_sync_service,
    paginate,
    query_quotations,
)
from app.services.export_service import (
    XLSX_MIMETYPE,
    build_clients_workbook,
    build_quotations_pdf,
    build_quotations_workbook,
    export_filename,
)
from app.services.extraction_service import to_data_url
from app.services.import_service import import_documents, import_workbook
from app.services.query_service import DEFAULT_SORT, SORT_OPTIONS

logger = logging.getLogger(__name__)


def _current_view():
    """Filters, query, sort key and the resulting view from the request args."""
    get_sync_service().ensure_loaded()
    filters = QuotationFilters.from_args(request.args)
    search = request.args.get('q', '').strip()
    sort = request.args.get('sort', DEFAULT_SORT)
    view = query_quotations(get_collection().snapshot(), filters, search, sort)
    return filters, search, sort, view


def _flash_form_errors(form):
    for field, errors in form.errors.items():
        for err in errors:
            flash(err if field == 'csrf_token' else '{}: {}'.format(getattr(form, field).label.text, err), 'danger')


@quotations_bp.route('/')
def list():
    try:
        filters, search, sort, view = _current_view()
    except StoreError as e:
        flash('Could not load quotations: {}'.format(e), 'danger')
        filters, search, sort, view = QuotationFilters(), '', DEFAULT_SORT, []
    page = request.args.get('page', 1, type=int)
    quotations = paginate(view, page=page, per_page=current_app.config['ITEMS_PER_PAGE'])
    return render_template(
        'quotations/list.html',
        quotations=quotations,
        stats=compute_stats(view),
        options=filter_options(get_collection()),
        filters=filters,
        search=search,
        sort=sort,
        sort_options=SORT_OPTIONS,
        batch_form=DocumentBatchForm(),
        import_form=WorkbookImportForm(),
    )


@quotations_bp.route('/api')
def api():
    try:
        filters, search, sort, view = _current_view()
    except StoreError as e:
        logger.warning('Quotations API could not load the table: %s', e)
        return jsonify({'success': False, 'error': str(e)}), 503
    return jsonify({
        'quotations': [r.to_fields() for r in view],
        'stats': compute_stats(view).as_dict(),
        'filters': filters.as_args(),
        'q': search,
        'sort': sort,
    })


@quotations_bp.route('/add', methods=['GET', 'POST'])
def add():
    form = QuotationForm()
    if form.validate_on_submit():
        try:
            record = QuotationService.create(form.to_record())
            flash('Quotation {} added.'.format(record.quotation_no), 'success')
            return redirect(url_for('quotations.list'))
        except QuotationError as e:
            flash('Could not add quotation: {}'.format(e), 'danger')
    elif request.method == 'POST' and form.errors:
        _flash_form_errors(form)
    return render_template('quotations/form.html', form=form, scan_form=DocumentScanForm(), title='Add Quotation')


@quotations_bp.route('/<path:quotation_no>/edit', methods=['GET', 'POST'])
def edit(quotation_no):
    try:
        record = QuotationService.get(quotation_no)
    except QuotationError as e:
        flash(str(e), 'danger')
        return redirect(url_for('quotations.list'))
    form = QuotationForm()
    if form.validate_on_submit():
        try:
            QuotationService.update(quotation_no, form.to_record())
            flash('Quotation updated.', 'success')
            return redirect(url_for('quotations.list'))
        except QuotationError as e:
            flash('Could not update quotation: {}'.format(e), 'danger')
    elif request.method == 'POST' and form.errors:
        _flash_form_errors(form)
    else:
        form.fill(record)
    return render_template('quotations/form.html', form=form, record=record, title='Edit Quotation')


@quotations_bp.route('/<path:quotation_no>/delete', methods=['POST'])
def delete(quotation_no):
    try:
        QuotationService.delete(quotation_no)
        flash('Quotation {} deleted.'.format(quotation_no), 'success')
    except QuotationError as e:
        flash('Could not delete quotation: {}'.format(e), 'danger')
    return redirect(url_for('quotations.list'))


@quotations_bp.route('/scan', methods=['POST'])
def scan():
    """Extract form fields from one document.

    A JSON body ``{"imageData": <data URL>}`` gets the JSON result back. JSON
    clients pass the token from the ``csrf-token`` meta tag in the
    ``X-CSRFToken`` header. A multipart ``document`` upload from the add page
    re-renders the add form filled with the extracted fields.
    """
    if request.is_json:
        data_url = (request.get_json(silent=True) or {}).get('imageData')
        if not data_url:
            return jsonify({'success': False, 'error': 'No document provided'}), 400
        return jsonify(ExtractionService.from_config().extract(data_url).as_dict())

    scan_form = DocumentScanForm()
    form = QuotationForm(formdata=None)
    if not scan_form.validate_on_submit():
        _flash_form_errors(scan_form)
    else:
        upload = scan_form.document.data
        result = ExtractionService.from_config().extract(
            to_data_url(upload.read(), upload.filename, upload.mimetype))
        if result.success:
            form.fill(QuotationRecord.from_fields(result.data))
            flash('Review the extracted fields before saving.', 'info')
        else:
            flash(result.error, 'danger')
    return render_template(
        'quotations/form.html',
        form=form,
        scan_form=DocumentScanForm(formdata=None),
        form_action=url_for('quotations.add'),
        title='Add Quotation',
    )


@quotations_bp.route('/import', methods=['POST'])
def import_quotations():
    form = WorkbookImportForm()
    if not form.validate_on_submit():
        _flash_form_errors(form)
        return redirect(url_for('quotations.list'))
    try:
        result = import_workbook(form.workbook.data.read(), get_sync_service())
    except QuotationError as e:
        flash('Import failed: {}'.format(e), 'danger')
        return redirect(url_for('quotations.list'))
    flash(result.message + '.', 'success' if result.errors == 0 else 'warning')
    return redirect(url_for('quotations.list'))


@quotations_bp.route('/import-documents', methods=['POST'])
def import_document_batch():
    form = DocumentBatchForm()
    if not form.validate_on_submit():
        _flash_form_errors(form)
        return redirect(url_for('quotations.list'))
    files = [(f.filename, f.read(), f.mimetype) for f in form.documents.data]
    outcome = import_documents(files, ExtractionService.from_config())
    if outcome.results:
        flash('Imported {} of {} documents.'.format(len(outcome.results), len(files)), 'success')
    for error in outcome.errors:
        flash('{}: {}'.format(error['file'], error['error']), 'danger')
    return redirect(url_for('quotations.list'))


@quotations_bp.route('/sync', methods=['POST'])
def sync():
    try:
        result = get_sync_service().reconcile()
    except StoreError as e:
        flash('Sync failed: {}'.format(e), 'danger')
        return redirect(url_for('quotations.list'))
    flash(result.message, 'success' if result.ok else 'warning')
    return redirect(url_for('quotations.list'))


def _send(content, mimetype, extension, suffix=''):
    prefix = current_app.config['EXPORT_FILENAME_PREFIX'] + suffix
    return send_file(
        BytesIO(content),
        mimetype=mimetype,
        as_attachment=True,
        download_name=export_filename(prefix, extension),
    )


@quotations_bp.route('/export/excel')
def export_excel():
    _, _, _, view = _current_view()
    return _send(build_quotations_workbook(view), XLSX_MIMETYPE, 'xlsx')


@quotations_bp.route('/export/clients')
def export_clients():
    _, _, _, view = _current_view()
    return _send(build_clients_workbook(view), XLSX_MIMETYPE, 'xlsx', suffix='_clients')


@quotations_bp.route('/export/pdf')
def export_pdf():
    _, _, _, view = _current_view()
    pdf_bytes = build_quotations_pdf(
        view,
        title=current_app.config['EXPORT_TITLE'],
        footer=current_app.config['EXPORT_FOOTER'],
    )
    return _send(pdf_bytes, 'application/pdf', 'pdf')
