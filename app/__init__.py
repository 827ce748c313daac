"""Flask application factory."""
import logging
import os

from flask import Flask
from flask_sqlalchemy import SQLAlchemy
from flask_migrate import Migrate
from flask_wtf.csrf import CSRFProtect

from config import config

db = SQLAlchemy()
migrate = Migrate()
csrf = CSRFProtect()

logger = logging.getLogger(__name__)


def create_app(config_name=None, overrides=None):
    """Create and configure the Flask application."""
    if config_name is None:
        config_name = os.environ.get('FLASK_ENV', 'development')

    app = Flask(__name__, template_folder='templates', static_folder='static')
    app.config.from_object(config[config_name])
    if overrides:
        app.config.update(overrides)

    from app.log import configure_logging
    configure_logging(app.config['LOG_LEVEL'])

    if not app.config.get('QUOTATION_CACHE_PATH'):
        app.config['QUOTATION_CACHE_PATH'] = os.path.join(app.instance_path, 'quotations_cache.json')
    if not app.config.get('QUOTATION_DATASET_PATH'):
        app.config['QUOTATION_DATASET_PATH'] = os.path.join(app.root_path, 'data', 'quotations.json')

    db.init_app(app)
    migrate.init_app(app, db)
    csrf.init_app(app)

    from app.services import LocalSnapshot, QuotationCollection, SyncService
    collection = QuotationCollection(owner_id=app.config['QUOTATION_OWNER_ID'])
    collection.init_app(app)
    SyncService(
        collection,
        snapshot=LocalSnapshot(app.config['QUOTATION_CACHE_PATH']),
        dataset_path=app.config['QUOTATION_DATASET_PATH'],
        page_size=app.config['SYNC_PAGE_SIZE'],
        batch_size=app.config['SYNC_BATCH_SIZE'],
    ).init_app(app)

    # Register blueprints
    from app.blueprints.quotations import quotations_bp

    app.register_blueprint(quotations_bp, url_prefix='/quotations')

    @app.route('/')
    def index():
        from flask import redirect, url_for
        return redirect(url_for('quotations.list'))

    # Error handlers
    from app.blueprints.errors import register_error_handlers
    register_error_handlers(app)

    @app.context_processor
    def inject_globals():
        from flask import request
        return {
            'current_route': request.endpoint if request else None,
            'currency': app.config['CURRENCY'],
        }

    # Ignore "already exists" so multiple workers or an existing DB don't crash the app.
    with app.app_context():
        try:
            db.create_all()
        except Exception as e:
            if "already exists" in str(e).lower() or "duplicate key" in str(e).lower():
                pass
            else:
                raise
        if app.config['SYNC_ON_STARTUP']:
            from app.exceptions import StoreError
            from app.services import get_sync_service
            try:
                result = get_sync_service().reconcile()
                logger.info('Startup sync: %s (%s)', result.message, result.status)
            except StoreError as e:
                logger.error('Startup sync failed: %s', e)

    return app
