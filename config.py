"""Application configuration."""
import os


class Config:
    """Base configuration."""
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'dev-secret-key-change-in-production'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_ENGINE_OPTIONS = {'pool_pre_ping': True}

    # Session (flash messages)
    SESSION_COOKIE_SECURE = False
    SESSION_COOKIE_HTTPONLY = True
    SESSION_COOKIE_SAMESITE = 'Lax'

    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')

    # Application
    ITEMS_PER_PAGE = 50
    CURRENCY = os.environ.get('CURRENCY', 'AED')

    # Empty owner means one shared list for every user of the app
    QUOTATION_OWNER_ID = os.environ.get('QUOTATION_OWNER_ID', '')

    # Reconciliation with the quotations table
    SYNC_PAGE_SIZE = int(os.environ.get('SYNC_PAGE_SIZE', 1000))
    SYNC_BATCH_SIZE = int(os.environ.get('SYNC_BATCH_SIZE', 100))
    SYNC_ON_STARTUP = os.environ.get('SYNC_ON_STARTUP', 'true').lower() == 'true'
    QUOTATION_CACHE_PATH = os.environ.get('QUOTATION_CACHE_PATH')
    QUOTATION_DATASET_PATH = os.environ.get('QUOTATION_DATASET_PATH')

    # Document extraction (OpenAI-compatible chat completions endpoint)
    AI_API_KEY = os.environ.get('AI_API_KEY')
    AI_BASE_URL = os.environ.get('AI_BASE_URL', 'https://ai.gateway.lovable.dev/v1')
    AI_MODEL = os.environ.get('AI_MODEL', 'google/gemini-2.5-pro')
    AI_TIMEOUT = float(os.environ.get('AI_TIMEOUT', 120))

    # Exports
    EXPORT_TITLE = os.environ.get('EXPORT_TITLE', 'QUOTATION TRACKER')
    EXPORT_FOOTER = os.environ.get('EXPORT_FOOTER', 'Quotation Tracker')
    EXPORT_FILENAME_PREFIX = 'quotations'


class DevelopmentConfig(Config):
    """Development configuration."""
    DEBUG = True
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        'DATABASE_URL'
    ) or 'sqlite:///quotations.db'
    SQLALCHEMY_ECHO = False


class TestingConfig(Config):
    """Testing configuration."""
    TESTING = True
    SQLALCHEMY_DATABASE_URI = os.environ.get('TEST_DATABASE_URL') or 'sqlite://'
    WTF_CSRF_ENABLED = False
    SERVER_NAME = 'localhost'
    SYNC_ON_STARTUP = False
    AI_API_KEY = 'test-key'


class ProductionConfig(Config):
    """Production configuration."""
    DEBUG = False
    SQLALCHEMY_DATABASE_URI = os.environ.get('DATABASE_URL')
    SESSION_COOKIE_SECURE = True


config = {
    'development': DevelopmentConfig,
    'testing': TestingConfig,
    'production': ProductionConfig,
    'default': DevelopmentConfig,
}
