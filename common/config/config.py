import os


def _env_bool(key, default=False):
    value = os.getenv(key)
    if value is None:
        return default
    return value.strip().lower() in ('1', 'true', 'yes', 'on')


class Config:
    SECRET_KEY = os.getenv('SECRET_KEY')

    DB_USERNAME = os.getenv('DB_USERNAME')
    DB_PASSWORD = os.getenv('DB_PASSWORD')
    DB_HOST = os.getenv('DB_HOST', 'localhost')
    DB_PORT = int(os.getenv('DB_PORT', 3306))
    DB_NAME = os.getenv('DB_NAME')

    SQLALCHEMY_DATABASE_URI = None
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_ECHO = False

    # Identity provider: 'local' (auth_identity table) or 'supabase' (GoTrue admin API)
    IDENTITY_PROVIDER = os.getenv('IDENTITY_PROVIDER', 'local')
    SUPABASE_URL = os.getenv('SUPABASE_URL')
    SUPABASE_SERVICE_ROLE_KEY = os.getenv('SUPABASE_SERVICE_ROLE_KEY')

    # Doctor provisioning
    LOGIN_EMAIL_DOMAIN = os.getenv('LOGIN_EMAIL_DOMAIN', 'annam.com')
    LOGIN_ADDRESS_SCAN_LIMIT = int(os.getenv('LOGIN_ADDRESS_SCAN_LIMIT', 200))
    DEFAULT_DOCTOR_PASSWORD = os.getenv('DEFAULT_DOCTOR_PASSWORD', 'Doctor@123')
    SEQUENCE_RETRY_LIMIT = int(os.getenv('SEQUENCE_RETRY_LIMIT', 3))

    # Reconciliation / saga log housekeeping
    SCHEDULER_ENABLED = _env_bool('SCHEDULER_ENABLED', True)
    SCHEDULER_TIMEZONE = os.getenv('SCHEDULER_TIMEZONE', 'Asia/Kolkata')
    ORPHAN_GRACE_MINUTES = int(os.getenv('ORPHAN_GRACE_MINUTES', 60))
    SAGA_LOG_RETENTION_DAYS = int(os.getenv('SAGA_LOG_RETENTION_DAYS', 30))

    CORS_ORIGINS = [
        origin.strip()
        for origin in os.getenv('CORS_ORIGINS', 'http://localhost:3000').split(',')
        if origin.strip()
    ]

    SENTRY_DSN = os.getenv('SENTRY_DSN')
    SENTRY_ENVIRONMENT = os.getenv('SENTRY_ENVIRONMENT', 'development')
    SENTRY_TRACES_SAMPLE_RATE = float(os.getenv('SENTRY_TRACES_SAMPLE_RATE', 1.0))

    LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO')
    LOG_DIR = os.getenv('LOG_DIR', 'logs')


class DevelopmentConfig(Config):
    DEBUG = True
    SQLALCHEMY_ECHO = True
    LOG_LEVEL = 'DEBUG'


class ProductionConfig(Config):
    DEBUG = False
    SQLALCHEMY_ECHO = False
    LOG_LEVEL = 'WARNING'


class TestingConfig(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = 'sqlite:///:memory:'
    IDENTITY_PROVIDER = 'local'
    LOGIN_EMAIL_DOMAIN = 'x.test'
    SCHEDULER_ENABLED = False
    SENTRY_DSN = None
    LOG_LEVEL = 'DEBUG'


config = {
    'development': DevelopmentConfig,
    'production': ProductionConfig,
    'testing': TestingConfig,
    'default': DevelopmentConfig,
}
