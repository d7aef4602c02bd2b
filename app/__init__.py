"""
Annam HMS Application
Flask based hospital staff management API
"""

import logging
import sqlite3

from flask import Flask
from flask_cors import CORS
from sqlalchemy import event
from sqlalchemy.engine import URL, Engine
import sentry_sdk
from sentry_sdk.integrations.flask import FlaskIntegration
from sentry_sdk.integrations.sqlalchemy import SqlalchemyIntegration
from common.extensions import db, api
import common.extensions as extensions
from common.utils.logging_utils import setup_logger


@event.listens_for(Engine, 'connect')
def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    if isinstance(dbapi_connection, sqlite3.Connection):
        cursor = dbapi_connection.cursor()
        cursor.execute('PRAGMA foreign_keys=ON')
        cursor.close()


def create_app(config_name='default'):
    """
    Application Factory Pattern
    """
    app = Flask(__name__)

    from common.config.config import config
    config_class = config.get(config_name, config['default'])
    app.config.from_object(config_class)

    app.json.ensure_ascii = False

    if app.config.get('SENTRY_DSN'):
        sentry_sdk.init(
            dsn=app.config['SENTRY_DSN'],
            integrations=[
                FlaskIntegration(),
                SqlalchemyIntegration(),
            ],
            environment=app.config.get('SENTRY_ENVIRONMENT', 'development'),
            traces_sample_rate=app.config.get('SENTRY_TRACES_SAMPLE_RATE', 1.0),
            send_default_pii=False,
            attach_stacktrace=True,
        )

    log_level = getattr(logging, app.config.get('LOG_LEVEL', 'INFO'))
    logger = setup_logger(app, log_level)

    if not app.config.get('SQLALCHEMY_DATABASE_URI'):
        required = [
            'DB_USERNAME', 'DB_PASSWORD',
            'DB_HOST', 'DB_PORT', 'DB_NAME'
        ]
        missing = [k for k in required if not app.config.get(k)]
        if missing:
            raise RuntimeError(f"Missing DB environment variables: {missing}")

        app.config['SQLALCHEMY_DATABASE_URI'] = URL.create(
            drivername='mysql+pymysql',
            username=app.config['DB_USERNAME'],
            password=app.config['DB_PASSWORD'],
            host=app.config['DB_HOST'],
            port=app.config['DB_PORT'],
            database=app.config['DB_NAME'],
        )
    app.config['API_TITLE'] = 'Annam HMS API'
    app.config['API_VERSION'] = 'v1'
    app.config['OPENAPI_VERSION'] = '3.0.3'
    app.config['OPENAPI_URL_PREFIX'] = '/'
    app.config['OPENAPI_SWAGGER_UI_PATH'] = '/swagger'
    app.config['OPENAPI_SWAGGER_UI_URL'] = 'https://cdn.jsdelivr.net/npm/swagger-ui-dist/'
    app.config['OPENAPI_REDOC_PATH'] = '/redoc'
    app.config['OPENAPI_REDOC_URL'] = 'https://cdn.jsdelivr.net/npm/redoc@latest/bundles/redoc.standalone.js'

    db.init_app(app)
    CORS(app,
         supports_credentials=True,
         origins=app.config.get('CORS_ORIGINS', []),
         allow_headers=["Content-Type", "Authorization", "Accept", "X-Requested-With"],
         expose_headers=["Content-Type"],
         methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
         max_age=3600)

    api.init_app(app)

    from common.identity import create_identity_provider
    extensions.identity_provider = create_identity_provider(app.config)
    logger.info(f"Identity provider: {type(extensions.identity_provider).__name__}")

    # register models on the metadata
    from app import models  # noqa: F401

    if app.config.get('SCHEDULER_ENABLED'):
        from common.scheduler import init_scheduler
        init_scheduler(app)

    from app.routes.base import base_blueprint
    from app.routes.doctor import doctor_blueprint
    from app.routes.admin import admin_blueprint

    api.register_blueprint(base_blueprint)
    api.register_blueprint(doctor_blueprint)
    api.register_blueprint(admin_blueprint)

    from common.exception.error_handler import register_error_handlers
    register_error_handlers(app)
    @app.route('/health')
    def health_check():
        return {
            'status': 'healthy',
            'service': 'annam-hms'
        }, 200

    return app
