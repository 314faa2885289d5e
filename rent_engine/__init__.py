import logging

from flask import Flask
from flask_sqlalchemy import SQLAlchemy
from .config import Config, TestingConfig

# Initialize SQLAlchemy outside the create_app function
db = SQLAlchemy()


def configure_logging(level):
    """Attach a stream handler to the package logger once and set its level."""
    logger = logging.getLogger(__name__)
    logger.setLevel(level)
    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter('%(asctime)s %(levelname)s %(name)s: %(message)s'))
        logger.addHandler(handler)
    return logger


def create_app(config_class=Config, config_name=None):
    # map friendly names to classes
    if config_name:
        if config_name == 'testing':
            config_class = TestingConfig
        else:
            config_class = config_name   # allow import path string fallback

    # 1. Application Setup
    app = Flask(__name__)
    app.config.from_object(config_class)
    configure_logging(app.config.get('LOG_LEVEL', 'INFO'))

    # 2. Database Initialization
    db.init_app(app)

    # 3. Register Blueprints (Routes)
    from .routes import register_blueprints
    register_blueprints(app)

    # 4. Import Models so SQLAlchemy knows about Property, Unit, Tenant and Transaction
    from . import models

    # 5. Table creation for local SQLite and test databases
    with app.app_context():
        db.create_all()

    return app
