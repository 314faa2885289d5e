import pytest
from rent_engine import create_app, db
from rent_engine.config import TestingConfig
from rent_engine.models import *  # register models so metadata is available


@pytest.fixture(scope='module')
def app():
    """Create and configure a new app instance for each test module."""
    app = create_app(config_class=TestingConfig)
    yield app


@pytest.fixture(scope='function')
def db_session(app):
    """
    Fresh tables for each test function.

    The app context stays pushed for the whole test so the test client's
    requests reuse it and see the same in-memory database and session.
    """
    with app.app_context():
        db.create_all()
        try:
            yield db.session
        finally:
            db.session.remove()
            db.drop_all()


@pytest.fixture(scope='function')
def client(app):
    """A Flask test client to make HTTP requests during integration tests."""
    return app.test_client()
