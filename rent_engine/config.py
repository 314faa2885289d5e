import os
# Define the base directory for the database file (the project root)
BASEDIR = os.path.abspath(os.path.join(os.path.dirname(__file__), '..'))
DB_PATH = os.path.join(BASEDIR, 'app.db')


class EngineConfig:
    # Upper bound on a single amortization calculator call; None waits indefinitely
    AMORTIZATION_TIMEOUT_SECONDS = float(os.environ.get('AMORTIZATION_TIMEOUT_SECONDS', 5))
    # Callable(principal, annual_rate, scheduled_payment, loan_start_date, term_years, target_date)
    AMORTIZATION_CALCULATOR = None
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO').upper()


class Config(EngineConfig):
    """Base configuration class."""
    # Defaulting to a file-based SQLite database
    SQLALCHEMY_DATABASE_URI = os.environ.get('DATABASE_URL') or 'sqlite:///' + DB_PATH
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Secret Key is required by Flask
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'a-very-secret-and-hard-to-guess-string'


class TestingConfig(Config):
    """Configuration used specifically for running Pytest."""
    TESTING = True
    # Crucial: Use an in-memory SQLite database for fast, isolated testing
    SQLALCHEMY_DATABASE_URI = 'sqlite:///:memory:'
    SQLALCHEMY_ECHO = False
    AMORTIZATION_TIMEOUT_SECONDS = 1
    LOG_LEVEL = 'DEBUG'
