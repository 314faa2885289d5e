# rent_engine/errors.py


class StoreUnavailableError(Exception):
    """A read store could not be reached; callers may retry or degrade."""
