# rent_engine/stores.py
"""
Read-only access to properties, units and transactions.

Each call returns plain dict snapshots so the services never hold on to ORM
objects. Database errors are raised as StoreUnavailableError.
"""
import logging
from datetime import datetime

from sqlalchemy.exc import SQLAlchemyError

from . import db
from .errors import StoreUnavailableError
from .models import Property, Unit, Transaction

logger = logging.getLogger(__name__)


def _as_date(value):
    return value.date() if isinstance(value, datetime) else value


class PropertyStore:

    def __init__(self, session=None):
        self._session = session

    @property
    def session(self):
        return self._session or db.session

    def get_property(self, property_id):
        try:
            prop = self.session.get(Property, property_id)
            return prop.to_dict() if prop else None
        except SQLAlchemyError as exc:
            logger.error("property store read failed for %s: %s", property_id, exc)
            raise StoreUnavailableError(f"could not load property {property_id}") from exc

    def list_units(self, property_id):
        try:
            units = self.session.query(Unit).filter_by(property_id=property_id).order_by(Unit.unit_number).all()
            return [u.to_dict() for u in units]
        except SQLAlchemyError as exc:
            logger.error("property store read failed for units of %s: %s", property_id, exc)
            raise StoreUnavailableError(f"could not load units for property {property_id}") from exc


class TransactionStore:

    def __init__(self, session=None):
        self._session = session

    @property
    def session(self):
        return self._session or db.session

    def list_transactions(self, cost_center=None, date_range=None):
        """
        Transactions for one cost center (or a collection of them) within an
        inclusive (start, end) date range.
        """
        try:
            query = self.session.query(Transaction)
            if cost_center is not None:
                if isinstance(cost_center, (list, tuple, set, frozenset)):
                    query = query.filter(Transaction.cost_center.in_([str(c) for c in cost_center]))
                else:
                    query = query.filter(Transaction.cost_center == str(cost_center))
            if date_range is not None:
                start, end = date_range
                query = query.filter(Transaction.date >= _as_date(start), Transaction.date <= _as_date(end))
            return [tx.to_dict() for tx in query.order_by(Transaction.date, Transaction.id).all()]
        except SQLAlchemyError as exc:
            logger.error("transaction store read failed for %s: %s", cost_center, exc)
            raise StoreUnavailableError("could not load transactions") from exc
