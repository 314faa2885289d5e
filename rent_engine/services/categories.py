# rent_engine/services/categories.py
from enum import Enum

from .normalize import pick


class AccountClass(str, Enum):
    INCOME = 'INCOME'
    OPERATING_EXPENSE = 'OPERATING_EXPENSE'
    ASSET = 'ASSET'
    LIABILITY = 'LIABILITY'
    EQUITY = 'EQUITY'
    UNKNOWN = 'UNKNOWN'


DEFAULT_SYNONYMS = {
    'INCOME': AccountClass.INCOME,
    'OPERATING EXPENSE': AccountClass.OPERATING_EXPENSE,
    'OPERATING_EXPENSE': AccountClass.OPERATING_EXPENSE,
    'EXPENSE': AccountClass.OPERATING_EXPENSE,
    'EXPENSES': AccountClass.OPERATING_EXPENSE,
    'ASSET': AccountClass.ASSET,
    'ASSETS': AccountClass.ASSET,
    'LIABILITY': AccountClass.LIABILITY,
    'LIABILITIES': AccountClass.LIABILITY,
    'EQUITY': AccountClass.EQUITY,
}

# Checked in order against free-text labels that missed the exact table.
DEFAULT_CONTAINS = (
    ('INCOME', AccountClass.INCOME),
    ('EXPENSE', AccountClass.OPERATING_EXPENSE),
)


class CategoryMap:
    """
    Maps the top level of a transaction's category hierarchy to an AccountClass.

    Exact (case-insensitive) synonyms are tried first, then substring rules.
    Pass a custom instance to the aggregator to use a different vocabulary.
    """

    def __init__(self, synonyms=None, contains=None):
        source = DEFAULT_SYNONYMS if synonyms is None else synonyms
        self.synonyms = {str(k).strip().upper(): AccountClass(v) for k, v in source.items()}
        rules = DEFAULT_CONTAINS if contains is None else contains
        self.contains = tuple((str(needle).upper(), AccountClass(cls)) for needle, cls in rules)

    def classify_label(self, label):
        raw = str(label or '').strip().upper()
        if not raw:
            return AccountClass.UNKNOWN
        if raw in self.synonyms:
            return self.synonyms[raw]
        for needle, account_class in self.contains:
            if needle in raw:
                return account_class
        return AccountClass.UNKNOWN

    def classify(self, transaction):
        """Classifies a transaction record by `category_hierarchy.l0`, then legacy `primary_category`."""
        label = pick(transaction, 'category_hierarchy', 'l0') or pick(transaction, 'primary_category')
        return self.classify_label(label)


DEFAULT_CATEGORY_MAP = CategoryMap()
