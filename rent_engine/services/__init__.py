# services package

from .normalize import to_number, to_date
from .periods import month_window, month_key, parse_month_key
from .occupancy import tenant_for_month, occupancy_rate_for_month
from .rent_resolution import resolve_rent_due_for_month, resolve_rent_source, rent_as_of
from .categories import AccountClass, CategoryMap
from .performance import calculate_performance
from .insights import generate_insight
from .rent_roll import generate_rent_roll

__all__ = [
    "to_number", "to_date",
    "month_window", "month_key", "parse_month_key",
    "tenant_for_month", "occupancy_rate_for_month",
    "resolve_rent_due_for_month", "resolve_rent_source", "rent_as_of",
    "AccountClass", "CategoryMap",
    "calculate_performance", "generate_insight", "generate_rent_roll",
]
