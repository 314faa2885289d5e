# rent_engine/services/rent_resolution.py
"""
Rent due for a month.

The amount is resolved through an ordered chain of strategies; the first one
that yields a positive amount wins:

1. ``tenant_history``   the month tenant's rent history, as of the target date
2. ``scope_history``    rent history of the unit's tenants, then of every property tenant
3. ``tenant_scalar``    legacy ``rent_amount`` / ``rent`` / ``monthly_rent`` fields
4. ``unit_scalar``      the unit's configured rent or target rent
5. ``property_scalar``  the property's configured target rent or rent

A rent change is often entered against the wrong tenant record, which is what
the scope-wide history step recovers from.
"""
import logging

from .normalize import to_number, to_date, pick

logger = logging.getLogger(__name__)

_AMOUNT_KEYS = ('amount', 'rent', 'value')
_EFFECTIVE_KEYS = ('effective_date', 'date', 'start_date', 'from')


def _first_present(entry, keys):
    for key in keys:
        value = entry.get(key)
        if value is not None:
            return value
    return None


def _history_entries(history):
    """Valid (effective, amount) pairs; non-positive amounts and bad dates are dropped."""
    entries = []
    if not isinstance(history, (list, tuple)):
        return entries
    for entry in history:
        if not isinstance(entry, dict):
            continue
        amount = to_number(_first_present(entry, _AMOUNT_KEYS))
        effective = to_date(_first_present(entry, _EFFECTIVE_KEYS))
        if amount > 0 and effective is not None:
            entries.append((effective, amount))
    return entries


def rent_as_of(history, target_date):
    """
    Amount of the most recent entry effective on or before `target_date`, else 0.

    Entries may be stored in any order; future-dated increases are ignored.
    Entries sharing an effective date resolve to the one stored first.
    """
    target_date = to_date(target_date)
    if target_date is None:
        return 0.0
    best = None
    for effective, amount in _history_entries(history):
        if effective <= target_date and (best is None or effective > best[0]):
            best = (effective, amount)
    return best[1] if best else 0.0


def _first_positive(values):
    for value in values:
        amount = to_number(value)
        if amount > 0:
            return amount
    return 0.0


# --- strategies: each takes (tenant, property, unit, date) and returns an amount ---

def tenant_history(tenant, prop, unit, target_date):
    return rent_as_of(pick(tenant, 'rent_history'), target_date)


def _combined_history(tenants):
    combined = []
    if not isinstance(tenants, (list, tuple)):
        return combined
    for other in tenants:
        history = pick(other, 'rent_history')
        if isinstance(history, (list, tuple)):
            combined.extend(history)
    return combined


def scope_history(tenant, prop, unit, target_date):
    """Unit tenants' history first when a unit is in scope, then every tenant attached to the property."""
    if unit is not None:
        amount = rent_as_of(_combined_history(pick(unit, 'tenants')), target_date)
        if amount > 0:
            return amount
    return rent_as_of(_combined_history(pick(prop, 'tenants')), target_date)


def tenant_scalar(tenant, prop, unit, target_date):
    return _first_positive([
        pick(tenant, 'rent_amount'),
        pick(tenant, 'rent'),
        pick(tenant, 'monthly_rent'),
    ])


def unit_scalar(tenant, prop, unit, target_date):
    if unit is None:
        return 0.0
    return _first_positive([
        pick(unit, 'financials', 'rent'),
        pick(unit, 'financials', 'target_rent'),
        pick(unit, 'target_rent'),
    ])


def property_scalar(tenant, prop, unit, target_date):
    return _first_positive([
        pick(prop, 'financials', 'target_rent'),
        pick(prop, 'financials', 'rent'),
        pick(prop, 'target_rent'),
    ])


RENT_STRATEGIES = (
    ('tenant_history', tenant_history),
    ('scope_history', scope_history),
    ('tenant_scalar', tenant_scalar),
    ('unit_scalar', unit_scalar),
    ('property_scalar', property_scalar),
)


def resolve_rent_source(month_tenant, prop, unit=None, target_date=None, strategies=RENT_STRATEGIES):
    """Returns (amount, strategy_name); (0.0, 'none') when every strategy comes up empty."""
    target_date = to_date(target_date)
    if target_date is None:
        return 0.0, 'none'
    for name, strategy in strategies:
        amount = strategy(month_tenant, prop, unit, target_date)
        if amount > 0:
            logger.debug("rent resolved via %s: %s", name, amount)
            return amount, name
    return 0.0, 'none'


def resolve_rent_due_for_month(month_tenant, prop, unit=None, target_date=None):
    """Rent contractually due for the month of `target_date`; never negative, 0 when unknown."""
    amount, _ = resolve_rent_source(month_tenant, prop, unit, target_date)
    return amount
