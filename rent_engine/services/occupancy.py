# rent_engine/services/occupancy.py
import logging

from .normalize import to_date
from .periods import month_window, month_key

logger = logging.getLogger(__name__)


def _lease_bounds(tenant):
    if not isinstance(tenant, dict):
        return None, None
    return to_date(tenant.get('lease_start')), to_date(tenant.get('lease_end'))


def tenant_for_month(tenants, target_date):
    """
    Returns the tenant occupying the month containing `target_date`, or None when vacant.

    A tenant qualifies when both lease bounds parse and [lease_start, lease_end]
    overlaps the month (bounds inclusive). When several leases overlap, as on a
    mid-month turnover, the lease that started most recently wins. Identical
    lease starts fall back to the tenant id, smallest first; tenants without an
    id keep their input order.
    """
    target_date = to_date(target_date)
    if not tenants or target_date is None:
        return None
    month_start, month_end = month_window(target_date)

    candidates = []
    for tenant in tenants:
        lease_start, lease_end = _lease_bounds(tenant)
        if lease_start is None or lease_end is None:
            continue
        if lease_start <= month_end and lease_end >= month_start:
            candidates.append((lease_start, tenant))

    if not candidates:
        return None
    if len(candidates) == 1:
        return candidates[0][1]

    # Two stable passes: id as the secondary key, then lease start descending.
    candidates.sort(key=lambda c: str(c[1].get('id') or ''))
    candidates.sort(key=lambda c: c[0], reverse=True)
    logger.debug(
        "%d leases overlap %s, picking tenant %s",
        len(candidates), month_key(target_date), candidates[0][1].get('id'),
    )
    return candidates[0][1]


def occupancy_status(tenant):
    return 'Occupied' if tenant else 'Vacant'


def occupancy_rate_for_month(units, target_date):
    """
    Returns the share of units with a month occupant for the calendar month of `target_date`.
    """
    units = units or []
    occupied_units = sum(
        1 for unit in units
        if tenant_for_month((unit or {}).get('tenants'), target_date) is not None
    )
    total_units = len(units)
    occupancy_rate = round(occupied_units / total_units, 4) if total_units > 0 else 0.0
    return {
        'occupancy_rate': occupancy_rate,
        'total_units': total_units,
        'occupied_units': occupied_units,
        'month': month_key(target_date),
    }
