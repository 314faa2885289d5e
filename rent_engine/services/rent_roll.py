# rent_engine/services/rent_roll.py
from .categories import AccountClass, DEFAULT_CATEGORY_MAP
from .normalize import to_number, pick
from .occupancy import tenant_for_month, occupancy_status
from .performance import transactions_for_month
from .periods import month_key
from .rent_resolution import resolve_rent_source


def payment_status(rent_due, amount_paid):
    if rent_due == 0 and amount_paid == 0:
        return 'paid'
    if amount_paid <= 0:
        return 'unpaid'
    if amount_paid > rent_due:
        return 'overpaid'
    if amount_paid >= rent_due:
        return 'paid'
    return 'partial'


def _tenant_name(tenant):
    if not tenant:
        return None
    name = f"{tenant.get('first_name') or ''} {tenant.get('last_name') or ''}".strip()
    return name or '(Unnamed Tenant)'


def _amount_paid(transactions, cost_center, target_date, category_map):
    """Positive income booked to `cost_center` during the month; refunds and reversals are ignored."""
    total = 0.0
    for tx in transactions_for_month(transactions, {cost_center}, target_date):
        amount = to_number(tx.get('amount'))
        if amount > 0 and category_map.classify(tx) == AccountClass.INCOME:
            total += amount
    return total


def generate_rent_roll(prop, units, target_date, transactions, category_map=None):
    """
    Generates the monthly rent roll for a property.
    Returns one dict per unit (or a single row for a property without units) with keys:
    month, property_id, unit_id, unit_number, tenant_id, tenant_name, occupancy,
    rent_due, rent_source, amount_paid, balance, status
    """
    category_map = category_map or DEFAULT_CATEGORY_MAP
    prop_id = str(pick(prop, 'id'))
    scopes = [(u, str(u.get('id'))) for u in units or []] or [(None, prop_id)]

    rent_roll_report = []
    for unit, cost_center in scopes:
        tenants = unit.get('tenants') if unit is not None else pick(prop, 'tenants')
        tenant = tenant_for_month(tenants, target_date)
        rent_due, rent_source = resolve_rent_source(tenant, prop, unit, target_date)
        amount_paid = _amount_paid(transactions, cost_center, target_date, category_map)
        rent_roll_report.append({
            "month": month_key(target_date),
            "property_id": prop_id,
            "unit_id": unit.get('id') if unit is not None else None,
            "unit_number": unit.get('unit_number') if unit is not None else None,
            "tenant_id": tenant.get('id') if tenant else None,
            "tenant_name": _tenant_name(tenant),
            "occupancy": occupancy_status(tenant),
            "rent_due": rent_due,
            "rent_source": rent_source,
            "amount_paid": amount_paid,
            "balance": rent_due - amount_paid,
            "status": payment_status(rent_due, amount_paid),
        })
    return rent_roll_report
