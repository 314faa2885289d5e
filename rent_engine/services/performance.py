# rent_engine/services/performance.py
"""
Monthly financial performance for a property, a single unit, or a whole
multi-unit property.

Collected income and operating expenses come from the month's transactions
for the scope's cost centers; potential rent comes from the rent resolver;
debt service comes from the property's mortgage settings.
"""
import logging
import math

from .categories import AccountClass, DEFAULT_CATEGORY_MAP
from .financing import debt_service, interest_for_month
from .normalize import to_number, to_date, pick
from .occupancy import tenant_for_month, occupancy_status
from .periods import month_window, month_key
from .rent_resolution import resolve_rent_due_for_month

logger = logging.getLogger(__name__)

HEALTHY_CASH_FLOW_MIN = 100
DSCR_TARGET = 1.25
DSCR_WATCH = 1.1

VERDICT_HEALTHY = 'Healthy Cash Flow'
VERDICT_UNDERPERFORMING = 'Underperforming'
VERDICT_HIGH_DEBT = 'High Debt Ratio'
VERDICT_STABLE = 'Stable'
NO_DEBT = 'No Debt'


def scope_cost_centers(prop, unit=None, units=None):
    if unit is not None:
        return {str(unit.get('id'))}
    centers = {str(pick(prop, 'id'))}
    for u in units or []:
        centers.add(str(u.get('id')))
    return centers


def transactions_for_month(transactions, cost_centers, target_date):
    """Transactions booked to one of `cost_centers` with a date inside the month of `target_date`."""
    month_start, month_end = month_window(target_date)
    selected = []
    for tx in transactions or []:
        if not isinstance(tx, dict):
            continue
        if str(tx.get('cost_center')) not in cost_centers:
            continue
        tx_date = to_date(tx.get('date'))
        if tx_date is not None and month_start <= tx_date <= month_end:
            selected.append(tx)
    return selected


def sum_by_class(transactions, account_class, category_map=DEFAULT_CATEGORY_MAP):
    """Sum of absolute amounts; sign mistakes in the source data do not reduce the total."""
    return sum(
        abs(to_number(tx.get('amount')))
        for tx in transactions
        if category_map.classify(tx) == account_class
    )


def potential_rent_for_scope(prop, target_date, unit=None, units=None):
    """
    Rent due for the scope: the unit's occupant, the property's occupant,
    or the sum over every unit for a whole-property summary.
    """
    if unit is not None:
        occupant = tenant_for_month(unit.get('tenants'), target_date)
        return resolve_rent_due_for_month(occupant, prop, unit, target_date), occupant
    if units:
        total = 0.0
        for u in units:
            occupant = tenant_for_month(u.get('tenants'), target_date)
            total += resolve_rent_due_for_month(occupant, prop, u, target_date)
        return total, None
    occupant = tenant_for_month(pick(prop, 'tenants'), target_date)
    return resolve_rent_due_for_month(occupant, prop, None, target_date), occupant


def verdict_for(cash_flow, dscr, debt_payment):
    if cash_flow > HEALTHY_CASH_FLOW_MIN and dscr > DSCR_TARGET:
        return VERDICT_HEALTHY
    if cash_flow < 0:
        return VERDICT_UNDERPERFORMING
    if dscr < DSCR_TARGET and debt_payment > 0:
        return VERDICT_HIGH_DEBT
    return VERDICT_STABLE


def dscr_display(dscr):
    if not math.isfinite(dscr) or dscr == 0:
        return NO_DEBT
    return f"{dscr:.2f}x"


def dscr_rating(dscr):
    if not math.isfinite(dscr) or dscr == 0:
        return NO_DEBT
    if dscr >= DSCR_TARGET:
        return 'Healthy'
    if dscr >= DSCR_WATCH:
        return 'Watch'
    return 'Risk'


def calculate_performance(prop, target_date, transactions, unit=None, units=None,
                          category_map=None, amortization=None, amortization_timeout=None):
    """
    Computes the month's performance metrics for a property scope.

    `transactions` may contain records outside the scope or month; only those
    booked to the scope's cost centers within the month are counted.
    `units` requests a whole-property summary where potential rent is summed
    per unit. `amortization` is the optional interest calculator.
    """
    category_map = category_map or DEFAULT_CATEGORY_MAP
    target_date = to_date(target_date)
    if target_date is None:
        raise ValueError("target_date must be a date")

    cost_centers = scope_cost_centers(prop, unit, units)
    month_txs = transactions_for_month(transactions, cost_centers, target_date)

    rental_income = sum_by_class(month_txs, AccountClass.INCOME, category_map)
    operating_expenses = sum_by_class(month_txs, AccountClass.OPERATING_EXPENSE, category_map)
    potential_rent, occupant = potential_rent_for_scope(prop, target_date, unit, units)

    noi = rental_income - operating_expenses
    debt_payment, escrow = debt_service(prop)
    total_debt_payment = debt_payment + escrow
    cash_flow = noi - debt_payment
    dscr = noi / total_debt_payment if total_debt_payment > 0 else math.inf
    economic_occupancy = (rental_income / potential_rent) * 100 if potential_rent > 0 else 0.0
    break_even_rent = operating_expenses + total_debt_payment

    metrics = {
        'month': month_key(target_date),
        'scope_id': str(unit.get('id')) if unit is not None else str(pick(prop, 'id')),
        'transaction_count': len(month_txs),
        'rental_income': rental_income,
        'operating_expenses': operating_expenses,
        'potential_rent': potential_rent,
        'noi': noi,
        'debt_payment': debt_payment,
        'escrow': escrow,
        'total_debt_payment': total_debt_payment,
        'cash_flow': cash_flow,
        'dscr': dscr,
        'dscr_display': dscr_display(dscr),
        'dscr_rating': dscr_rating(dscr),
        'economic_occupancy': economic_occupancy,
        'unpaid_rent': potential_rent - rental_income,
        'break_even_rent': break_even_rent,
        'surplus': rental_income - break_even_rent,
        'interest_paid_for_month': interest_for_month(prop, target_date, amortization, amortization_timeout),
        'verdict': verdict_for(cash_flow, dscr, debt_payment),
    }
    if not units or unit is not None:
        metrics['occupant_id'] = occupant.get('id') if occupant else None
        metrics['status'] = occupancy_status(occupant)
    logger.debug("performance for %s %s: %s", metrics['scope_id'], metrics['month'], metrics['verdict'])
    return metrics
