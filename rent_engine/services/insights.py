# rent_engine/services/insights.py
import math

COLLECTION_TARGET = 0.95
LOW_COLLECTION_PCT = 80
CONCENTRATION_DSCR = 1.5
LENDER_DSCR = 1.2


def format_currency(value):
    if not isinstance(value, (int, float)) or isinstance(value, bool) or not math.isfinite(value):
        return '$0.00'
    sign = '-' if value < 0 else ''
    return f"{sign}${abs(value):,.2f}"


def generate_insight(metrics, tenant_count=0):
    """
    Returns a one-line recommendation for a month's performance metrics.

    Rules are checked in order and the first match wins: under-collection on a
    cash-flowing property, single-tenant concentration, debt-driven negative
    cash flow, then a sub-threshold DSCR. Anything else reads as stable.
    """
    cash_flow = metrics.get('cash_flow', 0)
    noi = metrics.get('noi', 0)
    dscr = metrics.get('dscr', 0)
    economic_occupancy = metrics.get('economic_occupancy', 0)
    potential_rent = metrics.get('potential_rent', 0)
    rental_income = metrics.get('rental_income', 0)

    if cash_flow > 0 and 0 < economic_occupancy < LOW_COLLECTION_PCT:
        delta = potential_rent * COLLECTION_TARGET - rental_income
        return (
            f"This property is cash-flowing. Improving the collection rate from "
            f"{economic_occupancy:.0f}% to {COLLECTION_TARGET * 100:.0f}% could increase "
            f"monthly cash flow by approximately {format_currency(delta)}."
        )
    if dscr > CONCENTRATION_DSCR and tenant_count == 1:
        return (
            "Risk is tenant concentration (100% from one tenant). "
            "Consider adding a lease renewal reminder."
        )
    if cash_flow < 0 and noi > 0:
        return (
            "The property is profitable on an operating basis, but negative cash flow "
            "suggests the debt service is high. Consider refinancing options."
        )
    if math.isfinite(dscr) and 0 < dscr < LENDER_DSCR:
        return (
            "The debt service coverage ratio is below the typical lender threshold of 1.25x. "
            "Focus on increasing NOI by reducing expenses or raising rent."
        )
    return (
        "Property financials appear stable for the current period. "
        "Explore rent increase scenarios to optimize performance."
    )
