# rent_engine/services/financing.py
"""
Debt service figures for a property, and the call out to the amortization
calculator that supplies the interest share of a month's payment.

The calculator is an injected callable with the signature

    calculate(principal, annual_rate, scheduled_payment, loan_start_date,
              term_years, target_date) -> {'interest_paid_for_month': ..., 'success': ...}

It is the one collaborator that may be slow or fail, so it runs on a worker
thread with a timeout and any failure is reported as zero interest.
"""
import logging
from concurrent.futures import ThreadPoolExecutor, TimeoutError as FutureTimeout

from .normalize import to_number, to_date, pick

logger = logging.getLogger(__name__)

_TRUE_FLAGS = {'yes', 'y', 'true', '1'}
_FALSE_FLAGS = {'no', 'n', 'false', '0', ''}


def has_mortgage(prop):
    mortgage = pick(prop, 'mortgage')
    if not isinstance(mortgage, dict):
        return False
    flag = mortgage.get('has_mortgage')
    if isinstance(flag, bool):
        return flag
    if isinstance(flag, str):
        text = flag.strip().lower()
        if text in _TRUE_FLAGS:
            return True
        if text in _FALSE_FLAGS:
            return False
    # Older records carry no flag; a scheduled payment implies a loan.
    return to_number(mortgage.get('principal_and_interest')) > 0


def debt_service(prop):
    """Returns (principal_and_interest, escrow) per month; both 0 without a mortgage."""
    if not has_mortgage(prop):
        return 0.0, 0.0
    debt_payment = max(to_number(pick(prop, 'mortgage', 'principal_and_interest')), 0.0)
    escrow = max(to_number(pick(prop, 'mortgage', 'escrow_amount')), 0.0)
    return debt_payment, escrow


def interest_for_month(prop, target_date, calculator=None, timeout=None):
    """
    Interest portion of the mortgage payment for the month of `target_date`.

    Returns 0.0 when there is no calculator, no mortgage, no original loan
    amount, or when the calculator fails, reports failure or times out.
    """
    if calculator is None or not has_mortgage(prop):
        return 0.0
    mortgage = pick(prop, 'mortgage')
    principal = to_number(mortgage.get('original_loan_amount'))
    if principal <= 0:
        return 0.0

    args = (
        principal,
        to_number(mortgage.get('interest_rate')),
        to_number(mortgage.get('principal_and_interest')),
        to_date(mortgage.get('purchase_date')),
        to_number(mortgage.get('loan_term')),
        target_date,
    )
    executor = ThreadPoolExecutor(max_workers=1)
    try:
        future = executor.submit(calculator, *args)
        result = future.result(timeout=timeout)
    except FutureTimeout:
        logger.warning("amortization calculator timed out after %ss for property %s", timeout, pick(prop, 'id'))
        return 0.0
    except Exception:
        logger.warning("amortization calculator failed for property %s", pick(prop, 'id'), exc_info=True)
        return 0.0
    finally:
        executor.shutdown(wait=False)

    if not isinstance(result, dict) or not result.get('success'):
        logger.warning("amortization calculator reported no result for property %s", pick(prop, 'id'))
        return 0.0
    return max(to_number(result.get('interest_paid_for_month')), 0.0)
