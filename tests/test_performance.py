# tests/test_performance.py
import math
import time
import pytest
from datetime import datetime
from rent_engine.services.categories import AccountClass, CategoryMap
from rent_engine.services.financing import has_mortgage, debt_service, interest_for_month
from rent_engine.services.performance import calculate_performance, dscr_display, dscr_rating
from rent_engine.services.insights import generate_insight, format_currency
from rent_engine.services.rent_roll import generate_rent_roll, payment_status

JUNE = datetime(2024, 6, 2)


# --- Helper functions for building records ---
def tx(amount, l0, day='2024-06-10', cost_center='prop-1', **extra):
    record = {'date': day, 'amount': amount, 'category_hierarchy': {'l0': l0}, 'cost_center': cost_center}
    record.update(extra)
    return record


def tenant(tenant_id, rent, lease_start='2024-01-01', lease_end='2024-12-31'):
    return {
        'id': tenant_id,
        'first_name': 'Pat',
        'last_name': tenant_id,
        'lease_start': lease_start,
        'lease_end': lease_end,
        'rent_history': [{'amount': rent, 'effective_date': lease_start}],
    }


def leveraged_property(**mortgage_overrides):
    mortgage = {'principal_and_interest': 1000, 'escrow_amount': 200}
    mortgage.update(mortgage_overrides)
    return {'id': 'prop-1', 'tenants': [tenant('t1', 2000)], 'mortgage': mortgage}


# --- Category classification ---
@pytest.mark.parametrize("label, expected", [
    ('Income', AccountClass.INCOME),
    ('INCOME', AccountClass.INCOME),
    ('operating expense', AccountClass.OPERATING_EXPENSE),
    ('Expense', AccountClass.OPERATING_EXPENSE),
    ('Expenses', AccountClass.OPERATING_EXPENSE),
    ('Rental Income', AccountClass.INCOME),
    ('Repairs expense', AccountClass.OPERATING_EXPENSE),
    ('Liability', AccountClass.LIABILITY),
    ('Assets', AccountClass.ASSET),
    ('Fixed Assets', AccountClass.UNKNOWN),
    ("Owner's Equity", AccountClass.UNKNOWN),
    ('Operating Account', AccountClass.UNKNOWN),
    ('Transfer', AccountClass.UNKNOWN),
    ('', AccountClass.UNKNOWN),
    (None, AccountClass.UNKNOWN),
])
def test_default_category_map(label, expected):
    assert CategoryMap().classify_label(label) == expected


def test_category_falls_back_to_primary_category():
    cmap = CategoryMap()
    assert cmap.classify({'primary_category': 'Expense'}) == AccountClass.OPERATING_EXPENSE
    assert cmap.classify({'category_hierarchy': None}) == AccountClass.UNKNOWN
    assert cmap.classify(None) == AccountClass.UNKNOWN


def test_custom_vocabulary_replaces_defaults():
    cmap = CategoryMap(synonyms={'revenue': 'INCOME', 'Opex': AccountClass.OPERATING_EXPENSE}, contains=())
    assert cmap.classify_label('REVENUE') == AccountClass.INCOME
    assert cmap.classify_label('opex') == AccountClass.OPERATING_EXPENSE
    assert cmap.classify_label('Income') == AccountClass.UNKNOWN


def test_balance_sheet_substring_rules_are_opt_in():
    cmap = CategoryMap(contains=(
        ('INCOME', 'INCOME'),
        ('EXPENSE', 'OPERATING_EXPENSE'),
        ('ASSET', 'ASSET'),
        ('EQUITY', 'EQUITY'),
    ))
    assert cmap.classify_label('Fixed Assets') == AccountClass.ASSET
    assert cmap.classify_label("Owner's Equity") == AccountClass.EQUITY
    assert cmap.classify_label('Operating Account') == AccountClass.UNKNOWN
    assert cmap.classify_label('Rental Income') == AccountClass.INCOME


# --- Mortgage and amortization collaborator ---
@pytest.mark.parametrize("mortgage, expected", [
    ({'has_mortgage': 'yes', 'principal_and_interest': 900}, True),
    ({'has_mortgage': True}, True),
    ({'has_mortgage': 'no', 'principal_and_interest': 900}, False),
    ({'has_mortgage': False, 'principal_and_interest': 900}, False),
    ({'principal_and_interest': '900'}, True),
    ({}, False),
    (None, False),
])
def test_has_mortgage(mortgage, expected):
    assert has_mortgage({'mortgage': mortgage}) is expected


def test_debt_service_is_zero_without_a_mortgage():
    assert debt_service({'mortgage': {'has_mortgage': 'no', 'principal_and_interest': 900, 'escrow_amount': 100}}) == (0, 0)
    assert debt_service({}) == (0, 0)
    assert debt_service(leveraged_property()) == (1000, 200)


def _calculator(result):
    calls = []

    def calculate(principal, annual_rate, scheduled_payment, loan_start_date, term_years, target_date):
        calls.append((principal, annual_rate, scheduled_payment, loan_start_date, term_years, target_date))
        if isinstance(result, Exception):
            raise result
        return result
    calculate.calls = calls
    return calculate


def test_interest_for_month_passes_normalized_loan_terms():
    prop = leveraged_property(has_mortgage='yes', original_loan_amount='$200,000', interest_rate='6.5',
                              purchase_date='2020-03-15', loan_term=30)
    calculator = _calculator({'success': True, 'interest_paid_for_month': 812.5})
    assert interest_for_month(prop, JUNE, calculator, timeout=1) == 812.5
    principal, rate, payment, start, term, target = calculator.calls[0]
    assert (principal, rate, payment, term) == (200000, 6.5, 1000, 30)
    assert start == datetime(2020, 3, 15)
    assert target == JUNE


@pytest.mark.parametrize("result", [
    RuntimeError("calculator down"),
    {'success': False},
    None,
])
def test_interest_for_month_failures_become_zero(result):
    prop = leveraged_property(has_mortgage='yes', original_loan_amount=200000)
    assert interest_for_month(prop, JUNE, _calculator(result), timeout=1) == 0


def test_interest_for_month_times_out_to_zero():
    def slow(*args):
        time.sleep(0.5)
        return {'success': True, 'interest_paid_for_month': 1}
    prop = leveraged_property(has_mortgage='yes', original_loan_amount=200000)
    assert interest_for_month(prop, JUNE, slow, timeout=0.05) == 0


def test_interest_requires_original_loan_amount():
    calculator = _calculator({'success': True, 'interest_paid_for_month': 500})
    assert interest_for_month(leveraged_property(has_mortgage='yes'), JUNE, calculator) == 0
    assert interest_for_month(leveraged_property(has_mortgage='yes', original_loan_amount=1), JUNE, None) == 0
    assert calculator.calls == []


# --- Financial aggregation ---
def test_leveraged_property_is_healthy():
    """Income 2000, expenses 300, P&I 1000 plus 200 escrow."""
    transactions = [
        tx(1500, 'Income'),
        tx(-500, 'Income'),  # sign error in the source data still counts as income
        tx(-300, 'Operating Expense'),
    ]
    metrics = calculate_performance(leveraged_property(), JUNE, transactions)
    assert metrics['rental_income'] == 2000
    assert metrics['operating_expenses'] == 300
    assert metrics['noi'] == 1700
    assert metrics['debt_payment'] == 1000
    assert metrics['total_debt_payment'] == 1200
    assert metrics['cash_flow'] == 700
    assert metrics['dscr'] == pytest.approx(1.4167, abs=1e-4)
    assert metrics['dscr_display'] == '1.42x'
    assert metrics['verdict'] == 'Healthy Cash Flow'
    assert metrics['break_even_rent'] == 1500
    assert metrics['surplus'] == 500
    assert metrics['potential_rent'] == 2000
    assert metrics['economic_occupancy'] == 100
    assert metrics['occupant_id'] == 't1'
    assert metrics['status'] == 'Occupied'
    assert metrics['transaction_count'] == 3


def test_no_transactions_and_no_debt_is_stable():
    prop = {'id': 'prop-1', 'tenants': []}
    metrics = calculate_performance(prop, JUNE, [])
    assert math.isinf(metrics['dscr'])
    assert metrics['dscr_display'] == 'No Debt'
    assert metrics['dscr_rating'] == 'No Debt'
    assert metrics['break_even_rent'] == 0
    assert metrics['economic_occupancy'] == 0
    assert metrics['verdict'] == 'Stable'
    assert metrics['status'] == 'Vacant'
    assert metrics['occupant_id'] is None
    assert metrics['interest_paid_for_month'] == 0


def test_only_scope_and_month_transactions_are_counted():
    transactions = [
        tx(2000, 'Income'),
        tx(999, 'Income', day='2024-05-31'),
        tx(999, 'Income', day='2024-07-01'),
        tx(999, 'Income', cost_center='prop-2'),
        tx(999, 'Income', cost_center=None),
        tx(999, 'Income', day='not a date'),
        tx(400, 'Equity'),
        tx(250, 'Liability'),
    ]
    metrics = calculate_performance(leveraged_property(), JUNE, transactions)
    assert metrics['rental_income'] == 2000
    assert metrics['operating_expenses'] == 0
    assert metrics['transaction_count'] == 3


def test_month_boundary_days_are_included():
    transactions = [tx(100, 'Income', day='2024-06-01'), tx(100, 'Income', day='2024-06-30T23:30:00')]
    assert calculate_performance(leveraged_property(), JUNE, transactions)['rental_income'] == 200


@pytest.mark.parametrize("income, expenses, mortgage, verdict", [
    (2000, 300, {'principal_and_interest': 1000, 'escrow_amount': 200}, 'Healthy Cash Flow'),
    (900, 300, {'principal_and_interest': 1000}, 'Underperforming'),
    (1500, 300, {'principal_and_interest': 1000, 'escrow_amount': 200}, 'High Debt Ratio'),
    (1150, 100, {'principal_and_interest': 1000}, 'High Debt Ratio'),
    (150, 0, {'principal_and_interest': 100}, 'Stable'),
    (150, 100, {}, 'Stable'),
])
def test_verdict_rules_in_order(income, expenses, mortgage, verdict):
    prop = {'id': 'prop-1', 'mortgage': mortgage}
    transactions = [tx(income, 'Income'), tx(-expenses, 'Expense')]
    assert calculate_performance(prop, JUNE, transactions)['verdict'] == verdict


def test_economic_occupancy_compares_collected_to_potential_rent():
    prop = {'id': 'prop-1', 'tenants': [tenant('t1', 2000)]}
    metrics = calculate_performance(prop, JUNE, [tx(1500, 'Income')])
    assert metrics['economic_occupancy'] == 75
    assert metrics['unpaid_rent'] == 500


def test_unit_scope_uses_unit_transactions_and_occupant():
    unit = {'id': 'u1', 'tenants': [tenant('t9', 1100)], 'financials': {'target_rent': 1200}}
    prop = {'id': 'prop-1', 'mortgage': {}}
    transactions = [tx(1100, 'Income', cost_center='u1'), tx(5000, 'Income', cost_center='prop-1')]
    metrics = calculate_performance(prop, JUNE, transactions, unit=unit)
    assert metrics['scope_id'] == 'u1'
    assert metrics['rental_income'] == 1100
    assert metrics['potential_rent'] == 1100
    assert metrics['occupant_id'] == 't9'


def test_whole_property_summary_sums_unit_rents():
    units = [
        {'id': 'u1', 'tenants': [tenant('t1', 1000)]},
        {'id': 'u2', 'tenants': [tenant('t2', 1200, '2023-01-01', '2023-12-31')], 'target_rent': 1150},
        {'id': 'u3', 'tenants': []},
    ]
    prop = {'id': 'prop-1', 'property_type': 'multi-family'}
    transactions = [
        tx(1000, 'Income', cost_center='u1'),
        tx(-250, 'Expense', cost_center='prop-1'),
        tx(-50, 'Expense', cost_center='u3'),
    ]
    metrics = calculate_performance(prop, JUNE, transactions, units=units)
    # u2 is vacant but its previous tenant's history still applies
    assert metrics['potential_rent'] == 2200
    assert metrics['rental_income'] == 1000
    assert metrics['operating_expenses'] == 300
    assert 'occupant_id' not in metrics


def test_injected_category_map_is_used():
    cmap = CategoryMap(synonyms={'RENT RECEIVED': 'INCOME', 'UPKEEP': 'OPERATING_EXPENSE'}, contains=())
    transactions = [tx(800, 'Rent received'), tx(-100, 'Upkeep'), tx(999, 'Income')]
    metrics = calculate_performance({'id': 'prop-1'}, JUNE, transactions, category_map=cmap)
    assert metrics['rental_income'] == 800
    assert metrics['operating_expenses'] == 100


def test_amortization_failure_does_not_abort_the_report():
    prop = leveraged_property(has_mortgage='yes', original_loan_amount=150000)
    metrics = calculate_performance(prop, JUNE, [tx(2000, 'Income')], amortization=_calculator(RuntimeError("boom")))
    assert metrics['interest_paid_for_month'] == 0
    assert metrics['noi'] == 2000


def test_calculate_performance_does_not_mutate_inputs():
    transactions = [tx(-500, 'Income')]
    prop = leveraged_property()
    calculate_performance(prop, JUNE, transactions)
    assert transactions[0]['amount'] == -500
    assert prop['mortgage'] == {'principal_and_interest': 1000, 'escrow_amount': 200}


@pytest.mark.parametrize("dscr, display, rating", [
    (math.inf, 'No Debt', 'No Debt'),
    (0, 'No Debt', 'No Debt'),
    (1.3, '1.30x', 'Healthy'),
    (1.25, '1.25x', 'Healthy'),
    (1.15, '1.15x', 'Watch'),
    (0.8, '0.80x', 'Risk'),
    (-0.5, '-0.50x', 'Risk'),
])
def test_dscr_labels(dscr, display, rating):
    assert dscr_display(dscr) == display
    assert dscr_rating(dscr) == rating


# --- Insights ---
def _metrics(**values):
    base = {'cash_flow': 0, 'noi': 0, 'dscr': math.inf, 'economic_occupancy': 0,
            'potential_rent': 0, 'rental_income': 0}
    base.update(values)
    return base


def test_insight_under_collection_projects_delta():
    message = generate_insight(_metrics(cash_flow=200, economic_occupancy=60, potential_rent=2000, rental_income=1200))
    assert message.startswith("This property is cash-flowing.")
    assert "from 60% to 95%" in message
    assert "$700.00" in message


def test_insight_tenant_concentration():
    message = generate_insight(_metrics(cash_flow=900, dscr=2.1, economic_occupancy=100), tenant_count=1)
    assert "tenant concentration" in message


def test_insight_refinance_when_debt_eats_operating_profit():
    message = generate_insight(_metrics(cash_flow=-150, noi=850, dscr=0.7), tenant_count=2)
    assert "Consider refinancing" in message


def test_insight_low_dscr():
    message = generate_insight(_metrics(cash_flow=10, noi=1010, dscr=1.1), tenant_count=2)
    assert "below the typical lender threshold" in message


@pytest.mark.parametrize("values, tenant_count", [
    ({}, 0),
    ({'dscr': 2.0, 'cash_flow': 500}, 2),
    ({'dscr': 1.3, 'cash_flow': 50, 'economic_occupancy': 100}, 1),
    ({'dscr': -0.4, 'cash_flow': -200, 'noi': -100}, 1),
])
def test_insight_defaults_to_stable(values, tenant_count):
    assert generate_insight(_metrics(**values), tenant_count).startswith("Property financials appear stable")


@pytest.mark.parametrize("value, expected", [
    (1234.5, '$1,234.50'),
    (0, '$0.00'),
    (-75, '-$75.00'),
    (math.inf, '$0.00'),
    ('12', '$0.00'),
])
def test_format_currency(value, expected):
    assert format_currency(value) == expected


# --- Rent roll ---
@pytest.mark.parametrize("rent_due, amount_paid, expected", [
    (1000, 0, 'unpaid'),
    (1000, 400, 'partial'),
    (1000, 1000, 'paid'),
    (1000, 1200, 'overpaid'),
    (0, 0, 'paid'),
    (0, 50, 'overpaid'),
])
def test_payment_status(rent_due, amount_paid, expected):
    assert payment_status(rent_due, amount_paid) == expected


def test_rent_roll_one_row_per_unit():
    units = [
        {'id': 'u1', 'unit_number': '101', 'tenants': [tenant('t1', 1000)]},
        {'id': 'u2', 'unit_number': '102', 'tenants': [], 'financials': {'target_rent': 950}},
    ]
    prop = {'id': 'prop-1'}
    transactions = [
        tx(600, 'Income', cost_center='u1'),
        tx(-40, 'Income', cost_center='u1'),  # reversal does not count as paid
        tx(-100, 'Expense', cost_center='u1'),
    ]
    rows = generate_rent_roll(prop, units, JUNE, transactions)
    assert [r['unit_number'] for r in rows] == ['101', '102']
    first, second = rows
    assert first['tenant_id'] == 't1'
    assert first['tenant_name'] == 'Pat t1'
    assert first['rent_due'] == 1000
    assert first['rent_source'] == 'tenant_history'
    assert first['amount_paid'] == 600
    assert first['balance'] == 400
    assert first['status'] == 'partial'
    assert second['occupancy'] == 'Vacant'
    assert second['rent_due'] == 950
    assert second['rent_source'] == 'unit_scalar'
    assert second['status'] == 'unpaid'


def test_rent_roll_for_property_without_units():
    prop = {'id': 'prop-1', 'tenants': [tenant('t1', 1800)]}
    rows = generate_rent_roll(prop, [], JUNE, [tx(1800, 'Income')])
    assert len(rows) == 1
    assert rows[0]['unit_id'] is None
    assert rows[0]['month'] == '2024-06'
    assert rows[0]['status'] == 'paid'
