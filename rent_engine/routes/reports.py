from flask import Blueprint, request, jsonify, Response, current_app
from ..errors import StoreUnavailableError
from ..stores import PropertyStore, TransactionStore
from ..services.periods import parse_month_key, month_window, month_key
from ..services.occupancy import tenant_for_month, occupancy_status, occupancy_rate_for_month
from ..services.rent_resolution import resolve_rent_source
from ..services.performance import calculate_performance, scope_cost_centers
from ..services.insights import generate_insight
from ..services.rent_roll import generate_rent_roll
import csv
import io
import math

reports_bp = Blueprint('reports', __name__)


class _BadRequest(Exception):
    def __init__(self, message, status=400):
        super().__init__(message)
        self.message = message
        self.status = status


@reports_bp.errorhandler(_BadRequest)
def _bad_request(err):
    return jsonify({'error': err.message}), err.status


@reports_bp.errorhandler(StoreUnavailableError)
def _store_unavailable(err):
    current_app.logger.warning("report failed, store unavailable: %s", err)
    return jsonify({'error': 'Data store unavailable, try again later'}), 503


def _load_scope():
    """Reads property_id, month and optional unit_id from the query string."""
    property_id = request.args.get('property_id')
    month = request.args.get('month')
    if not all([property_id, month]):
        raise _BadRequest('property_id and month are required')
    target_date = parse_month_key(month)
    if target_date is None:
        raise _BadRequest('Invalid month format. Use YYYY-MM')
    prop = PropertyStore().get_property(property_id)
    if not prop:
        raise _BadRequest('Property not found', 404)
    unit = None
    unit_id = request.args.get('unit_id')
    if unit_id:
        unit = next((u for u in PropertyStore().list_units(property_id) if u['id'] == unit_id), None)
        if unit is None:
            raise _BadRequest('Unit not found', 404)
    return prop, unit, target_date


def _json_safe(metrics):
    """JSON has no infinity; an uncovered DSCR goes out as null next to its 'No Debt' label."""
    out = dict(metrics)
    if not math.isfinite(out.get('dscr', 0)):
        out['dscr'] = None
    return out


@reports_bp.route('/reports/rent-due', methods=['GET'])
def get_rent_due():
    prop, unit, target_date = _load_scope()
    tenants = unit['tenants'] if unit else prop.get('tenants')
    tenant = tenant_for_month(tenants, target_date)
    rent_due, source = resolve_rent_source(tenant, prop, unit, target_date)
    return jsonify({
        'property_id': prop['id'],
        'unit_id': unit['id'] if unit else None,
        'month': month_key(target_date),
        'tenant_id': tenant.get('id') if tenant else None,
        'occupancy': occupancy_status(tenant),
        'rent_due': rent_due,
        'rent_source': source,
    }), 200


@reports_bp.route('/reports/performance', methods=['GET'])
def get_performance():
    prop, unit, target_date = _load_scope()
    units = None if unit else PropertyStore().list_units(prop['id'])
    transactions = TransactionStore().list_transactions(
        cost_center=scope_cost_centers(prop, unit, units),
        date_range=month_window(target_date),
    )
    metrics = calculate_performance(
        prop, target_date, transactions, unit=unit, units=units,
        amortization=current_app.config.get('AMORTIZATION_CALCULATOR'),
        amortization_timeout=current_app.config.get('AMORTIZATION_TIMEOUT_SECONDS'),
    )
    if unit:
        tenant_count = len(unit.get('tenants') or [])
    elif units:
        tenant_count = sum(len(u.get('tenants') or []) for u in units)
    else:
        tenant_count = len(prop.get('tenants') or [])
    result = _json_safe(metrics)
    result['insight'] = generate_insight(metrics, tenant_count)
    return jsonify(result), 200


@reports_bp.route('/reports/rent-roll', methods=['GET'])
def get_rent_roll():
    prop, _, target_date = _load_scope()
    units = PropertyStore().list_units(prop['id'])
    transactions = TransactionStore().list_transactions(
        cost_center=scope_cost_centers(prop, None, units),
        date_range=month_window(target_date),
    )
    rent_roll_data = generate_rent_roll(prop, units, target_date, transactions)
    fmt = request.args.get('format')
    if fmt == 'csv':
        output = io.StringIO()
        writer = None
        for row in rent_roll_data:
            if writer is None:
                writer = csv.DictWriter(output, fieldnames=list(row.keys()))
                writer.writeheader()
            writer.writerow(row)
        csv_data = output.getvalue()
        output.close()
        headers = {
            'Content-Type': 'text/csv',
            'Content-Disposition': f'attachment; filename="rent_roll_{prop["id"]}_{month_key(target_date)}.csv"'
        }
        return Response(csv_data, headers=headers)
    return jsonify(rent_roll_data), 200


# Share of units with a tenant for the month
@reports_bp.route('/reports/kpi-occupancy', methods=['GET'])
def get_kpi_occupancy():
    prop, _, target_date = _load_scope()
    units = PropertyStore().list_units(prop['id'])
    if not units:
        # A property without units is its own single rentable space.
        units = [{'id': prop['id'], 'tenants': prop.get('tenants')}]
    return jsonify(occupancy_rate_for_month(units, target_date)), 200
