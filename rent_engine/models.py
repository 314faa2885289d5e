# rent_engine/models.py
from . import db


class Property(db.Model):
    id = db.Column(db.String(64), primary_key=True)
    name = db.Column(db.String(100), nullable=False)
    property_type = db.Column(db.String(30), nullable=False, default='single-family')
    # Raw values as entered; the services normalize them.
    target_rent = db.Column(db.String(32), nullable=True)
    financials = db.Column(db.JSON, nullable=True)
    mortgage = db.Column(db.JSON, nullable=True)

    units = db.relationship('Unit', back_populates='property', lazy='dynamic')
    tenants = db.relationship('Tenant', back_populates='property', lazy='dynamic')

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'property_type': self.property_type,
            'target_rent': self.target_rent,
            'financials': self.financials or {},
            'mortgage': self.mortgage or {},
            'tenants': [t.to_dict() for t in self.tenants.order_by(Tenant.id)],
        }


class Unit(db.Model):
    id = db.Column(db.String(64), primary_key=True)
    property_id = db.Column(db.String(64), db.ForeignKey('property.id'), nullable=False)
    unit_number = db.Column(db.String(50), nullable=False)
    target_rent = db.Column(db.String(32), nullable=True)
    financials = db.Column(db.JSON, nullable=True)

    property = db.relationship('Property', back_populates='units')
    tenants = db.relationship('Tenant', back_populates='unit', lazy='dynamic')

    def to_dict(self):
        return {
            'id': self.id,
            'property_id': self.property_id,
            'unit_number': self.unit_number,
            'target_rent': self.target_rent,
            'financials': self.financials or {},
            'tenants': [t.to_dict() for t in self.tenants.order_by(Tenant.id)],
        }


class Tenant(db.Model):
    """
    A lease holder attached either directly to a property (single-family, condo)
    or to one of its units (multi-family, commercial).
    """
    id = db.Column(db.String(64), primary_key=True)
    property_id = db.Column(db.String(64), db.ForeignKey('property.id'), nullable=True)
    unit_id = db.Column(db.String(64), db.ForeignKey('unit.id'), nullable=True)
    first_name = db.Column(db.String(100), nullable=True)
    last_name = db.Column(db.String(100), nullable=True)
    email = db.Column(db.String(120), nullable=True)
    status = db.Column(db.String(20), nullable=True)

    # Lease bounds are stored as entered (ISO, US-style, ...), inclusive at both ends.
    lease_start = db.Column(db.String(40), nullable=True)
    lease_end = db.Column(db.String(40), nullable=True)
    # [{'amount': ..., 'effective_date': ...}, ...] in any order
    rent_history = db.Column(db.JSON, nullable=True)

    # Pre-history records kept their rent in one of these.
    rent_amount = db.Column(db.String(32), nullable=True)
    rent = db.Column(db.String(32), nullable=True)
    monthly_rent = db.Column(db.String(32), nullable=True)

    property = db.relationship('Property', back_populates='tenants')
    unit = db.relationship('Unit', back_populates='tenants')

    def to_dict(self):
        return {
            'id': self.id,
            'property_id': self.property_id,
            'unit_id': self.unit_id,
            'first_name': self.first_name,
            'last_name': self.last_name,
            'email': self.email,
            'status': self.status,
            'lease_start': self.lease_start,
            'lease_end': self.lease_end,
            'rent_history': list(self.rent_history or []),
            'rent_amount': self.rent_amount,
            'rent': self.rent,
            'monthly_rent': self.monthly_rent,
        }


class Transaction(db.Model):
    __tablename__ = 'ledger_transaction'

    id = db.Column(db.Integer, primary_key=True)
    date = db.Column(db.Date, nullable=False, index=True)
    amount = db.Column(db.Float, nullable=False, default=0)
    description = db.Column(db.String(255), nullable=True)
    # Top level is the accounting class; free text in older imports.
    category_l0 = db.Column(db.String(60), nullable=True)
    category_l1 = db.Column(db.String(60), nullable=True)
    category_l2 = db.Column(db.String(60), nullable=True)
    category_l3 = db.Column(db.String(60), nullable=True)
    primary_category = db.Column(db.String(60), nullable=True)
    # Property id or unit id
    cost_center = db.Column(db.String(64), nullable=True, index=True)
    bank_account_id = db.Column(db.String(64), nullable=True)

    def to_dict(self):
        return {
            'id': self.id,
            'date': self.date.isoformat() if self.date else None,
            'amount': self.amount,
            'description': self.description,
            'category_hierarchy': {
                'l0': self.category_l0,
                'l1': self.category_l1,
                'l2': self.category_l2,
                'l3': self.category_l3,
            },
            'primary_category': self.primary_category,
            'cost_center': self.cost_center,
            'bank_account_id': self.bank_account_id,
        }
