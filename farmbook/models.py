from datetime import date, datetime, timezone

from flask_sqlalchemy import SQLAlchemy
from sqlalchemy.orm import declared_attr

db = SQLAlchemy()


def default_location():
    return {'village': '', 'district': '', 'state': ''}


def default_preferences():
    return {
        'currency': 'INR',
        'theme': 'system',
        'language': 'en',
        'dateFormat': 'MM/DD/YYYY',
        'notifications': {'email': True, 'app': True},
    }


def default_farm_details():
    return {
        'name': '',
        'location': '',
        'size': {'value': None, 'unit': 'acres'},
        'primaryCrops': [],
        'farmingType': 'Conventional',
        'farmType': [],
    }


def utcnow():
    """Current UTC time as a naive datetime, matching the DateTime columns."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def _iso(value):
    return value.isoformat() if value else None


class TimestampMixin:
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)


class User(TimestampMixin, db.Model):
    __tablename__ = 'users'

    id = db.Column(db.Integer, primary_key=True)
    username = db.Column(db.String(30), unique=True, nullable=False, index=True)
    email = db.Column(db.String(255), unique=True, nullable=False, index=True)
    password_hash = db.Column(db.String(255), nullable=False)
    role = db.Column(db.String(10), nullable=False, default='user')
    is_active = db.Column(db.Boolean, nullable=False, default=True)
    last_login = db.Column(db.DateTime, nullable=True)
    profile_picture = db.Column(db.String(500), nullable=False, default='')
    phone_number = db.Column(db.String(30), nullable=False, default='')
    location = db.Column(db.JSON, nullable=False, default=default_location)
    preferences = db.Column(db.JSON, nullable=False, default=default_preferences)
    farm_details = db.Column(db.JSON, nullable=False, default=default_farm_details)

    expenses = db.relationship('Expense', backref='user', lazy=True)
    incomes = db.relationship('Income', backref='user', lazy=True)
    feedback = db.relationship('Feedback', backref='user', lazy=True)

    @property
    def is_admin(self):
        return self.role == 'admin'

    def owner_summary(self):
        return {'id': self.id, 'username': self.username, 'email': self.email}


class TransactionMixin(TimestampMixin):
    """Columns and store queries shared by incomes and expenses.

    Subclasses name the column that carries their monetary value in
    ``amount_field``; aggregation queries sum it through ``amount_column()``.
    """

    amount_field = 'amount'

    id = db.Column(db.Integer, primary_key=True)
    date = db.Column(db.Date, nullable=False, default=date.today, index=True)
    note = db.Column(db.String(500), nullable=True)
    payment_method = db.Column(db.String(10), nullable=False, default='cash')
    tags = db.Column(db.JSON, nullable=False, default=list)

    @declared_attr
    def user_id(cls):
        return db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False, index=True)

    @classmethod
    def amount_column(cls):
        return getattr(cls, cls.amount_field)

    @classmethod
    def find_by_owner_and_date_range(cls, owner_id, start, end):
        return (cls.query
                .filter(cls.user_id == owner_id, cls.date >= start, cls.date <= end)
                .order_by(cls.date.desc(), cls.id.desc())
                .all())

    @classmethod
    def find_in_year(cls, year, owner_id=None):
        q = cls.query.filter(cls.date >= date(year, 1, 1), cls.date <= date(year, 12, 31))
        if owner_id is not None:
            q = q.filter(cls.user_id == owner_id)
        return q.order_by(cls.date.desc(), cls.id.desc()).all()

    @classmethod
    def delete_all_by_owner(cls, owner_id):
        count = cls.query.filter(cls.user_id == owner_id).delete(synchronize_session=False)
        db.session.commit()
        return count

    def _base_dict(self):
        return {
            'id': self.id,
            'user': self.user_id,
            'date': _iso(self.date),
            'note': self.note,
            'paymentMethod': self.payment_method,
            'tags': list(self.tags or []),
            'createdAt': _iso(self.created_at),
            'updatedAt': _iso(self.updated_at),
        }


class Expense(TransactionMixin, db.Model):
    __tablename__ = 'expenses'

    category = db.Column(db.String(50), nullable=False, index=True)
    amount = db.Column(db.Float, nullable=False)
    is_recurring = db.Column(db.Boolean, nullable=False, default=False)
    receipt_image = db.Column(db.String(500), nullable=False, default='')
    status = db.Column(db.String(10), nullable=False, default='completed')

    def to_dict(self, with_owner=False):
        data = self._base_dict()
        data.update({
            'category': self.category,
            'amount': self.amount,
            'isRecurring': self.is_recurring,
            'receiptImage': self.receipt_image,
            'status': self.status,
        })
        if with_owner and self.user is not None:
            data['user'] = self.user.owner_summary()
        return data


class Income(TransactionMixin, db.Model):
    __tablename__ = 'incomes'
    amount_field = 'total_amount'

    product = db.Column(db.String(50), nullable=False, index=True)
    quantity = db.Column(db.Float, nullable=False)
    rate_per_unit = db.Column(db.Float, nullable=False)
    total_amount = db.Column(db.Float, nullable=False, default=0.0)
    is_manual_total = db.Column(db.Boolean, nullable=False, default=False)
    commission_amount = db.Column(db.Float, nullable=False, default=0.0)
    buyer = db.Column(db.String(100), nullable=True)
    is_regular_income = db.Column(db.Boolean, nullable=False, default=False)
    invoice_number = db.Column(db.String(100), nullable=True)
    season = db.Column(db.String(10), nullable=False, default='other')
    status = db.Column(db.String(10), nullable=False, default='received')

    def to_dict(self, with_owner=False):
        data = self._base_dict()
        data.update({
            'product': self.product,
            'quantity': self.quantity,
            'ratePerUnit': self.rate_per_unit,
            'totalAmount': self.total_amount,
            'isManualTotal': self.is_manual_total,
            'commissionAmount': self.commission_amount,
            'buyer': self.buyer,
            'isRegularIncome': self.is_regular_income,
            'invoiceNumber': self.invoice_number,
            'season': self.season,
            'status': self.status,
        })
        if with_owner and self.user is not None:
            data['user'] = self.user.owner_summary()
        return data


class Feedback(TimestampMixin, db.Model):
    __tablename__ = 'feedback'

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False, index=True)
    message = db.Column(db.String(500), nullable=False)
    category = db.Column(db.String(30), nullable=False, default='General Feedback', index=True)
    status = db.Column(db.String(20), nullable=False, default='New', index=True)
    response = db.Column(db.String(1000), nullable=False, default='')
    is_resolved = db.Column(db.Boolean, nullable=False, default=False, index=True)

    def to_dict(self, with_owner=False):
        return {
            'id': self.id,
            'user': self.user.owner_summary() if with_owner and self.user is not None else self.user_id,
            'message': self.message,
            'category': self.category,
            'status': self.status,
            'response': self.response,
            'isResolved': self.is_resolved,
            'createdAt': _iso(self.created_at),
            'updatedAt': _iso(self.updated_at),
        }


class Setting(TimestampMixin, db.Model):
    __tablename__ = 'settings'

    id = db.Column(db.Integer, primary_key=True)
    key = db.Column(db.String(100), unique=True, nullable=False, index=True)
    value = db.Column(db.JSON, nullable=True)
    category = db.Column(db.String(20), nullable=False, default='system')
    description = db.Column(db.String(255), nullable=True)
    is_public = db.Column(db.Boolean, nullable=False, default=False)
    last_updated_by = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=True)

    @classmethod
    def set_setting(cls, key, value, user_id=None):
        """Upsert ``key`` with ``value``; the caller commits."""
        setting = cls.query.filter_by(key=key).first()
        if setting is None:
            setting = cls(key=key)
            db.session.add(setting)
        setting.value = value
        setting.last_updated_by = user_id
        return setting

    def to_dict(self):
        return {
            'key': self.key,
            'category': self.category,
            'value': self.value,
            'description': self.description,
            'isPublic': self.is_public,
            'updatedAt': _iso(self.updated_at),
        }


DEFAULT_SETTINGS = [
    {'key': 'siteTitle', 'value': 'Farm Finance', 'category': 'system',
     'description': 'Website title', 'is_public': True},
    {'key': 'defaultCurrency', 'value': 'USD', 'category': 'finance',
     'description': 'Default currency for new users', 'is_public': True},
    {'key': 'defaultLanguage', 'value': 'en', 'category': 'system',
     'description': 'Default language', 'is_public': True},
    {'key': 'enableUserRegistration', 'value': True, 'category': 'system',
     'description': 'Allow new user registrations', 'is_public': False},
    {'key': 'enableEmailNotifications', 'value': True, 'category': 'notification',
     'description': 'Enable system email notifications', 'is_public': False},
    {'key': 'dataRetentionDays', 'value': 365, 'category': 'system',
     'description': 'Number of days to retain user data', 'is_public': False},
    {'key': 'maintenanceMode', 'value': False, 'category': 'system',
     'description': 'Enable maintenance mode', 'is_public': True},
]


def initialize_default_settings():
    """Insert any default setting that is missing. Returns the keys created."""
    created = []
    for default in DEFAULT_SETTINGS:
        if Setting.query.filter_by(key=default['key']).first() is None:
            db.session.add(Setting(**default))
            created.append(default['key'])
    if created:
        db.session.commit()
    return created
