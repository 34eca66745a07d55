import pytest

from farmbook import create_app
from farmbook.auth import create_access_token, hash_password
from farmbook.models import User, db
from farmbook.rules import apply_income_totals


@pytest.fixture
def app():
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite://',
        'SECRET_KEY': 'test-secret',
        'JWT_SECRET': 'test-secret',
    })
    yield app
    with app.app_context():
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def make_user(app):
    """Create a user and return ``(user_id, auth_headers)``."""
    def _make(username='farmer', email=None, password='secret123', role='user', is_active=True):
        with app.app_context():
            user = User(
                username=username,
                email=email or f'{username}@example.com',
                password_hash=hash_password(password),
                role=role,
                is_active=is_active,
            )
            db.session.add(user)
            db.session.commit()
            return user.id, {'Authorization': f'Bearer {create_access_token(user.id)}'}
    return _make


@pytest.fixture
def user(make_user):
    return make_user()


@pytest.fixture
def admin(make_user):
    return make_user(username='admin', role='admin')


@pytest.fixture
def add_record(app):
    """Insert an Expense or Income row directly and return its id."""
    def _add(model, **fields):
        with app.app_context():
            record = model(**fields)
            if hasattr(record, 'rate_per_unit'):
                apply_income_totals(record, set(fields))
            db.session.add(record)
            db.session.commit()
            return record.id
    return _add
