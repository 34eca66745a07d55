from farmbook.errors import is_unique_violation
from farmbook.models import Expense, User, db


def add_failing_routes(app):
    @app.route('/_duplicate-user', methods=['POST'])
    def duplicate_user():
        db.session.add(User(username='farmer', email='farmer@example.com', password_hash='x'))
        db.session.commit()

    @app.route('/_orphan-expense', methods=['POST'])
    def orphan_expense():
        db.session.add(Expense(user_id=None, category='Seeds', amount=1))
        db.session.commit()


def test_unique_violation_is_a_duplicate_field_error(app, client, user):
    add_failing_routes(app)
    res = client.post('/_duplicate-user')
    assert res.status_code == 400
    assert res.get_json()['message'] == 'Duplicate Field Value'


def test_other_integrity_errors_are_server_errors(app, client, user):
    add_failing_routes(app)
    res = client.post('/_orphan-expense')
    assert res.status_code == 500
    assert res.get_json() == {'success': False, 'message': 'Internal Server Error'}


class FakeDriverError(Exception):
    def __init__(self, message, pgcode=None):
        super().__init__(message)
        self.pgcode = pgcode


class FakeIntegrityError(Exception):
    def __init__(self, orig):
        super().__init__(str(orig))
        self.orig = orig


def test_is_unique_violation():
    assert is_unique_violation(FakeIntegrityError(FakeDriverError('UNIQUE constraint failed: users.email')))
    assert is_unique_violation(FakeIntegrityError(FakeDriverError('boom', pgcode='23505')))
    assert is_unique_violation(FakeIntegrityError(FakeDriverError("Duplicate entry 'a' for key 'email'")))
    assert not is_unique_violation(FakeIntegrityError(FakeDriverError('FOREIGN KEY constraint failed')))
    assert not is_unique_violation(FakeIntegrityError(FakeDriverError('NOT NULL constraint failed: expenses.user_id')))
