from datetime import date

from farmbook.models import Expense, Feedback, Income, User, db


def test_admin_routes_require_admin(client, user):
    _, headers = user
    res = client.get('/api/admin/stats', headers=headers)
    assert res.status_code == 403
    assert res.get_json()['message'] == 'Access denied. Admin privileges required.'


def test_system_stats(client, admin, user, add_record):
    _, admin_headers = admin
    user_id, _ = user
    add_record(Income, user_id=user_id, product='Wheat', quantity=10, rate_per_unit=50, date=date.today())
    add_record(Expense, user_id=user_id, category='Seeds', amount=200, date=date.today())

    stats = client.get('/api/admin/stats', headers=admin_headers).get_json()['stats']
    assert stats['users']['total'] == 2
    assert stats['users']['newThisWeek'] == 2
    assert stats['finances']['netBalance'] == 300
    assert stats['finances']['expensesThisWeek'] == 1


def test_monthly_stats_are_ascending(client, admin, user, make_user, add_record):
    _, admin_headers = admin
    user_id, _ = user
    other_id, _ = make_user('neighbour')
    add_record(Income, user_id=user_id, product='Wheat', quantity=10, rate_per_unit=50, date=date(2024, 3, 5))
    add_record(Income, user_id=other_id, product='Rice', quantity=1, rate_per_unit=70, date=date(2024, 8, 1))

    body = client.get('/api/admin/stats/monthly?year=2024', headers=admin_headers).get_json()
    months = body['monthlyData']
    assert [m['month'] for m in months] == list(range(1, 13))
    assert months[2]['income'] == 500
    assert months[7]['income'] == 70


def test_delete_user_cascades(app, client, admin, user, add_record):
    _, admin_headers = admin
    user_id, headers = user
    add_record(Income, user_id=user_id, product='Wheat', quantity=1, rate_per_unit=10, date=date(2024, 1, 1))
    add_record(Expense, user_id=user_id, category='Seeds', amount=5, date=date(2024, 1, 2))
    client.post('/api/feedback', headers=headers, json={'message': 'hello'})

    res = client.delete(f'/api/admin/users/{user_id}', headers=admin_headers)
    assert res.status_code == 200

    with app.app_context():
        assert db.session.get(User, user_id) is None
        assert Income.query.filter_by(user_id=user_id).count() == 0
        assert Expense.query.filter_by(user_id=user_id).count() == 0
        assert Feedback.query.filter_by(user_id=user_id).count() == 0
    assert client.get('/api/auth/me', headers=headers).status_code == 401


def test_admin_cannot_delete_self(client, admin):
    admin_id, admin_headers = admin
    assert client.delete(f'/api/admin/users/{admin_id}', headers=admin_headers).status_code == 400
    assert client.delete('/api/admin/users/9999', headers=admin_headers).status_code == 404


def test_get_and_update_user(client, admin, user, add_record):
    _, admin_headers = admin
    user_id, headers = user
    add_record(Expense, user_id=user_id, category='Seeds', amount=40, date=date(2024, 1, 2))

    data = client.get(f'/api/admin/users/{user_id}', headers=admin_headers).get_json()['data']
    assert data['user']['id'] == user_id
    assert data['finances']['totalExpenses'] == 40
    assert data['finances']['expensesCount'] == 1

    res = client.put(f'/api/admin/users/{user_id}', headers=admin_headers,
                     json={'isActive': False, 'password': 'ignored'})
    assert res.get_json()['data']['isActive'] is False
    assert client.get('/api/auth/me', headers=headers).status_code == 401

    listing = client.get('/api/admin/users?search=farm', headers=admin_headers).get_json()
    assert listing['total'] == 1


def test_records_listing_includes_owner(client, admin, user, add_record):
    _, admin_headers = admin
    user_id, _ = user
    expense_id = add_record(Expense, user_id=user_id, category='Seeds', amount=5, date=date(2024, 1, 2))
    add_record(Income, user_id=user_id, product='Wheat', quantity=1, rate_per_unit=10, date=date(2024, 1, 1))

    expenses = client.get('/api/admin/expenses', headers=admin_headers).get_json()['data']
    assert expenses[0]['user']['username'] == 'farmer'
    income = client.get(f'/api/admin/income?userId={user_id}', headers=admin_headers).get_json()['data']
    assert income[0]['user']['id'] == user_id

    assert client.delete(f'/api/admin/expenses/{expense_id}', headers=admin_headers).status_code == 200
    assert client.get('/api/admin/expenses', headers=admin_headers).get_json()['total'] == 0


def test_settings(client, admin):
    _, admin_headers = admin
    grouped = client.get('/api/admin/settings', headers=admin_headers).get_json()['data']
    assert {s['key'] for s in grouped['finance']} == {'defaultCurrency'}

    res = client.put('/api/admin/settings', headers=admin_headers, json={'settings': [
        {'key': 'defaultCurrency', 'value': 'INR'},
        {'key': 'harvestReminder', 'value': 7, 'category': 'notification', 'isPublic': True},
    ]})
    assert res.status_code == 200

    public = client.get('/api/settings/public').get_json()['data']
    assert public['defaultCurrency'] == 'INR'
    assert public['harvestReminder'] == 7


def test_feedback_moderation(client, admin, user):
    _, admin_headers = admin
    _, headers = user
    feedback_id = client.post('/api/feedback', headers=headers,
                              json={'message': 'Charts are slow', 'category': 'Bug Report'}).get_json()['data']['id']

    res = client.put(f'/api/admin/feedback/{feedback_id}', headers=admin_headers,
                     json={'status': 'Resolved', 'response': 'Fixed in the latest release'})
    data = res.get_json()['data']
    assert data['isResolved'] is True
    assert data['response'] == 'Fixed in the latest release'
    assert data['user']['username'] == 'farmer'

    stats = client.get('/api/admin/feedback/stats', headers=admin_headers).get_json()['data']
    assert stats['total'] == 1
    assert stats['byStatus'] == {'Resolved': 1}
    assert stats['byCategory'] == {'Bug Report': 1}

    listing = client.get('/api/admin/feedback?status=New', headers=admin_headers).get_json()
    assert listing['total'] == 0

    assert client.delete(f'/api/admin/feedback/{feedback_id}', headers=admin_headers).status_code == 200
    assert client.get(f'/api/admin/feedback/{feedback_id}', headers=admin_headers).status_code == 404
