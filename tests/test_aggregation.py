from datetime import date

import pytest

from farmbook.models import Expense, Income
from farmbook.reports import aggregation, presenter


@pytest.fixture
def march_2024(user, add_record):
    user_id, _ = user
    add_record(Income, user_id=user_id, product='Wheat', quantity=10, rate_per_unit=50,
               date=date(2024, 3, 5))
    add_record(Income, user_id=user_id, product='Rice', quantity=5, rate_per_unit=80,
               total_amount=300, date=date(2024, 3, 12))
    add_record(Expense, user_id=user_id, category='Seeds', amount=200, date=date(2024, 3, 8))
    return user_id


def test_resolve_year():
    today = date(2025, 6, 1)
    assert aggregation.resolve_year('2023', today) == 2023
    assert aggregation.resolve_year(None, today) == 2025
    assert aggregation.resolve_year('abc', today) == 2025


def test_previous_month_bounds():
    assert aggregation.previous_month_bounds(date(2024, 7, 15)) == (date(2024, 6, 1), date(2024, 6, 30))
    assert aggregation.previous_month_bounds(date(2024, 1, 3)) == (date(2023, 12, 1), date(2023, 12, 31))


def test_march_scenario(app, march_2024):
    with app.app_context():
        months = aggregation.monthly_totals(2024, march_2024)
        march = months[2]
        assert march['monthName'] == 'March'
        assert march['income'] == 800
        assert march['incomeCount'] == 2
        assert march['expenses'] == 200
        assert march['profit'] == 600

        rice = Income.query.filter_by(product='Rice').one()
        assert rice.is_manual_total is True
        assert rice.commission_amount == 100


def test_monthly_results_always_have_twelve_months(app, user):
    user_id, _ = user
    with app.app_context():
        income = aggregation.monthly_income_stats(user_id, 2024)
        totals = aggregation.monthly_totals(2024, user_id)
        chart = presenter.dashboard_monthly(user_id, 2024)
    for series in (income, totals, chart):
        assert [m['month'] for m in series] == list(range(1, 13))
    assert all(m['total'] == 0 and m['count'] == 0 for m in income)
    assert all(m['profit'] == m['income'] - m['expenses'] for m in totals + chart)


def test_monthly_sums_match_year_totals(app, user, add_record):
    user_id, _ = user
    for month, qty in ((1, 3), (4, 7), (4, 2), (11, 5)):
        add_record(Income, user_id=user_id, product='Milk', quantity=qty, rate_per_unit=40,
                   date=date(2024, month, 10))
        add_record(Expense, user_id=user_id, category='Feed', amount=qty * 15, date=date(2024, month, 11))
    add_record(Income, user_id=user_id, product='Milk', quantity=1, rate_per_unit=40, date=date(2023, 12, 31))

    with app.app_context():
        months = aggregation.monthly_totals(2024, user_id)
        year_income = sum(i.total_amount for i in Income.find_in_year(2024, user_id))
        year_expense = sum(e.amount for e in Expense.find_in_year(2024, user_id))

    assert sum(m['income'] for m in months) == pytest.approx(year_income) == 680
    assert sum(m['expenses'] for m in months) == pytest.approx(year_expense) == 255
    assert months[3]['incomeCount'] == 2


def test_chart_expenses_match_database_grouping(app, march_2024, add_record):
    add_record(Expense, user_id=march_2024, category='Fuel', amount=55.5, date=date(2024, 9, 2))
    with app.app_context():
        chart = presenter.dashboard_monthly(march_2024, 2024)
        totals = aggregation.monthly_totals(2024, march_2024)
    assert [m['expenses'] for m in chart] == [m['expenses'] for m in totals]
    assert [m['income'] for m in chart] == [m['income'] for m in totals]


def test_expenses_by_month_empty():
    assert aggregation.expenses_by_month([]) == {}


def test_admin_totals_span_all_users(app, march_2024, make_user, add_record):
    other_id, _ = make_user('neighbour')
    add_record(Expense, user_id=other_id, category='Tools', amount=50, date=date(2024, 3, 20))
    with app.app_context():
        march = aggregation.monthly_totals(2024)[2]
    assert march['expenses'] == 250
    assert march['expensesCount'] == 2


def test_category_and_product_totals_sorted_descending(app, march_2024, add_record):
    add_record(Expense, user_id=march_2024, category='Fuel', amount=500, date=date(2024, 4, 1))
    with app.app_context():
        categories = aggregation.category_totals(march_2024)
        products = aggregation.product_totals(march_2024)
    assert [c['category'] for c in categories] == ['Fuel', 'Seeds']
    assert [p['product'] for p in products] == ['Wheat', 'Rice']
    assert products[0] == {'product': 'Wheat', 'total': 500.0, 'quantity': 10.0, 'count': 1}


def test_group_by_month_key_descending_with_transaction_limit(app, user, add_record):
    user_id, _ = user
    for day in range(1, 8):
        add_record(Expense, user_id=user_id, category='Feed', amount=10, date=date(2024, 5, day))
    add_record(Income, user_id=user_id, product='Eggs', quantity=2, rate_per_unit=5, date=date(2024, 2, 1))
    with app.app_context():
        months = presenter.monthly_financial(user_id)

    assert [m['month'] for m in months] == ['2024-05', '2024-02']
    may = months[0]
    assert may['totalExpenses'] == 70
    assert may['netProfit'] == -70
    assert len(may['transactions']) == 5
    assert may['transactions'][0]['date'] == '2024-05-07'
    assert may['transactions'][0]['type'] == 'Expense'
    assert months[1]['transactions'][0]['type'] == 'Income'


def test_financial_summary_last_month_is_previous_calendar_month(app, user, add_record):
    user_id, _ = user
    add_record(Income, user_id=user_id, product='Corn', quantity=1, rate_per_unit=100, date=date(2024, 6, 1))
    add_record(Expense, user_id=user_id, category='Seeds', amount=40, date=date(2024, 6, 30))
    add_record(Income, user_id=user_id, product='Corn', quantity=1, rate_per_unit=70, date=date(2024, 7, 2))
    add_record(Expense, user_id=user_id, category='Seeds', amount=15, date=date(2024, 5, 31))

    with app.app_context():
        summary = presenter.financial_summary(user_id, today=date(2024, 7, 15))

    assert summary['lastMonth'] == {'totalIncome': 100, 'totalExpense': 40, 'netAmount': 60}
    assert summary['totalIncome'] == 170
    assert summary['totalExpense'] == 55
    assert summary['netAmount'] == 115
    activity = summary['recentActivity']
    assert len(activity) == 4
    assert [a['date'] for a in activity] == ['2024-07-02', '2024-06-30', '2024-06-01', '2024-05-31']
    assert activity[0]['type'] == 'income'


def test_summaries_are_repeatable(app, march_2024):
    with app.app_context():
        first = presenter.dashboard_stats(march_2024, today=date(2024, 3, 5))
        second = presenter.dashboard_stats(march_2024, today=date(2024, 3, 5))
    assert first == second
    assert len(first['today']['income']) == 1
    assert first['totals'] == {'expenses': 1, 'income': 2}
