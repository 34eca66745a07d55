from datetime import date

import pandas as pd
from sqlalchemy import extract, func

from ..models import Expense, Income, db

MONTH_NAMES = (
    'January', 'February', 'March', 'April', 'May', 'June',
    'July', 'August', 'September', 'October', 'November', 'December',
)
RECENT_LIMIT = 5


def month_name(month):
    return MONTH_NAMES[month - 1]


def resolve_year(raw, today=None):
    """Year from a query-string value; anything missing or invalid means this year."""
    today = today or date.today()
    try:
        year = int(raw)
    except (TypeError, ValueError):
        return today.year
    if year < 1 or year > 9999:
        return today.year
    return year


def year_bounds(year):
    return date(year, 1, 1), date(year, 12, 31)


def previous_month_bounds(today):
    first_of_this_month = today.replace(day=1)
    last_of_previous = date.fromordinal(first_of_this_month.toordinal() - 1)
    return last_of_previous.replace(day=1), last_of_previous


def _scoped(query, model, user_id=None, start=None, end=None):
    if user_id is not None:
        query = query.filter(model.user_id == user_id)
    if start is not None:
        query = query.filter(model.date >= start)
    if end is not None:
        query = query.filter(model.date <= end)
    return query


def _sum(model, user_id=None, start=None, end=None):
    q = db.session.query(func.coalesce(func.sum(model.amount_column()), 0.0))
    return float(_scoped(q, model, user_id, start, end).scalar() or 0)


def totals(user_id=None, start=None, end=None):
    """Return ``(income, expense)`` sums for the owner (or everyone) in a date range."""
    return _sum(Income, user_id, start, end), _sum(Expense, user_id, start, end)


def _monthly_rows(model, year, user_id=None):
    start, end = year_bounds(year)
    month = extract('month', model.date)
    q = db.session.query(
        month.label('m'),
        func.sum(model.amount_column()).label('total'),
        func.count(model.id).label('count'),
    )
    rows = _scoped(q, model, user_id, start, end).group_by(month).all()
    return {int(r.m): (float(r.total or 0), int(r.count)) for r in rows}


def monthly_income_stats(user_id, year):
    """Income per calendar month of ``year``, zero-filled to twelve entries."""
    rows = _monthly_rows(Income, year, user_id)
    stats = []
    for m in range(1, 13):
        total, count = rows.get(m, (0.0, 0))
        stats.append({'month': m, 'monthName': month_name(m), 'total': total, 'count': count})
    return stats


def monthly_totals(year, user_id=None):
    """Twelve ascending month entries of income against expenses.

    Without ``user_id`` every owner's records are included.
    """
    income = _monthly_rows(Income, year, user_id)
    expenses = _monthly_rows(Expense, year, user_id)
    data = []
    for m in range(1, 13):
        inc_total, inc_count = income.get(m, (0.0, 0))
        exp_total, exp_count = expenses.get(m, (0.0, 0))
        data.append({
            'month': m,
            'monthName': month_name(m),
            'income': inc_total,
            'incomeCount': inc_count,
            'expenses': exp_total,
            'expensesCount': exp_count,
            'profit': inc_total - exp_total,
        })
    return data


def expenses_by_month(expenses):
    """Sum expense rows per calendar month in application code."""
    if not expenses:
        return {}
    df = pd.DataFrame([{'date': e.date, 'amount': e.amount} for e in expenses])
    df['date'] = pd.to_datetime(df['date'])
    grouped = df.groupby(df['date'].dt.month)['amount'].sum()
    return {int(m): float(v) for m, v in grouped.items()}


def category_totals(user_id):
    rows = (db.session.query(
                Expense.category,
                func.sum(Expense.amount).label('total'),
                func.count(Expense.id).label('count'))
            .filter(Expense.user_id == user_id)
            .group_by(Expense.category)
            .order_by(func.sum(Expense.amount).desc())
            .all())
    return [{'category': r.category, 'total': float(r.total or 0), 'count': int(r.count)} for r in rows]


def product_totals(user_id):
    rows = (db.session.query(
                Income.product,
                func.sum(Income.total_amount).label('total'),
                func.sum(Income.quantity).label('quantity'),
                func.count(Income.id).label('count'))
            .filter(Income.user_id == user_id)
            .group_by(Income.product)
            .order_by(func.sum(Income.total_amount).desc())
            .all())
    return [{
        'product': r.product,
        'total': float(r.total or 0),
        'quantity': float(r.quantity or 0),
        'count': int(r.count),
    } for r in rows]


def _month_bucket(buckets, when):
    key = f'{when.year:04d}-{when.month:02d}'
    if key not in buckets:
        buckets[key] = {
            'month': key,
            'monthName': month_name(when.month),
            'year': when.year,
            'totalIncome': 0.0,
            'totalExpenses': 0.0,
            'netProfit': 0.0,
            'transactions': [],
        }
    return buckets[key]


def group_by_month_key(incomes, expenses, limit=RECENT_LIMIT):
    """Per ``YYYY-MM`` aggregates, most recent month first.

    Each month keeps at most ``limit`` of its newest transactions.
    """
    buckets = {}
    for income in incomes:
        bucket = _month_bucket(buckets, income.date)
        bucket['totalIncome'] += income.total_amount
        bucket['transactions'].append({
            'date': income.date,
            'amount': income.total_amount,
            'type': 'Income',
            'category': income.product,
            'note': income.note or None,
        })
    for expense in expenses:
        bucket = _month_bucket(buckets, expense.date)
        bucket['totalExpenses'] += expense.amount
        bucket['transactions'].append({
            'date': expense.date,
            'amount': expense.amount,
            'type': 'Expense',
            'category': expense.category,
            'note': expense.note or None,
        })

    result = []
    for key in sorted(buckets, reverse=True):
        bucket = buckets[key]
        bucket['netProfit'] = bucket['totalIncome'] - bucket['totalExpenses']
        bucket['transactions'].sort(key=lambda t: t['date'], reverse=True)
        bucket['transactions'] = [
            dict(t, date=t['date'].isoformat()) for t in bucket['transactions'][:limit]
        ]
        result.append(bucket)
    return result
