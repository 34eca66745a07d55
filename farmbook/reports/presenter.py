"""Response shapes for the dashboard, profile, monthly and admin pages."""
from datetime import date, datetime, timedelta

from sqlalchemy import func

from ..models import Expense, Feedback, Income, User, db
from . import aggregation
from .aggregation import RECENT_LIMIT


def dashboard_summary(user_id):
    income, expense = aggregation.totals(user_id)
    return {'totalIncome': income, 'totalExpense': expense, 'profit': income - expense}


def dashboard_monthly(user_id, year):
    """Chart data: income from the database rollup, expenses grouped in-app."""
    start, end = aggregation.year_bounds(year)
    expenses = aggregation.expenses_by_month(
        Expense.find_by_owner_and_date_range(user_id, start, end))
    data = []
    for entry in aggregation.monthly_income_stats(user_id, year):
        spent = expenses.get(entry['month'], 0.0)
        data.append({
            'month': entry['month'],
            'monthName': entry['monthName'],
            'income': entry['total'],
            'expenses': spent,
            'profit': entry['total'] - spent,
        })
    return data


def monthly_financial(user_id):
    incomes = Income.query.filter_by(user_id=user_id).order_by(Income.date.desc()).all()
    expenses = Expense.query.filter_by(user_id=user_id).order_by(Expense.date.desc()).all()
    return aggregation.group_by_month_key(incomes, expenses)


def _activity(record, kind):
    if kind == 'income':
        amount, category = record.total_amount, record.product
    else:
        amount, category = record.amount, record.category
    return {
        'id': record.id,
        'date': record.date,
        'amount': amount,
        'description': record.note,
        'category': category,
        'type': kind,
    }


def recent_activity(incomes, expenses, limit=RECENT_LIMIT):
    items = [_activity(i, 'income') for i in incomes] + [_activity(e, 'expense') for e in expenses]
    items.sort(key=lambda item: item['date'], reverse=True)
    return [dict(item, date=item['date'].isoformat()) for item in items[:limit]]


def financial_summary(user_id, today=None):
    today = today or date.today()
    total_income, total_expense = aggregation.totals(user_id)
    start, end = aggregation.previous_month_bounds(today)
    last_income, last_expense = aggregation.totals(user_id, start, end)

    incomes = (Income.query.filter_by(user_id=user_id)
               .order_by(Income.date.desc(), Income.id.desc()).limit(RECENT_LIMIT).all())
    expenses = (Expense.query.filter_by(user_id=user_id)
                .order_by(Expense.date.desc(), Expense.id.desc()).limit(RECENT_LIMIT).all())

    return {
        'totalIncome': total_income,
        'totalExpense': total_expense,
        'netAmount': total_income - total_expense,
        'lastMonth': {
            'totalIncome': last_income,
            'totalExpense': last_expense,
            'netAmount': last_income - last_expense,
        },
        'recentActivity': recent_activity(incomes, expenses),
    }


def _count(model, *criteria):
    return model.query.filter(*criteria).count()


def dashboard_stats(user_id, today=None):
    today = today or date.today()

    def on_day(model, limit):
        return [r.to_dict() for r in model.query
                .filter(model.user_id == user_id, model.date == today)
                .order_by(model.date.desc(), model.id.desc()).limit(limit).all()]

    def latest(model, limit):
        return [r.to_dict() for r in model.query
                .filter(model.user_id == user_id)
                .order_by(model.date.desc(), model.id.desc()).limit(limit).all()]

    return {
        'expenseCategories': aggregation.category_totals(user_id),
        'productRevenue': aggregation.product_totals(user_id),
        'today': {'expenses': on_day(Expense, 5), 'income': on_day(Income, 5)},
        'recent': {'expenses': latest(Expense, 10), 'income': latest(Income, 10)},
        'totals': {
            'expenses': _count(Expense, Expense.user_id == user_id),
            'income': _count(Income, Income.user_id == user_id),
        },
        'pending': {
            'expenses': _count(Expense, Expense.user_id == user_id, Expense.status == 'pending'),
            'income': _count(Income, Income.user_id == user_id, Income.status == 'pending'),
        },
    }


def _count_and_total(rows):
    return {'count': len(rows), 'total': sum(r.amount for r in rows)}


def expense_stats(user_id, today=None):
    today = today or date.today()
    month_start = today.replace(day=1)
    next_month = (month_start + timedelta(days=32)).replace(day=1)
    month_end = next_month - timedelta(days=1)

    todays = Expense.query.filter(Expense.user_id == user_id, Expense.date == today).all()
    this_month = Expense.find_by_owner_and_date_range(user_id, month_start, month_end)
    recurring = Expense.query.filter_by(user_id=user_id, is_recurring=True).all()
    return {
        'categorySummary': aggregation.category_totals(user_id),
        'todayExpenses': _count_and_total(todays),
        'monthlyExpenses': _count_and_total(this_month),
        'recurringExpenses': _count_and_total(recurring),
    }


def system_stats(today=None):
    today = today or date.today()
    week_ago = today - timedelta(days=7)
    week_ago_ts = datetime.combine(week_ago, datetime.min.time())
    total_income, total_expense = aggregation.totals()
    recent_users = User.query.order_by(User.created_at.desc(), User.id.desc()).limit(RECENT_LIMIT).all()
    return {
        'users': {
            'total': User.query.count(),
            'newThisWeek': _count(User, User.created_at > week_ago_ts),
            'recentUsers': [
                {'id': u.id, 'username': u.username, 'email': u.email,
                 'createdAt': u.created_at.isoformat()}
                for u in recent_users
            ],
        },
        'finances': {
            'totalExpenses': total_expense,
            'totalIncome': total_income,
            'netBalance': total_income - total_expense,
            'expensesCount': Expense.query.count(),
            'incomeCount': Income.query.count(),
            'expensesThisWeek': _count(Expense, Expense.date > week_ago),
            'incomeThisWeek': _count(Income, Income.date > week_ago),
        },
    }


def feedback_stats():
    by_status = db.session.query(Feedback.status, func.count(Feedback.id)).group_by(Feedback.status).all()
    by_category = db.session.query(Feedback.category, func.count(Feedback.id)).group_by(Feedback.category).all()
    recent = (Feedback.query.order_by(Feedback.created_at.desc(), Feedback.id.desc())
              .limit(RECENT_LIMIT).all())
    return {
        'total': Feedback.query.count(),
        'byStatus': {status: count for status, count in by_status},
        'byCategory': {category: count for category, count in by_category},
        'recentFeedback': [f.to_dict(with_owner=True) for f in recent],
    }
