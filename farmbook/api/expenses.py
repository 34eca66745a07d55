from flask import Blueprint, jsonify, request

from ..auth import current_user, login_required
from ..errors import ValidationError
from ..models import Expense, db
from ..reports import presenter
from ..rules import normalize_tags
from ..schemas import ExpenseIn, ExpenseStatusIn, ExpenseUpdate
from .common import get_owned, paginate, paginate_items, parse, query_date, sort_clause

bp = Blueprint('expenses', __name__, url_prefix='/api/expenses')

SORTABLE = {'date': 'date', 'amount': 'amount', 'category': 'category', 'createdAt': 'created_at'}


# ---------------------- Routes: Expenses ----------------------
@bp.route('/', methods=['GET'], strict_slashes=False)
@login_required
def list_expenses():
    user = current_user()
    q = Expense.query.filter(Expense.user_id == user.id)

    category = request.args.get('category')
    if category:
        q = q.filter(Expense.category == category)
    is_recurring = request.args.get('isRecurring')
    if is_recurring:
        q = q.filter(Expense.is_recurring == (is_recurring == 'true'))
    start, end = query_date('startDate'), query_date('endDate')
    if start:
        q = q.filter(Expense.date >= start)
    if end:
        q = q.filter(Expense.date <= end)

    q = q.order_by(*sort_clause(Expense, SORTABLE))
    tags = normalize_tags(request.args.get('tags', '').split(','))
    if tags:
        # tags is a JSON column, matched here rather than in SQL
        matching = [e for e in q.all() if set(e.tags or []) & set(tags)]
        items, total, pagination = paginate_items(matching)
    else:
        items, total, pagination = paginate(q)

    return jsonify({
        'success': True,
        'count': len(items),
        'total': total,
        'pagination': pagination,
        'data': [e.to_dict() for e in items],
    })


@bp.route('/stats')
@login_required
def expense_stats():
    return jsonify({'success': True, 'data': presenter.expense_stats(current_user().id)})


@bp.route('/date-range')
@login_required
def expenses_by_date_range():
    start, end = query_date('startDate'), query_date('endDate')
    if not start or not end:
        raise ValidationError('Both startDate and endDate are required')
    expenses = Expense.find_by_owner_and_date_range(current_user().id, start, end)
    return jsonify({'success': True, 'count': len(expenses), 'data': [e.to_dict() for e in expenses]})


@bp.route('/', methods=['POST'], strict_slashes=False)
@login_required
def create_expense():
    data = parse(ExpenseIn).model_dump()
    data['tags'] = normalize_tags(data['tags'])
    expense = Expense(user_id=current_user().id, **data)
    db.session.add(expense)
    db.session.commit()
    return jsonify({'success': True, 'data': expense.to_dict()}), 201


@bp.route('/<int:expense_id>')
@login_required
def get_expense(expense_id):
    expense = get_owned(Expense, expense_id, 'Expense')
    return jsonify({'success': True, 'data': expense.to_dict()})


@bp.route('/<int:expense_id>', methods=['PUT'])
@login_required
def update_expense(expense_id):
    updates = parse(ExpenseUpdate).model_dump(exclude_unset=True, exclude_none=True)
    expense = get_owned(Expense, expense_id, 'Expense')
    if 'tags' in updates:
        updates['tags'] = normalize_tags(updates['tags'])
    for field, value in updates.items():
        setattr(expense, field, value)
    db.session.commit()
    return jsonify({'success': True, 'data': expense.to_dict()})


@bp.route('/<int:expense_id>/status', methods=['PATCH'])
@login_required
def update_expense_status(expense_id):
    data = parse(ExpenseStatusIn)
    expense = get_owned(Expense, expense_id, 'Expense')
    expense.status = data.status
    db.session.commit()
    return jsonify({'success': True, 'data': expense.to_dict()})


@bp.route('/<int:expense_id>', methods=['DELETE'])
@login_required
def delete_expense(expense_id):
    expense = get_owned(Expense, expense_id, 'Expense')
    db.session.delete(expense)
    db.session.commit()
    return jsonify({'success': True, 'message': 'Expense deleted successfully'})
