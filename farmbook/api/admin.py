from flask import Blueprint, current_app, jsonify, request

from ..auth import admin_required, current_user
from ..errors import ValidationError
from ..models import Expense, Feedback, Income, Setting, User, db
from ..reports import aggregation, presenter
from ..rules import safe_user, sync_feedback_resolution
from ..schemas import AdminUserUpdate, FeedbackStatusIn, SettingsUpdate
from .auth import save_profile
from .common import get_or_404, paginate, parse

bp = Blueprint('admin', __name__, url_prefix='/api/admin')


def _owner_filter(query, model):
    user_id = request.args.get('userId', type=int)
    if user_id is not None:
        query = query.filter(model.user_id == user_id)
    return query


# ---------------------- Routes: Stats ----------------------
@bp.route('/stats')
@admin_required
def stats():
    return jsonify({'success': True, 'stats': presenter.system_stats()})


@bp.route('/stats/monthly')
@admin_required
def monthly_stats():
    year = aggregation.resolve_year(request.args.get('year'))
    return jsonify({'success': True, 'year': year, 'monthlyData': aggregation.monthly_totals(year)})


# ---------------------- Routes: Users ----------------------
@bp.route('/users')
@admin_required
def list_users():
    q = User.query
    search = request.args.get('search')
    if search:
        pattern = f'%{search}%'
        q = q.filter(User.username.ilike(pattern) | User.email.ilike(pattern))
    role = request.args.get('role')
    if role:
        q = q.filter(User.role == role)
    items, total, pagination = paginate(q.order_by(User.created_at.desc(), User.id.desc()))
    return jsonify({
        'success': True,
        'count': len(items),
        'total': total,
        'pagination': pagination,
        'data': [safe_user(u) for u in items],
    })


@bp.route('/users/<int:user_id>')
@admin_required
def get_user(user_id):
    user = get_or_404(User, user_id, 'User')
    income, expense = aggregation.totals(user_id)
    return jsonify({
        'success': True,
        'data': {
            'user': safe_user(user),
            'finances': {
                'totalIncome': income,
                'totalExpenses': expense,
                'netBalance': income - expense,
                'incomeCount': Income.query.filter_by(user_id=user_id).count(),
                'expensesCount': Expense.query.filter_by(user_id=user_id).count(),
            },
        },
    })


@bp.route('/users/<int:user_id>', methods=['PUT'])
@admin_required
def update_user(user_id):
    user = save_profile(get_or_404(User, user_id, 'User'), AdminUserUpdate)
    current_app.logger.info('Admin %s updated user %s', current_user().id, user.id)
    return jsonify({'success': True, 'data': safe_user(user)})


@bp.route('/users/<int:user_id>', methods=['DELETE'])
@admin_required
def delete_user(user_id):
    admin = current_user()
    if admin.id == user_id:
        raise ValidationError('You cannot delete your own account')
    user = get_or_404(User, user_id, 'User')

    # Each step commits on its own; a failure part way leaves earlier steps applied.
    expenses = Expense.delete_all_by_owner(user_id)
    incomes = Income.delete_all_by_owner(user_id)
    feedback = Feedback.query.filter_by(user_id=user_id).delete(synchronize_session=False)
    db.session.commit()
    db.session.delete(user)
    db.session.commit()

    current_app.logger.info('Admin %s deleted user %s (%d expenses, %d income, %d feedback)',
                            admin.id, user_id, expenses, incomes, feedback)
    return jsonify({'success': True, 'message': 'User and all associated data deleted successfully'})


# ---------------------- Routes: Records ----------------------
@bp.route('/expenses')
@admin_required
def list_expenses():
    q = _owner_filter(Expense.query, Expense).order_by(Expense.date.desc(), Expense.id.desc())
    items, total, pagination = paginate(q)
    return jsonify({
        'success': True,
        'count': len(items),
        'total': total,
        'pagination': pagination,
        'data': [e.to_dict(with_owner=True) for e in items],
    })


@bp.route('/expenses/<int:expense_id>', methods=['DELETE'])
@admin_required
def delete_expense(expense_id):
    expense = get_or_404(Expense, expense_id, 'Expense')
    db.session.delete(expense)
    db.session.commit()
    current_app.logger.info('Admin %s deleted expense %s', current_user().id, expense_id)
    return jsonify({'success': True, 'message': 'Expense deleted successfully'})


@bp.route('/income')
@admin_required
def list_income():
    q = _owner_filter(Income.query, Income).order_by(Income.date.desc(), Income.id.desc())
    items, total, pagination = paginate(q)
    return jsonify({
        'success': True,
        'count': len(items),
        'total': total,
        'pagination': pagination,
        'data': [i.to_dict(with_owner=True) for i in items],
    })


@bp.route('/income/<int:income_id>', methods=['DELETE'])
@admin_required
def delete_income(income_id):
    income = get_or_404(Income, income_id, 'Income entry')
    db.session.delete(income)
    db.session.commit()
    current_app.logger.info('Admin %s deleted income %s', current_user().id, income_id)
    return jsonify({'success': True, 'message': 'Income entry deleted successfully'})


# ---------------------- Routes: Settings ----------------------
@bp.route('/settings')
@admin_required
def get_settings():
    grouped = {}
    for setting in Setting.query.order_by(Setting.category, Setting.key).all():
        grouped.setdefault(setting.category, []).append(setting.to_dict())
    return jsonify({'success': True, 'data': grouped})


@bp.route('/settings', methods=['PUT'])
@admin_required
def update_settings():
    data = parse(SettingsUpdate)
    admin = current_user()
    updated = []
    for item in data.settings:
        setting = Setting.set_setting(item.key, item.value, admin.id)
        if item.description is not None:
            setting.description = item.description
        if item.category is not None:
            setting.category = item.category
        if item.is_public is not None:
            setting.is_public = item.is_public
        updated.append(setting)
    db.session.commit()
    current_app.logger.info('Admin %s updated settings: %s', admin.id, ', '.join(s.key for s in updated))
    return jsonify({
        'success': True,
        'message': 'Settings updated successfully',
        'data': [s.to_dict() for s in updated],
    })


# ---------------------- Routes: Feedback ----------------------
@bp.route('/feedback')
@admin_required
def list_feedback():
    q = Feedback.query
    status = request.args.get('status')
    if status:
        q = q.filter(Feedback.status == status)
    category = request.args.get('category')
    if category:
        q = q.filter(Feedback.category == category)
    items, total, pagination = paginate(q.order_by(Feedback.created_at.desc(), Feedback.id.desc()))
    return jsonify({
        'success': True,
        'count': len(items),
        'total': total,
        'pagination': pagination,
        'data': [f.to_dict(with_owner=True) for f in items],
    })


@bp.route('/feedback/stats')
@admin_required
def feedback_stats():
    return jsonify({'success': True, 'data': presenter.feedback_stats()})


@bp.route('/feedback/<int:feedback_id>')
@admin_required
def get_feedback(feedback_id):
    feedback = get_or_404(Feedback, feedback_id, 'Feedback')
    return jsonify({'success': True, 'data': feedback.to_dict(with_owner=True)})


@bp.route('/feedback/<int:feedback_id>', methods=['PUT'])
@admin_required
def update_feedback(feedback_id):
    data = parse(FeedbackStatusIn)
    feedback = get_or_404(Feedback, feedback_id, 'Feedback')
    feedback.status = data.status
    if data.response is not None:
        feedback.response = data.response
    sync_feedback_resolution(feedback)
    db.session.commit()
    return jsonify({'success': True, 'data': feedback.to_dict(with_owner=True)})


@bp.route('/feedback/<int:feedback_id>', methods=['DELETE'])
@admin_required
def delete_feedback(feedback_id):
    feedback = get_or_404(Feedback, feedback_id, 'Feedback')
    db.session.delete(feedback)
    db.session.commit()
    return jsonify({'success': True, 'message': 'Feedback deleted successfully'})
