from flask import Blueprint, jsonify, request

from ..auth import current_user, login_required
from ..models import Income, db
from ..rules import apply_income_totals, normalize_tags
from ..schemas import IncomeIn, IncomeUpdate
from .common import get_owned, paginate, parse, query_date, sort_clause

bp = Blueprint('income', __name__, url_prefix='/api/income')

SORTABLE = {
    'date': 'date',
    'totalAmount': 'total_amount',
    'quantity': 'quantity',
    'product': 'product',
    'createdAt': 'created_at',
}
AMOUNT_FIELDS = {'quantity', 'rate_per_unit', 'total_amount', 'is_manual_total'}


# ---------------------- Routes: Income ----------------------
@bp.route('/', methods=['GET'], strict_slashes=False)
@login_required
def list_income():
    q = Income.query.filter(Income.user_id == current_user().id)
    product = request.args.get('product')
    if product:
        q = q.filter(Income.product == product)
    start, end = query_date('startDate'), query_date('endDate')
    if start:
        q = q.filter(Income.date >= start)
    if end:
        q = q.filter(Income.date <= end)

    items, total, pagination = paginate(q.order_by(*sort_clause(Income, SORTABLE)))
    return jsonify({
        'success': True,
        'count': len(items),
        'total': total,
        'pagination': pagination,
        'data': [i.to_dict() for i in items],
    })


@bp.route('/', methods=['POST'], strict_slashes=False)
@login_required
def create_income():
    payload = parse(IncomeIn)
    data = payload.model_dump()
    data['tags'] = normalize_tags(data['tags'])
    income = Income(user_id=current_user().id, **data)
    apply_income_totals(income, payload.model_fields_set & AMOUNT_FIELDS)
    db.session.add(income)
    db.session.commit()
    return jsonify({'success': True, 'data': income.to_dict()}), 201


@bp.route('/<int:income_id>')
@login_required
def get_income(income_id):
    income = get_owned(Income, income_id, 'Income entry')
    return jsonify({'success': True, 'data': income.to_dict()})


@bp.route('/<int:income_id>', methods=['PUT'])
@login_required
def update_income(income_id):
    updates = parse(IncomeUpdate).model_dump(exclude_unset=True, exclude_none=True)
    income = get_owned(Income, income_id, 'Income entry')
    if 'tags' in updates:
        updates['tags'] = normalize_tags(updates['tags'])
    for field, value in updates.items():
        setattr(income, field, value)
    apply_income_totals(income, updates.keys() & AMOUNT_FIELDS)
    db.session.commit()
    return jsonify({'success': True, 'data': income.to_dict()})


@bp.route('/<int:income_id>', methods=['DELETE'])
@login_required
def delete_income(income_id):
    income = get_owned(Income, income_id, 'Income entry')
    db.session.delete(income)
    db.session.commit()
    return jsonify({'success': True, 'data': {}})
