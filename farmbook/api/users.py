from flask import Blueprint, jsonify

from ..auth import current_user, login_required
from ..errors import AuthorizationError
from ..reports import presenter
from ..rules import safe_user
from .auth import save_profile

bp = Blueprint('user', __name__, url_prefix='/api/user')


# ---------------------- Routes: User ----------------------
@bp.route('/profile')
@login_required
def get_profile():
    return jsonify({'success': True, 'data': safe_user(current_user())})


@bp.route('/profile', methods=['PUT'])
@login_required
def update_profile():
    user = save_profile(current_user())
    return jsonify({'success': True, 'data': safe_user(user)})


@bp.route('/monthly-financial/<int:user_id>')
@login_required
def monthly_financial(user_id):
    user = current_user()
    if user.id != user_id and not user.is_admin:
        raise AuthorizationError('Not authorized to view this financial data')
    data = presenter.monthly_financial(user_id)
    return jsonify({'success': True, 'count': len(data), 'data': data})
