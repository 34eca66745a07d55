from flask import Blueprint, jsonify

from ..models import Setting

bp = Blueprint('settings', __name__, url_prefix='/api/settings')


@bp.route('/public')
def public_settings():
    """Settings flagged public, as a plain key -> value map. No login needed."""
    settings = Setting.query.filter_by(is_public=True).order_by(Setting.key).all()
    return jsonify({'success': True, 'data': {s.key: s.value for s in settings}})
