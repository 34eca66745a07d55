from flask import Blueprint, jsonify, request

from ..auth import current_user, login_required
from ..reports import presenter
from ..reports.aggregation import resolve_year

bp = Blueprint('dashboard', __name__, url_prefix='/api/dashboard')


# ---------------------- Routes: Dashboard ----------------------
@bp.route('/summary')
@login_required
def summary():
    return jsonify({'success': True, 'data': presenter.dashboard_summary(current_user().id)})


@bp.route('/monthly')
@login_required
def monthly():
    year = resolve_year(request.args.get('year'))
    return jsonify({
        'success': True,
        'year': year,
        'data': presenter.dashboard_monthly(current_user().id, year),
    })


@bp.route('/stats')
@login_required
def stats():
    return jsonify({'success': True, 'data': presenter.dashboard_stats(current_user().id)})


@bp.route('/financial-summary')
@login_required
def financial_summary():
    return jsonify({'success': True, 'data': presenter.financial_summary(current_user().id)})
