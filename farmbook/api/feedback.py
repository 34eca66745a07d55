from flask import Blueprint, jsonify

from ..auth import current_user, login_required
from ..models import Feedback, db
from ..rules import sync_feedback_resolution
from ..schemas import FeedbackIn
from .common import parse

bp = Blueprint('feedback', __name__, url_prefix='/api/feedback')


@bp.route('/', methods=['POST'], strict_slashes=False)
@login_required
def submit_feedback():
    data = parse(FeedbackIn)
    feedback = Feedback(user_id=current_user().id, message=data.message, category=data.category)
    sync_feedback_resolution(feedback)
    db.session.add(feedback)
    db.session.commit()
    return jsonify({
        'success': True,
        'message': 'Feedback submitted successfully',
        'data': feedback.to_dict(),
    }), 201


@bp.route('/', methods=['GET'], strict_slashes=False)
@login_required
def my_feedback():
    items = (Feedback.query.filter_by(user_id=current_user().id)
             .order_by(Feedback.created_at.desc(), Feedback.id.desc()).all())
    return jsonify({'success': True, 'count': len(items), 'data': [f.to_dict() for f in items]})
