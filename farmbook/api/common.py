from datetime import date

from flask import request

from ..auth import current_user
from ..errors import AuthorizationError, NotFoundError, ValidationError
from ..models import db
from ..schemas import parse_date


def parse(schema):
    """Validate the JSON body against ``schema``.

    pydantic errors propagate to the app error handler, which renders them
    with per-field detail.
    """
    payload = request.get_json(silent=True)
    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        raise ValidationError('Request body must be a JSON object')
    return schema.model_validate(payload)


def get_owned(model, record_id, label):
    """Fetch ``model`` by id for the current user: 404 if absent, 403 if not theirs."""
    record = db.session.get(model, record_id)
    if record is None:
        raise NotFoundError(f'{label} not found')
    if record.user_id != current_user().id:
        raise AuthorizationError(f'Not authorized to access this {label.lower()}')
    return record


def get_or_404(model, record_id, label):
    record = db.session.get(model, record_id)
    if record is None:
        raise NotFoundError(f'{label} not found')
    return record


def query_date(name):
    raw = request.args.get(name)
    if not raw:
        return None
    try:
        return date.fromisoformat(parse_date(raw))
    except (TypeError, ValueError):
        raise ValidationError(f'Invalid date for {name}', errors=[{'field': name, 'message': 'Invalid date format'}])


def sort_clause(model, allowed, default='-date'):
    """Translate ``?sort=-field`` into an ORDER BY, restricted to ``allowed``."""
    raw = request.args.get('sort') or default
    descending = raw.startswith('-')
    name = raw.lstrip('-+')
    column = allowed.get(name)
    if column is None:
        raise ValidationError(f'Cannot sort by {name}', errors=[{'field': 'sort', 'message': 'Unsupported sort field'}])
    column = getattr(model, column)
    return [column.desc() if descending else column.asc(), model.id.desc()]


def page_params():
    page = max(request.args.get('page', 1, type=int) or 1, 1)
    limit = max(request.args.get('limit', 10, type=int) or 10, 1)
    return page, limit


def _pagination(page, limit, total):
    return {'page': page, 'limit': limit, 'pages': (total + limit - 1) // limit}


def paginate(query):
    """Apply ``page``/``limit`` and return ``(items, total, pagination)``."""
    page, limit = page_params()
    total = query.count()
    items = query.offset((page - 1) * limit).limit(limit).all()
    return items, total, _pagination(page, limit, total)


def paginate_items(items):
    page, limit = page_params()
    return items[(page - 1) * limit:page * limit], len(items), _pagination(page, limit, len(items))
