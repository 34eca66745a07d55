class ApiError(Exception):
    """Base error rendered as ``{"success": false, "message": ...}``."""

    status_code = 500
    message = 'Internal Server Error'

    def __init__(self, message=None, errors=None, code=None):
        super().__init__(message or self.message)
        if message:
            self.message = message
        self.errors = errors
        self.code = code

    def to_dict(self):
        body = {'success': False, 'message': self.message}
        if self.errors is not None:
            body['errors'] = self.errors
        if self.code:
            body['code'] = self.code
        return body


class ValidationError(ApiError):
    status_code = 400
    message = 'Validation Error'


class AuthenticationError(ApiError):
    status_code = 401
    message = 'Authentication required. Please login.'


class AuthorizationError(ApiError):
    status_code = 403
    message = 'Not authorized to access this resource'


class NotFoundError(ApiError):
    status_code = 404
    message = 'Resource not found'


def field_errors(exc):
    """Flatten a pydantic ValidationError into ``[{field, message}]``."""
    errors = []
    for err in exc.errors():
        field = '.'.join(str(part) for part in err.get('loc', ()))
        errors.append({'field': field, 'message': err.get('msg', 'Invalid value')})
    return errors


UNIQUE_VIOLATION_MARKERS = ('unique constraint', 'duplicate key', 'duplicate entry')


def is_unique_violation(exc):
    """True when a SQLAlchemy IntegrityError came from a unique index."""
    orig = getattr(exc, 'orig', exc)
    if getattr(orig, 'pgcode', None) == '23505':
        return True
    text = str(orig).lower()
    return any(marker in text for marker in UNIQUE_VIOLATION_MARKERS)
