from datetime import datetime, timedelta, timezone
from functools import wraps

from flask import current_app, g, request
from jose import ExpiredSignatureError, JWTError, jwt
from werkzeug.security import check_password_hash, generate_password_hash

from .errors import AuthenticationError, AuthorizationError
from .models import User, db

ALGORITHM = 'HS256'


def hash_password(password):
    return generate_password_hash(password)


def verify_password(password, password_hash):
    return check_password_hash(password_hash, password)


def create_access_token(user_id):
    expires = datetime.now(timezone.utc) + timedelta(days=current_app.config['JWT_EXPIRY_DAYS'])
    payload = {'id': str(user_id), 'exp': expires}
    return jwt.encode(payload, current_app.config['JWT_SECRET'], algorithm=ALGORITHM)


def decode_access_token(token):
    try:
        payload = jwt.decode(token, current_app.config['JWT_SECRET'], algorithms=[ALGORITHM])
    except ExpiredSignatureError:
        raise AuthenticationError('Token has expired. Please login again.', code='TOKEN_EXPIRED')
    except JWTError:
        raise AuthenticationError('Token is not valid', code='INVALID_TOKEN')
    user_id = payload.get('id')
    if user_id is None:
        raise AuthenticationError('Token is not valid', code='INVALID_TOKEN')
    return int(user_id)


def _bearer_token():
    header = request.headers.get('Authorization', '')
    if header.startswith('Bearer '):
        return header[len('Bearer '):].strip()
    return None


# ---------------------- Auth Helpers ----------------------
def current_user():
    return g.get('user')


def authenticate():
    """Resolve the bearer token into ``g.user`` or raise AuthenticationError."""
    token = _bearer_token()
    if not token:
        raise AuthenticationError('No authentication token, access denied')
    user = db.session.get(User, decode_access_token(token))
    if user is None:
        current_app.logger.warning('Token for unknown user on %s', request.path)
        raise AuthenticationError('Token is valid, but user not found')
    if not user.is_active:
        raise AuthenticationError('Your account has been deactivated. Please contact support.')
    g.user = user
    return user


def login_required(view_func):
    @wraps(view_func)
    def wrapped(*args, **kwargs):
        authenticate()
        return view_func(*args, **kwargs)
    return wrapped


def admin_required(view_func):
    @wraps(view_func)
    def wrapped(*args, **kwargs):
        user = authenticate()
        if not user.is_admin:
            current_app.logger.warning('User %s denied admin access to %s', user.id, request.path)
            raise AuthorizationError('Access denied. Admin privileges required.')
        return view_func(*args, **kwargs)
    return wrapped
