from flask import Blueprint, current_app, jsonify

from ..auth import create_access_token, current_user, hash_password, login_required, verify_password
from ..errors import AuthenticationError, ValidationError
from ..models import User, db, utcnow
from ..rules import merge_nested, safe_user
from ..schemas import LoginIn, ProfileUpdate, RegisterIn
from .common import parse

bp = Blueprint('auth', __name__, url_prefix='/api/auth')


def apply_profile_updates(user, updates):
    """Copy validated profile fields onto ``user``; nested objects are merged."""
    for field, value in updates.items():
        if isinstance(value, dict):
            value = merge_nested(getattr(user, field), value)
        setattr(user, field, value)
    return user


def save_profile(user, schema=ProfileUpdate):
    """Validate a profile payload with ``schema`` and apply it to ``user``."""
    updates = parse(schema).column_updates()
    ensure_unique_identity(updates.get('username'), updates.get('email'), exclude_id=user.id)
    apply_profile_updates(user, updates)
    db.session.commit()
    return user


def ensure_unique_identity(username=None, email=None, exclude_id=None):
    q = User.query
    if exclude_id is not None:
        q = q.filter(User.id != exclude_id)
    if username and q.filter(User.username == username).first():
        raise ValidationError('Duplicate Field Value', errors=[{'field': 'username', 'message': 'username already exists'}])
    if email and q.filter(User.email == email).first():
        raise ValidationError('Duplicate Field Value', errors=[{'field': 'email', 'message': 'email already exists'}])


# ---------------------- Routes: Auth ----------------------
@bp.route('/register', methods=['POST'])
def register():
    data = parse(RegisterIn)
    if User.query.filter((User.email == data.email) | (User.username == data.username)).first():
        raise ValidationError('User already exists with that email or username')
    user = User(username=data.username, email=data.email, password_hash=hash_password(data.password))
    user.last_login = utcnow()
    db.session.add(user)
    db.session.commit()
    current_app.logger.info('Registered user %s', user.id)
    return jsonify({'success': True, 'token': create_access_token(user.id), 'user': safe_user(user)}), 201


@bp.route('/login', methods=['POST'])
def login():
    data = parse(LoginIn)
    user = User.query.filter_by(email=data.email).first()
    if not user:
        raise AuthenticationError('You need to create an account first before logging in. '
                                  'Please click on Sign up / Register to get started.')
    if not user.is_active:
        raise AuthenticationError('Your account has been deactivated. Please contact support.')
    if not verify_password(data.password, user.password_hash):
        current_app.logger.warning('Failed login for user %s', user.id)
        raise AuthenticationError('Invalid credentials')
    user.last_login = utcnow()
    db.session.commit()
    return jsonify({'success': True, 'token': create_access_token(user.id), 'user': safe_user(user)})


@bp.route('/me')
@login_required
def me():
    return jsonify({'success': True, 'user': safe_user(current_user())})


@bp.route('/profile', methods=['PUT'])
@login_required
def update_profile():
    user = save_profile(current_user())
    return jsonify({'success': True, 'user': safe_user(user)})
