import os

import click
from flask import Flask, jsonify, request
from pydantic import ValidationError as SchemaError
from sqlalchemy.exc import IntegrityError
from werkzeug.exceptions import HTTPException

from .api import BLUEPRINTS
from .auth import hash_password
from .errors import ApiError, field_errors, is_unique_violation
from .models import User, db, initialize_default_settings


def create_app(test_config=None):
    app = Flask(__name__)
    secret_key = os.environ.get('SECRET_KEY', 'dev-secret-key-change-me')
    app.config.from_mapping(
        SQLALCHEMY_DATABASE_URI=os.environ.get('DATABASE_URL', 'sqlite:///farmbook.db'),
        SQLALCHEMY_TRACK_MODIFICATIONS=False,
        SECRET_KEY=secret_key,
        JWT_SECRET=os.environ.get('JWT_SECRET', secret_key),
        JWT_EXPIRY_DAYS=int(os.environ.get('JWT_EXPIRY_DAYS', 30)),
        LOG_LEVEL=os.environ.get('LOG_LEVEL', 'INFO'),
    )
    if test_config:
        app.config.update(test_config)
    app.logger.setLevel(app.config['LOG_LEVEL'])

    db.init_app(app)
    with app.app_context():
        db.create_all()
        initialize_default_settings()

    for blueprint in BLUEPRINTS:
        app.register_blueprint(blueprint)

    register_error_handlers(app)
    register_commands(app)

    @app.before_request
    def log_request():
        app.logger.info('%s %s', request.method, request.path)

    # ---------------------- Routes: Health ----------------------
    @app.route('/')
    def index():
        return jsonify({'success': True, 'message': 'Farm bookkeeping API is running'})

    @app.route('/health')
    @app.route('/api/health')
    def health():
        return jsonify({'success': True, 'status': 'ok'})

    return app


# ---------------------- Error Handlers ----------------------
def register_error_handlers(app):
    @app.errorhandler(ApiError)
    def handle_api_error(err):
        return jsonify(err.to_dict()), err.status_code

    @app.errorhandler(SchemaError)
    def handle_schema_error(err):
        return jsonify({'success': False, 'message': 'Validation Error', 'errors': field_errors(err)}), 400

    @app.errorhandler(IntegrityError)
    def handle_integrity_error(err):
        if not is_unique_violation(err):
            return handle_unexpected(err)
        db.session.rollback()
        app.logger.warning('Duplicate value on %s: %s', request.path, err.orig)
        return jsonify({'success': False, 'message': 'Duplicate Field Value'}), 400

    @app.errorhandler(HTTPException)
    def handle_http_error(err):
        return jsonify({'success': False, 'message': err.description}), err.code

    @app.errorhandler(Exception)
    def handle_unexpected(err):
        db.session.rollback()
        app.logger.exception('Unhandled error on %s %s', request.method, request.path)
        message = str(err) if app.debug else 'Internal Server Error'
        return jsonify({'success': False, 'message': message}), 500


# ---------------------- CLI ----------------------
def register_commands(app):
    @app.cli.command('create-admin')
    @click.argument('email')
    @click.argument('password')
    @click.option('--username', default='admin', show_default=True)
    def create_admin(email, password, username):
        """Create an admin account, or promote an existing one."""
        email = email.lower()
        user = User.query.filter_by(email=email).first()
        if user is None:
            user = User(username=username, email=email, password_hash=hash_password(password))
            db.session.add(user)
            click.echo(f'Created admin {email}')
        else:
            click.echo(f'Promoted {email} to admin')
        user.role = 'admin'
        db.session.commit()

    @app.cli.command('update-admin-password')
    @click.argument('email')
    @click.argument('password')
    def update_admin_password(email, password):
        """Reset the password of an existing admin."""
        user = User.query.filter_by(email=email.lower(), role='admin').first()
        if user is None:
            raise click.ClickException(f'No admin with email {email}')
        user.password_hash = hash_password(password)
        db.session.commit()
        click.echo(f'Password updated for {email}')

    @app.cli.command('seed-settings')
    def seed_settings():
        """Insert any missing default settings."""
        created = initialize_default_settings()
        click.echo(f'Created {len(created)} settings' + (f': {", ".join(created)}' if created else ''))


# ---------------------- Run App ----------------------
if __name__ == '__main__':
    create_app().run(host='0.0.0.0', port=int(os.environ.get('PORT', 5000)), debug=True)
