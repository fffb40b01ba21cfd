# File: backend/eduattend/__init__.py
"""EduAttend live attendance sessions - Application Factory."""
import logging
import os
from flask import Flask, jsonify
from flask_sqlalchemy import SQLAlchemy
from flask_migrate import Migrate
from flask_jwt_extended import JWTManager
from flask_cors import CORS
from flask_limiter import Limiter
from flask_socketio import SocketIO

from eduattend.services.broadcast_service import BroadcastChannel
from eduattend.utils.helpers import rate_limit_key

# Initialize extensions
db = SQLAlchemy()
migrate = Migrate()
jwt = JWTManager()
limiter = Limiter(
    key_func=rate_limit_key,
    default_limits=["200 per day", "50 per hour"]
)
socketio = SocketIO()
broadcast = BroadcastChannel()

def create_app(config_name: str = None, config_overrides: dict = None) -> Flask:
    """Application factory pattern."""
    app = Flask(__name__)

    # Load configuration
    from config import get_config
    config_class = get_config(config_name)
    app.config.from_object(config_class)
    if config_overrides:
        app.config.update(config_overrides)

    # Socket.IO handlers must be registered before the server is created
    import eduattend.api.live  # noqa: F401

    # Initialize extensions
    db.init_app(app)
    migrate.init_app(app, db)
    jwt.init_app(app)
    limiter.init_app(app)
    socketio.init_app(
        app,
        async_mode=app.config.get('SOCKETIO_ASYNC_MODE', 'threading'),
        message_queue=app.config.get('SOCKETIO_MESSAGE_QUEUE'),
        cors_allowed_origins=app.config.get('SOCKETIO_CORS_ORIGINS', '*')
    )
    broadcast.init_app(app, socketio)

    # Configure CORS
    CORS(app, origins=app.config.get('CORS_ORIGINS', ["*"]))

    # Setup logging
    setup_logging(app)

    # Register blueprints
    register_blueprints(app)

    # Register error handlers
    register_error_handlers(app)

    # Setup database
    setup_database(app)

    # Add CLI commands
    register_commands(app)

    # Add health check
    @app.route('/health')
    def health_check():
        return jsonify({
            'status': 'healthy',
            'service': 'EduAttend',
            'version': '1.0.0',
            'subscribers': broadcast.subscriber_count()
        })

    return app

def register_blueprints(app: Flask) -> None:
    """Register all application blueprints."""
    from eduattend.api.auth import auth_bp
    from eduattend.api.sessions import sessions_bp
    from eduattend.api.attendance import attendance_bp
    from eduattend.api.reports import reports_bp
    from eduattend.api.roster import roster_bp
    from eduattend.api.signatures import signatures_bp

    # Auth
    app.register_blueprint(auth_bp, url_prefix='/api/auth')

    # Core Features
    app.register_blueprint(sessions_bp, url_prefix='/api/sessions')
    app.register_blueprint(attendance_bp, url_prefix='/api/attendance')
    app.register_blueprint(reports_bp, url_prefix='/api/reports')
    app.register_blueprint(roster_bp, url_prefix='/api/roster')

    # Files
    app.register_blueprint(signatures_bp, url_prefix='/api/signatures')

def register_error_handlers(app: Flask) -> None:
    """Register error handlers."""
    from eduattend.utils.helpers import handle_error, error_response
    from eduattend.utils.errors import AttendanceError
    from werkzeug.exceptions import HTTPException

    @app.errorhandler(AttendanceError)
    def attendance_error(error):
        return error_response(error.message, error.status_code, error_code=error.error_code)

    @app.errorhandler(400)
    def bad_request(error):
        return handle_error(error, 400)

    @app.errorhandler(401)
    def unauthorized(error):
        return handle_error(error, 401)

    @app.errorhandler(403)
    def forbidden(error):
        return handle_error(error, 403)

    @app.errorhandler(404)
    def not_found(error):
        return handle_error(error, 404)

    @app.errorhandler(500)
    def internal_error(error):
        db.session.rollback()
        return handle_error(error, 500)

    @app.errorhandler(HTTPException)
    def handle_exception(e):
        return handle_error(e, e.code)

    # JWT error handlers
    @jwt.expired_token_loader
    def expired_token_callback(jwt_header, jwt_payload):
        return jsonify({
            'error': True,
            'message': 'Token has expired',
            'status_code': 401
        }), 401

    @jwt.invalid_token_loader
    def invalid_token_callback(error):
        return jsonify({
            'error': True,
            'message': 'Invalid token',
            'status_code': 401
        }), 401

    @jwt.unauthorized_loader
    def missing_token_callback(error):
        return jsonify({
            'error': True,
            'message': 'Authorization token required',
            'status_code': 401
        }), 401

def setup_logging(app: Flask) -> None:
    """Setup application logging."""
    level = getattr(logging, app.config.get('LOG_LEVEL', 'INFO'), logging.INFO)
    logging.getLogger('eduattend').setLevel(level)

    if not app.debug and not app.testing:
        log_file = app.config.get('LOG_FILE', 'logs/app.log')
        log_dir = os.path.dirname(log_file)
        if log_dir and not os.path.exists(log_dir):
            os.makedirs(log_dir)

        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(logging.Formatter(
            '%(asctime)s %(levelname)s: %(message)s [in %(pathname)s:%(lineno)d]'
        ))
        file_handler.setLevel(logging.INFO)
        app.logger.addHandler(file_handler)
        logging.getLogger('eduattend').addHandler(file_handler)

        app.logger.setLevel(logging.INFO)
        app.logger.info('EduAttend startup')

def setup_database(app: Flask) -> None:
    """Import models so their tables and change hooks are registered."""
    with app.app_context():
        from eduattend.models import Profile, AttendanceSession, AttendanceLog  # noqa: F401

def register_commands(app: Flask) -> None:
    """Register CLI commands."""
    import click

    @app.cli.command('init-db')
    @click.option('--drop', is_flag=True, help='Drop existing tables')
    def init_db(drop):
        """Initialize the database."""
        if drop:
            db.drop_all()
            click.echo('Dropped all tables.')

        db.create_all()
        click.echo('Created all tables.')

    @app.cli.command('seed-db')
    def seed_db():
        """Seed database with a demo HOC and students."""
        from eduattend.services.seed_service import SeedService

        created = SeedService.seed_all()
        click.echo(f'Database seeded: {created} profiles created.')
