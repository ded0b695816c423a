"""QR Check-in Service - Application Factory."""
import logging
import os
from flask import Flask, jsonify
from flask_sqlalchemy import SQLAlchemy
from flask_migrate import Migrate
from flask_jwt_extended import JWTManager
from flask_cors import CORS
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address

# Initialize extensions
db = SQLAlchemy()
migrate = Migrate()
jwt = JWTManager()
limiter = Limiter(key_func=get_remote_address)

def create_app(config_name: str = None, **overrides) -> Flask:
    """Application factory pattern."""
    app = Flask(__name__)

    # Load configuration
    from config import get_config
    config_class = get_config(config_name)
    app.config.from_object(config_class)
    app.config.update(overrides)

    # Initialize extensions
    db.init_app(app)
    migrate.init_app(app, db)
    jwt.init_app(app)
    limiter.init_app(app)

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
    @limiter.exempt
    def health_check():
        return jsonify({
            'status': 'healthy',
            'service': 'QR Check-in Service',
            'version': '1.0.0'
        })

    return app

def register_blueprints(app: Flask) -> None:
    """Register all application blueprints."""
    from checkin.api.auth import auth_bp
    from checkin.api.members import members_bp
    from checkin.api.sessions import sessions_bp
    from checkin.api.checkin import checkin_bp
    from checkin.api.reports import reports_bp

    # Auth
    app.register_blueprint(auth_bp, url_prefix='/api/auth')

    # Admin Management
    app.register_blueprint(members_bp, url_prefix='/api/members')
    app.register_blueprint(sessions_bp, url_prefix='/api/sessions')
    app.register_blueprint(reports_bp, url_prefix='/api/reports')

    # Public check-in flow
    app.register_blueprint(checkin_bp, url_prefix='/api/checkin')

def register_error_handlers(app: Flask) -> None:
    """Register error handlers."""
    from checkin.utils.helpers import handle_error, error_response
    from checkin.utils.exceptions import CheckInError, RateLimited
    from werkzeug.exceptions import HTTPException

    @app.errorhandler(CheckInError)
    def handle_checkin_error(error):
        return error_response(
            error.message,
            error.status_code,
            kind=error.kind,
            **error.extra()
        )

    @app.errorhandler(429)
    def rate_limited(error):
        app.logger.warning('Rate limit exceeded: %s', error.description)
        limited = RateLimited()
        return error_response(limited.message, limited.status_code, kind=limited.kind)

    @app.errorhandler(500)
    def internal_error(error):
        db.session.rollback()
        return error_response('Internal server error', 500, kind='internal_error')

    @app.errorhandler(HTTPException)
    def handle_exception(e):
        return handle_error(e, e.code)

    # JWT error handlers
    @jwt.expired_token_loader
    def expired_token_callback(jwt_header, jwt_payload):
        return error_response('Token has expired', 401, kind='unauthorized')

    @jwt.invalid_token_loader
    def invalid_token_callback(error):
        return error_response('Invalid token', 401, kind='unauthorized')

    @jwt.unauthorized_loader
    def missing_token_callback(error):
        return error_response('Authorization token required', 401, kind='unauthorized')

def setup_logging(app: Flask) -> None:
    """Setup application logging."""
    app.logger.setLevel(app.config.get('LOG_LEVEL', 'INFO'))

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

        app.logger.info('QR Check-in Service startup')

def setup_database(app: Flask) -> None:
    """Setup database connections."""
    with app.app_context():
        # Import all models so metadata knows every table
        from checkin.models import Admin, Member, Session, Attendance  # noqa: F401

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

    @app.cli.command('create-admin')
    @click.option('--email', prompt='Admin email')
    @click.option('--name', prompt='Admin name')
    @click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True)
    def create_admin(email, name, password):
        """Create admin user."""
        from checkin.services.auth_service import AuthService

        try:
            admin = AuthService.create_admin(email=email, name=name, password=password)
            click.echo(f'Admin user created: {admin.email}')
        except Exception as e:
            db.session.rollback()
            click.echo(f'Error creating admin: {str(e)}')

    @app.cli.command('seed-demo')
    def seed_demo():
        """Seed database with a demo member and an open session."""
        from checkin.services.seed_service import SeedService

        try:
            summary = SeedService.seed_demo()
            click.echo('Database seeded successfully!')
            click.echo(f"Member PIN: {summary['pin']}")
            click.echo(f"Check-in URL: {summary['checkin_url']}")
            click.echo(f"Secret answer: {summary['answer']}")
        except Exception as e:
            db.session.rollback()
            click.echo(f'Error seeding database: {str(e)}')
