"""
app.py - Application Factory
Entry point for the discipline & merit scoreboard service.
Uses the Application Factory pattern for modularity and testing.
"""

import logging

from flask import Flask, jsonify
from config import config
from extensions import db, migrate, login_manager, bcrypt
from services.errors import ScoringError


def create_app(config_name='development'):
    """
    Application Factory Function

    Args:
        config_name (str): Configuration to use ('development', 'production', 'testing')

    Returns:
        Flask: Configured Flask application instance
    """
    app = Flask(__name__)

    # Load configuration from config.py based on environment
    app.config.from_object(config[config_name])
    config[config_name].init_app(app)

    configure_logging(app)

    # Initialize extensions with the app
    db.init_app(app)
    migrate.init_app(app, db)
    login_manager.init_app(app)
    bcrypt.init_app(app)

    # User loader callback for Flask-Login
    @login_manager.user_loader
    def load_user(user_id):
        """Load user by ID for Flask-Login session management"""
        from models import User
        return db.session.get(User, user_id)

    # JSON API: answer 401 instead of redirecting to a login page
    @login_manager.unauthorized_handler
    def unauthorized():
        return jsonify({'success': False, 'error': 'Please log in to access this resource.'}), 401

    # Register blueprints (routes)
    register_blueprints(app)

    # Register error handlers
    register_error_handlers(app)

    # Import models so Flask-Migrate can detect them
    with app.app_context():
        import models  # noqa: F401

    return app


def configure_logging(app):
    """
    Root logger level/format from LOG_LEVEL; service modules log through
    logging.getLogger(__name__).
    """
    logging.basicConfig(format=app.config['LOG_FORMAT'])
    logging.getLogger().setLevel(app.config['LOG_LEVEL'])
    app.logger.setLevel(app.config['LOG_LEVEL'])


def register_blueprints(app):
    """
    Register all application blueprints (modular route handlers)
    """
    from blueprints.auth.routes import auth_bp
    from blueprints.scores.routes import scores_bp
    from blueprints.reports.routes import reports_bp
    from blueprints.admin.routes import admin_bp

    # Register with URL prefixes
    app.register_blueprint(auth_bp, url_prefix='/auth')
    app.register_blueprint(scores_bp, url_prefix='/scores')
    app.register_blueprint(reports_bp, url_prefix='/reports')
    app.register_blueprint(admin_bp, url_prefix='/admin')

    @app.route('/')
    def index():
        """Service landing"""
        return jsonify({'success': True, 'service': 'discipline-scoreboard'})


def register_error_handlers(app):
    """
    Turn service errors and common HTTP errors into JSON responses
    """
    @app.errorhandler(ScoringError)
    def scoring_error(error):
        app.logger.info('%s: %s', type(error).__name__, error.message)
        return jsonify({'success': False, 'error': error.message}), error.status_code

    @app.errorhandler(404)
    def not_found(error):
        return jsonify({'success': False, 'error': 'Not found'}), 404

    @app.errorhandler(405)
    def method_not_allowed(error):
        return jsonify({'success': False, 'error': 'Method not allowed'}), 405

    @app.errorhandler(500)
    def internal_error(error):
        db.session.rollback()  # Rollback any failed database transactions
        app.logger.exception('Unhandled error')
        return jsonify({'success': False, 'error': 'An unexpected error occurred'}), 500


# Run the application
if __name__ == '__main__':
    app = create_app('development')

    app.run(
        host='0.0.0.0',
        port=5000,
        debug=True
    )
