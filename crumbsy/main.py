import logging
import os

import click
from flask import Flask
from flask_cors import CORS
from marshmallow import ValidationError
from sqlalchemy.exc import SQLAlchemyError

from .config import DevelopmentConfig, ProductionConfig, TestingConfig
from .extensions import db, migrate, jwt, ma, bcrypt

CONFIGS = {
    "development": DevelopmentConfig,
    "production": ProductionConfig,
    "testing": TestingConfig,
}

def create_app(config_name=None):
    app = Flask(__name__, instance_relative_config=False)
    env = config_name or os.getenv("FLASK_ENV", "development")
    app.config.from_object(CONFIGS.get(env, DevelopmentConfig))

    if not app.debug and not app.testing:
        app.logger.setLevel(logging.INFO)

    # initialize extensions
    db.init_app(app)
    migrate.init_app(app, db)
    jwt.init_app(app)
    ma.init_app(app)
    origins = [o.strip() for o in app.config["CORS_ORIGINS"].split(",")]
    CORS(
        app,
        resources={r"/api/*": {"origins": origins}},
        supports_credentials=True,
        allow_headers=["Content-Type", "Authorization"],
        methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    )
    bcrypt.init_app(app)

    # models must be imported before mappers are configured
    from crumbsy.models import user, cake_design, order, quote, message, portfolio_item  # noqa: F401

    # register blueprints
    from crumbsy.routes.auth_routes import bp as auth_bp
    from crumbsy.routes.cake_routes import bp as cake_bp
    from crumbsy.routes.order_routes import bp as order_bp
    from crumbsy.routes.quote_routes import bp as quote_bp
    from crumbsy.routes.message_routes import bp as message_bp
    from crumbsy.routes.portfolio_routes import bp as portfolio_bp
    from crumbsy.routes.admin_routes import bp as admin_bp

    app.register_blueprint(auth_bp)
    app.register_blueprint(cake_bp)
    app.register_blueprint(order_bp)
    app.register_blueprint(quote_bp)
    app.register_blueprint(message_bp)
    app.register_blueprint(portfolio_bp)
    app.register_blueprint(admin_bp)

    # error handlers to match required error format
    from crumbsy.utils.exceptions import ServiceError
    from crumbsy.utils.response_formatter import (
        error_response,
        service_error_response,
        validation_error_response,
    )

    @app.errorhandler(ServiceError)
    def service_error(e):
        return service_error_response(e)

    @app.errorhandler(ValidationError)
    def validation_error(e):
        return validation_error_response(e)

    @app.errorhandler(SQLAlchemyError)
    def database_error(e):
        db.session.rollback()
        app.logger.error("Database error: %s", e)
        return error_response("SERVER_ERROR", "Internal server error", status=500)

    @app.errorhandler(400)
    def bad_request(e):
        return error_response("BAD_REQUEST", str(e), status=400)

    @app.errorhandler(401)
    def unauthorized(e):
        return error_response("UNAUTHORIZED", str(e), status=401)

    @app.errorhandler(403)
    def forbidden(e):
        return error_response("FORBIDDEN", str(e), status=403)

    @app.errorhandler(404)
    def not_found(e):
        return error_response("NOT_FOUND", "Resource not found", status=404)

    @app.errorhandler(405)
    def method_not_allowed(e):
        return error_response("METHOD_NOT_ALLOWED", str(e), status=405)

    @app.errorhandler(500)
    def server_error(e):
        return error_response("SERVER_ERROR", "Internal server error", status=500)

    register_commands(app)

    return app


def register_commands(app):
    @app.cli.command("create-admin")
    @click.option("--email", required=True)
    @click.option("--username", default="Admin")
    @click.option("--password", prompt=True, hide_input=True, confirmation_prompt=True)
    def create_admin(email, username, password):
        """Create an admin account."""
        from crumbsy.models.user import User
        from crumbsy.utils.auth_utils import hash_password

        if User.query.filter(db.or_(User.email == email, User.username == username)).first():
            raise click.ClickException("A user with that email or username already exists")

        admin = User(
            email=email,
            username=username,
            password_hash=hash_password(password),
            name="System Administrator",
            role="admin",
        )
        db.session.add(admin)
        db.session.commit()
        click.echo(f"Created admin {admin.id}")
