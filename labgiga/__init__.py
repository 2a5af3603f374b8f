import click
from flask import Flask, jsonify
from werkzeug.exceptions import HTTPException

from labgiga.config import Config
from labgiga.errors import DomainError
from labgiga.extensions import cors, db, jwt, mail, migrate


def create_app(config_object=Config):
    app = Flask(__name__)
    app.config.from_object(config_object)

    # 1) db first, the models and CLI commands need it
    db.init_app(app)
    from labgiga import models  # noqa: F401  registers the tables

    # 2) other extensions
    migrate.init_app(app, db)
    jwt.init_app(app)
    mail.init_app(app)
    cors.init_app(app, origins=app.config["CORS_ORIGINS"], supports_credentials=True)
    _register_jwt_callbacks()

    # 3) API blueprints
    from labgiga.controllers.auth_controller import auth_bp
    from labgiga.controllers.borrowing_controller import borrowing_bp
    from labgiga.controllers.extension_controller import extension_bp
    from labgiga.controllers.item_controller import item_bp
    from labgiga.controllers.user_controller import user_bp
    app.register_blueprint(auth_bp, url_prefix="/auth")
    app.register_blueprint(user_bp, url_prefix="/users")
    app.register_blueprint(item_bp, url_prefix="/items")
    app.register_blueprint(borrowing_bp, url_prefix="/borrowings")
    app.register_blueprint(extension_bp, url_prefix="/extensions")

    @app.get("/health")
    def health():
        return jsonify({"ok": True})

    _register_error_handlers(app)
    _register_cli(app)

    # overdue sweep
    from labgiga.tasks.scheduler import start_scheduler
    start_scheduler(app)

    return app


def _register_error_handlers(app):
    @app.errorhandler(DomainError)
    def handle_domain_error(e):
        db.session.rollback()
        return jsonify(e.to_dict()), e.status_code

    @app.errorhandler(HTTPException)
    def handle_http_error(e):
        return jsonify({"success": False, "message": e.description, "error": e.name}), e.code


def _register_jwt_callbacks():
    from labgiga.repositories.token_repo import TokenRepo
    from labgiga.repositories.user_repo import UserRepo

    def _unauthorized(message):
        return jsonify({"success": False, "message": message, "error": "Unauthorized"}), 401

    @jwt.user_lookup_loader
    def load_user(_jwt_header, jwt_data):
        return UserRepo.get_by_id(int(jwt_data["sub"]))

    @jwt.token_in_blocklist_loader
    def is_revoked(_jwt_header, jwt_payload):
        return TokenRepo.is_revoked(jwt_payload["jti"])

    @jwt.unauthorized_loader
    def missing_token(reason):
        return _unauthorized(reason)

    # the web client treats every token problem as "log out", so all of them are 401
    @jwt.invalid_token_loader
    def invalid_token(reason):
        return _unauthorized(reason)

    @jwt.expired_token_loader
    def expired_token(_jwt_header, _jwt_payload):
        return _unauthorized("Token has expired")

    @jwt.revoked_token_loader
    def revoked_token(_jwt_header, _jwt_payload):
        return _unauthorized("Token has been revoked")

    @jwt.user_lookup_error_loader
    def unknown_user(_jwt_header, _jwt_payload):
        return _unauthorized("User no longer exists")


def _register_cli(app):
    @app.cli.command("init-db")
    def init_db():
        """Create all tables."""
        db.create_all()
        click.echo("Database tables created.")

    @app.cli.command("create-admin")
    @click.option("--email", prompt=True)
    @click.option("--name", prompt=True)
    @click.option("--password", prompt=True, hide_input=True, confirmation_prompt=True)
    def create_admin(email, name, password):
        """Create an ADMIN account."""
        from labgiga.models.status import Role
        from labgiga.services.auth_service import AuthService

        try:
            user = AuthService.register(email=email, password=password, name=name, role=Role.ADMIN.value)
        except DomainError as e:
            raise click.ClickException(e.message)
        click.echo(f"Admin {user.email} created (id={user.id}).")

    @app.cli.command("overdue-check")
    def overdue_check():
        """Run the overdue sweep once."""
        from labgiga.tasks.overdue_check import check_overdue

        result = check_overdue()
        click.echo(f"checked={result['checked']} flagged={len(result['flagged'])}")
