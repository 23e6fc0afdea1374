import os
from pathlib import Path
import logging
from logging.handlers import RotatingFileHandler
from flask import Flask, request, session, g
from .extensions import db, migrate, login_manager, csrf, mail, babel
from .config import Config
from .models import User
from .auth_context import build_viewer_context
from flask_login import current_user

# Blueprints
from .blueprints.errors import errors_bp
from .blueprints.auth import auth_bp
from .blueprints.profiles import profiles_bp
from .blueprints.jobs import jobs_bp
from .blueprints.guest_spots import guest_spots_bp
from .blueprints.chat import chat_bp
from .blueprints.admin import admin_bp
from .blueprints.media import media_bp


# Optional: Sentry
def _init_sentry(app):
    dsn = app.config.get("SENTRY_DSN")
    if not dsn:
        return
    try:
        import sentry_sdk
        from sentry_sdk.integrations.flask import FlaskIntegration
        from sentry_sdk.integrations.sqlalchemy import SqlalchemyIntegration

        sentry_sdk.init(
            dsn=dsn,
            integrations=[FlaskIntegration(), SqlalchemyIntegration()],
            traces_sample_rate=app.config.get("SENTRY_TRACES_SAMPLE_RATE", 0.0),
            environment=os.getenv("ENV", "development"),
            release=os.getenv("GIT_COMMIT", None),
            send_default_pii=False,
        )
        app.logger.info("Sentry initialized.")
    except Exception as e:
        app.logger.warning(f"Sentry init failed: {e}")

def _init_logging(app):
    level_name = app.config.get("LOG_LEVEL", "INFO").upper()
    level = getattr(logging, level_name, logging.INFO)
    app.logger.setLevel(level)

    log_dir = Path(app.config.get("LOG_DIR", "logs"))
    log_dir.mkdir(parents=True, exist_ok=True)
    log_path = log_dir / app.config.get("LOG_FILENAME", "fitwork.log")

    if app.config.get("LOG_JSON", False):
        import json_log_formatter
        formatter = json_log_formatter.JSONFormatter()
    else:
        formatter = logging.Formatter("[%(asctime)s] %(levelname)s in %(module)s: %(message)s")

    # Rotating file handler (5MB x 5)
    file_handler = RotatingFileHandler(
        log_path, maxBytes=5_000_000, backupCount=5, encoding="utf-8"
    )
    file_handler.setLevel(level)
    file_handler.setFormatter(formatter)

    stream_handler = logging.StreamHandler()
    stream_handler.setLevel(level)
    stream_handler.setFormatter(formatter)

    # app.logger is the "fitwork" logger, so fitwork.services.* records land here too.
    # Drop handlers left by an earlier app built in the same process.
    for old in list(app.logger.handlers):
        if isinstance(old, (RotatingFileHandler, logging.StreamHandler)):
            app.logger.removeHandler(old)
            old.close()
    app.logger.addHandler(file_handler)
    app.logger.addHandler(stream_handler)

    app.logger.info("Logging initialized.")

def create_app(config_object=None):
    app = Flask(__name__, instance_relative_config=True)
    app.config.from_object(config_object or Config)

    app.config.setdefault("SQLALCHEMY_TRACK_MODIFICATIONS", False)
    app.config.setdefault("LANGUAGES", ["en"])

    # ensure instance & uploads
    Path(app.instance_path).mkdir(parents=True, exist_ok=True)
    Path(app.config["UPLOAD_FOLDER"]).mkdir(parents=True, exist_ok=True)

    # Extensions
    db.init_app(app)
    migrate.init_app(app, db)
    login_manager.init_app(app)
    csrf.init_app(app)
    mail.init_app(app)

    def _select_locale():
        return (
            session.get("lang")
            or request.accept_languages.best_match(app.config.get("LANGUAGES", ["en"]))
            or "en"
        )
    babel.init_app(app, locale_selector=_select_locale)

    if config_object is None:
        app.config.from_pyfile("config.py", silent=True)

    @login_manager.user_loader
    def load_user(user_id):
        return db.session.get(User, int(user_id))

    @login_manager.unauthorized_handler
    def _unauthorized():
        from .blueprints.errors.routes import json_error
        return json_error(401, "Sign in required.")

    @app.before_request
    def _load_viewer():
        g.viewer = build_viewer_context(current_user)

    # Logging must come before blueprints so errors during register are captured
    _init_logging(app)
    _init_sentry(app)

    app.register_blueprint(errors_bp)
    app.register_blueprint(auth_bp, url_prefix="/auth")
    app.register_blueprint(profiles_bp, url_prefix="/profiles")
    app.register_blueprint(jobs_bp, url_prefix="/jobs")
    app.register_blueprint(guest_spots_bp, url_prefix="/guest-spots")
    app.register_blueprint(chat_bp, url_prefix="/chat")
    app.register_blueprint(admin_bp, url_prefix="/admin")
    app.register_blueprint(media_bp, url_prefix="/media")

    @app.route("/health")
    def health():
        return {"ok": True, "version": app.config.get("APP_VERSION")}

    return app
