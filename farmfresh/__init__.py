import logging
import os

from dotenv import load_dotenv
from flask import Flask, redirect, request, url_for
from werkzeug.middleware.proxy_fix import ProxyFix

from farmfresh.cli import register_commands
from farmfresh.config import config_by_env
from farmfresh.errors import UnauthenticatedError, register_error_handlers, wants_json
from farmfresh.extensions import bcrypt, cache, csrf, db, limiter, login_manager, migrate
from farmfresh.models import User
from farmfresh.routes.api.v1 import api_v1_bp
from farmfresh.routes.web.auth import web_auth_bp
from farmfresh.routes.web.cart import web_cart_bp
from farmfresh.routes.web.product import web_product_bp
from farmfresh.routes.web.shop import web_shop_bp

PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))


@login_manager.user_loader
def load_user(user_id):
    return db.session.get(User, int(user_id))


@login_manager.unauthorized_handler
def handle_unauthorized():
    if wants_json():
        raise UnauthenticatedError("Login required.")
    return redirect(url_for("web_auth.login", next=request.path))


def create_app(config_name=None):
    load_dotenv()
    env = config_name or os.getenv("FLASK_ENV", "development")

    app = Flask(__name__, instance_relative_config=True)
    app.config.from_object(config_by_env.get(env, config_by_env["development"]))
    app.wsgi_app = ProxyFix(app.wsgi_app, x_for=1, x_proto=1, x_host=1, x_port=1)

    _configure_logging(app)
    _resolve_sqlite_path(app)

    db.init_app(app)
    migrate.init_app(app, db)
    bcrypt.init_app(app)
    csrf.init_app(app)
    cache.init_app(app)
    # Default limits come from RATELIMIT_DEFAULT.
    limiter.init_app(app)
    login_manager.init_app(app)
    _init_sentry(app, env)

    register_error_handlers(app)
    register_commands(app)

    app.register_blueprint(web_auth_bp)
    app.register_blueprint(web_shop_bp)
    app.register_blueprint(web_cart_bp)
    app.register_blueprint(web_product_bp)
    app.register_blueprint(api_v1_bp, url_prefix="/api/v1")

    @app.shell_context_processor
    def shell_context():
        return {"db": db, "User": User}

    if env == "development":
        with app.app_context():
            db.create_all()

    app.logger.debug("FarmFresh app created for %s", env)
    return app


def _configure_logging(app):
    level = logging.getLevelName(app.config.get("LOG_LEVEL", "INFO"))
    if not isinstance(level, int):
        level = logging.INFO
    app.logger.setLevel(level)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)


def _resolve_sqlite_path(app):
    """Anchor relative sqlite files at the project root instead of the cwd."""
    db_uri = app.config.get("SQLALCHEMY_DATABASE_URI", "")
    if not db_uri.startswith("sqlite:///") or db_uri.startswith("sqlite:////"):
        return
    relative_path = db_uri.replace("sqlite:///", "", 1)
    if relative_path == ":memory:":
        return
    absolute_path = os.path.join(PROJECT_ROOT, relative_path)
    os.makedirs(os.path.dirname(absolute_path), exist_ok=True)
    app.config["SQLALCHEMY_DATABASE_URI"] = f"sqlite:///{absolute_path}"


def _init_sentry(app, env):
    dsn = app.config.get("SENTRY_DSN")
    if not dsn:
        return
    try:
        import sentry_sdk
        from sentry_sdk.integrations.flask import FlaskIntegration

        sentry_sdk.init(
            dsn=dsn,
            integrations=[FlaskIntegration()],
            traces_sample_rate=float(os.getenv("SENTRY_TRACES_SAMPLE_RATE", "0.05")),
            environment=env,
        )
        app.logger.info("Sentry initialized for %s.", env)
    except Exception as exc:
        app.logger.warning("Sentry initialization failed: %s", exc)
