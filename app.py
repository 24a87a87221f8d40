import os
import sys
import logging

from flask import Flask
from werkzeug.middleware.proxy_fix import ProxyFix

from extensions import db, migrate, cors
from formatting import DEFAULT_TIMEZONE, format_lkr, format_time


def _database_url():
    database_url = os.environ.get("DATABASE_URL", "sqlite:///hotel.db")
    # Fix for Heroku/Render postgres:// URLs (should be postgresql://)
    if database_url.startswith("postgres://"):
        database_url = database_url.replace("postgres://", "postgresql://", 1)
    return database_url


TEMPLATE_DIRS = (
    os.path.join(os.path.dirname(os.path.abspath(__file__)), 'templates'),
    # non-editable installs ship the templates as data files
    os.path.join(sys.prefix, 'share', 'front-desk-billing', 'templates'),
)


def _template_folder(candidates=TEMPLATE_DIRS):
    for folder in candidates:
        if os.path.isdir(folder):
            return folder
    return candidates[0]


def create_app(test_config=None):
    # Set up logging
    logging.basicConfig(level=os.environ.get("LOG_LEVEL", "DEBUG").upper())

    app = Flask(__name__, template_folder=_template_folder())
    app.secret_key = os.environ.get("SESSION_SECRET", "front_desk_secret_key")
    app.wsgi_app = ProxyFix(app.wsgi_app, x_proto=1, x_host=1)

    app.config.from_mapping(
        SQLALCHEMY_DATABASE_URI=_database_url(),
        SQLALCHEMY_TRACK_MODIFICATIONS=False,
        HOTEL_NAME=os.environ.get("HOTEL_NAME", "Hotel Front Desk"),
        HOTEL_TIMEZONE=os.environ.get("HOTEL_TIMEZONE", DEFAULT_TIMEZONE),
        CORS_ORIGINS=os.environ.get("CORS_ORIGINS", "http://localhost:*,http://127.0.0.1:*"),
        SEED_DATA=os.environ.get("SEED_DATA", "1") not in ("0", "false", "False"),
    )
    if app.config["SQLALCHEMY_DATABASE_URI"].startswith("postgresql"):
        app.config["SQLALCHEMY_ENGINE_OPTIONS"] = {
            "pool_recycle": 300,
            "pool_pre_ping": True,
        }
    if test_config:
        app.config.update(test_config)

    origins = [o.strip() for o in app.config["CORS_ORIGINS"].split(",") if o.strip()]
    cors.init_app(app, resources={r"/api/*": {"origins": origins}}, supports_credentials=True)

    # Initialize the extensions
    db.init_app(app)
    migrate.init_app(app, db)

    from routes import api_bp
    app.register_blueprint(api_bp)

    @app.template_filter('local_time')
    def local_time_filter(value):
        return format_time(value, app.config["HOTEL_TIMEZONE"])

    app.template_filter('lkr')(format_lkr)

    with app.app_context():
        # Import the models here so their tables will be created
        import models  # noqa: F401
        db.create_all()

        if app.config["SEED_DATA"] and not app.testing:
            from init_data import create_initial_data
            create_initial_data()

    app.logger.info("Front desk API ready on %s", app.config["SQLALCHEMY_DATABASE_URI"].split("@")[-1])
    return app


if __name__ == "__main__":
    port = int(os.environ.get("PORT", 5000))
    create_app().run(host="0.0.0.0", port=port, debug=False)
