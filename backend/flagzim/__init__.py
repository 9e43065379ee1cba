from flask import Flask
from flask_sqlalchemy import SQLAlchemy
from flask_cors import CORS
from flask_migrate import Migrate
from flask_socketio import SocketIO
import click
from config import Config

db = SQLAlchemy()
migrate = Migrate()
socketio = SocketIO(cors_allowed_origins='*', async_mode=None)

CATALOG_EXTENSION = 'country_catalog'


def create_app(config_class=Config, catalog=None):
    """Build the Flask app.

    ``catalog`` is the country reference data the handlers serve. When not
    given, an unloaded catalog is built from the config; ``load_reference_data``
    (or ``run.py``) must load it before the app takes traffic.
    """
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)

    db.init_app(flask_app)
    migrate.init_app(flask_app, db)
    CORS(flask_app, origins=flask_app.config.get('CORS_ORIGINS', '*'))

    socketio.init_app(flask_app, cors_allowed_origins=flask_app.config.get('CORS_ORIGINS', '*'))

    from flagzim.services.countries import CountryCatalog
    if catalog is None:
        catalog = CountryCatalog.from_config(flask_app.config)
    flask_app.extensions[CATALOG_EXTENSION] = catalog

    from flagzim.main import main
    flask_app.register_blueprint(main)

    from flagzim.api.ranking import ranking
    flask_app.register_blueprint(ranking)

    from flagzim.socketio_events import register_socketio_handlers
    register_socketio_handlers()

    # Models must be imported before create_all / migrations see the metadata
    from flagzim import models  # noqa: F401

    @click.command('db-reset')
    def db_reset_command():
        """Drops and recreates the score tables."""
        with flask_app.app_context():
            db.drop_all()
            db.create_all()
            print('Database has been reset!')

    @click.command('countries-refresh')
    def countries_refresh_command():
        """Downloads the country list again and rewrites the local cache."""
        entries = get_catalog(flask_app).refresh()
        print(f'Cached {len(entries)} countries.')

    flask_app.cli.add_command(db_reset_command)
    flask_app.cli.add_command(countries_refresh_command)

    return flask_app


def get_catalog(flask_app):
    return flask_app.extensions[CATALOG_EXTENSION]


def load_reference_data(flask_app) -> None:
    """Boot step: create tables and load the country catalog.

    Raises UpstreamFetchError when there is neither a usable cache nor a
    reachable source; the service must not start serving in that case.
    """
    with flask_app.app_context():
        db.create_all()
    catalog = get_catalog(flask_app)
    catalog.load()
    flask_app.logger.info(f"[boot] countries ready: {len(catalog)}")
