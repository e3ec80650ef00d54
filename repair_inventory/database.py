"""
Database and migration extensions for the inventory service

Used when INVENTORY_BACKEND is 'sql'; the in-memory backend never opens a
session. Migrations live under MIGRATIONS_DIR.
"""

from flask_sqlalchemy import SQLAlchemy
from flask_migrate import Migrate

db = SQLAlchemy()
migrate = Migrate(compare_type=True)


def init_db(app):
    """Bind the inventory tables and Alembic migrations to the app"""
    db.init_app(app)
    migrate.init_app(app, db, directory=app.config.get('MIGRATIONS_DIR', 'migrations'))
    app.logger.debug(f"Database bound to {app.config['SQLALCHEMY_DATABASE_URI'].split('@')[-1]}")
    return db
