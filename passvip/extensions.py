"""
Shared Flask extension instances.

Bound to the application inside create_app(); import these rather than
constructing new ones.
"""
from flask_sqlalchemy import SQLAlchemy
from flask_migrate import Migrate

db = SQLAlchemy()

# Alembic migrations live in migrations/versions
migrate = Migrate()
