# Overview: Flask extension instances for the record store and migrations.

from flask_sqlalchemy import SQLAlchemy
from flask_migrate import Migrate

db = SQLAlchemy()
migrate = Migrate()

# Key under app.extensions holding the wired Engine (see engine.py)
ENGINE_KEY = "opsengine"
