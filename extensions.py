"""
extensions.py - Flask Extensions
Extensions are created here and bound to the app in app.py with init_app().
Keeping them here lets models and services import them without circular imports.
"""

from flask_sqlalchemy import SQLAlchemy
from flask_migrate import Migrate
from flask_login import LoginManager
from flask_bcrypt import Bcrypt

# ORM session shared by models and services.
# Every mutating service commits once so that a score entry and its
# audit log row land together.
db = SQLAlchemy()

# Schema migrations: flask db init, flask db migrate, flask db upgrade
migrate = Migrate()

# Session management for staff accounts
login_manager = LoginManager()

# Password hashing (stored credentials are never plain text)
bcrypt = Bcrypt()
