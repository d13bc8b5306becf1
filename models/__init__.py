"""Database initialization and model exports."""

from flask_sqlalchemy import SQLAlchemy


db = SQLAlchemy()

# Import models to register them with SQLAlchemy metadata.
from .account import Account  # noqa: E402,F401

__all__ = [
    "db",
    "Account",
]
