"""
Runboard
Database handle shared by all models.

Usage:
    from runboard.models import db
"""

from flask_sqlalchemy import SQLAlchemy

db = SQLAlchemy()
