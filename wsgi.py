"""
WSGI and Flask-Migrate / Alembic entry point.

Usage:
    FLASK_APP=wsgi flask db upgrade
    FLASK_APP=wsgi flask create-user --role coordinator --name "Maya" --email maya@acme.io
    gunicorn wsgi:app
"""

from runboard import create_app

app = create_app()
