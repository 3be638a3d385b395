"""
WSGI / Flask-Migrate entry point.

Usage:
    flask --app wsgi db upgrade
    flask --app wsgi create-admin admin@example.com "Site Admin" --org acme
    gunicorn wsgi:app
"""

from webreview import create_app

app = create_app()
