"""
WSGI / Flask CLI entry point.

Usage:
    FLASK_APP=wsgi.py flask seed-form-configs
    FLASK_APP=wsgi.py flask seed-users
    FLASK_APP=wsgi.py flask issue-token oliva.perera@testdimo.com
    FLASK_APP=wsgi.py flask db upgrade
    gunicorn wsgi:app
"""

from legal_desk import create_app

app = create_app()
