# backend/wsgi.py
from opsengine import create_app

app = create_app()
