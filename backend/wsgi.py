# Overview: WSGI/CLI entrypoint (FLASK_APP=wsgi.py).

from foodhub import create_app

app = create_app()
