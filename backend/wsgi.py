# backend/wsgi.py
from uniform_studio import create_app

app = create_app()
