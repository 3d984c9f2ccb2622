"""
ASGI entrypoint: `uvicorn api.main:app --host 0.0.0.0 --port 3001`.
"""

from api.app import create_app

app = create_app()
