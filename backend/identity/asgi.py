"""ASGI entry point: uvicorn identity.asgi:app"""

from identity.main import create_app

app = create_app()
