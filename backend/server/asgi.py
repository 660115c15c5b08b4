"""
ASGI entry point.

Used by uvicorn (`uvicorn server.asgi:app` from backend/). Environment
variables from a local .env are loaded before the config is read.
"""

from dotenv import load_dotenv

load_dotenv()

from config import AppConfig  # pylint: disable=wrong-import-position
from server.app import create_app  # pylint: disable=wrong-import-position

config = AppConfig.load_from_env()
app = create_app(config)
