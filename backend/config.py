import os
from pathlib import Path

from dotenv import load_dotenv

load_dotenv(dotenv_path=(Path(__file__).parent / ".env"))

# Database
DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./projects.db")
DATABASE_ECHO = os.getenv("DATABASE_ECHO", "false").lower() in ("1", "true", "yes")

# Logging
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# CORS settings
CORS_ALLOW_ORIGINS = os.getenv("CORS_ALLOW_ORIGINS", "http://localhost:4200,http://127.0.0.1:4200").split(",")

# Uvicorn server settings
UVICORN_HOST = os.getenv("UVICORN_HOST", "0.0.0.0")
UVICORN_PORT = int(os.getenv("UVICORN_PORT", "8000"))
