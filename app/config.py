import os
from pathlib import Path

from dotenv import load_dotenv

# Load .env from project root
env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(dotenv_path=env_path)

# Managed Postgres in production; local SQLite file for development
DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./recurring_jobs.db")

# Hosting platform auth service (token -> user lookup)
AUTH_SERVICE_URL = os.getenv("AUTH_SERVICE_URL", "http://localhost:54321")
AUTH_SERVICE_API_KEY = os.getenv("AUTH_SERVICE_API_KEY")
AUTH_SERVICE_TIMEOUT = float(os.getenv("AUTH_SERVICE_TIMEOUT", "10"))

# Frontend base URL (CORS default)
FRONTEND_URL = os.getenv("FRONTEND_URL", "http://localhost:3000")
CORS_ORIGINS = [
    origin.strip()
    for origin in os.getenv("CORS_ORIGINS", FRONTEND_URL).split(",")
    if origin.strip()
]

# Recurring jobs: how far ahead instances are pre-generated
RECURRING_HORIZON_DAYS = int(os.getenv("RECURRING_HORIZON_DAYS", "90"))
# Upper bound on an explicitly requested horizon
RECURRING_MAX_HORIZON_DAYS = int(os.getenv("RECURRING_MAX_HORIZON_DAYS", "730"))

# Redis for the ARQ worker
REDIS_URL = os.getenv("REDIS_URL")
REDIS_HOST = os.getenv("REDIS_HOST", "localhost")
REDIS_PORT = int(os.getenv("REDIS_PORT", "6379"))
REDIS_PASSWORD = os.getenv("REDIS_PASSWORD")
REDIS_SSL = os.getenv("REDIS_SSL", "false").lower() == "true"
