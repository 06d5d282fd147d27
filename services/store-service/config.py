"""Configuration settings for the store service."""
import os
from urllib.parse import urlparse

from dotenv import load_dotenv

load_dotenv()

# Database Configuration
MONGO_URI = os.getenv("MONGO_URI", "mongodb://0.0.0.0:27017/mongo-crud")
DATABASE_NAME = os.getenv("DATABASE_NAME") or urlparse(MONGO_URI).path.lstrip("/") or "mongo-crud"
MONGO_SERVER_SELECTION_TIMEOUT_MS = int(os.getenv("MONGO_SERVER_SELECTION_TIMEOUT_MS", "5000"))

# Observability
OTEL_EXPORTER_OTLP_ENDPOINT = os.getenv("OTEL_EXPORTER_OTLP_ENDPOINT", "http://localhost:4317")
TELEMETRY_ENABLED = os.getenv("TELEMETRY_ENABLED", "true").lower() == "true"
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# Pyroscope Configuration
PYROSCOPE_SERVER = os.getenv("PYROSCOPE_SERVER_ADDRESS", "http://localhost:4040")
PROFILING_ENABLED = os.getenv("PROFILING_ENABLED", "false").lower() == "true"

# Pagination
DEFAULT_PAGE = 1
DEFAULT_PAGE_SIZE = 10

# Application Settings
SERVICE_NAME = "store-service"
API_VERSION = "1.0.0"
PORT = int(os.getenv("PORT", "8000"))
