import os
from pathlib import Path

from dotenv import load_dotenv

# Load .env from project root
env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(dotenv_path=env_path)

# Relational store (clients, pets, services, staff, appointments)
DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./vetclinic.db")

# Document store (per-appointment clinical notes)
# Either REDIS_URL or the individual REDIS_* settings are used
REDIS_URL = os.getenv("REDIS_URL")
REDIS_HOST = os.getenv("REDIS_HOST", "localhost")
REDIS_PORT = int(os.getenv("REDIS_PORT", "6379"))
REDIS_PASSWORD = os.getenv("REDIS_PASSWORD", None)
REDIS_DB = int(os.getenv("REDIS_DB", "0"))
REDIS_SSL = os.getenv("REDIS_SSL", "false").lower() == "true"
DOCUMENT_KEY_PREFIX = os.getenv("DOCUMENT_KEY_PREFIX", "vetclinic:appointment_detail:")

# Field-level encryption key for client/pet/service/staff display columns
# Generate with: python -c "from cryptography.fernet import Fernet; print(Fernet.generate_key().decode())"
FIELD_ENCRYPTION_KEY = os.getenv("FIELD_ENCRYPTION_KEY")
if not FIELD_ENCRYPTION_KEY:
    import warnings

    warnings.warn(
        "FIELD_ENCRYPTION_KEY not set! Encrypted columns will be returned as stored",
        RuntimeWarning,
        stacklevel=2,
    )

# Mount point for the appointment routes ("" keeps /lista, /crear, ...)
API_PREFIX = os.getenv("API_PREFIX", "")

# Comma separated list of origins allowed by CORS
ALLOWED_ORIGINS = os.getenv(
    "ALLOWED_ORIGINS", "http://localhost:5173,http://localhost:3000"
).split(",")

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
