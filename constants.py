import os
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

# === Token configuration ===
JWT_SECRET = os.getenv("JWT_SECRET", "change-this-secret")
JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
ACCESS_TOKEN_EXPIRE_MINUTES = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", "1440"))

# === HTTP configuration ===
API_PREFIX = os.getenv("API_PREFIX", "/api")
HOST = os.getenv("HOST", "0.0.0.0")
PORT = int(os.getenv("PORT", "5000"))
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()


def _split_origins(raw: str) -> list[str]:
    origins = [o.strip() for o in raw.split(",") if o.strip()]
    return origins or ["*"]


CORS_ALLOW_ORIGINS = _split_origins(os.getenv("CORS_ALLOW_ORIGINS", "*"))
