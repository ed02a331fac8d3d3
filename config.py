import os
from typing import List

from dotenv import load_dotenv

load_dotenv()

# Database
DATABASE_URL = os.getenv("DATABASE_URL")
DATABASE_NAME = os.getenv("DATABASE_NAME", "storefront")

# JWT Config
JWT_SECRET = os.getenv("JWT_SECRET", "dev-secret-change")
JWT_ALGORITHM = "HS256"
JWT_EXPIRE_MINUTES = int(os.getenv("JWT_EXPIRE_MINUTES", 60 * 24 * 7))  # 7 days

# Password hashing work factor
BCRYPT_ROUNDS = int(os.getenv("BCRYPT_ROUNDS", 10))

# Stream chat
STREAM_API_KEY = os.getenv("STREAM_API_KEY", "")
STREAM_API_SECRET = os.getenv("STREAM_API_SECRET", "")

CLIENT_URL = os.getenv("CLIENT_URL", "http://localhost:5173")

UPLOAD_DIR = os.getenv("UPLOAD_DIR", "uploads")
MAX_UPLOAD_SIZE_MB = int(os.getenv("MAX_UPLOAD_SIZE_MB", 5))

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
PORT = int(os.getenv("PORT", 8000))

REQUIRED_SETTINGS = ("DATABASE_URL", "JWT_SECRET", "STREAM_API_KEY", "STREAM_API_SECRET", "CLIENT_URL")


def missing_settings() -> List[str]:
    """Names of required settings absent from the environment."""
    return [name for name in REQUIRED_SETTINGS if not os.getenv(name)]


def chat_configured() -> bool:
    return bool(STREAM_API_KEY and STREAM_API_SECRET)
