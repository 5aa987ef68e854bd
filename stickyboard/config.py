import logging
import os
from urllib.parse import quote_plus

from dotenv import load_dotenv

load_dotenv()

SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-key-change-in-production")
TOKEN_EXPIRY_DAYS = int(os.getenv("TOKEN_EXPIRY_DAYS", 30))

DATABASE_HOST = os.getenv("DATABASE_HOST", "localhost")
DATABASE_PORT = int(os.getenv("DATABASE_PORT", 5432))
DATABASE_USER = os.getenv("DATABASE_USER", "postgres")
DATABASE_PASSWORD = os.getenv("DATABASE_PASSWORD", "postgres")
DATABASE_NAME = os.getenv("DATABASE_NAME", "postgres")
DATABASE_URL = os.getenv("DATABASE_URL")

API_URL = os.getenv("STICKYBOARD_API_URL", "http://localhost:5000")
API_TIMEOUT = float(os.getenv("STICKYBOARD_API_TIMEOUT", 10))

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()


def database_url():
    """SQLAlchemy-style URL for migrations; DATABASE_URL wins over the parts."""
    if DATABASE_URL:
        return DATABASE_URL
    return (
        f"postgresql://{quote_plus(DATABASE_USER)}:{quote_plus(DATABASE_PASSWORD)}"
        f"@{DATABASE_HOST}:{DATABASE_PORT}/{DATABASE_NAME}"
    )


def configure_logging(level=None):
    logging.basicConfig(
        level=level or LOG_LEVEL,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
