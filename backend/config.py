import os
import secrets

from dotenv import load_dotenv

load_dotenv()

# Which persistence backend serves the API: "sql" (SQLAlchemy) or "supabase"
STORE_BACKEND = os.getenv("STORE_BACKEND", "sql").lower()
SUPABASE_URL = os.getenv("SUPABASE_URL")
SUPABASE_KEY = os.getenv("SUPABASE_KEY")

# JWT Configuration
SECRET_KEY = os.getenv("SECRET_KEY", secrets.token_urlsafe(32))
ALGORITHM = "HS256"
ACCESS_TOKEN_EXPIRE_MINUTES = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", 30))

BCRYPT_ROUNDS = int(os.getenv("BCRYPT_ROUNDS", 10))

# The admin account is identified by email only; it is never a stored flag
ADMIN_EMAIL = os.getenv("ADMIN_EMAIL", "adminkareskillhive@klu.ac.in")
ADMIN_PASSWORD = os.getenv("ADMIN_PASSWORD")

CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
LOG_FILE = os.getenv("LOG_FILE")
