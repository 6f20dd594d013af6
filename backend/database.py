import logging
import os

from dotenv import load_dotenv
from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker

logger = logging.getLogger(__name__)

# Load environment variables from .env file (if exists)
load_dotenv()

# MSSQL connection variables
DB_USER = os.getenv("DB_USER")
DB_NAME = os.getenv("DB_NAME")
DB_HOST = os.getenv("DB_HOST")
DB_PORT = os.getenv("DB_PORT")
DB_PASS = os.getenv("DB_PASS")


def _sqlite_url() -> str:
    """Pick a writable location for the SQLite fallback database."""
    explicit = os.getenv("SQLITE_PATH")
    if explicit:
        return f"sqlite:///{explicit}"
    if os.path.isdir("/tmp") and os.access("/tmp", os.W_OK):
        return "sqlite:////tmp/skillhive.db"
    return "sqlite:///./skillhive.db"


def resolve_database_url() -> str:
    if DB_USER and DB_NAME and DB_HOST and DB_PORT and DB_PASS:
        return (
            f"mssql+pyodbc://{DB_USER}:{DB_PASS}@{DB_HOST}:{DB_PORT}/{DB_NAME}"
            f"?driver=ODBC+Driver+18+for+SQL+Server&TrustServerCertificate=yes"
        )
    # PostgreSQL (including a Supabase database connection string), etc.
    if os.getenv("DATABASE_URL"):
        return os.getenv("DATABASE_URL")
    return _sqlite_url()


SQLALCHEMY_DATABASE_URL = resolve_database_url()
connect_args = {"check_same_thread": False} if SQLALCHEMY_DATABASE_URL.startswith("sqlite") else {}

# Lazy connection: nothing is opened until the first session is used
engine = create_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args=connect_args,
    pool_pre_ping=True,
)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def database_kind(url: str = SQLALCHEMY_DATABASE_URL) -> str:
    lowered = url.lower()
    if lowered.startswith("mssql"):
        return "MSSQL"
    if lowered.startswith("postgres"):
        return "PostgreSQL"
    if lowered.startswith("sqlite"):
        return "SQLite"
    return lowered.split(":", 1)[0]


def init_db(bind=None) -> None:
    """Create all tables that do not exist yet."""
    import models  # noqa: F401  registers the mapped classes on Base

    bind = bind or engine
    Base.metadata.create_all(bind=bind)
    logger.info("Database tables created/verified (%s)", database_kind(str(bind.url)))
