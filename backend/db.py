# backend/db.py
import os

from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

# Build DB URL from env (matches docker-compose and .env.example)
_host = os.getenv("POSTGRES_HOST", "postgres")
_port = os.getenv("POSTGRES_PORT", "5432")
_db = os.getenv("POSTGRES_DB", "hikinghelper")
_user = os.getenv("POSTGRES_USER", "hikinghelper")
_pwd = os.getenv("POSTGRES_PASSWORD", "hikinghelper")

DATABASE_URL = os.getenv(
    "DATABASE_URL",
    f"postgresql://{_user}:{_pwd}@{_host}:{_port}/{_db}",
)


def _engine_options(url: str) -> dict:
    if not url.startswith("sqlite"):
        return {}
    options = {"connect_args": {"check_same_thread": False}}
    # in-memory sqlite lives inside a single connection
    if url in ("sqlite://", "sqlite:///:memory:"):
        options["poolclass"] = StaticPool
    return options


engine = create_engine(DATABASE_URL, **_engine_options(DATABASE_URL))

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
