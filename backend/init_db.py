# backend/init_db.py
import logging

from db import Base, engine

# registers the tables on Base.metadata
import models  # noqa: F401

logger = logging.getLogger("uvicorn")


def init_tables():
    logger.info("Checking database tables...")
    Base.metadata.create_all(bind=engine)
    logger.info("Database tables initialized successfully.")


def drop_tables():
    Base.metadata.drop_all(bind=engine)
