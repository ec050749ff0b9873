# backend/deps.py

import logging
from typing import Tuple

from fastapi import Depends, Header, HTTPException
from openai import OpenAIError
from sqlalchemy.orm import Session

from assistant_service import ChatLog, HikingAssistant
from db import get_db
from models import Trail
from preference_store import PreferenceStore
from trail_catalog import CatalogLoadError, TrailCatalog

logger = logging.getLogger(__name__)

_catalog = TrailCatalog()


def get_user_id(x_user_id: str = Header("default", alias="X-User-Id")) -> str:
    user_id = x_user_id.strip()
    if not user_id:
        raise HTTPException(400, "X-User-Id must not be empty")
    return user_id


def get_catalog() -> TrailCatalog:
    return _catalog


def get_preference_store(
    user_id: str = Depends(get_user_id),
    db: Session = Depends(get_db),
) -> PreferenceStore:
    return PreferenceStore(db, user_id)


def load_catalog_for(store: PreferenceStore, catalog: TrailCatalog) -> Tuple[Trail, ...]:
    """Trails for the user's selected states; surfaces load failures as a 500."""
    try:
        return catalog.load_if_needed(store.preferences.selected_regions)
    except CatalogLoadError as e:
        logger.error(f"Trail catalog load failed: {e}")
        raise HTTPException(500, "Failed to load trail data")


def get_chat_log(db: Session = Depends(get_db)) -> ChatLog:
    return ChatLog(db)


def get_assistant(
    db: Session = Depends(get_db),
    catalog: TrailCatalog = Depends(get_catalog),
) -> HikingAssistant:
    try:
        return HikingAssistant(db, catalog=catalog)
    except OpenAIError as e:
        logger.error(f"Assistant unavailable: {e}")
        raise HTTPException(503, "Hiking assistant is not configured")
