# backend/app.py

import logging
import os
from contextlib import asynccontextmanager
from typing import Any, Dict, List

from fastapi import Depends, FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware

# --- Routers ---
from goals_router import router as goals_router
from preferences_router import router as preferences_router
from trails_router import router as trails_router

# --- DB & Models ---
from init_db import init_tables
from models import ChatMessageModel, ChatRequest, ChatResponse

# --- AI Service ---
from assistant_service import AssistantError, ChatLog, HikingAssistant
from deps import get_assistant, get_catalog, get_chat_log, get_user_id

logging.basicConfig(level=os.getenv("LOG_LEVEL", "INFO").upper())
logger = logging.getLogger("uvicorn")


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_tables()
    yield


app = FastAPI(title="Hiking Helper Backend", lifespan=lifespan)

app.include_router(trails_router)
app.include_router(preferences_router)
app.include_router(goals_router)

# CORS (mobile / web clients)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/health")
def health() -> Dict[str, Any]:
    catalog = get_catalog()
    return {
        "status": "ok",
        "catalog_loaded": catalog.has_loaded,
        "trail_count": len(catalog.trails),
        "loaded_regions": catalog.loaded_regions,
    }


# ==============================================================
#                    Hiking assistant chat
# ==============================================================

@app.post("/chat", response_model=ChatResponse)
def chat(
    req: ChatRequest,
    user_id: str = Depends(get_user_id),
    assistant: HikingAssistant = Depends(get_assistant),
):
    try:
        answer = assistant.ask(user_id, req.user_message)
    except AssistantError as e:
        raise HTTPException(400, str(e))
    return ChatResponse(response=answer)


@app.get("/chat/history", response_model=Dict[str, List[ChatMessageModel]])
def chat_history(
    user_id: str = Depends(get_user_id),
    chat_log: ChatLog = Depends(get_chat_log),
):
    return {"messages": chat_log.history(user_id)}


@app.delete("/chat", response_model=Dict[str, Any])
def clear_chat(
    user_id: str = Depends(get_user_id),
    chat_log: ChatLog = Depends(get_chat_log),
):
    chat_log.clear(user_id)
    logger.info(f"Cleared chat transcript for {user_id}")
    return {"message": "Chat cleared"}
