# backend/preferences_router.py

from typing import Any, Dict

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from db import get_db
from deps import get_catalog, get_preference_store, get_user_id
from models import (
    AnswerRequest,
    PreferencesResponse,
    PreferencesUpdate,
    QuestionnaireResponse,
    RegionSelectionRequest,
)
from preference_store import PreferenceStore, PreferenceValidationError
from questionnaire import InvalidAnswerError, QuestionnaireManager
from trail_catalog import TrailCatalog

router = APIRouter(tags=["preferences"])


# ==============================================================
#                       /preferences
# ==============================================================

@router.get("/preferences", response_model=PreferencesResponse)
def get_preferences(store: PreferenceStore = Depends(get_preference_store)):
    return PreferencesResponse.from_preferences(store.preferences)


@router.put("/preferences", response_model=PreferencesResponse)
def update_preferences(payload: PreferencesUpdate, store: PreferenceStore = Depends(get_preference_store)):
    try:
        prefs = store.update(payload)
    except PreferenceValidationError as e:
        raise HTTPException(400, str(e))
    return PreferencesResponse.from_preferences(prefs)


@router.post("/preferences/reset", response_model=PreferencesResponse)
def reset_preferences(store: PreferenceStore = Depends(get_preference_store)):
    return PreferencesResponse.from_preferences(store.reset())


@router.post("/preferences/onboarding/complete", response_model=PreferencesResponse)
def complete_onboarding(store: PreferenceStore = Depends(get_preference_store)):
    return PreferencesResponse.from_preferences(store.complete_onboarding())


@router.post("/preferences/completed/{trail_id}/toggle", response_model=Dict[str, Any])
def toggle_completed_trail(trail_id: int, store: PreferenceStore = Depends(get_preference_store)):
    prefs = store.toggle_trail_completion(trail_id)
    return {"trail_id": trail_id, "completed": prefs.is_trail_completed(trail_id),
            "completed_trail_count": prefs.completed_trail_count}


@router.delete("/preferences/completed", response_model=PreferencesResponse)
def clear_completed_trails(store: PreferenceStore = Depends(get_preference_store)):
    return PreferencesResponse.from_preferences(store.clear_completed_trails())


# --- selected states (the catalog follows the selection) ---

@router.post("/preferences/regions/{code}/toggle", response_model=PreferencesResponse)
def toggle_region(
    code: str,
    store: PreferenceStore = Depends(get_preference_store),
    catalog: TrailCatalog = Depends(get_catalog),
):
    if len(code.strip()) != 2:
        raise HTTPException(400, "Region code must be a 2-letter state code")
    prefs = store.toggle_region(code)
    if catalog.has_loaded and prefs.selected_regions:
        if store.is_region_selected(code):
            catalog.add_region(code)
        else:
            catalog.remove_region(code)
    return PreferencesResponse.from_preferences(prefs)


@router.put("/preferences/regions", response_model=PreferencesResponse)
def set_regions(payload: RegionSelectionRequest, store: PreferenceStore = Depends(get_preference_store)):
    return PreferencesResponse.from_preferences(store.set_selected_regions(payload.regions))


@router.delete("/preferences/regions", response_model=PreferencesResponse)
def clear_regions(store: PreferenceStore = Depends(get_preference_store)):
    return PreferencesResponse.from_preferences(store.clear_selected_regions())


# ==============================================================
#                       /questionnaire
# ==============================================================

def _questionnaire_payload(manager: QuestionnaireManager) -> QuestionnaireResponse:
    return QuestionnaireResponse(questions=manager.current(), answers=manager.load_answers())


@router.get("/questionnaire", response_model=QuestionnaireResponse)
def get_questionnaire(user_id: str = Depends(get_user_id), db: Session = Depends(get_db)):
    return _questionnaire_payload(QuestionnaireManager(db, user_id))


@router.post("/questionnaire/answers", response_model=QuestionnaireResponse)
def answer_question(payload: AnswerRequest, user_id: str = Depends(get_user_id), db: Session = Depends(get_db)):
    manager = QuestionnaireManager(db, user_id)
    try:
        manager.answer(payload.question_id, payload.option)
    except InvalidAnswerError as e:
        raise HTTPException(400, str(e))
    return _questionnaire_payload(manager)


@router.delete("/questionnaire", response_model=Dict[str, Any])
def reset_questionnaire(user_id: str = Depends(get_user_id), db: Session = Depends(get_db)):
    QuestionnaireManager(db, user_id).reset()
    return {"message": "Questionnaire reset"}
