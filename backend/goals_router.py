# backend/goals_router.py

import logging
from typing import Any, Dict, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from assistant_service import AssistantError, HikingAssistant
from db import get_db
from deps import get_assistant, get_preference_store, get_user_id
from goals_service import GoalNotFoundError, GoalTracker, completion_percentage, sample_goals
from models import (
    GenerateGoalsRequest,
    Goal,
    GoalCategory,
    GoalCreateRequest,
    GoalListResponse,
    GoalStatistics,
    GoalTimeframe,
    GoalUpdateRequest,
)
from preference_store import PreferenceStore

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/goals", tags=["goals"])


def get_tracker(user_id: str = Depends(get_user_id), db: Session = Depends(get_db)) -> GoalTracker:
    return GoalTracker(db, user_id)


@router.get("", response_model=GoalListResponse)
def list_goals(
    category: Optional[GoalCategory] = None,
    timeframe: Optional[GoalTimeframe] = None,
    completed: Optional[bool] = None,
    sort: Optional[str] = Query(None, pattern="^(newest|oldest|completion)$"),
    tracker: GoalTracker = Depends(get_tracker),
):
    if sort == "newest":
        goals = tracker.sorted_by_date()
    elif sort == "oldest":
        goals = tracker.sorted_by_date(ascending=True)
    elif sort == "completion":
        goals = tracker.sorted_by_completion()
    else:
        goals = tracker.goals

    if category is not None:
        goals = [g for g in goals if g.category == category]
    if timeframe is not None:
        goals = [g for g in goals if g.timeframe == timeframe]
    if completed is not None:
        goals = [g for g in goals if g.is_completed == completed]

    # percentage always reflects the whole list, not the filtered view
    return GoalListResponse(goals=goals, completion_percentage=tracker.completion_percentage)


@router.post("", response_model=Goal, status_code=201)
def create_goal(payload: GoalCreateRequest, tracker: GoalTracker = Depends(get_tracker)):
    return tracker.add_goal(Goal(**payload.model_dump()))


@router.get("/statistics", response_model=GoalStatistics)
def goal_statistics(tracker: GoalTracker = Depends(get_tracker)):
    return tracker.statistics()


@router.post("/generate", response_model=GoalListResponse)
def generate_goals(
    payload: GenerateGoalsRequest,
    tracker: GoalTracker = Depends(get_tracker),
    store: PreferenceStore = Depends(get_preference_store),
    assistant: HikingAssistant = Depends(get_assistant),
):
    try:
        generated = assistant.generate_goals(store.preferences, payload.timeframe)
    except AssistantError as e:
        raise HTTPException(502, str(e))
    if not generated:
        raise HTTPException(502, "No usable goals were generated")
    goals = tracker.replace_all(generated)
    return GoalListResponse(goals=goals, completion_percentage=completion_percentage(goals))


@router.post("/sample", response_model=GoalListResponse)
def load_sample_goals(tracker: GoalTracker = Depends(get_tracker)):
    goals = tracker.replace_all(sample_goals())
    return GoalListResponse(goals=goals, completion_percentage=completion_percentage(goals))


@router.delete("", response_model=Dict[str, Any])
def clear_goals(tracker: GoalTracker = Depends(get_tracker)):
    tracker.clear_all()
    return {"message": "All goals cleared"}


@router.get("/{goal_id}", response_model=Goal)
def get_goal(goal_id: UUID, tracker: GoalTracker = Depends(get_tracker)):
    try:
        return tracker.get(goal_id)
    except GoalNotFoundError:
        raise HTTPException(404, "Goal not found")


@router.put("/{goal_id}", response_model=Goal)
def update_goal(goal_id: UUID, payload: GoalUpdateRequest, tracker: GoalTracker = Depends(get_tracker)):
    try:
        return tracker.update_goal(goal_id, payload)
    except GoalNotFoundError:
        raise HTTPException(404, "Goal not found")


@router.delete("/{goal_id}", response_model=Dict[str, Any])
def delete_goal(goal_id: UUID, tracker: GoalTracker = Depends(get_tracker)):
    try:
        tracker.delete_goal(goal_id)
    except GoalNotFoundError:
        raise HTTPException(404, "Goal not found")
    return {"message": "Goal deleted"}


@router.post("/{goal_id}/toggle", response_model=Goal)
def toggle_goal(goal_id: UUID, tracker: GoalTracker = Depends(get_tracker)):
    try:
        goal = tracker.toggle_completion(goal_id)
    except GoalNotFoundError:
        raise HTTPException(404, "Goal not found")
    logger.info(f"Goal {goal_id} completed={goal.is_completed}")
    return goal
