# backend/goals_service.py

import logging
from datetime import datetime, timedelta
from typing import Dict, Iterable, List, Sequence, Tuple
from uuid import UUID

from sqlalchemy.orm import Session

from models import (
    Goal,
    GoalCategory,
    GoalDifficulty,
    GoalRecord,
    GoalStatistics,
    GoalTimeframe,
    GoalUpdateRequest,
    utcnow,
)

logger = logging.getLogger(__name__)

RECENTLY_COMPLETED_LIMIT = 5


class GoalNotFoundError(LookupError):
    pass


# ==========================================
# Pure helpers
# ==========================================

def completion_percentage(goals: Sequence[Goal]) -> float:
    if not goals:
        return 0.0
    completed = sum(1 for g in goals if g.is_completed)
    return completed / len(goals) * 100


def partition_goals(goals: Iterable[Goal]) -> Tuple[List[Goal], List[Goal]]:
    """Stable split into (completed, pending)."""
    completed: List[Goal] = []
    pending: List[Goal] = []
    for goal in goals:
        (completed if goal.is_completed else pending).append(goal)
    return completed, pending


def sample_goals() -> List[Goal]:
    now = utcnow()
    return [
        Goal(
            title="Complete a 3-mile trail",
            description="Find and complete a trail between 2.5-3.5 miles to build your base endurance.",
            category=GoalCategory.DISTANCE,
            difficulty=GoalDifficulty.MODERATE,
            created_at=now,
        ),
        Goal(
            title="Hike twice this week",
            description="Get out on the trail at least twice to build consistency in your hiking routine.",
            category=GoalCategory.FREQUENCY,
            difficulty=GoalDifficulty.EASY,
            is_completed=True,
            completed_at=now - timedelta(days=1),
            created_at=now - timedelta(days=2),
        ),
        Goal(
            title="Try a trail with 300ft elevation gain",
            description="Challenge yourself with moderate elevation to prepare for more difficult hikes.",
            category=GoalCategory.ELEVATION,
            difficulty=GoalDifficulty.MODERATE,
            created_at=now - timedelta(days=1),
        ),
        Goal(
            title="Explore a new trail system",
            description="Visit a trail you've never hiked before to expand your hiking knowledge.",
            category=GoalCategory.EXPLORATION,
            difficulty=GoalDifficulty.EASY,
            is_completed=True,
            completed_at=now - timedelta(hours=12),
            created_at=now - timedelta(days=3),
        ),
        Goal(
            title="Practice using trail markers",
            description="Learn to read and follow blazes, cairns, and trail signs for safer navigation.",
            category=GoalCategory.SKILLS,
            difficulty=GoalDifficulty.EASY,
            created_at=now - timedelta(days=2),
        ),
    ]


# ==========================================
# Tracker
# ==========================================

def _to_goal(record: GoalRecord) -> Goal:
    return Goal(
        id=UUID(record.goal_id),
        title=record.title,
        description=record.description or "",
        category=GoalCategory(record.category),
        timeframe=GoalTimeframe(record.timeframe),
        difficulty=GoalDifficulty(record.difficulty),
        is_completed=bool(record.is_completed),
        completed_at=record.completed_at,
        created_at=record.created_at,
    )


def _apply(record: GoalRecord, goal: Goal) -> None:
    record.title = goal.title
    record.description = goal.description
    record.category = goal.category.value
    record.timeframe = goal.timeframe.value
    record.difficulty = goal.difficulty.value
    record.is_completed = goal.is_completed
    record.completed_at = goal.completed_at
    record.created_at = goal.created_at


class GoalTracker:
    """A user's goal list, persisted after every change."""

    def __init__(self, db: Session, user_id: str):
        self.db = db
        self.user_id = user_id

    def _records(self) -> List[GoalRecord]:
        return (
            self.db.query(GoalRecord)
            .filter(GoalRecord.user_id == self.user_id)
            .order_by(GoalRecord.id)
            .all()
        )

    def _record(self, goal_id: UUID) -> GoalRecord:
        record = (
            self.db.query(GoalRecord)
            .filter(GoalRecord.user_id == self.user_id, GoalRecord.goal_id == str(goal_id))
            .first()
        )
        if record is None:
            raise GoalNotFoundError(f"Goal {goal_id} not found")
        return record

    def _commit(self) -> None:
        try:
            self.db.commit()
        except Exception:
            self.db.rollback()
            logger.error(f"Failed to save goals for {self.user_id}")
            raise

    # --- reads ---
    @property
    def goals(self) -> List[Goal]:
        return [_to_goal(r) for r in self._records()]

    @property
    def completed_goals(self) -> List[Goal]:
        return partition_goals(self.goals)[0]

    @property
    def pending_goals(self) -> List[Goal]:
        return partition_goals(self.goals)[1]

    @property
    def completion_percentage(self) -> float:
        return completion_percentage(self.goals)

    @property
    def goals_by_category(self) -> Dict[GoalCategory, List[Goal]]:
        grouped: Dict[GoalCategory, List[Goal]] = {}
        for goal in self.goals:
            grouped.setdefault(goal.category, []).append(goal)
        return grouped

    def get(self, goal_id: UUID) -> Goal:
        return _to_goal(self._record(goal_id))

    def for_category(self, category: GoalCategory) -> List[Goal]:
        return [g for g in self.goals if g.category == category]

    def for_timeframe(self, timeframe: GoalTimeframe) -> List[Goal]:
        return [g for g in self.goals if g.timeframe == timeframe]

    def by_completion(self, completed: bool) -> List[Goal]:
        return [g for g in self.goals if g.is_completed == completed]

    def sorted_by_date(self, ascending: bool = False) -> List[Goal]:
        return sorted(self.goals, key=lambda g: g.created_at, reverse=not ascending)

    def sorted_by_completion(self) -> List[Goal]:
        # pending first, insertion order kept within each group
        return sorted(self.goals, key=lambda g: g.is_completed)

    def statistics(self) -> GoalStatistics:
        goals = self.goals
        completed, pending = partition_goals(goals)
        by_category: Dict[str, int] = {}
        for goal in goals:
            by_category[goal.category.value] = by_category.get(goal.category.value, 0) + 1
        recent = sorted(completed, key=lambda g: g.completed_at or datetime.min, reverse=True)
        return GoalStatistics(
            total_goals=len(goals),
            completed_goals=len(completed),
            pending_goals=len(pending),
            completion_rate=completion_percentage(goals),
            goals_by_category=by_category,
            recently_completed=recent[:RECENTLY_COMPLETED_LIMIT],
        )

    # --- writes ---
    def add_goal(self, goal: Goal) -> Goal:
        return self.add_goals([goal])[0]

    def add_goals(self, goals: Iterable[Goal]) -> List[Goal]:
        added = []
        for goal in goals:
            record = GoalRecord(goal_id=str(goal.id), user_id=self.user_id)
            _apply(record, goal)
            self.db.add(record)
            added.append(goal)
        self._commit()
        return added

    def update_goal(self, goal_id: UUID, changes: GoalUpdateRequest) -> Goal:
        record = self._record(goal_id)
        goal = _to_goal(record)
        updated = goal.model_copy(update=changes.model_dump(exclude_unset=True, exclude_none=True))
        _apply(record, updated)
        self._commit()
        return updated

    def delete_goal(self, goal_id: UUID) -> None:
        self.db.delete(self._record(goal_id))
        self._commit()

    def toggle_completion(self, goal_id: UUID) -> Goal:
        record = self._record(goal_id)
        goal = _to_goal(record)
        goal.toggle_completion()
        _apply(record, goal)
        self._commit()
        return goal

    def clear_all(self) -> None:
        self.db.query(GoalRecord).filter(GoalRecord.user_id == self.user_id).delete()
        self._commit()

    def replace_all(self, goals: Iterable[Goal]) -> List[Goal]:
        self.db.query(GoalRecord).filter(GoalRecord.user_id == self.user_id).delete()
        return self.add_goals(goals)
