# backend/models.py

import copy
from datetime import datetime, timezone
from enum import Enum
from typing import Dict, List, Optional, Tuple
from uuid import UUID, uuid4

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator
from sqlalchemy import Boolean, Column, DateTime, Integer, String, Text

from db import Base


def utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


# ==========================================
# 1. SQLAlchemy Models
# ==========================================

class UserPreferencesRecord(Base):
    __tablename__ = "user_preferences"
    user_id = Column(String, primary_key=True, index=True)
    data = Column(Text)  # JSON string
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)


class GoalRecord(Base):
    __tablename__ = "goals"
    # autoincrement id keeps insertion order
    id = Column(Integer, primary_key=True, autoincrement=True)
    goal_id = Column(String(36), unique=True, index=True)
    user_id = Column(String, index=True)
    title = Column(String)
    description = Column(Text)
    category = Column(String)
    timeframe = Column(String)
    difficulty = Column(String)
    is_completed = Column(Boolean, default=False)
    completed_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=utcnow)


class QuestionnaireRecord(Base):
    __tablename__ = "questionnaire_responses"
    user_id = Column(String, primary_key=True, index=True)
    data = Column(Text)  # JSON string
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)


class ChatMessageRecord(Base):
    __tablename__ = "chat_messages"
    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(String, index=True)
    role = Column(String, default="user")
    content = Column(Text)
    created_at = Column(DateTime, default=utcnow)


# ==========================================
# 2. Trail catalog
# ==========================================

class ElevationBand(str, Enum):
    LOW = "Low"
    MODERATE = "Moderate"
    HIGH = "High"

    @classmethod
    def parse(cls, value: Optional[str]) -> Optional["ElevationBand"]:
        """Case-insensitive lookup; None for anything unrecognised."""
        needle = (value or "").strip().lower()
        for band in cls:
            if band.value.lower() == needle:
                return band
        return None

    @property
    def floor(self) -> float:
        return _BAND_RANGES[self][0]

    @property
    def ceiling(self) -> Optional[float]:
        return _BAND_RANGES[self][1]

    def contains(self, gain_feet: float) -> bool:
        ceiling = self.ceiling
        return gain_feet >= self.floor and (ceiling is None or gain_feet < ceiling)


# [floor, ceiling) in feet; High is open-ended
_BAND_RANGES: Dict[ElevationBand, Tuple[float, Optional[float]]] = {
    ElevationBand.LOW: (0.0, 500.0),
    ElevationBand.MODERATE: (500.0, 1500.0),
    ElevationBand.HIGH: (1500.0, None),
}


class Trail(BaseModel):
    """One catalog entry. Accepts the bundled camelCase keys as well as snake_case."""

    model_config = ConfigDict(frozen=True)

    id: int
    name: str = Field(default="", validation_alias=AliasChoices("name", "trailName", "trail_name"))
    region: str = Field(default="", validation_alias=AliasChoices("region", "state"))
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    distance_miles: Optional[float] = Field(
        default=None, validation_alias=AliasChoices("distance_miles", "distanceMiles")
    )
    elevation_gain_feet: Optional[float] = Field(
        default=None, validation_alias=AliasChoices("elevation_gain_feet", "elevationGainFeet")
    )
    difficulty_level: str = Field(
        default="", validation_alias=AliasChoices("difficulty_level", "difficultyLevel", "difficulty")
    )
    terrain_types: Tuple[str, ...] = Field(
        default=(), validation_alias=AliasChoices("terrain_types", "terrainTypes")
    )
    description: str = ""
    user_rating: Optional[float] = Field(
        default=None, validation_alias=AliasChoices("user_rating", "userRating")
    )

    @field_validator("name", "region", "difficulty_level", "description", mode="before")
    @classmethod
    def _none_to_empty(cls, value):
        return "" if value is None else value

    @field_validator("terrain_types", mode="before")
    @classmethod
    def _none_to_tuple(cls, value):
        return () if value is None else value


class TrailTiersResponse(BaseModel):
    recommended: List[Trail]
    easier: List[Trail]
    other: List[Trail]
    search_query: str = ""


class MapRegion(BaseModel):
    center_latitude: float
    center_longitude: float
    latitude_delta: float
    longitude_delta: float


class RegionInfo(BaseModel):
    code: str
    name: str
    has_trail_data: bool
    selected: bool = False
    trail_count: int = 0


# ==========================================
# 3. Preferences
# ==========================================

class TrailPreferences(BaseModel):
    difficulty: str = "Easy"
    min_distance: float = Field(
        default=0.0, validation_alias=AliasChoices("min_distance", "minDistance")
    )
    max_distance: float = Field(
        default=10.0, validation_alias=AliasChoices("max_distance", "maxDistance")
    )
    elevation: str = Field(
        default="Low", validation_alias=AliasChoices("elevation", "elevation_band", "elevationBand")
    )
    selected_regions: List[str] = Field(
        default_factory=list,
        validation_alias=AliasChoices(
            "selected_regions", "selectedRegions", "selected_states", "selectedStates"
        ),
    )
    completed_trails: List[int] = Field(
        default_factory=list,
        validation_alias=AliasChoices(
            "completed_trails", "completedTrails", "completed_trail_ids", "completedTrailIds"
        ),
    )

    # onboarding / experience
    helper: bool = False
    hiking_frequency: str = ""
    current_capability: str = ""
    desired_distance: str = ""
    location: Optional[str] = "SC"
    travel_radius: str = ""
    has_completed_onboarding: bool = False

    @property
    def is_beginner(self) -> bool:
        return (
            self.hiking_frequency in ("Never have", "Once a year")
            or self.current_capability == "0-2 miles"
        )

    @property
    def wants_to_progress(self) -> bool:
        return self.helper and self.current_capability != self.desired_distance

    @property
    def distance_range_text(self) -> str:
        return "%.1f - %.1f miles" % (self.min_distance, self.max_distance)

    @property
    def is_complete(self) -> bool:
        return bool(
            self.hiking_frequency
            and self.desired_distance
            and self.current_capability
            and self.difficulty
            and self.elevation
            and self.has_completed_onboarding
        )

    @property
    def completed_trail_count(self) -> int:
        return len(self.completed_trails)

    @property
    def has_selected_regions(self) -> bool:
        return bool(self.selected_regions)

    @property
    def selected_regions_text(self) -> str:
        if not self.selected_regions:
            return "None selected"
        if len(self.selected_regions) <= 3:
            return ", ".join(self.selected_regions)
        return f"{', '.join(self.selected_regions[:2])} +{len(self.selected_regions) - 2} more"

    def is_trail_completed(self, trail_id: int) -> bool:
        return trail_id in self.completed_trails

    def snapshot(self) -> "TrailPreferences":
        """Detached copy, safe to hand to the classifier while the store keeps mutating."""
        return copy.deepcopy(self)


class PreferencesUpdate(BaseModel):
    difficulty: Optional[str] = None
    min_distance: Optional[float] = Field(default=None, ge=0)
    max_distance: Optional[float] = Field(default=None, ge=0)
    elevation: Optional[str] = None
    helper: Optional[bool] = None
    hiking_frequency: Optional[str] = None
    current_capability: Optional[str] = None
    desired_distance: Optional[str] = None
    location: Optional[str] = None
    travel_radius: Optional[str] = None


class PreferencesResponse(BaseModel):
    preferences: TrailPreferences
    needs_onboarding: bool
    is_beginner: bool
    wants_to_progress: bool
    distance_range_text: str
    selected_regions_text: str
    completed_trail_count: int

    @classmethod
    def from_preferences(cls, prefs: TrailPreferences) -> "PreferencesResponse":
        return cls(
            preferences=prefs,
            needs_onboarding=not prefs.has_completed_onboarding,
            is_beginner=prefs.is_beginner,
            wants_to_progress=prefs.wants_to_progress,
            distance_range_text=prefs.distance_range_text,
            selected_regions_text=prefs.selected_regions_text,
            completed_trail_count=prefs.completed_trail_count,
        )


class RegionSelectionRequest(BaseModel):
    regions: List[str]


# ==========================================
# 4. Goals
# ==========================================

class GoalCategory(str, Enum):
    ENDURANCE = "Endurance"
    ELEVATION = "Elevation"
    DISTANCE = "Distance"
    FREQUENCY = "Frequency"
    EXPLORATION = "Exploration"
    SKILLS = "Skills & Safety"


class GoalTimeframe(str, Enum):
    DAILY = "Daily"
    WEEKLY = "Weekly"
    MONTHLY = "Monthly"


class GoalDifficulty(str, Enum):
    EASY = "Easy"
    MODERATE = "Moderate"
    CHALLENGING = "Challenging"


class Goal(BaseModel):
    id: UUID = Field(default_factory=uuid4)
    title: str
    description: str = ""
    category: GoalCategory = GoalCategory.ENDURANCE
    timeframe: GoalTimeframe = GoalTimeframe.WEEKLY
    difficulty: GoalDifficulty = GoalDifficulty.MODERATE
    is_completed: bool = False
    completed_at: Optional[datetime] = None
    created_at: datetime = Field(default_factory=utcnow)

    def toggle_completion(self) -> None:
        self.is_completed = not self.is_completed
        self.completed_at = utcnow() if self.is_completed else None


class GoalCreateRequest(BaseModel):
    title: str
    description: str = ""
    category: GoalCategory = GoalCategory.ENDURANCE
    timeframe: GoalTimeframe = GoalTimeframe.WEEKLY
    difficulty: GoalDifficulty = GoalDifficulty.MODERATE


class GoalUpdateRequest(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    category: Optional[GoalCategory] = None
    timeframe: Optional[GoalTimeframe] = None
    difficulty: Optional[GoalDifficulty] = None


class GenerateGoalsRequest(BaseModel):
    timeframe: GoalTimeframe = GoalTimeframe.WEEKLY


class GoalListResponse(BaseModel):
    goals: List[Goal]
    completion_percentage: float


class GoalStatistics(BaseModel):
    total_goals: int
    completed_goals: int
    pending_goals: int
    completion_rate: float
    goals_by_category: Dict[str, int]
    recently_completed: List[Goal]


# ==========================================
# 5. Questionnaire
# ==========================================

class Question(BaseModel):
    id: UUID = Field(default_factory=uuid4)
    text: str
    options: List[str]
    selected_option: Optional[str] = None


class AnswerRequest(BaseModel):
    question_id: UUID
    option: str


class QuestionnaireResponse(BaseModel):
    questions: List[Question]
    answers: Dict[str, str]


# ==========================================
# 6. Chat
# ==========================================

class ChatRequest(BaseModel):
    user_message: str


class ChatResponse(BaseModel):
    response: str


class ChatMessageModel(BaseModel):
    role: str
    content: str
    created_at: Optional[datetime] = None
