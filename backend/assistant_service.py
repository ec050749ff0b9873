# backend/assistant_service.py

import json
import logging
import os
from typing import Any, Dict, List, Optional

from openai import OpenAI, OpenAIError
from sqlalchemy.orm import Session

from models import (
    ChatMessageModel,
    ChatMessageRecord,
    Goal,
    GoalCategory,
    GoalDifficulty,
    GoalTimeframe,
    Trail,
    TrailPreferences,
)
from regions import state_name_for
from trail_catalog import TrailCatalog

logger = logging.getLogger(__name__)

CHAT_MODEL = os.getenv("OPENAI_CHAT_MODEL", "gpt-4o")
CHAT_TEMPERATURE = 0.7
CHAT_MAX_TOKENS = 500

CHAT_SYSTEM_PROMPT = """
You are an expert hiking assistant. Provide helpful, accurate, and safe hiking advice.
Topics include: trail recommendations, safety, gear, weather, fitness, navigation, and wildlife.
Be concise but thorough. If something is unsafe, explain why and provide safer alternatives.
"""

GOALS_SYSTEM_PROMPT = """
You are a professional hiking coach and goal-setting expert. Generate personalized,
achievable hiking goals based on the user's current capabilities and preferences.
Return ONLY valid JSON.
"""


class AssistantError(RuntimeError):
    pass


# ==========================================
# Prompt building / parsing
# ==========================================

def build_goal_prompt(prefs: TrailPreferences, timeframe: GoalTimeframe) -> str:
    return f"""
Generate 6-8 personalized hiking goals for a user with these characteristics:

Profile:
- Current Capability: {prefs.current_capability}
- Goal Distance: {prefs.desired_distance}
- Preferred Difficulty: {prefs.difficulty}
- Elevation Preference: {prefs.elevation}
- Hiking Frequency: {prefs.hiking_frequency}
- Distance Range: {prefs.distance_range_text}
- States Interested: {", ".join(state_name_for(c) for c in prefs.selected_regions) or "Any"}
- Completed Trails: {prefs.completed_trail_count}

Timeframe: {timeframe.value}

Create a balanced mix across these categories:
- Endurance (build stamina)
- Elevation (tackle elevation gain)
- Distance (increase mileage)
- Frequency (regular hiking habit)
- Exploration (discover new trails/states)
- Skills & Safety (improve hiking knowledge)

Make goals SMART and progressively challenging but achievable.
Vary difficulty: some easy wins, mostly moderate, few challenging.

Return ONLY valid JSON in this EXACT format:
{{
    "goals": [
        {{
            "title": "Complete a 10-mile hike",
            "description": "Build endurance by completing a single hike of 10 miles",
            "category": "Endurance",
            "difficulty": "Moderate"
        }}
    ]
}}

Categories MUST be: "Endurance", "Elevation", "Distance", "Frequency", "Exploration", or "Skills & Safety"
Difficulty MUST be: "Easy", "Moderate", or "Challenging"
"""


def _strip_code_fence(text: str) -> str:
    return text.replace("```json", "").replace("```", "").strip()


_CATEGORY_ALIASES = {"skills": GoalCategory.SKILLS}
_DIFFICULTY_ALIASES = {"hard": GoalDifficulty.CHALLENGING, "difficult": GoalDifficulty.CHALLENGING}


def _map_category(label: Any) -> GoalCategory:
    """Case-insensitive; anything unrecognised counts as a distance goal."""
    needle = str(label or "").strip().lower()
    for category in GoalCategory:
        if category.value.lower() == needle:
            return category
    return _CATEGORY_ALIASES.get(needle, GoalCategory.DISTANCE)


def _map_difficulty(label: Any) -> GoalDifficulty:
    needle = str(label or "").strip().lower()
    for difficulty in GoalDifficulty:
        if difficulty.value.lower() == needle:
            return difficulty
    return _DIFFICULTY_ALIASES.get(needle, GoalDifficulty.MODERATE)


def parse_generated_goals(content: str, timeframe: GoalTimeframe) -> List[Goal]:
    """Turn the model's JSON into goals. Only entries without a title are skipped."""
    try:
        payload: Any = json.loads(_strip_code_fence(content or ""))
    except json.JSONDecodeError as exc:
        raise AssistantError("Failed to parse response") from exc

    entries = payload.get("goals") if isinstance(payload, dict) else payload
    if not isinstance(entries, list):
        raise AssistantError("Failed to parse response")

    goals: List[Goal] = []
    for entry in entries:
        if not isinstance(entry, dict) or not entry.get("title"):
            continue
        goals.append(
            Goal(
                title=str(entry["title"]),
                description=str(entry.get("description") or ""),
                category=_map_category(entry.get("category")),
                timeframe=timeframe,
                difficulty=_map_difficulty(entry.get("difficulty")),
            )
        )
    return goals


def trail_facts(trail: Trail) -> str:
    return f"""
FACTS about a trail the user mentioned:
- Trail Name: {trail.name}
- State: {trail.region}
- Difficulty: {trail.difficulty_level}
- Length: {trail.distance_miles} miles
- Elevation Gain: {trail.elevation_gain_feet} ft
- Terrain: {", ".join(trail.terrain_types)}
- Rating: {trail.user_rating}/5
- Description: {trail.description}
"""


# ==========================================
# Transcript
# ==========================================

class ChatLog:
    """Stored chat turns per user. Needs only the database, not an OpenAI client."""

    def __init__(self, db: Session):
        self.db = db

    def history(self, user_id: str) -> List[ChatMessageModel]:
        rows = (
            self.db.query(ChatMessageRecord)
            .filter(ChatMessageRecord.user_id == user_id)
            .order_by(ChatMessageRecord.id)
            .all()
        )
        return [ChatMessageModel(role=r.role, content=r.content, created_at=r.created_at) for r in rows]

    def append_exchange(self, user_id: str, question: str, answer: str) -> None:
        self.db.add(ChatMessageRecord(user_id=user_id, role="user", content=question))
        self.db.add(ChatMessageRecord(user_id=user_id, role="assistant", content=answer))
        self.db.commit()

    def clear(self, user_id: str) -> None:
        self.db.query(ChatMessageRecord).filter(ChatMessageRecord.user_id == user_id).delete()
        self.db.commit()


# ==========================================
# Service
# ==========================================

class HikingAssistant:
    def __init__(self, db: Session, client: Optional[OpenAI] = None, catalog: Optional[TrailCatalog] = None):
        self.db = db
        # OpenAI() reads OPENAI_API_KEY and raises OpenAIError when it is missing
        self.client = client or OpenAI(api_key=os.getenv("OPENAI_API_KEY"))
        self.catalog = catalog
        self.log = ChatLog(db)

    # --- transcript ---
    def history(self, user_id: str) -> List[ChatMessageModel]:
        return self.log.history(user_id)

    def clear(self, user_id: str) -> None:
        self.log.clear(user_id)

    def _grounding(self, question: str) -> Optional[str]:
        if self.catalog is None:
            return None
        trail = self.catalog.find_by_name(question)
        return trail_facts(trail) if trail else None

    # --- chat ---
    def ask(self, user_id: str, question: str) -> str:
        text = (question or "").strip()
        if not text:
            raise AssistantError("Message is empty")

        messages: List[Dict[str, str]] = [{"role": "system", "content": CHAT_SYSTEM_PROMPT}]
        grounding = self._grounding(text)
        if grounding:
            messages.append({"role": "system", "content": grounding})
        messages.extend({"role": m.role, "content": m.content} for m in self.history(user_id))
        messages.append({"role": "user", "content": text})

        try:
            response = self.client.chat.completions.create(
                model=CHAT_MODEL,
                messages=messages,
                temperature=CHAT_TEMPERATURE,
                max_tokens=CHAT_MAX_TOKENS,
            )
            answer = response.choices[0].message.content
            if not answer:
                raise AssistantError("Invalid response from OpenAI")
        except (OpenAIError, AssistantError, IndexError, AttributeError) as e:
            logger.error(f"Chat completion error: {e}")
            # transcript is left untouched so the user can simply retry
            return f"Sorry, I encountered an error: {e}"

        self.log.append_exchange(user_id, text, answer)
        return answer

    # --- goals ---
    def generate_goals(self, prefs: TrailPreferences, timeframe: GoalTimeframe) -> List[Goal]:
        try:
            response = self.client.chat.completions.create(
                model=CHAT_MODEL,
                messages=[
                    {"role": "system", "content": GOALS_SYSTEM_PROMPT},
                    {"role": "user", "content": build_goal_prompt(prefs, timeframe)},
                ],
                response_format={"type": "json_object"},
                temperature=CHAT_TEMPERATURE,
            )
            content = response.choices[0].message.content
        except (OpenAIError, IndexError, AttributeError) as e:
            logger.error(f"Goal generation error: {e}")
            raise AssistantError(f"Failed to generate goals: {e}") from e

        goals = parse_generated_goals(content, timeframe)
        logger.info(f"Generated {len(goals)} goals ({timeframe.value})")
        return goals
