# backend/preference_store.py

"""
JSON-backed per-user trail preferences.

Every mutating call writes straight through to the database, so a crashed
client never loses a toggle. The classifier never sees this class; callers
take ``prefs.snapshot()`` and pass that in.
"""

import json
import logging
from typing import Iterable, Optional

from pydantic import ValidationError
from sqlalchemy.orm import Session

from models import PreferencesUpdate, TrailPreferences, UserPreferencesRecord

logger = logging.getLogger(__name__)


class PreferenceValidationError(ValueError):
    pass


class PreferenceStore:
    def __init__(self, db: Session, user_id: str):
        self.db = db
        self.user_id = user_id
        self._prefs: Optional[TrailPreferences] = None

    # -------------------------
    # persistence
    # -------------------------
    def load(self) -> TrailPreferences:
        if self._prefs is not None:
            return self._prefs

        record = self.db.get(UserPreferencesRecord, self.user_id)
        if record is None or not record.data:
            self._prefs = TrailPreferences()
            return self._prefs

        try:
            self._prefs = TrailPreferences.model_validate(json.loads(record.data))
        except (json.JSONDecodeError, ValidationError) as exc:
            logger.warning(f"Stored preferences for {self.user_id} unreadable, using defaults: {exc}")
            self._prefs = TrailPreferences()
        return self._prefs

    def save(self, prefs: TrailPreferences) -> TrailPreferences:
        payload = prefs.model_dump_json()
        record = self.db.get(UserPreferencesRecord, self.user_id)
        if record is None:
            record = UserPreferencesRecord(user_id=self.user_id, data=payload)
            self.db.add(record)
        else:
            record.data = payload
        try:
            self.db.commit()
        except Exception:
            self.db.rollback()
            logger.error(f"Failed to save preferences for {self.user_id}")
            raise
        self._prefs = prefs
        return prefs

    @property
    def preferences(self) -> TrailPreferences:
        return self.load()

    # -------------------------
    # whole-record edits
    # -------------------------
    def update(self, changes: PreferencesUpdate) -> TrailPreferences:
        prefs = self.load().model_copy(deep=True)
        for field, value in changes.model_dump(exclude_unset=True).items():
            if value is not None:
                setattr(prefs, field, value)

        if prefs.min_distance > prefs.max_distance:
            raise PreferenceValidationError(
                f"min_distance ({prefs.min_distance}) must not exceed max_distance ({prefs.max_distance})"
            )
        return self.save(prefs)

    def reset(self) -> TrailPreferences:
        return self.save(TrailPreferences())

    @property
    def needs_onboarding(self) -> bool:
        return not self.load().has_completed_onboarding

    def complete_onboarding(self) -> TrailPreferences:
        prefs = self.load().model_copy(deep=True)
        prefs.has_completed_onboarding = True
        return self.save(prefs)

    # -------------------------
    # completed trails
    # -------------------------
    def mark_trail_completed(self, trail_id: int) -> TrailPreferences:
        prefs = self.load().model_copy(deep=True)
        if trail_id not in prefs.completed_trails:
            prefs.completed_trails.append(trail_id)
        return self.save(prefs)

    def unmark_trail_completed(self, trail_id: int) -> TrailPreferences:
        prefs = self.load().model_copy(deep=True)
        prefs.completed_trails = [t for t in prefs.completed_trails if t != trail_id]
        return self.save(prefs)

    def toggle_trail_completion(self, trail_id: int) -> TrailPreferences:
        if self.load().is_trail_completed(trail_id):
            return self.unmark_trail_completed(trail_id)
        return self.mark_trail_completed(trail_id)

    def clear_completed_trails(self) -> TrailPreferences:
        prefs = self.load().model_copy(deep=True)
        prefs.completed_trails = []
        return self.save(prefs)

    # -------------------------
    # selected states
    # -------------------------
    def add_region(self, code: str) -> TrailPreferences:
        wanted = code.strip().upper()
        prefs = self.load().model_copy(deep=True)
        if wanted and wanted not in prefs.selected_regions:
            prefs.selected_regions.append(wanted)
        return self.save(prefs)

    def remove_region(self, code: str) -> TrailPreferences:
        wanted = code.strip().upper()
        prefs = self.load().model_copy(deep=True)
        prefs.selected_regions = [r for r in prefs.selected_regions if r != wanted]
        return self.save(prefs)

    def toggle_region(self, code: str) -> TrailPreferences:
        if self.is_region_selected(code):
            return self.remove_region(code)
        return self.add_region(code)

    def is_region_selected(self, code: str) -> bool:
        return code.strip().upper() in self.load().selected_regions

    def clear_selected_regions(self) -> TrailPreferences:
        prefs = self.load().model_copy(deep=True)
        prefs.selected_regions = []
        return self.save(prefs)

    def set_selected_regions(self, codes: Iterable[str]) -> TrailPreferences:
        prefs = self.load().model_copy(deep=True)
        unique = []
        for code in codes:
            normalized = code.strip().upper()
            if normalized and normalized not in unique:
                unique.append(normalized)
        prefs.selected_regions = unique
        return self.save(prefs)
