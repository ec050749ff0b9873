"""Tests for per-user preference persistence."""

import pytest

from models import PreferencesUpdate, TrailPreferences, UserPreferencesRecord
from preference_store import PreferenceStore, PreferenceValidationError


@pytest.fixture
def store(db):
    return PreferenceStore(db, "hiker-1")


def reopen(db, user_id="hiker-1"):
    """A new store instance, so reads come from the database rather than the cache."""
    return PreferenceStore(db, user_id).preferences


# =============================================================================
# Loading / saving
# =============================================================================

class TestPersistence:

    def test_defaults_on_first_load(self, store):
        prefs = store.preferences
        assert prefs.difficulty == "Easy"
        assert prefs.min_distance == 0.0
        assert prefs.max_distance == 10.0
        assert prefs.elevation == "Low"
        assert prefs.selected_regions == []
        assert store.needs_onboarding

    def test_update_persists(self, store, db):
        store.update(PreferencesUpdate(difficulty="Moderate", max_distance=6.0, elevation="Moderate"))
        prefs = reopen(db)
        assert prefs.difficulty == "Moderate"
        assert prefs.max_distance == 6.0
        assert prefs.elevation == "Moderate"

    def test_update_ignores_unset_fields(self, store, db):
        store.update(PreferencesUpdate(difficulty="Hard"))
        store.update(PreferencesUpdate(min_distance=2.0))
        prefs = reopen(db)
        assert prefs.difficulty == "Hard"
        assert prefs.min_distance == 2.0

    def test_inverted_distance_range_is_rejected(self, store, db):
        with pytest.raises(PreferenceValidationError):
            store.update(PreferencesUpdate(min_distance=8.0, max_distance=2.0))
        assert reopen(db).min_distance == 0.0

    def test_users_are_isolated(self, store, db):
        store.update(PreferencesUpdate(difficulty="Hard"))
        assert reopen(db, "someone-else").difficulty == "Easy"

    def test_unreadable_record_falls_back_to_defaults(self, db):
        db.add(UserPreferencesRecord(user_id="broken", data="{not json"))
        db.commit()
        assert reopen(db, "broken") == TrailPreferences()

    def test_legacy_camel_case_keys(self, db):
        db.add(UserPreferencesRecord(
            user_id="legacy",
            data='{"difficulty": "Moderate", "minDistance": 1.5, "elevationBand": "High", "selectedStates": ["NC"]}',
        ))
        db.commit()
        prefs = reopen(db, "legacy")
        assert prefs.min_distance == 1.5
        assert prefs.elevation == "High"
        assert prefs.selected_regions == ["NC"]

    def test_reset(self, store, db):
        store.update(PreferencesUpdate(difficulty="Hard"))
        store.add_region("SC")
        store.reset()
        assert reopen(db) == TrailPreferences()

    def test_complete_onboarding(self, store, db):
        store.complete_onboarding()
        assert not PreferenceStore(db, "hiker-1").needs_onboarding


# =============================================================================
# Completed trails
# =============================================================================

class TestCompletedTrails:

    def test_mark_is_idempotent(self, store, db):
        store.mark_trail_completed(1001)
        store.mark_trail_completed(1001)
        assert reopen(db).completed_trails == [1001]

    def test_toggle(self, store, db):
        store.toggle_trail_completion(5)
        assert reopen(db).is_trail_completed(5)
        store.toggle_trail_completion(5)
        assert not reopen(db).is_trail_completed(5)

    def test_unmark_and_clear(self, store, db):
        for trail_id in (1, 2, 3):
            store.mark_trail_completed(trail_id)
        store.unmark_trail_completed(2)
        assert reopen(db).completed_trails == [1, 3]
        store.clear_completed_trails()
        assert reopen(db).completed_trail_count == 0


# =============================================================================
# Selected states
# =============================================================================

class TestRegions:

    def test_codes_are_uppercased_without_duplicates(self, store, db):
        store.add_region("sc")
        store.add_region("SC ")
        store.add_region("nc")
        assert reopen(db).selected_regions == ["SC", "NC"]

    def test_toggle_region(self, store):
        store.toggle_region("SC")
        assert store.is_region_selected("sc")
        store.toggle_region("sc")
        assert not store.is_region_selected("SC")

    def test_remove_and_clear(self, store, db):
        store.set_selected_regions(["SC", "NC", "GA"])
        store.remove_region("nc")
        assert reopen(db).selected_regions == ["SC", "GA"]
        store.clear_selected_regions()
        assert not reopen(db).has_selected_regions

    def test_set_selected_regions_normalises(self, store):
        prefs = store.set_selected_regions(["nc", "NC", " sc", ""])
        assert prefs.selected_regions == ["NC", "SC"]


# =============================================================================
# Derived values
# =============================================================================

class TestDerivedValues:

    def test_distance_range_text(self):
        assert TrailPreferences(min_distance=1, max_distance=6.5).distance_range_text == "1.0 - 6.5 miles"

    @pytest.mark.parametrize("regions, text", [
        ([], "None selected"),
        (["SC"], "SC"),
        (["SC", "NC", "GA"], "SC, NC, GA"),
        (["SC", "NC", "GA", "TN"], "SC, NC +2 more"),
    ])
    def test_selected_regions_text(self, regions, text):
        assert TrailPreferences(selected_regions=regions).selected_regions_text == text

    def test_beginner(self):
        assert TrailPreferences(hiking_frequency="Never have").is_beginner
        assert TrailPreferences(current_capability="0-2 miles").is_beginner
        assert not TrailPreferences(hiking_frequency="Weekly", current_capability="5-10 miles").is_beginner

    def test_wants_to_progress(self):
        assert TrailPreferences(helper=True, current_capability="0-2 miles", desired_distance="5-10 miles").wants_to_progress
        assert not TrailPreferences(helper=False, current_capability="0-2 miles", desired_distance="5-10 miles").wants_to_progress
        assert not TrailPreferences(helper=True, current_capability="3-5 miles", desired_distance="3-5 miles").wants_to_progress

    def test_is_complete(self):
        prefs = TrailPreferences(hiking_frequency="Weekly", desired_distance="3-5 miles", current_capability="0-2 miles")
        assert not prefs.is_complete
        prefs.has_completed_onboarding = True
        assert prefs.is_complete

    def test_snapshot_is_detached(self):
        prefs = TrailPreferences(selected_regions=["SC"])
        snap = prefs.snapshot()
        prefs.selected_regions.append("NC")
        assert snap.selected_regions == ["SC"]
