"""Tests for loading the bundled per-state trail files."""

import json

import pytest

from regions import all_regions, available_regions, state_code_for, state_name_for
from trail_catalog import (
    DEFAULT_DATA_DIR,
    CatalogLoadError,
    TrailCatalog,
    load_trail_file,
    parse_trails,
    region_filename,
)


def ids(trails):
    return sorted(t.id for t in trails)


# =============================================================================
# Parsing
# =============================================================================

class TestParsing:

    def test_region_filename(self):
        assert region_filename(" sc ") == "trails_SC.json"

    def test_camel_case_records(self):
        trails = parse_trails([{
            "id": 1,
            "trailName": "Raven Cliff Falls",
            "state": "SC",
            "distanceMiles": 4.4,
            "elevationGainFeet": 880,
            "difficultyLevel": "Moderate",
            "terrainTypes": ["forest", "waterfall"],
            "userRating": 4.7,
        }])
        trail = trails[0]
        assert trail.name == "Raven Cliff Falls"
        assert trail.region == "SC"
        assert trail.distance_miles == 4.4
        assert trail.terrain_types == ("forest", "waterfall")

    def test_wrapped_payloads(self):
        assert ids(parse_trails({"trails": [{"id": 1}, {"id": 2}]})) == [1, 2]
        assert ids(parse_trails({"results": [{"id": 3}]})) == [3]
        assert parse_trails({"unexpected": True}) == []

    def test_malformed_records_are_skipped(self):
        trails = parse_trails([{"id": 1}, {"name": "no id"}, "junk", {"id": "not-a-number"}, {"id": 2}])
        assert ids(trails) == [1, 2]

    def test_missing_file(self, tmp_path):
        assert load_trail_file(tmp_path / "trails_ZZ.json") is None

    def test_unreadable_file(self, tmp_path):
        path = tmp_path / "trails_SC.json"
        path.write_text("{not json")
        with pytest.raises(CatalogLoadError):
            load_trail_file(path)


# =============================================================================
# Catalog loading
# =============================================================================

class TestTrailCatalog:

    def test_starts_empty(self, catalog):
        assert catalog.trails == ()
        assert not catalog.has_loaded
        assert catalog.last_loaded_at is None

    def test_no_selection_loads_default_file(self, catalog):
        trails = catalog.load([])
        assert ids(trails) == [901, 902]
        assert catalog.loaded_regions == []
        assert catalog.has_loaded

    def test_selected_regions_are_combined(self, catalog):
        trails = catalog.load(["sc", "NC"])
        assert ids(trails) == [101, 102, 103, 201, 202]
        assert catalog.loaded_regions == ["SC", "NC"]
        assert catalog.last_loaded_at is not None

    def test_region_without_file_is_skipped(self, catalog):
        trails = catalog.load(["SC", "WY"])
        assert ids(trails) == [101, 102, 103]
        assert catalog.loaded_regions == ["SC"]

    def test_missing_default_file_raises(self, tmp_path):
        with pytest.raises(CatalogLoadError):
            TrailCatalog(data_dir=tmp_path).load([])

    def test_corrupt_region_file_raises(self, data_dir):
        (data_dir / "trails_SC.json").write_text("[{")
        with pytest.raises(CatalogLoadError):
            TrailCatalog(data_dir=data_dir).load(["SC"])

    def test_load_if_needed_reuses_current_trails(self, catalog):
        first = catalog.load_if_needed(["SC"])
        assert catalog.load_if_needed(["sc"]) is first
        assert ids(catalog.load_if_needed(["NC"])) == [201, 202]

    def test_load_if_needed_switches_back_to_default(self, catalog):
        catalog.load_if_needed(["SC"])
        assert ids(catalog.load_if_needed([])) == [901, 902]

    def test_refresh_rereads_files(self, catalog, data_dir):
        catalog.load(["NC"])
        (data_dir / "trails_NC.json").write_text(json.dumps([{"id": 299, "state": "NC"}]))
        assert ids(catalog.load_if_needed(["NC"])) == [201, 202]
        assert ids(catalog.refresh(["NC"])) == [299]

    def test_add_and_remove_region(self, catalog):
        catalog.load(["SC"])
        assert ids(catalog.add_region("nc")) == [101, 102, 103, 201, 202]
        assert catalog.loaded_regions == ["SC", "NC"]
        # 103 is stored under the full state name
        assert ids(catalog.remove_region("SC")) == [201, 202]
        assert catalog.loaded_regions == ["NC"]
        # the current trails now correspond to an NC-only selection
        assert catalog.load_if_needed(["NC"]) == catalog.trails

    def test_add_region_without_file_keeps_trails(self, catalog):
        catalog.load(["SC"])
        before = catalog.trails
        assert catalog.add_region("WY") is before

    def test_clear(self, catalog):
        catalog.load(["SC"])
        catalog.clear()
        assert catalog.trails == ()
        assert not catalog.has_loaded

    def test_find_trail(self, catalog):
        catalog.load(["SC"])
        assert catalog.find_trail(102).name == "Lake Placid Loop"
        assert catalog.find_trail(999) is None


class TestFindByName:

    def test_fuzzy_match(self, catalog):
        catalog.load(["SC", "NC"])
        trail = catalog.find_by_name("tell me about raven cliff falls")
        assert trail is not None
        assert trail.id == 101

    def test_no_match_below_threshold(self, catalog):
        catalog.load(["SC"])
        assert catalog.find_by_name("qqqq", threshold=95) is None

    def test_empty_inputs(self, catalog):
        assert catalog.find_by_name("Raven Cliff Falls") is None
        catalog.load(["SC"])
        assert catalog.find_by_name("   ") is None


# =============================================================================
# Bundled data and regions
# =============================================================================

class TestBundledData:

    def test_every_available_region_ships_a_file(self):
        for region in available_regions():
            trails = load_trail_file(DEFAULT_DATA_DIR / region_filename(region.code))
            assert trails, region.code

    def test_default_file_parses(self):
        assert TrailCatalog().load_default()


class TestRegions:

    def test_fifty_states(self):
        assert len(all_regions()) == 50
        assert {r.code for r in available_regions()} == {"SC", "NC"}

    def test_lookups(self):
        assert state_name_for("sc") == "South Carolina"
        assert state_name_for("XX") == "XX"
        assert state_code_for("  new york ") == "NY"
        assert state_code_for("Narnia") is None
