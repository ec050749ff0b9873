"""
Preference-driven trail tiering.

Every function here is a pure read over ``(catalog, preferences, query)``:
no I/O, no mutation, and malformed records are treated as non-matching
instead of raising. Tiers are computed in a fixed order so that each one
can subtract the identifiers already claimed by the previous tiers:

    recommended  ->  easier (build-up)  ->  other (catch-all, searchable)
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Sequence, Set

from models import ElevationBand, MapRegion, Trail, TrailPreferences
from regions import state_code_for

DIFFICULTY_RANKS: Dict[str, int] = {"easy": 1, "moderate": 2, "hard": 3, "very hard": 4}
DEFAULT_DIFFICULTY_RANK = 2

BEGINNER_MAX_MILES = 3.0
PROGRESSION_STRETCH = 1.2
MIN_MAP_SPAN = 0.5
MAP_SPAN_PADDING = 1.5


@dataclass(frozen=True)
class TrailTiers:
    recommended: List[Trail]
    easier: List[Trail]
    other: List[Trail]

    def all_ids(self) -> Set[int]:
        return {t.id for t in self.recommended} | {t.id for t in self.easier} | {t.id for t in self.other}


# ==========================================
# Field helpers
# ==========================================

def normalize_region_code(raw: Optional[str]) -> str:
    value = (raw or "").strip()
    if not value:
        return ""
    if len(value) == 2:
        return value.upper()
    return state_code_for(value) or value.upper()


def difficulty_rank(label: Optional[str]) -> int:
    return DIFFICULTY_RANKS.get((label or "").strip().lower(), DEFAULT_DIFFICULTY_RANK)


def elevation_band_contains(band: Optional[str], gain_feet: Optional[float]) -> bool:
    """Exact band membership. Unknown bands accept everything."""
    parsed = ElevationBand.parse(band)
    if parsed is None:
        return True
    if gain_feet is None:
        return False
    return parsed.contains(gain_feet)


def elevation_within_band_ceiling(band: Optional[str], gain_feet: Optional[float]) -> bool:
    """True when the gain is no higher than the band allows (High has no ceiling)."""
    parsed = ElevationBand.parse(band)
    if parsed is None or parsed.ceiling is None:
        return True
    if gain_feet is None:
        return False
    return gain_feet <= parsed.ceiling


def _selected_codes(prefs: TrailPreferences) -> Set[str]:
    return {code.strip().upper() for code in prefs.selected_regions if code and code.strip()}


def _in_selected_regions(trail: Trail, selected: Set[str]) -> bool:
    if not selected:
        return True
    return normalize_region_code(trail.region) in selected


def _distance_between(trail: Trail, low: float, high: float) -> bool:
    if trail.distance_miles is None:
        return False
    return low <= trail.distance_miles <= high


def _inconsistent(prefs: TrailPreferences) -> bool:
    # an inverted distance range yields no tiers at all
    return prefs.min_distance > prefs.max_distance


def _matches_difficulty(trail: Trail, difficulty: str) -> bool:
    label = trail.difficulty_level.strip().lower()
    return bool(label) and label == (difficulty or "").strip().lower()


# ==========================================
# Tiers
# ==========================================

def classify_recommended(catalog: Sequence[Trail], prefs: TrailPreferences) -> List[Trail]:
    if _inconsistent(prefs):
        return []
    selected = _selected_codes(prefs)
    return [
        trail
        for trail in catalog
        if _in_selected_regions(trail, selected)
        and _matches_difficulty(trail, prefs.difficulty)
        and _distance_between(trail, prefs.min_distance, prefs.max_distance)
        and elevation_band_contains(prefs.elevation, trail.elevation_gain_feet)
    ]


def _is_no_harder(trail: Trail, prefs: TrailPreferences) -> bool:
    # each dimension checked on its own; no combined score
    if difficulty_rank(trail.difficulty_level) > difficulty_rank(prefs.difficulty):
        return False
    if trail.distance_miles is None or trail.distance_miles > prefs.max_distance:
        return False
    return elevation_within_band_ceiling(prefs.elevation, trail.elevation_gain_feet)


def classify_easier(catalog: Sequence[Trail], prefs: TrailPreferences) -> List[Trail]:
    claimed = {t.id for t in classify_recommended(catalog, prefs)}
    return _classify_easier_excluding(catalog, prefs, claimed)


def _classify_easier_excluding(
    catalog: Sequence[Trail], prefs: TrailPreferences, claimed: Set[int]
) -> List[Trail]:
    if _inconsistent(prefs):
        return []
    selected = _selected_codes(prefs)
    return [
        trail
        for trail in catalog
        if trail.id not in claimed
        and _in_selected_regions(trail, selected)
        and _is_no_harder(trail, prefs)
    ]


def _matches_query(trail: Trail, query: str) -> bool:
    folded = query.casefold()
    return folded in trail.name.casefold() or folded in trail.region.casefold()


def classify_other(
    catalog: Sequence[Trail], prefs: TrailPreferences, search_query: str = ""
) -> List[Trail]:
    recommended = classify_recommended(catalog, prefs)
    claimed = {t.id for t in recommended}
    claimed |= {t.id for t in _classify_easier_excluding(catalog, prefs, claimed)}
    return _classify_other_excluding(catalog, prefs, claimed, search_query)


def _classify_other_excluding(
    catalog: Sequence[Trail], prefs: TrailPreferences, claimed: Set[int], search_query: str
) -> List[Trail]:
    if _inconsistent(prefs):
        return []
    selected = _selected_codes(prefs)
    query = (search_query or "").strip()
    return [
        trail
        for trail in catalog
        if trail.id not in claimed
        and _in_selected_regions(trail, selected)
        and (not query or _matches_query(trail, query))
    ]


def classify_trails(
    catalog: Sequence[Trail], prefs: TrailPreferences, search_query: str = ""
) -> TrailTiers:
    """All three tiers from one preferences snapshot."""
    snapshot = prefs.snapshot()
    trails = tuple(catalog)

    recommended = classify_recommended(trails, snapshot)
    claimed = {t.id for t in recommended}
    easier = _classify_easier_excluding(trails, snapshot, claimed)
    claimed |= {t.id for t in easier}
    other = _classify_other_excluding(trails, snapshot, claimed, search_query)
    return TrailTiers(recommended=recommended, easier=easier, other=other)


# ==========================================
# Catalog views
# ==========================================

def trails_for_region(catalog: Iterable[Trail], code: str) -> List[Trail]:
    wanted = (code or "").strip().upper()
    return [t for t in catalog if normalize_region_code(t.region) == wanted]


def trails_with_difficulty(
    catalog: Sequence[Trail], prefs: TrailPreferences, difficulty: str
) -> List[Trail]:
    return [t for t in classify_recommended(catalog, prefs) if _matches_difficulty(t, difficulty)]


def trails_in_distance_range(catalog: Iterable[Trail], min_miles: float, max_miles: float) -> List[Trail]:
    return [t for t in catalog if _distance_between(t, min_miles, max_miles)]


def beginner_trails(catalog: Sequence[Trail], prefs: TrailPreferences) -> List[Trail]:
    return [
        t
        for t in classify_recommended(catalog, prefs)
        if t.distance_miles is not None
        and t.distance_miles <= BEGINNER_MAX_MILES
        and t.difficulty_level.strip().lower() == "easy"
    ]


def progression_trails(catalog: Sequence[Trail], prefs: TrailPreferences) -> List[Trail]:
    """Slightly longer trails for users working toward a longer distance."""
    if not prefs.wants_to_progress:
        return classify_recommended(catalog, prefs)
    selected = _selected_codes(prefs)
    target = prefs.max_distance * PROGRESSION_STRETCH
    return [
        t
        for t in catalog
        if _in_selected_regions(t, selected)
        and t.distance_miles is not None
        and prefs.max_distance < t.distance_miles <= target
    ]


def trail_count_by_region(catalog: Iterable[Trail]) -> Dict[str, int]:
    counts: Dict[str, int] = {}
    for trail in catalog:
        code = normalize_region_code(trail.region)
        counts[code] = counts.get(code, 0) + 1
    return counts


def completed_trails(catalog: Iterable[Trail], prefs: TrailPreferences) -> List[Trail]:
    done = set(prefs.completed_trails)
    return [t for t in catalog if t.id in done]


def map_region(trails: Iterable[Trail]) -> Optional[MapRegion]:
    points = [
        (t.latitude, t.longitude)
        for t in trails
        if t.latitude is not None and t.longitude is not None
    ]
    if not points:
        return None

    lats = [p[0] for p in points]
    lons = [p[1] for p in points]
    return MapRegion(
        center_latitude=sum(lats) / len(lats),
        center_longitude=sum(lons) / len(lons),
        latitude_delta=max((max(lats) - min(lats)) * MAP_SPAN_PADDING, MIN_MAP_SPAN),
        longitude_delta=max((max(lons) - min(lons)) * MAP_SPAN_PADDING, MIN_MAP_SPAN),
    )
