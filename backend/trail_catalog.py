# backend/trail_catalog.py

"""Trail catalog loading from the bundled per-state JSON files (with a test-data fallback)."""

from __future__ import annotations

import json
import logging
import os
import threading
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Tuple

from pydantic import ValidationError
from thefuzz import process

from models import Trail, utcnow
from trail_classifier import normalize_region_code

logger = logging.getLogger(__name__)

DEFAULT_DATA_DIR = Path(__file__).resolve().parent / "data"
TRAIL_DATA_DIR = Path(os.getenv("TRAIL_DATA_DIR", str(DEFAULT_DATA_DIR)))
DEFAULT_CATALOG_FILE = "test_trails.json"
TRAIL_MATCH_THRESHOLD = int(os.getenv("TRAIL_MATCH_THRESHOLD", "70"))

_DEFAULT_KEY = "__default__"


class CatalogLoadError(RuntimeError):
    """A bundled trail file exists but could not be read."""


def region_filename(code: str) -> str:
    return f"trails_{code.strip().upper()}.json"


def _unique_codes(codes: Iterable[str]) -> List[str]:
    seen: List[str] = []
    for code in codes or []:
        normalized = (code or "").strip().upper()
        if normalized and normalized not in seen:
            seen.append(normalized)
    return seen


def _extract_records(payload: Any) -> Iterable[Any]:
    if isinstance(payload, dict):
        if isinstance(payload.get("trails"), list):
            return payload["trails"]
        if isinstance(payload.get("results"), list):
            return payload["results"]
    if isinstance(payload, list):
        return payload
    return []


def parse_trails(payload: Any, source: str = "<memory>") -> List[Trail]:
    """Validate raw records, skipping the ones that are not usable."""
    trails: List[Trail] = []
    for raw in _extract_records(payload):
        if not isinstance(raw, dict):
            logger.warning(f"Skipping non-object trail record in {source}")
            continue
        try:
            trails.append(Trail.model_validate(raw))
        except ValidationError as exc:
            logger.warning(f"Skipping malformed trail in {source} ({exc.errors()[0].get('msg')})")
    return trails


def load_trail_file(path: Path) -> Optional[List[Trail]]:
    """None when the file is absent; CatalogLoadError when it is unreadable."""
    if not path.exists():
        return None
    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        raise CatalogLoadError(f"Invalid trail data file: {path.name}") from exc
    return parse_trails(payload, path.name)


class TrailCatalog:
    """
    Holds the trails for the user's selected states.

    Readers always get an immutable tuple; loads build a new tuple and swap it
    in under the lock, so a classifier call never sees a half-loaded catalog.
    """

    def __init__(self, data_dir: Optional[Path] = None) -> None:
        self.data_dir = Path(data_dir) if data_dir else TRAIL_DATA_DIR
        self._lock = threading.Lock()
        self._trails: Tuple[Trail, ...] = ()
        self._loaded_regions: Tuple[str, ...] = ()
        self._source_key: Optional[object] = None
        self.last_loaded_at: Optional[datetime] = None

    # -------------------------
    # read side
    # -------------------------
    @property
    def trails(self) -> Tuple[Trail, ...]:
        return self._trails

    @property
    def loaded_regions(self) -> List[str]:
        return list(self._loaded_regions)

    @property
    def has_loaded(self) -> bool:
        return self._source_key is not None

    def find_trail(self, trail_id: int) -> Optional[Trail]:
        for trail in self._trails:
            if trail.id == trail_id:
                return trail
        return None

    def find_by_name(self, raw_name: str, threshold: int = TRAIL_MATCH_THRESHOLD) -> Optional[Trail]:
        """Fuzzy name lookup used to ground chat answers in catalog facts."""
        trails = self._trails
        if not raw_name or not raw_name.strip() or not trails:
            return None

        choices: Dict[str, Trail] = {}
        for trail in trails:
            if trail.name:
                choices.setdefault(trail.name, trail)
        if not choices:
            return None

        best_match, score = process.extractOne(raw_name, list(choices.keys()))
        if score < threshold:
            return None
        logger.info(f"Trail name match: {best_match} ({score})")
        return choices[best_match]

    # -------------------------
    # loading
    # -------------------------
    def _publish(self, trails: List[Trail], regions: List[str], source_key: object) -> Tuple[Trail, ...]:
        published = tuple(trails)
        with self._lock:
            self._trails = published
            self._loaded_regions = tuple(regions)
            self._source_key = source_key
            self.last_loaded_at = utcnow()
        return published

    def load_for_regions(self, codes: Iterable[str]) -> Tuple[Trail, ...]:
        wanted = _unique_codes(codes)
        combined: List[Trail] = []
        loaded: List[str] = []

        for code in wanted:
            path = self.data_dir / region_filename(code)
            region_trails = load_trail_file(path)
            if region_trails is None:
                logger.warning(f"No trail data found for {code} (looked for {path.name})")
                continue
            combined.extend(region_trails)
            loaded.append(code)
            logger.info(f"Loaded {len(region_trails)} trails from {path.name}")

        published = self._publish(combined, loaded, frozenset(wanted))
        logger.info(f"Total trails loaded: {len(combined)} from {len(loaded)} states")
        return published

    def load_default(self) -> Tuple[Trail, ...]:
        path = self.data_dir / DEFAULT_CATALOG_FILE
        trails = load_trail_file(path)
        if trails is None:
            raise CatalogLoadError(f"Failed to load default trails ({path.name} missing)")
        published = self._publish(trails, [], _DEFAULT_KEY)
        logger.info(f"Loaded {len(trails)} trails from {path.name}")
        return published

    def load(self, codes: Iterable[str]) -> Tuple[Trail, ...]:
        wanted = _unique_codes(codes)
        if not wanted:
            return self.load_default()
        return self.load_for_regions(wanted)

    def load_if_needed(self, codes: Iterable[str]) -> Tuple[Trail, ...]:
        """Reload only when the selected state set differs from what is loaded."""
        wanted = _unique_codes(codes)
        key = frozenset(wanted) if wanted else _DEFAULT_KEY
        with self._lock:
            current_key, current = self._source_key, self._trails
        if current_key == key:
            return current
        return self.load(wanted)

    def refresh(self, codes: Iterable[str]) -> Tuple[Trail, ...]:
        return self.load(codes)

    def add_region(self, code: str) -> Tuple[Trail, ...]:
        wanted = code.strip().upper()
        path = self.data_dir / region_filename(wanted)
        region_trails = load_trail_file(path)
        if region_trails is None:
            logger.warning(f"No trail data found for {wanted} (looked for {path.name})")
            return self._trails

        kept = [t for t in self._trails if normalize_region_code(t.region) != wanted]
        regions = list(self._loaded_regions)
        if wanted not in regions:
            regions.append(wanted)
        key = self._source_key if isinstance(self._source_key, frozenset) else frozenset()
        published = self._publish(kept + region_trails, regions, key | {wanted})
        logger.info(f"Added {len(region_trails)} trails for {wanted}")
        return published

    def remove_region(self, code: str) -> Tuple[Trail, ...]:
        wanted = code.strip().upper()
        kept = [t for t in self._trails if normalize_region_code(t.region) != wanted]
        regions = [r for r in self._loaded_regions if r != wanted]
        key = self._source_key - {wanted} if isinstance(self._source_key, frozenset) else self._source_key
        published = self._publish(kept, regions, key)
        logger.info(f"Removed trails for {wanted}")
        return published

    def clear(self) -> None:
        with self._lock:
            self._trails = ()
            self._loaded_regions = ()
            self._source_key = None
            self.last_loaded_at = None
