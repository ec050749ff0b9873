"""
Shared fixtures.

DATABASE_URL is pinned to in-memory SQLite before any backend module is
imported, so db.py never tries to reach Postgres during tests.
"""

import os

os.environ.setdefault("DATABASE_URL", "sqlite://")

import json
from unittest.mock import MagicMock

import pytest

from db import SessionLocal
from init_db import drop_tables, init_tables
from models import Trail, TrailPreferences
from trail_catalog import TrailCatalog


# =============================================================================
# Database
# =============================================================================

@pytest.fixture
def db():
    """Fresh schema per test."""
    drop_tables()
    init_tables()
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


# =============================================================================
# Trail data
# =============================================================================

def make_trail(trail_id, difficulty="Easy", distance=2.0, elevation=300, region="SC", name=None, **extra):
    return Trail(
        id=trail_id,
        name=name or f"Trail {trail_id}",
        region=region,
        distance_miles=distance,
        elevation_gain_feet=elevation,
        difficulty_level=difficulty,
        **extra,
    )


@pytest.fixture
def scenario_catalog():
    """Three-trail catalog: T1 easy SC, T2 moderate SC, T3 hard NC."""
    return [
        make_trail(1, "Easy", 2.0, 300, "SC", name="Lakeside Loop"),
        make_trail(2, "Moderate", 5.0, 800, "SC", name="Ridge Runner"),
        make_trail(3, "Hard", 8.0, 2000, "NC", name="Summit Push"),
    ]


@pytest.fixture
def scenario_prefs():
    return TrailPreferences(
        difficulty="Moderate",
        min_distance=1.0,
        max_distance=6.0,
        elevation="Moderate",
        selected_regions=["SC"],
    )


def _record(trail_id, name, state, distance, elevation, difficulty, lat=35.0, lon=-82.5):
    return {
        "id": trail_id,
        "trailName": name,
        "state": state,
        "latitude": lat,
        "longitude": lon,
        "distanceMiles": distance,
        "elevationGainFeet": elevation,
        "difficultyLevel": difficulty,
        "terrainTypes": ["forest"],
        "description": f"{name} description",
        "userRating": 4.5,
    }


@pytest.fixture
def data_dir(tmp_path):
    """A small trail data directory: SC, NC and the default file."""
    (tmp_path / "trails_SC.json").write_text(json.dumps([
        _record(101, "Raven Cliff Falls", "SC", 4.4, 880, "Moderate"),
        _record(102, "Lake Placid Loop", "SC", 0.8, 60, "Easy"),
        _record(103, "Table Rock Trail", "South Carolina", 7.2, 2050, "Hard"),
    ]))
    (tmp_path / "trails_NC.json").write_text(json.dumps({"trails": [
        _record(201, "Max Patch Loop", "NC", 1.4, 280, "Easy", lat=35.8, lon=-82.9),
        _record(202, "Crabtree Falls Loop", "NC", 2.5, 600, "Moderate", lat=35.8, lon=-82.1),
    ]}))
    (tmp_path / "test_trails.json").write_text(json.dumps([
        _record(901, "Sample Meadow Walk", "SC", 1.8, 90, "Easy"),
        _record(902, "Sample Ridge Route", "NC", 5.6, 1100, "Moderate"),
    ]))
    return tmp_path


@pytest.fixture
def catalog(data_dir):
    return TrailCatalog(data_dir=data_dir)


# =============================================================================
# OpenAI
# =============================================================================

def completion(content):
    """Minimal stand-in for a chat.completions.create() result."""
    response = MagicMock()
    response.choices = [MagicMock()]
    response.choices[0].message.content = content
    return response


@pytest.fixture
def openai_client():
    client = MagicMock()
    client.chat.completions.create.return_value = completion("Bring plenty of water.")
    return client
