# backend/trails_router.py

from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from deps import get_catalog, get_preference_store, load_catalog_for
from models import MapRegion, RegionInfo, Trail, TrailTiersResponse
from preference_store import PreferenceStore
from regions import all_regions, available_regions
from trail_catalog import CatalogLoadError, TrailCatalog
from trail_classifier import (
    beginner_trails,
    classify_recommended,
    classify_trails,
    completed_trails,
    map_region,
    progression_trails,
    trail_count_by_region,
)

router = APIRouter(prefix="/trails", tags=["trails"])


@router.get("/tiers", response_model=TrailTiersResponse)
def get_tiers(
    q: str = Query("", description="Search within the other-trails tier"),
    store: PreferenceStore = Depends(get_preference_store),
    catalog: TrailCatalog = Depends(get_catalog),
) -> TrailTiersResponse:
    trails = load_catalog_for(store, catalog)
    tiers = classify_trails(trails, store.preferences.snapshot(), q)
    return TrailTiersResponse(
        recommended=tiers.recommended,
        easier=tiers.easier,
        other=tiers.other,
        search_query=q,
    )


@router.get("/regions", response_model=Dict[str, List[RegionInfo]])
def list_regions(
    available_only: bool = Query(False, description="Only states with bundled trail data"),
    store: PreferenceStore = Depends(get_preference_store),
    catalog: TrailCatalog = Depends(get_catalog),
):
    trails = load_catalog_for(store, catalog)
    selected = set(store.preferences.selected_regions)
    counts = trail_count_by_region(trails)
    regions = [
        RegionInfo(
            code=r.code,
            name=r.name,
            has_trail_data=r.has_trail_data,
            selected=r.code in selected,
            trail_count=counts.get(r.code, 0),
        )
        for r in (available_regions() if available_only else all_regions())
    ]
    return {"regions": regions}


@router.get("/completed", response_model=Dict[str, List[Trail]])
def list_completed(
    store: PreferenceStore = Depends(get_preference_store),
    catalog: TrailCatalog = Depends(get_catalog),
):
    trails = load_catalog_for(store, catalog)
    return {"trails": completed_trails(trails, store.preferences)}


@router.get("/progression", response_model=Dict[str, List[Trail]])
def list_progression(
    store: PreferenceStore = Depends(get_preference_store),
    catalog: TrailCatalog = Depends(get_catalog),
):
    trails = load_catalog_for(store, catalog)
    return {"trails": progression_trails(trails, store.preferences.snapshot())}


@router.get("/beginner", response_model=Dict[str, List[Trail]])
def list_beginner(
    store: PreferenceStore = Depends(get_preference_store),
    catalog: TrailCatalog = Depends(get_catalog),
):
    trails = load_catalog_for(store, catalog)
    return {"trails": beginner_trails(trails, store.preferences.snapshot())}


@router.get("/map-region", response_model=Optional[MapRegion])
def get_map_region(
    store: PreferenceStore = Depends(get_preference_store),
    catalog: TrailCatalog = Depends(get_catalog),
):
    trails = load_catalog_for(store, catalog)
    return map_region(classify_recommended(trails, store.preferences.snapshot()))


@router.post("/reload", response_model=Dict[str, Any])
def reload_trails(
    store: PreferenceStore = Depends(get_preference_store),
    catalog: TrailCatalog = Depends(get_catalog),
):
    try:
        trails = catalog.refresh(store.preferences.selected_regions)
    except CatalogLoadError:
        raise HTTPException(500, "Failed to load trail data")
    return {"count": len(trails), "loaded_regions": catalog.loaded_regions}


@router.get("/{trail_id}", response_model=Dict[str, Any])
def get_trail(
    trail_id: int,
    store: PreferenceStore = Depends(get_preference_store),
    catalog: TrailCatalog = Depends(get_catalog),
):
    trails = load_catalog_for(store, catalog)
    trail = next((t for t in trails if t.id == trail_id), None)
    if trail is None:
        raise HTTPException(404, "Trail not found")
    return {"trail": trail, "completed": store.preferences.is_trail_completed(trail_id)}
