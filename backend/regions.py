"""US state lookup used to scope the trail catalog by region."""

from __future__ import annotations

from typing import List, NamedTuple, Optional


class Region(NamedTuple):
    code: str
    name: str
    has_trail_data: bool


ALL_REGIONS: List[Region] = [
    Region("AL", "Alabama", False),
    Region("AK", "Alaska", False),
    Region("AZ", "Arizona", False),
    Region("AR", "Arkansas", False),
    Region("CA", "California", False),
    Region("CO", "Colorado", False),
    Region("CT", "Connecticut", False),
    Region("DE", "Delaware", False),
    Region("FL", "Florida", False),
    Region("GA", "Georgia", False),
    Region("HI", "Hawaii", False),
    Region("ID", "Idaho", False),
    Region("IL", "Illinois", False),
    Region("IN", "Indiana", False),
    Region("IA", "Iowa", False),
    Region("KS", "Kansas", False),
    Region("KY", "Kentucky", False),
    Region("LA", "Louisiana", False),
    Region("ME", "Maine", False),
    Region("MD", "Maryland", False),
    Region("MA", "Massachusetts", False),
    Region("MI", "Michigan", False),
    Region("MN", "Minnesota", False),
    Region("MS", "Mississippi", False),
    Region("MO", "Missouri", False),
    Region("MT", "Montana", False),
    Region("NE", "Nebraska", False),
    Region("NV", "Nevada", False),
    Region("NH", "New Hampshire", False),
    Region("NJ", "New Jersey", False),
    Region("NM", "New Mexico", False),
    Region("NY", "New York", False),
    Region("NC", "North Carolina", True),
    Region("ND", "North Dakota", False),
    Region("OH", "Ohio", False),
    Region("OK", "Oklahoma", False),
    Region("OR", "Oregon", False),
    Region("PA", "Pennsylvania", False),
    Region("RI", "Rhode Island", False),
    Region("SC", "South Carolina", True),
    Region("SD", "South Dakota", False),
    Region("TN", "Tennessee", False),
    Region("TX", "Texas", False),
    Region("UT", "Utah", False),
    Region("VT", "Vermont", False),
    Region("VA", "Virginia", False),
    Region("WA", "Washington", False),
    Region("WV", "West Virginia", False),
    Region("WI", "Wisconsin", False),
    Region("WY", "Wyoming", False),
]

_BY_CODE = {r.code: r for r in ALL_REGIONS}
_BY_NAME = {r.name.lower(): r for r in ALL_REGIONS}


def all_regions() -> List[Region]:
    return list(ALL_REGIONS)


def available_regions() -> List[Region]:
    """States that ship with bundled trail data."""
    return [r for r in ALL_REGIONS if r.has_trail_data]


def state_name_for(code: str) -> str:
    region = _BY_CODE.get((code or "").upper())
    return region.name if region else code


def state_code_for(name: str) -> Optional[str]:
    region = _BY_NAME.get((name or "").strip().lower())
    return region.code if region else None
