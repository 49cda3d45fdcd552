"""
Regional market configuration.

Each region is keyed by its area code (or short slug) and lists the cities
whose postings belong to it. Candidate retrieval uses this table to decide
region membership for postings that were not tagged with a region code.
"""

from dataclasses import dataclass, field
from typing import Dict, Tuple


@dataclass(frozen=True)
class RegionConfig:
    """A regional job market."""

    code: str
    name: str
    cities: Tuple[str, ...] = field(default_factory=tuple)

    def location_terms(self) -> Tuple[str, ...]:
        """Lower-cased terms a posting location may contain to belong here."""
        terms = [self.name.lower()] if self.name and self.name != self.code else []
        terms.extend(city.lower() for city in self.cities)
        return tuple(terms)


REGIONS: Dict[str, RegionConfig] = {
    "209": RegionConfig(
        code="209",
        name="Central Valley",
        cities=("Stockton", "Modesto", "Tracy", "Manteca", "Lodi", "Turlock", "Merced", "Fresno"),
    ),
    "916": RegionConfig(
        code="916",
        name="Sacramento Metro",
        cities=("Sacramento", "Elk Grove", "Roseville", "Folsom", "Davis", "Woodland"),
    ),
    "510": RegionConfig(
        code="510",
        name="East Bay",
        cities=("Oakland", "Berkeley", "Fremont", "Hayward", "Richmond", "Alameda"),
    ),
    "norcal": RegionConfig(
        code="norcal",
        name="Northern California",
        cities=("San Francisco", "San Jose", "Sacramento", "Oakland", "Stockton", "Santa Rosa"),
    ),
}

DEFAULT_REGION = "209"


def get_region(code: str) -> RegionConfig:
    """Return the region for ``code``; unknown codes match on the code alone."""
    normalized = (code or "").strip().lower()
    if normalized in REGIONS:
        return REGIONS[normalized]
    return RegionConfig(code=normalized, name=normalized)
