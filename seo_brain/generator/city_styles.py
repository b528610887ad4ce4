"""
City visual styles for hero image prompts.

The lookup table lives in data/city_styles.json so new cities can be
added without a code change. Resolution order:
1. Exact city name ("Seattle", or "Seattle, WA" with the state stripped)
2. First feature keyword found in the city's "famous for" tags
3. Generic default mentioning the state
"""

import json
import logging
from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path
from typing import Dict, List, Optional, Union

from seo_brain.models import CityProfile

logger = logging.getLogger(__name__)

DEFAULT_STYLES_PATH = Path(__file__).parent / "data" / "city_styles.json"


@dataclass(frozen=True)
class FeatureStyle:
    keyword: str
    style: str


@dataclass
class CityStyleTable:
    """Curated scene descriptions keyed by city name."""
    cities: Dict[str, str] = field(default_factory=dict)
    features: List[FeatureStyle] = field(default_factory=list)
    default: str = "fanned out on clean white surface with {state} map subtly visible in background"

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> "CityStyleTable":
        with open(path, encoding="utf-8") as f:
            data = json.load(f)

        table = cls(
            cities=dict(data.get("cities", {})),
            features=[
                FeatureStyle(keyword=item["keyword"].lower(), style=item["style"])
                for item in data.get("features", [])
            ],
        )
        if data.get("default"):
            table.default = data["default"]

        logger.debug(f"Loaded {len(table.cities)} city styles from {path}")
        return table

    def style_for(self, city: CityProfile) -> str:
        name = city.name.split(",")[0].strip()
        if name in self.cities:
            return self.cities[name]

        tags = [tag.lower() for tag in city.famous_for]
        for feature in self.features:
            if any(feature.keyword in tag for tag in tags):
                return feature.style

        return self.default.replace("{state}", city.state)


@lru_cache(maxsize=8)
def load_city_styles(path: Optional[str] = None) -> CityStyleTable:
    """Load (and memoize) a style table. None loads the bundled table."""
    return CityStyleTable.from_file(path or DEFAULT_STYLES_PATH)


def get_city_characteristic(city: CityProfile, table: Optional[CityStyleTable] = None) -> str:
    """Scene description for a city's hero image."""
    return (table or load_city_styles()).style_for(city)
