"""
Category price-band guidelines.

A static step function over volume buckets: every (category, volume) pair
resolves to a [min, max] base-price band in INR. Unknown categories use the
default row.
"""

import math
from typing import Dict, Tuple

from design_studio.models.design_models import PriceBand

DEFAULT_CATEGORY = "default"

# Upper-inclusive cubic-foot thresholds; anything above the last is "xl".
VOLUME_BUCKETS: Tuple[Tuple[str, float], ...] = (
    ("small", 3.0),
    ("medium", 8.0),
    ("large", 15.0),
)
OVERFLOW_BUCKET = "xl"

# category -> bucket -> (min, max)
PRICE_BANDS: Dict[str, Dict[str, Tuple[int, int]]] = {
    "chairs": {
        "small": (30000, 45000),
        "medium": (45000, 60000),
        "large": (60000, 85000),
        "xl": (85000, 110000),
    },
    "tables": {
        "small": (25000, 40000),
        "medium": (40000, 60000),
        "large": (60000, 80000),
        "xl": (80000, 120000),
    },
    "benches": {
        "small": (30000, 45000),
        "medium": (45000, 65000),
        "large": (65000, 90000),
        "xl": (90000, 130000),
    },
    "decor": {
        "small": (8000, 15000),
        "medium": (15000, 25000),
        "large": (25000, 40000),
        "xl": (40000, 60000),
    },
    "sculptural art": {
        "small": (20000, 40000),
        "medium": (40000, 70000),
        "large": (70000, 100000),
        "xl": (100000, 150000),
    },
    "installations": {
        "small": (40000, 70000),
        "medium": (70000, 100000),
        "large": (100000, 150000),
        "xl": (150000, 250000),
    },
    DEFAULT_CATEGORY: {
        "small": (20000, 35000),
        "medium": (35000, 55000),
        "large": (55000, 80000),
        "xl": (80000, 110000),
    },
}

CATEGORY_ALIASES = {
    "chair": "chairs",
    "table": "tables",
    "bench": "benches",
    "installation": "installations",
    "sculpture": "sculptural art",
}


def normalize_category(category) -> str:
    key = str(category or "").strip().lower()
    key = CATEGORY_ALIASES.get(key, key)
    return key if key in PRICE_BANDS else DEFAULT_CATEGORY


def volume_bucket(cubic_feet) -> str:
    try:
        volume = float(cubic_feet)
    except (TypeError, ValueError):
        volume = 0.0
    if not math.isfinite(volume) or volume <= 0:
        return VOLUME_BUCKETS[0][0]
    for name, upper in VOLUME_BUCKETS:
        if volume <= upper:
            return name
    return OVERFLOW_BUCKET


def lookup_band(category, cubic_feet) -> PriceBand:
    """Return the guideline band for a category and volume. Never raises."""
    key = normalize_category(category)
    bucket = volume_bucket(cubic_feet)
    min_price, max_price = PRICE_BANDS[key][bucket]
    return PriceBand(category=key, volume_bucket=bucket, min_price=min_price, max_price=max_price)
