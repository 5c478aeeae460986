"""
Manufacturing base-price calculation.

Responsibilities:
- Ask the AI gateway for a complexity tier and price per cubic foot
  (best-effort; falls back to a fixed default)
- Place the base price inside the category band with randomized variation
- Produce a full quote from raw dimensions
"""

import json
import math
import random
import re
from typing import Any, Optional

from design_studio.core.config import settings
from design_studio.core.errors import StudioError
from design_studio.core.logger import get_logger
from design_studio.models.design_models import (
    Complexity,
    PriceBand,
    PriceQuote,
    PricingResult,
)
from design_studio.services.price_bands import lookup_band
from design_studio.services.volume import DimensionInput, dimensions_to_cubic_feet, parse_dimensions

logger = get_logger(__name__)

MIN_PRICE_PER_CUBIC_FOOT = 9000
MAX_PRICE_PER_CUBIC_FOOT = 25000
DEFAULT_PRICE_PER_CUBIC_FOOT = 12000
DEFAULT_REASONING = "Standard furniture piece"

PRIMARY_JITTER_MIN = 0.10
PRIMARY_JITTER_MAX = 0.20
SECONDARY_JITTER = 0.05
REPOSITION_FRACTION = 0.40

COMPLEXITY_ALIASES = {"simple": Complexity.LOW}

PRICING_PROMPT = """You are a master furniture maker. Analyze this furniture design and provide competitive manufacturing pricing.

Design Description: {description}

Analyze this furniture piece and determine:
1. Manufacturing complexity (low/medium/high)
2. Material requirements (single material / one add-on / multi-material)
3. Finishing type (matte single-color / dual-finish texture / gloss metallic hand-polished)
4. Customization level (minimal / moderate / fully bespoke)
5. Assembly difficulty (single piece / modular / multi-part)

Provide a price per cubic foot between 9,000 and 25,000 (INR).

Decision Framework:
- Low Complexity (9,000-12,000/ft3): Simple forms, single material, matte finish, single piece, small decor items
- Medium Complexity (12,000-18,000/ft3): Curved/organic forms, one add-on material, dual finish, modular
- High Complexity (18,000-25,000/ft3): Sculptural/intricate, multi-material, hand-polished or metallic, multi-part

Respond ONLY in valid JSON format (no markdown):
{{
  "complexity": "low|medium|high",
  "pricePerCubicFoot": number,
  "reasoning": "brief explanation of pricing factors"
}}"""

_JSON_OBJECT = re.compile(r"\{[\s\S]*\}")


def default_pricing() -> PricingResult:
    return PricingResult(
        complexity=Complexity.MEDIUM,
        price_per_cubic_foot=DEFAULT_PRICE_PER_CUBIC_FOOT,
        reasoning=DEFAULT_REASONING,
        is_fallback=True,
    )


def clamp_price_per_cubic_foot(value: float) -> int:
    return int(round(min(MAX_PRICE_PER_CUBIC_FOOT, max(MIN_PRICE_PER_CUBIC_FOOT, value))))


def parse_complexity(value: Any) -> Complexity:
    """Raises ValueError for anything other than low/medium/high."""
    key = str(value).strip().lower()
    if key in COMPLEXITY_ALIASES:
        return COMPLEXITY_ALIASES[key]
    return Complexity(key)


def parse_price(value: Any) -> float:
    if isinstance(value, bool) or value is None:
        raise ValueError(f"Not a price: {value!r}")
    try:
        price = float(value)
    except OverflowError:
        raise ValueError(f"Price out of range: {str(value)[:20]}...")
    if not math.isfinite(price):
        raise ValueError(f"Not a finite price: {value!r}")
    return price


def pricing_from_values(
    complexity: Optional[str],
    price_per_cubic_foot: float,
    reasoning: Optional[str] = None,
) -> PricingResult:
    """Build a pricing result from caller-supplied values, clamped like estimates."""
    return PricingResult(
        complexity=parse_complexity(complexity) if complexity else Complexity.MEDIUM,
        price_per_cubic_foot=clamp_price_per_cubic_foot(parse_price(price_per_cubic_foot)),
        reasoning=reasoning or "Designer supplied pricing",
    )


def parse_pricing_content(content: str) -> PricingResult:
    """
    Parse the estimator's reply.

    The model is asked for bare JSON but sometimes wraps it in a markdown
    fence, so the first {...} span is extracted.

    Raises:
        ValueError: Malformed JSON or a missing/invalid field
    """
    match = _JSON_OBJECT.search(content)
    if not match:
        raise ValueError("No JSON object in pricing response")

    parsed = json.loads(match.group(0))
    if not isinstance(parsed, dict):
        raise ValueError("Pricing response is not an object")
    if "complexity" not in parsed or "pricePerCubicFoot" not in parsed:
        raise ValueError("Pricing response is missing fields")

    return PricingResult(
        complexity=parse_complexity(parsed["complexity"]),
        price_per_cubic_foot=clamp_price_per_cubic_foot(parse_price(parsed["pricePerCubicFoot"])),
        reasoning=str(parsed.get("reasoning") or "AI-analyzed competitive pricing"),
    )


class ComplexityEstimator:
    """
    AI complexity and price-per-cubic-foot estimate for a design description.

    This is an enhancement: every failure degrades to default_pricing().
    """

    def __init__(self, gateway):
        self.gateway = gateway

    def estimate(self, description: Optional[str]) -> PricingResult:
        if not description or not description.strip():
            logger.warning("No description to price, using default pricing")
            return default_pricing()

        messages = [{"role": "user", "content": PRICING_PROMPT.format(description=description.strip())}]

        try:
            content = self.gateway.complete_text(messages, response_format={"type": "json_object"})
            result = parse_pricing_content(content)
        except (StudioError, ValueError, TypeError, ArithmeticError) as e:
            logger.warning(f"Pricing analysis failed, using default pricing: {e}")
            return default_pricing()

        logger.info(
            f"Pricing analysis complete: {result.complexity.value} @ {result.price_per_cubic_foot}/ft3"
        )
        return result


def place_base_price(
    price_per_cubic_foot: float,
    cubic_feet: float,
    band: PriceBand,
    rng: Optional[random.Random] = None,
) -> int:
    """
    Turn a unit price and a volume into a base price inside the band.

    Prices outside the band are repositioned into its lower or upper 40%
    rather than clamped to the edge, so distinct designs do not collapse
    onto identical boundary prices.
    """
    rng = rng or random.Random()

    magnitude = rng.uniform(PRIMARY_JITTER_MIN, PRIMARY_JITTER_MAX)
    sign = 1 if rng.random() < 0.5 else -1
    raw = price_per_cubic_foot * (1 + sign * magnitude) * cubic_feet

    if band.contains(raw):
        price = raw * (1 + rng.uniform(-SECONDARY_JITTER, SECONDARY_JITTER))
    elif raw < band.min_price:
        price = band.min_price + band.span * REPOSITION_FRACTION * rng.random()
    else:
        price = band.max_price - band.span * REPOSITION_FRACTION * rng.random()

    return int(min(band.max_price, max(band.min_price, round(price))))


class PriceQuoter:
    """Dimensions + category + pricing analysis -> base and suggested selling price."""

    def __init__(self, estimator: Optional[ComplexityEstimator] = None, markup: float = None):
        self.estimator = estimator
        self.markup = markup if markup is not None else settings.SELLING_MARKUP

    def quote(
        self,
        category: str,
        length: DimensionInput,
        breadth: DimensionInput,
        height: DimensionInput,
        pricing: Optional[PricingResult] = None,
        description: Optional[str] = None,
        rng: Optional[random.Random] = None,
    ) -> PriceQuote:
        # Dimensions gate everything, including the estimator call.
        dimensions = parse_dimensions(length, breadth, height)
        volume = dimensions_to_cubic_feet(dimensions)

        if pricing is None:
            if self.estimator is not None and description:
                pricing = self.estimator.estimate(description)
            else:
                pricing = default_pricing()

        band = lookup_band(category, volume)
        base_price = place_base_price(pricing.price_per_cubic_foot, volume, band, rng)

        logger.info(
            f"Quoted {band.category}/{band.volume_bucket} {volume:.2f}ft3 -> {base_price} "
            f"(band {band.min_price}-{band.max_price})"
        )
        return PriceQuote(
            cubic_feet=volume,
            band=band,
            base_price=base_price,
            suggested_price=int(round(base_price * self.markup)),
            pricing=pricing,
        )
