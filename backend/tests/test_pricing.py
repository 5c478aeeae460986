import json
import random

import pytest

from conftest import FakeGateway
from design_studio.core.errors import GatewayError, InvalidDimensionsError, RateLimitedError
from design_studio.models.design_models import Complexity, PriceBand
from design_studio.services.price_bands import lookup_band
from design_studio.services.pricing_service import (
    DEFAULT_PRICE_PER_CUBIC_FOOT,
    ComplexityEstimator,
    PriceQuoter,
    parse_pricing_content,
    place_base_price,
    pricing_from_values,
)


class ScriptedRandom:
    """random() replays values; uniform(a, b) interpolates with the next one."""

    def __init__(self, values):
        self.values = list(values)

    def random(self):
        return self.values.pop(0)

    def uniform(self, a, b):
        return a + (b - a) * self.random()


def reply(**fields):
    return json.dumps(fields)


# ---------- estimator ----------

def test_estimate_parses_reply():
    gateway = FakeGateway(text=reply(complexity="high", pricePerCubicFoot=21000, reasoning="Multi-material"))
    result = ComplexityEstimator(gateway).estimate("Walnut and brass lounge chair")

    assert result.complexity == Complexity.HIGH
    assert result.price_per_cubic_foot == 21000
    assert result.reasoning == "Multi-material"
    assert not result.is_fallback


def test_estimate_accepts_fenced_json():
    content = "```json\n" + reply(complexity="low", pricePerCubicFoot=10000, reasoning="Simple") + "\n```"
    result = ComplexityEstimator(FakeGateway(text=content)).estimate("Pine stool")
    assert result.complexity == Complexity.LOW


@pytest.mark.parametrize("price, expected", [(40000, 25000), (5000, 9000), ("15500", 15500)])
def test_estimate_clamps_price(price, expected):
    gateway = FakeGateway(text=reply(complexity="medium", pricePerCubicFoot=price, reasoning="x"))
    assert ComplexityEstimator(gateway).estimate("Oak table").price_per_cubic_foot == expected


@pytest.mark.parametrize("content", [
    "not json at all",
    "{broken json",
    reply(complexity="medium"),
    reply(pricePerCubicFoot=12000),
    reply(complexity="extreme", pricePerCubicFoot=12000),
    reply(complexity="low", pricePerCubicFoot="lots"),
])
def test_estimate_falls_back_on_bad_reply(content):
    result = ComplexityEstimator(FakeGateway(text=content)).estimate("Oak table")
    assert result.is_fallback
    assert result.complexity == Complexity.MEDIUM
    assert result.price_per_cubic_foot == DEFAULT_PRICE_PER_CUBIC_FOOT


@pytest.mark.parametrize("error", [RateLimitedError(status_code=429), GatewayError("boom", status_code=500)])
def test_estimate_falls_back_on_gateway_error(error):
    result = ComplexityEstimator(FakeGateway(error=error)).estimate("Oak table")
    assert result.is_fallback
    assert result.price_per_cubic_foot == 12000


def test_empty_description_skips_gateway():
    gateway = FakeGateway(text=reply(complexity="high", pricePerCubicFoot=20000))
    assert ComplexityEstimator(gateway).estimate("   ").is_fallback
    assert gateway.text_calls == []


def test_simple_is_low():
    assert parse_pricing_content(reply(complexity="Simple", pricePerCubicFoot=9500)).complexity == Complexity.LOW


def test_pricing_from_values_clamps():
    result = pricing_from_values(None, 30000)
    assert result.complexity == Complexity.MEDIUM
    assert result.price_per_cubic_foot == 25000


# ---------- placement ----------

CHAIRS_SMALL = PriceBand("chairs", "small", 30000, 45000)
CHAIRS_MEDIUM = PriceBand("chairs", "medium", 45000, 60000)
CHAIRS_LARGE = PriceBand("chairs", "large", 60000, 85000)


def test_price_inside_band_gets_small_jitter():
    # magnitude 0.10, negative sign, zero secondary jitter
    rng = ScriptedRandom([0.0, 0.9, 0.5])
    assert place_base_price(10000, 5.2, CHAIRS_MEDIUM, rng) == 46800


def test_price_below_band_moves_into_lower_forty_percent():
    rng = ScriptedRandom([0.5, 0.1, 0.5])
    assert place_base_price(9000, 1.0, CHAIRS_SMALL, rng) == 33000


def test_price_above_band_moves_into_upper_forty_percent():
    rng = ScriptedRandom([0.5, 0.1, 0.25])
    assert place_base_price(25000, 14.0, CHAIRS_LARGE, rng) == 82500


@pytest.mark.parametrize("seed", range(50))
def test_placement_is_always_inside_band(seed):
    rng = random.Random(seed)
    for ppcf, volume, band in [(9000, 1.0, CHAIRS_SMALL), (12000, 5.0, CHAIRS_MEDIUM), (25000, 14.0, CHAIRS_LARGE)]:
        price = place_base_price(ppcf, volume, band, rng)
        assert band.min_price <= price <= band.max_price


def test_out_of_band_prices_do_not_collapse_onto_the_edge():
    prices = {place_base_price(9000, 1.0, CHAIRS_SMALL, random.Random(seed)) for seed in range(30)}
    assert len(prices) > 10
    assert all(30000 <= p <= 36000 for p in prices)

    prices = {place_base_price(25000, 14.0, CHAIRS_LARGE, random.Random(seed)) for seed in range(30)}
    assert len(prices) > 10
    assert all(75000 <= p <= 85000 for p in prices)


def test_same_seed_same_price():
    band = lookup_band("tables", 20)
    assert place_base_price(15000, 20, band, random.Random(7)) == place_base_price(15000, 20, band, random.Random(7))


# ---------- quoter ----------

def test_quote_uses_band_and_markup():
    quote = PriceQuoter(markup=1.2).quote("chairs", "36", "24", "10", rng=random.Random(3))

    assert quote.cubic_feet == pytest.approx(5.0)
    assert (quote.band.min_price, quote.band.max_price) == (45000, 60000)
    assert 45000 <= quote.base_price <= 60000
    assert quote.suggested_price == round(quote.base_price * 1.2)
    assert quote.pricing.is_fallback


def test_quote_estimates_from_description():
    gateway = FakeGateway(text=reply(complexity="high", pricePerCubicFoot=22000, reasoning="Hand polished"))
    quoter = PriceQuoter(ComplexityEstimator(gateway), markup=1.2)

    quote = quoter.quote("tables", 48, 36, 30, description="Hand polished marble table")

    assert quote.pricing.price_per_cubic_foot == 22000
    assert len(gateway.text_calls) == 1


def test_quote_rejects_bad_dimensions_before_estimating():
    gateway = FakeGateway(text=reply(complexity="high", pricePerCubicFoot=22000))
    quoter = PriceQuoter(ComplexityEstimator(gateway))

    with pytest.raises(InvalidDimensionsError):
        quoter.quote("chairs", "36", "", "10", description="Chair")
    assert gateway.text_calls == []


@pytest.mark.parametrize("price", ["1" + "0" * 400, "1e400"])
def test_estimate_falls_back_on_oversized_price(price):
    content = '{"complexity": "high", "pricePerCubicFoot": ' + price + ', "reasoning": "x"}'
    result = ComplexityEstimator(FakeGateway(text=content)).estimate("Oak table")

    assert result.is_fallback
    assert result.price_per_cubic_foot == DEFAULT_PRICE_PER_CUBIC_FOOT
