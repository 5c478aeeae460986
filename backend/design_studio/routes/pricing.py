"""
Pricing endpoints.

Responsibilities:
- AI complexity / price-per-cubic-foot estimate for a description
- Base-price quote from category, dimensions and pricing analysis
"""

import random

from fastapi import APIRouter, Depends, HTTPException

from design_studio.core.errors import StudioError
from design_studio.dependencies import get_estimator, get_quoter
from design_studio.models.request_models import EstimateRequest, QuoteRequest
from design_studio.models.response_models import PricingResponse, QuoteResponse
from design_studio.routes.common import http_error
from design_studio.services.pricing_service import pricing_from_values

router = APIRouter(prefix="/pricing", tags=["Pricing"])


@router.post("/estimate", response_model=PricingResponse)
def estimate_pricing(request: EstimateRequest, estimator=Depends(get_estimator)):
    """Complexity tier and price per cubic foot; falls back to defaults on any AI failure."""
    return PricingResponse.from_result(estimator.estimate(request.description))


@router.post("/quote", response_model=QuoteResponse)
def quote_price(request: QuoteRequest, quoter=Depends(get_quoter)):
    """
    Quote a manufacturing base price and a suggested selling price.

    Uses the caller's price per cubic foot when given, otherwise estimates
    it from the description.
    """
    pricing = None
    if request.price_per_cubic_foot is not None:
        try:
            pricing = pricing_from_values(
                request.complexity, request.price_per_cubic_foot, request.reasoning
            )
        except ValueError as e:
            raise HTTPException(status_code=400, detail=f"Invalid pricing: {e}")

    rng = random.Random(request.seed) if request.seed is not None else None

    try:
        quote = quoter.quote(
            request.category,
            request.length,
            request.breadth,
            request.height,
            pricing=pricing,
            description=request.description,
            rng=rng,
        )
    except StudioError as e:
        raise http_error(e)

    return QuoteResponse.from_quote(quote)
