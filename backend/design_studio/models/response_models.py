"""
Pydantic models for API response schemas.

Responsibilities:
- Define standard response structures
- Ensure consistent API output
"""

from typing import Dict, List, Optional
from pydantic import BaseModel, Field

from design_studio.models.design_models import (
    DesignCandidate,
    GenerationBatch,
    ModelJob,
    PriceQuote,
    PricingResult,
)


class PricingResponse(BaseModel):
    complexity: str
    price_per_cubic_foot: int
    reasoning: str
    is_fallback: bool = False

    @classmethod
    def from_result(cls, result: PricingResult) -> "PricingResponse":
        return cls(
            complexity=result.complexity.value,
            price_per_cubic_foot=result.price_per_cubic_foot,
            reasoning=result.reasoning,
            is_fallback=result.is_fallback,
        )


class CandidateResponse(BaseModel):
    id: str
    variation_number: int
    style_hint: str
    image_url: Optional[str] = None
    model_url: Optional[str] = None
    task_id: Optional[str] = None
    color_variations: Dict[str, Dict[str, str]] = Field(default_factory=dict)
    error: Optional[str] = None

    @classmethod
    def from_candidate(cls, candidate: DesignCandidate) -> "CandidateResponse":
        return cls(
            id=candidate.id,
            variation_number=candidate.variation_number,
            style_hint=candidate.style_hint,
            image_url=candidate.image_url,
            model_url=candidate.model_url,
            task_id=candidate.task_id,
            color_variations=candidate.color_variations,
            error=candidate.error,
        )


class GenerateDesignResponse(BaseModel):
    batch_id: str
    state: str
    candidates: List[CandidateResponse]
    pricing: Optional[PricingResponse] = None
    credits_balance: Optional[int] = None
    credits_deducted: bool = False

    @classmethod
    def from_batch(cls, batch: GenerationBatch) -> "GenerateDesignResponse":
        return cls(
            batch_id=batch.id,
            state=batch.state.value,
            candidates=[CandidateResponse.from_candidate(c) for c in batch.candidates],
            pricing=PricingResponse.from_result(batch.pricing) if batch.pricing else None,
            credits_balance=batch.credits_balance,
            credits_deducted=batch.credits_deducted,
        )


class ModelJobResponse(BaseModel):
    task_id: Optional[str] = None
    source_image_url: str
    state: str
    progress: int = 0
    model_url: Optional[str] = None
    attempts: int = 0
    error: Optional[str] = None
    from_cache: bool = False

    @classmethod
    def from_job(cls, job: ModelJob) -> "ModelJobResponse":
        return cls(
            task_id=job.task_id,
            source_image_url=job.source_image_url,
            state=job.state.value,
            progress=job.progress,
            model_url=job.model_url,
            attempts=job.attempts,
            error=job.error,
            from_cache=job.from_cache,
        )


class PriceBandResponse(BaseModel):
    category: str
    volume_bucket: str
    min_price: int
    max_price: int


class QuoteResponse(BaseModel):
    cubic_feet: float
    band: PriceBandResponse
    base_price: int
    suggested_price: int
    pricing: PricingResponse

    @classmethod
    def from_quote(cls, quote: PriceQuote) -> "QuoteResponse":
        return cls(
            cubic_feet=round(quote.cubic_feet, 4),
            band=PriceBandResponse(
                category=quote.band.category,
                volume_bucket=quote.band.volume_bucket,
                min_price=quote.band.min_price,
                max_price=quote.band.max_price,
            ),
            base_price=quote.base_price,
            suggested_price=quote.suggested_price,
            pricing=PricingResponse.from_result(quote.pricing),
        )


class RecolorResponse(BaseModel):
    candidate_id: str
    color: str
    finish: str
    image_url: str
    cached: bool = False


class TitleResponse(BaseModel):
    title: str


class DescriptionResponse(BaseModel):
    description: str


class SubmissionResponse(BaseModel):
    id: str
    status: str = "pending"
