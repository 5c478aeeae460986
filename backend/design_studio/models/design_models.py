"""
Domain objects for the design generation and pricing flow.

Plain dataclasses: they are mutated by the orchestrator as jobs progress
and are converted to response schemas at the route boundary.
"""

import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional


class Complexity(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class BatchState(str, Enum):
    IDLE = "idle"
    CREDIT_CHECKING = "credit-checking"
    GENERATING_IMAGES = "generating-images"
    IMAGES_READY = "images-ready"
    FAILED = "failed"


class ModelJobState(str, Enum):
    IDLE = "idle"
    SUBMITTING = "submitting"
    POLLING = "polling"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    TIMED_OUT = "timed-out"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self in (
            ModelJobState.SUCCEEDED,
            ModelJobState.FAILED,
            ModelJobState.TIMED_OUT,
            ModelJobState.CANCELLED,
        )


def _new_id() -> str:
    return uuid.uuid4().hex


@dataclass(frozen=True)
class Dimensions:
    """Linear dimensions in inches."""
    length_in: float
    breadth_in: float
    height_in: float

    def as_dict(self) -> Dict[str, float]:
        return {
            "length": self.length_in,
            "breadth": self.breadth_in,
            "height": self.height_in,
            "unit": "in",
        }


@dataclass(frozen=True)
class PriceBand:
    category: str
    volume_bucket: str
    min_price: int
    max_price: int

    def contains(self, price: float) -> bool:
        return self.min_price <= price <= self.max_price

    @property
    def span(self) -> int:
        return self.max_price - self.min_price


@dataclass
class PricingResult:
    complexity: Complexity
    price_per_cubic_foot: int
    reasoning: str
    is_fallback: bool = False


@dataclass
class PriceQuote:
    cubic_feet: float
    band: PriceBand
    base_price: int
    suggested_price: int
    pricing: PricingResult


@dataclass
class DesignBrief:
    prompt: Optional[str] = None
    sketch_image: Optional[str] = None
    room_image: Optional[str] = None


@dataclass
class DesignCandidate:
    variation_number: int
    style_hint: str
    image_url: Optional[str] = None
    model_url: Optional[str] = None
    task_id: Optional[str] = None
    # color -> finish -> image url
    color_variations: Dict[str, Dict[str, str]] = field(default_factory=dict)
    error: Optional[str] = None
    id: str = field(default_factory=_new_id)

    @property
    def succeeded(self) -> bool:
        return self.image_url is not None and self.error is None


@dataclass
class GenerationBatch:
    user_id: str
    brief: DesignBrief
    state: BatchState = BatchState.IDLE
    candidates: List[DesignCandidate] = field(default_factory=list)
    pricing: Optional[PricingResult] = None
    credits_balance: Optional[int] = None
    credits_deducted: bool = False
    id: str = field(default_factory=_new_id)


@dataclass
class ModelStatus:
    """One poll response from the 3D service, normalized."""
    status: str  # pending | succeeded | failed
    progress: int = 0
    model_url: Optional[str] = None
    raw_status: Optional[str] = None


@dataclass
class ModelJob:
    source_image_url: str
    task_id: Optional[str] = None
    state: ModelJobState = ModelJobState.IDLE
    progress: int = 0
    model_url: Optional[str] = None
    attempts: int = 0
    error: Optional[str] = None
    from_cache: bool = False


@dataclass
class SubmissionRecord:
    designer_id: str
    name: str
    description: str
    category: str
    base_price: int
    selling_price: int
    dimensions: Dimensions
    image_url: str
    model_url: Optional[str] = None
    pricing: Optional[PricingResult] = None
