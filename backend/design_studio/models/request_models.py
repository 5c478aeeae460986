"""
Pydantic models for API request validation.

Responsibilities:
- Define schemas for incoming JSON payloads
- Validate data types and required fields
"""

from typing import Optional, Union
from pydantic import BaseModel, Field

DimensionValue = Union[str, float]


class GenerateDesignRequest(BaseModel):
    user_id: str
    prompt: Optional[str] = Field(None, max_length=2000)
    sketch_image: Optional[str] = Field(None, description="Sketch as a data URL or http(s) URL")
    room_image: Optional[str] = Field(None, description="Room photo as a data URL or http(s) URL")


class Generate3DRequest(BaseModel):
    image_url: str
    candidate_id: Optional[str] = None


class EstimateRequest(BaseModel):
    description: str = Field(..., min_length=1, max_length=2000)


class QuoteRequest(BaseModel):
    category: str
    length: Optional[DimensionValue] = None
    breadth: Optional[DimensionValue] = None
    height: Optional[DimensionValue] = None
    description: Optional[str] = None
    complexity: Optional[str] = None
    price_per_cubic_foot: Optional[float] = None
    reasoning: Optional[str] = None
    seed: Optional[int] = Field(None, description="Fix the pricing jitter (reproducible quotes)")


class RecolorRequest(BaseModel):
    image_url: str
    color: str
    finish: str = "matte"
    candidate_id: Optional[str] = None


class TitleRequest(BaseModel):
    category: str
    prompt: Optional[str] = None
    length: Optional[DimensionValue] = None
    breadth: Optional[DimensionValue] = None
    height: Optional[DimensionValue] = None


class DescriptionRequest(BaseModel):
    name: str
    category: str
    length: Optional[DimensionValue] = None
    breadth: Optional[DimensionValue] = None
    height: Optional[DimensionValue] = None


class SubmissionRequest(BaseModel):
    designer_id: str
    name: str
    description: str
    category: str
    base_price: int
    selling_price: int
    length: DimensionValue
    breadth: DimensionValue
    height: DimensionValue
    image_url: str
    model_url: Optional[str] = None
    complexity: Optional[str] = None
    price_per_cubic_foot: Optional[int] = None
    pricing_reasoning: Optional[str] = None
