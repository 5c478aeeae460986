"""
Listing copy endpoints (AI title and description with fixed fallbacks).
"""

from fastapi import APIRouter, Depends

from design_studio.core.errors import StudioError
from design_studio.dependencies import get_listing_copy_service
from design_studio.models.request_models import DescriptionRequest, TitleRequest
from design_studio.models.response_models import DescriptionResponse, TitleResponse
from design_studio.routes.common import http_error
from design_studio.services.volume import parse_dimensions

router = APIRouter(prefix="/listing", tags=["Listing"])


def _optional_dimensions(request):
    if request.length is None and request.breadth is None and request.height is None:
        return None
    try:
        return parse_dimensions(request.length, request.breadth, request.height)
    except StudioError as e:
        raise http_error(e)


@router.post("/title", response_model=TitleResponse)
def generate_title(request: TitleRequest, copy=Depends(get_listing_copy_service)):
    dimensions = _optional_dimensions(request)
    return TitleResponse(title=copy.generate_title(request.category, request.prompt, dimensions))


@router.post("/description", response_model=DescriptionResponse)
def generate_description(request: DescriptionRequest, copy=Depends(get_listing_copy_service)):
    dimensions = _optional_dimensions(request)
    return DescriptionResponse(
        description=copy.generate_description(request.name, request.category, dimensions)
    )
