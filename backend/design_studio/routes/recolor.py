"""
Recolor endpoint: color and finish variations of a generated design.
"""

from fastapi import APIRouter, Depends

from design_studio.core.errors import StudioError
from design_studio.dependencies import get_candidate_store, get_recolor_service
from design_studio.models.request_models import RecolorRequest
from design_studio.models.response_models import RecolorResponse
from design_studio.routes.common import http_error

router = APIRouter(prefix="/recolor", tags=["Recolor"])


@router.post("/", response_model=RecolorResponse)
def recolor_design(
    request: RecolorRequest,
    recolor=Depends(get_recolor_service),
    candidates=Depends(get_candidate_store),
):
    try:
        candidate = candidates.resolve(request.image_url, request.candidate_id)
        image_url, cached = recolor.recolor(candidate, request.color, request.finish)
    except StudioError as e:
        raise http_error(e)

    return RecolorResponse(
        candidate_id=candidate.id,
        color=request.color.strip().lower(),
        finish=request.finish.strip().lower(),
        image_url=image_url,
        cached=cached,
    )
