"""
Design submission endpoint.

Validates the confirmed variation and its pricing, then persists it for
admin review.
"""

from fastapi import APIRouter, Depends, HTTPException

from design_studio.core.errors import StudioError
from design_studio.core.logger import logger
from design_studio.dependencies import get_submission_service
from design_studio.models.design_models import SubmissionRecord
from design_studio.models.request_models import SubmissionRequest
from design_studio.models.response_models import SubmissionResponse
from design_studio.routes.common import http_error
from design_studio.services.pricing_service import pricing_from_values
from design_studio.services.volume import parse_dimensions

router = APIRouter(prefix="/submissions", tags=["Submissions"])


@router.post("/", response_model=SubmissionResponse)
def submit_design(request: SubmissionRequest, service=Depends(get_submission_service)):
    try:
        dimensions = parse_dimensions(request.length, request.breadth, request.height)
        pricing = None
        if request.price_per_cubic_foot is not None:
            pricing = pricing_from_values(
                request.complexity, request.price_per_cubic_foot, request.pricing_reasoning
            )

        record = SubmissionRecord(
            designer_id=request.designer_id,
            name=request.name,
            description=request.description,
            category=request.category,
            base_price=request.base_price,
            selling_price=request.selling_price,
            dimensions=dimensions,
            image_url=request.image_url,
            model_url=request.model_url,
            pricing=pricing,
        )
        submission_id = service.submit(record)

    except StudioError as e:
        raise http_error(e)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=f"Invalid pricing: {e}")
    except Exception as e:
        logger.error(f"Failed to save submission for designer {request.designer_id}: {str(e)}")
        raise HTTPException(status_code=500, detail="Failed to save submission")

    return SubmissionResponse(id=submission_id)


@router.get("/{submission_id}")
def get_submission(submission_id: str, service=Depends(get_submission_service)):
    """Read back a submission and its review status."""
    try:
        submission = service.get(submission_id)
    except Exception as e:
        logger.error(f"Failed to load submission {submission_id}: {str(e)}")
        raise HTTPException(status_code=500, detail="Failed to load submission")

    if submission is None:
        raise HTTPException(status_code=404, detail=f"Submission {submission_id} not found")
    return submission
