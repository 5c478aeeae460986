"""
Design generation endpoints.

Responsibilities:
- Run a generation batch (credit check, N variations, pricing, deduction)
- Start an opt-in 3D reconstruction for one variation and poll it in the background
- Cancel a running 3D poll
"""

from fastapi import APIRouter, Depends, HTTPException

from design_studio.core.errors import StudioError
from design_studio.core.logger import logger
from design_studio.dependencies import get_candidate_store, get_job_registry, get_orchestrator
from design_studio.models.design_models import DesignBrief, ModelJobState
from design_studio.models.request_models import Generate3DRequest, GenerateDesignRequest
from design_studio.models.response_models import GenerateDesignResponse, ModelJobResponse
from design_studio.routes.common import http_error

router = APIRouter(prefix="/generate", tags=["Generate"])


@router.post("/", response_model=GenerateDesignResponse)
async def generate_design(
    request: GenerateDesignRequest,
    orchestrator=Depends(get_orchestrator),
    candidates=Depends(get_candidate_store),
):
    """Generate the style-hinted variations for one design brief."""
    brief = DesignBrief(
        prompt=request.prompt,
        sketch_image=request.sketch_image,
        room_image=request.room_image,
    )

    try:
        batch = await orchestrator.generate_batch(request.user_id, brief)
    except StudioError as e:
        raise http_error(e)
    except Exception as e:
        logger.error(f"Design generation failed for user {request.user_id}: {str(e)}")
        raise HTTPException(status_code=500, detail="Failed to generate design")

    candidates.add_all(batch.candidates)
    return GenerateDesignResponse.from_batch(batch)


@router.post("/3d", response_model=ModelJobResponse)
async def generate_3d(
    request: Generate3DRequest,
    orchestrator=Depends(get_orchestrator),
    registry=Depends(get_job_registry),
    candidates=Depends(get_candidate_store),
):
    """
    Start 3D reconstruction for one image.

    Returns immediately; poll /status/{task_id} for progress. A cached model
    comes back already succeeded, a failed submission comes back failed.
    """
    try:
        candidate = candidates.resolve(request.image_url, request.candidate_id)
    except StudioError as e:
        raise http_error(e)

    job = await orchestrator.submit_3d(request.image_url, candidate)

    if job.state == ModelJobState.POLLING:
        registry.start(job, lambda j, abort: orchestrator.poll_3d(j, abort, candidate))

    return ModelJobResponse.from_job(job)


@router.delete("/3d/{task_id}")
async def cancel_3d(task_id: str, registry=Depends(get_job_registry)):
    """Stop polling a running 3D job."""
    if not registry.cancel(task_id):
        raise HTTPException(status_code=404, detail=f"No running 3D job {task_id}")
    return {"task_id": task_id, "cancelled": True}
