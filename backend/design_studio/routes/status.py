"""
Status endpoint for 3D reconstruction jobs.

Jobs started through this service are answered from the live job registry;
unknown task ids are checked once against the 3D service directly.
"""

from fastapi import APIRouter, Depends, HTTPException
from fastapi.concurrency import run_in_threadpool

from design_studio.core.errors import StudioError
from design_studio.core.logger import logger
from design_studio.dependencies import get_job_registry, get_meshy
from design_studio.models.design_models import ModelJob, ModelJobState
from design_studio.models.response_models import ModelJobResponse
from design_studio.routes.common import http_error

router = APIRouter(prefix="/status", tags=["Status"])

_STATE_FOR_STATUS = {
    "pending": ModelJobState.POLLING,
    "succeeded": ModelJobState.SUCCEEDED,
    "failed": ModelJobState.FAILED,
}


@router.get("/{task_id}", response_model=ModelJobResponse)
async def get_model_status(
    task_id: str,
    registry=Depends(get_job_registry),
    meshy=Depends(get_meshy),
):
    """
    Get the state of a 3D job.

    Returns:
        state: polling | succeeded | failed | timed-out | cancelled
        progress: percentage reported by the 3D service
        model_url: GLB asset URL once succeeded
    """
    job = registry.get(task_id)
    if job is not None:
        return ModelJobResponse.from_job(job)

    try:
        status = await run_in_threadpool(meshy.fetch_status, task_id)
    except StudioError as e:
        logger.error(f"Failed to check 3D status for task {task_id}: {e.message}")
        raise http_error(e)
    except Exception as e:
        logger.error(f"Failed to check 3D status for task {task_id}: {str(e)}")
        raise HTTPException(status_code=500, detail="Failed to check 3D status")

    job = ModelJob(
        source_image_url="",
        task_id=task_id,
        state=_STATE_FOR_STATUS[status.status],
        progress=status.progress,
        model_url=status.model_url,
        attempts=1,
    )
    if job.state == ModelJobState.SUCCEEDED and not job.model_url:
        job.state = ModelJobState.FAILED
        job.error = "3D generation finished without a model"
    return ModelJobResponse.from_job(job)
