"""
Client for Meshy's image-to-3D API.

Responsibilities:
- Submit a reconstruction task for a source image
- Fetch and normalize task status (pending / succeeded / failed)
"""

from typing import Any, Dict, Optional

import requests

from design_studio.core.config import settings
from design_studio.core.errors import ModelServiceError, ServiceNotConfiguredError
from design_studio.core.logger import get_logger
from design_studio.models.design_models import ModelStatus

logger = get_logger(__name__)

SUCCEEDED_STATUSES = {"SUCCEEDED"}
FAILED_STATUSES = {"FAILED", "EXPIRED", "CANCELED", "CANCELLED"}


def normalize_status(raw_status: Optional[str]) -> str:
    key = str(raw_status or "").upper()
    if key in SUCCEEDED_STATUSES:
        return "succeeded"
    if key in FAILED_STATUSES:
        return "failed"
    return "pending"


class MeshyClient:
    """Blocking Meshy client; the orchestrator runs it in an executor."""

    def __init__(
        self,
        api_base: str = None,
        api_key: str = None,
        ai_model: str = None,
        timeout: float = None,
        session: Optional[requests.Session] = None,
    ):
        self.api_base = (api_base or settings.MESHY_API_BASE).rstrip("/")
        self.api_key = api_key if api_key is not None else settings.MESHY_API_KEY
        self.ai_model = ai_model or settings.MESHY_AI_MODEL
        self.timeout = timeout or settings.REQUEST_TIMEOUT
        self.session = session or requests.Session()

    def _headers(self) -> Dict[str, str]:
        if not self.api_key:
            raise ServiceNotConfiguredError("3D generation not configured")
        return {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }

    def _request(self, method: str, path: str, payload: Dict[str, Any] = None) -> Dict[str, Any]:
        url = f"{self.api_base}{path}"
        try:
            response = self.session.request(
                method, url, headers=self._headers(), json=payload, timeout=self.timeout
            )
        except requests.RequestException as e:
            raise ModelServiceError(f"{method} {path} failed: {e}")

        if not response.ok:
            raise ModelServiceError(f"{method} {path} -> {response.status_code}: {response.text[:500]}")

        try:
            data = response.json()
        except ValueError:
            raise ModelServiceError(f"{method} {path} returned a non-JSON body")

        if not isinstance(data, dict):
            raise ModelServiceError(f"{method} {path} returned {type(data).__name__}, expected an object")
        return data

    def submit(self, image_url: str, enable_pbr: bool = True) -> str:
        """Create an image-to-3D task; returns the task id."""
        data = self._request("POST", "/image-to-3d", {
            "image_url": image_url,
            "enable_pbr": enable_pbr,
            "ai_model": self.ai_model,
        })

        task_id = data.get("result")
        if not task_id:
            raise ModelServiceError("Meshy did not return a task id")

        logger.info(f"Meshy task created: {task_id}")
        return task_id

    def fetch_status(self, task_id: str) -> ModelStatus:
        data = self._request("GET", f"/image-to-3d/{task_id}")

        raw_status = data.get("status")
        model_urls = data.get("model_urls") or {}
        if not isinstance(model_urls, dict):
            raise ModelServiceError(f"Meshy task {task_id} returned malformed model_urls")
        try:
            progress = int(data.get("progress") or 0)
        except (TypeError, ValueError, OverflowError):
            progress = 0

        logger.debug(f"Meshy status for task {task_id}: {raw_status} ({progress}%)")
        return ModelStatus(
            status=normalize_status(raw_status),
            progress=progress,
            model_url=model_urls.get("glb"),
            raw_status=raw_status,
        )
