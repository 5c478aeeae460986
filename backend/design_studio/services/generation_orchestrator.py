"""
Orchestrator for the design generation flow.

Responsibilities:
- Gate each batch on a credit check before any AI spend
- Fire the style-hinted image variations concurrently
- Attach one pricing analysis per batch and deduct credits afterwards
- Submit and poll best-effort 3D reconstruction jobs per variation

The gateway, Meshy and Supabase clients are blocking, so every call runs in
the event loop's default executor and the orchestrator suspends on it.
"""

import asyncio
import functools
from typing import Any, Callable, Dict, List, Optional

from design_studio.core.config import settings
from design_studio.core.errors import (
    CreditCheckError,
    InsufficientCreditsError,
    InvalidBriefError,
    MissingImageError,
    StudioError,
)
from design_studio.core.logger import get_logger
from design_studio.models.design_models import (
    BatchState,
    DesignBrief,
    DesignCandidate,
    GenerationBatch,
    ModelJob,
    ModelJobState,
    PricingResult,
)
from design_studio.services.model_cache import ModelAssetCache
from design_studio.services.pricing_service import default_pricing

logger = get_logger(__name__)

MIN_PROMPT_LENGTH = 10

STYLE_HINTS = [
    "Focus on bold, sculptural forms with dramatic curves",
    "Emphasize minimalist elegance with refined proportions",
    "Create organic, flowing lines with nature-inspired shapes",
]

DESIGN_SUFFIX = (
    "Create a single beautiful furniture design shown from a 3/4 view with professional "
    "lighting on a clean white background. The design should be elegant, manufacturable, "
    "and suitable for 3D printing."
)

SKETCH_FALLBACK_PROMPT = "Improve and refine this design"
SKETCH_PRICING_DESCRIPTION = "Furniture design refined from a designer's sketch"


def validate_brief(brief: DesignBrief) -> None:
    prompt = (brief.prompt or "").strip()
    if len(prompt) >= MIN_PROMPT_LENGTH or brief.sketch_image:
        return
    raise InvalidBriefError()


def style_hint_for(variation_number: int) -> str:
    return STYLE_HINTS[(variation_number - 1) % len(STYLE_HINTS)]


def build_variation_messages(brief: DesignBrief, style_hint: str) -> List[Dict[str, Any]]:
    """Gateway message list for one variation: sketch, room-aware or plain text."""
    prompt = (brief.prompt or "").strip()

    if brief.sketch_image:
        text = (
            "Based on this sketch/reference image, create a refined, photorealistic furniture "
            f"design. Style variation: {style_hint}\n\n"
            f"{prompt or SKETCH_FALLBACK_PROMPT}\n\n{DESIGN_SUFFIX}"
        )
        reference = brief.sketch_image
    else:
        text = (
            f"Design a photorealistic furniture piece. Style variation: {style_hint}\n\n"
            f"{prompt}\n\n{DESIGN_SUFFIX}"
        )
        reference = brief.room_image

    if reference:
        return [{
            "role": "user",
            "content": [
                {"type": "text", "text": text},
                {"type": "image_url", "image_url": {"url": reference}},
            ],
        }]
    return [{"role": "user", "content": text}]


class DesignGenerationOrchestrator:
    """
    Runs generation batches and 3D jobs.

    Collaborators are injected so tests can substitute fakes:
        gateway: generate_image(messages) -> url
        credits: check(user_id, n) -> CreditCheck, deduct(user_id, n) -> balance
        estimator: estimate(description) -> PricingResult (never raises)
        meshy: submit(image_url) -> task id, fetch_status(task_id) -> ModelStatus
        image_store: upload_generated_image(batch_id, variation, url) -> url
    """

    def __init__(
        self,
        gateway,
        credits,
        estimator,
        meshy=None,
        cache: Optional[ModelAssetCache] = None,
        image_store=None,
        variation_count: int = None,
        credits_per_generation: int = None,
        isolate_failures: bool = None,
        poll_initial_delay: float = None,
        poll_interval: float = None,
        poll_max_attempts: int = None,
        sleep: Callable = asyncio.sleep,
    ):
        self.gateway = gateway
        self.credits = credits
        self.estimator = estimator
        self.meshy = meshy
        self.cache = cache if cache is not None else ModelAssetCache(settings.MODEL_CACHE_SIZE)
        self.image_store = image_store
        self.variation_count = variation_count or settings.VARIATION_COUNT
        self.credits_per_generation = (
            credits_per_generation if credits_per_generation is not None
            else settings.CREDITS_PER_GENERATION
        )
        self.isolate_failures = (
            isolate_failures if isolate_failures is not None
            else settings.ISOLATE_VARIATION_FAILURES
        )
        self.poll_initial_delay = (
            poll_initial_delay if poll_initial_delay is not None else settings.POLL_INITIAL_DELAY
        )
        self.poll_interval = poll_interval if poll_interval is not None else settings.POLL_INTERVAL
        self.poll_max_attempts = poll_max_attempts or settings.POLL_MAX_ATTEMPTS
        self._sleep = sleep

    async def _run_blocking(self, func: Callable, *args):
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, functools.partial(func, *args))

    @staticmethod
    def _transition(batch: GenerationBatch, state: BatchState) -> None:
        logger.info(f"Batch {batch.id}: {batch.state.value} -> {state.value}")
        batch.state = state

    # ==================== IMAGE BATCH ====================

    async def generate_batch(self, user_id: str, brief: DesignBrief) -> GenerationBatch:
        """
        Run one generation batch.

        Raises:
            InvalidBriefError: No usable prompt or sketch (before any external call)
            CreditCheckError: The credit check itself failed (fail closed)
            InsufficientCreditsError: Balance below the per-generation cost
            StudioError: A variation failed (or all did, with failure isolation)
        """
        validate_brief(brief)

        batch = GenerationBatch(user_id=user_id, brief=brief)
        batch.candidates = [
            DesignCandidate(variation_number=n, style_hint=style_hint_for(n))
            for n in range(1, self.variation_count + 1)
        ]

        await self._check_credits(batch)

        self._transition(batch, BatchState.GENERATING_IMAGES)
        try:
            await self._generate_images(batch)
        except Exception:
            self._transition(batch, BatchState.FAILED)
            raise

        description = (brief.prompt or "").strip() or SKETCH_PRICING_DESCRIPTION
        batch.pricing = await self._estimate_pricing(batch, description)

        await self._deduct_credits(batch)

        self._transition(batch, BatchState.IMAGES_READY)
        return batch

    async def _estimate_pricing(self, batch: GenerationBatch, description: str) -> PricingResult:
        try:
            return await self._run_blocking(self.estimator.estimate, description)
        except Exception as e:
            logger.warning(f"Pricing analysis for batch {batch.id} failed, using default pricing: {e}")
            return default_pricing()

    async def _check_credits(self, batch: GenerationBatch) -> None:
        self._transition(batch, BatchState.CREDIT_CHECKING)
        try:
            check = await self._run_blocking(
                self.credits.check, batch.user_id, self.credits_per_generation
            )
        except Exception as e:
            self._transition(batch, BatchState.FAILED)
            logger.error(f"Credit check failed for user {batch.user_id}: {e}")
            raise CreditCheckError(f"Unable to verify credits: {e}") from e

        batch.credits_balance = check.balance
        if not check.has_credits:
            self._transition(batch, BatchState.FAILED)
            logger.info(
                f"User {batch.user_id} has {check.balance} credit(s), {check.credits_needed} needed"
            )
            raise InsufficientCreditsError(check.balance, check.credits_needed)

    async def _generate_images(self, batch: GenerationBatch) -> None:
        tasks = [self._generate_variation(batch, candidate) for candidate in batch.candidates]
        results = await asyncio.gather(*tasks, return_exceptions=self.isolate_failures)

        if not self.isolate_failures:
            return

        errors = []
        for candidate, result in zip(batch.candidates, results):
            if isinstance(result, StudioError):
                candidate.error = result.message
                errors.append(result)
            elif isinstance(result, BaseException):
                raise result

        if errors:
            logger.warning(f"Batch {batch.id}: {len(errors)}/{len(batch.candidates)} variations failed")
        if len(errors) == len(batch.candidates):
            raise errors[0]

    async def _generate_variation(self, batch: GenerationBatch, candidate: DesignCandidate) -> None:
        messages = build_variation_messages(batch.brief, candidate.style_hint)
        image_url = await self._run_blocking(self.gateway.generate_image, messages)

        if self.image_store is not None:
            image_url = await self._store_image(batch, candidate, image_url)

        candidate.image_url = image_url
        logger.info(f"Batch {batch.id}: variation {candidate.variation_number} generated")

    async def _store_image(self, batch: GenerationBatch, candidate: DesignCandidate, image_url: str) -> str:
        try:
            return await self._run_blocking(
                self.image_store.upload_generated_image, batch.id, candidate.variation_number, image_url
            )
        except MissingImageError:
            raise
        except Exception as e:
            logger.warning(f"Could not store variation {candidate.variation_number}, keeping inline image: {e}")
            return image_url

    async def _deduct_credits(self, batch: GenerationBatch) -> None:
        # Deduction failures leave the credits un-deducted; the user keeps the designs.
        try:
            batch.credits_balance = await self._run_blocking(
                self.credits.deduct, batch.user_id, self.credits_per_generation
            )
            batch.credits_deducted = True
        except Exception as e:
            logger.warning(f"Credit deduction failed for user {batch.user_id}, batch {batch.id}: {e}")

    # ==================== 3D RECONSTRUCTION ====================

    async def submit_3d(self, image_url: str, candidate: Optional[DesignCandidate] = None) -> ModelJob:
        """Start a 3D job for one image. Never raises for service failures."""
        job = ModelJob(source_image_url=image_url)

        cached = self.cache.get(image_url)
        if cached:
            logger.info(f"3D model cache hit for {image_url[:80]}")
            job.state = ModelJobState.SUCCEEDED
            job.model_url = cached
            job.progress = 100
            job.from_cache = True
            if candidate is not None:
                candidate.model_url = cached
            return job

        if self.meshy is None:
            job.state = ModelJobState.FAILED
            job.error = "3D generation not configured"
            return job

        job.state = ModelJobState.SUBMITTING
        try:
            job.task_id = await self._run_blocking(self.meshy.submit, image_url)
        except StudioError as e:
            logger.warning(f"Failed to start 3D generation: {e}")
            job.state = ModelJobState.FAILED
            job.error = e.message
            return job

        job.state = ModelJobState.POLLING
        if candidate is not None:
            candidate.task_id = job.task_id
        return job

    async def poll_3d(
        self,
        job: ModelJob,
        abort: Optional[asyncio.Event] = None,
        candidate: Optional[DesignCandidate] = None,
    ) -> ModelJob:
        """
        Poll a submitted job until it succeeds, fails, runs out of attempts
        or is aborted. Task cancellation and unexpected errors propagate
        after the job is marked cancelled or failed.
        """
        if job.state.is_terminal:
            return job
        if job.state != ModelJobState.POLLING or not job.task_id:
            raise ValueError(f"Job is not pollable in state {job.state.value}")

        delay = self.poll_initial_delay
        try:
            while job.attempts < self.poll_max_attempts:
                if await self._pause(delay, abort):
                    job.state = ModelJobState.CANCELLED
                    logger.info(f"3D polling for task {job.task_id} aborted")
                    return job
                delay = self.poll_interval

                job.attempts += 1
                try:
                    status = await self._run_blocking(self.meshy.fetch_status, job.task_id)
                except StudioError as e:
                    logger.warning(f"3D status check {job.attempts} for task {job.task_id} failed: {e}")
                    continue

                job.progress = status.progress
                if status.status == "succeeded":
                    self._finish_job(job, status.model_url, candidate)
                    return job
                if status.status == "failed":
                    job.state = ModelJobState.FAILED
                    job.error = f"3D generation {str(status.raw_status or 'failed').lower()}"
                    logger.warning(f"3D task {job.task_id} failed after {job.attempts} checks")
                    return job
        except asyncio.CancelledError:
            job.state = ModelJobState.CANCELLED
            raise
        except Exception as e:
            job.state = ModelJobState.FAILED
            job.error = f"3D status polling crashed: {e}"
            logger.error(f"3D polling for task {job.task_id} crashed after {job.attempts} checks: {e}")
            raise

        job.state = ModelJobState.TIMED_OUT
        job.error = f"No 3D model after {job.attempts} status checks"
        logger.warning(f"3D task {job.task_id} timed out")
        return job

    def _finish_job(self, job: ModelJob, model_url: Optional[str], candidate: Optional[DesignCandidate]) -> None:
        if not model_url:
            job.state = ModelJobState.FAILED
            job.error = "3D generation finished without a model"
            return

        job.state = ModelJobState.SUCCEEDED
        job.model_url = model_url
        job.progress = 100
        self.cache.put(job.source_image_url, model_url)
        if candidate is not None:
            candidate.model_url = model_url
        logger.info(f"3D task {job.task_id} succeeded after {job.attempts} checks")

    async def _pause(self, delay: float, abort: Optional[asyncio.Event]) -> bool:
        """Sleep for delay; returns True when the abort signal fired."""
        if abort is None:
            await self._sleep(delay)
            return False
        if abort.is_set():
            return True

        sleeper = asyncio.ensure_future(self._sleep(delay))
        waiter = asyncio.ensure_future(abort.wait())
        try:
            await asyncio.wait({sleeper, waiter}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            sleeper.cancel()
            waiter.cancel()
        return abort.is_set()

    async def generate_3d(
        self,
        image_url: str,
        abort: Optional[asyncio.Event] = None,
        candidate: Optional[DesignCandidate] = None,
    ) -> ModelJob:
        job = await self.submit_3d(image_url, candidate)
        if job.state == ModelJobState.POLLING:
            await self.poll_3d(job, abort, candidate)
        return job
