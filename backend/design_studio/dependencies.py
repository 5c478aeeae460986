"""
Service wiring for the HTTP layer.

Each provider builds its service once per process; tests replace them with
app.dependency_overrides.
"""

from functools import lru_cache

from design_studio.core.config import settings
from design_studio.core.storage import StorageManager
from design_studio.services.ai_gateway import AIGatewayClient
from design_studio.services.candidate_store import CandidateStore
from design_studio.services.credit_service import CreditLedger
from design_studio.services.generation_orchestrator import DesignGenerationOrchestrator
from design_studio.services.listing_copy_service import ListingCopyService
from design_studio.services.meshy_service import MeshyClient
from design_studio.services.model_cache import ModelAssetCache
from design_studio.services.model_jobs import ModelJobRegistry
from design_studio.services.pricing_service import ComplexityEstimator, PriceQuoter
from design_studio.services.recolor_service import RecolorService
from design_studio.services.submission_service import SubmissionService


@lru_cache()
def get_gateway() -> AIGatewayClient:
    return AIGatewayClient()


@lru_cache()
def get_meshy() -> MeshyClient:
    return MeshyClient()


@lru_cache()
def get_model_cache() -> ModelAssetCache:
    return ModelAssetCache(settings.MODEL_CACHE_SIZE)


@lru_cache()
def get_image_store():
    if not settings.SUPABASE_URL:
        return None
    return StorageManager()


@lru_cache()
def get_estimator() -> ComplexityEstimator:
    return ComplexityEstimator(get_gateway())


@lru_cache()
def get_quoter() -> PriceQuoter:
    return PriceQuoter(get_estimator())


@lru_cache()
def get_orchestrator() -> DesignGenerationOrchestrator:
    return DesignGenerationOrchestrator(
        gateway=get_gateway(),
        credits=CreditLedger(),
        estimator=get_estimator(),
        meshy=get_meshy(),
        cache=get_model_cache(),
        image_store=get_image_store(),
    )


@lru_cache()
def get_job_registry() -> ModelJobRegistry:
    return ModelJobRegistry()


@lru_cache()
def get_candidate_store() -> CandidateStore:
    return CandidateStore()


@lru_cache()
def get_recolor_service() -> RecolorService:
    return RecolorService(image_store=get_image_store())


@lru_cache()
def get_listing_copy_service() -> ListingCopyService:
    return ListingCopyService(get_gateway())


@lru_cache()
def get_submission_service() -> SubmissionService:
    return SubmissionService()
