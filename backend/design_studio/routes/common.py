"""
Translation of studio errors into HTTP responses.
"""

from fastapi import HTTPException

from design_studio.core.errors import (
    CreditCheckError,
    CreditsDepletedError,
    ImageFetchError,
    InsufficientCreditsError,
    ModelServiceError,
    RateLimitedError,
    ServiceNotConfiguredError,
    StudioError,
    SubmissionValidationError,
    ValidationError,
)
from design_studio.core.logger import logger


def http_error(error: StudioError) -> HTTPException:
    if isinstance(error, SubmissionValidationError):
        return HTTPException(status_code=422, detail={"error": "invalid_submission", "errors": error.errors})
    if isinstance(error, (ValidationError, ImageFetchError)):
        return HTTPException(status_code=400, detail=error.message)
    if isinstance(error, InsufficientCreditsError):
        return HTTPException(status_code=402, detail={
            "error": "insufficient_credits",
            "message": error.message,
            "balance": error.balance,
            "credits_needed": error.credits_needed,
        })
    if isinstance(error, CreditsDepletedError):
        return HTTPException(status_code=402, detail={"error": "ai_credits_depleted", "message": error.message})
    if isinstance(error, RateLimitedError):
        return HTTPException(status_code=429, detail={"error": "rate_limited", "message": error.message, "retryable": True})
    if isinstance(error, CreditCheckError):
        return HTTPException(status_code=503, detail=error.message)
    if isinstance(error, ModelServiceError):
        return HTTPException(status_code=502, detail=error.message)
    if isinstance(error, ServiceNotConfiguredError):
        return HTTPException(status_code=500, detail=error.message)

    logger.error(f"Unhandled studio error: {error.message}")
    return HTTPException(status_code=500, detail=error.message)
