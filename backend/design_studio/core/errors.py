"""
Typed failures raised by the studio services.

Routes translate these into HTTP responses; services raise them where the
failure is decided and let them propagate.
"""

from typing import Optional


class StudioError(Exception):
    """Base class for all design studio failures."""

    message = "Design studio error"

    def __init__(self, message: Optional[str] = None):
        super().__init__(message or self.message)
        self.message = message or self.message


# ==================== USER INPUT ====================

class ValidationError(StudioError):
    message = "Invalid request"


class InvalidDimensionsError(ValidationError):
    message = "Length, breadth and height are all required and must be positive numbers"


class InvalidBriefError(ValidationError):
    message = "Either a prompt (min 10 chars) or a sketch is required"


class SubmissionValidationError(ValidationError):
    def __init__(self, errors):
        self.errors = list(errors)
        super().__init__("; ".join(self.errors) or "Invalid submission")


# ==================== QUOTA / ENTITLEMENT ====================

class QuotaError(StudioError):
    message = "Quota exhausted"


class InsufficientCreditsError(QuotaError):
    def __init__(self, balance: int, credits_needed: int):
        self.balance = balance
        self.credits_needed = credits_needed
        super().__init__(
            f"Insufficient credits: balance {balance}, {credits_needed} needed"
        )


class CreditsDepletedError(QuotaError):
    message = "AI credits depleted. Please add credits to continue."


# ==================== SERVICES ====================

class CreditCheckError(StudioError):
    message = "Unable to verify credits"


class ServiceNotConfiguredError(StudioError):
    message = "Service not configured"


class GatewayError(StudioError):
    message = "AI gateway request failed"

    def __init__(self, message: Optional[str] = None, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class TransientServiceError(GatewayError):
    message = "Service temporarily unavailable"


class RateLimitedError(TransientServiceError):
    message = "Rate limit exceeded. Please try again in a moment."


class MissingImageError(GatewayError):
    message = "No image generated"


class ModelServiceError(StudioError):
    message = "3D generation service request failed"


class ImageFetchError(StudioError):
    message = "Could not load image"
