"""
Validation and persistence of final design submissions.

A submission is written once with status "pending"; later changes happen
only through the admin review workflow.
"""

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from design_studio.core.database import DatabaseManager
from design_studio.core.errors import SubmissionValidationError
from design_studio.core.logger import get_logger
from design_studio.models.design_models import SubmissionRecord

logger = get_logger(__name__)

MIN_PRICE = 1000
MAX_PRICE = 10_000_000


def validate_submission(record: SubmissionRecord) -> List[str]:
    """Returns a list of problems; empty when the record is acceptable."""
    errors = []

    name = (record.name or "").strip()
    if not name:
        errors.append("Design name is required")
    elif len(name) > 200:
        errors.append("Design name must be less than 200 characters")

    description = (record.description or "").strip()
    if len(description) < 10:
        errors.append("Description must be at least 10 characters")
    elif len(description) > 2000:
        errors.append("Description must be less than 2000 characters")

    if not (record.category or "").strip():
        errors.append("Category is required")

    if not MIN_PRICE <= record.base_price <= MAX_PRICE:
        errors.append(f"Base price must be between {MIN_PRICE} and {MAX_PRICE}")
    if not MIN_PRICE <= record.selling_price <= MAX_PRICE:
        errors.append(f"Selling price must be between {MIN_PRICE} and {MAX_PRICE}")
    elif record.selling_price < record.base_price:
        errors.append("Selling price cannot be less than the base price")

    if not (record.image_url or "").startswith(("http://", "https://", "data:image/")):
        errors.append("Invalid image URL")

    return errors


class SubmissionService:

    def __init__(self, db=DatabaseManager):
        self.db = db

    def submit(self, record: SubmissionRecord) -> str:
        """
        Validate and persist a submission.

        Raises:
            SubmissionValidationError: With every problem found
        """
        errors = validate_submission(record)
        if errors:
            logger.warning(f"Rejected submission from designer {record.designer_id}: {len(errors)} problem(s)")
            raise SubmissionValidationError(errors)

        row = {
            "designer_id": record.designer_id,
            "name": record.name.strip(),
            "description": record.description.strip(),
            "category": record.category.strip(),
            "base_price": record.base_price,
            "designer_price": record.selling_price,
            "dimensions": record.dimensions.as_dict(),
            "image_url": record.image_url,
            "model_url": record.model_url,
            "status": "pending",
        }
        if record.pricing is not None:
            row.update({
                "pricing_complexity": record.pricing.complexity.value,
                "pricing_per_cubic_foot": record.pricing.price_per_cubic_foot,
                "pricing_reasoning": record.pricing.reasoning,
                "pricing_calculated_at": datetime.now(timezone.utc).isoformat(),
            })

        return self.db.save_submission(row)

    def get(self, submission_id: str) -> Optional[Dict[str, Any]]:
        return self.db.get_submission(submission_id)
