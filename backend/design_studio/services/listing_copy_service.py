"""
AI-written listing copy (title and description) for a submission.

Best-effort only: any gateway failure returns a fixed fallback so the
submission flow never blocks on copywriting.
"""

import re
from typing import Optional

from design_studio.core.errors import StudioError
from design_studio.core.logger import get_logger
from design_studio.models.design_models import Dimensions

logger = get_logger(__name__)

FALLBACK_TITLE = "Artisan Design"

TITLE_SYSTEM_PROMPT = (
    "You are a creative furniture naming expert who creates memorable, premium product titles "
    "that capture the essence and aesthetic of unique furniture designs. Your titles are short, "
    "evocative, and make pieces sound like art."
)

DESCRIPTION_SYSTEM_PROMPT = (
    "You are a luxury furniture copywriter who creates compelling, story-driven product "
    "descriptions that evoke emotion and desire."
)

TITLE_PROMPT = """Create a captivating, premium product title for a furniture piece with the following details:

Category: {category}
Dimensions: {dimensions}
Design Description: {prompt}

Requirements:
- Keep it short and memorable (3-6 words maximum)
- Make it sound premium, artistic, and unique
- Avoid generic terms like "Modern Chair"
- DO NOT include quotes, markdown, or extra formatting
- Return ONLY the title text, nothing else"""

DESCRIPTION_PROMPT = """Create a premium, captivating product description for a furniture piece:

Product Name: {name}
Category: {category}
Dimensions: {dimensions}

Requirements:
- 150-200 words, story-like
- Emphasize craftsmanship and the unique design elements
- Plain text only, no markdown"""


def describe_dimensions(dimensions: Optional[Dimensions]) -> str:
    if dimensions is None:
        return "Custom dimensions"
    return f"{dimensions.length_in:g}L x {dimensions.breadth_in:g}B x {dimensions.height_in:g}H inches"


def clean_title(raw: str) -> str:
    title = raw.strip()
    title = re.sub(r"^[\"']|[\"']$", "", title)
    title = title.replace("**", "").replace("*", "")
    title = re.sub(r"^#+\s*", "", title)
    return title.strip()


def fallback_description(category: str) -> str:
    return f"A unique {category} design created with AI."


class ListingCopyService:

    def __init__(self, gateway):
        self.gateway = gateway

    def generate_title(
        self,
        category: str,
        prompt: Optional[str] = None,
        dimensions: Optional[Dimensions] = None,
    ) -> str:
        messages = [
            {"role": "system", "content": TITLE_SYSTEM_PROMPT},
            {"role": "user", "content": TITLE_PROMPT.format(
                category=category,
                dimensions=describe_dimensions(dimensions),
                prompt=prompt or "Modern furniture design",
            )},
        ]
        try:
            title = clean_title(self.gateway.complete_text(messages, temperature=0.9))
        except StudioError as e:
            logger.warning(f"Title generation failed, using fallback: {e}")
            return FALLBACK_TITLE
        return title or FALLBACK_TITLE

    def generate_description(
        self,
        name: str,
        category: str,
        dimensions: Optional[Dimensions] = None,
    ) -> str:
        messages = [
            {"role": "system", "content": DESCRIPTION_SYSTEM_PROMPT},
            {"role": "user", "content": DESCRIPTION_PROMPT.format(
                name=name,
                category=category,
                dimensions=describe_dimensions(dimensions),
            )},
        ]
        try:
            description = self.gateway.complete_text(messages).strip()
        except StudioError as e:
            logger.warning(f"Description generation failed, using fallback: {e}")
            return fallback_description(category)
        return description or fallback_description(category)
