"""
Dimension-to-volume conversion.

Designers enter length, breadth and height in inches as free text; pricing
works in cubic feet. All three dimensions must parse before any volume is
computed.
"""

import math
from typing import Union

from design_studio.core.errors import InvalidDimensionsError
from design_studio.models.design_models import Dimensions

INCHES_PER_FOOT = 12.0

DimensionInput = Union[str, int, float, None]


def parse_dimension(value: DimensionInput, name: str = "dimension") -> float:
    """Parse one dimension in inches; reject empty, non-numeric and non-positive input."""
    if value is None or isinstance(value, bool):
        raise InvalidDimensionsError(f"{name} is required")

    if isinstance(value, str):
        value = value.strip()
        if not value:
            raise InvalidDimensionsError(f"{name} is required")

    try:
        number = float(value)
    except (TypeError, ValueError):
        raise InvalidDimensionsError(f"{name} must be a number, got {value!r}")

    if not math.isfinite(number) or number <= 0:
        raise InvalidDimensionsError(f"{name} must be a positive number, got {value!r}")

    return number


def parse_dimensions(
    length: DimensionInput,
    breadth: DimensionInput,
    height: DimensionInput
) -> Dimensions:
    return Dimensions(
        length_in=parse_dimension(length, "length"),
        breadth_in=parse_dimension(breadth, "breadth"),
        height_in=parse_dimension(height, "height"),
    )


def dimensions_to_cubic_feet(dimensions: Dimensions) -> float:
    return (
        (dimensions.length_in / INCHES_PER_FOOT)
        * (dimensions.breadth_in / INCHES_PER_FOOT)
        * (dimensions.height_in / INCHES_PER_FOOT)
    )


def cubic_feet(length: DimensionInput, breadth: DimensionInput, height: DimensionInput) -> float:
    """
    Volume in cubic feet of a length x breadth x height box given in inches.

    Raises:
        InvalidDimensionsError: If any dimension is missing or not a positive number
    """
    return dimensions_to_cubic_feet(parse_dimensions(length, breadth, height))
