"""
Color and finish variations of a generated design.

Responsibilities:
- Recolor the furniture pixels of a candidate image, leaving the white
  studio background untouched
- Apply a finish effect on top of the new color
- Memoize results per candidate as color -> finish -> image url
"""

import io
import random
from typing import Optional, Tuple

import numpy as np
import requests
from PIL import Image, UnidentifiedImageError

from design_studio.core.config import settings
from design_studio.core.errors import ImageFetchError
from design_studio.core.logger import get_logger
from design_studio.core.storage import decode_data_url, encode_data_url
from design_studio.models.design_models import DesignCandidate

logger = get_logger(__name__)

BACKGROUND_THRESHOLD = 240
TEXTURE_AMPLITUDE = 5.0


def rgb_to_hsl(rgb: np.ndarray) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
    """(..., 3) array in 0-255 -> hue 0-360, saturation 0-100, lightness 0-100."""
    rgb = rgb.astype(np.float64) / 255.0
    r, g, b = rgb[..., 0], rgb[..., 1], rgb[..., 2]
    high = rgb.max(axis=-1)
    low = rgb.min(axis=-1)
    delta = high - low
    lightness = (high + low) / 2

    safe_delta = np.where(delta == 0, 1.0, delta)
    denom = np.where(lightness > 0.5, 2 - high - low, high + low)
    saturation = np.where(delta == 0, 0.0, delta / np.where(denom == 0, 1.0, denom))

    hue = np.select(
        [high == r, high == g],
        [((g - b) / safe_delta) % 6, (b - r) / safe_delta + 2],
        default=(r - g) / safe_delta + 4,
    )
    hue = np.where(delta == 0, 0.0, hue * 60)
    return hue, saturation * 100, lightness * 100


def hsl_to_rgb(hue, saturation, lightness) -> np.ndarray:
    """Inverse of rgb_to_hsl; scalars broadcast. Returns float 0-255 (..., 3)."""
    hue = np.asarray(hue, dtype=np.float64) % 360
    s = np.clip(np.asarray(saturation, dtype=np.float64), 0, 100) / 100
    l = np.clip(np.asarray(lightness, dtype=np.float64), 0, 100) / 100
    hue, s, l = np.broadcast_arrays(hue, s, l)

    chroma = (1 - np.abs(2 * l - 1)) * s
    sector = hue / 60
    x = chroma * (1 - np.abs(sector % 2 - 1))
    m = l - chroma / 2
    zero = np.zeros_like(chroma)

    conditions = [sector < 1, sector < 2, sector < 3, sector < 4, sector < 5]
    r = np.select(conditions, [chroma, x, zero, zero, x], default=chroma)
    g = np.select(conditions, [x, chroma, chroma, x, zero], default=zero)
    b = np.select(conditions, [zero, zero, x, chroma, chroma], default=x)
    return np.stack([r + m, g + m, b + m], axis=-1) * 255


def apply_color(pixels: np.ndarray, color: str) -> np.ndarray:
    key = color.strip().lower()
    if key == "black":
        return pixels * 0.15
    if key == "white":
        return pixels * 1.5 + 50
    if key == "gray":
        gray = pixels.mean(axis=-1, keepdims=True) * 0.7 + 40
        return np.repeat(gray, 3, axis=-1)

    hue, sat, light = rgb_to_hsl(pixels)
    if key in ("brown", "wood finish"):
        return hsl_to_rgb(30, np.minimum(70, sat), light * 0.8)
    if key == "blue":
        return hsl_to_rgb(220, np.minimum(80, sat + 20), light)
    if key == "beige":
        return hsl_to_rgb(40, 30, np.maximum(light, 70))
    return pixels


def apply_finish(pixels: np.ndarray, finish: str, rng: np.random.Generator) -> np.ndarray:
    key = finish.strip().lower()
    if key == "glossy":
        return pixels * 1.15 + 10
    if key == "textured":
        noise = rng.uniform(-TEXTURE_AMPLITUDE, TEXTURE_AMPLITUDE, size=pixels.shape[:-1] + (1,))
        return pixels + noise
    if key == "polished":
        return pixels * 1.08
    if key == "metallic":
        hue, sat, light = rgb_to_hsl(np.clip(pixels, 0, 255))
        return hsl_to_rgb(hue, sat * 0.7, light * 1.1)
    return pixels


def recolor_image(image: Image.Image, color: str, finish: str, rng: np.random.Generator = None) -> Image.Image:
    """Recolor non-background pixels; alpha is preserved."""
    rng = rng or np.random.default_rng()
    rgba = np.array(image.convert("RGBA"))
    rgb = rgba[..., :3].astype(np.float64)

    foreground = ~np.all(rgb > BACKGROUND_THRESHOLD, axis=-1)
    pixels = rgb[foreground]
    if pixels.size:
        pixels = apply_color(pixels, color)
        pixels = apply_finish(np.clip(pixels, 0, 255), finish, rng)
        rgb[foreground] = np.clip(np.round(pixels), 0, 255)

    rgba[..., :3] = rgb.astype(np.uint8)
    return Image.fromarray(rgba)


class RecolorService:
    """Recolors candidate images and keeps the per-candidate memo."""

    def __init__(self, image_store=None, timeout: float = None, seed: Optional[int] = None):
        self.image_store = image_store
        self.timeout = timeout or settings.REQUEST_TIMEOUT
        self.seed = seed

    def load_image(self, image_url: str) -> Image.Image:
        try:
            if image_url.startswith("data:"):
                _, data = decode_data_url(image_url)
            elif image_url.startswith(("http://", "https://")):
                response = requests.get(image_url, timeout=self.timeout)
                response.raise_for_status()
                data = response.content
            else:
                raise ImageFetchError("Image URL must be a data URL or http(s) URL")

            image = Image.open(io.BytesIO(data))
            image.load()
            return image
        except ImageFetchError:
            raise
        except (requests.RequestException, UnidentifiedImageError, OSError, ValueError) as e:
            raise ImageFetchError(f"Could not load image: {e}")

    def recolor(self, candidate: DesignCandidate, color: str, finish: str = "matte") -> Tuple[str, bool]:
        """
        Returns (image url, served from memo).

        Raises:
            ImageFetchError: The source image could not be loaded
        """
        color_key = color.strip().lower()
        finish_key = finish.strip().lower()

        cached = candidate.color_variations.get(color_key, {}).get(finish_key)
        if cached:
            return cached, True

        if not candidate.image_url:
            raise ImageFetchError("Candidate has no image to recolor")

        source = self.load_image(candidate.image_url)
        result = recolor_image(source, color_key, finish_key, np.random.default_rng(self.seed))

        url = None
        if self.image_store is not None:
            try:
                url = self.image_store.upload_recolored_image(candidate.id, color_key, finish_key, result)
            except Exception as e:
                logger.warning(f"Could not store recolored image, returning inline: {e}")

        if url is None:
            buffer = io.BytesIO()
            result.save(buffer, format="PNG")
            url = encode_data_url(buffer.getvalue(), "image/png")

        candidate.color_variations.setdefault(color_key, {})[finish_key] = url
        logger.info(f"Recolored candidate {candidate.id} to {color_key}/{finish_key}")
        return url, False
