"""
Supabase Storage helper functions for file uploads.

Generated design images arrive from the AI gateway as base64 data URLs.
These helpers re-encode them and upload them to a public bucket so the
3D service and the data store receive stable http(s) URLs.
"""

import base64
import binascii
import io
from typing import Union, BinaryIO, Tuple
from PIL import Image, UnidentifiedImageError
from design_studio.core.config import settings
from design_studio.core.errors import MissingImageError
from design_studio.core.supabase_client import get_supabase
from design_studio.core.logger import logger


def decode_data_url(data_url: str) -> Tuple[str, bytes]:
    """
    Split a ``data:<mime>;base64,<payload>`` URL.

    Returns:
        (content_type, raw bytes)

    Raises:
        MissingImageError: If the URL is not a decodable base64 data URL
    """
    if not data_url.startswith("data:") or "," not in data_url:
        raise MissingImageError("Image is not a data URL")

    header, payload = data_url.split(",", 1)
    content_type = header[5:].split(";")[0] or "application/octet-stream"
    try:
        return content_type, base64.b64decode(payload, validate=False)
    except (binascii.Error, ValueError) as e:
        raise MissingImageError(f"Corrupt image payload: {e}")


def encode_data_url(data: bytes, content_type: str = "image/png") -> str:
    """Inverse of decode_data_url."""
    return f"data:{content_type};base64,{base64.b64encode(data).decode('ascii')}"


class StorageManager:
    """Handles file uploads to Supabase Storage buckets."""

    def __init__(self, bucket: str = None):
        self.bucket = bucket or settings.STORAGE_BUCKET

    def _get_public_url(self, file_path: str) -> str:
        """
        Get the public URL for a file in storage.

        Args:
            file_path: File path within bucket

        Returns:
            Public URL to access the file
        """
        supabase = get_supabase()
        return supabase.storage.from_(self.bucket).get_public_url(file_path)

    def upload_file(
        self,
        file_path: str,
        file_data: Union[bytes, BinaryIO],
        content_type: str = "application/octet-stream"
    ) -> str:
        """
        Upload a file to Supabase Storage.

        Args:
            file_path: Destination path within bucket
            file_data: File data (bytes or file object)
            content_type: MIME type of the file

        Returns:
            Public URL of the uploaded file

        Raises:
            Exception: If upload fails
        """
        supabase = get_supabase()

        try:
            data = file_data if isinstance(file_data, bytes) else file_data.read()

            supabase.storage.from_(self.bucket).upload(
                path=file_path,
                file=data,
                file_options={"content-type": content_type, "upsert": "true"}
            )

            public_url = self._get_public_url(file_path)
            logger.info(f"Uploaded file to {self.bucket}/{file_path}")

            return public_url

        except Exception as e:
            logger.error(f"Failed to upload file to {self.bucket}/{file_path}: {str(e)}")
            raise

    def upload_image(
        self,
        file_path: str,
        image: Union[Image.Image, bytes],
        format: str = "PNG"
    ) -> str:
        """
        Upload an image, re-encoding it through Pillow.

        Raw bytes are decoded first so corrupt payloads never reach the bucket.
        """
        if isinstance(image, bytes):
            try:
                image = Image.open(io.BytesIO(image))
                image.load()
            except (UnidentifiedImageError, OSError) as e:
                raise MissingImageError(f"Generated image could not be decoded: {e}")

        buffer = io.BytesIO()
        image.save(buffer, format=format)

        content_type = f"image/{format.lower()}"
        return self.upload_file(file_path, buffer.getvalue(), content_type)

    def upload_data_url(self, file_path: str, data_url: str) -> str:
        """Upload an image given as a base64 data URL."""
        _, data = decode_data_url(data_url)
        return self.upload_image(file_path, data, format="PNG")

    def upload_generated_image(self, batch_id: str, variation_number: int, image_url: str) -> str:
        """Upload one variation of a generation batch. Non-data URLs pass through."""
        if not image_url.startswith("data:"):
            return image_url
        file_path = f"{batch_id}/variation_{variation_number:02d}.png"
        return self.upload_data_url(file_path, image_url)

    def upload_recolored_image(self, candidate_id: str, color: str, finish: str, image: Image.Image) -> str:
        """Upload a recolored candidate image."""
        slug = f"{color}_{finish}".lower().replace(" ", "-")
        file_path = f"recolor/{candidate_id}/{slug}.png"
        return self.upload_image(file_path, image, format="PNG")
