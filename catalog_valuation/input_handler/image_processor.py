"""
Image Processor Module.

This module prepares statement screenshots and photos for the
extraction model:
    - Image loading and validation
    - Orientation correction
    - Downscaling of oversized images
    - Base64 encoding with the matching media type

Supports: PNG, JPG, JPEG

Author: ML Engineering Team
"""

import base64
import io
from typing import Tuple

from PIL import Image, ImageOps, UnidentifiedImageError

from config import get_config
from catalog_valuation.utils.logger import get_logger
from catalog_valuation.utils.exceptions import CorruptedFileError

# Initialize module logger
logger = get_logger(__name__)

# EXIF tag id of the orientation field
ORIENTATION_TAG = 0x0112


class ImageProcessor:
    """
    Processor for image statements.

    Attributes:
        max_dimension: Longest allowed side in pixels
        auto_orient: Whether to apply EXIF orientation

    Example:
        >>> processor = ImageProcessor()
        >>> image_b64, media_type = processor.prepare(png_bytes, "statement.png")
        >>> media_type
        'image/png'
    """

    MEDIA_TYPES = {
        'PNG': 'image/png',
        'JPEG': 'image/jpeg',
    }

    def __init__(self) -> None:
        """Initialize the image processor with configuration."""
        self.max_dimension = get_config("input.image.max_dimension", 2048)
        self.auto_orient = get_config("input.image.auto_orient", True)

        logger.debug(f"ImageProcessor initialized (max_dimension={self.max_dimension})")

    def prepare(self, content: bytes, filename: str = "image") -> Tuple[str, str]:
        """
        Validate an image and encode it for the model.

        Unmodified images are passed through byte for byte; re-encoding
        only happens when the image had to be rotated or resized.

        Args:
            content: Raw image bytes.
            filename: Name used in log and error messages.

        Returns:
            Tuple of (base64 text, media type).

        Raises:
            CorruptedFileError: If the bytes are not a readable PNG or JPEG.
        """
        logger.info(f"Processing image: {filename}")

        try:
            with Image.open(io.BytesIO(content)) as candidate:
                candidate.verify()

            # verify() leaves the image unusable, so reopen for processing
            with Image.open(io.BytesIO(content)) as image:
                image_format = image.format
                media_type = self.MEDIA_TYPES.get(image_format)
                if media_type is None:
                    raise CorruptedFileError(filename, f"Unsupported image format: {image_format}")

                processed = self._process_image(image)
                if processed is image:
                    data = content
                else:
                    data = self._encode(processed, image_format)

        except (UnidentifiedImageError, OSError, SyntaxError) as e:
            logger.error(f"Failed to process image {filename}: {e}")
            raise CorruptedFileError(filename, str(e))

        return base64.b64encode(data).decode('ascii'), media_type

    def _process_image(self, image: Image.Image) -> Image.Image:
        """
        Apply orientation correction and downscaling.

        Returns the same object when no change was needed.
        """
        if self.auto_orient and image.getexif().get(ORIENTATION_TAG, 1) != 1:
            image = ImageOps.exif_transpose(image)

        width, height = image.size
        longest = max(width, height)
        if longest <= self.max_dimension:
            return image

        ratio = self.max_dimension / longest
        new_size = (max(1, int(width * ratio)), max(1, int(height * ratio)))

        # Use LANCZOS for high-quality downscaling
        resized = image.resize(new_size, Image.LANCZOS)
        logger.debug(f"Resized image from {width}x{height} to {new_size[0]}x{new_size[1]}")
        return resized

    @staticmethod
    def _encode(image: Image.Image, image_format: str) -> bytes:
        buffer = io.BytesIO()
        if image_format == 'JPEG' and image.mode not in ('RGB', 'L'):
            image = image.convert('RGB')
        image.save(buffer, format=image_format)
        return buffer.getvalue()
