"""
Image preprocessing for the classification pipeline.

Uploaded images are bounded to a maximum edge length before they are sent to
the coarse classification call. Preprocessing never fails a request: when an
image cannot be read or re-encoded the original bytes are passed through.
"""

import io
import logging
from typing import Optional, Tuple

from PIL import Image

logger = logging.getLogger(__name__)

DEFAULT_MAX_DIMENSION = 512


class ImagePreprocessor:
    """Shrinks images to fit inside a ``max_dimension`` square."""

    def __init__(self, max_dimension: int = DEFAULT_MAX_DIMENSION):
        if max_dimension <= 0:
            raise ValueError(f"max_dimension must be positive, got {max_dimension}")
        self.max_dimension = max_dimension

    def read_dimensions(self, image: bytes) -> Optional[Tuple[int, int]]:
        """Return (width, height) from the image header, or None if unreadable."""
        try:
            with Image.open(io.BytesIO(image)) as img:
                width, height = img.size
        except Exception as e:
            logger.debug(f"Could not read image header: {e}")
            return None
        if not width or not height:
            return None
        return width, height

    def resize(self, image: bytes) -> bytes:
        """
        Fit the image inside a max_dimension x max_dimension box.

        Aspect ratio is preserved and images are never enlarged. Images that
        already fit are returned unchanged (same bytes object, not re-encoded);
        resized images keep their original container format.

        Args:
            image: Encoded image bytes

        Returns:
            Encoded image bytes, resized if needed
        """
        logger.info(f"Original image size: {len(image)} bytes")

        dimensions = self.read_dimensions(image)
        if dimensions is None:
            logger.info("Unable to get image dimensions, using original image")
            return image

        width, height = dimensions
        logger.info(f"Original dimensions: {width}x{height}")

        if width <= self.max_dimension and height <= self.max_dimension:
            logger.info(f"Image is within {self.max_dimension}x{self.max_dimension}, not resizing")
            return image

        try:
            resized = self._fit_inside(image)
        except Exception as e:
            logger.warning(f"Resizing failed, using original image: {e}")
            return image

        logger.info(f"Resized image size: {len(resized)} bytes")
        return resized

    def _fit_inside(self, image: bytes) -> bytes:
        with Image.open(io.BytesIO(image)) as img:
            image_format = img.format
            if not image_format:
                raise ValueError("Unknown image container format")
            # thumbnail keeps the aspect ratio and never upscales
            img.thumbnail((self.max_dimension, self.max_dimension), Image.Resampling.LANCZOS)
            logger.info(f"Resized dimensions: {img.width}x{img.height}")

            save_kwargs = {}
            if "icc_profile" in img.info:
                save_kwargs["icc_profile"] = img.info["icc_profile"]
            if "exif" in img.info:
                save_kwargs["exif"] = img.info["exif"]

            buffer = io.BytesIO()
            img.save(buffer, format=image_format, **save_kwargs)
            return buffer.getvalue()
