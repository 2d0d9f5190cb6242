"""Image inspection helpers for uploaded photos"""

import logging
from io import BytesIO
from typing import Optional, Tuple
from PIL import Image, UnidentifiedImageError

logger = logging.getLogger(__name__)


class ImageService:
    """Service for reading basic image metadata"""

    @staticmethod
    def read_dimensions(image_bytes: bytes) -> Tuple[Optional[int], Optional[int]]:
        """
        Read pixel dimensions from image bytes.

        Only the header is parsed. Unreadable images yield (None, None) since
        dimensions are informational and never block an upload.

        Args:
            image_bytes: Image file bytes

        Returns:
            (width, height) or (None, None)
        """
        try:
            with Image.open(BytesIO(image_bytes)) as image:
                width, height = image.size
                return width, height
        except (UnidentifiedImageError, OSError, ValueError) as e:
            logger.warning(f"Could not read image dimensions: {e}")
            return None, None
