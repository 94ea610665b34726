"""PNG export for rendered images.

Images are clamped, gamma corrected and quantized to 8 bits, then written
with Pillow.

Example:
    >>> from voxtrace.preview.export import save_png
    >>> from voxtrace.core.tracer import RayTracer
    >>>
    >>> tracer = RayTracer(400, 400)
    >>> tracer.render(camera)
    >>> save_png(tracer, "output.png", gamma=2.2)
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import numpy as np
import numpy.typing as npt
from PIL import Image as PILImage

from voxtrace.preview.display import process_image_for_display

if TYPE_CHECKING:
    from voxtrace.core.tracer import RayTracer

logger = logging.getLogger(__name__)


def image_to_uint8(image: npt.NDArray[np.float32], gamma: float = 1.0) -> npt.NDArray[np.uint8]:
    """Quantize a linear image to uint8; values truncate toward zero."""
    return (process_image_for_display(image, gamma) * 255).astype(np.uint8)


def save_png_from_array(image: npt.NDArray[np.float32], filepath: str, gamma: float = 1.0) -> None:
    """Save an (H, W, 3) float image, top row first, as an RGB PNG."""
    pixels = image_to_uint8(image, gamma)
    PILImage.fromarray(pixels).save(filepath)
    logger.info("Saved %dx%d image to %s", pixels.shape[1], pixels.shape[0], filepath)


def save_png(tracer: RayTracer, filepath: str, gamma: float = 1.0) -> None:
    """Save the tracer's rendered image as a PNG file."""
    save_png_from_array(tracer.get_image_numpy(clip=False), filepath, gamma)
