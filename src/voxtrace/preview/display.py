"""Matplotlib-based preview display for rendered images.

Phong shading sums one term per light, so a channel can exceed 1 where
highlights from several lights overlap. The render is otherwise low dynamic
range: display processing clamps to [0, 1] and optionally gamma corrects.

Example:
    >>> from voxtrace.preview.display import show_preview
    >>> from voxtrace.core.tracer import RayTracer
    >>>
    >>> tracer = RayTracer(400, 400)
    >>> tracer.render(camera)
    >>> show_preview(tracer, gamma=2.2)
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import numpy as np
import numpy.typing as npt

if TYPE_CHECKING:
    from voxtrace.core.tracer import RayTracer

logger = logging.getLogger(__name__)


def saturated_fraction(image: npt.NDArray[np.float32]) -> float:
    """Fraction of color channels above 1 (blown-out highlights)."""
    if image.size == 0:
        return 0.0
    return float(np.count_nonzero(image > 1.0)) / image.size


def process_image_for_display(
    image: npt.NDArray[np.float32],
    gamma: float = 1.0,
) -> npt.NDArray[np.float32]:
    """Clamp a linear render to [0, 1] and apply gamma correction.

    Args:
        image: Linear image array of shape (H, W, 3).
        gamma: Gamma value; output is ``clamped ** (1 / gamma)``.

    Returns:
        A new float32 array in [0, 1]. The input is left untouched.

    Raises:
        ValueError: If gamma is not positive.
    """
    if gamma <= 0.0:
        raise ValueError(f"Gamma must be positive, got {gamma}")

    fraction = saturated_fraction(image)
    if fraction > 0.0:
        logger.debug("Clamping %.2f%% of channels above 1", 100.0 * fraction)

    result = np.clip(image, 0.0, 1.0).astype(np.float32)
    if gamma != 1.0:
        result = np.power(result, 1.0 / gamma).astype(np.float32)
    return result


def show_preview(
    tracer: RayTracer,
    *,
    gamma: float = 1.0,
    title: str | None = None,
    figsize: tuple[float, float] = (8, 8),
    block: bool = True,
) -> None:
    """Display the current render as a Matplotlib figure.

    Args:
        tracer: The RayTracer whose image is shown.
        gamma: Gamma correction value.
        title: Custom title (default shows the image size).
        figsize: Figure size in inches (width, height).
        block: Whether to block execution until figure is closed.
    """
    import matplotlib.pyplot as plt

    display_image = process_image_for_display(tracer.get_image_numpy(clip=False), gamma)

    fig, ax = plt.subplots(1, 1, figsize=figsize)
    ax.imshow(display_image)
    ax.axis("off")

    if title is None:
        title = f"Render Preview - {tracer.width}x{tracer.height}"
        if gamma != 1.0:
            title += f" (gamma {gamma:g})"
    ax.set_title(title)

    plt.tight_layout()
    plt.show(block=block)
