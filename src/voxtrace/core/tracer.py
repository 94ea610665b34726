"""Object-oriented wrapper around the render loop.

The RayTracer owns the render target dimensions, sets up the camera for
each render and exposes the result as float or 8-bit arrays, or writes it
straight to a PNG file.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from voxtrace.core.tracer import RayTracer
    >>> from voxtrace.scene.demo import create_demo_scene
    >>>
    >>> scene, camera = create_demo_scene()
    >>> tracer = RayTracer(400, 400)
    >>> tracer.render(camera)
    >>> tracer.save_image("demo.png")
"""

import logging
import time

import numpy as np
import numpy.typing as npt

from voxtrace.camera.viewplane import ViewPlaneCamera, setup_camera
from voxtrace.core.integrator import (
    clear_render_target,
    get_image_numpy,
    render_image,
    setup_render_target,
)

logger = logging.getLogger(__name__)


class RayTracer:
    """Renders the current scene through a view-plane camera.

    The tracer delegates to the module-level integrator buffers (Taichi
    fields), so only one tracer should be active at a time.

    Attributes:
        width: Image width in pixels.
        height: Image height in pixels.
    """

    def __init__(self, width: int, height: int) -> None:
        """Initialize the tracer.

        Args:
            width: Image width in pixels (max 2048).
            height: Image height in pixels (max 2048).

        Raises:
            ValueError: If dimensions are out of range.
        """
        self._width = width
        self._height = height
        self._rendered = False
        setup_render_target(width, height)

    @property
    def width(self) -> int:
        """Get the image width."""
        return self._width

    @property
    def height(self) -> int:
        """Get the image height."""
        return self._height

    @property
    def rendered(self) -> bool:
        """True once render() has completed since the last reset."""
        return self._rendered

    def reset(self) -> None:
        """Clear the image buffer."""
        clear_render_target()
        self._rendered = False

    def resize(self, width: int, height: int) -> None:
        """Resize the render target and clear it.

        Raises:
            ValueError: If dimensions are out of range.
        """
        setup_render_target(width, height)
        self._width = width
        self._height = height
        self._rendered = False

    def render(self, camera: ViewPlaneCamera) -> None:
        """Render the scene as seen by ``camera``.

        Args:
            camera: The camera to render through.

        Raises:
            ValueError: If the camera configuration is degenerate.
        """
        setup_camera(camera)
        # The render target may have been replaced since construction
        setup_render_target(self._width, self._height)

        logger.info("Rendering %dx%d image", self._width, self._height)
        start = time.perf_counter()
        render_image()
        elapsed = time.perf_counter() - start
        logger.info("Render finished in %.2fs", elapsed)
        self._rendered = True

    def get_image_numpy(self, gamma: float = 1.0, clip: bool = True) -> npt.NDArray[np.float32]:
        """Get the rendered image as a NumPy array.

        Args:
            gamma: Gamma correction value. Default 1.0 (linear).
            clip: Clamp to [0, 1]. Gamma correction always clamps first.

        Returns:
            NumPy array of shape (height, width, 3) with dtype float32.
        """
        image = get_image_numpy(clip=clip or gamma != 1.0)

        if gamma != 1.0:
            image = np.power(image, 1.0 / gamma)

        return image

    def get_image_uint8(self, gamma: float = 1.0) -> npt.NDArray[np.uint8]:
        """Get the rendered image as an 8-bit NumPy array.

        Args:
            gamma: Gamma correction value. Default 1.0 (linear).

        Returns:
            NumPy array of shape (height, width, 3) with dtype uint8.
        """
        image = self.get_image_numpy(gamma=gamma)
        return (image * 255).astype(np.uint8)

    def save_image(self, filepath: str, gamma: float = 1.0) -> None:
        """Save the rendered image to a PNG file.

        Args:
            filepath: Path to save the image (e.g., "output.png").
            gamma: Gamma correction value. Default 1.0 (linear).
        """
        from voxtrace.preview.export import save_png_from_array

        save_png_from_array(get_image_numpy(clip=False), filepath, gamma=gamma)

    def __repr__(self) -> str:
        return f"RayTracer(width={self.width}, height={self.height}, rendered={self.rendered})"
