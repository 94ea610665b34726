"""Render target and the per-pixel render loop.

Every pixel is rendered independently: its primary ray is built by the
view-plane camera, resolved against the scene over the camera window
(CAMERA_T_MIN, CAMERA_T_MAX) and shaded with the Phong model. Rays that hit
nothing take the background color. One kernel launch renders the whole
image, with Taichi spreading the pixels over the available threads; the scene,
lights and camera are only read while rendering.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from voxtrace.core.integrator import (
    ...     get_image_numpy, render_image, setup_render_target
    ... )
    >>> from voxtrace.scene.demo import create_demo_scene
    >>> from voxtrace.camera.viewplane import setup_camera
    >>>
    >>> scene, camera = create_demo_scene()
    >>> setup_camera(camera)
    >>> setup_render_target(256, 256)
    >>> render_image()
    >>> image = get_image_numpy()
"""

import logging

import numpy as np
import numpy.typing as npt
import taichi as ti
import taichi.math as tm

from voxtrace.camera.viewplane import get_pixel_ray, is_camera_ready
from voxtrace.core.ray import vec3
from voxtrace.core.shading import shade
from voxtrace.scene.intersection import intersect_scene

logger = logging.getLogger(__name__)

__all__ = [
    "BACKGROUND_COLOR",
    "CAMERA_T_MAX",
    "CAMERA_T_MIN",
    "MAX_IMAGE_HEIGHT",
    "MAX_IMAGE_WIDTH",
    "clear_render_target",
    "get_background",
    "get_image_dimensions",
    "get_image_numpy",
    "get_pixel",
    "render_image",
    "release_render_target",
    "render_pixel",
    "reset_background",
    "set_background",
    "setup_render_target",
]

# =============================================================================
# Rendering Constants
# =============================================================================

# Parametric window for primary rays (unit direction, so world units)
CAMERA_T_MIN = 0.0
CAMERA_T_MAX = 400.0

# Color of pixels whose ray hits nothing
BACKGROUND_COLOR = (0.2, 0.2, 0.2)

_background = BACKGROUND_COLOR


def set_background(color: tuple[float, float, float]) -> None:
    """Set the background color for subsequent renders.

    Raises:
        ValueError: If the color does not have 3 non-negative components.
    """
    global _background
    if len(color) != 3:
        raise ValueError(f"Background must have 3 components, got {len(color)}")
    if any(c < 0.0 for c in color):
        raise ValueError(f"Background components must be non-negative, got {color}")
    _background = (float(color[0]), float(color[1]), float(color[2]))


def get_background() -> tuple[float, float, float]:
    """Get the current background color."""
    return _background


def reset_background() -> None:
    """Restore the default background color."""
    global _background
    _background = BACKGROUND_COLOR


# =============================================================================
# Render Target (Image Buffer)
# =============================================================================

# Maximum supported image dimensions (preallocated to avoid kernel recompilation)
MAX_IMAGE_WIDTH = 2048
MAX_IMAGE_HEIGHT = 2048

# Image dimensions (actual active size)
_image_width = ti.field(dtype=ti.i32, shape=())
_image_height = ti.field(dtype=ti.i32, shape=())

# Color buffer, indexed [i, j] with j = 0 at the bottom
_color_buffer = ti.Vector.field(3, dtype=ti.f32, shape=(MAX_IMAGE_WIDTH, MAX_IMAGE_HEIGHT))

_render_target_initialized = ti.field(dtype=ti.i32, shape=())


def setup_render_target(width: int, height: int) -> None:
    """Initialize the render target buffer.

    Sets the active image dimensions and clears the buffer. The buffer is
    preallocated to MAX_IMAGE_WIDTH x MAX_IMAGE_HEIGHT.

    Args:
        width: Image width in pixels (1 to MAX_IMAGE_WIDTH).
        height: Image height in pixels (1 to MAX_IMAGE_HEIGHT).

    Raises:
        ValueError: If a dimension is not positive or exceeds the maximum.
    """
    if width <= 0 or height <= 0:
        raise ValueError(f"Image dimensions must be positive, got {width}x{height}")
    if width > MAX_IMAGE_WIDTH or height > MAX_IMAGE_HEIGHT:
        raise ValueError(
            f"Image dimensions ({width}x{height}) exceed maximum supported "
            f"({MAX_IMAGE_WIDTH}x{MAX_IMAGE_HEIGHT})"
        )

    _image_width[None] = width
    _image_height[None] = height
    _render_target_initialized[None] = 1

    clear_render_target()


def clear_render_target() -> None:
    """Clear the render target buffer to zero."""
    _color_buffer.fill(0.0)


def release_render_target() -> None:
    """Mark the render target as not set up."""
    _render_target_initialized[None] = 0


def get_image_dimensions() -> tuple[int, int]:
    """Get the current render target dimensions.

    Returns:
        Tuple of (width, height).
    """
    return int(_image_width[None]), int(_image_height[None])


def _check_ready() -> None:
    """Raise if the render target or camera is not set up."""
    if _render_target_initialized[None] == 0:
        raise RuntimeError("Render target not set up. Call setup_render_target() first.")
    if not is_camera_ready():
        raise RuntimeError("Camera not set up. Call setup_camera() first.")


# =============================================================================
# Render Loop
# =============================================================================


@ti.func
def trace_pixel(i: ti.i32, j: ti.i32, width: ti.i32, height: ti.i32, background: vec3) -> vec3:
    """Trace and shade the primary ray of pixel (i, j).

    Args:
        i: Pixel column (0 = left).
        j: Pixel row (0 = bottom).
        width: Image width in pixels.
        height: Image height in pixels.
        background: Color for rays that hit nothing.

    Returns:
        The pixel color with non-finite channels replaced by zero.
    """
    ray = get_pixel_ray(i, j, width, height)
    hit = intersect_scene(ray.origin, ray.direction, CAMERA_T_MIN, CAMERA_T_MAX)

    color = background
    if hit.valid == 1:
        color = shade(hit)

    for c in ti.static(range(3)):
        if tm.isnan(color[c]) or tm.isinf(color[c]):
            color[c] = 0.0

    return color


@ti.kernel
def _render_kernel(width: ti.i32, height: ti.i32, background: vec3):
    for i, j in ti.ndrange(width, height):
        _color_buffer[i, j] = trace_pixel(i, j, width, height, background)


@ti.kernel
def _render_single_pixel(
    pixel_i: ti.i32, pixel_j: ti.i32, width: ti.i32, height: ti.i32, background: vec3
) -> vec3:
    return trace_pixel(pixel_i, pixel_j, width, height, background)


# =============================================================================
# Public Rendering API
# =============================================================================


def render_image() -> None:
    """Render every pixel of the render target.

    Raises:
        RuntimeError: If the render target or camera has not been set up.
    """
    _check_ready()
    width, height = get_image_dimensions()
    logger.debug("Rendering %dx%d pixels", width, height)
    _render_kernel(width, height, vec3(*_background))


def render_pixel(pixel_i: int, pixel_j: int) -> tuple[float, float, float]:
    """Render a single pixel without touching the image buffer.

    Args:
        pixel_i: Pixel column (0 = left).
        pixel_j: Pixel row (0 = bottom).

    Returns:
        Tuple of (R, G, B) color values.

    Raises:
        RuntimeError: If the render target or camera has not been set up.
        IndexError: If the pixel is outside the render target.
    """
    _check_ready()
    width, height = get_image_dimensions()
    if not (0 <= pixel_i < width and 0 <= pixel_j < height):
        raise IndexError(f"Pixel ({pixel_i}, {pixel_j}) outside {width}x{height} image")
    color = _render_single_pixel(pixel_i, pixel_j, width, height, vec3(*_background))
    return (float(color[0]), float(color[1]), float(color[2]))


def get_pixel(pixel_i: int, pixel_j: int) -> tuple[float, float, float]:
    """Read a rendered pixel from the buffer (j = 0 is the bottom row)."""
    color = _color_buffer[pixel_i, pixel_j]
    return (float(color[0]), float(color[1]), float(color[2]))


def get_image_numpy(clip: bool = True) -> npt.NDArray[np.float32]:
    """Get the rendered image as a NumPy array.

    Returns the color buffer, by default with values clamped to [0, 1]. The
    array shape is (height, width, 3) with the top row first.

    Args:
        clip: Clamp to [0, 1]. Pass False to keep the linear values, which
            may exceed 1 where highlights overlap.

    Raises:
        RuntimeError: If render target has not been set up.
    """
    if _render_target_initialized[None] == 0:
        raise RuntimeError("Render target not set up. Call setup_render_target() first.")
    width, height = get_image_dimensions()

    image = _color_buffer.to_numpy()[:width, :height, :]

    # Transpose from (width, height, 3) to (height, width, 3) for standard image format
    image = np.transpose(image, (1, 0, 2))

    # Flip vertically (Taichi uses bottom-left origin, images use top-left)
    image = np.flipud(image)

    if clip:
        image = np.clip(image, 0.0, 1.0)

    return image.astype(np.float32)
