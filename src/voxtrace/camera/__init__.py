"""Camera module for primary ray generation.

Components:
    viewplane: Camera with a view plane at a fixed distance, stretched over
        the output image

Pixel coordinates are integers with i = 0 at the left and j = 0 at the
bottom of the image.
"""

from .viewplane import (
    ViewPlaneCamera,
    get_camera_info,
    get_pixel_ray,
    image_to_view_plane,
    is_camera_ready,
    setup_camera,
)

__all__ = [
    "ViewPlaneCamera",
    "setup_camera",
    "is_camera_ready",
    "image_to_view_plane",
    "get_pixel_ray",
    "get_camera_info",
]
