"""View-plane camera for primary ray generation.

The camera sits at ``position`` and looks along ``direction``. A rectangular
view plane of size ``view_plane_width`` x ``view_plane_height`` (world units)
is centered on the viewing axis at ``view_plane_distance`` in front of the
camera. The output image is stretched over this plane, so pixel (i, j) maps
to the plane offsets

    offset_x = i * view_plane_width / width - view_plane_width / 2
    offset_y = j * view_plane_height / height - view_plane_height / 2

and its primary ray runs from the camera position through

    position + direction * view_plane_distance + up * offset_y + right * offset_x

with right = normalize(up x direction). Pixel offsets are measured from the
pixel's lower-left corner, so on an even-sized image the ray through the
plane center belongs to pixel (width / 2, height / 2).

Row j = 0 is the bottom of the image, matching the render buffer layout.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from voxtrace.camera.viewplane import ViewPlaneCamera, setup_camera
    >>> camera = ViewPlaneCamera(
    ...     position=(0.0, 0.0, -10.0),
    ...     direction=(0.0, 0.0, 1.0),
    ...     up=(0.0, 1.0, 0.0),
    ...     view_plane_distance=2.0,
    ...     view_plane_width=2.0,
    ...     view_plane_height=2.0,
    ... )
    >>> setup_camera(camera)
"""

from dataclasses import dataclass

import numpy as np
import taichi as ti

from voxtrace.core.ray import Ray, make_ray_between, vec3

# Direction and up vectors shorter than this cannot define a camera basis
DEGENERATE_EPSILON = 1e-12

# =============================================================================
# Camera Data Structures
# =============================================================================


@dataclass
class ViewPlaneCamera:
    """Configuration for a view-plane camera.

    Attributes:
        position: Camera position in world space (x, y, z).
        direction: Viewing direction (normalized by setup_camera()).
        up: Up direction of the view plane (normalized by setup_camera()).
        view_plane_distance: Distance from the camera to the view plane.
        view_plane_width: World-space width covered by the image.
        view_plane_height: World-space height covered by the image.
    """

    position: tuple[float, float, float]
    direction: tuple[float, float, float]
    up: tuple[float, float, float]
    view_plane_distance: float
    view_plane_width: float
    view_plane_height: float

    def to_dict(self) -> dict:
        return {
            "position": list(self.position),
            "direction": list(self.direction),
            "up": list(self.up),
            "view_plane_distance": self.view_plane_distance,
            "view_plane_width": self.view_plane_width,
            "view_plane_height": self.view_plane_height,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "ViewPlaneCamera":
        return cls(
            position=tuple(data["position"]),
            direction=tuple(data["direction"]),
            up=tuple(data["up"]),
            view_plane_distance=float(data["view_plane_distance"]),
            view_plane_width=float(data["view_plane_width"]),
            view_plane_height=float(data["view_plane_height"]),
        )


# =============================================================================
# Taichi Fields for Camera State
# =============================================================================

_camera_position = ti.Vector.field(3, dtype=ti.f32, shape=())
_camera_direction = ti.Vector.field(3, dtype=ti.f32, shape=())
_camera_up = ti.Vector.field(3, dtype=ti.f32, shape=())
_camera_right = ti.Vector.field(3, dtype=ti.f32, shape=())

# (distance, width, height) of the view plane
_view_plane = ti.Vector.field(3, dtype=ti.f32, shape=())

_camera_initialized = ti.field(dtype=ti.i32, shape=())


# =============================================================================
# Camera Setup (Python-side)
# =============================================================================


def setup_camera(camera: ViewPlaneCamera) -> None:
    """Initialize camera state from configuration.

    Normalizes the direction and up vectors and derives the right vector of
    the view plane. Must be called before rendering.

    Args:
        camera: Camera configuration.

    Raises:
        ValueError: If direction or up is zero, they are parallel, or a view
            plane dimension is not positive.
    """
    if camera.view_plane_distance <= 0.0:
        raise ValueError(f"View plane distance must be positive, got {camera.view_plane_distance}")
    if camera.view_plane_width <= 0.0 or camera.view_plane_height <= 0.0:
        raise ValueError(
            "View plane size must be positive, got "
            f"{camera.view_plane_width}x{camera.view_plane_height}"
        )

    position = np.array(camera.position, dtype=np.float64)
    direction = np.array(camera.direction, dtype=np.float64)
    up = np.array(camera.up, dtype=np.float64)

    direction_norm = np.linalg.norm(direction)
    up_norm = np.linalg.norm(up)
    if direction_norm < DEGENERATE_EPSILON:
        raise ValueError("Camera direction must be non-zero")
    if up_norm < DEGENERATE_EPSILON:
        raise ValueError("Camera up vector must be non-zero")
    direction = direction / direction_norm
    up = up / up_norm

    # right = up x direction
    right = np.cross(up, direction)
    right_norm = np.linalg.norm(right)
    if right_norm < DEGENERATE_EPSILON:
        raise ValueError("Camera up vector must not be parallel to the direction")
    right = right / right_norm

    _camera_position[None] = position.tolist()
    _camera_direction[None] = direction.tolist()
    _camera_up[None] = up.tolist()
    _camera_right[None] = right.tolist()
    _view_plane[None] = [
        camera.view_plane_distance,
        camera.view_plane_width,
        camera.view_plane_height,
    ]
    _camera_initialized[None] = 1


def reset_camera() -> None:
    """Forget the current camera; rendering requires setup_camera() again."""
    _camera_initialized[None] = 0


def is_camera_ready() -> bool:
    """Check whether setup_camera() has been called."""
    return bool(_camera_initialized[None])


# =============================================================================
# Ray Generation (Taichi-compatible)
# =============================================================================


@ti.func
def image_to_view_plane(n: ti.i32, image_size: ti.i32, plane_size: ti.f32) -> ti.f32:
    """Map a pixel coordinate to an offset on the view plane.

    Args:
        n: Pixel coordinate along one image axis.
        image_size: Image size in pixels along that axis.
        plane_size: View plane size in world units along that axis.

    Returns:
        The offset from the plane center, in world units.
    """
    return ti.cast(n, ti.f32) * plane_size / ti.cast(image_size, ti.f32) - plane_size / 2.0


@ti.func
def get_pixel_ray(i: ti.i32, j: ti.i32, width: ti.i32, height: ti.i32) -> Ray:
    """Generate the primary ray for pixel (i, j).

    Args:
        i: Pixel column (0 = left).
        j: Pixel row (0 = bottom).
        width: Image width in pixels.
        height: Image height in pixels.

    Returns:
        A ray from the camera position through the pixel's point on the view
        plane, with unit direction.
    """
    plane = _view_plane[None]
    offset_x = image_to_view_plane(i, width, plane[1])
    offset_y = image_to_view_plane(j, height, plane[2])

    position = _camera_position[None]
    pixel_position = (
        position
        + _camera_direction[None] * plane[0]
        + _camera_up[None] * offset_y
        + _camera_right[None] * offset_x
    )
    return make_ray_between(position, pixel_position)


# =============================================================================
# Utility Functions
# =============================================================================


def get_camera_info() -> dict[str, tuple[float, float, float]]:
    """Get current camera state for debugging.

    Returns:
        Dictionary with position, direction, up, right and view_plane
        (distance, width, height).
    """

    def _vec(field) -> tuple[float, float, float]:
        v = field[None]
        return (float(v[0]), float(v[1]), float(v[2]))

    return {
        "position": _vec(_camera_position),
        "direction": _vec(_camera_direction),
        "up": _vec(_camera_up),
        "right": _vec(_camera_right),
        "view_plane": _vec(_view_plane),
    }
