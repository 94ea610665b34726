"""Reference demo scene.

A small scene exercising everything the renderer supports:

- A large red sphere in the middle of the frame
- A tall green ellipsoid on the left and a wide blue one on the right
- A flattened white ellipsoid acting as the ground
- Optionally a synthetic voxel blob (a dense core in a faint shell) in front
  of the spheres
- A key light and a dimmer fill light
- A camera on the -z axis looking toward +z

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from voxtrace.scene.demo import create_demo_scene
    >>> from voxtrace.camera.viewplane import setup_camera
    >>>
    >>> scene, camera = create_demo_scene()
    >>> setup_camera(camera)
"""

from dataclasses import dataclass

import numpy as np
import numpy.typing as npt

from voxtrace.camera.viewplane import ViewPlaneCamera
from voxtrace.materials.colormap import ColorMap
from voxtrace.scene.manager import SceneManager


@dataclass
class DemoSceneParams:
    """Parameters for customizing the demo scene.

    Attributes:
        light_intensity: Intensity of the key light; the fill light gets
            half of it.
        key_light_position: Position of the key light.
        sphere_color: RGBA color of the center sphere.
        include_volume: Whether to add the synthetic voxel blob.
        volume_resolution: Voxels per axis of the blob's grid.

    Example:
        >>> params = DemoSceneParams(light_intensity=0.8, include_volume=True)
    """

    light_intensity: float = 1.0
    key_light_position: tuple[float, float, float] = (-20.0, 20.0, -20.0)
    sphere_color: tuple[float, float, float, float] = (0.9, 0.15, 0.1, 1.0)
    include_volume: bool = False
    volume_resolution: int = 24


# =============================================================================
# Demo Scene Constants
# =============================================================================

CAMERA_POSITION = (0.0, 0.0, -20.0)
CAMERA_DIRECTION = (0.0, 0.0, 1.0)
CAMERA_UP = (0.0, 1.0, 0.0)
VIEW_PLANE_DISTANCE = 2.0
VIEW_PLANE_SIZE = 2.0

FILL_LIGHT_POSITION = (25.0, 10.0, -30.0)

# Blob placement: a cube of side VOLUME_EXTENT centered at VOLUME_CENTER
VOLUME_CENTER = (0.0, -1.0, 2.0)
VOLUME_EXTENT = 8.0


def make_blob_voxels(resolution: int) -> npt.NDArray[np.uint8]:
    """Build a spherical blob with a dense core and a faint shell.

    Args:
        resolution: Voxels per axis.

    Returns:
        A (resolution, resolution, resolution) uint8 array indexed [x, y, z].
    """
    coords = (np.arange(resolution, dtype=np.float32) + 0.5) / resolution * 2.0 - 1.0
    x, y, z = np.meshgrid(coords, coords, coords, indexing="ij")
    r = np.sqrt(x * x + y * y + z * z)

    voxels = np.zeros((resolution, resolution, resolution), dtype=np.uint8)
    voxels[r < 0.95] = 60
    voxels[r < 0.6] = 200
    return voxels


def make_blob_color_map() -> ColorMap:
    """Transfer function for make_blob_voxels(): faint shell, opaque core."""
    cmap = ColorMap()
    cmap.add(1, 100, (0.9, 0.7, 0.5, 0.08))
    cmap.add(101, 255, (1.0, 1.0, 0.9, 0.7))
    return cmap


def create_demo_scene(
    params: DemoSceneParams | None = None,
) -> tuple[SceneManager, ViewPlaneCamera]:
    """Create the demo scene.

    Args:
        params: Optional DemoSceneParams. If None, uses the defaults.

    Returns:
        A tuple of (SceneManager, ViewPlaneCamera). The camera is also
        stored on the scene manager.
    """
    if params is None:
        params = DemoSceneParams()

    scene = SceneManager()

    # Ellipsoids
    shiny = scene.add_phong_material(
        ambient=(0.1, 0.1, 0.1),
        diffuse=(params.sphere_color[0], params.sphere_color[1], params.sphere_color[2]),
        specular=(0.8, 0.8, 0.8),
        shininess=64.0,
    )
    scene.add_ellipsoid((0.0, 0.0, 10.0), (1.0, 1.0, 1.0), 3.0, shiny, params.sphere_color)
    scene.add_ellipsoid((-7.0, 0.0, 14.0), (1.0, 2.0, 1.0), 1.5, color=(0.1, 0.8, 0.2, 1.0))
    scene.add_ellipsoid((7.0, 1.0, 8.0), (2.0, 1.0, 1.0), 1.5, color=(0.2, 0.3, 0.9, 1.0))
    scene.add_ellipsoid((0.0, -5.0, 12.0), (30.0, 1.0, 30.0), 1.0, color=(0.8, 0.8, 0.8, 1.0))

    if params.include_volume:
        n = params.volume_resolution
        scale = VOLUME_EXTENT / n
        position = (
            VOLUME_CENTER[0] - VOLUME_EXTENT / 2.0,
            VOLUME_CENTER[1] - VOLUME_EXTENT / 2.0,
            VOLUME_CENTER[2] - VOLUME_EXTENT / 2.0,
        )
        scene.add_volume(
            position,
            scale,
            (n, n, n),
            (1.0, 1.0, 1.0),
            make_blob_voxels(n),
            make_blob_color_map(),
        )

    # Lights
    scene.add_light(
        params.key_light_position,
        ambient=(0.2, 0.2, 0.2),
        diffuse=(1.0, 1.0, 1.0),
        specular=(1.0, 1.0, 1.0),
        intensity=params.light_intensity,
    )
    scene.add_light(
        FILL_LIGHT_POSITION,
        ambient=(0.1, 0.1, 0.1),
        diffuse=(0.6, 0.6, 0.7),
        specular=(0.3, 0.3, 0.3),
        intensity=params.light_intensity * 0.5,
    )

    camera = ViewPlaneCamera(
        position=CAMERA_POSITION,
        direction=CAMERA_DIRECTION,
        up=CAMERA_UP,
        view_plane_distance=VIEW_PLANE_DISTANCE,
        view_plane_width=VIEW_PLANE_SIZE,
        view_plane_height=VIEW_PLANE_SIZE,
    )
    scene.camera = camera

    return scene, camera
