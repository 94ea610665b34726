"""Volumetric mask primitive rendered by ray marching.

A volumetric mask is a dense 3D grid of 8-bit intensities (for example a
segmented CT scan) placed in world space at ``position`` with per-axis voxel
thickness and an isotropic ``scale``. Its world-space bounds are

    v0 = position
    v1 = position + resolution * thickness * scale

A ray does not hit a single surface of the volume. Instead the marcher walks
the ray through the bounding box in unit-length steps, maps every new voxel
through the volume's transfer function to a (color, alpha) sample and
composites the samples front to back with the "over" operator. The hit
distance is frozen at the sample that first carries the accumulated alpha
past ALPHA_THRESHOLD, pulled toward the camera by DEPTH_BIAS. Rays whose
accumulated alpha stays below ALPHA_THRESHOLD miss the volume.

Storage is preallocated: every volume's voxels live in one flat byte pool,
and each volume's color map is baked into a 256-entry RGBA lookup table.

Example:
    >>> import numpy as np
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from voxtrace.geometry.volume import add_volume
    >>> from voxtrace.materials.colormap import ColorMap
    >>> voxels = np.full((8, 8, 8), 200, dtype=np.uint8)
    >>> cmap = ColorMap().add(100, 255, (1.0, 0.9, 0.8, 0.5))
    >>> idx = add_volume((0, 0, 0), 1.0, (8, 8, 8), (1.0, 1.0, 1.0), voxels, cmap)
"""

import logging

import numpy as np
import numpy.typing as npt
import taichi as ti
import taichi.math as tm

from voxtrace.core.ray import ivec3, safe_normalize, vec3, vec4
from voxtrace.geometry.aabb import intersect_aabb
from voxtrace.geometry.record import Intersection, no_intersection
from voxtrace.materials.colormap import INTENSITY_LEVELS, ColorMap
from voxtrace.materials.phong import material_from_color

logger = logging.getLogger(__name__)

# =============================================================================
# Marching Constants
# =============================================================================

# Accumulated opacity below which a ray is considered to have missed
ALPHA_THRESHOLD = 0.01

# Empirical correction pulling the reported depth toward the camera, since
# compositing starts before the volume is fully opaque
DEPTH_BIAS = 0.91

# World-space length of one marching step
STEP_LENGTH = 1.0

# =============================================================================
# Volume Storage
# =============================================================================

MAX_VOLUMES = 16

# Shared voxel pool (32 MiB of intensities across all volumes)
MAX_VOXELS = 2**25

voxel_pool = ti.field(dtype=ti.u8, shape=MAX_VOXELS)
num_pool_voxels = ti.field(dtype=ti.i32, shape=())

volume_positions = ti.Vector.field(3, dtype=ti.f32, shape=MAX_VOLUMES)
volume_scales = ti.field(dtype=ti.f32, shape=MAX_VOLUMES)
volume_thickness = ti.Vector.field(3, dtype=ti.f32, shape=MAX_VOLUMES)
volume_resolution = ti.Vector.field(3, dtype=ti.i32, shape=MAX_VOLUMES)
volume_offsets = ti.field(dtype=ti.i32, shape=MAX_VOLUMES)
volume_bounds_min = ti.Vector.field(3, dtype=ti.f32, shape=MAX_VOLUMES)
volume_bounds_max = ti.Vector.field(3, dtype=ti.f32, shape=MAX_VOLUMES)
volume_luts = ti.Vector.field(4, dtype=ti.f32, shape=(MAX_VOLUMES, INTENSITY_LEVELS))
num_volumes = ti.field(dtype=ti.i32, shape=())


def clear_volumes() -> None:
    """Remove all volumes and release the voxel pool."""
    num_volumes[None] = 0
    num_pool_voxels[None] = 0


@ti.kernel
def _upload_voxels(data: ti.types.ndarray(dtype=ti.u8, ndim=1), offset: ti.i32):
    for i in range(data.shape[0]):
        voxel_pool[offset + i] = data[i]


def _flatten_voxels(
    voxels: npt.ArrayLike, resolution: tuple[int, int, int]
) -> npt.NDArray[np.uint8]:
    """Flatten voxels into x-fastest order: index = (z * ry + y) * rx + x.

    A 3D array is interpreted as indexed [x, y, z]; a 1D array is taken to
    be in x-fastest order already.
    """
    array = np.asarray(voxels)
    rx, ry, rz = resolution
    expected = rx * ry * rz

    if array.ndim == 3:
        if array.shape != (rx, ry, rz):
            raise ValueError(f"Voxel array shape {array.shape} does not match resolution {resolution}")
        array = np.transpose(array, (2, 1, 0))
    elif array.ndim != 1:
        raise ValueError(f"Voxel array must be 1D or 3D, got {array.ndim}D")

    if array.size != expected:
        raise ValueError(
            f"Voxel data has {array.size} values but resolution {resolution} needs {expected}"
        )
    if array.dtype != np.uint8:
        if array.size and (array.min() < 0 or array.max() > 255):
            raise ValueError("Voxel intensities must be in [0, 255]")
        array = array.astype(np.uint8)

    return np.ascontiguousarray(array.reshape(-1))


def add_volume(
    position: tuple[float, float, float],
    scale: float,
    resolution: tuple[int, int, int],
    thickness: tuple[float, float, float],
    voxels: npt.ArrayLike,
    color_map: ColorMap,
) -> int:
    """Store a volumetric mask.

    Args:
        position: World-space position of the grid's minimum corner.
        scale: Isotropic scale factor (positive).
        resolution: Number of voxels along x, y, z (all positive).
        thickness: Physical voxel size along x, y, z (all positive).
        voxels: Intensities, either a 3D array indexed [x, y, z] or a flat
            array in x-fastest order.
        color_map: Transfer function from intensity to (color, alpha).

    Returns:
        The index of the stored volume.

    Raises:
        ValueError: If any parameter is out of range or the voxel data does
            not match the resolution.
        RuntimeError: If the volume or voxel capacity is exceeded.
    """
    if not scale > 0.0:
        raise ValueError(f"Scale must be positive, got {scale}")
    for i, r in enumerate(resolution):
        if int(r) <= 0:
            raise ValueError(f"Resolution component {i} = {r} must be positive")
    for i, th in enumerate(thickness):
        if not th > 0.0:
            raise ValueError(f"Thickness component {i} = {th} must be positive")

    flat = _flatten_voxels(voxels, resolution)

    idx = num_volumes[None]
    if idx >= MAX_VOLUMES:
        raise RuntimeError(f"Maximum number of volumes ({MAX_VOLUMES}) exceeded")

    offset = num_pool_voxels[None]
    if offset + flat.size > MAX_VOXELS:
        raise RuntimeError(
            f"Voxel pool exhausted: {offset + flat.size} voxels needed, {MAX_VOXELS} available"
        )

    _upload_voxels(flat, offset)

    extent = [resolution[k] * thickness[k] * scale for k in range(3)]
    volume_positions[idx] = vec3(position[0], position[1], position[2])
    volume_scales[idx] = scale
    volume_thickness[idx] = vec3(thickness[0], thickness[1], thickness[2])
    volume_resolution[idx] = ivec3(int(resolution[0]), int(resolution[1]), int(resolution[2]))
    volume_offsets[idx] = offset
    volume_bounds_min[idx] = vec3(position[0], position[1], position[2])
    volume_bounds_max[idx] = vec3(
        position[0] + extent[0], position[1] + extent[1], position[2] + extent[2]
    )

    lut = color_map.to_lut()
    for value in range(INTENSITY_LEVELS):
        volume_luts[idx, value] = vec4(lut[value, 0], lut[value, 1], lut[value, 2], lut[value, 3])

    num_pool_voxels[None] = offset + flat.size
    num_volumes[None] = idx + 1
    logger.debug(
        "Added volume %d: resolution %s, bounds %s..%s, %d voxels",
        idx,
        tuple(resolution),
        tuple(position),
        tuple(position[k] + extent[k] for k in range(3)),
        flat.size,
    )
    return idx


def get_volume_count() -> int:
    """Get the number of stored volumes."""
    return int(num_volumes[None])


def get_volume_bounds(idx: int) -> tuple[tuple[float, ...], tuple[float, ...]]:
    """Get the world-space bounding box (v0, v1) of a stored volume."""
    if not 0 <= idx < num_volumes[None]:
        raise IndexError(f"No volume with index {idx}")
    lo = volume_bounds_min[idx]
    hi = volume_bounds_max[idx]
    return (
        (float(lo[0]), float(lo[1]), float(lo[2])),
        (float(hi[0]), float(hi[1]), float(hi[2])),
    )


# =============================================================================
# Voxel Access
# =============================================================================


@ti.func
def voxel_value(volume_idx: ti.i32, x: ti.i32, y: ti.i32, z: ti.i32) -> ti.i32:
    """Read a voxel intensity; coordinates outside the grid read as 0."""
    res = volume_resolution[volume_idx]
    value = 0
    if 0 <= x < res[0] and 0 <= y < res[1] and 0 <= z < res[2]:
        linear = (z * res[1] + y) * res[0] + x
        value = ti.cast(voxel_pool[volume_offsets[volume_idx] + linear], ti.i32)
    return value


@ti.func
def voxel_index(volume_idx: ti.i32, position: vec3) -> ivec3:
    """Map a world-space position to integer voxel indices."""
    local = (
        (position - volume_positions[volume_idx])
        / volume_thickness[volume_idx]
        / volume_scales[volume_idx]
    )
    return ivec3(
        ti.cast(ti.floor(local[0]), ti.i32),
        ti.cast(ti.floor(local[1]), ti.i32),
        ti.cast(ti.floor(local[2]), ti.i32),
    )


@ti.func
def sample_transfer(volume_idx: ti.i32, value: ti.i32) -> vec4:
    """Map an intensity through the volume's baked color map."""
    return volume_luts[volume_idx, value]


@ti.func
def voxel_gradient_normal(volume_idx: ti.i32, idx: ivec3) -> vec3:
    """Local normal from the central difference of intensities.

    Returns:
        The normalized gradient, or the zero vector in flat regions.
    """
    x = idx[0]
    y = idx[1]
    z = idx[2]
    gx = voxel_value(volume_idx, x + 1, y, z) - voxel_value(volume_idx, x - 1, y, z)
    gy = voxel_value(volume_idx, x, y + 1, z) - voxel_value(volume_idx, x, y - 1, z)
    gz = voxel_value(volume_idx, x, y, z + 1) - voxel_value(volume_idx, x, y, z - 1)
    return safe_normalize(vec3(ti.cast(gx, ti.f32), ti.cast(gy, ti.f32), ti.cast(gz, ti.f32)))


@ti.func
def composite_over(accumulated: vec4, sample: vec4) -> vec4:
    """Blend a new sample behind the accumulated color (front to back).

    alpha' = min(acc_a + s_a * (1 - acc_a), 1)
    c'     = min((s_c * acc_a + acc_c * s_a * (1 - acc_a)) / alpha', 1)

    Args:
        accumulated: The RGBA accumulated so far.
        sample: The new RGBA sample; its alpha must be positive.

    Returns:
        The updated accumulated RGBA.
    """
    acc_a = accumulated[3]
    s_a = sample[3]
    alpha = ti.min(acc_a + s_a * (1.0 - acc_a), 1.0)

    result = vec4(0.0, 0.0, 0.0, alpha)
    for k in ti.static(range(3)):
        blended = sample[k] * acc_a + accumulated[k] * s_a * (1.0 - acc_a)
        result[k] = ti.min(blended / alpha, 1.0)
    return result


# =============================================================================
# Ray Marching
# =============================================================================


@ti.func
def hit_volume(
    ray_origin: vec3,
    ray_direction: vec3,
    volume_idx: ti.i32,
    t_min: ti.f32,
    t_max: ti.f32,
) -> Intersection:
    """March a ray through a volume, compositing samples front to back.

    The march covers the part of the ray inside the bounding box and the
    window [t_min, t_max]. Consecutive steps that land in the same voxel are
    sampled once, and samples with zero alpha are skipped entirely.

    Args:
        ray_origin: The starting point of the ray.
        ray_direction: The direction vector of the ray (any non-zero length).
        volume_idx: Index of the stored volume.
        t_min: Lower bound on t for the marched interval.
        t_max: Upper bound on t for the marched interval.

    Returns:
        A valid, visible Intersection carrying the frozen distance, the
        averaged normal and the composited color, or the no_intersection()
        sentinel if the ray misses the box or accumulates too little opacity.
    """
    result = no_intersection()

    direction_length = tm.length(ray_direction)
    hit_box, t_near, t_far = intersect_aabb(
        ray_origin,
        ray_direction,
        volume_bounds_min[volume_idx],
        volume_bounds_max[volume_idx],
    )
    t_enter = ti.max(t_near, t_min)
    t_exit = ti.min(t_far, t_max)

    if direction_length > 0.0 and hit_box == 1 and t_enter < t_exit:
        entry = ray_origin + t_enter * ray_direction
        exit_point = ray_origin + t_exit * ray_direction
        step = safe_normalize(ray_direction) * STEP_LENGTH
        steps = ti.cast(tm.length(exit_point - entry) / tm.length(step), ti.i32)

        position = entry
        accumulated = vec4(0.0, 0.0, 0.0, 0.0)
        normal = vec3(0.0, 0.0, 0.0)
        has_normal = 0
        last_index = ivec3(0, 0, 0)
        has_last = 0
        distance = 0.0
        active = 1

        for _ in range(steps):
            if active == 1:
                position += step
                index = voxel_index(volume_idx, position)

                is_new = has_last == 0 or (
                    index[0] != last_index[0]
                    or index[1] != last_index[1]
                    or index[2] != last_index[2]
                )
                if is_new:
                    has_last = 1
                    last_index = index

                    value = voxel_value(volume_idx, index[0], index[1], index[2])
                    sample = sample_transfer(volume_idx, value)

                    if sample[3] > 0.0:
                        if accumulated[3] < ALPHA_THRESHOLD:
                            distance = (
                                tm.length(position - ray_origin) / direction_length * DEPTH_BIAS
                            )

                        accumulated = composite_over(accumulated, sample)

                        local_normal = voxel_gradient_normal(volume_idx, index)
                        if has_normal == 0:
                            normal = local_normal
                            has_normal = 1
                        else:
                            normal = safe_normalize(normal + local_normal)

                        if accumulated[3] >= 1.0:
                            active = 0

        if accumulated[3] >= ALPHA_THRESHOLD:
            ambient, diffuse, specular, shininess = material_from_color(accumulated)
            result.valid = 1
            result.visible = 1
            result.t = distance
            result.origin = ray_origin
            result.direction = ray_direction
            result.position = ray_origin + distance * ray_direction
            result.normal = normal
            result.ambient = ambient
            result.diffuse = diffuse
            result.specular = specular
            result.shininess = shininess
            result.color = accumulated

    return result
