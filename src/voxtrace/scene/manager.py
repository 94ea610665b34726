"""Scene manager coordinating geometries, materials and lights.

This module provides the high-level scene building API. The SceneManager
forwards every object to the module-level registries (Taichi fields) used
by the kernels and keeps a Python-side record of what was added, so a scene
can be exported to and rebuilt from a plain configuration.

Scene files are JSON documents of the form

    {
        "materials": [{"ambient": [...], "diffuse": [...], "specular": [...], "shininess": 32}],
        "ellipsoids": [{"center": [...], "semi_axes": [...], "radius": 1.0,
                        "material_id": 0, "color": [1, 1, 1, 1]}],
        "volumes": [{"dat": "head.dat", "raw": "head.raw", "position": [...],
                     "scale": 1.0, "color_map": [{"low": 1, "high": 255, "color": [...]}]}],
        "lights": [{"position": [...], "ambient": [...], "diffuse": [...],
                    "specular": [...], "intensity": 1.0}],
        "camera": {"position": [...], "direction": [...], "up": [...],
                   "view_plane_distance": 2.0, "view_plane_width": 2.0,
                   "view_plane_height": 2.0}
    }

Relative CT file paths are resolved against the scene file's directory.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from voxtrace.scene.manager import SceneManager
    >>> scene = SceneManager()
    >>> red = scene.add_phong_material(
    ...     ambient=(0.1, 0.0, 0.0), diffuse=(0.8, 0.1, 0.1),
    ...     specular=(0.5, 0.5, 0.5), shininess=32.0,
    ... )
    >>> scene.add_ellipsoid((0, 0, 0), (1, 1, 1), 1.0, material_id=red)
    0
    >>> scene.add_light((0, 10, -10), (0.2, 0.2, 0.2), (1, 1, 1), (1, 1, 1))
    0
"""

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import numpy as np
import numpy.typing as npt

from voxtrace.camera.viewplane import ViewPlaneCamera
from voxtrace.core.shading import add_light, clear_lights, get_light_count
from voxtrace.data.ct_loader import load_ct_mask
from voxtrace.materials.colormap import ColorMap
from voxtrace.materials.phong import (
    PhongMaterial,
    add_phong_material,
    clear_phong_materials,
    get_phong_material_count,
)
from voxtrace.scene.intersection import (
    add_ellipsoid_geometry,
    add_volume_geometry,
    clear_scene,
    get_geometry_count,
)

logger = logging.getLogger(__name__)


@dataclass
class EllipsoidInfo:
    """Information about an ellipsoid in the scene.

    Attributes:
        geometry_id: The id in the scene's geometry table.
        center: The center point.
        semi_axes: Per-axis semi-lengths.
        radius: Radius factor.
        material_id: The Phong material assigned to the ellipsoid.
        color: RGBA color carried on intersection records.
    """

    geometry_id: int
    center: tuple[float, float, float]
    semi_axes: tuple[float, float, float]
    radius: float
    material_id: int
    color: tuple[float, float, float, float]


@dataclass
class VolumeInfo:
    """Information about a volumetric mask in the scene.

    Attributes:
        geometry_id: The id in the scene's geometry table.
        position: World-space position of the grid's minimum corner.
        scale: Isotropic scale factor.
        resolution: Voxel counts (rx, ry, rz).
        thickness: Voxel size per axis.
        color_map: The transfer function.
        dat_path: Header file the volume was loaded from, if any.
        raw_path: Raw data file the volume was loaded from, if any.
    """

    geometry_id: int
    position: tuple[float, float, float]
    scale: float
    resolution: tuple[int, int, int]
    thickness: tuple[float, float, float]
    color_map: ColorMap
    dat_path: str | None = None
    raw_path: str | None = None


@dataclass
class SceneConfig:
    """Configuration for scene serialization.

    Attributes:
        materials: List of Phong material configurations.
        ellipsoids: List of ellipsoid configurations.
        volumes: List of CT volume configurations.
        lights: List of light configurations.
        camera: Optional camera configuration.
    """

    materials: list[dict[str, Any]] = field(default_factory=list)
    ellipsoids: list[dict[str, Any]] = field(default_factory=list)
    volumes: list[dict[str, Any]] = field(default_factory=list)
    lights: list[dict[str, Any]] = field(default_factory=list)
    camera: dict[str, Any] | None = None


def _vec3(values: Any) -> tuple[float, float, float]:
    return (float(values[0]), float(values[1]), float(values[2]))


class SceneManager:
    """High-level scene builder.

    The scene state itself lives in module-level Taichi fields, so creating
    a SceneManager clears any previously built scene.

    Attributes:
        materials: PhongMaterial for every registered material id.
        ellipsoids: EllipsoidInfo for every ellipsoid.
        volumes: VolumeInfo for every volume.
        lights: Parameters of every light.
        camera: Camera loaded from a configuration, if any.
    """

    def __init__(self) -> None:
        """Initialize an empty scene."""
        self.materials: list[PhongMaterial] = []
        self.ellipsoids: list[EllipsoidInfo] = []
        self.volumes: list[VolumeInfo] = []
        self.lights: list[dict[str, Any]] = []
        self.camera: ViewPlaneCamera | None = None
        self._clear_all()

    def _clear_all(self) -> None:
        clear_scene()
        clear_phong_materials()
        clear_lights()

        self.materials.clear()
        self.ellipsoids.clear()
        self.volumes.clear()
        self.lights.clear()
        self.camera = None

    def clear(self) -> None:
        """Clear the entire scene (geometries, materials, lights and camera)."""
        self._clear_all()

    # =========================================================================
    # Material Management
    # =========================================================================

    def add_phong_material(
        self,
        ambient: tuple[float, float, float],
        diffuse: tuple[float, float, float],
        specular: tuple[float, float, float],
        shininess: float,
    ) -> int:
        """Add a Phong material to the scene.

        Returns:
            The material id.

        Raises:
            ValueError: If a coefficient is outside [0, 1] or shininess < 0.
            RuntimeError: If the maximum number of materials is exceeded.
        """
        material_id = add_phong_material(ambient, diffuse, specular, shininess)
        self.materials.append(
            PhongMaterial(
                ambient=_vec3(ambient),
                diffuse=_vec3(diffuse),
                specular=_vec3(specular),
                shininess=float(shininess),
            )
        )
        return material_id

    def get_material_count(self) -> int:
        return get_phong_material_count()

    # =========================================================================
    # Geometry Management
    # =========================================================================

    def add_ellipsoid(
        self,
        center: tuple[float, float, float],
        semi_axes: tuple[float, float, float],
        radius: float,
        material_id: int | None = None,
        color: tuple[float, float, float, float] = (1.0, 1.0, 1.0, 1.0),
    ) -> int:
        """Add an ellipsoid to the scene.

        Without a material_id a material is derived from ``color`` with
        PhongMaterial.from_color() and registered first.

        Args:
            center: The center point.
            semi_axes: Per-axis semi-lengths, all positive.
            radius: Radius factor, positive.
            material_id: A material id from add_phong_material(), or None.
            color: RGBA color of the ellipsoid.

        Returns:
            The geometry id of the ellipsoid.

        Raises:
            ValueError: If material_id is invalid or a parameter is out of range.
        """
        if material_id is None:
            derived = PhongMaterial.from_color(color)
            material_id = self.add_phong_material(
                derived.ambient, derived.diffuse, derived.specular, derived.shininess
            )
        elif not 0 <= material_id < get_phong_material_count():
            raise ValueError(f"Invalid material_id: {material_id}")

        geometry_id = add_ellipsoid_geometry(center, semi_axes, radius, material_id, color)
        self.ellipsoids.append(
            EllipsoidInfo(
                geometry_id=geometry_id,
                center=_vec3(center),
                semi_axes=_vec3(semi_axes),
                radius=float(radius),
                material_id=material_id,
                color=(float(color[0]), float(color[1]), float(color[2]), float(color[3])),
            )
        )
        return geometry_id

    def add_volume(
        self,
        position: tuple[float, float, float],
        scale: float,
        resolution: tuple[int, int, int],
        thickness: tuple[float, float, float],
        voxels: npt.NDArray[np.uint8],
        color_map: ColorMap,
    ) -> int:
        """Add a volumetric mask from an in-memory voxel grid.

        See voxtrace.geometry.volume.add_volume() for the voxel layout.

        Returns:
            The geometry id of the volume.
        """
        geometry_id = add_volume_geometry(position, scale, resolution, thickness, voxels, color_map)
        self.volumes.append(
            VolumeInfo(
                geometry_id=geometry_id,
                position=_vec3(position),
                scale=float(scale),
                resolution=(int(resolution[0]), int(resolution[1]), int(resolution[2])),
                thickness=_vec3(thickness),
                color_map=color_map,
            )
        )
        return geometry_id

    def add_ct_mask(
        self,
        dat_path: str | Path,
        raw_path: str | Path,
        position: tuple[float, float, float],
        scale: float,
        color_map: ColorMap,
    ) -> int:
        """Load a CT mask from disk and add it as a volume.

        Args:
            dat_path: Path to the .dat header.
            raw_path: Path to the .raw voxel data.
            position: World-space position of the grid's minimum corner.
            scale: Isotropic scale factor.
            color_map: Transfer function for the mask's intensities.

        Returns:
            The geometry id of the volume.

        Raises:
            CtMaskError: If the CT files are invalid.
        """
        mask = load_ct_mask(dat_path, raw_path)
        geometry_id = self.add_volume(
            position, scale, mask.resolution, mask.thickness, mask.voxels, color_map
        )
        self.volumes[-1].dat_path = str(dat_path)
        self.volumes[-1].raw_path = str(raw_path)
        return geometry_id

    # =========================================================================
    # Lights
    # =========================================================================

    def add_light(
        self,
        position: tuple[float, float, float],
        ambient: tuple[float, float, float],
        diffuse: tuple[float, float, float],
        specular: tuple[float, float, float],
        intensity: float = 1.0,
    ) -> int:
        """Add a point light. See voxtrace.core.shading.add_light()."""
        idx = add_light(position, ambient, diffuse, specular, intensity)
        self.lights.append(
            {
                "position": list(_vec3(position)),
                "ambient": list(_vec3(ambient)),
                "diffuse": list(_vec3(diffuse)),
                "specular": list(_vec3(specular)),
                "intensity": float(intensity),
            }
        )
        return idx

    # =========================================================================
    # Scene Queries
    # =========================================================================

    def get_geometry_count(self) -> int:
        return get_geometry_count()

    def get_ellipsoid_count(self) -> int:
        return len(self.ellipsoids)

    def get_volume_count(self) -> int:
        return len(self.volumes)

    def get_light_count(self) -> int:
        return get_light_count()

    # =========================================================================
    # Scene Serialization
    # =========================================================================

    def to_config(self) -> SceneConfig:
        """Export the scene to a configuration object.

        Raises:
            ValueError: If a volume was added from memory rather than from
                CT files, since its voxels cannot be referenced.
        """
        config = SceneConfig()

        for mat in self.materials:
            config.materials.append(
                {
                    "ambient": list(mat.ambient),
                    "diffuse": list(mat.diffuse),
                    "specular": list(mat.specular),
                    "shininess": mat.shininess,
                }
            )

        for ell in self.ellipsoids:
            config.ellipsoids.append(
                {
                    "center": list(ell.center),
                    "semi_axes": list(ell.semi_axes),
                    "radius": ell.radius,
                    "material_id": ell.material_id,
                    "color": list(ell.color),
                }
            )

        for vol in self.volumes:
            if vol.dat_path is None or vol.raw_path is None:
                raise ValueError(
                    f"Volume {vol.geometry_id} was not loaded from CT files and cannot be exported"
                )
            config.volumes.append(
                {
                    "dat": vol.dat_path,
                    "raw": vol.raw_path,
                    "position": list(vol.position),
                    "scale": vol.scale,
                    "color_map": vol.color_map.to_dict(),
                }
            )

        config.lights = [dict(light) for light in self.lights]

        if self.camera is not None:
            config.camera = self.camera.to_dict()

        return config

    def from_config(self, config: SceneConfig, base_dir: str | Path | None = None) -> None:
        """Load a scene from a configuration object.

        Clears the current scene first. Ellipsoids reference materials by
        their position in ``config.materials``.

        Args:
            config: The scene configuration to load.
            base_dir: Directory that relative CT file paths are resolved
                against (default: the current directory).

        Raises:
            ValueError: If the configuration contains invalid data.
            KeyError: If a required entry is missing.
        """
        self.clear()
        base = Path(base_dir) if base_dir is not None else None

        for mat in config.materials:
            self.add_phong_material(
                _vec3(mat["ambient"]),
                _vec3(mat["diffuse"]),
                _vec3(mat["specular"]),
                float(mat["shininess"]),
            )

        for ell in config.ellipsoids:
            color = ell.get("color", [1.0, 1.0, 1.0, 1.0])
            self.add_ellipsoid(
                _vec3(ell["center"]),
                _vec3(ell["semi_axes"]),
                float(ell.get("radius", 1.0)),
                material_id=ell.get("material_id"),
                color=(float(color[0]), float(color[1]), float(color[2]), float(color[3])),
            )

        for vol in config.volumes:
            dat_path = Path(vol["dat"])
            raw_path = Path(vol["raw"])
            if base is not None:
                dat_path = base / dat_path
                raw_path = base / raw_path
            geometry_id = self.add_ct_mask(
                dat_path,
                raw_path,
                _vec3(vol.get("position", [0.0, 0.0, 0.0])),
                float(vol.get("scale", 1.0)),
                ColorMap.from_dict(vol.get("color_map", [])),
            )
            # Keep the paths as written so the config round-trips
            self.volumes[-1].dat_path = vol["dat"]
            self.volumes[-1].raw_path = vol["raw"]
            logger.debug("Loaded volume %d from %s", geometry_id, dat_path)

        for light in config.lights:
            self.add_light(
                _vec3(light["position"]),
                _vec3(light["ambient"]),
                _vec3(light["diffuse"]),
                _vec3(light["specular"]),
                float(light.get("intensity", 1.0)),
            )

        if config.camera is not None:
            self.camera = ViewPlaneCamera.from_dict(config.camera)

    def to_dict(self) -> dict[str, Any]:
        """Export the scene as a JSON-compatible dictionary."""
        config = self.to_config()
        data: dict[str, Any] = {
            "materials": config.materials,
            "ellipsoids": config.ellipsoids,
            "volumes": config.volumes,
            "lights": config.lights,
        }
        if config.camera is not None:
            data["camera"] = config.camera
        return data

    def from_dict(self, data: dict[str, Any], base_dir: str | Path | None = None) -> None:
        """Load a scene from a dictionary produced by to_dict()."""
        config = SceneConfig(
            materials=data.get("materials", []),
            ellipsoids=data.get("ellipsoids", []),
            volumes=data.get("volumes", []),
            lights=data.get("lights", []),
            camera=data.get("camera"),
        )
        self.from_config(config, base_dir=base_dir)

    def save_json(self, filepath: str | Path) -> None:
        """Write the scene to a JSON file."""
        path = Path(filepath)
        path.write_text(json.dumps(self.to_dict(), indent=2))
        logger.info("Saved scene to %s", path)

    def load_json(self, filepath: str | Path) -> None:
        """Load the scene from a JSON file.

        Relative CT paths are resolved against the file's directory.
        """
        path = Path(filepath)
        data = json.loads(path.read_text())
        self.from_dict(data, base_dir=path.parent)
        logger.info(
            "Loaded scene from %s: %d geometries, %d lights",
            path,
            self.get_geometry_count(),
            self.get_light_count(),
        )

    def __repr__(self) -> str:
        return (
            f"SceneManager(ellipsoids={len(self.ellipsoids)}, volumes={len(self.volumes)}, "
            f"lights={len(self.lights)}, materials={len(self.materials)})"
        )
