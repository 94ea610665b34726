"""Phong material model and material registry.

A Phong material carries three RGB coefficients that are multiplied
component-wise with the matching coefficients of each light, plus a
shininess exponent for the specular lobe:

    ambient  * light.ambient
    diffuse  * light.diffuse  * (N . T)
    specular * light.specular * (E . R) ^ shininess

Materials for ellipsoids are registered up front and referenced by index.
Volumes have no fixed material; their material is derived per hit from the
composited color with material_from_color().

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from voxtrace.materials.phong import add_phong_material
    >>> idx = add_phong_material(
    ...     ambient=(0.1, 0.0, 0.0),
    ...     diffuse=(0.7, 0.1, 0.1),
    ...     specular=(0.5, 0.5, 0.5),
    ...     shininess=32.0,
    ... )
"""

from dataclasses import dataclass

import taichi as ti

from voxtrace.core.ray import vec3, vec4

# Coefficients used to derive a material from a single color
FROM_COLOR_AMBIENT = 0.1
FROM_COLOR_DIFFUSE = 0.8
FROM_COLOR_SPECULAR = 0.3
FROM_COLOR_SHININESS = 50.0


@dataclass(frozen=True)
class PhongMaterial:
    """Host-side description of a Phong material.

    Attributes:
        ambient: Ambient reflectance (R, G, B), each in [0, 1].
        diffuse: Diffuse reflectance (R, G, B), each in [0, 1].
        specular: Specular reflectance (R, G, B), each in [0, 1].
        shininess: Specular exponent (non-negative).
    """

    ambient: tuple[float, float, float]
    diffuse: tuple[float, float, float]
    specular: tuple[float, float, float]
    shininess: float

    @classmethod
    def from_color(cls, color: tuple[float, ...]) -> "PhongMaterial":
        """Derive a material from a color.

        Only the RGB channels are used; an alpha channel is ignored.

        Args:
            color: (R, G, B) or (R, G, B, A) color.

        Returns:
            The derived PhongMaterial.
        """
        rgb = color[:3]
        return cls(
            ambient=tuple(FROM_COLOR_AMBIENT * c for c in rgb),
            diffuse=tuple(FROM_COLOR_DIFFUSE * c for c in rgb),
            specular=tuple(FROM_COLOR_SPECULAR * c for c in rgb),
            shininess=FROM_COLOR_SHININESS,
        )


@ti.func
def material_from_color(color: vec4):
    """Derive Phong coefficients from an RGBA color inside a kernel.

    Matches PhongMaterial.from_color().

    Args:
        color: The RGBA color; alpha is ignored.

    Returns:
        A tuple of (ambient, diffuse, specular, shininess).
    """
    rgb = vec3(color[0], color[1], color[2])
    return (
        FROM_COLOR_AMBIENT * rgb,
        FROM_COLOR_DIFFUSE * rgb,
        FROM_COLOR_SPECULAR * rgb,
        FROM_COLOR_SHININESS,
    )


# =============================================================================
# Material Field Storage
# =============================================================================

# Maximum number of Phong materials in the scene
MAX_PHONG_MATERIALS = 256

phong_ambient = ti.Vector.field(3, dtype=ti.f32, shape=MAX_PHONG_MATERIALS)
phong_diffuse = ti.Vector.field(3, dtype=ti.f32, shape=MAX_PHONG_MATERIALS)
phong_specular = ti.Vector.field(3, dtype=ti.f32, shape=MAX_PHONG_MATERIALS)
phong_shininess = ti.field(dtype=ti.f32, shape=MAX_PHONG_MATERIALS)
num_phong_materials = ti.field(dtype=ti.i32, shape=())


def _validate_rgb(name: str, rgb: tuple[float, float, float]) -> None:
    if len(rgb) != 3:
        raise ValueError(f"{name} must have 3 components, got {len(rgb)}")
    for i, component in enumerate(rgb):
        if component < 0.0 or component > 1.0:
            raise ValueError(f"{name} component {i} = {component} is outside [0, 1]")


def clear_phong_materials() -> None:
    """Clear all Phong materials.

    Resets the material count to zero. Existing data in the fields will be
    overwritten when new materials are added.
    """
    num_phong_materials[None] = 0


def add_phong_material(
    ambient: tuple[float, float, float],
    diffuse: tuple[float, float, float],
    specular: tuple[float, float, float],
    shininess: float,
) -> int:
    """Add a Phong material to the material registry.

    Args:
        ambient: Ambient reflectance (R, G, B), each in [0, 1].
        diffuse: Diffuse reflectance (R, G, B), each in [0, 1].
        specular: Specular reflectance (R, G, B), each in [0, 1].
        shininess: Specular exponent (non-negative).

    Returns:
        The index of the added material.

    Raises:
        RuntimeError: If the maximum number of materials is exceeded.
        ValueError: If any coefficient is outside [0, 1] or shininess < 0.
    """
    _validate_rgb("ambient", ambient)
    _validate_rgb("diffuse", diffuse)
    _validate_rgb("specular", specular)
    if shininess < 0.0:
        raise ValueError(f"Shininess must be non-negative, got {shininess}")

    idx = num_phong_materials[None]
    if idx >= MAX_PHONG_MATERIALS:
        raise RuntimeError(f"Maximum number of Phong materials ({MAX_PHONG_MATERIALS}) exceeded")

    phong_ambient[idx] = vec3(ambient[0], ambient[1], ambient[2])
    phong_diffuse[idx] = vec3(diffuse[0], diffuse[1], diffuse[2])
    phong_specular[idx] = vec3(specular[0], specular[1], specular[2])
    phong_shininess[idx] = shininess
    num_phong_materials[None] = idx + 1
    return idx


def get_phong_material_count() -> int:
    """Get the number of Phong materials in the registry."""
    return int(num_phong_materials[None])


def get_phong_material(idx: int) -> PhongMaterial:
    """Read a registered material back into a PhongMaterial.

    Raises:
        IndexError: If idx does not name a registered material.
    """
    if not 0 <= idx < num_phong_materials[None]:
        raise IndexError(f"No Phong material with index {idx}")
    a = phong_ambient[idx]
    d = phong_diffuse[idx]
    s = phong_specular[idx]
    return PhongMaterial(
        ambient=(float(a[0]), float(a[1]), float(a[2])),
        diffuse=(float(d[0]), float(d[1]), float(d[2])),
        specular=(float(s[0]), float(s[1]), float(s[2])),
        shininess=float(phong_shininess[idx]),
    )


@ti.func
def get_phong_coefficients(material_idx: ti.i32):
    """Look up a registered material inside a kernel.

    Args:
        material_idx: The index of the material in the registry.

    Returns:
        A tuple of (ambient, diffuse, specular, shininess).
    """
    return (
        phong_ambient[material_idx],
        phong_diffuse[material_idx],
        phong_specular[material_idx],
        phong_shininess[material_idx],
    )
