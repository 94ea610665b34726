"""Materials module.

Components:
    phong: Phong material model and the material registry
    colormap: Transfer function from voxel intensity to color and opacity
"""

from .colormap import ColorBand, ColorMap
from .phong import (
    PhongMaterial,
    add_phong_material,
    clear_phong_materials,
    get_phong_coefficients,
    get_phong_material,
    get_phong_material_count,
    material_from_color,
)

__all__ = [
    # Color maps
    "ColorBand",
    "ColorMap",
    # Phong
    "PhongMaterial",
    "add_phong_material",
    "clear_phong_materials",
    "get_phong_material",
    "get_phong_material_count",
    "get_phong_coefficients",
    "material_from_color",
]
