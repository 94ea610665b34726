"""Taichi-based ray tracer for analytic ellipsoids and volumetric CT masks.

This package renders scenes mixing analytic ellipsoids with volumetric masks
(segmented CT scans) using Whitted-style ray casting:
- Analytic ray-ellipsoid intersection
- Ray marching with front-to-back alpha compositing for voxel grids
- Phong shading with hard shadows from point lights
- One primary ray per pixel through a view-plane camera

Subpackages:
    core: Rays, shading, the render loop and the RayTracer wrapper
    geometry: Ellipsoid and volume primitives and their intersection routines
    materials: Phong materials and intensity color maps
    scene: Geometry table, scene manager and the demo scene
    camera: View-plane camera with primary ray generation
    data: Loaders for CT mask files
    preview: Image display and export
"""

__version__ = "0.1.0"
