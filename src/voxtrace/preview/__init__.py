"""Preview module for output and visualization.

Components:
    display: Clamp and gamma processing, Matplotlib preview window
    export: PNG export with Pillow

Example:
    >>> from voxtrace.preview import show_preview, save_png
    >>> from voxtrace.core.tracer import RayTracer
    >>>
    >>> tracer = RayTracer(400, 400)
    >>> tracer.render(camera)
    >>> show_preview(tracer, gamma=2.2)
    >>> save_png(tracer, "output.png")
"""

from voxtrace.preview.display import process_image_for_display, saturated_fraction, show_preview
from voxtrace.preview.export import image_to_uint8, save_png, save_png_from_array

__all__ = [
    "show_preview",
    "process_image_for_display",
    "saturated_fraction",
    "save_png",
    "save_png_from_array",
    "image_to_uint8",
]
