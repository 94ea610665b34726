"""Transfer function mapping voxel intensity to color and opacity.

A ColorMap is an ordered list of intensity bands. Each band covers an
inclusive range [low, high] of 8-bit intensities and assigns one RGBA color
to it. Intensities not covered by any band are fully transparent, so they
are skipped by the ray marcher.

Since voxel intensities are bytes, the whole map is baked into a 256-entry
lookup table when a volume is registered; kernels only ever read the table.

Example:
    >>> cmap = ColorMap()
    >>> cmap.add(1, 80, (0.9, 0.6, 0.5, 0.05))    # soft tissue, faint
    >>> cmap.add(81, 255, (1.0, 1.0, 0.95, 0.6))  # bone, dense
    >>> cmap.map_intensity(100)
    (1.0, 1.0, 0.95, 0.6)
    >>> cmap.map_intensity(0)
    (0.0, 0.0, 0.0, 0.0)
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import numpy as np
import numpy.typing as npt

# Number of distinct voxel intensities
INTENSITY_LEVELS = 256

TRANSPARENT = (0.0, 0.0, 0.0, 0.0)

RGBA = tuple[float, float, float, float]


@dataclass(frozen=True)
class ColorBand:
    """An inclusive intensity range with its RGBA color.

    Attributes:
        low: Lowest intensity in the band.
        high: Highest intensity in the band.
        color: (R, G, B, A), each component in [0, 1].
    """

    low: int
    high: int
    color: RGBA

    def contains(self, value: int) -> bool:
        return self.low <= value <= self.high


class ColorMap:
    """Piecewise-constant transfer function over 8-bit intensities.

    Bands are matched in insertion order; the first band containing an
    intensity wins.
    """

    def __init__(self, bands: list[ColorBand] | None = None) -> None:
        self._bands: list[ColorBand] = []
        for band in bands or []:
            self.add(band.low, band.high, band.color)

    @property
    def bands(self) -> tuple[ColorBand, ...]:
        """The registered bands, in match order."""
        return tuple(self._bands)

    def add(self, low: int, high: int, color: tuple[float, float, float, float]) -> ColorMap:
        """Add an intensity band.

        Args:
            low: Lowest intensity in the band, in [0, 255].
            high: Highest intensity in the band, in [low, 255].
            color: (R, G, B, A), each component in [0, 1].

        Returns:
            This ColorMap, so calls can be chained.

        Raises:
            ValueError: If the range or color is invalid.
        """
        if not 0 <= low <= high < INTENSITY_LEVELS:
            raise ValueError(
                f"Invalid intensity band [{low}, {high}]; "
                f"need 0 <= low <= high <= {INTENSITY_LEVELS - 1}"
            )
        if len(color) != 4:
            raise ValueError(f"Color must be RGBA, got {len(color)} components")
        for i, component in enumerate(color):
            if component < 0.0 or component > 1.0:
                raise ValueError(f"Color component {i} = {component} is outside [0, 1]")

        rgba: RGBA = (float(color[0]), float(color[1]), float(color[2]), float(color[3]))
        self._bands.append(ColorBand(low=int(low), high=int(high), color=rgba))
        return self

    def map_intensity(self, value: int) -> RGBA:
        """Map a voxel intensity to its (R, G, B, A) sample."""
        for band in self._bands:
            if band.contains(value):
                return band.color
        return TRANSPARENT

    def to_lut(self) -> npt.NDArray[np.float32]:
        """Bake the map into a lookup table of shape (256, 4)."""
        lut = np.zeros((INTENSITY_LEVELS, 4), dtype=np.float32)
        for value in range(INTENSITY_LEVELS):
            lut[value] = self.map_intensity(value)
        return lut

    def is_transparent(self) -> bool:
        """True if every intensity maps to zero opacity."""
        return all(band.color[3] == 0.0 for band in self._bands)

    def to_dict(self) -> list[dict[str, Any]]:
        """Export the bands for JSON serialization."""
        return [
            {"low": band.low, "high": band.high, "color": list(band.color)}
            for band in self._bands
        ]

    @classmethod
    def from_dict(cls, data: list[dict[str, Any]]) -> ColorMap:
        """Build a ColorMap from the output of to_dict()."""
        cmap = cls()
        for band in data:
            color = band["color"]
            cmap.add(band["low"], band["high"], (color[0], color[1], color[2], color[3]))
        return cmap

    def __len__(self) -> int:
        return len(self._bands)

    def __repr__(self) -> str:
        return f"ColorMap(bands={len(self._bands)})"
