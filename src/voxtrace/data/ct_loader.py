"""Loader for segmented CT masks stored as a .dat/.raw file pair.

The .dat file is a small text header. Each line holds a key followed by its
values, separated by any run of colons, tabs or spaces:

    ObjectFileName: mask.raw
    Resolution:     256 256 128
    SliceThickness: 0.8 0.8 1.5

Only ``Resolution`` (voxel counts per axis) and ``SliceThickness`` (voxel
size per axis) are used; other keys are ignored. The .raw file holds
rx * ry * rz unsigned bytes with x varying fastest, then y, then z.

Example:
    >>> from voxtrace.data.ct_loader import load_ct_mask
    >>> mask = load_ct_mask("scans/head.dat", "scans/head.raw")
    >>> mask.resolution
    (256, 256, 128)
"""

import logging
import re
from dataclasses import dataclass
from pathlib import Path

import numpy as np
import numpy.typing as npt

logger = logging.getLogger(__name__)

_SEPARATOR = re.compile(r"[:\t ]+")


class CtMaskError(ValueError):
    """Raised when a CT mask header or its raw data is unusable."""


@dataclass(frozen=True)
class CtMaskData:
    """A loaded CT mask.

    Attributes:
        resolution: Voxel counts (rx, ry, rz).
        thickness: Voxel size per axis in world units.
        voxels: Flat uint8 array of rx * ry * rz intensities, x fastest.
    """

    resolution: tuple[int, int, int]
    thickness: tuple[float, float, float]
    voxels: npt.NDArray[np.uint8]

    @property
    def voxel_count(self) -> int:
        return self.resolution[0] * self.resolution[1] * self.resolution[2]


def parse_ct_header(text: str) -> tuple[tuple[int, int, int], tuple[float, float, float]]:
    """Parse the contents of a .dat header.

    Args:
        text: The header text.

    Returns:
        Tuple of (resolution, thickness).

    Raises:
        CtMaskError: If a required key is missing or malformed.
    """
    resolution = None
    thickness = None

    for lineno, line in enumerate(text.splitlines(), start=1):
        fields = [f for f in _SEPARATOR.split(line.strip()) if f]
        if not fields:
            continue
        key, values = fields[0], fields[1:]
        if key not in ("Resolution", "SliceThickness"):
            continue
        if len(values) < 3:
            raise CtMaskError(f"Line {lineno}: {key} needs 3 values, got {len(values)}")
        try:
            if key == "Resolution":
                resolution = (int(values[0]), int(values[1]), int(values[2]))
            else:
                thickness = (float(values[0]), float(values[1]), float(values[2]))
        except ValueError as e:
            raise CtMaskError(f"Line {lineno}: invalid {key} values {values[:3]}") from e

    if resolution is None:
        raise CtMaskError("Header has no Resolution entry")
    if thickness is None:
        raise CtMaskError("Header has no SliceThickness entry")
    if any(r <= 0 for r in resolution):
        raise CtMaskError(f"Resolution must be positive, got {resolution}")
    if any(t <= 0.0 for t in thickness):
        raise CtMaskError(f"SliceThickness must be positive, got {thickness}")

    return resolution, thickness


def load_ct_mask(dat_path: str | Path, raw_path: str | Path) -> CtMaskData:
    """Load a CT mask from its header and raw data files.

    Args:
        dat_path: Path to the .dat header.
        raw_path: Path to the .raw voxel data.

    Returns:
        The loaded CtMaskData.

    Raises:
        CtMaskError: If the header is invalid or the raw file is too short.
        OSError: If a file cannot be read.
    """
    resolution, thickness = parse_ct_header(Path(dat_path).read_text())
    count = resolution[0] * resolution[1] * resolution[2]

    voxels = np.fromfile(raw_path, dtype=np.uint8, count=count)
    if voxels.size != count:
        raise CtMaskError(
            f"Failed to read the {count}-byte raw data from {raw_path} (got {voxels.size} bytes)"
        )

    logger.info("Loaded CT mask %s: resolution %s, thickness %s", raw_path, resolution, thickness)
    return CtMaskData(resolution=resolution, thickness=thickness, voxels=voxels)
