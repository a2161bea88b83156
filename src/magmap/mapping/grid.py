"""
Global lat/lon grids sampled from the field model, with Gaussian smoothing.
"""

from dataclasses import dataclass
from typing import Tuple
import logging
import math

import numpy as np
from scipy.ndimage import convolve1d

from ..models.field import CoordinateSystem
from ..models.geomag import FieldParameter, Geomag

logger = logging.getLogger(__name__)


@dataclass
class GridData:
    """Scalar field sampled on a regular global lat/lon grid."""
    values: np.ndarray  # float32, shape (height, width); row 0 is lat 90, column 0 is lon -180

    @property
    def width(self) -> int:
        return self.values.shape[1]

    @property
    def height(self) -> int:
        return self.values.shape[0]

    def lon(self, x: float) -> float:
        """Longitude of a (fractional) column index."""
        return x / (self.width - 1) * 360.0 - 180.0

    def lat(self, y: float) -> float:
        """Latitude of a (fractional) row index."""
        return 90.0 - y / (self.height - 1) * 180.0


def grid_shape(step_deg: float) -> Tuple[int, int]:
    """(width, height) of a global grid with the given node spacing."""
    if step_deg <= 0:
        raise ValueError("Grid step must be positive")
    return math.floor(360.0 / step_deg) + 1, math.floor(180.0 / step_deg) + 1


def sample_grid(geomag: Geomag, date: float, parameter: FieldParameter,
                width: int, height: int,
                coord_mode: int = CoordinateSystem.GEODETIC,
                alt_km: float = 0.0) -> GridData:
    """
    Evaluate one field parameter on every node of a global grid.

    Undefined values (poles, weak field, missing model) are replaced by the
    value of the western neighbour, or 0 in the first column, so contouring
    never sees NaN.

    Args:
        geomag: Field model
        date: Decimal year
        parameter: Scalar to sample
        width: Longitude samples covering [-180, 180]
        height: Latitude samples covering [90, -90]
        coord_mode: 1 for geodetic, 2 for geocentric
        alt_km: Altitude [km]

    Returns:
        Sampled grid
    """
    if width < 2 or height < 2:
        raise ValueError("Grid needs at least 2x2 nodes")

    values = np.zeros((height, width), dtype=np.float32)
    lats = 90.0 - np.arange(height) * (180.0 / (height - 1))
    lons = np.arange(width) * (360.0 / (width - 1)) - 180.0
    missing = 0

    for i, lat in enumerate(lats):
        for j, lon in enumerate(lons):
            sample = geomag.get_field_components(date, coord_mode, alt_km, float(lat), float(lon))
            value = parameter.of(sample)
            if math.isnan(value):
                missing += 1
                value = values[i, j - 1] if j > 0 else 0.0
            values[i, j] = value

    logger.debug(
        f"Sampled {parameter.value} on {width}x{height} grid for {date:.2f}, "
        f"{missing} node(s) filled from neighbours"
    )
    return GridData(values)


def gaussian_kernel(radius: float) -> np.ndarray:
    """Normalized 1-D Gaussian kernel of size 2*floor(radius)+1 and sigma radius/3."""
    sigma = radius / 3.0
    half = math.floor(radius)
    offsets = np.arange(2 * half + 1) - half
    kernel = np.exp(-(offsets * offsets) / (2.0 * sigma * sigma))
    return kernel / kernel.sum()


def gaussian_blur(grid: GridData, radius: float) -> GridData:
    """
    Smooth a grid in place with a separable, edge-clamped Gaussian.

    The horizontal pass runs first, then the vertical pass. A non-positive
    radius leaves the grid untouched.
    """
    if radius <= 0:
        return grid
    kernel = gaussian_kernel(radius)
    blurred = convolve1d(grid.values.astype(np.float64), kernel, axis=1, mode='nearest')
    blurred = convolve1d(blurred, kernel, axis=0, mode='nearest')
    grid.values[...] = blurred
    return grid


def pad_grid(grid: GridData, padding_value: float) -> GridData:
    """Copy of ``grid`` surrounded by a one-node border of ``padding_value``."""
    padded = np.full((grid.height + 2, grid.width + 2), padding_value, dtype=np.float32)
    padded[1:-1, 1:-1] = grid.values
    return GridData(padded)
