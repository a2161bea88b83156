"""
Gridded products derived from the field model.
"""

from .grid import GridData, grid_shape, sample_grid, gaussian_blur, gaussian_kernel, pad_grid
from .contours import (
    ContourSegment,
    ContourSet,
    contour_levels,
    extract_contour,
    extract_contours,
    extract_zone_boundaries
)
from .dip_poles import DipPole, find_dip_pole, locate_dip_poles

__all__ = [
    'GridData',
    'grid_shape',
    'sample_grid',
    'gaussian_blur',
    'gaussian_kernel',
    'pad_grid',
    'ContourSegment',
    'ContourSet',
    'contour_levels',
    'extract_contour',
    'extract_contours',
    'extract_zone_boundaries',
    'DipPole',
    'find_dip_pole',
    'locate_dip_poles'
]
