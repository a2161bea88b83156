"""
magmap - geomagnetic field engine.

Reads spherical-harmonic model files (.COF), evaluates the main field and its
secular variation, and derives gridded map products: sampled scalar grids,
contour lines, weak-field zones and dip pole locations.
"""

from .exceptions import GeomagError
from .models import FieldParameter, FieldSample, Geomag, ModelTable, SecularVariation
from .mapping import (
    ContourSet,
    DipPole,
    extract_contours,
    gaussian_blur,
    locate_dip_poles,
    sample_grid
)

__version__ = "0.1.0"

__all__ = [
    'GeomagError',
    'FieldParameter',
    'FieldSample',
    'Geomag',
    'ModelTable',
    'SecularVariation',
    'ContourSet',
    'DipPole',
    'extract_contours',
    'gaussian_blur',
    'locate_dip_poles',
    'sample_grid'
]
