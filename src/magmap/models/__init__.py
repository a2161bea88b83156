"""
Geomagnetic field models.
"""

from .model_table import ModelTable, ModelRecord
from .coefficients import CoefficientResolver, CoefficientSet, ResolvedCoefficients
from .field import CoordinateSystem, FieldVector, evaluate_vector, derive_scalars
from .geomag import Geomag, FieldSample, FieldParameter, SecularVariation

__all__ = [
    'ModelTable',
    'ModelRecord',
    'CoefficientResolver',
    'CoefficientSet',
    'ResolvedCoefficients',
    'CoordinateSystem',
    'FieldVector',
    'evaluate_vector',
    'derive_scalars',
    'Geomag',
    'FieldSample',
    'FieldParameter',
    'SecularVariation'
]
