"""
Utility functions and helpers for the geomagnetic engine.
"""

from .logging import setup_logging
from .time import decimal_year, decimal_year_from_date
from .validation import (
    validate_type,
    validate_range,
    validate_dict_keys
)

__all__ = [
    'setup_logging',
    'decimal_year',
    'decimal_year_from_date',
    'validate_type',
    'validate_range',
    'validate_dict_keys'
]
