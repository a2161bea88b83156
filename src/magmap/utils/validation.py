from typing import Any, Dict, List, Type, Union
import math


def validate_type(value: Any, expected_type: Union[Type, tuple]) -> bool:
    """Validate value is of expected type."""
    return isinstance(value, expected_type)


def validate_range(value: float, min_val: float = None, max_val: float = None) -> bool:
    """Validate numeric value is within range."""
    if not isinstance(value, (int, float)) or math.isnan(value):
        return False
    if min_val is not None and value < min_val:
        return False
    if max_val is not None and value > max_val:
        return False
    return True


def validate_dict_keys(data: Dict, allowed_keys: List[str]) -> List[str]:
    """Return the keys of ``data`` that are not in ``allowed_keys``."""
    return [key for key in data if key not in allowed_keys]
