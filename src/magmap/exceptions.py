"""
Custom exceptions for geomagnetic model loading and evaluation.
"""

from typing import Optional, Tuple


class GeomagError(Exception):
    """Base exception for all magmap errors."""
    pass


class ModelFileError(GeomagError):
    """Base exception for coefficient-file load failures."""
    def __init__(self, source: str, message: str):
        self.source = source
        self.message = message
        super().__init__(f"[{source}] {message}")


class TooManyModels(ModelFileError):
    """More model headers than the table can hold."""
    def __init__(self, source: str, line_number: int, limit: int):
        self.line_number = line_number
        self.limit = limit
        super().__init__(
            source, f"Too many models (limit {limit}) at line {line_number}"
        )


class NoValidModels(ModelFileError):
    """No model header found in the coefficient file."""
    def __init__(self, source: str):
        super().__init__(source, "No valid model data found")


class CoefficientError(GeomagError):
    """Base exception for coefficient block errors."""
    pass


class CorruptRecord(CoefficientError):
    """Coefficient line does not match the expected (n, m) traversal."""
    def __init__(self, line_number: int, expected: Tuple[int, int],
                 got: Optional[Tuple[int, int]], line: Optional[str] = None):
        self.line_number = line_number
        self.expected = expected
        self.got = got
        self.line = line
        if got is None:
            detail = "unexpected end of file" if line is None else f"unreadable line {line!r}"
        else:
            detail = f"got n={got[0]}, m={got[1]}"
        super().__init__(
            f"Corrupt record at line {line_number}: expected "
            f"n={expected[0]}, m={expected[1]}, {detail}"
        )


class FieldError(GeomagError):
    """Base exception for field evaluation errors."""
    pass


class NoModelData(FieldError):
    """No usable model (or interpolation partner) for the requested date."""
    def __init__(self, date: float, index: int, reason: str):
        self.date = date
        self.index = index
        self.reason = reason
        super().__init__(f"No model data for {date:.3f} (model {index}): {reason}")


class ValidationError(GeomagError):
    """Exception for configuration validation errors."""
    pass
