"""
Spherical-harmonic coefficient reading and time resolution.

Coefficient vectors are 1-indexed numpy arrays (index 0 unused) holding the
Schmidt quasi-normalized g/h coefficients interleaved in (n, m) order::

    [_, g(1,0), g(1,1), h(1,1), g(2,0), g(2,1), h(2,1), g(2,2), h(2,2), ...]

so a model of degree ``nmax`` needs ``nmax * (nmax + 2) + 1`` slots.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from threading import Lock
from typing import Dict, Sequence, Tuple

import numpy as np

from ..exceptions import CorruptRecord, NoModelData
from .model_table import ModelTable

logger = logging.getLogger(__name__)


class CoefficientSet(Enum):
    """Which column pair of a coefficient line to read."""
    MAIN = 'main'          # g, h
    SECULAR = 'secular'    # gdot, hdot


_COLUMNS = {
    CoefficientSet.MAIN: (2, 3),
    CoefficientSet.SECULAR: (4, 5),
}


def coefficient_count(nmax: int) -> int:
    """Number of g/h coefficients up to degree ``nmax``."""
    return nmax * (nmax + 2)


def line_count(nmax: int) -> int:
    """Number of (n, m) coefficient lines up to degree ``nmax``."""
    return nmax * (nmax + 3) // 2


@dataclass(frozen=True)
class ResolvedCoefficients:
    """Coefficient vector valid at a single decimal year."""
    gh: np.ndarray
    nmax: int


def _to_float(parts: Sequence[str], column: int) -> float:
    if column >= len(parts):
        return float('nan')
    try:
        return float(parts[column])
    except ValueError:
        return float('nan')


def parse_coefficient_block(lines: Sequence[str], start_line: int, max_degree: int,
                            which: CoefficientSet = CoefficientSet.MAIN) -> np.ndarray:
    """
    Read the coefficients of one model block.

    Args:
        lines: Coefficient-file lines
        start_line: Index of the first coefficient line of the block
        max_degree: Degree to read up to
        which: Main-field or secular-variation columns

    Returns:
        1-indexed coefficient vector

    Raises:
        CorruptRecord: A line is missing or its (n, m) is out of order
    """
    g_col, h_col = _COLUMNS[which]
    gh = np.zeros(coefficient_count(max_degree) + 1)
    line_num = start_line
    ii = 0

    for nn in range(1, max_degree + 1):
        for mm in range(nn + 1):
            line = lines[line_num] if 0 <= line_num < len(lines) else None
            if not line or not line.strip():
                raise CorruptRecord(line_num + 1, (nn, mm), None)

            parts = line.split()
            # IGRF-style lines carry a leading g/h tag
            if parts[0] in ('g', 'h'):
                parts = parts[1:]
            try:
                n = int(parts[0])
                m = int(parts[1])
            except (ValueError, IndexError):
                raise CorruptRecord(line_num + 1, (nn, mm), None, line) from None

            if n != nn or m != mm:
                raise CorruptRecord(line_num + 1, (nn, mm), (n, m), line)

            ii += 1
            gh[ii] = _to_float(parts, g_col)
            if m != 0:
                ii += 1
                gh[ii] = _to_float(parts, h_col)
            line_num += 1

    return gh


def extrapolate(date: float, epoch: float, gh1: np.ndarray, nmax1: int,
                gh2: np.ndarray, nmax2: int) -> ResolvedCoefficients:
    """
    Extrapolate main-field coefficients with their secular variation.

    Args:
        date: Target decimal year
        epoch: Epoch of the main-field coefficients
        gh1: Main-field coefficients (degree ``nmax1``)
        nmax1: Main-field degree
        gh2: Secular-variation coefficients (degree ``nmax2``)
        nmax2: Secular-variation degree

    Returns:
        Coefficients valid at ``date`` and their effective degree
    """
    factor = date - epoch

    if nmax1 == nmax2:
        k = coefficient_count(nmax1)
        nmax = nmax1
        resolved = np.zeros(k + 1)
    elif nmax1 > nmax2:
        # Terms without a rate keep their epoch value
        k = coefficient_count(nmax2)
        l = coefficient_count(nmax1)
        nmax = nmax1
        resolved = np.zeros(l + 1)
        resolved[k + 1:l + 1] = gh1[k + 1:l + 1]
    else:
        # Terms present only as a rate grow from zero
        k = coefficient_count(nmax1)
        l = coefficient_count(nmax2)
        nmax = nmax2
        resolved = np.zeros(l + 1)
        resolved[k + 1:l + 1] = factor * gh2[k + 1:l + 1]

    resolved[1:k + 1] = gh1[1:k + 1] + factor * gh2[1:k + 1]
    return ResolvedCoefficients(gh=resolved, nmax=nmax)


def interpolate(date: float, epoch1: float, gh1: np.ndarray, nmax1: int,
                epoch2: float, gh2: np.ndarray, nmax2: int) -> ResolvedCoefficients:
    """
    Linearly interpolate between two models.

    Terms present in only one of the models are blended toward zero on the
    side of the model that lacks them.

    Args:
        date: Target decimal year
        epoch1: Epoch of the first model
        gh1: Coefficients of the first model
        nmax1: Degree of the first model
        epoch2: Epoch of the second model
        gh2: Coefficients of the second model
        nmax2: Degree of the second model

    Returns:
        Coefficients valid at ``date`` and their effective degree
    """
    factor = (date - epoch1) / (epoch2 - epoch1)

    if nmax1 == nmax2:
        k = coefficient_count(nmax1)
        nmax = nmax1
        resolved = np.zeros(k + 1)
    elif nmax1 > nmax2:
        k = coefficient_count(nmax2)
        l = coefficient_count(nmax1)
        nmax = nmax1
        resolved = np.zeros(l + 1)
        resolved[k + 1:l + 1] = gh1[k + 1:l + 1] + factor * (-gh1[k + 1:l + 1])
    else:
        k = coefficient_count(nmax1)
        l = coefficient_count(nmax2)
        nmax = nmax2
        resolved = np.zeros(l + 1)
        resolved[k + 1:l + 1] = factor * gh2[k + 1:l + 1]

    resolved[1:k + 1] = gh1[1:k + 1] + factor * (gh2[1:k + 1] - gh1[1:k + 1])
    return ResolvedCoefficients(gh=resolved, nmax=nmax)


class CoefficientResolver:
    """Reads coefficient blocks of a model table and resolves them in time."""

    def __init__(self, table: ModelTable):
        self.table = table
        self._cache: Dict[Tuple[int, int, CoefficientSet], np.ndarray] = {}
        self._lock = Lock()

    def read_coefficients(self, start_line: int, max_degree: int,
                          which: CoefficientSet = CoefficientSet.MAIN) -> np.ndarray:
        """
        Coefficient vector of a block, parsed once and shared read-only.

        Raises:
            CorruptRecord: The block does not follow the (n, m) traversal
        """
        key = (start_line, max_degree, which)
        cached = self._cache.get(key)
        if cached is not None:
            return cached

        gh = parse_coefficient_block(self.table.lines, start_line, max_degree, which)
        gh.setflags(write=False)
        with self._lock:
            return self._cache.setdefault(key, gh)

    def resolve(self, index: int, date: float) -> ResolvedCoefficients:
        """
        Coefficients of model ``index`` valid at ``date``.

        A model without secular-variation terms is interpolated toward the
        next model; otherwise it is extrapolated with its own rates.

        Raises:
            NoModelData: Invalid index, or no usable model to interpolate toward
            CorruptRecord: A coefficient block is malformed
        """
        if index < 0 or index >= self.table.nmodel:
            raise NoModelData(date, index, "model index out of range")
        record = self.table[index]
        if not record.irec_pos:
            raise NoModelData(date, index, "missing coefficient block")

        if record.max2 == 0:
            if index + 1 >= self.table.nmodel or not self.table[index + 1].irec_pos:
                raise NoModelData(date, index, "no following model to interpolate toward")
            following = self.table[index + 1]
            if following.yrmin == record.yrmin:
                raise NoModelData(date, index, "bracketing models share a start year")
            gh1 = self.read_coefficients(record.irec_pos, record.max1, CoefficientSet.MAIN)
            gh2 = self.read_coefficients(following.irec_pos, following.max1, CoefficientSet.MAIN)
            return interpolate(date, record.yrmin, gh1, record.max1,
                               following.yrmin, gh2, following.max1)

        gh1 = self.read_coefficients(record.irec_pos, record.max1, CoefficientSet.MAIN)
        gh2 = self.read_coefficients(record.irec_pos, record.max2, CoefficientSet.SECULAR)
        return extrapolate(date, record.epoch, gh1, record.max1, gh2, record.max2)
