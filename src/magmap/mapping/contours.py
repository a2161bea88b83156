"""
Marching-squares isolines over a sampled grid.

Each 2x2 cell is classified by which corners lie above the level
(nw=8, ne=4, se=2, sw=1). Crossing points sit on the four cell edges::

        nw ---- a ---- ne
        |              |
        d              b
        |              |
        sw ---- c ---- se

and a fixed table joins them into 0, 1 or 2 segments per cell.
"""

import logging
from dataclasses import dataclass, field
from typing import Callable, Dict, Iterable, List, NamedTuple, Sequence, Tuple

import numpy as np

from ..config import ContourConfig
from ..models.geomag import FieldParameter
from .grid import GridData, pad_grid

logger = logging.getLogger(__name__)

Point = Tuple[float, float]

# Edge pairs joined for each cell code; saddles 5 and 10 use a fixed pairing
SEGMENT_TABLE: Dict[int, Tuple[Tuple[str, str], ...]] = {
    0: (),
    1: (('d', 'c'),),
    2: (('c', 'b'),),
    3: (('d', 'b'),),
    4: (('a', 'b'),),
    5: (('d', 'a'), ('c', 'b')),
    6: (('a', 'c'),),
    7: (('d', 'a'),),
    8: (('d', 'a'),),
    9: (('a', 'c'),),
    10: (('a', 'd'), ('b', 'c')),
    11: (('a', 'b'),),
    12: (('d', 'b'),),
    13: (('c', 'b'),),
    14: (('d', 'c'),),
    15: (),
}


class ContourSegment(NamedTuple):
    """One isoline edge between two (lon, lat) points [deg]."""
    start: Point
    end: Point


@dataclass
class ContourSet:
    """All segments of one isoline level."""
    level: float
    segments: List[ContourSegment] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.segments)


def classify(nw: float, ne: float, se: float, sw: float, level: float) -> int:
    """4-bit cell code of the corners strictly above ``level``."""
    code = 0
    if nw > level:
        code |= 8
    if ne > level:
        code |= 4
    if se > level:
        code |= 2
    if sw > level:
        code |= 1
    return code


def lerp(level: float, v1: float, v2: float) -> float:
    """Fraction of the way from v1 to v2 at which ``level`` is crossed."""
    if v2 - v1 == 0:
        return 0.5
    return (level - v1) / (v2 - v1)


def edge_points(x: int, y: int, nw: float, ne: float, se: float, sw: float,
                level: float, interpolate: bool = True) -> Dict[str, Point]:
    """Crossing points on the four edges of cell (x, y), in grid coordinates."""
    if not interpolate:
        return {
            'a': (x + 0.5, y),
            'b': (x + 1, y + 0.5),
            'c': (x + 0.5, y + 1),
            'd': (x, y + 0.5),
        }
    return {
        'a': (x + lerp(level, nw, ne), y),
        'b': (x + 1, y + lerp(level, ne, se)),
        'c': (x + lerp(level, sw, se), y + 1),
        'd': (x, y + lerp(level, nw, sw)),
    }


def cell_segments(x: int, y: int, nw: float, ne: float, se: float, sw: float,
                  level: float, interpolate: bool = True) -> List[Tuple[Point, Point]]:
    """Segments of one cell in grid coordinates."""
    pairs = SEGMENT_TABLE[classify(nw, ne, se, sw, level)]
    if not pairs:
        return []
    points = edge_points(x, y, nw, ne, se, sw, level, interpolate)
    return [(points[p], points[q]) for p, q in pairs]


def _trace(values: np.ndarray, level: float, interpolate: bool,
           to_geo: Callable[[Point], Point]) -> ContourSet:
    values = np.asarray(values, dtype=np.float64)
    nw = values[:-1, :-1]
    ne = values[:-1, 1:]
    sw = values[1:, :-1]
    se = values[1:, 1:]
    codes = ((nw > level) * 8 + (ne > level) * 4
             + (se > level) * 2 + (sw > level) * 1)

    contour = ContourSet(level)
    dropped = 0
    # Row-major visit order: y outer, x inner
    for y, x in zip(*np.nonzero((codes != 0) & (codes != 15))):
        for start, end in cell_segments(
                int(x), int(y),
                float(nw[y, x]), float(ne[y, x]), float(se[y, x]), float(sw[y, x]),
                level, interpolate):
            start_geo = to_geo(start)
            end_geo = to_geo(end)
            # Segments spanning the anti-meridian are wrap artifacts
            if abs(start_geo[0] - end_geo[0]) > 180.0:
                dropped += 1
                continue
            contour.segments.append(ContourSegment(start_geo, end_geo))

    if dropped:
        logger.debug(f"Level {level}: dropped {dropped} anti-meridian segment(s)")
    return contour


def extract_contour(grid: GridData, level: float, interpolate: bool = True) -> ContourSet:
    """
    Isoline segments of ``grid`` at ``level``.

    Args:
        grid: Sampled grid
        level: Threshold value
        interpolate: Place crossings by linear interpolation; otherwise at
            edge midpoints

    Returns:
        Segments in (lon, lat) degrees
    """
    def to_geo(point: Point) -> Point:
        return grid.lon(point[0]), grid.lat(point[1])

    return _trace(grid.values, level, interpolate, to_geo)


def extract_contours(grid: GridData, levels: Iterable[float],
                     interpolate: bool = True) -> List[ContourSet]:
    """Isolines for several levels; levels without crossings are kept empty."""
    return [extract_contour(grid, level, interpolate) for level in levels]


def extract_zone_boundaries(grid: GridData, thresholds: Sequence[float],
                            padding_value: float,
                            interpolate: bool = True) -> List[ContourSet]:
    """
    Closed boundaries of the regions where ``grid`` falls below each threshold.

    The grid is bordered with ``padding_value`` so regions touching the map
    edge still close; padded coordinates are mapped back onto the original
    lon/lat extent.
    """
    padded = pad_grid(grid, padding_value)
    width, height = grid.width, grid.height

    def to_geo(point: Point) -> Point:
        lon = (point[0] - 1) / (width - 1) * 360.0 - 180.0
        lat = 90.0 - (point[1] - 1) / (height - 1) * 180.0
        return lon, lat

    return [_trace(padded.values, threshold, interpolate, to_geo) for threshold in thresholds]


def level_range(start: float, stop: float, step: float) -> List[float]:
    """Levels start, start+step, ... up to and including ``stop``."""
    if step <= 0 or start > stop:
        return []
    count = int(np.ceil((stop + step / 2 - start) / step))
    return [start + i * step for i in range(count)]


def contour_levels(parameter: FieldParameter, config: ContourConfig) -> List[float]:
    """
    Contour levels of a field parameter, positive pass first, then negative,
    then zero.

    Raises:
        ValueError: No level schedule configured for ``parameter``
    """
    schedules = config.schedules.get(parameter.value)
    if not schedules:
        raise ValueError(f"No contour levels configured for {parameter.value}")

    levels: List[float] = []
    for schedule in schedules:
        passes = level_range(schedule.start, schedule.stop, schedule.step)
        if schedule.start == 0 and schedule.stop == 0 and 0 not in passes:
            passes.append(0.0)
        levels.extend(passes)
    return levels
