"""
Dip pole search: locations where the inclination reaches its extremum.
"""

from dataclasses import dataclass
from typing import Iterator, List, Optional
import logging
import math

from ..config import DipPoleConfig
from ..models.field import CoordinateSystem
from ..models.geomag import Geomag

logger = logging.getLogger(__name__)

NORTH = 1
SOUTH = -1


@dataclass(frozen=True)
class DipPole:
    """Location where the field is (nearly) vertical."""
    name: str
    lat: float
    lon: float
    inclination: float


@dataclass(frozen=True)
class _Candidate:
    colat: float       # 0 at the north pole, 180 at the south pole
    lon_offset: float  # 0 at -180 deg longitude
    inclination: float

    @property
    def lat(self) -> float:
        return 90.0 - self.colat

    @property
    def lon(self) -> float:
        return self.lon_offset - 180.0


def _steps(start: float, stop: float, step: float) -> Iterator[float]:
    """start, start+step, ... while <= stop."""
    count = int(math.floor((stop - start) / step + 1e-9)) + 1
    for k in range(max(count, 0)):
        yield start + k * step


def find_dip_pole(geomag: Geomag, date: float, direction: int,
                  coord_mode: int = CoordinateSystem.GEODETIC,
                  alt_km: float = 0.0,
                  config: Optional[DipPoleConfig] = None) -> Optional[_Candidate]:
    """
    Search for the extremum of inclination.

    A coarse global scan is followed by local rescans of a shrinking square
    around the best point. Each round's square is centred on the best point
    known when the round starts and does not follow improvements made during
    the round (the legacy geomag visualizer lets the window drift).

    Args:
        geomag: Field model
        date: Decimal year
        direction: NORTH (maximize inclination) or SOUTH (minimize it)
        coord_mode: 1 for geodetic, 2 for geocentric
        alt_km: Altitude [km]
        config: Search parameters

    Returns:
        Best point found, or None if every evaluation was undefined
    """
    config = config or DipPoleConfig()
    best: Optional[_Candidate] = None

    def consider(colat: float, lon_offset: float) -> None:
        nonlocal best
        sample = geomag.get_field_components(
            date, coord_mode, alt_km, 90.0 - colat, lon_offset - 180.0
        )
        inclination = sample.i_deg
        if math.isnan(inclination):
            return
        if best is None or direction * inclination > direction * best.inclination:
            best = _Candidate(colat, lon_offset, inclination)

    for colat in _steps(0.0, 180.0, config.coarse_lat_step):
        lon_offset = 0.0
        while lon_offset < 360.0:
            consider(colat, lon_offset)
            lon_offset += config.coarse_lon_step

    if best is None:
        return None

    radius = config.initial_radius
    step = config.initial_step
    for _ in range(config.refinement_rounds):
        center = best
        lat_lo = max(0.0, center.colat - radius)
        lat_hi = min(180.0, center.colat + radius)
        lon_lo = max(0.0, center.lon_offset - radius)
        lon_hi = min(360.0, center.lon_offset + radius)
        for colat in _steps(lat_lo, lat_hi, step):
            for lon_offset in _steps(lon_lo, lon_hi, step):
                consider(colat, lon_offset)
        radius /= 2.0
        step /= 2.0

    return best


def locate_dip_poles(geomag: Geomag, date: float,
                     coord_mode: int = CoordinateSystem.GEODETIC,
                     alt_km: float = 0.0,
                     config: Optional[DipPoleConfig] = None) -> List[DipPole]:
    """
    North and south dip poles.

    A pole is reported only when the inclination at the converged point
    exceeds the acceptance threshold in magnitude.

    Returns:
        Zero, one or two poles, north first
    """
    config = config or DipPoleConfig()
    poles = []

    for direction, name in ((NORTH, "North Dip Pole"), (SOUTH, "South Dip Pole")):
        best = find_dip_pole(geomag, date, direction, coord_mode, alt_km, config)
        if best is None or direction * best.inclination <= config.min_inclination_deg:
            logger.info(f"{name} not found for {date:.2f}")
            continue
        poles.append(DipPole(name, best.lat, best.lon, best.inclination))
        logger.info(f"{name} at {best.lat:.2f}, {best.lon:.2f} (I={best.inclination:.3f})")

    return poles
