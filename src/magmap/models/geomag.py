"""
Point queries against a loaded model table.
"""

import logging
import math
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Callable, Dict, Union

from ..exceptions import NoModelData
from .coefficients import CoefficientResolver, ResolvedCoefficients
from .field import (
    POLE_TOLERANCE_DEG,
    FieldVector,
    derive_scalars,
    evaluate_vector,
)
from .model_table import ModelTable

logger = logging.getLogger(__name__)

NAN = float('nan')


@dataclass(frozen=True)
class FieldSample:
    """Geomagnetic field at one point and date."""
    model_name: str
    d_deg: float  # declination, east positive
    i_deg: float  # inclination, down positive
    h: float      # horizontal intensity [nT]
    x: float      # north [nT]
    y: float      # east [nT]
    z: float      # down [nT]
    f: float      # total intensity [nT]

    @classmethod
    def nan(cls, model_name: str = '') -> 'FieldSample':
        """Sample with every component undefined."""
        return cls(model_name, NAN, NAN, NAN, NAN, NAN, NAN, NAN)

    def is_valid(self) -> bool:
        return not math.isnan(self.f)


@dataclass(frozen=True)
class SecularVariation:
    """Annual rate of change of the field."""
    ddot_deg: float  # [deg/yr]
    idot_deg: float  # [deg/yr]
    hdot: float      # [nT/yr]
    xdot: float
    ydot: float
    zdot: float
    fdot: float


class FieldParameter(Enum):
    """Scalar quantities that can be mapped."""
    DECLINATION = 'declination'
    INCLINATION = 'inclination'
    TOTAL_FIELD = 'totalfield'
    HORIZONTAL = 'horizontal'
    NORTH = 'north'
    EAST = 'east'
    DOWN = 'down'

    def of(self, sample: FieldSample) -> float:
        """Value of this parameter in ``sample``."""
        return _ACCESSORS[self](sample)


_ACCESSORS: Dict[FieldParameter, Callable[[FieldSample], float]] = {
    FieldParameter.DECLINATION: lambda s: s.d_deg,
    FieldParameter.INCLINATION: lambda s: s.i_deg,
    FieldParameter.TOTAL_FIELD: lambda s: s.f,
    FieldParameter.HORIZONTAL: lambda s: s.h,
    FieldParameter.NORTH: lambda s: s.x,
    FieldParameter.EAST: lambda s: s.y,
    FieldParameter.DOWN: lambda s: s.z,
}


def at_pole(lat: float) -> bool:
    """True within the pole tolerance of either geographic pole."""
    return abs(90.0 - abs(lat)) <= POLE_TOLERANCE_DEG


class Geomag:
    """
    Geomagnetic field model.

    Holds only the immutable model table (and its read-only coefficient
    memo), so one instance can serve any number of concurrent queries.
    """

    def __init__(self, table: ModelTable):
        self.table = table
        self.resolver = CoefficientResolver(table)

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> 'Geomag':
        return cls(ModelTable.from_file(path))

    @classmethod
    def from_text(cls, text: str, source: str = '<text>') -> 'Geomag':
        return cls(ModelTable.from_text(text, source))

    def select_model(self, date: float) -> int:
        """Index of the first model still valid at ``date``, else the last one."""
        for index, record in enumerate(self.table):
            if date < record.yrmax:
                return index
        return self.table.nmodel - 1

    def _evaluate(self, resolved: ResolvedCoefficients, coord_mode: int,
                  alt_km: float, lat: float, lon: float) -> FieldVector:
        return evaluate_vector(coord_mode, lat, lon, alt_km, resolved.nmax, resolved.gh)

    def field_at(self, date: float, coord_mode: int, alt_km: float,
                 lat: float, lon: float) -> FieldSample:
        """
        Field components at one location.

        Args:
            date: Decimal year
            coord_mode: 1 for geodetic (WGS84), 2 for geocentric
            alt_km: Altitude [km]
            lat: Latitude [deg]
            lon: Longitude [deg]

        Returns:
            Field sample; X, Y and D are NaN at the geographic poles

        Raises:
            NoModelData: No model can be resolved for ``date``
            CorruptRecord: The coefficient file is malformed
        """
        index = self.select_model(date)
        resolved = self.resolver.resolve(index, date)
        vector = self._evaluate(resolved, coord_mode, alt_km, lat, lon)
        d, i, h, f = derive_scalars(vector)

        x, y, d_deg = vector.x, vector.y, math.degrees(d)
        if at_pole(lat):
            x = y = d_deg = NAN

        return FieldSample(
            model_name=self.table[index].name,
            d_deg=d_deg,
            i_deg=math.degrees(i),
            h=h,
            x=x,
            y=y,
            z=vector.z,
            f=f,
        )

    def get_field_components(self, date: float, coord_mode: int, alt_km: float,
                             lat: float, lon: float) -> FieldSample:
        """Like :meth:`field_at`, but an unresolvable date yields an all-NaN sample."""
        try:
            return self.field_at(date, coord_mode, alt_km, lat, lon)
        except NoModelData as e:
            logger.debug(f"Returning NaN sample: {e}")
            return FieldSample.nan()

    def secular_variation(self, date: float, coord_mode: int, alt_km: float,
                          lat: float, lon: float) -> SecularVariation:
        """
        Annual change of the field at ``date``.

        The field is evaluated with coefficients resolved at ``date`` and at
        ``date + 1``; declination change is wrapped into (-180, 180].

        Raises:
            NoModelData: No model can be resolved for ``date``
        """
        index = self.select_model(date)
        now = self.resolver.resolve(index, date)
        later = self.resolver.resolve(index, date + 1.0)
        # Both evaluations use the degree resolved at the requested date
        later = ResolvedCoefficients(gh=later.gh, nmax=now.nmax)

        v0 = self._evaluate(now, coord_mode, alt_km, lat, lon)
        v1 = self._evaluate(later, coord_mode, alt_km, lat, lon)
        d0, i0, h0, f0 = derive_scalars(v0)
        d1, i1, h1, f1 = derive_scalars(v1)

        ddot = math.degrees(d1 - d0)
        if ddot > 180.0:
            ddot -= 360.0
        if ddot <= -180.0:
            ddot += 360.0

        xdot = v1.x - v0.x
        ydot = v1.y - v0.y
        if at_pole(lat):
            ddot = xdot = ydot = NAN

        return SecularVariation(
            ddot_deg=ddot,
            idot_deg=math.degrees(i1 - i0),
            hdot=h1 - h0,
            xdot=xdot,
            ydot=ydot,
            zdot=v1.z - v0.z,
            fdot=f1 - f0,
        )
