"""
Spherical-harmonic synthesis of the geomagnetic vector at one point, and
the scalar elements (D, I, H, F) derived from it.
"""

from enum import IntEnum
from typing import NamedTuple, Tuple
import math

import numpy as np

# Reference sphere and WGS84 ellipsoid (km, km²)
EARTH_RADIUS_KM = 6371.2
WGS84_A2 = 40680631.59
WGS84_B2 = 40408299.98

# Below this intensity (nT) the field has no usable direction
NOISE_FLOOR_NT = 0.0001

POLE_TOLERANCE_DEG = 0.001
POLE_NUDGE_DEG = 89.999


class CoordinateSystem(IntEnum):
    """Interpretation of latitude and altitude."""
    GEODETIC = 1    # WGS84 ellipsoid, altitude above the ellipsoid
    GEOCENTRIC = 2  # sphere, altitude is the radius in km


class FieldVector(NamedTuple):
    """Geomagnetic vector components [nT]."""
    x: float  # north
    y: float  # east
    z: float  # down


def evaluate_vector(coord_mode: int, lat: float, lon: float, alt_km: float,
                    nmax: int, gh: np.ndarray) -> FieldVector:
    """
    Evaluate the spherical-harmonic expansion at one location.

    Associated Legendre functions P(n, m) and their colatitude derivatives
    Q(n, m) are built by recurrence, together with sin/cos(m * lon) by angle
    addition.

    Args:
        coord_mode: 1 for geodetic (WGS84), 2 for geocentric
        lat: Latitude [deg]
        lon: Longitude [deg]
        alt_km: Altitude above the ellipsoid (geodetic) or radius (geocentric) [km]
        nmax: Maximum degree of the expansion
        gh: 1-indexed coefficient vector

    Returns:
        North, east and down components [nT]

    Raises:
        ValueError: Unknown coordinate mode, or a non-positive radius
    """
    coord_mode = CoordinateSystem(coord_mode)
    npq = nmax * (nmax + 3) // 2
    sl = [0.0] * (nmax + 2)
    cl = [0.0] * (nmax + 2)
    p = [0.0] * max(npq + 1, 5)
    q = [0.0] * max(npq + 1, 5)

    r = alt_km
    s_lat = math.sin(math.radians(lat))
    if abs(90.0 - lat) < POLE_TOLERANCE_DEG:
        c_lat = math.cos(math.radians(POLE_NUDGE_DEG))
    elif abs(90.0 + lat) < POLE_TOLERANCE_DEG:
        c_lat = math.cos(math.radians(-POLE_NUDGE_DEG))
    else:
        c_lat = math.cos(math.radians(lat))

    sl[1] = math.sin(math.radians(lon))
    cl[1] = math.cos(math.radians(lon))

    x = y = z = 0.0
    sd = 0.0
    cd = 1.0

    if coord_mode == CoordinateSystem.GEODETIC:
        aa = WGS84_A2 * c_lat * c_lat
        bb = WGS84_B2 * s_lat * s_lat
        cc = aa + bb
        dd = math.sqrt(cc)
        r = math.sqrt(alt_km * (alt_km + 2.0 * dd) + (WGS84_A2 * aa + WGS84_B2 * bb) / cc)
        cd = (alt_km + dd) / r
        sd = (WGS84_A2 - WGS84_B2) / dd * s_lat * c_lat / r
        s_geodetic = s_lat
        s_lat = s_lat * cd - c_lat * sd
        c_lat = c_lat * cd + s_geodetic * sd

    if r <= 0:
        raise ValueError(f"Radius must be positive, got {r} km")
    ratio = EARTH_RADIUS_KM / r
    sqrt3 = math.sqrt(3.0)
    p[1] = 2.0 * s_lat
    p[2] = 2.0 * c_lat
    p[3] = 4.5 * s_lat * s_lat - 1.5
    p[4] = 3.0 * sqrt3 * c_lat * s_lat
    q[1] = -c_lat
    q[2] = s_lat
    q[3] = -3.0 * c_lat * s_lat
    q[4] = sqrt3 * (s_lat * s_lat - c_lat * c_lat)

    l = 1
    n = 0
    m = 1
    fn = 0.0
    rr = 0.0
    for k in range(1, npq + 1):
        if n < m:
            m = 0
            n += 1
            fn = float(n)
            rr = ratio ** (n + 2)
        fm = float(m)

        if k >= 5:
            if m == n:
                # Diagonal term
                aa = math.sqrt(1.0 - 0.5 / fm)
                j = k - n - 1
                p[k] = (1.0 + 1.0 / fm) * aa * c_lat * p[j]
                q[k] = aa * (c_lat * q[j] + s_lat / fm * p[j])
                sl[m] = sl[m - 1] * cl[1] + cl[m - 1] * sl[1]
                cl[m] = cl[m - 1] * cl[1] - sl[m - 1] * sl[1]
            else:
                aa = math.sqrt(fn * fn - fm * fm)
                bb = math.sqrt((fn - 1.0) * (fn - 1.0) - fm * fm) / aa
                cc = (2.0 * fn - 1.0) / aa
                ii = k - n
                j = k - 2 * n + 1
                p[k] = (fn + 1.0) * (cc * s_lat / fn * p[ii] - bb / (fn - 1.0) * p[j])
                q[k] = cc * (s_lat * q[ii] - c_lat / fn * p[ii]) - bb * q[j]

        a_term = rr * gh[l]
        if m == 0:
            x += a_term * q[k]
            z -= a_term * p[k]
            l += 1
        else:
            b_term = rr * gh[l + 1]
            c_term = a_term * cl[m] + b_term * sl[m]
            x += c_term * q[k]
            z -= c_term * p[k]
            if c_lat > 0:
                y += (a_term * sl[m] - b_term * cl[m]) * fm * p[k] / ((fn + 1.0) * c_lat)
            else:
                y += (a_term * sl[m] - b_term * cl[m]) * q[k] * s_lat
            l += 2
        m += 1

    # Rotate back into the geodetic frame (identity for geocentric)
    return FieldVector(
        x=x * cd + z * sd,
        y=y,
        z=z * cd - x * sd,
    )


def derive_scalars(vector: FieldVector) -> Tuple[float, float, float, float]:
    """
    Declination, inclination, horizontal and total intensity.

    Returns:
        (D [rad], I [rad], H [nT], F [nT]); D and I are NaN when the field is
        too weak to have a direction
    """
    x, y, z = vector
    h2 = x * x + y * y
    h = math.sqrt(h2)
    f = math.sqrt(h2 + z * z)

    d = i = float('nan')
    # NaN compares false, so NaN components propagate to NaN angles
    if f >= NOISE_FLOOR_NT:
        i = math.atan2(z, h)
        if h >= NOISE_FLOOR_NT:
            hpx = h + x
            if hpx < NOISE_FLOOR_NT:
                d = math.pi
            else:
                # Half-angle form, free of the atan2 branch cut at D = 180
                d = 2.0 * math.atan2(y, hpx)
    return d, i, h, f
