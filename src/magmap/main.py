#!/usr/bin/env python3
"""
magmap - geomagnetic field maps from spherical-harmonic models.
Command-line entry point.

Computes the field at a point or over a series of dates, and produces the
gridded products (scalar grid, contour sets, weak-field zones, dip poles)
that a map renderer consumes.
"""

import argparse
import logging
import math
import sys
from datetime import datetime
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Tuple

import pandas as pd

from .config import Config, load_config
from .exceptions import GeomagError
from .mapping.contours import ContourSet, contour_levels, extract_contours, extract_zone_boundaries
from .mapping.dip_poles import DipPole, locate_dip_poles
from .mapping.grid import GridData, gaussian_blur, grid_shape, sample_grid
from .models.field import EARTH_RADIUS_KM, CoordinateSystem
from .models.geomag import FieldParameter, FieldSample, Geomag, SecularVariation, at_pole
from .utils.logging import setup_logging
from .utils.time import decimal_year, decimal_year_from_date

logger = logging.getLogger(__name__)

FEET_TO_KM = 0.0003048


@dataclass
class MapProducts:
    """Everything a renderer needs for one map."""
    parameter: FieldParameter
    date: float
    grid: GridData
    contours: List[ContourSet]
    dip_poles: List[DipPole]
    zones: List[ContourSet] = field(default_factory=list)


class FieldMapper:
    """Drives point queries and map products for one loaded model."""

    def __init__(self, config: Config, geomag: Optional[Geomag] = None):
        """
        Initialize the mapper.

        Args:
            config: Configuration; ``config.model.cof_path`` is loaded unless
                a model is given
            geomag: Already loaded field model (optional)
        """
        self.config = config
        if geomag is None:
            if not config.model.cof_path:
                raise GeomagError("No coefficient file configured")
            geomag = Geomag.from_file(config.model.cof_path)
        self.geomag = geomag

    @property
    def coord_mode(self) -> int:
        return self.config.model.coord_mode

    @property
    def altitude_km(self) -> float:
        return self.config.model.altitude_km

    def check_validity(self, date: float) -> bool:
        """
        Warn when a query falls outside the model's stated validity.

        Extrapolated results are still computed; this only flags them.

        Args:
            date: Decimal year

        Returns:
            True if the date and altitude lie within the model limits
        """
        table = self.geomag.table
        valid = True
        if date < table.minyr:
            logger.warning(f"Date {date:.2f} precedes the model range "
                           f"{table.minyr:.2f} - {table.maxyr:.2f}")
            valid = False
        elif date > table.maxyr:
            logger.warning(f"Date {date:.2f} is past the model expiry {table.maxyr:.2f}. "
                           "Results are extrapolated and may be inaccurate.")
            valid = False

        record = table[self.geomag.select_model(date)]
        height = self.altitude_km
        if self.coord_mode == CoordinateSystem.GEOCENTRIC:
            height -= EARTH_RADIUS_KM
        # Headers without altitude limits leave both at zero
        if record.altmax > record.altmin and not record.altmin <= height <= record.altmax:
            logger.warning(f"Altitude {height:.1f} km is outside the {record.name} range "
                           f"{record.altmin:.1f} - {record.altmax:.1f} km")
            valid = False
        return valid

    def point(self, date: float, lat: float, lon: float) -> Tuple[FieldSample, SecularVariation]:
        """Field and its annual change at one location."""
        self.check_validity(date)
        sample = self.geomag.field_at(date, self.coord_mode, self.altitude_km, lat, lon)
        change = self.geomag.secular_variation(date, self.coord_mode, self.altitude_km, lat, lon)
        return sample, change

    def date_range(self, start_year: int, end_year: int, step: int,
                   month: int, day: int, lat: float, lon: float) -> pd.DataFrame:
        """Field on the same calendar day of successive years."""
        if step <= 0:
            raise ValueError("Year step must be positive")

        rows = []
        for year in range(start_year, end_year + 1, step):
            date = decimal_year(year, month, day)
            self.check_validity(date)
            sample = self.geomag.get_field_components(
                date, self.coord_mode, self.altitude_km, lat, lon
            )
            rows.append({
                'date': f"{year}-{month:02d}-{day:02d}",
                'decimal_year': date,
                'model': sample.model_name,
                'declination': sample.d_deg,
                'inclination': sample.i_deg,
                'horizontal': sample.h,
                'north': sample.x,
                'east': sample.y,
                'vertical': sample.z,
                'total': sample.f,
            })
        return pd.DataFrame(rows)

    def render(self, date: float, parameter: FieldParameter,
               include_zones: bool = False) -> MapProducts:
        """
        Sample the grid and derive contours, dip poles and weak-field zones.

        Args:
            date: Decimal year
            parameter: Field parameter to contour
            include_zones: Also trace low horizontal intensity zones

        Returns:
            Map products in geographic coordinates
        """
        grid_cfg = self.config.grid
        width, height = grid_shape(grid_cfg.step_deg)
        logger.info(f"Rendering {parameter.value} for {date:.2f} on {width}x{height} grid")
        self.check_validity(date)

        poles = locate_dip_poles(self.geomag, date, self.coord_mode, self.altitude_km,
                                 self.config.dip_poles)

        grid = sample_grid(self.geomag, date, parameter, width, height,
                           self.coord_mode, self.altitude_km)
        if grid_cfg.smoothing:
            gaussian_blur(grid, grid_cfg.blur_radius)

        levels = contour_levels(parameter, self.config.contours)
        contours = extract_contours(grid, levels, interpolate=grid_cfg.smoothing)

        zones = []
        if include_zones and parameter in (FieldParameter.DECLINATION, FieldParameter.INCLINATION):
            h_grid = sample_grid(self.geomag, date, FieldParameter.HORIZONTAL, width, height,
                                 self.coord_mode, self.altitude_km)
            zones = extract_zone_boundaries(
                h_grid,
                [self.config.zones.unreliable_nt, self.config.zones.caution_nt],
                self.config.zones.padding_value,
                interpolate=grid_cfg.smoothing,
            )

        return MapProducts(parameter, date, grid, contours, poles, zones)


def parse_date(text: str) -> float:
    """Decimal year from ``2024.5``, ``yyyy,mm,dd`` or ``yyyy-mm-dd``."""
    if ',' in text:
        parts = [int(part) for part in text.split(',')]
        if len(parts) != 3:
            raise ValueError(f"Expected yyyy,mm,dd, got {text!r}")
        year, month, day = parts
        return decimal_year(year, month, day)
    if '-' in text[1:]:
        return decimal_year_from_date(datetime.strptime(text, "%Y-%m-%d"))
    return float(text)


def parse_coord(text: str) -> int:
    """``D`` selects geodetic coordinates, anything else geocentric."""
    return int(CoordinateSystem.GEODETIC if text.upper() == 'D' else CoordinateSystem.GEOCENTRIC)


def parse_altitude(text: str) -> float:
    """Altitude in km from ``K<km>``, ``M<metres>`` or ``F<feet>``."""
    unit = text[:1].upper()
    if unit in ('K', 'M', 'F'):
        value = float(text[1:])
    else:
        unit = 'K'
        value = float(text)
    if unit == 'M':
        return value * 0.001
    if unit == 'F':
        return value * FEET_TO_KM
    return value


def format_angle(angle: float) -> Tuple[Optional[int], Optional[int]]:
    """Whole degrees and rounded minutes of an angle; (None, None) for NaN."""
    if math.isnan(angle):
        return None, None
    degrees = int(angle)
    minutes = (angle - degrees) * 60.0
    if angle > 0 and minutes >= 59.5:
        minutes -= 60.0
        degrees += 1
    if angle < 0 and minutes <= -59.5:
        minutes += 60.0
        degrees -= 1
    if degrees != 0:
        minutes = abs(minutes)
    return degrees, int(math.floor(minutes + 0.5))


def _angle_text(angle: float) -> str:
    degrees, minutes = format_angle(angle)
    if degrees is None:
        return "NaN"
    return f"{degrees:4d}d {minutes:2d}'"


def _value_text(value: float, unit: str = "nT") -> str:
    return "NaN" if math.isnan(value) else f"{value:.1f} {unit}"


def warn_weak_field(sample: FieldSample, lat: float) -> None:
    """Log compass-reliability warnings for a point result."""
    if 1000.0 <= sample.h < 5000.0:
        logger.warning(f"The horizontal field strength is only {sample.h:.1f} nT. "
                       "Compass readings have large uncertainties.")
    if sample.h < 1000.0:
        logger.warning(f"The horizontal field strength is only {sample.h:.1f} nT. "
                       "Compass readings have VERY LARGE uncertainties.")
    if at_pole(lat):
        logger.warning("Location is at a geographic pole. X, Y, and declination are not computed.")


def print_point(sample: FieldSample, change: SecularVariation, date: float,
                lat: float, lon: float, alt_km: float) -> None:
    """Print a point result and its annual change."""
    d_deg = sample.d_deg
    ddot = change.ddot_deg
    if sample.h < 100.0:
        d_deg = ddot = float('nan')

    print(f"\n  Model:     {sample.model_name}")
    print(f"  Latitude:  {lat:.2f} deg")
    print(f"  Longitude: {lon:.2f} deg")
    print(f"  Altitude:  {alt_km:.2f} km")
    print(f"  Date:      {date:.2f}\n")
    print(f"  Declination  {_angle_text(d_deg):>14}   change {_value_text(ddot * 60.0, 'min/yr')}")
    print(f"  Inclination  {_angle_text(sample.i_deg):>14}   change "
          f"{_value_text(change.idot_deg * 60.0, 'min/yr')}")
    for label, value, rate in (("Horizontal", sample.h, change.hdot),
                               ("North (X)", sample.x, change.xdot),
                               ("East (Y)", sample.y, change.ydot),
                               ("Down (Z)", sample.z, change.zdot),
                               ("Total (F)", sample.f, change.fdot)):
        print(f"  {label:<12} {_value_text(value):>14}   change {_value_text(rate, 'nT/yr')}")


def print_map_summary(products: MapProducts) -> None:
    """Print the size of each map product."""
    grid = products.grid
    print(f"\n  {products.parameter.value} - epoch {products.date:.2f}")
    print(f"  Grid: {grid.width}x{grid.height}, "
          f"range {float(grid.values.min()):.1f} .. {float(grid.values.max()):.1f}")
    for contour in products.contours:
        if contour.segments:
            print(f"  Level {contour.level:>9g}: {len(contour)} segments")
    for zone in products.zones:
        print(f"  Zone H < {zone.level:g} nT: {len(zone)} boundary segments")
    for pole in products.dip_poles:
        print(f"  {pole.name}: {pole.lat:.2f}, {pole.lon:.2f} (I={pole.inclination:.2f})")


def parse_arguments(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(description="magmap geomagnetic field engine")
    parser.add_argument(
        "--config",
        type=Path,
        help="Path to YAML configuration file"
    )
    parser.add_argument(
        "--log-level",
        help="Logging level (overrides configuration)"
    )
    commands = parser.add_subparsers(dest="command", required=True)

    point = commands.add_parser("point", help="Field at a single point")
    point.add_argument("model_file", type=Path)
    point.add_argument("date", type=parse_date, help="Decimal year or yyyy,mm,dd")
    point.add_argument("coord", type=parse_coord,
                       help="D = geodetic, C = geocentric (altitude is then the radius)")
    point.add_argument("altitude", type=parse_altitude,
                       help="K<km>, M<metres> or F<feet>; with C, the radius (e.g. K6371.2)")
    point.add_argument("lat", type=float)
    point.add_argument("lon", type=float)

    series = commands.add_parser("range", help="Field over a range of years")
    series.add_argument("model_file", type=Path)
    series.add_argument("start_year", type=int)
    series.add_argument("end_year", type=int)
    series.add_argument("coord", type=parse_coord, help="D = geodetic, C = geocentric")
    series.add_argument("altitude", type=parse_altitude,
                        help="K<km>, M<metres> or F<feet>; with C, the radius")
    series.add_argument("lat", type=float)
    series.add_argument("lon", type=float)
    series.add_argument("--step", type=int, default=1, help="Step in years")
    series.add_argument("--month", type=int, default=1)
    series.add_argument("--day", type=int, default=1)

    fieldmap = commands.add_parser("map", help="Grid, contours and dip poles")
    fieldmap.add_argument("model_file", type=Path)
    fieldmap.add_argument("date", type=parse_date)
    fieldmap.add_argument(
        "--field",
        choices=[p.value for p in (FieldParameter.DECLINATION,
                                   FieldParameter.INCLINATION,
                                   FieldParameter.TOTAL_FIELD)],
        default=FieldParameter.DECLINATION.value
    )
    fieldmap.add_argument("--step", type=float, help="Grid step in degrees")
    fieldmap.add_argument(
        "--altitude", type=parse_altitude,
        help="K<km>, M<metres> or F<feet>; with --coord C, the radius (default 6371.2 km)"
    )
    fieldmap.add_argument("--coord", type=parse_coord, help="D = geodetic, C = geocentric")
    fieldmap.add_argument("--no-smoothing", action="store_true")
    fieldmap.add_argument("--zones", action="store_true",
                          help="Trace low horizontal intensity zones")

    return parser.parse_args(argv)


def build_config(args: argparse.Namespace) -> Config:
    """Configuration from file (if given) overridden by command line arguments."""
    config = load_config(args.config) if args.config else Config()
    config.model.cof_path = str(args.model_file)
    if args.log_level:
        config.logging.level = args.log_level
    if getattr(args, "coord", None) is not None:
        config.model.coord_mode = args.coord
    if getattr(args, "altitude", None) is not None:
        config.model.altitude_km = args.altitude
    if (config.model.coord_mode == CoordinateSystem.GEOCENTRIC
            and getattr(args, "altitude", None) is None
            and config.model.altitude_km <= 0):
        # Geocentric altitude is a radius; start from the reference sphere
        config.model.altitude_km = EARTH_RADIUS_KM
    if args.command == "map":
        if args.step:
            config.grid.step_deg = args.step
        if args.no_smoothing:
            config.grid.smoothing = False
    return config


def main(argv: Optional[List[str]] = None):
    """Main entry point."""
    # Parse command line arguments
    args = parse_arguments(argv)

    try:
        config = build_config(args)
        setup_logging(config.logging.level, config.logging.log_file)
        mapper = FieldMapper(config)

        if args.command == "point":
            sample, change = mapper.point(args.date, args.lat, args.lon)
            print_point(sample, change, args.date, args.lat, args.lon, config.model.altitude_km)
            warn_weak_field(sample, args.lat)

        elif args.command == "range":
            table = mapper.date_range(args.start_year, args.end_year, args.step,
                                      args.month, args.day, args.lat, args.lon)
            if table.empty:
                print("No dates in the specified range. Nothing to calculate.")
                return
            print(table.drop(columns=['decimal_year']).to_string(
                index=False, float_format=lambda v: f"{v:.4f}"))
            _, change = mapper.point(float(table['decimal_year'].iloc[0]), args.lat, args.lon)
            print(f"\n  Change/year: D {change.ddot_deg:.4f} deg, I {change.idot_deg:.4f} deg, "
                  f"H {change.hdot:.1f}, X {change.xdot:.1f}, Y {change.ydot:.1f}, "
                  f"Z {change.zdot:.1f}, F {change.fdot:.1f} nT")

        elif args.command == "map":
            products = mapper.render(args.date, FieldParameter(args.field), args.zones)
            print_map_summary(products)

    except (GeomagError, OSError, ValueError) as e:
        logging.error(f"Fatal error: {str(e)}")
        sys.exit(1)


if __name__ == "__main__":
    main()
