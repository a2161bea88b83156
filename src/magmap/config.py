from dataclasses import dataclass, field, fields, is_dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import yaml

from .exceptions import ValidationError
from .utils.validation import validate_dict_keys, validate_range, validate_type


@dataclass
class ModelConfig:
    cof_path: Optional[str] = None  # coefficient file (.COF)
    coord_mode: int = 1             # 1 = geodetic (WGS84), 2 = geocentric
    altitude_km: float = 0.0


@dataclass
class GridConfig:
    step_deg: float = 2.0       # node spacing in latitude and longitude
    smoothing: bool = True      # blur the grid and interpolate contour crossings
    blur_radius: float = 1.5    # Gaussian radius in grid nodes


@dataclass
class LevelSchedule:
    """Evenly spaced contour levels from start to stop inclusive."""
    step: float
    start: float
    stop: float


def _declination_levels() -> List[LevelSchedule]:
    return [LevelSchedule(10.0, 10.0, 180.0),
            LevelSchedule(10.0, -180.0, -10.0),
            LevelSchedule(1.0, 0.0, 0.0)]


def _inclination_levels() -> List[LevelSchedule]:
    return [LevelSchedule(10.0, 10.0, 90.0),
            LevelSchedule(10.0, -90.0, -10.0),
            LevelSchedule(1.0, 0.0, 0.0)]


def _total_field_levels() -> List[LevelSchedule]:
    return [LevelSchedule(2000.0, 20000.0, 66000.0)]


@dataclass
class ContourConfig:
    # Keyed by FieldParameter value
    schedules: Dict[str, List[LevelSchedule]] = field(default_factory=lambda: {
        'declination': _declination_levels(),
        'inclination': _inclination_levels(),
        'totalfield': _total_field_levels(),
    })


@dataclass
class ZoneConfig:
    # Horizontal intensity below which compass readings degrade [nT]
    caution_nt: float = 6000.0
    unreliable_nt: float = 2000.0
    padding_value: float = 100000.0  # closes zones touching the grid border


@dataclass
class DipPoleConfig:
    coarse_lat_step: float = 10.0
    coarse_lon_step: float = 20.0
    initial_radius: float = 5.0
    initial_step: float = 1.0
    refinement_rounds: int = 3
    min_inclination_deg: float = 80.0


@dataclass
class LoggingConfig:
    level: str = "INFO"
    log_file: Optional[str] = None


@dataclass
class Config:
    """Main configuration class."""
    model: ModelConfig = field(default_factory=ModelConfig)
    grid: GridConfig = field(default_factory=GridConfig)
    contours: ContourConfig = field(default_factory=ContourConfig)
    zones: ZoneConfig = field(default_factory=ZoneConfig)
    dip_poles: DipPoleConfig = field(default_factory=DipPoleConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)


# Create default configuration instance
DEFAULT_CONFIG = Config()


def get_config() -> Config:
    """Get configuration instance."""
    return DEFAULT_CONFIG


def validate_config(config: Config) -> List[str]:
    """
    Validate configuration values.
    Returns list of validation errors, empty if valid.
    """
    errors = []

    # Validate model configuration
    if config.model.coord_mode not in (1, 2):
        errors.append("Coordinate mode must be 1 (geodetic) or 2 (geocentric)")
    if config.model.coord_mode == 2 and not config.model.altitude_km > 0:
        errors.append("Geocentric altitude is the radius from the Earth's centre and must be positive")

    # Validate grid configuration
    if not validate_range(config.grid.step_deg, min_val=1e-6, max_val=90.0):
        errors.append("Grid step must be in (0, 90] degrees")
    if not validate_type(config.grid.smoothing, bool):
        errors.append("Grid smoothing must be true or false")
    if not validate_range(config.grid.blur_radius, min_val=0.0):
        errors.append("Blur radius must be non-negative")

    # Validate contour schedules
    for name, schedules in config.contours.schedules.items():
        for schedule in schedules:
            if schedule.start <= schedule.stop and schedule.step <= 0:
                errors.append(f"Contour step for {name} must be positive")

    # Validate zone thresholds
    if not validate_range(config.zones.unreliable_nt, min_val=0.0,
                          max_val=config.zones.caution_nt):
        errors.append("Unreliable threshold must be between 0 and the caution threshold")

    # Validate dip pole search
    if config.dip_poles.coarse_lat_step <= 0 or config.dip_poles.coarse_lon_step <= 0:
        errors.append("Dip pole coarse steps must be positive")
    if config.dip_poles.initial_step <= 0 or config.dip_poles.initial_radius <= 0:
        errors.append("Dip pole refinement radius and step must be positive")
    if config.dip_poles.refinement_rounds < 0:
        errors.append("Dip pole refinement rounds cannot be negative")
    if not validate_range(config.dip_poles.min_inclination_deg, min_val=0.0, max_val=90.0):
        errors.append("Dip pole acceptance inclination must be between 0 and 90 degrees")

    return errors


def _apply_section(target: Any, values: Dict[str, Any], path: str, errors: List[str]) -> None:
    """Overlay a mapping from the config file onto a dataclass instance."""
    names = [f.name for f in fields(target)]
    for key in validate_dict_keys(values, names):
        errors.append(f"Unknown configuration key '{path}{key}'")

    for key in names:
        if key not in values:
            continue
        value = values[key]
        current = getattr(target, key)
        if is_dataclass(current):
            if not isinstance(value, dict):
                errors.append(f"Configuration section '{path}{key}' must be a mapping")
                continue
            _apply_section(current, value, f"{path}{key}.", errors)
        elif isinstance(target, ContourConfig) and key == 'schedules':
            setattr(target, key, {
                name: [LevelSchedule(**entry) for entry in entries]
                for name, entries in value.items()
            })
        else:
            setattr(target, key, value)


def load_config(config_file: Union[str, Path]) -> Config:
    """Load and validate configuration from a YAML file."""
    with open(config_file, "r", encoding="utf-8") as fh:
        data = yaml.safe_load(fh) or {}

    if not isinstance(data, dict):
        raise ValidationError("Configuration file must contain a mapping")

    config = Config()
    errors: List[str] = []
    try:
        _apply_section(config, data, "", errors)
    except TypeError as e:
        errors.append(f"Malformed contour schedule: {e}")

    # Validate configuration
    errors.extend(validate_config(config))
    if errors:
        raise ValidationError("Configuration validation failed:\n" +
                              "\n".join(f"- {error}" for error in errors))

    return config
