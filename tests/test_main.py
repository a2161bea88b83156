"""Tests for magmap.main -- argument helpers and the command line."""

import logging
import math

import pytest

from magmap.config import Config
from magmap.exceptions import GeomagError
from magmap.main import (
    FieldMapper,
    build_config,
    format_angle,
    main,
    parse_altitude,
    parse_arguments,
    parse_coord,
    parse_date,
)
from magmap.models.geomag import FieldParameter
from magmap.utils.time import decimal_year


class TestArgumentHelpers:
    def test_parse_date(self):
        assert parse_date("2024.5") == 2024.5
        assert parse_date("2024,3,1") == decimal_year(2024, 3, 1)
        assert parse_date("2024-03-01") == decimal_year(2024, 3, 1)

    def test_parse_date_rejects_partial_calendar_date(self):
        with pytest.raises(ValueError):
            parse_date("2024,3")

    @pytest.mark.parametrize("text,km", [
        ("K10", 10.0), ("k0", 0.0), ("M1500", 1.5), ("F1000", 0.3048), ("12.5", 12.5),
    ])
    def test_parse_altitude(self, text, km):
        assert parse_altitude(text) == pytest.approx(km)

    def test_parse_coord(self):
        assert parse_coord("D") == 1
        assert parse_coord("d") == 1
        assert parse_coord("C") == 2


class TestFormatAngle:
    @pytest.mark.parametrize("angle,expected", [
        (10.5, (10, 30)),
        (-10.5, (-10, 30)),
        (-0.5, (0, -30)),
        (9.9999, (10, 0)),
        (-9.9999, (-10, 0)),
        (0.0, (0, 0)),
    ])
    def test_degrees_minutes(self, angle, expected):
        assert format_angle(angle) == expected

    def test_nan(self):
        assert format_angle(float("nan")) == (None, None)


class TestFieldMapper:
    def test_point(self, dipole):
        mapper = FieldMapper(Config(), geomag=dipole)
        sample, change = mapper.point(2020.0, 10.0, 20.0)
        assert sample.is_valid()
        assert math.isfinite(change.fdot)

    def test_date_range(self, dipole):
        mapper = FieldMapper(Config(), geomag=dipole)
        table = mapper.date_range(2020, 2024, 2, 6, 15, 10.0, 20.0)
        assert list(table['date']) == ["2020-06-15", "2022-06-15", "2024-06-15"]
        assert (table['model'] == "DIP2020").all()
        assert table['total'].notna().all()

    def test_date_range_outside_models_is_nan(self, orphan):
        mapper = FieldMapper(Config(), geomag=orphan)
        table = mapper.date_range(2001, 2002, 1, 1, 1, 0.0, 0.0)
        assert table['total'].isna().all()

    def test_render(self, dipole):
        config = Config()
        config.grid.step_deg = 20.0
        mapper = FieldMapper(config, geomag=dipole)
        products = mapper.render(2020.0, FieldParameter.DECLINATION, include_zones=True)
        assert products.grid.values.shape == (10, 19)
        assert len(products.contours) == 37
        assert [z.level for z in products.zones] == [2000.0, 6000.0]
        assert len(products.dip_poles) == 2

    def test_missing_model_path(self):
        with pytest.raises(GeomagError):
            FieldMapper(Config())

    def test_within_validity(self, dipole, caplog):
        mapper = FieldMapper(Config(), geomag=dipole)
        with caplog.at_level(logging.WARNING, logger="magmap"):
            assert mapper.check_validity(2022.0)
        assert caplog.records == []

    @pytest.mark.parametrize("date,message", [
        (2030.0, "past the model expiry"),
        (2010.0, "precedes the model range"),
    ])
    def test_date_outside_validity_warns(self, dipole, caplog, date, message):
        mapper = FieldMapper(Config(), geomag=dipole)
        with caplog.at_level(logging.WARNING, logger="magmap"):
            assert not mapper.check_validity(date)
        assert message in caplog.text

    def test_altitude_outside_validity_warns(self, dipole, caplog):
        config = Config()
        config.model.altitude_km = 1000.0
        mapper = FieldMapper(config, geomag=dipole)
        with caplog.at_level(logging.WARNING, logger="magmap"):
            assert not mapper.check_validity(2022.0)
        assert "Altitude 1000.0 km" in caplog.text

    def test_geocentric_altitude_is_measured_from_surface(self, dipole):
        config = Config()
        config.model.coord_mode = 2
        config.model.altitude_km = 6371.2 + 100.0
        assert FieldMapper(config, geomag=dipole).check_validity(2022.0)
        config.model.altitude_km = 6371.2 + 700.0
        assert not FieldMapper(config, geomag=dipole).check_validity(2022.0)

    def test_point_past_expiry_still_computed(self, dipole, caplog):
        mapper = FieldMapper(Config(), geomag=dipole)
        with caplog.at_level(logging.WARNING, logger="magmap"):
            sample, _ = mapper.point(2030.0, 10.0, 20.0)
        assert sample.is_valid()
        assert "past the model expiry" in caplog.text

    def test_date_range_warns_per_date(self, dipole, caplog):
        mapper = FieldMapper(Config(), geomag=dipole)
        with caplog.at_level(logging.WARNING, logger="magmap"):
            # January 1st lies just past the integer year
            mapper.date_range(2024, 2026, 1, 1, 1, 10.0, 20.0)
        expired = [r for r in caplog.records if "past the model expiry" in r.getMessage()]
        assert len(expired) == 2


class TestCommandLine:
    def test_build_config_overrides(self, dipole_file):
        args = parse_arguments(["map", str(dipole_file), "2020.5", "--step", "10",
                                "--no-smoothing", "--altitude", "M500"])
        config = build_config(args)
        assert config.model.cof_path == str(dipole_file)
        assert config.grid.step_deg == 10.0
        assert config.grid.smoothing is False
        assert config.model.altitude_km == pytest.approx(0.5)
        assert config.model.coord_mode == 1

    def test_geocentric_map_defaults_to_reference_radius(self, dipole_file):
        config = build_config(parse_arguments(["map", str(dipole_file), "2020", "--coord", "C"]))
        assert config.model.coord_mode == 2
        assert config.model.altitude_km == pytest.approx(6371.2)

    def test_geocentric_map_keeps_given_radius(self, dipole_file):
        config = build_config(parse_arguments(["map", str(dipole_file), "2020",
                                               "--coord", "C", "--altitude", "K7000"]))
        assert config.model.altitude_km == pytest.approx(7000.0)

    def test_geocentric_map_command(self, dipole_file, capsys):
        main(["map", str(dipole_file), "2020", "--coord", "C", "--step", "45"])
        assert "declination" in capsys.readouterr().out

    def test_geocentric_zero_radius_exits(self, dipole_file):
        with pytest.raises(SystemExit) as exc:
            main(["point", str(dipole_file), "2020.0", "C", "K0", "0", "0"])
        assert exc.value.code == 1

    def test_point_command(self, dipole_file, capsys):
        main(["point", str(dipole_file), "2020.0", "C", "K6371.2", "0", "0"])
        out = capsys.readouterr().out
        assert "DIP2020" in out
        assert "Declination" in out
        assert "-9d 28'" in out

    def test_point_at_pole(self, dipole_file, capsys):
        main(["point", str(dipole_file), "2020.0", "D", "K0", "90", "0"])
        out = capsys.readouterr().out
        assert "NaN" in out

    def test_range_command(self, dipole_file, capsys):
        main(["range", str(dipole_file), "2020", "2022", "D", "K0", "45", "-30"])
        out = capsys.readouterr().out
        assert "2021-01-01" in out
        assert "Change/year" in out

    def test_empty_range(self, dipole_file, capsys):
        main(["range", str(dipole_file), "2022", "2020", "D", "K0", "45", "-30"])
        assert "Nothing to calculate" in capsys.readouterr().out

    def test_map_command(self, dipole_file, capsys):
        main(["map", str(dipole_file), "2020", "--field", "totalfield", "--step", "30"])
        out = capsys.readouterr().out
        assert "totalfield" in out
        assert "Dip Pole" in out

    def test_missing_model_file_exits(self, tmp_path):
        with pytest.raises(SystemExit) as exc:
            main(["point", str(tmp_path / "absent.cof"), "2020", "D", "K0", "0", "0"])
        assert exc.value.code == 1

    def test_bad_config_exits(self, dipole_file, tmp_path):
        bad = tmp_path / "bad.yaml"
        bad.write_text("grid:\n  step_deg: -5\n", encoding="utf-8")
        with pytest.raises(SystemExit) as exc:
            main(["--config", str(bad), "map", str(dipole_file), "2020"])
        assert exc.value.code == 1
