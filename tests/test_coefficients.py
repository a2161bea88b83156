"""Tests for magmap.models.coefficients -- block parsing and time resolution."""

import numpy as np
import pytest

from magmap.exceptions import CorruptRecord, NoModelData
from magmap.models.coefficients import (
    CoefficientResolver,
    CoefficientSet,
    coefficient_count,
    extrapolate,
    interpolate,
    line_count,
    parse_coefficient_block,
)
from magmap.models.model_table import ModelTable

from conftest import DIPOLE_COF, INTERP_COF, ORPHAN_COF, SHARED_START_COF


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _vec(*values):
    """1-indexed coefficient vector."""
    return np.array((0.0,) + values)


DEG1_A = _vec(1.0, 2.0, 3.0)
DEG1_B = _vec(5.0, 6.0, 7.0)
DEG2_A = _vec(1.0, 2.0, 3.0, 4.0, 5.0, 6.0, 7.0, 8.0)
DEG2_B = _vec(10.0, 20.0, 30.0, 40.0, 50.0, 60.0, 70.0, 80.0)


class TestCounts:
    def test_coefficient_count(self):
        assert coefficient_count(1) == 3
        assert coefficient_count(2) == 8
        assert coefficient_count(13) == 195

    def test_line_count(self):
        assert line_count(1) == 2
        assert line_count(2) == 5
        assert line_count(13) == 104


# ---------------------------------------------------------------------------
# Block parsing
# ---------------------------------------------------------------------------

class TestParseBlock:
    def test_main_columns(self):
        lines = DIPOLE_COF.splitlines()
        gh = parse_coefficient_block(lines, 1, 1, CoefficientSet.MAIN)
        np.testing.assert_array_equal(gh, [0.0, -30000.0, -2000.0, 5000.0])

    def test_secular_columns(self):
        lines = DIPOLE_COF.splitlines()
        gh = parse_coefficient_block(lines, 1, 1, CoefficientSet.SECULAR)
        np.testing.assert_array_equal(gh, [0.0, 10.0, 5.0, -20.0])

    def test_tagged_lines(self):
        lines = [
            "g 1 0 -29404.8 0.0 5.7 0.0",
            "h 1 1 -1450.9 4652.5 7.4 -25.9",
        ]
        gh = parse_coefficient_block(lines, 0, 1)
        np.testing.assert_allclose(gh[1:], [-29404.8, -1450.9, 4652.5])

    def test_lower_degree_than_block(self):
        lines = ["1 0 1 0", "1 1 2 3", "2 0 4 0", "2 1 5 6", "2 2 7 8"]
        gh = parse_coefficient_block(lines, 0, 1)
        assert len(gh) == 4

    def test_out_of_order(self):
        lines = ["1 0 1 0", "2 0 2 0"]
        with pytest.raises(CorruptRecord) as exc:
            parse_coefficient_block(lines, 0, 1)
        assert exc.value.expected == (1, 1)
        assert exc.value.got == (2, 0)
        assert exc.value.line_number == 2

    def test_truncated_block(self):
        with pytest.raises(CorruptRecord) as exc:
            parse_coefficient_block(["1 0 1 0"], 0, 1)
        assert exc.value.got is None
        assert "end of file" in str(exc.value)

    def test_blank_line(self):
        with pytest.raises(CorruptRecord):
            parse_coefficient_block(["1 0 1 0", "   ", "1 1 2 3"], 0, 1)

    def test_unreadable_indices(self):
        with pytest.raises(CorruptRecord) as exc:
            parse_coefficient_block(["one zero 1 0"], 0, 1)
        assert exc.value.line == "one zero 1 0"

    def test_missing_rate_column_is_nan(self):
        gh = parse_coefficient_block(["1 0 1 0", "1 1 2 3"], 0, 1, CoefficientSet.SECULAR)
        assert np.isnan(gh[1:]).all()


# ---------------------------------------------------------------------------
# Extrapolation
# ---------------------------------------------------------------------------

class TestExtrapolate:
    def test_equal_degrees(self):
        res = extrapolate(2022.0, 2020.0, DEG1_A, 1, DEG1_B, 1)
        assert res.nmax == 1
        np.testing.assert_allclose(res.gh[1:], [11.0, 14.0, 17.0])

    def test_at_epoch_returns_main_field(self):
        res = extrapolate(2020.0, 2020.0, DEG2_A, 2, DEG2_B, 2)
        np.testing.assert_array_equal(res.gh, DEG2_A)

    def test_main_degree_higher(self):
        res = extrapolate(2021.0, 2020.0, DEG2_A, 2, DEG1_B, 1)
        assert res.nmax == 2
        np.testing.assert_allclose(res.gh[1:4], [6.0, 8.0, 10.0])
        # Terms without a rate are carried unchanged
        np.testing.assert_array_equal(res.gh[4:], DEG2_A[4:])

    def test_rate_degree_higher(self):
        res = extrapolate(2022.0, 2020.0, DEG1_A, 1, DEG2_B, 2)
        assert res.nmax == 2
        np.testing.assert_allclose(res.gh[1:4], [21.0, 42.0, 63.0])
        np.testing.assert_allclose(res.gh[4:], 2.0 * DEG2_B[4:])

    def test_inputs_not_modified(self):
        before = DEG1_A.copy()
        extrapolate(2030.0, 2020.0, DEG1_A, 1, DEG1_B, 1)
        np.testing.assert_array_equal(DEG1_A, before)


# ---------------------------------------------------------------------------
# Interpolation
# ---------------------------------------------------------------------------

class TestInterpolate:
    def test_equal_degrees_midpoint(self):
        res = interpolate(2002.5, 2000.0, DEG1_A, 1, 2005.0, DEG1_B, 1)
        assert res.nmax == 1
        np.testing.assert_allclose(res.gh[1:], [3.0, 4.0, 5.0])

    def test_endpoints(self):
        start = interpolate(2000.0, 2000.0, DEG2_A, 2, 2005.0, DEG2_B, 2)
        end = interpolate(2005.0, 2000.0, DEG2_A, 2, 2005.0, DEG2_B, 2)
        np.testing.assert_allclose(start.gh, DEG2_A)
        np.testing.assert_allclose(end.gh, DEG2_B)

    def test_first_degree_higher_fades_out(self):
        mid = interpolate(2002.5, 2000.0, DEG2_A, 2, 2005.0, DEG1_B, 1)
        end = interpolate(2005.0, 2000.0, DEG2_A, 2, 2005.0, DEG1_B, 1)
        assert mid.nmax == 2
        np.testing.assert_allclose(mid.gh[4:], 0.5 * DEG2_A[4:])
        np.testing.assert_allclose(end.gh[4:], 0.0)
        np.testing.assert_allclose(end.gh[1:4], DEG1_B[1:])

    def test_second_degree_higher_fades_in(self):
        start = interpolate(2000.0, 2000.0, DEG1_A, 1, 2005.0, DEG2_B, 2)
        end = interpolate(2005.0, 2000.0, DEG1_A, 1, 2005.0, DEG2_B, 2)
        assert start.nmax == 2
        np.testing.assert_allclose(start.gh[4:], 0.0)
        np.testing.assert_allclose(end.gh, DEG2_B)


# ---------------------------------------------------------------------------
# Resolver
# ---------------------------------------------------------------------------

class TestResolver:
    def test_extrapolates_model_with_rates(self):
        resolver = CoefficientResolver(ModelTable.from_text(DIPOLE_COF))
        res = resolver.resolve(0, 2022.0)
        np.testing.assert_allclose(res.gh[1:], [-29980.0, -1990.0, 4960.0])

    def test_interpolates_between_year_ranges(self):
        resolver = CoefficientResolver(ModelTable.from_text(INTERP_COF))
        res = resolver.resolve(0, 2002.5)
        np.testing.assert_allclose(res.gh[1:], [-29500.0, -1500.0, 4500.0])

    def test_last_model_is_extrapolated(self):
        resolver = CoefficientResolver(ModelTable.from_text(INTERP_COF))
        res = resolver.resolve(1, 2007.0)
        np.testing.assert_allclose(res.gh[1:], [-28960.0, -980.0, 3980.0])

    def test_no_partner(self):
        resolver = CoefficientResolver(ModelTable.from_text(ORPHAN_COF))
        with pytest.raises(NoModelData) as exc:
            resolver.resolve(0, 2002.0)
        assert exc.value.index == 0

    def test_following_model_with_same_start_year(self):
        resolver = CoefficientResolver(ModelTable.from_text(SHARED_START_COF))
        with pytest.raises(NoModelData) as exc:
            resolver.resolve(0, 2002.0)
        assert exc.value.index == 0
        # The second model extrapolates with its own rates
        assert np.isfinite(resolver.resolve(1, 2002.0).gh[1:]).all()

    @pytest.mark.parametrize("index", [-1, 1, 5])
    def test_index_out_of_range(self, index):
        resolver = CoefficientResolver(ModelTable.from_text(DIPOLE_COF))
        with pytest.raises(NoModelData):
            resolver.resolve(index, 2020.0)

    def test_blocks_are_memoized_read_only(self):
        resolver = CoefficientResolver(ModelTable.from_text(DIPOLE_COF))
        first = resolver.read_coefficients(1, 1)
        second = resolver.read_coefficients(1, 1)
        assert first is second
        with pytest.raises(ValueError):
            first[1] = 0.0

    def test_resolved_arrays_are_fresh(self):
        resolver = CoefficientResolver(ModelTable.from_text(DIPOLE_COF))
        a = resolver.resolve(0, 2020.0)
        b = resolver.resolve(0, 2020.0)
        assert a.gh is not b.gh
        a.gh[1] = 0.0
        assert b.gh[1] == -30000.0
