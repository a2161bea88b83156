"""Shared fixtures: small synthetic coefficient files with known fields."""

import pytest

from magmap.models import Geomag, ModelTable

# ---------------------------------------------------------------------------
# Coefficient files
# ---------------------------------------------------------------------------

# Tilted degree-1 dipole with secular variation, epoch 2020
DIPOLE_COF = """\
   DIP2020  2020.00  1  1  0 2020.00 2025.00   -1.0  600.0
1 0  -30000.0      0.0     10.0      0.0
1 1   -2000.0   5000.0      5.0    -20.0
"""

# First model has no rates and is interpolated toward the second
INTERP_COF = """\
   M2000  2000.00  1  0  0 2000.00 2005.00   -1.0  600.0
1 0  -30000.0      0.0
1 1   -2000.0   5000.0
   M2005  2005.00  1  1  0 2005.00 2010.00   -1.0  600.0
1 0  -29000.0      0.0     20.0      0.0
1 1   -1000.0   4000.0     10.0    -10.0
"""

# Interpolation-only model with nothing to interpolate toward
ORPHAN_COF = """\
   LONE  2000.00  1  0  0 2000.00 2005.00   -1.0  600.0
1 0  -30000.0      0.0
1 1   -2000.0   5000.0
"""

# Two models starting the same year; the first has no rates
SHARED_START_COF = """\
   SAMEA  2000.00  1  0  0 2000.00 2005.00   -1.0  600.0
1 0  -30000.0      0.0
1 1   -2000.0   5000.0
   SAMEB  2000.00  1  1  0 2000.00 2010.00   -1.0  600.0
1 0  -29000.0      0.0     20.0      0.0
1 1   -1000.0   4000.0     10.0    -10.0
"""

# Axial dipole: dip poles sit on the geographic poles
AXIAL_COF = """\
   AXIAL  2020.00  1  1  0 2020.00 2025.00   -1.0  600.0
1 0  -30000.0      0.0      0.0      0.0
1 1       0.0      0.0      0.0      0.0
"""

# Reference radius, used as geocentric "altitude"
SURFACE_RADIUS = 6371.2


@pytest.fixture
def dipole():
    return Geomag.from_text(DIPOLE_COF, source="dipole.cof")


@pytest.fixture
def interp():
    return Geomag.from_text(INTERP_COF, source="interp.cof")


@pytest.fixture
def orphan():
    return Geomag.from_text(ORPHAN_COF, source="orphan.cof")


@pytest.fixture
def axial():
    return Geomag.from_text(AXIAL_COF, source="axial.cof")


@pytest.fixture
def dipole_table():
    return ModelTable.from_text(DIPOLE_COF, source="dipole.cof")


@pytest.fixture
def dipole_file(tmp_path):
    path = tmp_path / "dipole.cof"
    path.write_text(DIPOLE_COF, encoding="utf-8")
    return path


@pytest.fixture
def shared_start():
    return Geomag.from_text(SHARED_START_COF, source="shared.cof")
