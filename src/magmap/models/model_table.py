"""
Coefficient-file model directory.

A coefficient file (IGRF/WMM ``.COF`` layout) is a sequence of model blocks.
Each block starts with a header line indented by at least three whitespace
characters::

       IGRF2020  2020.00 13  8  0 2020.00 2025.00   -1.0  600.0

followed by one coefficient line per (n, m) pair. The table only records the
headers and keeps the raw lines; coefficients are read on demand by
:mod:`magmap.models.coefficients`.
"""

import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Sequence, Tuple, Union

from ..exceptions import NoValidModels, TooManyModels

logger = logging.getLogger(__name__)

MAX_MODELS = 30

_HEADER_RE = re.compile(r'^\s{3,}')
_LINE_SPLIT_RE = re.compile(r'\r?\n')
_INT_PREFIX_RE = re.compile(r'^[+-]?\d+')
_FLOAT_PREFIX_RE = re.compile(r'^[+-]?(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?')


def _parse_float(token: Optional[str]) -> float:
    """Float value of the numeric prefix of a header token, 0.0 when absent."""
    if token is None:
        return 0.0
    match = _FLOAT_PREFIX_RE.match(token)
    return float(match.group(0)) if match else 0.0


def _parse_int(token: Optional[str]) -> int:
    """Integer value of the leading digits of a header token, 0 when absent."""
    if token is None:
        return 0
    match = _INT_PREFIX_RE.match(token)
    return int(match.group(0)) if match else 0


@dataclass(frozen=True)
class ModelRecord:
    """Header of one model block."""
    name: str
    epoch: float
    max1: int        # main-field degree
    max2: int        # secular-variation degree, 0 when the model must be interpolated
    max3: int        # reserved
    yrmin: float
    yrmax: float
    altmin: float    # km
    altmax: float    # km
    irec_pos: int    # index of the first coefficient line

    @classmethod
    def from_header(cls, line: str, irec_pos: int) -> 'ModelRecord':
        """Build a record from a header line; missing fields default to zero."""
        parts = line.split()
        fields = parts + [None] * (9 - len(parts))
        return cls(
            name=fields[0] or '',
            epoch=_parse_float(fields[1]),
            max1=_parse_int(fields[2]),
            max2=_parse_int(fields[3]),
            max3=_parse_int(fields[4]),
            yrmin=_parse_float(fields[5]),
            yrmax=_parse_float(fields[6]),
            altmin=_parse_float(fields[7]),
            altmax=_parse_float(fields[8]),
            irec_pos=irec_pos,
        )


class ModelTable:
    """Immutable directory of the models contained in a coefficient file."""

    def __init__(self, records: Sequence[ModelRecord], lines: Sequence[str],
                 source: str = '<text>'):
        self._records: Tuple[ModelRecord, ...] = tuple(records)
        self._lines: Tuple[str, ...] = tuple(lines)
        self.source = source

        if not self._records:
            raise NoValidModels(source)

        # Running min/max seeded by the first model
        self.minyr = self._records[0].yrmin
        self.maxyr = self._records[0].yrmax
        for record in self._records[1:]:
            if record.yrmin < self.minyr:
                self.minyr = record.yrmin
            if record.yrmax > self.maxyr:
                self.maxyr = record.yrmax

    @classmethod
    def from_text(cls, text: str, source: str = '<text>') -> 'ModelTable':
        """
        Parse coefficient-file text.

        Args:
            text: Whole file content
            source: Name used in error messages and logs

        Returns:
            Loaded model table

        Raises:
            TooManyModels: More than ``MAX_MODELS`` headers
            NoValidModels: No header at all
        """
        lines = _LINE_SPLIT_RE.split(text)
        records = []
        for index, line in enumerate(lines):
            if not _HEADER_RE.match(line):
                continue
            if len(records) >= MAX_MODELS:
                raise TooManyModels(source, index + 1, MAX_MODELS)
            records.append(ModelRecord.from_header(line, index + 1))

        table = cls(records, lines, source)
        logger.info(
            f"Loaded {table.nmodel} model(s) from {source}, "
            f"valid {table.minyr:.1f} - {table.maxyr:.1f}"
        )
        return table

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> 'ModelTable':
        """Read and parse a coefficient file."""
        path = Path(path)
        text = path.read_text(encoding='utf-8')
        return cls.from_text(text, source=str(path))

    @property
    def nmodel(self) -> int:
        return len(self._records)

    @property
    def records(self) -> Tuple[ModelRecord, ...]:
        return self._records

    @property
    def lines(self) -> Tuple[str, ...]:
        return self._lines

    def __len__(self) -> int:
        return len(self._records)

    def __getitem__(self, index: int) -> ModelRecord:
        return self._records[index]

    def __iter__(self):
        return iter(self._records)

    def __repr__(self) -> str:
        return (f"ModelTable(source={self.source!r}, nmodel={self.nmodel}, "
                f"minyr={self.minyr}, maxyr={self.maxyr})")
