"""
Field Extractor.

Turns the data rows of a RawTable into Records. Column order changes between
dashboard releases, so nothing here relies on fixed column indices: every row is
re-scanned for the vehicle identifier, the duration and the detail/station cells
by pattern.

Follows fail-soft principle: rows without a recognizable identifier, summary
("total") rows and rows that fail validation are skipped, never raised.
"""

import logging
import re
from typing import Iterable, List, Optional, Sequence, Tuple

from telematics.models import RawTable, Record, ReportKind
from telematics.parsers.duration import (
    is_datetime,
    is_long_form,
    is_time_token,
    parse_duration,
    span_seconds,
)

logger = logging.getLogger(__name__)

# Plate-like token: "70-1234", "1กข-5678", optionally followed by an alias "(Truck 7)"
PLATE_RE = re.compile(r'^[0-9A-Za-z\u0E00-\u0E7F]{1,4}-\d{1,5}(?=$|\s|\()')

_NUMERIC_RE = re.compile(r'^[\d.,\-+\s]+$')

DEFAULT_TOTAL_MARKERS = ('รวม', 'total')
DEFAULT_MAX_IDENTIFIER_LENGTH = 40
DEFAULT_MIN_DETAIL_LENGTH = 3
DEFAULT_DETAIL_PLACEHOLDER = '-'


def is_identifier(cell: str, max_length: int = DEFAULT_MAX_IDENTIFIER_LENGTH) -> bool:
    """
    Check whether a cell looks like a vehicle plate.

    Cells with a colon (times) and over-long cells (narrative text) are rejected.

    Examples:
        "99-1234" → True
        "70-1234 (Alias)" → True
        "กข-123" → True
        "31-01-2026" → False
        "08:00" → False
    """
    if not cell or ':' in cell or len(cell) > max_length:
        return False
    return bool(PLATE_RE.match(cell))


def _is_numeric(cell: str) -> bool:
    return bool(_NUMERIC_RE.match(cell))


def _is_time_like(cell: str) -> bool:
    return is_time_token(cell) or is_datetime(cell) or is_long_form(cell)


def _find_identifier(row: Sequence[str], max_length: int) -> Optional[int]:
    for idx, cell in enumerate(row):
        if is_identifier(cell, max_length):
            return idx
    return None


def _is_total_row(row: Sequence[str], id_idx: int, markers: Tuple[str, ...]) -> bool:
    """
    A summary line has a cell at or before the identifier that is a total
    marker on its own ("รวม", "Total:"). Company or vehicle names that merely
    contain the word are data.
    """
    for cell in row[:id_idx + 1]:
        if cell.strip().rstrip(':').strip().casefold() in markers:
            return True
    return False


def _duration(cells: Sequence[str], kind: ReportKind) -> int:
    """
    Duration of one row from the cells after the identifier.

    The last colon-form cell wins. Without one, a long-form cell is used, and
    failing that the span between the first and last date-time cells.
    """
    time_cells = [c for c in cells if is_time_token(c)]
    if time_cells:
        return parse_duration(
            time_cells[-1],
            day_hour_minute=(kind == ReportKind.FORBIDDEN_PARKING),
        )

    long_cells = [c for c in cells if is_long_form(c)]
    if long_cells:
        return parse_duration(long_cells[-1])

    datetime_cells = [c for c in cells if is_datetime(c)]
    if len(datetime_cells) >= 2:
        return span_seconds(datetime_cells[0], datetime_cells[-1])

    return 0


def _detail(cells: Sequence[str], max_length: int, min_length: int) -> Optional[str]:
    for cell in cells:
        if len(cell) < min_length:
            continue
        if _is_time_like(cell) or is_identifier(cell, max_length) or _is_numeric(cell):
            continue
        return cell
    return None


def _station(cells: Sequence[str], max_length: int) -> Optional[str]:
    for cell in cells:
        if not cell:
            continue
        if _is_time_like(cell) or is_identifier(cell, max_length) or _is_numeric(cell):
            continue
        return cell
    return None


def extract(
    table: RawTable,
    kind: ReportKind,
    data_start_row: int,
    total_markers: Iterable[str] = DEFAULT_TOTAL_MARKERS,
    max_identifier_length: int = DEFAULT_MAX_IDENTIFIER_LENGTH,
    min_detail_length: int = DEFAULT_MIN_DETAIL_LENGTH,
    detail_placeholder: str = DEFAULT_DETAIL_PLACEHOLDER,
) -> List[Record]:
    """
    Extract Records from data rows.

    Args:
        table: Loaded table
        kind: Report kind selecting duration/detail/station rules
        data_start_row: Index of the first data row (header index + 1)
        total_markers: Tokens marking a summary line, matched case-insensitively
        max_identifier_length: Longer cells are never taken as a plate
        min_detail_length: Shortest cell accepted as event detail
        detail_placeholder: Detail used when no cell qualifies

    Returns:
        Records in row order; never one with an empty vehicle_id
    """
    markers = tuple(m.casefold() for m in total_markers if m)
    records = []
    skipped = 0

    for row_idx in range(max(data_start_row, 0), len(table)):
        row = table[row_idx]

        id_idx = _find_identifier(row, max_identifier_length)
        if id_idx is None:
            skipped += 1
            continue

        if _is_total_row(row, id_idx, markers):
            logger.debug(f"{kind.value}: row {row_idx} is a total line, skipped")
            skipped += 1
            continue

        after = row[id_idx + 1:]
        fields = {'kind': kind, 'vehicle_id': row[id_idx]}

        if kind.has_duration:
            fields['duration_seconds'] = _duration(after, kind)
        if kind.has_detail:
            fields['detail'] = _detail(after, max_identifier_length, min_detail_length) or detail_placeholder
        if kind == ReportKind.FORBIDDEN_PARKING:
            fields['station'] = _station(after, max_identifier_length)

        try:
            records.append(Record(**fields))
        except ValueError as e:
            # pydantic ValidationError is a ValueError
            logger.debug(f"{kind.value}: row {row_idx} rejected: {e}")
            skipped += 1

    logger.info(f"{kind.value}: extracted {len(records)} records, skipped {skipped} rows")
    return records
