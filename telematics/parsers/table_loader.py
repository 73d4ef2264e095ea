"""
Table Loader.

Reads a downloaded dashboard export into a RawTable. Exports arrive as one of:
- an HTML <table> saved with an .xls extension
- a real XLSX workbook (ZIP container, starts with "PK")
- UTF-8 CSV, optionally BOM-prefixed, RFC-4180 quoted

Follows fail-soft principle: a missing, empty or corrupt file gives an empty
table and a warning, never an exception.
"""

import csv
import io
import logging
import re
from datetime import datetime, date, time, timedelta
from pathlib import Path
from typing import Any, Iterable, Optional, Sequence

import openpyxl
from bs4 import BeautifulSoup

from telematics.models import RawTable
from telematics.parsers.duration import format_duration

logger = logging.getLogger(__name__)

ZIP_SIGNATURE = b'PK'

_WHITESPACE_RE = re.compile(r'\s+')


def normalize_cell(value: Any) -> str:
    """Collapse whitespace runs and trim; None becomes ''."""
    if value is None:
        return ''
    return _WHITESPACE_RE.sub(' ', str(value)).strip()


def _finalize(rows: Iterable[Sequence[Any]]) -> RawTable:
    """Normalize cells and drop rows that are entirely empty."""
    result = []
    for row in rows:
        cells = tuple(normalize_cell(c) for c in row)
        if any(cells):
            result.append(cells)
    return tuple(result)


def _excel_value(value: Any) -> str:
    """Render an openpyxl cell value the way the dashboard shows it."""
    if value is None:
        return ''
    if isinstance(value, datetime):
        if value.time() == time(0, 0):
            return value.strftime('%d/%m/%Y')
        return value.strftime('%d/%m/%Y %H:%M:%S')
    if isinstance(value, date):
        return value.strftime('%d/%m/%Y')
    if isinstance(value, time):
        return value.strftime('%H:%M:%S')
    if isinstance(value, timedelta):
        return format_duration(value.total_seconds())
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def _load_xlsx(raw: bytes) -> RawTable:
    # file-like input: openpyxl rejects an .xls name even when the content is XLSX
    wb = openpyxl.load_workbook(io.BytesIO(raw), read_only=True, data_only=True)
    try:
        ws = wb.worksheets[0] if wb.worksheets else None
        if ws is None:
            return ()
        rows = [[_excel_value(v) for v in row] for row in ws.iter_rows(values_only=True)]
    finally:
        wb.close()
    return _finalize(rows)


def _load_html(content: str) -> RawTable:
    soup = BeautifulSoup(content, 'lxml')
    table = soup.find('table')
    if table is None:
        return ()
    rows = []
    for tr in table.find_all('tr'):
        rows.append([cell.get_text() for cell in tr.find_all(['td', 'th'])])
    return _finalize(rows)


def _load_delimited(content: str) -> RawTable:
    first_line = content.split('\n', 1)[0]
    delimiter = '\t' if '\t' in first_line and ',' not in first_line else ','
    reader = csv.reader(io.StringIO(content, newline=''), delimiter=delimiter)
    return _finalize(reader)


def _decode(raw: bytes) -> str:
    # utf-8-sig strips the BOM when present
    return raw.decode('utf-8-sig', errors='replace')


def load(file_path) -> RawTable:
    """
    Load an export file into a RawTable.

    Args:
        file_path: Path to the downloaded file (any extension)

    Returns:
        Tuple of rows, each a tuple of whitespace-normalized cell strings.
        Empty when the file is missing, empty, unreadable or holds no table.
    """
    if not file_path:
        logger.warning("No source file given")
        return ()

    path = Path(file_path)
    if not path.is_file():
        logger.warning(f"Source file not found: {path}")
        return ()

    try:
        raw = path.read_bytes()
    except OSError as e:
        logger.warning(f"Cannot read {path}: {e}")
        return ()

    if not raw.strip():
        logger.warning(f"Source file is empty: {path}")
        return ()

    try:
        if raw[:2] == ZIP_SIGNATURE:
            logger.debug(f"{path.name}: detected XLSX workbook")
            table = _load_xlsx(raw)
        else:
            content = _decode(raw)
            if content.lstrip().startswith('<'):
                logger.debug(f"{path.name}: detected HTML table")
                table = _load_html(content)
            else:
                logger.debug(f"{path.name}: detected delimited text")
                table = _load_delimited(content)
    except Exception as e:
        # Corrupt workbooks raise a variety of zipfile/openpyxl/parser errors
        logger.warning(f"Failed to parse {path}: {e}")
        return ()

    if not table:
        logger.warning(f"No table rows found in {path}")
    else:
        logger.info(f"Loaded {len(table)} rows from {path.name}")
    return table


def write_csv(table: RawTable, output_path) -> Optional[str]:
    """
    Write a RawTable as a BOM-prefixed UTF-8 CSV.

    Fields with commas, quotes or newlines are quoted so spreadsheet tools
    open Thai text correctly.

    Returns:
        Path of the written file, or None when the table is empty
    """
    if not table:
        return None

    path = Path(output_path)
    path.parent.mkdir(parents=True, exist_ok=True)

    with open(path, 'w', newline='', encoding='utf-8-sig') as f:
        writer = csv.writer(f, quoting=csv.QUOTE_MINIMAL, lineterminator='\n')
        writer.writerows(table)

    logger.debug(f"Converted CSV written: {path}")
    return str(path)

