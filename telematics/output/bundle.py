"""
Data bundle.

Writes the per-kind ranking tables as CSV and zips them together with the
converted source CSVs and the HTML report for delivery.
"""

import logging
import zipfile
from pathlib import Path
from typing import Iterable, List, Mapping

import pandas as pd

from telematics.models import ReportKind, ReportResult
from telematics.parsers.duration import format_duration

logger = logging.getLogger(__name__)

RANKING_COLUMNS = [
    'rank',
    'vehicle_id',
    'count',
    'total_duration_seconds',
    'total_duration',
    'last_station',
]


def write_ranking_csvs(results: Mapping[ReportKind, ReportResult], output_dir) -> List[str]:
    """
    Write one ranking CSV per report kind.

    Empty rankings still produce a header-only file: a day without events is
    a valid report.

    Returns:
        Paths of written files
    """
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)

    written = []
    for kind, result in results.items():
        df = pd.DataFrame(result.to_rows(), columns=[c for c in RANKING_COLUMNS if c != 'total_duration'])
        df['total_duration'] = df['total_duration_seconds'].map(format_duration)
        df = df[RANKING_COLUMNS]

        path = output_dir / f"ranking_{kind.value}.csv"
        df.to_csv(path, index=False, encoding='utf-8-sig')
        logger.info(f"{kind.value}: {len(df)} ranking rows written to {path.name}")
        written.append(str(path))

    return written


def create_bundle(files: Iterable, zip_path) -> str:
    """
    Zip files flat (by file name) into zip_path.

    Missing files are skipped with a warning.

    Returns:
        Path to the zip archive
    """
    zip_path = Path(zip_path)
    zip_path.parent.mkdir(parents=True, exist_ok=True)

    added = 0
    with zipfile.ZipFile(zip_path, 'w', compression=zipfile.ZIP_DEFLATED, compresslevel=9) as zf:
        for file in files:
            if not file:
                continue
            path = Path(file)
            if not path.is_file():
                logger.warning(f"Bundle: file not found, skipped: {path}")
                continue
            zf.write(path, arcname=path.name)
            added += 1

    logger.info(f"Bundle created: {zip_path} ({added} files)")
    return str(zip_path)
