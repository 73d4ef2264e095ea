"""
Report pipeline.

Table Loader → Header Locator → Field Extractor → Aggregator, once per report
kind. Kinds share no state, so the five files may be processed in parallel.

A missing or unreadable file, or one without a header row, yields an empty
ReportResult for that kind; the other kinds are unaffected.
"""

import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

from telematics.analytics.aggregator import aggregate
from telematics.config import PipelineSettings
from telematics.models import ReportKind, ReportResult
from telematics.parsers.field_extractor import extract
from telematics.parsers.header_locator import locate_header_row
from telematics.parsers.table_loader import load, write_csv

logger = logging.getLogger(__name__)

# Risk level shown for critical events
EVENT_LEVELS = {
    ReportKind.SUDDEN_BRAKE: 'High',
    ReportKind.HARSH_START: 'Medium',
}


def find_source_files(input_dir, settings: PipelineSettings) -> Dict[ReportKind, Optional[Path]]:
    """
    Locate the newest export for every report kind in a directory.

    Args:
        input_dir: Directory with downloaded exports
        settings: Pipeline settings holding a glob pattern per kind

    Returns:
        Mapping of every ReportKind to its file, or None when nothing matches
    """
    directory = Path(input_dir) if input_dir else None
    found: Dict[ReportKind, Optional[Path]] = {}
    if directory is not None and not directory.is_dir():
        logger.warning(f"Input directory not found: {directory}")

    for kind in ReportKind:
        found[kind] = None
        if directory is None or not directory.is_dir():
            continue
        pattern = settings.for_kind(kind).pattern
        # Converted copies from an earlier run share the name pattern
        matches = [
            p for p in directory.glob(pattern)
            if p.is_file() and not p.name.startswith('Converted_')
        ]
        if matches:
            found[kind] = max(matches, key=lambda p: p.stat().st_mtime)
        else:
            logger.warning(f"No file matching '{pattern}' for {kind.value} in {directory}")

    return found


def _listing(records, kind: ReportKind, limit: int):
    if kind.has_detail:
        return tuple(records[:limit])
    if kind == ReportKind.FORBIDDEN_PARKING:
        longest = sorted(records, key=lambda r: r.duration_seconds, reverse=True)
        return tuple(longest[:limit])
    return ()


def process_report(
    source_path,
    kind: ReportKind,
    settings: PipelineSettings,
    converted_dir=None,
) -> ReportResult:
    """
    Run one export file through the pipeline.

    Args:
        source_path: Downloaded export (None when the download failed)
        kind: Report kind of the file
        settings: Pipeline settings
        converted_dir: Where to write the converted CSV copy (skipped if None)

    Returns:
        ReportResult; empty when the source or its header is missing
    """
    report_settings = settings.for_kind(kind)
    source = str(source_path) if source_path else None

    table = load(source_path)
    if not table:
        return ReportResult(kind=kind, source_path=source)

    converted = None
    if converted_dir is not None:
        converted = write_csv(table, Path(converted_dir) / f"Converted_{Path(source).stem}.csv")

    header_idx = locate_header_row(table, settings.header_markers, settings.search_window)
    if header_idx is None:
        logger.warning(
            f"{kind.value}: header {settings.header_markers} not found in {Path(source).name}, "
            f"no records extracted"
        )
        return ReportResult(kind=kind, source_path=source, converted_csv=converted)

    records = extract(
        table,
        kind,
        header_idx + 1,
        total_markers=settings.total_markers,
        max_identifier_length=settings.max_identifier_length,
        min_detail_length=settings.min_detail_length,
        detail_placeholder=settings.detail_placeholder,
    )

    ranking = aggregate(records, report_settings.sort_key, settings.top_n)
    chart = ()
    if kind == ReportKind.FORBIDDEN_PARKING:
        chart = aggregate(records, 'duration', settings.chart_top_n)

    return ReportResult(
        kind=kind,
        source_path=source,
        header_found=True,
        total_records=len(records),
        ranking=ranking,
        listing=_listing(records, kind, settings.display_limit),
        chart=chart,
        converted_csv=converted,
    )


def _safe_process(source_path, kind: ReportKind, settings: PipelineSettings, converted_dir) -> ReportResult:
    try:
        return process_report(source_path, kind, settings, converted_dir)
    except Exception as e:
        # Partial data is the normal case; one broken report must not stop the others
        logger.error(f"{kind.value}: processing failed: {e}")
        return ReportResult(kind=kind, source_path=str(source_path) if source_path else None)


def process_reports(
    sources: Mapping[ReportKind, Any],
    settings: PipelineSettings,
    converted_dir=None,
) -> Dict[ReportKind, ReportResult]:
    """
    Process every report kind.

    Kinds absent from ``sources`` are treated as unavailable. With
    settings.max_workers > 1 files are processed in a thread pool.

    Returns:
        ReportResult per kind, in ReportKind order
    """
    results: Dict[ReportKind, ReportResult] = {}
    kinds = list(ReportKind)

    if settings.max_workers > 1:
        with ThreadPoolExecutor(max_workers=settings.max_workers) as executor:
            futures = {
                executor.submit(_safe_process, sources.get(kind), kind, settings, converted_dir): kind
                for kind in kinds
            }
            for future in as_completed(futures):
                results[futures[future]] = future.result()
    else:
        for kind in kinds:
            results[kind] = _safe_process(sources.get(kind), kind, settings, converted_dir)

    return {kind: results[kind] for kind in kinds}


def critical_events(results: Mapping[ReportKind, ReportResult], limit: int) -> list:
    """SuddenBrake and HarshStart listings tagged with their risk level."""
    events = []
    for kind, level in EVENT_LEVELS.items():
        result = results.get(kind)
        if result is None:
            continue
        for record in result.listing:
            events.append({'record': record, 'type': kind, 'level': level})
    return events[:limit]


def build_summary(results: Mapping[ReportKind, ReportResult]) -> Dict[str, Any]:
    """
    Executive summary figures.

    Returns:
        Dictionary with:
        - over_speed_events: number of OverSpeed records
        - max_idling_vehicle / max_idling_minutes: top of the idling ranking
        - critical_events: SuddenBrake + HarshStart records
        - forbidden_events: number of ForbiddenParking records
        - unavailable: report kinds with no source data
    """
    def total(kind):
        result = results.get(kind)
        return result.total_records if result else 0

    idling = results.get(ReportKind.IDLING)
    top_idle = None
    if idling and idling.ranking:
        top_idle = max(idling.ranking, key=lambda a: a.total_duration_seconds)

    return {
        'over_speed_events': total(ReportKind.OVER_SPEED),
        'max_idling_vehicle': top_idle.vehicle_id if top_idle else '-',
        'max_idling_minutes': round(top_idle.total_duration_seconds / 60) if top_idle else 0,
        'critical_events': total(ReportKind.SUDDEN_BRAKE) + total(ReportKind.HARSH_START),
        'forbidden_events': total(ReportKind.FORBIDDEN_PARKING),
        'unavailable': [kind for kind, r in results.items() if not r.header_found],
    }

