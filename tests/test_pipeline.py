import os

from conftest import FORBIDDEN_ROWS, OVER_SPEED_ROWS, sources_in, write_rows
from telematics.config import PipelineSettings
from telematics.models import ReportKind
from telematics.pipeline import (
    build_summary,
    critical_events,
    find_source_files,
    process_report,
    process_reports,
)


def test_over_speed_report(export_dir, tmp_path):
    result = process_report(
        export_dir / 'Report1_OverSpeed.csv', ReportKind.OVER_SPEED, PipelineSettings(), tmp_path / 'out'
    )

    assert result.header_found
    assert result.total_records == 3
    assert [(a.vehicle_id, a.count, a.total_duration_seconds) for a in result.ranking] == [
        ('99-1234', 2, 33930),
        ('100-5678', 1, 29405),
    ]
    assert result.listing == ()
    assert result.converted_csv.endswith('Converted_Report1_OverSpeed.csv')
    assert os.path.isfile(result.converted_csv)


def test_idling_durations_from_start_end(export_dir):
    result = process_report(export_dir / 'Report2_Idling.csv', ReportKind.IDLING, PipelineSettings())

    assert [(a.vehicle_id, a.total_duration_seconds) for a in result.ranking] == [
        ('70-1111', 2400),
        ('70-2222', 300),
    ]
    assert result.converted_csv is None


def test_event_reports_rank_by_count_and_keep_listing(export_dir):
    result = process_report(export_dir / 'Report3_SuddenBrake.csv', ReportKind.SUDDEN_BRAKE, PipelineSettings())

    assert result.total_records == 2
    assert [r.detail for r in result.listing] == ['ถนนสุขุมวิท กม. 5', '-']
    assert all(a.count == 1 for a in result.ranking)


def test_forbidden_parking_chart_and_listing(export_dir):
    result = process_report(
        export_dir / 'Report5_ForbiddenParking.csv', ReportKind.FORBIDDEN_PARKING, PipelineSettings()
    )

    assert [(a.vehicle_id, a.total_duration_seconds) for a in result.chart] == [
        ('60-1001', 8100),
        ('60-2002', 1200),
    ]
    assert result.ranking[0].last_station == 'สถานีบางพลี'
    assert [r.duration_seconds for r in result.listing] == [5400, 2700, 1200]


def test_listing_respects_display_limit(export_dir):
    settings = PipelineSettings(display_limit=1)

    result = process_report(export_dir / 'Report5_ForbiddenParking.csv', ReportKind.FORBIDDEN_PARKING, settings)

    assert len(result.listing) == 1
    assert result.listing[0].station == 'สถานีบางนา'


def test_top_n_setting(export_dir):
    result = process_report(
        export_dir / 'Report1_OverSpeed.csv', ReportKind.OVER_SPEED, PipelineSettings(top_n=1)
    )

    assert len(result.ranking) == 1
    assert result.total_records == 3


def test_missing_source_gives_empty_result(tmp_path):
    result = process_report(tmp_path / 'missing.xls', ReportKind.IDLING, PipelineSettings())

    assert result.is_empty
    assert not result.header_found
    assert process_report(None, ReportKind.IDLING, PipelineSettings()).is_empty


def test_header_not_found_still_converts(tmp_path):
    path = write_rows(tmp_path / 'Report1_OverSpeed.csv', [['title'], ['1', '99-1234', '01:00:00']])

    result = process_report(path, ReportKind.OVER_SPEED, PipelineSettings(), tmp_path / 'out')

    assert not result.header_found
    assert result.ranking == ()
    assert os.path.isfile(result.converted_csv)


def test_partial_data_run(export_dir):
    sources = sources_in(export_dir)
    sources[ReportKind.IDLING] = None
    del sources[ReportKind.HARSH_START]

    results = process_reports(sources, PipelineSettings())

    assert list(results) == list(ReportKind)
    assert results[ReportKind.IDLING].is_empty
    assert results[ReportKind.HARSH_START].is_empty
    assert results[ReportKind.OVER_SPEED].total_records == 3


def test_thread_pool_gives_same_results(export_dir):
    sources = sources_in(export_dir)

    serial = process_reports(sources, PipelineSettings())
    pooled = process_reports(sources, PipelineSettings(max_workers=3))

    assert list(pooled) == list(ReportKind)
    for kind in ReportKind:
        assert pooled[kind].ranking == serial[kind].ranking


def test_find_source_files(export_dir):
    write_rows(export_dir / 'Converted_Report1_OverSpeed.csv', OVER_SPEED_ROWS)
    newer = write_rows(export_dir / 'Report5_ForbiddenParking_2.csv', FORBIDDEN_ROWS)
    older = export_dir / 'Report5_ForbiddenParking.csv'
    os.utime(older, (1_000_000, 1_000_000))

    found = find_source_files(export_dir, PipelineSettings())

    assert found[ReportKind.OVER_SPEED].name == 'Report1_OverSpeed.csv'
    assert found[ReportKind.FORBIDDEN_PARKING] == newer
    assert all(found[kind] is not None for kind in ReportKind)


def test_find_source_files_missing_directory(tmp_path):
    found = find_source_files(tmp_path / 'nowhere', PipelineSettings())

    assert found == {kind: None for kind in ReportKind}


def test_critical_events_and_summary(export_dir):
    results = process_reports(sources_in(export_dir), PipelineSettings())

    events = critical_events(results, 10)
    summary = build_summary(results)

    assert [(e['record'].vehicle_id, e['level']) for e in events] == [
        ('80-1234 (Truck 7)', 'High'),
        ('80-5555', 'High'),
        ('80-5555', 'Medium'),
    ]
    assert len(critical_events(results, 2)) == 2
    assert summary == {
        'over_speed_events': 3,
        'max_idling_vehicle': '70-1111',
        'max_idling_minutes': 40,
        'critical_events': 3,
        'forbidden_events': 3,
        'unavailable': [],
    }


def test_summary_without_data():
    results = process_reports({}, PipelineSettings())

    summary = build_summary(results)

    assert summary['max_idling_vehicle'] == '-'
    assert summary['over_speed_events'] == 0
    assert summary['unavailable'] == list(ReportKind)
    assert critical_events(results, 10) == []
