"""
HTML Report Generator.

Generates the daily fleet safety report:
Executive summary → Over Speed → Idling → Critical events → Forbidden parking.
Each section is an A4 page so the document prints to a multi-page PDF.
"""

from datetime import date
from html import escape
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

from telematics.models import DEFAULT_SORT_KEYS, Aggregate, ReportKind, ReportResult
from telematics.parsers.duration import format_duration

BAR_COLORS = {
    ReportKind.OVER_SPEED: '#1E40AF',
    ReportKind.IDLING: '#F59E0B',
    ReportKind.FORBIDDEN_PARKING: '#9333EA',
}

SORT_LABELS = {
    'count': 'Count',
    'duration': 'Duration',
}

THAI_MONTHS = [
    'มกราคม', 'กุมภาพันธ์', 'มีนาคม', 'เมษายน', 'พฤษภาคม', 'มิถุนายน',
    'กรกฎาคม', 'สิงหาคม', 'กันยายน', 'ตุลาคม', 'พฤศจิกายน', 'ธันวาคม',
]

CSS = """
    @page { size: A4; margin: 0; }
    body { font-family: 'Noto Sans Thai', sans-serif; margin: 0; padding: 0; background: #fff; color: #333; }
    .page { width: 210mm; min-height: 296mm; position: relative; page-break-after: always; overflow: hidden; }
    .content { padding: 40px; }
    .header-banner { background: #1E40AF; color: white; padding: 15px 40px; font-size: 24px; font-weight: bold; margin-bottom: 30px; }
    h1 { font-size: 40px; color: #1E40AF; margin-bottom: 10px; }
    .grid-2x2 { display: grid; grid-template-columns: 1fr 1fr; gap: 20px; margin-top: 50px; }
    .card { background: #F8FAFC; border-radius: 12px; padding: 30px; text-align: center; border: 1px solid #E2E8F0; }
    .card-title { font-size: 18px; font-weight: bold; margin-bottom: 10px; }
    .card-value { font-size: 48px; font-weight: bold; margin: 10px 0; }
    .card-sub { font-size: 14px; color: #64748B; }
    .c-blue { color: #1E40AF; }
    .c-orange { color: #F59E0B; }
    .c-red { color: #DC2626; }
    .c-purple { color: #9333EA; }
    .chart-container { margin: 40px 0; }
    .bar-row { display: flex; align-items: center; margin-bottom: 15px; }
    .bar-label { width: 180px; text-align: right; padding-right: 15px; font-weight: 600; font-size: 14px; }
    .bar-track { flex-grow: 1; background: #F1F5F9; height: 30px; border-radius: 4px; overflow: hidden; }
    .bar-fill { height: 100%; display: flex; align-items: center; justify-content: flex-end; padding-right: 10px; color: white; font-size: 12px; font-weight: bold; }
    table { width: 100%; border-collapse: collapse; margin-top: 20px; }
    th { background: #1E40AF; color: white; padding: 12px; text-align: left; }
    td { padding: 10px; border-bottom: 1px solid #E2E8F0; }
    tr:nth-child(even) { background: #F8FAFC; }
    .empty { color: #64748B; font-style: italic; padding: 20px 0; }
    .risk-High { color: #DC2626; font-weight: bold; }
    .risk-Medium { color: #F59E0B; font-weight: bold; }
"""


def generate_html_report(
    results: Mapping[ReportKind, ReportResult],
    summary: Dict[str, Any],
    events: List[Dict[str, Any]],
    output_path: str,
    title: str = "รายงานสรุปพฤติกรรมการขับขี่",
    report_date: Optional[date] = None,
    titles: Optional[Mapping[ReportKind, str]] = None,
    sort_keys: Optional[Mapping[ReportKind, str]] = None,
    chart_top_n: int = 5,
) -> str:
    """
    Generate HTML report from pipeline results.

    Args:
        results: ReportResult per report kind
        summary: Executive summary from telematics.pipeline.build_summary
        events: Critical events from telematics.pipeline.critical_events
        output_path: Path to save HTML file
        title: Report title
        report_date: Date printed on the cover (today by default)
        titles: Section title per report kind
        sort_keys: Ranking key per report kind, used for the chart headings
        chart_top_n: Number of bars in the OverSpeed and Idling charts

    Returns:
        Path to generated file
    """
    html = _build_html(
        results,
        summary,
        events,
        title,
        report_date or date.today(),
        titles or {},
        {**DEFAULT_SORT_KEYS, **(sort_keys or {})},
        chart_top_n,
    )

    path = Path(output_path)
    path.parent.mkdir(parents=True, exist_ok=True)

    with open(path, 'w', encoding='utf-8') as f:
        f.write(html)

    return str(path)


def _format_thai_date(d: date) -> str:
    """Thai long date with Buddhist era year: 31 มกราคม 2569."""
    return f"{d.day} {THAI_MONTHS[d.month - 1]} {d.year + 543}"


def _build_html(
    results: Mapping[ReportKind, ReportResult],
    summary: Dict[str, Any],
    events: List[Dict[str, Any]],
    title: str,
    report_date: date,
    titles: Mapping[ReportKind, str],
    sort_keys: Mapping[ReportKind, str],
    chart_top_n: int,
) -> str:
    def section_title(kind, default):
        return escape(titles.get(kind) or default)

    pages = [
        _build_summary_page(summary, title, report_date),
        _build_ranking_page(
            results.get(ReportKind.OVER_SPEED),
            f"1. {section_title(ReportKind.OVER_SPEED, 'Over Speed Analysis')}",
            BAR_COLORS[ReportKind.OVER_SPEED],
            sort_keys[ReportKind.OVER_SPEED],
            chart_top_n,
        ),
        _build_ranking_page(
            results.get(ReportKind.IDLING),
            f"2. {section_title(ReportKind.IDLING, 'Idling Analysis')}",
            BAR_COLORS[ReportKind.IDLING],
            sort_keys[ReportKind.IDLING],
            chart_top_n,
        ),
        _build_events_page(events),
        _build_forbidden_page(
            results.get(ReportKind.FORBIDDEN_PARKING),
            f"4. {section_title(ReportKind.FORBIDDEN_PARKING, 'Forbidden Parking')}",
        ),
    ]

    return f"""<!DOCTYPE html>
<html lang="th">
<head>
    <meta charset="UTF-8">
    <title>{escape(title)}</title>
    <link href="https://fonts.googleapis.com/css2?family=Noto+Sans+Thai:wght@300;400;600;700&display=swap" rel="stylesheet">
    <style>{CSS}</style>
</head>
<body>
{''.join(pages)}
</body>
</html>
"""


def _build_summary_page(summary: Dict[str, Any], title: str, report_date: date) -> str:
    return f"""
<div class="page">
    <div style="text-align: center; padding-top: 60px;">
        <h1>{escape(title)}</h1>
        <div style="font-size: 24px; color: #64748B;">Fleet Safety &amp; Telematics Analysis Report</div>
        <div style="margin-top: 20px; font-size: 18px;">ประจำวันที่: {_format_thai_date(report_date)}</div>
    </div>
    <div class="content">
        <div class="header-banner" style="margin-top: 40px; text-align: center;">บทสรุปผู้บริหาร (Executive Summary)</div>
        <div class="grid-2x2">
            <div class="card">
                <div class="card-title c-blue">Over Speed (ครั้ง)</div>
                <div class="card-value c-blue">{summary.get('over_speed_events', 0)}</div>
                <div class="card-sub">เหตุการณ์ทั้งหมด</div>
            </div>
            <div class="card">
                <div class="card-title c-orange">Max Idling (สูงสุด)</div>
                <div class="card-value c-orange">{summary.get('max_idling_minutes', 0)}m</div>
                <div class="card-sub">{escape(str(summary.get('max_idling_vehicle', '-')))}</div>
            </div>
            <div class="card">
                <div class="card-title c-red">Critical Events</div>
                <div class="card-value c-red">{summary.get('critical_events', 0)}</div>
                <div class="card-sub">เบรก/ออกตัว กระชาก</div>
            </div>
            <div class="card">
                <div class="card-title c-purple">พื้นที่ห้ามจอด</div>
                <div class="card-value c-purple">{summary.get('forbidden_events', 0)}</div>
                <div class="card-sub">จำนวนครั้งทั้งหมด</div>
            </div>
        </div>
    </div>
</div>"""


def _build_bars(items: List[Aggregate], color: str) -> str:
    """Horizontal bars scaled to the largest duration."""
    if not items:
        return '<div class="empty">ไม่มีข้อมูล (no data)</div>'

    top = max(max(i.total_duration_seconds for i in items), 1)
    rows = []
    for item in items:
        width = item.total_duration_seconds / top * 100
        rows.append(f"""
        <div class="bar-row">
            <div class="bar-label">{escape(item.vehicle_id)}</div>
            <div class="bar-track">
                <div class="bar-fill" style="width: {width:.1f}%; background: {color};">{format_duration(item.total_duration_seconds)}</div>
            </div>
        </div>""")
    return ''.join(rows)


def _build_ranking_table(items: List[Aggregate]) -> str:
    if not items:
        return ''
    rows = ''.join(
        f"<tr><td>{rank}</td><td>{escape(item.vehicle_id)}</td><td>{item.count}</td>"
        f"<td>{format_duration(item.total_duration_seconds)}</td></tr>"
        for rank, item in enumerate(items, 1)
    )
    return f"""
        <table>
            <tr><th>#</th><th>ทะเบียนรถ</th><th>จำนวนครั้ง</th><th>เวลารวม</th></tr>
            {rows}
        </table>"""


def _build_ranking_page(
    result: Optional[ReportResult],
    heading: str,
    color: str,
    sort_key: str = 'duration',
    chart_limit: int = 5,
) -> str:
    ranking = list(result.ranking) if result else []
    total = result.total_records if result else 0
    return f"""
<div class="page">
    <div class="header-banner">{heading}</div>
    <div class="content">
        <h3>Top {len(ranking)} by {SORT_LABELS.get(sort_key, sort_key)} (เหตุการณ์ทั้งหมด {total} ครั้ง)</h3>
        <div class="chart-container">{_build_bars(ranking[:chart_limit], color)}</div>
        {_build_ranking_table(ranking)}
    </div>
</div>"""


def _build_events_page(events: List[Dict[str, Any]]) -> str:
    if events:
        rows = ''.join(
            f"<tr><td>{escape(e['record'].vehicle_id)}</td>"
            f"<td>{'Sudden Brake' if e['type'] == ReportKind.SUDDEN_BRAKE else 'Harsh Start'}</td>"
            f"<td class=\"risk-{e['level']}\">{e['level']}</td>"
            f"<td>{escape(e['record'].detail or '-')}</td></tr>"
            for e in events
        )
        body = f"""
        <table>
            <tr><th>ทะเบียนรถ</th><th>ประเภท</th><th>ระดับความเสี่ยง</th><th>รายละเอียด</th></tr>
            {rows}
        </table>"""
    else:
        body = '<div class="empty">ไม่พบเหตุการณ์ (no events)</div>'

    return f"""
<div class="page">
    <div class="header-banner">3. เหตุการณ์วิกฤต (Critical Events)</div>
    <div class="content">{body}</div>
</div>"""


def _build_forbidden_page(result: Optional[ReportResult], heading: str) -> str:
    chart = list(result.chart) if result else []
    listing = list(result.listing) if result else []

    if listing:
        rows = ''.join(
            f"<tr><td>{rank}</td><td>{escape(r.vehicle_id)}</td><td>{escape(r.station or '-')}</td>"
            f"<td>{format_duration(r.duration_seconds)}</td></tr>"
            for rank, r in enumerate(listing, 1)
        )
        table = f"""
        <table>
            <tr><th>#</th><th>ทะเบียนรถ</th><th>สถานี</th><th>ระยะเวลา</th></tr>
            {rows}
        </table>"""
    else:
        table = ''

    return f"""
<div class="page">
    <div class="header-banner">{heading}</div>
    <div class="content">
        <h3>Top {len(chart)} by Total Duration</h3>
        <div class="chart-container">{_build_bars(chart, BAR_COLORS[ReportKind.FORBIDDEN_PARKING])}</div>
        {table}
    </div>
</div>"""
