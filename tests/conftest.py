"""
Shared fixtures: small dashboard-like exports written to tmp_path.
"""

import csv

import pytest

PREAMBLE = [
    ['รายงานความเร็วเกินกำหนด'],
    ['บริษัท ตัวอย่าง ขนส่ง จำกัด'],
    ['ช่วงเวลา', '31/01/2026 06:00', 'ถึง', '31/01/2026 18:00'],
    [''],
]

OVER_SPEED_ROWS = PREAMBLE + [
    ['ลำดับ', 'ทะเบียนรถ', 'เวลาเริ่ม', 'ระยะเวลา'],
    ['1', '99-1234', '08:00', '09:15:30'],
    ['2', '100-5678', '08:10', '08:10:05'],
    ['3', '99-1234', '09:00', '00:10:00'],
    ['รวม', '', '', '17:35:35'],
]

IDLING_ROWS = [
    ['ลำดับ', 'ทะเบียนรถ', 'เริ่ม', 'สิ้นสุด'],
    ['1', '70-1111', '31/01/2026 06:00:00', '31/01/2026 06:30:00'],
    ['2', '70-2222', '31/01/2026 07:00:00', '31/01/2026 07:05:00'],
    ['3', '70-1111', '31/01/2026 09:00:00', '31/01/2026 09:10:00'],
]

BRAKE_ROWS = [
    ['ลำดับ', 'ชื่อรถ', 'เวลา', 'ความเร็วเริ่ม', 'ความเร็วสิ้นสุด', 'สถานที่'],
    ['1', '80-1234 (Truck 7)', '31/01/2026 07:00:00', '62', '18', 'ถนนสุขุมวิท กม. 5'],
    ['2', '80-5555', '31/01/2026 08:00:00', '55', '10', ''],
]

HARSH_ROWS = [
    ['ลำดับ', 'ชื่อรถ', 'เวลา', 'ความเร็วเริ่ม', 'ความเร็วสิ้นสุด', 'สถานที่'],
    ['1', '80-5555', '31/01/2026 09:00:00', '0', '40', 'คลังสินค้าบางนา'],
]

FORBIDDEN_ROWS = [
    ['รายงานเข้าพื้นที่ห้ามจอด'],
    ['ลำดับ', 'สาขา', 'ทะเบียนรถ', 'เวลาเข้า', 'สถานี', 'เข้า', 'ออก', 'ระยะเวลา (วัน:ชม.:นาที)'],
    ['1', 'สาขา A', '60-1001', '06:00', 'สถานีบางนา', '31/01/2026 06:00:00', '31/01/2026 07:30:00', '00:01:30'],
    ['2', 'สาขา A', '60-2002', '07:00', 'สถานีลาดกระบัง', '31/01/2026 07:00:00', '31/01/2026 07:20:00', '00:00:20'],
    ['3', 'สาขา B', '60-1001', '09:00', 'สถานีบางพลี', '31/01/2026 09:00:00', '31/01/2026 09:45:00', '00:00:45'],
]


def write_rows(path, rows, bom=True):
    """Write rows as CSV the way the converted exports look."""
    with open(path, 'w', newline='', encoding='utf-8-sig' if bom else 'utf-8') as f:
        csv.writer(f).writerows(rows)
    return path


@pytest.fixture
def export_dir(tmp_path):
    """Directory with one export per report kind, named like the downloads."""
    directory = tmp_path / 'downloads'
    directory.mkdir()
    write_rows(directory / 'Report1_OverSpeed.csv', OVER_SPEED_ROWS)
    write_rows(directory / 'Report2_Idling.csv', IDLING_ROWS)
    write_rows(directory / 'Report3_SuddenBrake.csv', BRAKE_ROWS)
    write_rows(directory / 'Report4_HarshStart.csv', HARSH_ROWS)
    write_rows(directory / 'Report5_ForbiddenParking.csv', FORBIDDEN_ROWS)
    return directory


def sources_in(directory):
    """Source map for the files written by export_dir."""
    from telematics.models import ReportKind

    return {
        ReportKind.OVER_SPEED: directory / 'Report1_OverSpeed.csv',
        ReportKind.IDLING: directory / 'Report2_Idling.csv',
        ReportKind.SUDDEN_BRAKE: directory / 'Report3_SuddenBrake.csv',
        ReportKind.HARSH_START: directory / 'Report4_HarshStart.csv',
        ReportKind.FORBIDDEN_PARKING: directory / 'Report5_ForbiddenParking.csv',
    }
