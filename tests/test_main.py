import zipfile

import pytest
import yaml

from main import main, parse_args, parse_report_date


@pytest.fixture
def config_file(tmp_path, export_dir):
    config = {
        'paths': {'input': {'dir': str(export_dir)}, 'output': {'final': str(tmp_path / 'output')}},
        'logging': {'level': 'INFO', 'console': False, 'file': False},
        'report': {'top_n': 10},
    }
    path = tmp_path / 'config.yaml'
    path.write_text(yaml.safe_dump(config, allow_unicode=True), encoding='utf-8')
    return path


def test_full_run(config_file, tmp_path):
    code = main(['-c', str(config_file), '--date', '2026-01-31'])

    output = tmp_path / 'output'
    assert code == 0
    assert (output / 'report.html').is_file()
    assert (output / 'ranking_forbidden_parking.csv').is_file()
    with zipfile.ZipFile(output / 'Fleet_Report_2026-01-31.zip') as zf:
        names = set(zf.namelist())
    assert 'report.html' in names
    assert 'ranking_over_speed.csv' in names
    assert 'Converted_Report1_OverSpeed.csv' in names


def test_explicit_file_and_flags(config_file, tmp_path, export_dir):
    out = tmp_path / 'custom'

    code = main([
        '-c', str(config_file), '-i', str(tmp_path / 'empty'), '-o', str(out),
        '--overspeed', str(export_dir / 'Report1_OverSpeed.csv'),
        '--no-html', '--no-zip',
    ])

    assert code == 0
    assert (out / 'ranking_over_speed.csv').read_text(encoding='utf-8-sig').count('\n') == 3
    assert not (out / 'report.html').exists()
    assert not list(out.glob('*.zip'))


def test_missing_config_returns_error(tmp_path):
    assert main(['-c', str(tmp_path / 'missing.yaml')]) == 1


def test_bad_date_returns_error(config_file):
    assert main(['-c', str(config_file), '--date', '31/01/2026']) == 1


def test_parse_args_flags():
    args = parse_args(['--sudden-brake', 'a.xls', '--forbidden-parking', 'b.xls', '--top-n', '5'])

    assert args.sudden_brake == 'a.xls'
    assert args.forbidden_parking == 'b.xls'
    assert args.top_n == 5
    assert args.config == 'config.yaml'


def test_parse_report_date():
    assert parse_report_date('2026-01-31').isoformat() == '2026-01-31'
    with pytest.raises(ValueError):
        parse_report_date('2026/01/31')
