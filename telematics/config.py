"""
Configuration and logging setup.

config.yaml is read once by the entry point; the parts the pipeline needs are
turned into an immutable PipelineSettings object.
"""

import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml
from pydantic import BaseModel, ConfigDict, Field

from telematics.models import DEFAULT_SORT_KEYS, ReportKind

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

# Loggers configured by setup_logging: the CLI and the whole package
LOGGER_NAMES = ('main', 'telematics')

DEFAULT_TITLES = {
    ReportKind.OVER_SPEED: 'การใช้ความเร็วเกินกำหนด (Over Speed)',
    ReportKind.IDLING: 'การจอดติดเครื่องยนต์ (Idling)',
    ReportKind.SUDDEN_BRAKE: 'การเบรกกะทันหัน (Sudden Brake)',
    ReportKind.HARSH_START: 'การออกตัวกระชาก (Harsh Start)',
    ReportKind.FORBIDDEN_PARKING: 'การจอดในพื้นที่ห้ามจอด (Forbidden Parking)',
}

DEFAULT_PATTERNS = {
    ReportKind.OVER_SPEED: '*OverSpeed*',
    ReportKind.IDLING: '*Idling*',
    ReportKind.SUDDEN_BRAKE: '*SuddenBrake*',
    ReportKind.HARSH_START: '*HarshStart*',
    ReportKind.FORBIDDEN_PARKING: '*Forbidden*',
}


class ReportSettings(BaseModel):
    """Per report kind settings."""

    model_config = ConfigDict(frozen=True)

    pattern: str
    sort_key: str = 'count'
    title: str = ''


class PipelineSettings(BaseModel):
    """Settings consumed by telematics.pipeline."""

    model_config = ConfigDict(frozen=True)

    header_markers: List[str] = Field(default_factory=lambda: ['ลำดับ'])
    search_window: int = 20
    total_markers: List[str] = Field(default_factory=lambda: ['รวม', 'total'])
    max_identifier_length: int = 40
    min_detail_length: int = 3
    detail_placeholder: str = '-'

    top_n: int = 10
    chart_top_n: int = 5
    display_limit: int = 10
    max_workers: int = 1

    reports: Dict[ReportKind, ReportSettings] = Field(default_factory=dict)

    def for_kind(self, kind: ReportKind) -> ReportSettings:
        if kind in self.reports:
            return self.reports[kind]
        return ReportSettings(
            pattern=DEFAULT_PATTERNS[kind],
            sort_key=DEFAULT_SORT_KEYS[kind],
            title=DEFAULT_TITLES[kind],
        )


def load_config(config_path: str = "config.yaml") -> Dict[str, Any]:
    """
    Load YAML configuration file.

    Raises:
        FileNotFoundError: If config file doesn't exist
        yaml.YAMLError: If config file is invalid
    """
    config_file = Path(config_path)
    if not config_file.exists():
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    with open(config_file, 'r', encoding='utf-8') as f:
        return yaml.safe_load(f) or {}


def setup_logging(config: Dict[str, Any]) -> logging.Logger:
    """
    Configure console/file logging for the CLI and the telematics package.

    Returns:
        The 'main' logger
    """
    log_config = config.get('logging', {})
    log_level = getattr(logging, str(log_config.get('level', 'INFO')).upper(), logging.INFO)
    formatter = logging.Formatter(LOG_FORMAT)

    handlers = []
    if log_config.get('console', True):
        console_handler = logging.StreamHandler()
        console_handler.setLevel(log_level)
        console_handler.setFormatter(formatter)
        handlers.append(console_handler)

    if log_config.get('file', False):
        log_dir = Path(config.get('paths', {}).get('output', {}).get('logs', 'logs'))
        log_dir.mkdir(parents=True, exist_ok=True)

        date_str = datetime.now().strftime('%Y-%m-%d')
        file_format = log_config.get('file_format', 'report_{date}.log')
        log_file = log_dir / file_format.replace('{date}', date_str)

        file_handler = logging.FileHandler(log_file, encoding='utf-8')
        file_handler.setLevel(log_level)
        file_handler.setFormatter(formatter)
        handlers.append(file_handler)

    for name in LOGGER_NAMES:
        logger = logging.getLogger(name)
        logger.setLevel(log_level)
        # Clear any existing handlers
        logger.handlers = list(handlers)

    return logging.getLogger('main')


def build_settings(config: Dict[str, Any], top_n: Optional[int] = None) -> PipelineSettings:
    """
    Build PipelineSettings from the 'parsing', 'report' and 'reports' sections.

    Args:
        config: Loaded configuration
        top_n: Override for report.top_n (CLI flag)

    Raises:
        ValueError: On an unknown report kind or sort key
    """
    parsing = config.get('parsing') or {}
    report = config.get('report') or {}

    reports = {}
    for name, section in (config.get('reports') or {}).items():
        try:
            kind = ReportKind(name)
        except ValueError:
            raise ValueError(f"Unknown report kind in config: {name}") from None
        section = section or {}
        sort_key = section.get('sort_key', DEFAULT_SORT_KEYS[kind])
        if sort_key not in ('count', 'duration'):
            raise ValueError(f"Invalid sort_key for {name}: {sort_key}")
        reports[kind] = ReportSettings(
            pattern=section.get('pattern', DEFAULT_PATTERNS[kind]),
            sort_key=sort_key,
            title=section.get('title', DEFAULT_TITLES[kind]),
        )

    values = {k: v for k, v in parsing.items() if k in PipelineSettings.model_fields}
    values.update({k: v for k, v in report.items() if k in PipelineSettings.model_fields})
    if top_n is not None:
        values['top_n'] = top_n
    values['reports'] = reports

    return PipelineSettings(**values)
